from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Feed (Twitter list via RapidAPI)
    rapidapi_key: str = ""
    rapidapi_host: str = "twitter-api47.p.rapidapi.com"
    twitter_list_id: str = ""
    poll_interval_sec: float = 90.0
    cycle_timeout_sec: float = 600.0  # upper bound for one pipeline pass

    # Processed-id ledger
    processed_ids_path: str = "data/processed_tweets.json"

    # Telegram alerts
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""
    notify_max_retries: int = 3
    notify_retry_delay_sec: float = 1.0

    # Logging
    log_json: bool = False  # serialize console and file sinks as JSON lines

    # LLM launch classification (OpenAI-compatible chat completions)
    enable_ai_verification: bool = False
    llm_api_key: str = ""
    llm_base_url: str = "https://openrouter.ai/api/v1"
    llm_model: str = "openai/gpt-4o-mini"

    # Solscan token registry
    solscan_max_rps: float = 2.0

    # Real trading (DISABLED by default, requires wallet_private_key)
    trading_enabled: bool = False
    wallet_private_key: str = ""  # Base58 secret key, NEVER LOG THIS
    solana_rpc_url: str = ""
    jupiter_api_key: str = ""
    amount_to_buy_sol: float = 0.001
    buy_slippage_bps: int = 10_000  # maximal tolerance: fill over price protection
    priority_fee_lamports: int = 4_211_970
    trade_max_attempts: int = 5
    confirm_timeout_sec: float = 90.0

    def missing_credentials(self) -> list[str]:
        """Names of required settings that are empty for the enabled features."""
        required = {
            "RAPIDAPI_KEY": self.rapidapi_key,
            "TWITTER_LIST_ID": self.twitter_list_id,
            "TELEGRAM_BOT_TOKEN": self.telegram_bot_token,
            "TELEGRAM_CHAT_ID": self.telegram_chat_id,
        }
        if self.enable_ai_verification:
            required["LLM_API_KEY"] = self.llm_api_key
        if self.trading_enabled:
            required["WALLET_PRIVATE_KEY"] = self.wallet_private_key
            required["SOLANA_RPC_URL"] = self.solana_rpc_url
        return [name for name, value in required.items() if not value]


settings = Settings()
