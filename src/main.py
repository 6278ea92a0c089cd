"""Entry point for the contract-address radar."""

import asyncio
import signal
import sys

from aiogram import Bot
from loguru import logger

from config.settings import Settings, settings
from src.bot.bot import TelegramNotifier
from src.parsers.ledger import ProcessedLedger
from src.parsers.llm_analyzer.client import LaunchClassifierClient
from src.parsers.scheduler import PollScheduler
from src.parsers.solscan.client import SolscanClient
from src.parsers.twitter.client import TwitterListClient
from src.parsers.verifier import LaunchVerifier
from src.parsers.worker import FeedPipeline
from src.trading.executor import TradeExecutor
from src.trading.jupiter_swap import JupiterSwapClient
from src.trading.wallet import SolanaWallet
from src.utils.logger import setup_logger


async def main(cfg: Settings = settings) -> None:
    setup_logger(json_logs=cfg.log_json, level="INFO")

    missing = cfg.missing_credentials()
    if missing:
        logger.error(f"Missing required configuration: {', '.join(missing)}")
        sys.exit(1)

    logger.info("Starting contract-address radar...")

    ledger = ProcessedLedger(cfg.processed_ids_path)
    ledger.load()

    feed = TwitterListClient(cfg.rapidapi_key, cfg.rapidapi_host)
    notifier = TelegramNotifier(
        Bot(token=cfg.telegram_bot_token),
        cfg.telegram_chat_id,
        max_retries=cfg.notify_max_retries,
        retry_delay=cfg.notify_retry_delay_sec,
    )
    solscan = SolscanClient(max_rps=cfg.solscan_max_rps)
    closers = [feed.close, notifier.close, solscan.close]

    verifier = None
    if cfg.enable_ai_verification:
        classifier = LaunchClassifierClient(
            cfg.llm_api_key, base_url=cfg.llm_base_url, model=cfg.llm_model
        )
        verifier = LaunchVerifier(classifier, solscan)
        closers.append(classifier.close)
        logger.info(f"AI launch verification enabled ({cfg.llm_model})")

    executor = None
    if cfg.trading_enabled:
        wallet = SolanaWallet(cfg.wallet_private_key, cfg.solana_rpc_url)
        swap = JupiterSwapClient(
            api_key=cfg.jupiter_api_key,
            rpc_url=cfg.solana_rpc_url,
            keypair=wallet.keypair,
            priority_fee_lamports=cfg.priority_fee_lamports,
            confirm_timeout=cfg.confirm_timeout_sec,
        )
        executor = TradeExecutor(
            venue=swap,
            wallet=wallet,
            registry=solscan,
            owner_pubkey=wallet.pubkey_str,
            spend_sol=cfg.amount_to_buy_sol,
            slippage_bps=cfg.buy_slippage_bps,
            max_attempts=cfg.trade_max_attempts,
        )
        closers.extend([swap.close, wallet.close])
        balance = await wallet.get_sol_balance()
        logger.warning(
            f"LIVE TRADING enabled: {cfg.amount_to_buy_sol} SOL per signal, "
            f"wallet balance {balance:.4f} SOL"
        )

    pipeline = FeedPipeline(
        feed=feed,
        list_id=cfg.twitter_list_id,
        ledger=ledger,
        notifier=notifier,
        verifier=verifier,
        executor=executor,
    )
    scheduler = PollScheduler(
        pipeline.run_cycle,
        interval_sec=cfg.poll_interval_sec,
        timeout_sec=cfg.cycle_timeout_sec,
    )

    # Graceful shutdown on SIGINT/SIGTERM
    loop = asyncio.get_running_loop()

    def _signal_handler() -> None:
        logger.info("Shutdown signal received")
        scheduler.stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _signal_handler)

    try:
        await scheduler.run()
    finally:
        ledger.flush()
        for close in closers:
            try:
                await close()
            except Exception as e:
                logger.warning(f"Error during shutdown: {e}")
        logger.info(f"Shutdown complete, {notifier.total_sent} alerts sent this session")


if __name__ == "__main__":
    asyncio.run(main())
