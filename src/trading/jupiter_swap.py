"""Jupiter execution venue — quote, swap build, limit orders, sign, send, confirm.

Buy pipeline (driven by TradeExecutor):
  1. GET  /swap/v1/quote: route for WSOL → token
  2. POST /swap/v1/swap: serialized transaction bound to our pubkey
  3. Sign locally (our signer slot only, other signatures are kept)
  4. RPC sendTransaction
  5. getLatestBlockhash, then poll getSignatureStatuses until confirmed or the
     blockhash's last valid block height has passed

Limit sell orders replace 1-2 with POST /limit/v2/createOrder.
"""

from __future__ import annotations

import asyncio
import base64
import time
from dataclasses import dataclass

import httpx
from loguru import logger
from solders.keypair import Keypair  # type: ignore[import-untyped]
from solders.message import to_bytes_versioned  # type: ignore[import-untyped]
from solders.transaction import VersionedTransaction  # type: ignore[import-untyped]

from src.parsers.rate_limiter import RateLimiter

QUOTE_URL = "https://api.jup.ag/swap/v1/quote"
SWAP_URL = "https://api.jup.ag/swap/v1/swap"
LIMIT_ORDER_URL = "https://api.jup.ag/limit/v2/createOrder"
WSOL_MINT = "So11111111111111111111111111111111111111112"
WSOL_DECIMALS = 9

MAX_RETRIES = 2
RETRY_DELAYS = [1.0, 3.0]

# Confirmation polling
CONFIRM_POLL_INTERVAL = 2.0  # seconds
CONFIRM_TIMEOUT = 90.0  # seconds


class JupiterApiError(Exception):
    """Jupiter API request failed or returned an unusable payload."""


class RpcError(Exception):
    """Solana JSON-RPC call failed."""


@dataclass
class ConfirmResult:
    """Outcome of broadcasting one signed transaction."""

    confirmed: bool
    signature: str | None = None
    error: str | None = None


class JupiterSwapClient:
    """Executes Jupiter swaps and limit orders on Solana mainnet."""

    def __init__(
        self,
        *,
        api_key: str = "",
        rpc_url: str,
        keypair: Keypair,
        max_rps: float = 1.0,
        priority_fee_lamports: int | str = 4_211_970,
        confirm_timeout: float = CONFIRM_TIMEOUT,
    ) -> None:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if api_key:
            headers["x-api-key"] = api_key

        self._http = httpx.AsyncClient(timeout=15.0, headers=headers)
        self._rpc_http = httpx.AsyncClient(timeout=30.0)
        self._rpc_url = rpc_url
        self._keypair = keypair
        self._rate_limiter = RateLimiter(max_rps)
        self._priority_fee = priority_fee_lamports
        self._confirm_timeout = confirm_timeout

    # ─── Jupiter API methods ─────────────────────────────────────────

    async def get_quote(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        slippage_bps: int,
    ) -> dict:
        """GET /swap/v1/quote. Amount is in input-mint base units."""
        params = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "amount": str(amount),
            "slippageBps": str(slippage_bps),
        }
        quote = await self._jupiter_request("GET", QUOTE_URL, params=params)
        if "outAmount" not in quote:
            raise JupiterApiError(f"Quote without outAmount: {str(quote)[:200]}")
        logger.debug(
            f"[SWAP] Quote {input_mint[:8]}→{output_mint[:8]} "
            f"in={quote.get('inAmount')} out={quote.get('outAmount')}"
        )
        return quote

    async def build_swap(self, quote: dict, user_pubkey: str) -> str:
        """POST /swap/v1/swap. Returns the base64 unsigned transaction."""
        payload = {
            "quoteResponse": quote,
            "userPublicKey": user_pubkey,
            "wrapAndUnwrapSol": True,
            "dynamicComputeUnitLimit": True,
            "prioritizationFeeLamports": self._priority_fee,
        }
        data = await self._jupiter_request("POST", SWAP_URL, json=payload)
        tx_b64 = data.get("swapTransaction")
        if not tx_b64:
            raise JupiterApiError(f"No swapTransaction in response: {str(data)[:200]}")
        return tx_b64

    async def create_limit_order(
        self,
        input_mint: str,
        output_mint: str,
        maker: str,
        making_amount: int,
        taking_amount: int,
    ) -> str:
        """POST /limit/v2/createOrder. Returns the base64 order transaction.

        making_amount is in input-mint base units, taking_amount in
        output-mint base units.
        """
        payload = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "maker": maker,
            "payer": maker,
            "params": {
                "makingAmount": str(making_amount),
                "takingAmount": str(taking_amount),
            },
            "computeUnitPrice": "auto",
            "inputMintTokenProgram": await self._get_token_program(input_mint),
            "outputMintTokenProgram": await self._get_token_program(output_mint),
        }
        data = await self._jupiter_request("POST", LIMIT_ORDER_URL, json=payload)
        tx_b64 = data.get("tx")
        if not tx_b64:
            raise JupiterApiError(f"No tx in createOrder response: {str(data)[:200]}")
        logger.debug(f"[SWAP] Limit order built, order={data.get('order')}")
        return tx_b64

    async def _jupiter_request(self, method: str, url: str, **kwargs: object) -> dict:
        """Rate-limited Jupiter call with retry on 429/5xx/timeouts."""
        for attempt in range(MAX_RETRIES + 1):
            try:
                await self._rate_limiter.acquire()
                resp = await self._http.request(method, url, **kwargs)

                if resp.status_code == 429 or resp.status_code >= 500:
                    if attempt < MAX_RETRIES:
                        delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
                        logger.debug(f"[SWAP] {url} HTTP {resp.status_code}, retry in {delay}s")
                        await asyncio.sleep(delay)
                        continue
                    raise JupiterApiError(f"HTTP {resp.status_code} from {url}")

                if resp.status_code != 200:
                    try:
                        data = resp.json()
                        error_msg = data.get("error", data.get("message", "Bad request"))
                    except ValueError:
                        error_msg = resp.text[:200]
                    raise JupiterApiError(f"HTTP {resp.status_code} from {url}: {error_msg}")

                return resp.json()

            except (httpx.TimeoutException, httpx.ConnectError) as e:
                if attempt < MAX_RETRIES:
                    delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
                    logger.debug(f"[SWAP] {type(e).__name__} on {url}, retry in {delay}s")
                    await asyncio.sleep(delay)
                    continue
                raise JupiterApiError(f"{url} failed after {MAX_RETRIES + 1} attempts: {e}") from e

        raise JupiterApiError(f"{url}: max retries exceeded")

    # ─── Signing ─────────────────────────────────────────────────────

    def sign_transaction(self, tx_b64: str) -> str:
        """Deserialize, put our signature in our signer slot, re-serialize.

        Signatures already present for other signers (e.g. the order account
        of a limit order) are kept.
        """
        raw = VersionedTransaction.from_bytes(base64.b64decode(tx_b64))
        message = raw.message
        signers = list(message.account_keys[: message.header.num_required_signatures])
        try:
            slot = signers.index(self._keypair.pubkey())
        except ValueError as e:
            raise RpcError("Wallet is not a required signer of this transaction") from e

        signatures = list(raw.signatures)
        signatures[slot] = self._keypair.sign_message(to_bytes_versioned(message))
        signed = VersionedTransaction.populate(message, signatures)
        return base64.b64encode(bytes(signed)).decode("ascii")

    # ─── RPC methods ─────────────────────────────────────────────────

    async def broadcast_and_confirm(self, signed_tx_b64: str) -> ConfirmResult:
        """Send a signed transaction and wait for confirmation.

        Raises RpcError if the send itself fails. Returns confirmed=False when
        the transaction errors on-chain or its blockhash expires unconfirmed.
        """
        signature = await self._rpc_call(
            "sendTransaction",
            [
                signed_tx_b64,
                {
                    "encoding": "base64",
                    "skipPreflight": False,
                    "preflightCommitment": "confirmed",
                },
            ],
        )
        if not signature:
            raise RpcError("sendTransaction returned no signature")
        signature = str(signature)
        logger.debug(f"[SWAP] TX sent: {signature}")

        latest = await self._rpc_call("getLatestBlockhash", [{"commitment": "confirmed"}])
        last_valid_height = int(latest["value"]["lastValidBlockHeight"])

        return await self._wait_for_confirmation(signature, last_valid_height)

    async def _wait_for_confirmation(self, signature: str, last_valid_height: int) -> ConfirmResult:
        """Poll getSignatureStatuses until confirmed, errored, expired or timed out."""
        deadline = time.monotonic() + self._confirm_timeout
        while time.monotonic() < deadline:
            try:
                result = await self._rpc_call(
                    "getSignatureStatuses",
                    [[signature], {"searchTransactionHistory": True}],
                )
                statuses = (result or {}).get("value") or []
                status = statuses[0] if statuses else None
                if status is not None:
                    if status.get("err"):
                        logger.warning(f"[SWAP] TX {signature[:16]} error on-chain: {status['err']}")
                        return ConfirmResult(False, signature, f"on-chain error: {status['err']}")
                    if status.get("confirmationStatus") in ("confirmed", "finalized"):
                        return ConfirmResult(True, signature)

                height = await self._rpc_call("getBlockHeight", [{"commitment": "confirmed"}])
                if int(height) > last_valid_height:
                    logger.warning(f"[SWAP] TX {signature[:16]} blockhash expired unconfirmed")
                    return ConfirmResult(False, signature, "blockhash expired")
            except RpcError as e:
                logger.debug(f"[SWAP] Status poll failed for {signature[:16]}: {e}")

            await asyncio.sleep(CONFIRM_POLL_INTERVAL)

        logger.warning(f"[SWAP] TX {signature[:16]} confirmation timeout after {self._confirm_timeout}s")
        return ConfirmResult(False, signature, "confirmation timeout")

    async def _get_token_program(self, mint: str) -> str | None:
        """Owner program of a mint account (SPL Token or Token-2022)."""
        try:
            result = await self._rpc_call(
                "getAccountInfo", [mint, {"encoding": "base64", "commitment": "confirmed"}]
            )
        except RpcError as e:
            logger.warning(f"[SWAP] Token program lookup failed for {mint[:12]}: {e}")
            return None
        value = (result or {}).get("value")
        return value.get("owner") if value else None

    async def _rpc_call(self, method: str, params: list) -> object:
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        try:
            resp = await self._rpc_http.post(self._rpc_url, json=payload)
        except httpx.HTTPError as e:
            raise RpcError(f"{method}: {type(e).__name__}: {e}") from e
        if resp.status_code != 200:
            raise RpcError(f"{method}: HTTP {resp.status_code}")
        try:
            data = resp.json()
        except ValueError as e:
            raise RpcError(f"{method}: invalid JSON body: {e}") from e
        if not isinstance(data, dict):
            raise RpcError(f"{method}: unexpected response {str(data)[:200]}")
        if "error" in data:
            error = data["error"]
            raise RpcError(f"{method} RPC error {error.get('code', '?')}: {error.get('message', error)}")
        return data.get("result")

    async def close(self) -> None:
        """Close HTTP clients."""
        await self._http.aclose()
        await self._rpc_http.aclose()
