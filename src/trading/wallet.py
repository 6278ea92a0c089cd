"""Solana wallet management — keypair loading, balance checks.

Private key is loaded ONCE at startup and never logged or exposed.
Only the public key is shown in logs and __repr__.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

import httpx
from loguru import logger
from solders.keypair import Keypair  # type: ignore[import-untyped]
from solders.pubkey import Pubkey  # type: ignore[import-untyped]

LAMPORTS_PER_SOL = 1_000_000_000


class SolanaWallet:
    """Manages a Solana keypair and on-chain balance queries.

    Security: private key is only accessible via .keypair property.
    __repr__ and logging show only the public key.
    """

    def __init__(self, private_key_base58: str, rpc_url: str) -> None:
        if not private_key_base58:
            raise ValueError("Wallet private key is empty")
        if not rpc_url:
            raise ValueError("RPC URL is empty")

        self._keypair = Keypair.from_base58_string(private_key_base58)
        self._rpc_url = rpc_url
        self._http = httpx.AsyncClient(timeout=10.0)
        logger.info(f"[WALLET] Loaded wallet: {self.pubkey_str}")

    def __repr__(self) -> str:
        return f"SolanaWallet(pubkey={self.pubkey_str})"

    @property
    def pubkey(self) -> Pubkey:
        return self._keypair.pubkey()

    @property
    def pubkey_str(self) -> str:
        return str(self._keypair.pubkey())

    @property
    def keypair(self) -> Keypair:
        return self._keypair

    async def get_sol_balance(self) -> float:
        """Fetch SOL balance in SOL (not lamports). Returns 0.0 on error."""
        try:
            payload = {
                "jsonrpc": "2.0",
                "id": 1,
                "method": "getBalance",
                "params": [self.pubkey_str],
            }
            resp = await self._http.post(self._rpc_url, json=payload)
            if resp.status_code != 200:
                logger.warning(f"[WALLET] getBalance HTTP {resp.status_code}")
                return 0.0

            data = resp.json()
            if "error" in data:
                logger.warning(f"[WALLET] getBalance error: {data['error']}")
                return 0.0

            lamports = data.get("result", {}).get("value", 0)
            return lamports / LAMPORTS_PER_SOL

        except (httpx.TimeoutException, httpx.ConnectError) as e:
            logger.warning(f"[WALLET] getBalance failed: {e}")
            return 0.0

    async def get_token_balance(self, mint: str) -> Decimal:
        """Token balance of this wallet for a mint, in whole tokens.

        Sums every token account the wallet owns for the mint.
        Returns Decimal(0) on error or if there is no account.
        """
        try:
            payload = {
                "jsonrpc": "2.0",
                "id": 1,
                "method": "getTokenAccountsByOwner",
                "params": [
                    self.pubkey_str,
                    {"mint": mint},
                    {"encoding": "jsonParsed", "commitment": "confirmed"},
                ],
            }
            resp = await self._http.post(self._rpc_url, json=payload)
            if resp.status_code != 200:
                logger.warning(f"[WALLET] getTokenAccountsByOwner HTTP {resp.status_code}")
                return Decimal("0")

            data = resp.json()
            if "error" in data:
                logger.warning(f"[WALLET] getTokenAccountsByOwner error: {data['error']}")
                return Decimal("0")

            total = Decimal("0")
            for account in (data.get("result") or {}).get("value") or []:
                amount = account["account"]["data"]["parsed"]["info"]["tokenAmount"]
                total += Decimal(amount.get("uiAmountString") or "0")
            return total

        except (
            httpx.HTTPError, KeyError, TypeError, AttributeError, ValueError, InvalidOperation
        ) as e:
            logger.warning(f"[WALLET] getTokenBalance failed for {mint[:12]}: {e}")
            return Decimal("0")

    async def close(self) -> None:
        """Close HTTP client."""
        await self._http.aclose()
