"""Solscan token registry — symbol search and token metadata.

Uses the public search endpoint behind solscan.io (no API key).
The first token of the "tokens" result group is taken as the match.
"""

import asyncio

import httpx
from loguru import logger
from pydantic import ValidationError

from src.parsers.rate_limiter import RateLimiter
from src.parsers.solscan.models import SolscanSearchResponse, TokenInfo

BASE_URL = "https://api-v2.solscan.io/v2"

MAX_RETRIES = 2
RETRY_DELAYS = [1.0, 3.0]


class SolscanApiError(Exception):
    """Solscan request or response error."""


class SolscanClient:
    """Async HTTP client for Solscan token search."""

    def __init__(self, max_rps: float = 2.0) -> None:
        self._rate_limiter = RateLimiter(max_rps)
        self._client = httpx.AsyncClient(
            base_url=BASE_URL,
            timeout=10.0,
            headers={
                "accept": "application/json",
                "origin": "https://solscan.io",
                "referer": "https://solscan.io/",
                "sec-fetch-site": "same-site",
            },
        )

    async def _search(self, keyword: str) -> list[TokenInfo]:
        """GET /search and return the token group. Raises SolscanApiError."""
        for attempt in range(MAX_RETRIES + 1):
            try:
                await self._rate_limiter.acquire()
                resp = await self._client.get("/search", params={"keyword": keyword})

                if resp.status_code == 429 or resp.status_code >= 500:
                    if attempt < MAX_RETRIES:
                        delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
                        logger.debug(f"[SOLSCAN] HTTP {resp.status_code}, retry in {delay}s")
                        await asyncio.sleep(delay)
                        continue
                    raise SolscanApiError(f"HTTP {resp.status_code} after {MAX_RETRIES + 1} attempts")

                if resp.status_code != 200:
                    raise SolscanApiError(f"HTTP {resp.status_code}: {resp.text[:200]}")

                parsed = SolscanSearchResponse.model_validate(resp.json())
                if not parsed.success:
                    raise SolscanApiError("Search returned success=false")

                group = next((g for g in parsed.data if g.type == "tokens"), None)
                if group is None:
                    return []
                return [TokenInfo.model_validate(raw) for raw in group.result]

            except (httpx.TimeoutException, httpx.ConnectError) as e:
                if attempt < MAX_RETRIES:
                    delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
                    logger.debug(f"[SOLSCAN] {type(e).__name__}, retry in {delay}s")
                    await asyncio.sleep(delay)
                    continue
                raise SolscanApiError(f"Request failed after {MAX_RETRIES + 1} attempts: {e}") from e
            except ValidationError as e:
                raise SolscanApiError(f"Unexpected response shape: {e}") from e
            except ValueError as e:
                raise SolscanApiError(f"Invalid JSON: {e}") from e

        raise SolscanApiError("Max retries exceeded")

    async def search_by_symbol(self, ticker: str) -> TokenInfo | None:
        """Look up a token by ticker. A leading "$" is stripped."""
        keyword = ticker.strip().lstrip("$")
        if not keyword:
            return None

        tokens = await self._search(keyword)
        if not tokens:
            logger.info(f"[SOLSCAN] No token found for {keyword}")
            return None

        token = tokens[0]
        logger.info(
            f"[SOLSCAN] Found {token.symbol} ({token.name}) {token.address} "
            f"holders={token.holder} reputation={token.reputation or 'unknown'}"
        )
        return token

    async def get_token_by_address(self, address: str) -> TokenInfo | None:
        tokens = await self._search(address)
        return next((t for t in tokens if t.address == address), None)

    async def get_decimals(self, address: str) -> int:
        """Decimal count of a mint. Raises SolscanApiError when the mint is unknown."""
        token = await self.get_token_by_address(address)
        if token is None:
            raise SolscanApiError(f"Token {address} not found")
        return token.decimals

    async def close(self) -> None:
        await self._client.aclose()
