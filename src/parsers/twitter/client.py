"""RapidAPI Twitter list client — latest posts of a curated list.

Uses the twitter-api47 provider on RapidAPI.
Timeline entries are deeply nested GraphQL payloads; only entries carrying
both the tweet and author `legacy` blocks are turned into FeedItems.
"""

import asyncio
from datetime import datetime

import httpx
from loguru import logger
from pydantic import ValidationError

from src.parsers.rate_limiter import RateLimiter
from src.parsers.twitter.models import FeedItem, TwitterTweetLegacy, TwitterUserLegacy

MAX_RETRIES = 2
RETRY_DELAYS = [1.0, 3.0]

CREATED_AT_FORMAT = "%a %b %d %H:%M:%S %z %Y"


class TwitterApiError(Exception):
    """RapidAPI Twitter error."""


class TwitterListClient:
    """HTTP client for list timelines on RapidAPI."""

    def __init__(
        self,
        api_key: str,
        api_host: str = "twitter-api47.p.rapidapi.com",
        max_rps: float = 1.0,
    ) -> None:
        self._rate_limiter = RateLimiter(max_rps)
        self._client = httpx.AsyncClient(
            base_url=f"https://{api_host}",
            timeout=15.0,
            headers={
                "X-RapidAPI-Key": api_key,
                "X-RapidAPI-Host": api_host,
                "Accept": "application/json",
            },
        )

    async def _request(self, method: str, path: str, **kwargs: object) -> dict:
        """Make rate-limited API request with retry on transient errors."""
        for attempt in range(MAX_RETRIES + 1):
            await self._rate_limiter.acquire()
            try:
                response = await self._client.request(method, path, **kwargs)
                if response.status_code == 429:
                    if attempt < MAX_RETRIES:
                        await asyncio.sleep(RETRY_DELAYS[attempt])
                        continue
                    raise TwitterApiError("Rate limited (429)")
                if response.status_code >= 500 and attempt < MAX_RETRIES:
                    await asyncio.sleep(RETRY_DELAYS[attempt])
                    continue
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as e:
                raise TwitterApiError(
                    f"HTTP {e.response.status_code}: {e.response.text[:200]}"
                ) from e
            except (httpx.TimeoutException, httpx.ConnectError) as e:
                if attempt < MAX_RETRIES:
                    await asyncio.sleep(RETRY_DELAYS[attempt])
                    continue
                raise TwitterApiError(f"Request failed after {MAX_RETRIES + 1} attempts: {e}") from e
            except httpx.RequestError as e:
                raise TwitterApiError(f"Request failed: {e}") from e
            except ValueError as e:
                raise TwitterApiError(f"Invalid JSON: {e}") from e
        raise TwitterApiError("Max retries exceeded")

    async def fetch_list_items(self, list_id: str) -> list[FeedItem]:
        """Fetch the latest posts of a list.

        Order is whatever the API returns; malformed entries are dropped.
        Raises TwitterApiError on transport failure.
        """
        data = await self._request("GET", "/v2/list/tweets", params={"listId": list_id})
        raw_entries = data.get("tweets", []) if isinstance(data, dict) else []

        items: list[FeedItem] = []
        for entry in raw_entries:
            item = parse_timeline_entry(entry)
            if item is not None:
                items.append(item)

        dropped = len(raw_entries) - len(items)
        if dropped:
            logger.debug(f"[FEED] Dropped {dropped} entries without tweet/user data")
        return items

    async def close(self) -> None:
        await self._client.aclose()


def parse_timeline_entry(entry: dict) -> FeedItem | None:
    """Flatten one timeline entry. Returns None when required fields are missing."""
    try:
        result = entry["content"]["itemContent"]["tweet_results"]["result"]
        tweet = TwitterTweetLegacy.model_validate(result["legacy"])
        user = TwitterUserLegacy.model_validate(
            result["core"]["user_results"]["result"]["legacy"]
        )
        created_at = datetime.strptime(tweet.created_at, CREATED_AT_FORMAT)
    except (KeyError, TypeError, ValueError, ValidationError):
        return None

    return FeedItem(
        id=tweet.id_str,
        author_handle=user.screen_name,
        author_name=user.name,
        verified=user.verified,
        text=tweet.full_text,
        created_at=created_at,
        permalink=f"https://twitter.com/{user.screen_name}/status/{tweet.id_str}",
    )
