"""Tests for the RapidAPI Twitter list client and timeline entry parsing."""

from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from src.parsers.twitter.client import TwitterApiError, TwitterListClient, parse_timeline_entry
from src.parsers.twitter.models import FeedItem


def _entry(
    tweet_id: str = "1886000000000000001",
    text: str = "🚀 $XYZ CA: 3NZ9JMVBmGAqocybic2c7LQCJScmgsAZ6vQqTDzcqmJh",
    screen_name: str = "builder",
    name: str = "Builder",
    verified: bool = True,
    created_at: str = "Sat Feb 01 12:30:00 +0000 2025",
) -> dict:
    """Timeline entry in the shape returned by /v2/list/tweets."""
    return {
        "entryId": f"tweet-{tweet_id}",
        "content": {
            "itemContent": {
                "tweet_results": {
                    "result": {
                        "rest_id": tweet_id,
                        "core": {
                            "user_results": {
                                "result": {
                                    "legacy": {
                                        "screen_name": screen_name,
                                        "name": name,
                                        "verified": verified,
                                        "followers_count": 1000,
                                    }
                                }
                            }
                        },
                        "legacy": {
                            "id_str": tweet_id,
                            "full_text": text,
                            "created_at": created_at,
                            "favorite_count": 3,
                        },
                    }
                }
            }
        },
    }


@pytest.fixture
def client() -> TwitterListClient:
    c = TwitterListClient("rapid-key", max_rps=100.0)
    c._client = AsyncMock(spec=httpx.AsyncClient)
    return c


def _response(status: int, body: object = None) -> MagicMock:
    resp = MagicMock(spec=httpx.Response)
    resp.status_code = status
    resp.json.return_value = body
    resp.text = "" if body is None else str(body)
    if status >= 400:
        resp.raise_for_status.side_effect = httpx.HTTPStatusError(
            "error", request=MagicMock(), response=resp
        )
    return resp


class TestParseTimelineEntry:
    def test_full_entry(self):
        item = parse_timeline_entry(_entry())
        assert item == FeedItem(
            id="1886000000000000001",
            author_handle="builder",
            author_name="Builder",
            verified=True,
            text="🚀 $XYZ CA: 3NZ9JMVBmGAqocybic2c7LQCJScmgsAZ6vQqTDzcqmJh",
            created_at=datetime(2025, 2, 1, 12, 30, tzinfo=UTC),
            permalink="https://twitter.com/builder/status/1886000000000000001",
        )

    def test_author_info(self):
        assert parse_timeline_entry(_entry()).author_info == "Builder (@builder) ✓"
        assert parse_timeline_entry(_entry(verified=False)).author_info == "Builder (@builder)"

    def test_cursor_entry_is_dropped(self):
        assert parse_timeline_entry({"entryId": "cursor-top", "content": {"value": "abc"}}) is None

    def test_missing_user_is_dropped(self):
        entry = _entry()
        del entry["content"]["itemContent"]["tweet_results"]["result"]["core"]
        assert parse_timeline_entry(entry) is None

    def test_bad_date_is_dropped(self):
        assert parse_timeline_entry(_entry(created_at="yesterday")) is None


class TestFetchListItems:
    async def test_fetch_parses_entries_and_drops_malformed(self, client):
        body = {"tweets": [_entry("1"), {"entryId": "cursor-bottom"}, _entry("2")]}
        client._client.request = AsyncMock(return_value=_response(200, body))

        items = await client.fetch_list_items("999")

        assert [i.id for i in items] == ["1", "2"]
        client._client.request.assert_awaited_once_with(
            "GET", "/v2/list/tweets", params={"listId": "999"}
        )

    async def test_empty_list(self, client):
        client._client.request = AsyncMock(return_value=_response(200, {"tweets": []}))
        assert await client.fetch_list_items("999") == []

    async def test_retries_server_error(self, client):
        client._client.request = AsyncMock(
            side_effect=[_response(503), _response(200, {"tweets": [_entry("1")]})]
        )
        with patch("src.parsers.twitter.client.asyncio.sleep", new_callable=AsyncMock):
            items = await client.fetch_list_items("999")
        assert len(items) == 1

    async def test_persistent_rate_limit_raises(self, client):
        client._client.request = AsyncMock(return_value=_response(429))
        with patch("src.parsers.twitter.client.asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(TwitterApiError, match="429"):
                await client.fetch_list_items("999")
        assert client._client.request.await_count == 3

    async def test_client_error_raises_without_retry(self, client):
        client._client.request = AsyncMock(return_value=_response(403, {"message": "forbidden"}))
        with pytest.raises(TwitterApiError, match="HTTP 403"):
            await client.fetch_list_items("999")
        client._client.request.assert_awaited_once()

    async def test_timeout_raises_after_retries(self, client):
        client._client.request = AsyncMock(side_effect=httpx.ConnectTimeout("down"))
        with patch("src.parsers.twitter.client.asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(TwitterApiError):
                await client.fetch_list_items("999")
