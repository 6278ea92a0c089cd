"""Shared test fixtures."""

from datetime import UTC, datetime, timedelta

import pytest

from src.parsers.twitter.models import FeedItem

SOL_CA = "3NZ9JMVBmGAqocybic2c7LQCJScmgsAZ6vQqTDzcqmJh"
OTHER_SOL_CA = "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"
EVM_CA = "0x1234567890abcdef1234567890abcdef12345678"

BASE_TIME = datetime(2025, 2, 1, 12, 0, tzinfo=UTC)


def make_item(item_id: str = "1", text: str = "", minutes: int = 0, **kwargs) -> FeedItem:
    defaults = {
        "id": item_id,
        "author_handle": "dev",
        "author_name": "Dev",
        "verified": False,
        "text": text,
        "created_at": BASE_TIME + timedelta(minutes=minutes),
        "permalink": f"https://twitter.com/dev/status/{item_id}",
    }
    defaults.update(kwargs)
    return FeedItem(**defaults)


@pytest.fixture
def ledger_path(tmp_path):
    return tmp_path / "data" / "processed_tweets.json"
