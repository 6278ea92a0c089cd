"""Pydantic models for the RapidAPI Twitter list feed."""

from datetime import datetime

from pydantic import BaseModel


class FeedItem(BaseModel):
    """Single post from the watched list, flattened from the timeline entry."""

    id: str
    author_handle: str
    author_name: str
    verified: bool = False
    text: str
    created_at: datetime
    permalink: str

    model_config = {"frozen": True, "extra": "ignore"}

    @property
    def author_info(self) -> str:
        tick = " ✓" if self.verified else ""
        return f"{self.author_name} (@{self.author_handle}){tick}"


class TwitterUserLegacy(BaseModel):
    """`core.user_results.result.legacy` block."""

    screen_name: str
    name: str = ""
    verified: bool = False

    model_config = {"extra": "ignore"}


class TwitterTweetLegacy(BaseModel):
    """`tweet_results.result.legacy` block."""

    id_str: str
    full_text: str = ""
    created_at: str

    model_config = {"extra": "ignore"}
