"""Pydantic models for the Solscan search API."""

from pydantic import BaseModel


class TokenInfo(BaseModel):
    """Token entry from Solscan search results."""

    address: str
    name: str = ""
    symbol: str = ""
    holder: int = 0
    decimals: int = 0
    icon: str | None = None
    reputation: str | None = None

    model_config = {"extra": "ignore"}


class SolscanSearchGroup(BaseModel):
    type: str = ""
    result: list[dict] = []

    model_config = {"extra": "ignore"}


class SolscanSearchResponse(BaseModel):
    success: bool = False
    data: list[SolscanSearchGroup] = []

    model_config = {"extra": "ignore"}
