"""Launch verification — LLM classification cross-checked against Solscan.

Outcomes:
- CONFIRMED: the classifier names a ticker, Solscan knows it, and its address
  agrees with the address found in the post (or the post had none).
- SUPPRESSED: the ticker is unknown to Solscan or resolves to a different
  address. No alert, no trade.
- UNVERIFIED: not a launch, no ticker, or a collaborator failed. The plain
  extraction result is used.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from loguru import logger

from src.parsers.extractor import AddressSignal
from src.parsers.llm_analyzer.client import LaunchAnalysis
from src.parsers.solscan.models import TokenInfo


class LaunchClassifier(Protocol):
    async def classify(self, text: str) -> LaunchAnalysis: ...


class TokenRegistry(Protocol):
    async def search_by_symbol(self, ticker: str) -> TokenInfo | None: ...

    async def get_decimals(self, address: str) -> int: ...


class VerificationStatus(str, Enum):
    CONFIRMED = "confirmed"
    SUPPRESSED = "suppressed"
    UNVERIFIED = "unverified"


@dataclass
class VerificationOutcome:
    status: VerificationStatus
    analysis: LaunchAnalysis | None = None
    token: TokenInfo | None = None
    reason: str = ""

    @property
    def verified_address(self) -> str | None:
        if self.status is VerificationStatus.CONFIRMED and self.token:
            return self.token.address
        return None


class LaunchVerifier:
    """Gates and enriches SOL signals with classifier + registry results."""

    def __init__(self, classifier: LaunchClassifier, registry: TokenRegistry) -> None:
        self._classifier = classifier
        self._registry = registry

    async def verify(self, text: str, sol_signal: AddressSignal | None) -> VerificationOutcome:
        try:
            analysis = await self._classifier.classify(text)
        except Exception as e:
            logger.opt(exception=True).warning(f"[VERIFY] Classifier failed: {e}")
            return VerificationOutcome(VerificationStatus.UNVERIFIED, reason="classifier error")

        if not analysis.is_launch or not analysis.ticker:
            return VerificationOutcome(
                VerificationStatus.UNVERIFIED,
                analysis=analysis,
                reason="not a launch" if not analysis.is_launch else "no ticker",
            )

        ticker = analysis.ticker.strip().lstrip("$")
        try:
            token = await self._registry.search_by_symbol(ticker)
        except Exception as e:
            logger.opt(exception=True).warning(f"[VERIFY] Registry lookup failed for ${ticker}: {e}")
            return VerificationOutcome(
                VerificationStatus.UNVERIFIED, analysis=analysis, reason="registry error"
            )

        if token is None:
            logger.info(f"[VERIFY] Suppressed ${ticker}: not found in registry")
            return VerificationOutcome(
                VerificationStatus.SUPPRESSED, analysis=analysis, reason="ticker not in registry"
            )

        if sol_signal is not None and token.address != sol_signal.address:
            logger.info(
                f"[VERIFY] Suppressed ${ticker}: registry {token.address} "
                f"!= post {sol_signal.address}"
            )
            return VerificationOutcome(
                VerificationStatus.SUPPRESSED,
                analysis=analysis,
                token=token,
                reason="address mismatch",
            )

        logger.info(f"[VERIFY] Confirmed ${ticker} at {token.address}")
        return VerificationOutcome(VerificationStatus.CONFIRMED, analysis=analysis, token=token)
