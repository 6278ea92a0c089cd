"""Feed pipeline — one pass over the watched list per scheduler tick.

Pass:
1. Fetch list posts, sort oldest first
2. Drop posts already in the ledger
3. Per post, sequentially: mark in ledger → extract addresses → verify
   (when a classifier is configured) → Telegram alert → collect SOL target
4. Flush the ledger once
5. Hand collected SOL targets to the trade executor as one batch

A post is marked before any of its side effects start, so a crash can
duplicate an alert but never lose a post.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from loguru import logger

from src.bot.formatters import build_buttons, format_feed_alert, format_launch_alert
from src.parsers.extractor import AddressSignal, ChainFamily, extract_addresses, first_of_family
from src.parsers.ledger import ProcessedLedger
from src.parsers.twitter.models import FeedItem
from src.parsers.verifier import LaunchVerifier, VerificationStatus
from src.trading.executor import TradeExecutor, TradeOrder


class FeedSource(Protocol):
    async def fetch_list_items(self, list_id: str) -> list[FeedItem]: ...


class Notifier(Protocol):
    async def send_feed_alert(
        self,
        text: str,
        permalink: str,
        author_info: str | None = None,
        timestamp: str | None = None,
        buttons: list[tuple[str, str]] | None = None,
    ) -> bool: ...


@dataclass
class CycleReport:
    """What one pipeline pass did."""

    fetched: int = 0
    new: int = 0
    alerts: int = 0
    suppressed: int = 0
    trade_targets: list[str] = field(default_factory=list)
    orders: list[TradeOrder] = field(default_factory=list)


class FeedPipeline:
    """Ledger-filtered pass over a list feed with alerts and optional trading."""

    def __init__(
        self,
        *,
        feed: FeedSource,
        list_id: str,
        ledger: ProcessedLedger,
        notifier: Notifier,
        verifier: LaunchVerifier | None = None,
        executor: TradeExecutor | None = None,
    ) -> None:
        self._feed = feed
        self._list_id = list_id
        self._ledger = ledger
        self._notifier = notifier
        self._verifier = verifier
        self._executor = executor

    async def run_cycle(self) -> CycleReport:
        report = CycleReport()
        try:
            items = await self._feed.fetch_list_items(self._list_id)
        except Exception as e:
            logger.opt(exception=True).error(f"[FEED] Fetch failed: {e}")
            return report

        report.fetched = len(items)
        logger.info(f"[FEED] Got {len(items)} posts from list {self._list_id}")

        fresh = sorted(
            (i for i in items if not self._ledger.has(i.id)),
            key=lambda i: i.created_at,
        )
        report.new = len(fresh)
        if not fresh:
            return report
        logger.info(f"[FEED] {len(fresh)} new posts to process")

        try:
            for item in fresh:
                await self._process_item(item, report)
        finally:
            self._ledger.flush()

        if self._executor is not None and report.trade_targets:
            try:
                report.orders = await self._executor.execute_batch(report.trade_targets)
            except Exception as e:
                logger.opt(exception=True).error(f"[TRADE] Batch aborted: {e}")

        return report

    async def _process_item(self, item: FeedItem, report: CycleReport) -> None:
        self._ledger.mark(item.id)
        try:
            signals = extract_addresses(item.text)
            sol_signal = first_of_family(signals, ChainFamily.SOL)

            text: str | None = None
            target = sol_signal.address if sol_signal else None

            if self._verifier is not None:
                outcome = await self._verifier.verify(item.text, sol_signal)
                if outcome.status is VerificationStatus.SUPPRESSED:
                    report.suppressed += 1
                    logger.info(f"[FEED] Post {item.id} suppressed: {outcome.reason}")
                    return
                if outcome.status is VerificationStatus.CONFIRMED:
                    target = outcome.verified_address
                    if sol_signal is None and target:
                        signals = [*signals, AddressSignal(target, ChainFamily.SOL)]
                    text = format_launch_alert(item, outcome, signals)

            if not signals:
                return

            if text is None:
                text = format_feed_alert(item, signals)

            logger.info(
                f"[FEED] Alert for post {item.id} by @{item.author_handle}: "
                + ", ".join(f"{s.family.value}={s.address}" for s in signals)
            )
            sent = await self._notifier.send_feed_alert(
                text,
                item.permalink,
                item.author_info,
                item.created_at.strftime("%Y-%m-%d %H:%M:%S %Z"),
                build_buttons(item.permalink, signals),
            )
            if sent:
                report.alerts += 1

            if target and target not in report.trade_targets:
                report.trade_targets.append(target)
        except Exception as e:
            logger.opt(exception=True).error(f"[FEED] Failed to process post {item.id}: {e}")
