"""Format feed posts and launch verifications into Telegram HTML messages."""

import html
import re

from src.parsers.extractor import AddressSignal, ChainFamily
from src.parsers.twitter.models import FeedItem
from src.parsers.verifier import VerificationOutcome

DIVIDER = "━" * 20

_FAMILY_GLYPH = {ChainFamily.EVM: "⬡", ChainFamily.SOL: "◎"}
_GMGN_CHAIN = {ChainFamily.EVM: "base", ChainFamily.SOL: "sol"}

_CASHTAG_RE = re.compile(r"(\$\w+)")
_HASHTAG_RE = re.compile(r"(#\w+)")


def format_address_section(signals: list[AddressSignal]) -> str:
    return "\n".join(
        f"{_FAMILY_GLYPH[s.family]} <b>{s.family.value}</b>: <code>{s.address}</code>"
        for s in signals
    )


def highlight_text(text: str, signals: list[AddressSignal]) -> str:
    """Escape post text and mark addresses as code, cashtags bold, hashtags italic."""
    out = html.escape(text, quote=False)
    for s in signals:
        out = out.replace(s.address, f"<code>{s.address}</code>")
    out = _CASHTAG_RE.sub(r"<b>\1</b>", out)
    out = _HASHTAG_RE.sub(r"<i>\1</i>", out)
    return out


def format_feed_alert(item: FeedItem, signals: list[AddressSignal]) -> str:
    """Plain address alert: detected addresses, divider, highlighted post."""
    return "\n\n".join([
        format_address_section(signals),
        DIVIDER,
        highlight_text(item.text, signals),
    ])


def format_launch_alert(
    item: FeedItem,
    outcome: VerificationOutcome,
    signals: list[AddressSignal],
) -> str:
    """Enriched alert for a registry-confirmed launch."""
    token = outcome.token
    analysis = outcome.analysis
    lines = ["🚀 <b>TOKEN LAUNCH CONFIRMED</b>"]
    if analysis and analysis.ticker:
        lines.append(f"Ticker: <b>{html.escape(analysis.ticker)}</b>")
    if token:
        name = html.escape(token.name or token.symbol or "?")
        lines.append(f"Name: {name}")
        lines.append(f"Holders: {token.holder:,}")
        lines.append(f"Reputation: {html.escape(token.reputation or 'unknown')}")
        lines.append(f"◎ <b>SOL</b>: <code>{token.address}</code>")
    if analysis:
        lines.append(f"Confidence: <b>{analysis.confidence.value}</b>")
        if analysis.hint:
            lines.append(f"💡 {html.escape(analysis.hint)}")

    return "\n\n".join([
        "\n".join(lines),
        DIVIDER,
        highlight_text(item.text, signals),
    ])


def build_buttons(permalink: str, signals: list[AddressSignal]) -> list[tuple[str, str]]:
    """(label, url) pairs: link to the post plus one GMGN chart per family."""
    buttons = [("🔗 View post", permalink)]
    for s in signals:
        buttons.append(("🔍 GMGN", f"https://gmgn.ai/{_GMGN_CHAIN[s.family]}/token/{s.address}"))
    return buttons
