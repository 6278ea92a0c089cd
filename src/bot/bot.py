"""Telegram alert delivery via aiogram 3.x.

Sends HTML messages with an inline keyboard to a single chat.
Delivery is retried a bounded number of times with a fixed delay; a message
that still fails is logged and dropped.
"""

import asyncio
import html

from aiogram import Bot
from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup, LinkPreviewOptions
from loguru import logger

from src.bot.formatters import DIVIDER


class TelegramNotifier:
    """Alert sender bound to one chat."""

    def __init__(
        self,
        bot: Bot,
        chat_id: str | int,
        *,
        max_retries: int = 3,
        retry_delay: float = 1.0,
    ) -> None:
        self._bot = bot
        self._chat_id = chat_id
        self._max_retries = max(1, max_retries)
        self._retry_delay = retry_delay
        self._total_sent = 0

    @property
    def total_sent(self) -> int:
        return self._total_sent

    async def send_feed_alert(
        self,
        text: str,
        permalink: str,
        author_info: str | None = None,
        timestamp: str | None = None,
        buttons: list[tuple[str, str]] | None = None,
    ) -> bool:
        """Wrap formatted alert text with author and timestamp, then send."""
        parts = []
        if author_info:
            parts.append(f"👤 <b>{html.escape(author_info)}</b>")
        parts.append(DIVIDER)
        parts.append(text)
        if timestamp:
            parts.append(f"🕒 <i>{html.escape(timestamp)}</i>")

        return await self.send_message(
            "\n\n".join(parts),
            buttons=buttons or [("🔗 View post", permalink)],
        )

    async def send_message(
        self,
        text: str,
        *,
        buttons: list[tuple[str, str]] | None = None,
    ) -> bool:
        """Send HTML text. Returns False after all attempts failed."""
        markup = None
        if buttons:
            markup = InlineKeyboardMarkup(
                inline_keyboard=[[InlineKeyboardButton(text=label, url=url) for label, url in buttons]]
            )

        for attempt in range(1, self._max_retries + 1):
            try:
                await self._bot.send_message(
                    chat_id=self._chat_id,
                    text=text,
                    parse_mode="HTML",
                    link_preview_options=LinkPreviewOptions(is_disabled=True),
                    reply_markup=markup,
                )
                self._total_sent += 1
                return True
            except Exception as e:
                logger.warning(f"[NOTIFY] Telegram send attempt {attempt}/{self._max_retries} failed: {e}")
                if attempt < self._max_retries:
                    await asyncio.sleep(self._retry_delay)

        logger.error(f"[NOTIFY] Giving up after {self._max_retries} attempts")
        return False

    async def close(self) -> None:
        await self._bot.session.close()
