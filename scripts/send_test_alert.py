"""Send a sample alert through the Telegram notifier.

Checks TELEGRAM_BOT_TOKEN / TELEGRAM_CHAT_ID and the HTML formatting
end to end, without polling the feed.

Usage:
    poetry run python scripts/send_test_alert.py
"""

import asyncio
import sys
from datetime import UTC, datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from aiogram import Bot  # noqa: E402
from loguru import logger  # noqa: E402

from config.settings import settings  # noqa: E402
from src.bot.bot import TelegramNotifier  # noqa: E402
from src.bot.formatters import build_buttons, format_feed_alert  # noqa: E402
from src.parsers.extractor import extract_addresses  # noqa: E402
from src.parsers.twitter.models import FeedItem  # noqa: E402
from src.utils.logger import setup_logger  # noqa: E402


async def main() -> None:
    setup_logger(level="DEBUG")
    if not settings.telegram_bot_token or not settings.telegram_chat_id:
        logger.error("TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID must be set")
        sys.exit(1)

    item = FeedItem(
        id="0",
        author_handle="example",
        author_name="Test User",
        verified=True,
        text="🚀 $XYZ launching! CA: 3NZ9JMVBmGAqocybic2c7LQCJScmgsAZ6vQqTDzcqmJh #solana <test> & more",
        created_at=datetime.now(UTC),
        permalink="https://twitter.com/example/status/0",
    )
    signals = extract_addresses(item.text)

    notifier = TelegramNotifier(Bot(token=settings.telegram_bot_token), settings.telegram_chat_id)
    try:
        ok = await notifier.send_feed_alert(
            format_feed_alert(item, signals),
            item.permalink,
            item.author_info,
            item.created_at.strftime("%Y-%m-%d %H:%M:%S %Z"),
            build_buttons(item.permalink, signals),
        )
    finally:
        await notifier.close()

    if not ok:
        logger.error("Test alert was not delivered")
        sys.exit(1)
    logger.info("Test alert delivered")


if __name__ == "__main__":
    asyncio.run(main())
