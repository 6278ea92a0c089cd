"""Run the launch classifier over sample posts and log the verdicts.

Useful for tuning the prompt or comparing models without touching the feed.
Reads LLM_API_KEY / LLM_BASE_URL / LLM_MODEL from .env.

Usage:
    poetry run python scripts/debug_classifier.py [post text ...]
"""

import asyncio
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from loguru import logger  # noqa: E402

from config.settings import settings  # noqa: E402
from src.parsers.llm_analyzer.client import LaunchClassifierClient  # noqa: E402
from src.utils.logger import setup_logger  # noqa: E402

SAMPLE_POSTS = [
    # explicit launches
    "🚀 Excited to announce our new token $XYZ! CA: 3NZ9JMVBmGAqocybic2c7LQCJScmgsAZ6vQqTDzcqmJh Join the community!",
    "Just deployed $ABC on Base. Early supporters get rewards. CA: 0xabcdef1234567890abcdef1234567890abcdef12",
    # presale, no contract yet
    "🔥 $MOON presale starts in 24 hours! Contract revealed at launch.",
    # several tickers
    "Launching $NEW on the back of $OLD and $BTC! CA: 0x9876543210abcdef9876543210abcdef98765432",
    # not a launch
    "$SOL looking strong today, might add more to my bag",
    "GM everyone, who's building this weekend?",
]


async def main() -> None:
    setup_logger(level="DEBUG")
    if not settings.llm_api_key:
        logger.error("LLM_API_KEY is not configured")
        sys.exit(1)

    posts = sys.argv[1:] or SAMPLE_POSTS
    client = LaunchClassifierClient(
        settings.llm_api_key, base_url=settings.llm_base_url, model=settings.llm_model
    )
    try:
        for n, post in enumerate(posts, 1):
            started = time.monotonic()
            analysis = await client.classify(post)
            elapsed = time.monotonic() - started
            logger.info(f"[{n}/{len(posts)}] {post[:80]}")
            logger.info(
                f"    launch={analysis.is_launch} ticker={analysis.ticker} "
                f"contract={analysis.contract} confidence={analysis.confidence.value} "
                f"({elapsed:.1f}s)"
            )
            if analysis.hint:
                logger.info(f"    hint: {analysis.hint}")
    finally:
        await client.close()


if __name__ == "__main__":
    asyncio.run(main())
