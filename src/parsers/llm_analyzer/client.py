"""LLM-based launch classification via an OpenAI-compatible chat API.

Defaults to OpenRouter; any `/chat/completions` endpoint works.
Decides whether a post announces ONE specific new token and extracts its
ticker, contract, a short rationale and a confidence level.

Fails soft: any error yields a "not a launch" result.
"""

import asyncio
import re
from dataclasses import dataclass
from enum import Enum

import httpx
from loguru import logger

from src.parsers.rate_limiter import RateLimiter

MAX_RETRIES = 2
RETRY_DELAYS = [2.0, 5.0]

SYSTEM_PROMPT = """You are a cryptocurrency analyst. Decide whether a post announces or promotes ONE specific new token launch.

Check:
1. Does the post name ONE token ticker (starting with $)?
2. Does it contain ONE contract address for that token?
3. Does it imply the token is new or launching soon?
4. Is the author directly associated with that token?

Answer in exactly this format:
[IS_TOKEN_LAUNCH]: true/false
[TOKEN_TICKER]: $TOKEN
[CONTRACT]: address
[LAUNCH_HINT]: one sentence on why this is (or is not) a launch
[CONFIDENCE]: HIGH/MEDIUM/LOW

Rules:
- Answer true only when confident about one specific token.
- If several tokens are mentioned, report only the primary one being launched.
- Leave TOKEN_TICKER or CONTRACT empty when not stated explicitly."""

RESPONSE_PATTERNS = {
    "is_launch": re.compile(r"\[IS_TOKEN_LAUNCH\]:\s*(true|false)", re.IGNORECASE),
    "ticker": re.compile(r"\[TOKEN_TICKER\]:[ \t]*(\$[^\n]*)", re.IGNORECASE),
    "contract": re.compile(r"\[CONTRACT\]:[ \t]*([^\n]*)", re.IGNORECASE),
    "hint": re.compile(r"\[LAUNCH_HINT\]:[ \t]*([^\n]*)", re.IGNORECASE),
    "confidence": re.compile(r"\[CONFIDENCE\]:\s*(HIGH|MEDIUM|LOW)", re.IGNORECASE),
}


class Confidence(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


@dataclass
class LaunchAnalysis:
    """Classifier verdict for one post."""

    is_launch: bool = False
    ticker: str | None = None
    confidence: Confidence = Confidence.LOW
    hint: str | None = None
    contract: str | None = None


def build_user_prompt(text: str) -> str:
    return (
        "Analyze the following post and decide whether it announces or promotes "
        "a specific token launch:\n\n"
        f"{text}\n\n"
        "Reply in the specified format, focusing on a single primary token."
    )


class LaunchClassifierClient:
    """Launch classification over an OpenAI-compatible endpoint."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://openrouter.ai/api/v1",
        model: str = "openai/gpt-4o-mini",
        max_rps: float = 2.0,
    ) -> None:
        self._rate_limiter = RateLimiter(max_rps)
        self._model = model
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=30.0,  # LLM responses can be slow
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
        )

    async def classify(self, text: str) -> LaunchAnalysis:
        """Classify a post. Never raises."""
        for attempt in range(MAX_RETRIES + 1):
            try:
                await self._rate_limiter.acquire()
                resp = await self._client.post(
                    "/chat/completions",
                    json={
                        "model": self._model,
                        "messages": [
                            {"role": "system", "content": SYSTEM_PROMPT},
                            {"role": "user", "content": build_user_prompt(text)},
                        ],
                        "max_tokens": 200,
                        "temperature": 0.3,
                    },
                )

                if resp.status_code == 429:
                    delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
                    logger.debug(f"[LLM] Rate limited, retrying in {delay}s")
                    await asyncio.sleep(delay)
                    continue

                if resp.status_code != 200:
                    logger.debug(f"[LLM] API error: {resp.status_code}")
                    if attempt < MAX_RETRIES:
                        await asyncio.sleep(RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)])
                        continue
                    return LaunchAnalysis()

                data = resp.json()
                content = (
                    data.get("choices", [{}])[0]
                    .get("message", {})
                    .get("content", "")
                ) or ""

                analysis = parse_response(content)
                _log_analysis(analysis)
                return analysis

            except (httpx.TimeoutException, httpx.ConnectError) as e:
                if attempt < MAX_RETRIES:
                    delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
                    logger.debug(f"[LLM] {type(e).__name__}, retry in {delay}s")
                    await asyncio.sleep(delay)
                else:
                    logger.warning(f"[LLM] Failed after {MAX_RETRIES + 1} attempts: {e}")
            except Exception as e:
                logger.opt(exception=True).warning(f"[LLM] Unexpected error: {e}")
                break

        return LaunchAnalysis()

    async def close(self) -> None:
        await self._client.aclose()


def parse_response(content: str) -> LaunchAnalysis:
    """Parse the bracketed answer format into a LaunchAnalysis."""
    match = RESPONSE_PATTERNS["is_launch"].search(content)
    if not match or match.group(1).lower() != "true":
        return LaunchAnalysis()

    def _field(name: str) -> str | None:
        m = RESPONSE_PATTERNS[name].search(content)
        value = m.group(1).strip() if m else ""
        return value or None

    confidence = _field("confidence")
    return LaunchAnalysis(
        is_launch=True,
        ticker=_field("ticker"),
        contract=_field("contract"),
        hint=_field("hint"),
        confidence=Confidence(confidence.upper()) if confidence else Confidence.MEDIUM,
    )


def _log_analysis(analysis: LaunchAnalysis) -> None:
    if analysis.is_launch:
        logger.info(
            f"[LLM] Launch detected: ticker={analysis.ticker or '-'} "
            f"contract={analysis.contract or '-'} confidence={analysis.confidence.value}"
        )
    else:
        logger.debug("[LLM] Not a token launch")
