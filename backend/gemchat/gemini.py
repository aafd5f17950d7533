"""
Minimal client for the Gemini generateContent REST endpoint.
"""
import logging
import time
from dataclasses import dataclass

import httpx

from .config import Settings
from .engine.conversations import to_gemini_contents
from .errors import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)

GENERATION_CONFIG = {
    "temperature": 0.7,
    "topK": 40,
    "topP": 0.95,
    "maxOutputTokens": 2048,
}


@dataclass(frozen=True)
class GeminiReply:
    text: str
    tokens_used: int
    response_time_ms: int


def parse_reply(data: dict, response_time_ms: int) -> GeminiReply:
    candidates = data.get("candidates") or []
    if not candidates:
        raise UpstreamError("No response from Gemini API")
    try:
        text = candidates[0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        raise UpstreamError("Malformed response from Gemini API")
    usage = data.get("usageMetadata") or {}
    return GeminiReply(
        text=text,
        tokens_used=usage.get("totalTokenCount") or 0,
        response_time_ms=response_time_ms,
    )


def generate_reply(settings: Settings, messages: list[dict], boost: bool = False) -> GeminiReply:
    """Send the conversation to Gemini and return the first candidate's text."""
    if not settings.GOOGLE_AI_API_KEY:
        raise ConfigurationError("Google AI API key not configured")

    url = f"{settings.GEMINI_BASE_URL.rstrip('/')}/models/{settings.GEMINI_MODEL}:generateContent"
    payload = {
        "contents": to_gemini_contents(messages, boost),
        "generationConfig": GENERATION_CONFIG,
    }

    start = time.monotonic()
    try:
        with httpx.Client(timeout=settings.GEMINI_TIMEOUT_SECONDS) as client:
            res = client.post(
                url,
                json=payload,
                headers={"Content-Type": "application/json", "x-goog-api-key": settings.GOOGLE_AI_API_KEY},
            )
    except httpx.HTTPError as e:
        logger.error("Gemini request failed: %s", e)
        raise UpstreamError(f"Gemini API unreachable: {e}")
    response_time_ms = int((time.monotonic() - start) * 1000)

    if res.status_code >= 400:
        logger.error("Gemini API error %s: %s", res.status_code, res.text)
        raise UpstreamError(f"Gemini API error: {res.status_code}")

    reply = parse_reply(res.json(), response_time_ms)
    logger.info("Response generated in %dms, tokens: %d", reply.response_time_ms, reply.tokens_used)
    return reply
