from __future__ import annotations

import asyncio
import json
import time
from collections import deque
from typing import Any, Protocol

import structlog
from google import genai
from google.genai import types

from ..config import Settings

logger = structlog.get_logger(__name__)


class GenAIUnavailableError(RuntimeError):
    pass


class LLMProvider(Protocol):
    model_name: str

    async def generate_json(
        self,
        *,
        prompt: str,
        response_schema: dict[str, Any],
        temperature: float = 0.4,
    ) -> dict[str, Any]: ...


def is_quota_or_rate_limit_error(exc: Exception) -> bool:
    status = getattr(exc, "status_code", None) or getattr(exc, "code", None)
    if isinstance(status, int) and status in {403, 429}:
        return True

    text = str(exc).lower()
    patterns = (
        "quota",
        "rate limit",
        "too many requests",
        "resourceexhausted",
        "resource exhausted",
        "429",
    )
    return any(token in text for token in patterns)


class SlidingWindowRateLimiter:
    """Admits at most ``max_calls`` acquisitions per ``window_seconds``."""

    def __init__(self, max_calls: int, window_seconds: float) -> None:
        self.max_calls = max_calls
        self.window_seconds = window_seconds
        self._history: deque[float] = deque()
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        if self.max_calls <= 0:
            return

        while True:
            async with self._lock:
                now = time.monotonic()
                window_start = now - self.window_seconds

                while self._history and self._history[0] < window_start:
                    self._history.popleft()

                if len(self._history) < self.max_calls:
                    self._history.append(now)
                    return

                wait_seconds = self.window_seconds - (now - self._history[0])

            await asyncio.sleep(max(wait_seconds, 0.05))


def parse_json_object(response_text: str | None) -> dict[str, Any]:
    if not response_text:
        raise ValueError("Empty GenAI JSON response text")

    try:
        parsed = json.loads(response_text)
    except json.JSONDecodeError:
        logger.error("genai_json_parse_error", preview=response_text[:2000])
        raise

    if not isinstance(parsed, dict):
        logger.error("genai_json_not_object", preview=response_text[:2000])
        raise ValueError("Non-dict GenAI JSON response")
    return parsed


class GeminiProvider:
    """Structured JSON generation through google-genai.

    Each instance owns its client, rate limiter and concurrency gate, so two
    providers never share throttling state.
    """

    def __init__(
        self,
        *,
        api_key: str,
        model_name: str,
        rate_limit_per_minute: int,
        rate_limit_window_seconds: float = 60.0,
        concurrency: int = 1,
        max_output_tokens: int = 16384,
        client: genai.Client | None = None,
    ) -> None:
        self.model_name = model_name
        self.max_output_tokens = max_output_tokens
        self._client = client or genai.Client(api_key=api_key)
        self._rate_limiter = SlidingWindowRateLimiter(rate_limit_per_minute, rate_limit_window_seconds)
        self._semaphore = asyncio.Semaphore(concurrency)

    @classmethod
    def from_settings(cls, settings: Settings) -> GeminiProvider:
        api_key = settings.gemini_api_key
        if not api_key:
            raise RuntimeError("GEMINI_API_KEY (or GOOGLE_API_KEY) must be set for program generation")
        return cls(
            api_key=api_key,
            model_name=settings.genai_model,
            rate_limit_per_minute=settings.genai_rate_limit_per_minute,
            rate_limit_window_seconds=settings.genai_rate_limit_window_seconds,
            concurrency=settings.genai_rate_limit_concurrency,
        )

    async def generate_json(
        self,
        *,
        prompt: str,
        response_schema: dict[str, Any],
        temperature: float = 0.4,
    ) -> dict[str, Any]:
        try:
            async with self._semaphore:
                await self._rate_limiter.acquire()
                response = await asyncio.to_thread(
                    self._client.models.generate_content,
                    model=self.model_name,
                    contents=prompt,
                    config=types.GenerateContentConfig(
                        response_mime_type="application/json",
                        response_schema=response_schema,
                        temperature=temperature,
                        max_output_tokens=self.max_output_tokens,
                    ),
                )
        except Exception as exc:
            logger.warning("genai_request_failed", error=str(exc), model=self.model_name)
            if is_quota_or_rate_limit_error(exc):
                raise GenAIUnavailableError("GenAI quota exhausted") from exc
            raise

        candidate = response.candidates[0] if getattr(response, "candidates", None) else None
        logger.debug(
            "genai_response",
            finish_reason=str(getattr(candidate, "finish_reason", None)),
            usage=str(getattr(response, "usage_metadata", None)),
        )
        return parse_json_object(getattr(response, "text", None))
