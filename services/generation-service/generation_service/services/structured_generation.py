from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import structlog
from pydantic import BaseModel

from ..metrics import PROGRAM_GENERATION_LLM_CALLS_TOTAL, PROGRAM_GENERATION_RETRIES_TOTAL
from .llm_provider import GenAIUnavailableError, LLMProvider

logger = structlog.get_logger(__name__)

T = TypeVar("T", bound=BaseModel)


class ProviderError(RuntimeError):
    """Raised when a structured call never produced a valid response."""

    def __init__(self, message: str, *, attempts: int, step: str | None = None) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.step = step


@dataclass
class StructuredResult(Generic[T]):
    value: T
    attempts: int

    @property
    def retries(self) -> int:
        return self.attempts - 1


async def generate_with_retry(
    provider: LLMProvider,
    *,
    prompt: str,
    response_model: type[T],
    response_schema: dict[str, Any],
    max_retries: int,
    call_timeout: float | None = None,
    base_delay: float = 0.0,
    temperature: float = 0.4,
    step: str = "generic",
    check: Callable[[T], T] | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> StructuredResult[T]:
    """Call the provider until its payload validates against ``response_model``.

    ``max_retries`` is the total attempt budget (at least one attempt is made).
    ``check`` may reject or adjust a parsed value; raising ``ValueError`` there
    counts as an invalid response. Quota exhaustion is never retried.
    """
    attempts = max(1, max_retries)
    last_error: Exception | None = None
    PROGRAM_GENERATION_LLM_CALLS_TOTAL.labels(step=step).inc()

    for attempt in range(1, attempts + 1):
        try:
            payload = await asyncio.wait_for(
                provider.generate_json(prompt=prompt, response_schema=response_schema, temperature=temperature),
                timeout=call_timeout,
            )
            value = response_model.model_validate(payload)
            if check is not None:
                value = check(value)
        except GenAIUnavailableError:
            raise
        except Exception as exc:
            last_error = exc
            logger.warning(
                "structured_generation_attempt_failed",
                step=step,
                attempt=attempt,
                max_attempts=attempts,
                error_type=type(exc).__name__,
                error=str(exc)[:500],
            )
            if attempt < attempts:
                PROGRAM_GENERATION_RETRIES_TOTAL.labels(step=step).inc()
                delay = base_delay * (2 ** (attempt - 1))
                if delay > 0:
                    await sleep(delay)
            continue

        if attempt > 1:
            logger.info("structured_generation_recovered", step=step, attempts=attempt)
        return StructuredResult(value=value, attempts=attempt)

    raise ProviderError(
        f"Failed after {attempts} attempts. Last error: {last_error}",
        attempts=attempts,
        step=step,
    ) from last_error
