import asyncio

import pytest
from prometheus_client import REGISTRY
from pydantic import BaseModel

from generation_service.services.llm_provider import GenAIUnavailableError
from generation_service.services.structured_generation import ProviderError, generate_with_retry


class Answer(BaseModel):
    value: int


class SequenceProvider:
    model_name = "sequence"

    def __init__(self, *outcomes, delay=0.0):
        self.outcomes = list(outcomes)
        self.calls = 0
        self.delay = delay

    async def generate_json(self, *, prompt, response_schema, temperature=0.4):
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if outcome == "slow":
            await asyncio.sleep(self.delay)
            return {"value": -1}
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _call(provider, **kwargs):
    kwargs.setdefault("max_retries", 3)
    return generate_with_retry(provider, prompt="p", response_model=Answer, response_schema={}, **kwargs)


async def test_first_valid_response_wins():
    result = await _call(SequenceProvider({"value": 1}))
    assert result.value == Answer(value=1)
    assert result.attempts == 1
    assert result.retries == 0


async def test_invalid_payloads_are_retried():
    provider = SequenceProvider({"value": "nope"}, ValueError("garbled"), {"value": 3})
    result = await _call(provider)
    assert result.value.value == 3
    assert result.attempts == 3
    assert provider.calls == 3


async def test_exhaustion_raises_provider_error():
    provider = SequenceProvider({}, {}, {})
    with pytest.raises(ProviderError, match="Failed after 3 attempts. Last error:") as excinfo:
        await _call(provider, step="macro_structure")
    assert excinfo.value.attempts == 3
    assert excinfo.value.step == "macro_structure"


async def test_zero_retries_still_makes_one_attempt():
    provider = SequenceProvider({}, {"value": 1})
    with pytest.raises(ProviderError, match="Failed after 1 attempts"):
        await _call(provider, max_retries=0)
    assert provider.calls == 1


async def test_quota_exhaustion_is_not_retried():
    provider = SequenceProvider(GenAIUnavailableError("quota"), {"value": 1})
    with pytest.raises(GenAIUnavailableError):
        await _call(provider)
    assert provider.calls == 1


async def test_slow_calls_time_out_and_retry():
    provider = SequenceProvider("slow", {"value": 2}, delay=1.0)
    result = await _call(provider, call_timeout=0.01)
    assert result.value.value == 2
    assert result.attempts == 2


async def test_backoff_doubles():
    delays = []

    async def record(delay):
        delays.append(delay)

    provider = SequenceProvider({}, {}, {"value": 1})
    await _call(provider, base_delay=1.5, sleep=record)
    assert delays == [1.5, 3.0]


async def test_check_can_reject_or_adjust():
    def check(answer: Answer) -> Answer:
        if answer.value < 0:
            raise ValueError("negative")
        return answer.model_copy(update={"value": answer.value * 10})

    result = await _call(SequenceProvider({"value": -1}, {"value": 4}), check=check)
    assert result.value.value == 40
    assert result.retries == 1


async def test_retries_are_counted_in_metrics():
    def sample():
        return REGISTRY.get_sample_value("program_generation_retries_total", {"step": "metrics_probe"}) or 0.0

    before = sample()
    await _call(SequenceProvider({}, {"value": 1}), step="metrics_probe")
    assert sample() == before + 1
