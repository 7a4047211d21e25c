from fastapi import Depends, Header, HTTPException, Request, status
from sentry_sdk import set_tag, set_user

from .config import settings
from .services.generation_pipeline import GenerationConfig, GenerationPipeline
from .services.llm_provider import GeminiProvider, LLMProvider
from .services.read_after_write import ReadAfterWriteConfig, ReadAfterWriteTracker


def get_current_user_id(x_user_id: str | None = Header(default=None, alias="X-User-Id")) -> str:
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="X-User-Id header required")
    set_user({"id": str(x_user_id)})
    set_tag("service", settings.service_name)
    return x_user_id


def get_provider(request: Request) -> LLMProvider:
    provider = getattr(request.app.state, "llm_provider", None)
    if provider is None:
        try:
            provider = GeminiProvider.from_settings(settings)
        except RuntimeError as exc:
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
        request.app.state.llm_provider = provider
    return provider


def get_generation_config() -> GenerationConfig:
    return GenerationConfig.from_settings(settings)


def get_pipeline(
    provider: LLMProvider = Depends(get_provider),
    config: GenerationConfig = Depends(get_generation_config),
) -> GenerationPipeline:
    return GenerationPipeline(provider, config)


def build_tracker() -> ReadAfterWriteTracker:
    return ReadAfterWriteTracker(
        ReadAfterWriteConfig(
            consistency_window_seconds=settings.read_after_write_window_seconds,
            max_entries=settings.read_after_write_max_entries,
        )
    )


def get_tracker(request: Request) -> ReadAfterWriteTracker:
    tracker = getattr(request.app.state, "read_after_write_tracker", None)
    if tracker is None:
        tracker = build_tracker()
        request.app.state.read_after_write_tracker = tracker
    return tracker
