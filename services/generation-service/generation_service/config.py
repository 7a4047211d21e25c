import os


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    @property
    def service_name(self) -> str:
        return os.getenv("SERVICE_NAME", "generation-service")

    @property
    def gemini_api_key(self) -> str | None:
        return os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")

    @property
    def genai_model(self) -> str:
        return os.getenv("GENAI_MODEL", "gemini-2.0-flash")

    @property
    def genai_max_attempts(self) -> int:
        try:
            return max(0, int(os.getenv("GENAI_MAX_ATTEMPTS", "3")))
        except Exception:
            return 3

    @property
    def genai_base_delay(self) -> float:
        try:
            return max(0.0, float(os.getenv("GENAI_BASE_DELAY", "1.0")))
        except Exception:
            return 1.0

    @property
    def genai_call_timeout(self) -> float:
        try:
            return max(1.0, float(os.getenv("GENAI_CALL_TIMEOUT_SECONDS", "90")))
        except Exception:
            return 90.0

    @property
    def pipeline_deadline_seconds(self) -> float:
        try:
            return max(1.0, float(os.getenv("PIPELINE_DEADLINE_SECONDS", "600")))
        except Exception:
            return 600.0

    @property
    def genai_rate_limit_per_minute(self) -> int:
        try:
            return max(0, int(os.getenv("GENAI_RATE_LIMIT_PER_MINUTE", "60")))
        except Exception:
            return 60

    @property
    def genai_rate_limit_window_seconds(self) -> float:
        try:
            return max(1.0, float(os.getenv("GENAI_RATE_LIMIT_WINDOW_SECONDS", "60")))
        except Exception:
            return 60.0

    @property
    def genai_rate_limit_concurrency(self) -> int:
        try:
            return max(1, int(os.getenv("GENAI_RATE_LIMIT_CONCURRENCY", "4")))
        except Exception:
            return 4

    @property
    def generation_parallel(self) -> bool:
        return _env_flag("GENERATION_PARALLEL", True)

    @property
    def validation_level(self) -> str:
        value = os.getenv("GENERATION_VALIDATION_LEVEL", "strict").strip().lower()
        return value if value in {"strict", "lenient"} else "strict"

    @property
    def generation_log_level(self) -> str:
        value = os.getenv("GENERATION_LOG_LEVEL", "normal").strip().lower()
        return value if value in {"verbose", "normal", "minimal"} else "normal"

    @property
    def read_after_write_window_seconds(self) -> float:
        try:
            return max(0.0, float(os.getenv("READ_AFTER_WRITE_WINDOW_SECONDS", "60")))
        except Exception:
            return 60.0

    @property
    def read_after_write_max_entries(self) -> int:
        try:
            return max(1, int(os.getenv("READ_AFTER_WRITE_MAX_ENTRIES", "1000")))
        except Exception:
            return 1000


settings = Settings()
