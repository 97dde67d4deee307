from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

from config.llm_routes import ROUTES


class ConfigurationError(RuntimeError):
    """Missing or invalid configuration detected before any external call."""


def _load_env() -> None:
    # Centralized dotenv loading; safe if .env missing
    load_dotenv()


def _as_bool(value: str | None) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    github_token: str | None
    github_api_url: str

    # AI gating
    ai_provider: str  # openrouter | openai | stub
    openrouter_api_key: str | None
    openrouter_base_url: str
    openai_api_key: str | None
    llm_model: str

    # Core/runtime
    data_dir: str
    run_env: str
    log_level: str

    # Limits/Timeouts
    enrich_batch_size: int
    http_timeout_seconds: int
    github_page_size: int
    rate_limit_min_delay_ms: int
    rate_limit_max_delay_ms: int
    rate_limit_threshold: int
    rate_limit_reserve: int

    # Worker
    worker_interval_seconds: int
    github_repo_owner: str | None = None
    github_repo_name: str | None = None

    # Logging/tracing
    llm_trace: bool = False
    llm_log_path: str = "logs/llm_calls.jsonl"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    _load_env()
    return Settings(
        github_token=os.getenv("GITHUB_TOKEN") or None,
        github_api_url=os.getenv("GITHUB_API_URL", "https://api.github.com").rstrip("/"),
        ai_provider=os.getenv("AI_PROVIDER", "openrouter").lower(),
        openrouter_api_key=os.getenv("OPENROUTER_API_KEY") or None,
        openrouter_base_url=os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1"),
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        llm_model=os.getenv("LLM_MODEL", "google/gemini-2.5-flash-lite"),
        data_dir=os.getenv("DATA_DIR", "./data"),
        run_env=os.getenv("RUN_ENV", "local"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        enrich_batch_size=int(os.getenv("ENRICH_BATCH_SIZE", "500")),
        http_timeout_seconds=int(os.getenv("HTTP_TIMEOUT_SECONDS", "20")),
        github_page_size=int(os.getenv("GITHUB_PAGE_SIZE", "100")),
        rate_limit_min_delay_ms=int(os.getenv("RATE_LIMIT_MIN_DELAY_MS", "100")),
        rate_limit_max_delay_ms=int(os.getenv("RATE_LIMIT_MAX_DELAY_MS", "60000")),
        rate_limit_threshold=int(os.getenv("RATE_LIMIT_THRESHOLD", "500")),
        rate_limit_reserve=int(os.getenv("RATE_LIMIT_RESERVE", "20")),
        worker_interval_seconds=int(os.getenv("WORKER_INTERVAL_SECONDS", "3600")),
        github_repo_owner=os.getenv("GITHUB_REPO_OWNER") or None,
        github_repo_name=os.getenv("GITHUB_REPO_NAME") or None,
        llm_trace=_as_bool(os.getenv("LLM_TRACE", "false")),
        llm_log_path=os.getenv("LLM_LOG_PATH", "logs/llm_calls.jsonl"),
    )


def require_github_token(settings: Settings | None = None) -> str:
    settings = settings or get_settings()
    if not settings.github_token:
        raise ConfigurationError("GITHUB_TOKEN environment variable is required")
    return settings.github_token


SUPPORTED_PROVIDERS = ("stub", "openrouter", "openai")


def extraction_provider(settings: Settings | None = None) -> str:
    """Provider the profile_extraction route resolves to, as LLMClient routes it."""
    settings = settings or get_settings()
    route = ROUTES.get("profile_extraction", {})
    return (route.get("provider") or settings.ai_provider or "openrouter").lower()


def require_llm_credentials(settings: Settings | None = None) -> str:
    """Validate that the extraction provider can be reached and return it.

    A per-route override (LLM_PROFILE_PROVIDER) takes precedence over
    AI_PROVIDER. The stub provider is only accepted in the test environment.
    """
    settings = settings or get_settings()
    provider = extraction_provider(settings)
    if provider not in SUPPORTED_PROVIDERS:
        raise ConfigurationError(f"Unknown extraction provider: {provider}")
    if provider == "stub":
        if (settings.run_env or "").lower() != "test":
            raise ConfigurationError("Stub extraction provider is only allowed when RUN_ENV=test")
        return provider
    if provider == "openrouter" and not settings.openrouter_api_key:
        raise ConfigurationError("OPENROUTER_API_KEY environment variable is required")
    if provider == "openai" and not settings.openai_api_key:
        raise ConfigurationError("OPENAI_API_KEY required when the extraction provider is openai")
    return provider
