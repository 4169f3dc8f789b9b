"""Project-level configuration, path helpers and runtime settings."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, TypeVar, Union
from urllib.parse import urlparse

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"
DEFAULT_TELEMETRY_PATH = LOGS_DIR / "dialogue_telemetry.jsonl"

PathLike = Union[str, Path]
T = TypeVar("T")

PROVIDER_OPENAI = "openai"
PROVIDER_ANTHROPIC = "anthropic"

DEFAULT_BASE_URL = "https://api.openai.com"
DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_ANTHROPIC_MODEL = "claude-3-5-sonnet-20241022"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_OUTPUT_TOKENS = 220
DEFAULT_TIMEOUT_SECS = 15

DEFAULT_GLOBAL_COOLDOWN_SECONDS = 1.5
DEFAULT_PER_NPC_COOLDOWN_SECONDS = 8.0
DEFAULT_MAX_RETRIES = 2
DEFAULT_RETRY_BACKOFF_SECONDS = 5.0
DEFAULT_TICK_INTERVAL_SECONDS = 0.1
DEFAULT_TELEMETRY_CAPACITY = 64


def resolve_telemetry_path(env_value: PathLike | None = None) -> Path:
    """Resolve DIALOGUE_TELEMETRY_PATH to an absolute path."""
    if not env_value:
        return DEFAULT_TELEMETRY_PATH

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def _env_value(
    name: str,
    parse: Callable[[str], T],
    default: T,
    accept: Callable[[T], bool] = lambda _: True,
) -> T:
    """Read and parse an environment variable, falling back on absence or bad input."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = parse(raw.strip())
    except ValueError:
        return default
    return value if accept(value) else default


def _parse_bool(raw: str) -> bool:
    lowered = raw.lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(raw)


def is_valid_base_url(value: str) -> bool:
    """Check that a base URL is an absolute http(s) URL."""
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


@dataclass(frozen=True)
class ProviderSettings:
    """Remote provider configuration sourced from the environment."""

    provider: str = PROVIDER_OPENAI
    api_key: str | None = None
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECS
    max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS
    temperature: float = DEFAULT_TEMPERATURE

    @classmethod
    def from_env(cls) -> "ProviderSettings":
        provider = os.getenv("DIALOGUE_PROVIDER", PROVIDER_OPENAI).strip().lower()
        if provider not in (PROVIDER_OPENAI, PROVIDER_ANTHROPIC):
            provider = PROVIDER_OPENAI

        if provider == PROVIDER_ANTHROPIC:
            key_var, default_model, model_var = (
                "ANTHROPIC_API_KEY",
                DEFAULT_ANTHROPIC_MODEL,
                "ANTHROPIC_MODEL",
            )
        else:
            key_var, default_model, model_var = (
                "OPENAI_API_KEY",
                DEFAULT_MODEL,
                "OPENAI_MODEL",
            )

        api_key = (os.getenv(key_var) or "").strip() or None

        return cls(
            provider=provider,
            api_key=api_key,
            base_url=_env_value("OPENAI_BASE_URL", str, DEFAULT_BASE_URL),
            model=_env_value(model_var, str, default_model),
            timeout_seconds=_env_value(
                "OPENAI_TIMEOUT_SECS", int, DEFAULT_TIMEOUT_SECS, lambda v: v > 0
            ),
            max_output_tokens=_env_value(
                "OPENAI_MAX_OUTPUT_TOKENS",
                int,
                DEFAULT_MAX_OUTPUT_TOKENS,
                lambda v: v > 0,
            ),
            temperature=_env_value(
                "OPENAI_TEMPERATURE", float, DEFAULT_TEMPERATURE, lambda v: v >= 0.0
            ),
        )

    @property
    def chat_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/v1/chat/completions"


@dataclass(frozen=True)
class DispatchSettings:
    """Rate limiting, retry and telemetry settings for the dispatch loop."""

    global_cooldown_seconds: float = DEFAULT_GLOBAL_COOLDOWN_SECONDS
    per_npc_cooldown_seconds: float = DEFAULT_PER_NPC_COOLDOWN_SECONDS
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_backoff_seconds: float = DEFAULT_RETRY_BACKOFF_SECONDS
    retry_context_missing: bool = False
    tick_interval_seconds: float = DEFAULT_TICK_INTERVAL_SECONDS
    telemetry_capacity: int = DEFAULT_TELEMETRY_CAPACITY
    telemetry_path: Path = DEFAULT_TELEMETRY_PATH

    @classmethod
    def from_env(cls) -> "DispatchSettings":
        non_negative = lambda v: v >= 0  # noqa: E731
        return cls(
            global_cooldown_seconds=_env_value(
                "DIALOGUE_GLOBAL_COOLDOWN_SECS",
                float,
                DEFAULT_GLOBAL_COOLDOWN_SECONDS,
                non_negative,
            ),
            per_npc_cooldown_seconds=_env_value(
                "DIALOGUE_PER_NPC_COOLDOWN_SECS",
                float,
                DEFAULT_PER_NPC_COOLDOWN_SECONDS,
                non_negative,
            ),
            max_retries=_env_value(
                "DIALOGUE_MAX_RETRIES", int, DEFAULT_MAX_RETRIES, non_negative
            ),
            retry_backoff_seconds=_env_value(
                "DIALOGUE_RETRY_BACKOFF_SECS",
                float,
                DEFAULT_RETRY_BACKOFF_SECONDS,
                non_negative,
            ),
            retry_context_missing=_env_value(
                "DIALOGUE_RETRY_CONTEXT_MISSING", _parse_bool, False
            ),
            tick_interval_seconds=_env_value(
                "DIALOGUE_TICK_INTERVAL_SECS",
                float,
                DEFAULT_TICK_INTERVAL_SECONDS,
                lambda v: v > 0,
            ),
            telemetry_capacity=_env_value(
                "DIALOGUE_TELEMETRY_CAPACITY",
                int,
                DEFAULT_TELEMETRY_CAPACITY,
                lambda v: v > 0,
            ),
            telemetry_path=resolve_telemetry_path(
                os.getenv("DIALOGUE_TELEMETRY_PATH")
            ),
        )
