"""Server configuration via environment variables."""

from __future__ import annotations

import logging
import os

from pydantic import BaseModel, Field, field_validator

VALID_THINKING_LEVELS = {"minimal", "low", "medium", "high"}

DEFAULT_ALLOWED_ORIGINS: tuple[str, ...] = (
    "https://cine-prompt-ai-storyboard.vercel.app",
    "http://localhost:5173",  # Vite dev server
    "http://localhost:4173",  # Vite preview
)


def _split_origins(raw: str) -> list[str]:
    """Parse a comma-separated origin list, dropping blanks and trailing slashes."""
    return [o.strip().rstrip("/") for o in raw.split(",") if o.strip()]


class ServerConfig(BaseModel):
    """Runtime configuration resolved from environment."""

    gemini_api_key: str = Field(default="")
    default_model: str = Field(default="gemini-3-flash-preview")
    default_thinking_level: str = Field(
        default="",
        description="Empty = let the model pick its own thinking budget",
    )
    gateway_model: str = Field(default="gemini-2.5-flash")
    gateway_timeout_seconds: float = Field(default=30.0)
    max_prompt_chars: int = Field(default=10_000)
    allowed_origins: list[str] = Field(default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS))
    environment: str = Field(default="production")
    gateway_host: str = Field(default="127.0.0.1")
    gateway_port: int = Field(default=8787)
    max_sessions: int = Field(default=50)
    session_timeout_hours: int = Field(default=2)

    @field_validator("default_thinking_level")
    @classmethod
    def validate_thinking_level(cls, value: str) -> str:
        level = value.strip().lower()
        if level and level not in VALID_THINKING_LEVELS:
            allowed = ", ".join(sorted(VALID_THINKING_LEVELS))
            raise ValueError(f"Invalid thinking level '{value}'. Allowed: {allowed}")
        return level

    @field_validator("max_prompt_chars", "max_sessions", "session_timeout_hours", "gateway_port")
    @classmethod
    def validate_positive_ints(cls, value: int) -> int:
        if value < 1:
            raise ValueError("Configuration values must be >= 1")
        return value

    @field_validator("gateway_timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("gateway_timeout_seconds must be > 0")
        return value

    @property
    def development_mode(self) -> bool:
        """True when internal error detail may be exposed to HTTP clients."""
        return self.environment.strip().lower() in ("development", "dev")

    @classmethod
    def from_env(cls) -> ServerConfig:
        """Build config from environment variables."""
        origins_raw = os.getenv("CINE_PROMPT_ALLOWED_ORIGINS", "")
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            default_model=os.getenv("GEMINI_MODEL", "gemini-3-flash-preview"),
            default_thinking_level=os.getenv("GEMINI_THINKING_LEVEL", ""),
            gateway_model=os.getenv("CINE_PROMPT_GATEWAY_MODEL", "gemini-2.5-flash"),
            gateway_timeout_seconds=float(os.getenv("CINE_PROMPT_GATEWAY_TIMEOUT", "30")),
            max_prompt_chars=int(os.getenv("CINE_PROMPT_MAX_PROMPT_CHARS", "10000")),
            allowed_origins=_split_origins(origins_raw) if origins_raw.strip() else list(DEFAULT_ALLOWED_ORIGINS),
            environment=os.getenv("CINE_PROMPT_ENV", "production"),
            gateway_host=os.getenv("CINE_PROMPT_GATEWAY_HOST", "127.0.0.1"),
            gateway_port=int(os.getenv("CINE_PROMPT_GATEWAY_PORT", "8787")),
            max_sessions=int(os.getenv("CINE_PROMPT_MAX_SESSIONS", "50")),
            session_timeout_hours=int(os.getenv("CINE_PROMPT_SESSION_TIMEOUT_HOURS", "2")),
        )


# Singleton
_config: ServerConfig | None = None


def get_config() -> ServerConfig:
    """Return the global config singleton, creating it on first access.

    Loads ``~/.config/cine-prompt/.env`` before reading env vars.
    Process environment always takes precedence over the config file.
    """
    global _config
    if _config is None:
        from .dotenv import load_dotenv

        injected = load_dotenv()
        if injected:
            logger = logging.getLogger(__name__)
            logger.info("Loaded %d var(s) from config: %s", len(injected), ", ".join(injected))
        _config = ServerConfig.from_env()
    return _config


def reset_config() -> None:
    """Reset the config singleton (for testing)."""
    global _config
    _config = None
