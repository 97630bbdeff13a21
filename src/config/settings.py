# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for deployment-specific settings. A missing
GEMINI_API_KEY is reported by the gateway on each request, not at startup.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from diarygate.errors import DiarygateError


class ConfigurationError(DiarygateError):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === LLM PROVIDER ===
    llm_provider: str = "google"
    llm_default_model: str = "gemini-3-flash-preview"
    gemini_api_key: str = ""

    # Comma-separated "model:fallback" pairs, read-only at request time.
    llm_fallback_chain: str = (
        "gemini-3-pro-preview:gemini-3-flash-preview,"
        "gemini-3-flash-preview:gemini-2.0-flash"
    )

    # === Retry policy ===
    retry_max_attempts: int = 3
    retry_base_delay_s: float = 1.0
    request_timeout_s: float = 60.0

    # === Gateway ===
    cors_origins: str = "*"

    # === Remote log sink ===
    log_sink_enabled: bool = False
    log_sink_url: str = ""
    log_sink_token: str = ""
    log_sink_app_name: str = "6min"
    log_sink_timeout_s: float = 5.0

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"

    # === Client side ===
    gateway_url: str = "http://localhost:8000/api/gemini"
    diary_store_path: Path = Path("~/.diarygate/diary.json")

    # --- Validators ---

    @field_validator("retry_max_attempts")
    @classmethod
    def validate_max_attempts(cls, v: int) -> int:  # noqa: N805
        if v < 1:
            raise ValueError("retry_max_attempts must be >= 1")
        return v

    @field_validator("retry_base_delay_s")
    @classmethod
    def validate_base_delay(cls, v: float) -> float:  # noqa: N805
        """Backoff base stays within the 1-2 second window."""
        if not 1.0 <= v <= 2.0:
            raise ValueError("retry_base_delay_s must be between 1.0 and 2.0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        from diarygate.llm.fallback import ModelChain

        errors: list[str] = []

        try:
            chain = ModelChain.parse(self.llm_fallback_chain)
        except ValueError as exc:
            errors.append(f"LLM_FALLBACK_CHAIN is malformed: {exc}")
        else:
            cycle = chain.find_cycle()
            if cycle:
                errors.append(
                    "LLM_FALLBACK_CHAIN contains a cycle: " + " -> ".join(cycle)
                )

        if self.log_sink_enabled and not self.log_sink_url:
            errors.append("LOG_SINK_ENABLED requires LOG_SINK_URL")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def has_credential(self) -> bool:
        return bool(self.gemini_api_key.strip())


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
