"""Application settings loaded from environment variables.

Uses pydantic-settings for validation and type coercion. App-specific
settings use the ``ECHOAID_`` prefix; GCP / infrastructure settings use
their canonical environment variable names via ``validation_alias``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(StrEnum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Central configuration for the EchoAid application.

    Environment variables are loaded from a ``.env`` file when present.
    App-specific keys are prefixed with ``ECHOAID_``; GCP / infra keys
    use their standard names (configured via ``validation_alias``).
    """

    model_config = SettingsConfigDict(
        env_prefix="ECHOAID_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # ── App ────────────────────────────────────────────────────────────
    env: Literal["development", "production"] = "development"

    # ── GCP ────────────────────────────────────────────────────────────
    gcp_project_id: str = Field(default="", validation_alias="GCP_PROJECT_ID")
    gcp_region: str = Field(default="asia-south1", validation_alias="GCP_REGION")

    # ── Vertex AI / Gemini ─────────────────────────────────────────────
    vertex_ai_model: str = Field(default="gemini-2.0-flash", validation_alias="VERTEX_AI_MODEL")
    vertex_ai_location: str = Field(default="asia-south1", validation_alias="VERTEX_AI_LOCATION")

    # ── Document store ─────────────────────────────────────────────────
    store_backend: Literal["memory", "redis"] = "memory"
    redis_url: str = Field(default="redis://localhost:6379/0", validation_alias="REDIS_URL")
    store_namespace: str = "echoaid:"
    seed_reference_data: bool = True

    # ── Logging ────────────────────────────────────────────────────────
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: str = Field(default="json", validation_alias="LOG_FORMAT")

    # ── Sessions & calls ───────────────────────────────────────────────
    default_language: str = "hi"
    session_reuse_hours: int = Field(default=24, ge=0)
    missed_call_history_days: int = Field(default=7, ge=0)
    missed_call_callback_minutes: int = Field(default=2, ge=0)
    provider_timezone: str = "Asia/Kolkata"

    # ── Telephony ──────────────────────────────────────────────────────
    telephony_provider: Literal["exotel", "mock"] = "mock"
    exotel_sid: str = Field(default="", validation_alias="EXOTEL_SID")
    exotel_api_key: str = Field(default="", validation_alias="EXOTEL_API_KEY")
    exotel_api_token: str = Field(default="", validation_alias="EXOTEL_API_TOKEN")
    exotel_caller_id: str = Field(default="", validation_alias="EXOTEL_CALLER_ID")
    mock_transfer_success: bool = True

    # ── Identity verification ──────────────────────────────────────────
    # "fixed": voice consent always grants the verified tier.
    # "validity": only a valid consent statement does.
    voice_consent_trust_policy: Literal["fixed", "validity"] = "fixed"
    never_downgrade_trust: bool = False

    # ── Derived Properties ─────────────────────────────────────────────

    @property
    def is_production(self) -> bool:
        return self.env == Environment.PRODUCTION


# Module-level singleton; import ``settings`` everywhere.
settings = Settings()
