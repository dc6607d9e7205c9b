"""Application settings.

All configuration is sourced from environment variables (and optionally `.env`).
"""

from __future__ import annotations

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed environment-backed settings for decisionflow."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Advisory validator (Anthropic Messages API)
    anthropic_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("ANTHROPIC_API_KEY", "API_KEY"),
    )
    anthropic_base_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("ANTHROPIC_BASE_URL", "ANTHROPIC_ENDPOINT"),
    )
    advisor_model: str = Field(
        default="claude-sonnet-4-5",
        validation_alias=AliasChoices("DECISIONFLOW_ADVISOR_MODEL", "ANTHROPIC_MODEL"),
    )
    advisor_max_tokens: int = Field(default=2048, alias="DECISIONFLOW_ADVISOR_MAX_TOKENS")

    log_level: str = Field(default="INFO", alias="DECISIONFLOW_LOG_LEVEL")
    json_logs: bool = Field(default=False, alias="DECISIONFLOW_JSON_LOGS")

    # HTTP API
    api_host: str = Field(default="127.0.0.1", alias="DECISIONFLOW_API_HOST")
    api_port: int = Field(default=5001, alias="DECISIONFLOW_API_PORT")
