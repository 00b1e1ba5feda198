"""Application configuration."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from sanity_webhook.body import BodyReadLimits


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "sanity-webhook-guard"
    log_level: str = "INFO"
    sanity_webhook_secret: SecretStr | None = None
    sanity_webhook_paths: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["/webhooks/sanity"])
    sanity_webhook_halt_on_error: bool = True
    body_max_length: int = Field(default=8_000_000, gt=0)
    body_chunk_length: int = Field(default=1_000_000, gt=0)
    body_read_timeout: float = Field(default=15.0, gt=0)

    @field_validator("sanity_webhook_paths", mode="before")
    @classmethod
    def _parse_paths(cls, value: object) -> list[str]:
        """Allow comma-separated webhook paths from env."""
        if value is None:
            return []
        if isinstance(value, str):
            parts = [part.strip() for part in value.split(",")]
            return [part for part in parts if part]
        if isinstance(value, (list, tuple)):
            return [str(item).strip() for item in value if str(item).strip()]
        return []

    def body_limits(self) -> BodyReadLimits:
        return BodyReadLimits(
            max_length=self.body_max_length,
            chunk_length=self.body_chunk_length,
            read_timeout=self.body_read_timeout,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""
    return Settings()
