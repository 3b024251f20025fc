"""Environment configuration and validation.

This module defines strongly-typed application settings loaded from environment variables
(optionally via a local `.env` file).

Guest identity, the optional phone number and the default request text live here so the workflow
receives them explicitly instead of reading process state.
"""

from __future__ import annotations

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.intent.parser import DEFAULT_REQUEST, DEFAULT_TIMEZONE


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    site_url: str = Field(default="https://www.opentable.com/", alias="RESERVATION_SITE_URL")
    timezone: str = Field(default=DEFAULT_TIMEZONE, alias="BOOKING_TIMEZONE")
    default_request: str = Field(default=DEFAULT_REQUEST, alias="DEFAULT_BOOKING_REQUEST")

    guest_name: str = Field(default="John Smith", alias="GUEST_NAME")
    guest_email: str = Field(default="john.smith@example.com", alias="GUEST_EMAIL")
    phone: str | None = Field(default=None, alias="OPEN_TABLE_PHONE")

    headless: bool = Field(default=False, alias="BROWSER_HEADLESS")
    navigation_timeout_s: float = Field(default=30.0, gt=0, alias="NAVIGATION_TIMEOUT_S")
    final_linger_s: float = Field(default=10.0, ge=0, alias="FINAL_LINGER_S")

    llm_api_key: str | None = Field(default=None, alias="LLM_API_KEY")
    llm_model: str = Field(default="gpt-4o-mini", alias="LLM_MODEL")
    llm_api_base: str = Field(default="https://api.openai.com/v1", alias="LLM_API_BASE")
    llm_timeout_s: float = Field(default=30.0, gt=0, alias="LLM_TIMEOUT_S")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Reject zone names unknown to the IANA database at startup."""

        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown time zone: {value!r}") from exc
        return value

    @field_validator("phone", "llm_api_key")
    @classmethod
    def blank_to_none(cls, value: str | None) -> str | None:
        """Treat empty values (e.g. `OPEN_TABLE_PHONE=`) as unset."""

        if value is None:
            return None
        value = value.strip()
        return value or None

    @field_validator("default_request")
    @classmethod
    def validate_default_request(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("DEFAULT_BOOKING_REQUEST must not be blank")
        return value


def load_settings() -> Settings:
    """Load and validate settings from environment variables.

    Raises:
        RuntimeError: If the environment configuration is invalid.
    """

    try:
        return Settings()
    except ValidationError as exc:
        raise RuntimeError(f"Invalid environment configuration: {exc}") from exc
