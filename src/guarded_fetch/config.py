"""Configuration models for the guarded fetch layer."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from guarded_fetch.constants import (
    DEFAULT_ALLOWED_DOMAINS,
    DEFAULT_CURL_TIMEOUT_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
    MAX_HEADER_KEY_LENGTH,
    MAX_HEADER_VALUE_LENGTH,
    MAX_URL_LENGTH,
)
from guarded_fetch.models import RetryPolicy


class SecurityPolicy(BaseModel):
    """Allow-list and length ceilings applied by the validators.

    Built once and shared read-only by every validation call.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    allowed_domains: tuple[str, ...] = DEFAULT_ALLOWED_DOMAINS
    max_url_length: Annotated[int, Field(ge=1)] = MAX_URL_LENGTH
    max_header_key_length: Annotated[int, Field(ge=1)] = MAX_HEADER_KEY_LENGTH
    max_header_value_length: Annotated[int, Field(ge=1)] = MAX_HEADER_VALUE_LENGTH

    @field_validator("allowed_domains")
    @classmethod
    def normalize_domains(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Lower-case domains and strip surrounding dots."""
        normalized = tuple(d.strip().strip(".").lower() for d in v)
        if not normalized or not all(normalized):
            msg = "allowed_domains must contain at least one non-empty domain"
            raise ValueError(msg)
        return normalized


DEFAULT_SECURITY_POLICY = SecurityPolicy()


class FetchConfig(BaseModel):
    """Configuration for the retrying fetcher."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    security: SecurityPolicy = DEFAULT_SECURITY_POLICY
    retry_policy: RetryPolicy = Field(default_factory=RetryPolicy)
    timeout_seconds: Annotated[float, Field(gt=0.0, le=300.0)] = (
        DEFAULT_TIMEOUT_SECONDS
    )
    curl_timeout_seconds: Annotated[float, Field(gt=0.0, le=600.0)] = (
        DEFAULT_CURL_TIMEOUT_SECONDS
    )
    user_agent: Annotated[str, Field(min_length=1, max_length=200)] = (
        DEFAULT_USER_AGENT
    )
    curl_fallback: bool = Field(
        default=True,
        description="Fall back to curl when the native fetch raises",
    )


class AppSettings(BaseSettings):
    """Environment configuration for Figma credentials."""

    model_config = SettingsConfigDict(
        env_prefix="", case_sensitive=False, env_file=".env", env_file_encoding="utf-8"
    )

    figma_api_key: str | None = Field(default=None, validation_alias="FIGMA_API_KEY")
    figma_oauth_token: str | None = Field(
        default=None, validation_alias="FIGMA_OAUTH_TOKEN"
    )

    def auth_headers(self) -> dict[str, str]:
        """Return the auth header for the configured credential.

        An OAuth token takes precedence over a personal access token.
        """
        if self.figma_oauth_token:
            return {"Authorization": f"Bearer {self.figma_oauth_token}"}
        if self.figma_api_key:
            return {"X-Figma-Token": self.figma_api_key}
        return {}


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
