"""Configuration management using Pydantic Settings."""

import os
from enum import Enum

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FailurePolicy(str, Enum):
    """What a paginated listing does when a page request fails."""

    STRICT = "strict"
    BEST_EFFORT = "best_effort"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        # Only load .env file in development (not Lambda/production)
        env_file=".env" if os.getenv("AWS_EXECUTION_ENV") is None else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Bitly
    bitly_access_token: str | None = None
    bitly_base_url: str = "https://api-ssl.bitly.com/v4"
    bitly_pagination_policy: FailurePolicy = FailurePolicy.STRICT

    # Mailchimp
    mailchimp_api_key: str | None = None
    mailchimp_server_prefix: str | None = None
    mailchimp_audience_id: str | None = None
    mailchimp_pagination_policy: FailurePolicy = FailurePolicy.BEST_EFFORT

    # Ticket Tailor
    ticket_tailor_api_key: str | None = None
    ticket_tailor_base_url: str = "https://api.tickettailor.com/v1"
    ticket_tailor_pagination_policy: FailurePolicy = FailurePolicy.STRICT
    ticket_tailor_max_events: int = 20

    @field_validator(
        "bitly_access_token",
        "mailchimp_api_key",
        "mailchimp_server_prefix",
        "mailchimp_audience_id",
        "ticket_tailor_api_key",
        mode="before",
    )
    @classmethod
    def convert_empty_string_to_none(cls, v):
        """Treat blank credentials as missing configuration."""
        if v is None:
            return None
        if isinstance(v, str) and v.strip() == "":
            return None
        return v

    # Application Configuration
    log_level: str = "INFO"
    api_title: str = "Marketing Dashboard Proxy"
    api_version: str = "1.0.0"
    api_base_path: str = "/"

    # Upstream behaviour
    upstream_timeout_seconds: float = 10.0
    pipeline_deadline_seconds: float = 9.0
    max_pages: int = 20
    enrichment_concurrency: int = 0  # 0 = unbounded fan-out

    # Aggregation
    top_n: int = 10
    recruitment_tag_terms: list[str] = ["student", "recruitment"]
    applicant_tag_terms: list[str] = ["applicant"]

    @property
    def bitly_configured(self) -> bool:
        return self.bitly_access_token is not None

    @property
    def mailchimp_configured(self) -> bool:
        return all(
            (
                self.mailchimp_api_key,
                self.mailchimp_server_prefix,
                self.mailchimp_audience_id,
            )
        )

    @property
    def mailchimp_base_url(self) -> str:
        return f"https://{self.mailchimp_server_prefix}.api.mailchimp.com/3.0"

    @property
    def ticket_tailor_configured(self) -> bool:
        return self.ticket_tailor_api_key is not None


def get_settings() -> Settings:
    """
    Resolve settings for a single invocation.

    Credentials are re-read from the environment on every call and the
    returned object is passed explicitly to clients and services.

    Returns:
        Fresh Settings instance
    """
    return Settings()


# Process-wide settings for app construction (title, version, log level)
settings = Settings()
