"""Configuration management for mediahook."""

import logging
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

from mediahook.webhooks.client import (
    DEFAULT_CLIENT_TIMEOUT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_WAIT_MAX,
    DEFAULT_RETRY_WAIT_MIN,
    HTTPClientParams,
)
from mediahook.webhooks.filter import FilterParams
from mediahook.webhooks.pool import DEFAULT_NUM_WORKERS, DEFAULT_QUEUE_SIZE

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """mediahook configuration loaded from environment variables.

    All settings can be overridden via environment variables with
    the MEDIAHOOK_ prefix. For example:
        MEDIAHOOK_URL=https://hooks.example.com/media
        MEDIAHOOK_QUEUE_SIZE=200
        MEDIAHOOK_EXCLUDE_EVENTS='["track_published"]'

    Security Notes:
        - In production (MEDIAHOOK_ENV=production), the URL and both
          signing credentials must be set
    """

    # Environment
    env: Literal["development", "production", "test"] = Field(
        default="development",
        description="Environment: development, production, or test",
    )

    # Endpoint
    url: str | None = Field(
        default=None,
        description="Webhook endpoint receiving POSTed events",
    )
    api_key: str | None = Field(
        default=None,
        description="API key tokens are issued by",
    )
    api_secret: str | None = Field(
        default=None,
        description="API secret tokens are signed with",
    )

    # Queueing
    queue_size: int = Field(
        default=DEFAULT_QUEUE_SIZE,
        ge=1,
        le=100000,
        description="Depth of each partition queue. Events beyond it are dropped.",
    )
    num_workers: int = Field(
        default=DEFAULT_NUM_WORKERS,
        ge=1,
        le=256,
        description="Number of partitions, each served by one worker thread",
    )

    # HTTP
    retry_wait_min: float = Field(
        default=DEFAULT_RETRY_WAIT_MIN,
        ge=0.0,
        description="Seconds before the first retry (doubles each attempt)",
    )
    retry_wait_max: float = Field(
        default=DEFAULT_RETRY_WAIT_MAX,
        ge=0.0,
        description="Maximum seconds between retries",
    )
    max_retries: int = Field(
        default=DEFAULT_MAX_RETRIES,
        ge=0,
        le=20,
        description="Retries after the first attempt",
    )
    client_timeout: float = Field(
        default=DEFAULT_CLIENT_TIMEOUT,
        gt=0.0,
        description="Per-request timeout in seconds",
    )

    # Filtering
    include_events: list[str] = Field(
        default_factory=list,
        description="If set, only these event types are delivered",
    )
    exclude_events: list[str] = Field(
        default_factory=list,
        description="Event types never delivered (ignored when include_events is set)",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Log output format",
    )

    model_config = {
        "env_prefix": "MEDIAHOOK_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_nested_delimiter": "__",
    }

    @model_validator(mode="after")
    def validate_retry_bounds(self) -> "Settings":
        """Validate the backoff window is ordered."""
        if self.retry_wait_max < self.retry_wait_min:
            raise ValueError(
                f"retry_wait_max ({self.retry_wait_max}) must be >= "
                f"retry_wait_min ({self.retry_wait_min})"
            )
        return self

    @model_validator(mode="after")
    def validate_filter(self) -> "Settings":
        """An event type cannot be both included and excluded."""
        overlap = sorted(set(self.include_events) & set(self.exclude_events))
        if overlap:
            raise ValueError(f"event types both included and excluded: {', '.join(overlap)}")
        if self.include_events and self.exclude_events:
            logger.warning("exclude_events is ignored when include_events is set")
        return self

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """In production, the endpoint and signing credentials are required."""
        if self.env != "production":
            return self

        missing = [
            f"MEDIAHOOK_{name.upper()}"
            for name in ("url", "api_key", "api_secret")
            if not getattr(self, name)
        ]
        if missing:
            raise ValueError(f"{', '.join(missing)} must be set in production")
        return self

    def http_client_params(self) -> HTTPClientParams:
        return HTTPClientParams(
            retry_wait_min=self.retry_wait_min,
            retry_wait_max=self.retry_wait_max,
            max_retries=self.max_retries,
            client_timeout=self.client_timeout,
        )

    def filter_params(self) -> FilterParams:
        return FilterParams(
            include_events=tuple(self.include_events),
            exclude_events=tuple(self.exclude_events),
        )


__all__ = ["Settings"]
