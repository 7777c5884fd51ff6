"""Client configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"
ENV_PREFIX = "CATALOG_NOTIFICATIONS_"


class Settings(BaseSettings):
    """Notification client configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=ENV_FILE,
        env_file_encoding=ENV_FILE_ENCODING,
        extra="ignore",
    )

    api_base_url: str = Field(
        default="http://localhost:8080",
        description="Base URL of the project catalog REST API",
        min_length=1,
    )
    notifications_path: str = Field(
        default="/api/notifications",
        description="Path of the notifications collection resource",
    )
    current_user_path: str = Field(
        default="/users/me",
        description="Path that resolves the authenticated user's identity",
    )
    ws_path: str = Field(
        default="/ws/websocket",
        description="Path of the STOMP WebSocket endpoint, relative to the API base URL",
    )
    topic_prefix: str = Field(
        default="/topic/notifications",
        description="Destination prefix of the per-user notification topic",
    )
    request_timeout: float = Field(
        default=10.0, gt=0, description="Seconds before an HTTP request times out"
    )
    connect_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Seconds to wait for the STOMP CONNECTED acknowledgement",
    )
    reconnect_delay: float = Field(
        default=5.0, ge=0, description="Base delay in seconds between reconnect attempts"
    )
    max_reconnect_delay: float = Field(
        default=60.0, ge=0, description="Upper bound for the reconnect backoff delay"
    )
    manual_reconnect_delay: float = Field(
        default=1.0, ge=0, description="Pause before a manually requested reconnect"
    )
    heartbeat_outgoing_ms: int = Field(
        default=4000, ge=0, description="Interval of client heart-beats (0 disables)"
    )
    heartbeat_incoming_ms: int = Field(
        default=4000, ge=0, description="Expected server heart-beat interval (0 disables)"
    )
    access_token: str | None = Field(
        default=None,
        description="Bearer token used by the environment credential provider",
    )
    log_level: str = Field(default="INFO", description="Logging level")
    log_file_path: str = Field(
        default="./logs/catalog-notifications.log",
        description="Path of the JSON log file",
    )
    service_name: str = Field(
        default="catalog-notifications", description="Service name in log metadata"
    )
    environment: str = Field(
        default="development", description="Deployment environment in log metadata"
    )

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("notifications_path", "current_user_path", "ws_path", "topic_prefix")
    @classmethod
    def _ensure_leading_slash(cls, value: str) -> str:
        value = value.rstrip("/")
        if not value.startswith("/"):
            value = f"/{value}"
        return value


@lru_cache
def get_settings() -> Settings:
    """Return cached client settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
