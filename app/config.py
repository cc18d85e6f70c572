"""Application configuration."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServiceSettings(BaseSettings):
    """Settings shared by both services, loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_parse_none_str="null",
        populate_by_name=True,
    )

    # Application
    service_name: str = Field(default="service", alias="SERVICE_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    api_prefix: str = Field(default="", alias="API_PREFIX")

    # Server
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    reload: bool = Field(default=False, alias="RELOAD")

    # Storage
    store_backend: Literal["memory", "file", "redis"] = Field(
        default="file",
        alias="STORE_BACKEND",
    )
    db_path: str = Field(default="data/store.json", alias="DB_PATH")
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")

    # CORS
    cors_origins_str: str = Field(default="*", alias="CORS_ORIGINS")

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"


class AppointmentSettings(ServiceSettings):
    """Settings for the appointment registry."""

    service_name: str = Field(default="appointment-service", alias="SERVICE_NAME")
    port: int = Field(default=3100, alias="PORT")
    db_path: str = Field(default="data/appointments.json", alias="DB_PATH")

    # Notification relay peer
    notification_service_url: str = Field(
        default="http://localhost:3000",
        alias="NOTIFICATION_SERVICE_URL",
    )
    notification_timeout_ms: int = Field(default=2000, ge=1, alias="NOTIFICATION_TIMEOUT_MS")
    notification_detached: bool = Field(
        default=False,
        alias="NOTIFICATION_DETACHED",
        description="Run notification attempts as detached tasks instead of inline",
    )
    notification_source: str = Field(default="appointment-service", alias="NOTIFICATION_SOURCE")


class NotificationSettings(ServiceSettings):
    """Settings for the notification relay."""

    service_name: str = Field(default="notification-service", alias="SERVICE_NAME")
    port: int = Field(default=3000, alias="PORT")
    db_path: str = Field(default="data/notifications.json", alias="DB_PATH")


@lru_cache
def get_appointment_settings() -> AppointmentSettings:
    """Get cached appointment service settings."""
    return AppointmentSettings()


@lru_cache
def get_notification_settings() -> NotificationSettings:
    """Get cached notification service settings."""
    return NotificationSettings()
