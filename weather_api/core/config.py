from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    app_name: str = Field(default="WeatherApi", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    app_env: str = Field(default="development", alias="APP_ENV")
    log_level: str = Field(default="INFO", alias="APP_LOG_LEVEL")
    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")  # noqa: S104
    app_port: int = Field(default=5000, alias="APP_PORT")

    api_route_prefix: str = Field(default="/api", alias="API_ROUTE_PREFIX")
    forecast_days: int = Field(default=5, ge=1, le=5, alias="FORECAST_DAYS")

    long_running_target_url: str = Field(default="https://www.google.fr", alias="LONG_RUNNING_TARGET_URL")
    long_running_delay_seconds: float = Field(default=1.0, ge=0, alias="LONG_RUNNING_DELAY_SECONDS")
    http_client_timeout_seconds: float = Field(default=30.0, gt=0, alias="HTTP_CLIENT_TIMEOUT_SECONDS")

    otel_exporter_otlp_endpoint: str = Field(default="", alias="OTEL_EXPORTER_OTLP_ENDPOINT")
    otel_service_name: str = Field(default="", alias="OTEL_SERVICE_NAME")
    otel_console_exporter_enabled: bool = Field(default=False, alias="OTEL_CONSOLE_EXPORTER_ENABLED")
    otel_system_metrics_enabled: bool = Field(default=True, alias="OTEL_SYSTEM_METRICS_ENABLED")

    @property
    def is_development(self) -> bool:
        return self.app_env.strip().lower() == "development"

    @property
    def use_otlp_exporter(self) -> bool:
        return bool(self.otel_exporter_otlp_endpoint.strip())

    @property
    def service_name(self) -> str:
        return self.otel_service_name.strip() or self.app_name

    @property
    def route_prefix(self) -> str:
        prefix = self.api_route_prefix.strip().rstrip("/")
        if prefix and not prefix.startswith("/"):
            prefix = f"/{prefix}"
        return prefix


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
