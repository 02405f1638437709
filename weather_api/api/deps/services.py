from __future__ import annotations

import httpx
from fastapi import Depends, Request

from weather_api.core.config import Settings
from weather_api.core.telemetry import Telemetry
from weather_api.services.forecast_service import ForecastService
from weather_api.services.long_running_service import LongRunningService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_telemetry(request: Request) -> Telemetry:
    return request.app.state.telemetry


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_forecast_service(settings: Settings = Depends(get_app_settings)) -> ForecastService:
    return ForecastService(settings)


def get_long_running_service(
    settings: Settings = Depends(get_app_settings),
    telemetry: Telemetry = Depends(get_telemetry),
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> LongRunningService:
    return LongRunningService(telemetry, http_client, settings)
