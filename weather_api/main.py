from __future__ import annotations

from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import FastAPI
from prometheus_client import make_asgi_app

from weather_api.api.errors.handlers import register_exception_handlers
from weather_api.api.routes import health, weather_forecast
from weather_api.api.routes import telemetry as telemetry_router
from weather_api.core.config import Settings, get_settings
from weather_api.core.http import build_http_client
from weather_api.core.logging import configure_logging, get_logger
from weather_api.core.telemetry import Telemetry, configure_telemetry, instrument_app


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = get_logger(__name__)
    logger.info("startup.begin", extra={"event": "startup"})
    owns_client = app.state.http_client is None
    if owns_client:
        app.state.http_client = build_http_client(app.state.settings, app.state.telemetry)
    yield
    if owns_client:
        await app.state.http_client.aclose()
        app.state.http_client = None
    if app.state.owns_telemetry:
        app.state.telemetry.shutdown()
    logger.info("shutdown.complete", extra={"event": "shutdown"})


def create_app(
    settings: Settings | None = None,
    *,
    telemetry: Telemetry | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    app_settings = settings or get_settings()
    owns_telemetry = telemetry is None
    if telemetry is None:
        configure_logging(app_settings)
        telemetry = configure_telemetry(app_settings)

    app = FastAPI(
        title="WeatherForecast API",
        version=app_settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.telemetry = telemetry
    app.state.owns_telemetry = owns_telemetry
    app.state.http_client = http_client

    register_exception_handlers(app)
    instrument_app(app, telemetry)

    prefix = app_settings.route_prefix
    app.include_router(health.router)
    app.include_router(weather_forecast.router, prefix=f"{prefix}/WeatherForecast")
    app.include_router(telemetry_router.router, prefix=f"{prefix}/telemetry")
    app.mount("/metrics", make_asgi_app())
    return app


def run() -> None:
    settings = get_settings()
    uvicorn.run("weather_api.main:create_app", factory=True, host=settings.app_host, port=settings.app_port)
