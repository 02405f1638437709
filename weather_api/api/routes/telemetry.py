from __future__ import annotations

from fastapi import APIRouter, Depends

from weather_api.api.deps.services import get_telemetry
from weather_api.core.telemetry import Telemetry
from weather_api.schemas.telemetry import TelemetryStatusResponse

router = APIRouter()


@router.get("/status", response_model=TelemetryStatusResponse)
def telemetry_status(telemetry: Telemetry = Depends(get_telemetry)) -> TelemetryStatusResponse:
    settings = telemetry.settings
    return TelemetryStatusResponse(
        service_name=settings.service_name,
        source_name=telemetry.source_name,
        source_version=telemetry.source_version,
        environment=settings.app_env,
        sampler=telemetry.sampler_name,
        otlp_enabled=telemetry.otlp_enabled,
        collector_endpoint=settings.otel_exporter_otlp_endpoint.strip() or None,
    )
