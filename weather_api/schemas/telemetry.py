from __future__ import annotations

from pydantic import BaseModel


class TelemetryStatusResponse(BaseModel):
    service_name: str
    source_name: str
    source_version: str
    environment: str
    sampler: str
    otlp_enabled: bool
    collector_endpoint: str | None = None
