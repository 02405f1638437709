from __future__ import annotations

import httpx
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

from weather_api.core.config import Settings
from weather_api.core.telemetry import Telemetry


def build_http_client(
    settings: Settings,
    telemetry: Telemetry,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Shared outbound client; spans, metrics and trace headers come from the instrumentor."""
    client = httpx.AsyncClient(
        timeout=settings.http_client_timeout_seconds,
        follow_redirects=True,
        transport=transport,
    )
    HTTPXClientInstrumentor.instrument_client(
        client,
        tracer_provider=telemetry.tracer_provider,
        meter_provider=telemetry.meter_provider,
    )
    return client
