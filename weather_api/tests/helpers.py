from __future__ import annotations

import httpx
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from weather_api.core.config import Settings

DOWNSTREAM_URL = "https://downstream.test/"


class DownstreamRecorder:
    """Stands in for the external endpoint called by the long running operation."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.error: Exception | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(200, text="ok")

    def baggage_headers(self) -> list[dict[str, str]]:
        parsed = []
        for request in self.requests:
            entries = {}
            for item in request.headers.get("baggage", "").split(","):
                if "=" in item:
                    key, value = item.split("=", 1)
                    entries[key.strip()] = value.strip()
            parsed.append(entries)
        return parsed


def make_settings(**overrides) -> Settings:  # noqa: ANN003
    values = {
        "app_env": "development",
        "otel_exporter_otlp_endpoint": "",
        "otel_service_name": "weather-api-tests",
        "otel_console_exporter_enabled": False,
        "otel_system_metrics_enabled": False,
        "long_running_target_url": DOWNSTREAM_URL,
        "long_running_delay_seconds": 0.05,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def spans_named(exporter: InMemorySpanExporter, name: str):  # noqa: ANN201
    return [s for s in exporter.get_finished_spans() if s.name == name]


def children_of(exporter: InMemorySpanExporter, parent):  # noqa: ANN001, ANN201
    return [
        s
        for s in exporter.get_finished_spans()
        if s.parent is not None and s.parent.span_id == parent.context.span_id
    ]
