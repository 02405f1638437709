from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient
from opentelemetry.sdk.metrics.export import InMemoryMetricReader
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from weather_api.core.config import Settings
from weather_api.core.http import build_http_client
from weather_api.core.telemetry import configure_telemetry
from weather_api.main import create_app
from weather_api.tests.helpers import DownstreamRecorder, make_settings


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture
def metric_reader() -> InMemoryMetricReader:
    return InMemoryMetricReader()


@pytest.fixture
def telemetry(settings, span_exporter, metric_reader):
    handle = configure_telemetry(
        settings,
        span_processors=[SimpleSpanProcessor(span_exporter)],
        metric_readers=[metric_reader],
    )
    yield handle
    handle.shutdown()


@pytest.fixture
def downstream() -> DownstreamRecorder:
    return DownstreamRecorder()


@pytest.fixture
def http_client(settings, telemetry, downstream) -> httpx.AsyncClient:
    return build_http_client(settings, telemetry, transport=httpx.MockTransport(downstream))


@pytest.fixture
def app(settings, telemetry, http_client):
    return create_app(settings, telemetry=telemetry, http_client=http_client)


@pytest.fixture
def client(app):
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
