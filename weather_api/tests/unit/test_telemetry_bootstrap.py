import io
import logging

from opentelemetry.sdk._logs import LoggingHandler
from opentelemetry.instrumentation.system_metrics import SystemMetricsInstrumentor
from opentelemetry.sdk._logs.export import ConsoleLogExporter
from opentelemetry.sdk.metrics.export import ConsoleMetricExporter, InMemoryMetricReader
from opentelemetry.sdk.trace.export import ConsoleSpanExporter

from weather_api.core import telemetry as telemetry_module
from weather_api.core.telemetry import DISTRIBUTION_NAME, configure_telemetry
from weather_api.tests.helpers import make_settings


def _root_otel_handlers():
    return [h for h in logging.getLogger().handlers if isinstance(h, LoggingHandler)]


def test_no_endpoint_means_no_export():
    telemetry = configure_telemetry(make_settings(otel_exporter_otlp_endpoint=""))
    try:
        assert telemetry.otlp_enabled is False
        assert telemetry.log_handler is None
    finally:
        telemetry.shutdown()


def test_endpoint_attaches_exporters_to_all_pipelines(monkeypatch):
    calls = []

    def fake_exporters(settings):
        calls.append(settings.otel_exporter_otlp_endpoint)
        return (
            ConsoleSpanExporter(out=io.StringIO()),
            ConsoleMetricExporter(out=io.StringIO()),
            ConsoleLogExporter(out=io.StringIO()),
        )

    monkeypatch.setattr(telemetry_module, "_otlp_exporters", fake_exporters)
    telemetry = configure_telemetry(make_settings(otel_exporter_otlp_endpoint="http://collector:4317"))
    try:
        assert calls == ["http://collector:4317"]
        assert telemetry.otlp_enabled is True
        assert telemetry.log_handler in _root_otel_handlers()
    finally:
        telemetry.shutdown()
    assert telemetry.log_handler not in _root_otel_handlers()


def test_exporter_failure_is_not_fatal(monkeypatch):
    def broken_exporters(_settings):
        raise RuntimeError("no grpc")

    monkeypatch.setattr(telemetry_module, "_otlp_exporters", broken_exporters)
    telemetry = configure_telemetry(make_settings(otel_exporter_otlp_endpoint="http://collector:4317"))
    try:
        assert telemetry.otlp_enabled is False
    finally:
        telemetry.shutdown()


def test_otlp_exporters_target_configured_endpoint():
    from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
    from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

    exporters = telemetry_module._otlp_exporters(make_settings(otel_exporter_otlp_endpoint="http://collector:4317"))
    try:
        assert isinstance(exporters[0], OTLPSpanExporter)
        assert isinstance(exporters[1], OTLPMetricExporter)
        assert isinstance(exporters[2], OTLPLogExporter)
    finally:
        for exporter in exporters:
            exporter.shutdown()


def test_development_samples_every_trace():
    telemetry = configure_telemetry(make_settings(app_env="development"))
    try:
        assert telemetry.sampler_name == "AlwaysOnSampler"
    finally:
        telemetry.shutdown()


def test_other_environments_use_default_sampler(monkeypatch):
    monkeypatch.delenv("OTEL_TRACES_SAMPLER", raising=False)
    telemetry = configure_telemetry(make_settings(app_env="production"))
    try:
        assert telemetry.sampler_name.startswith("ParentBased")
    finally:
        telemetry.shutdown()


def test_resource_and_source_identity():
    telemetry = configure_telemetry(make_settings(otel_service_name="weather-svc", app_env="staging"))
    try:
        attributes = telemetry.resource.attributes
        assert attributes["service.name"] == "weather-svc"
        assert attributes["deployment.environment"] == "staging"
        assert attributes["service.version"] == telemetry.source_version
        assert telemetry.source_name == DISTRIBUTION_NAME
    finally:
        telemetry.shutdown()


def test_source_version_falls_back_to_settings(monkeypatch):
    def missing(_name):
        raise telemetry_module.metadata.PackageNotFoundError(_name)

    monkeypatch.setattr(telemetry_module.metadata, "version", missing)
    assert telemetry_module.source_identity(make_settings(app_version="9.9.9")) == (DISTRIBUTION_NAME, "9.9.9")


def test_shutdown_is_idempotent():
    telemetry = configure_telemetry(make_settings())
    telemetry.shutdown()
    telemetry.shutdown()


def _metric_names(reader: InMemoryMetricReader) -> set[str]:
    data = reader.get_metrics_data()
    if data is None:
        return set()
    return {
        metric.name
        for resource_metrics in data.resource_metrics
        for scope_metrics in resource_metrics.scope_metrics
        for metric in scope_metrics.metrics
    }


def test_host_and_runtime_metrics_reach_the_handle():
    import weather_api.main  # noqa: F401

    reader = InMemoryMetricReader()
    telemetry = configure_telemetry(make_settings(otel_system_metrics_enabled=True), metric_readers=[reader])
    try:
        assert telemetry.system_metrics is not None
        names = _metric_names(reader)
        assert any(name.startswith(("system.", "process.")) for name in names)
    finally:
        telemetry.shutdown()
    assert SystemMetricsInstrumentor().is_instrumented_by_opentelemetry is False


def test_only_the_owning_handle_uninstruments_system_metrics():
    owner = configure_telemetry(make_settings(otel_system_metrics_enabled=True))
    try:
        other = configure_telemetry(make_settings(otel_system_metrics_enabled=True))
        assert other.system_metrics is None
        other.shutdown()
        assert SystemMetricsInstrumentor().is_instrumented_by_opentelemetry is True
    finally:
        owner.shutdown()
    assert SystemMetricsInstrumentor().is_instrumented_by_opentelemetry is False
