from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from importlib import metadata

from fastapi import FastAPI
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.system_metrics import SystemMetricsInstrumentor
from opentelemetry.metrics import Meter
from opentelemetry.processor.baggage import ALLOW_ALL_BAGGAGE_KEYS, BaggageSpanProcessor
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor, ConsoleLogExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import ConsoleMetricExporter, MetricReader, PeriodicExportingMetricReader
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import ALWAYS_ON
from opentelemetry.trace import Tracer

from weather_api.core.config import Settings
from weather_api.core.logging import get_logger

DISTRIBUTION_NAME = "weather-api"
EXCLUDED_URLS = "metrics,health"


def source_identity(settings: Settings) -> tuple[str, str]:
    """Name and version of the application trace source."""
    try:
        version = metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        version = settings.app_version
    return DISTRIBUTION_NAME, version


@dataclass
class Telemetry:
    settings: Settings
    resource: Resource
    source_name: str
    source_version: str
    tracer_provider: TracerProvider
    meter_provider: MeterProvider
    logger_provider: LoggerProvider
    tracer: Tracer
    meter: Meter
    otlp_enabled: bool
    log_handler: LoggingHandler | None = None
    system_metrics: SystemMetricsInstrumentor | None = None
    _closed: bool = field(default=False, repr=False)

    @property
    def sampler_name(self) -> str:
        return self.tracer_provider.sampler.get_description()

    def shutdown(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self.system_metrics is not None:
            self.system_metrics.uninstrument()
        if self.log_handler is not None:
            logging.getLogger().removeHandler(self.log_handler)
        self.tracer_provider.shutdown()
        self.meter_provider.shutdown()
        self.logger_provider.shutdown()


def _otlp_exporters(settings: Settings):  # noqa: ANN202
    from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
    from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

    endpoint = settings.otel_exporter_otlp_endpoint.strip()
    insecure = endpoint.startswith("http://")
    return (
        OTLPSpanExporter(endpoint=endpoint, insecure=insecure),
        OTLPMetricExporter(endpoint=endpoint, insecure=insecure),
        OTLPLogExporter(endpoint=endpoint, insecure=insecure),
    )


def configure_telemetry(
    settings: Settings,
    *,
    span_processors: Sequence[SpanProcessor] = (),
    metric_readers: Sequence[MetricReader] = (),
) -> Telemetry:
    logger = get_logger(__name__)
    source_name, source_version = source_identity(settings)
    resource = Resource.create(
        {
            SERVICE_NAME: settings.service_name,
            SERVICE_VERSION: source_version,
            "deployment.environment": settings.app_env,
        }
    )

    readers: list[MetricReader] = list(metric_readers)
    log_processors: list[BatchLogRecordProcessor] = []

    tracer_provider = TracerProvider(resource=resource, sampler=ALWAYS_ON if settings.is_development else None)
    tracer_provider.add_span_processor(BaggageSpanProcessor(ALLOW_ALL_BAGGAGE_KEYS))
    for processor in span_processors:
        tracer_provider.add_span_processor(processor)

    otlp_enabled = False
    if settings.use_otlp_exporter:
        try:
            span_exporter, metric_exporter, log_exporter = _otlp_exporters(settings)
            tracer_provider.add_span_processor(BatchSpanProcessor(span_exporter))
            readers.append(PeriodicExportingMetricReader(metric_exporter))
            log_processors.append(BatchLogRecordProcessor(log_exporter))
            otlp_enabled = True
            logger.info(
                "telemetry.otlp_enabled",
                extra={"event": "telemetry_otlp_enabled", "endpoint": settings.otel_exporter_otlp_endpoint},
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("telemetry.otlp_init_failed", extra={"event": "telemetry_otlp_init_failed"}, exc_info=exc)
    else:
        logger.info("telemetry.otlp_disabled", extra={"event": "telemetry_otlp_disabled"})

    if settings.otel_console_exporter_enabled:
        tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        readers.append(PeriodicExportingMetricReader(ConsoleMetricExporter()))
        log_processors.append(BatchLogRecordProcessor(ConsoleLogExporter()))

    meter_provider = MeterProvider(resource=resource, metric_readers=readers)

    logger_provider = LoggerProvider(resource=resource)
    log_handler: LoggingHandler | None = None
    for log_processor in log_processors:
        logger_provider.add_log_record_processor(log_processor)
    if log_processors:
        log_handler = LoggingHandler(level=logging.NOTSET, logger_provider=logger_provider)
        logging.getLogger().addHandler(log_handler)

    system_metrics: SystemMetricsInstrumentor | None = None
    if settings.otel_system_metrics_enabled:
        instrumentor = SystemMetricsInstrumentor()
        # Process-wide singleton: only the handle that instruments it may uninstrument it.
        if instrumentor.is_instrumented_by_opentelemetry:
            logger.warning(
                "telemetry.system_metrics_already_instrumented",
                extra={"event": "telemetry_system_metrics_already_instrumented"},
            )
        else:
            instrumentor.instrument(meter_provider=meter_provider)
            system_metrics = instrumentor

    telemetry = Telemetry(
        settings=settings,
        resource=resource,
        source_name=source_name,
        source_version=source_version,
        tracer_provider=tracer_provider,
        meter_provider=meter_provider,
        logger_provider=logger_provider,
        tracer=tracer_provider.get_tracer(source_name, source_version),
        meter=meter_provider.get_meter(source_name, source_version),
        otlp_enabled=otlp_enabled,
        log_handler=log_handler,
        system_metrics=system_metrics,
    )
    logger.info(
        "telemetry.configured",
        extra={"event": "telemetry_configured", "sampler": telemetry.sampler_name},
    )
    return telemetry


def instrument_app(app: FastAPI, telemetry: Telemetry) -> None:
    FastAPIInstrumentor.instrument_app(
        app,
        tracer_provider=telemetry.tracer_provider,
        meter_provider=telemetry.meter_provider,
        excluded_urls=EXCLUDED_URLS,
    )
