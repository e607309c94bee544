"""
Logging, tracing and metrics for the brokerage service.

Importing this module configures JSON logging on the root logger. Tracing and
metrics providers are installed by the process entry point through
setup_opentelemetry(); until then the tracer and meter below are no-ops.
"""
import logging
from typing import List

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import ConsoleMetricExporter, MetricReader, PeriodicExportingMetricReader
from opentelemetry.sdk.resources import SERVICE_NAME as ResourceAttributesServiceName
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from pythonjsonlogger import jsonlogger

from brokerage_service.app.config import settings

logger = logging.getLogger("brokerage_service")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(module)s %(funcName)s %(lineno)d %(otelTraceID)s %(otelSpanID)s %(message)s"
METRIC_EXPORT_INTERVAL_MS = 5000

_otel_service_name = None


def setup_json_logging():
    root_logger = logging.getLogger()
    # Uvicorn reloads and test sessions import this more than once
    if any(isinstance(h.formatter, jsonlogger.JsonFormatter) for h in root_logger.handlers):
        return
    log_handler = logging.StreamHandler()
    log_handler.setFormatter(jsonlogger.JsonFormatter(
        fmt=LOG_FORMAT,
        rename_fields={"levelname": "level", "name": "logger_name", "asctime": "timestamp"},
    ))
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.addHandler(log_handler)
    log_level = settings.LOG_LEVEL.upper()
    root_logger.setLevel(log_level)
    logger.setLevel(log_level)
    logger.info(f"JSON logging configured at level {log_level}.")


def _span_processors() -> List[SpanProcessor]:
    processors: List[SpanProcessor] = []
    if settings.OTEL_CONSOLE_EXPORTERS_ENABLED:
        processors.append(BatchSpanProcessor(ConsoleSpanExporter()))
    if settings.OTEL_EXPORTER_OTLP_TRACES_ENDPOINT:
        logger.info(f"Exporting spans over OTLP to {settings.OTEL_EXPORTER_OTLP_TRACES_ENDPOINT}")
        exporter = OTLPSpanExporter(endpoint=settings.OTEL_EXPORTER_OTLP_TRACES_ENDPOINT, insecure=True)
        processors.append(BatchSpanProcessor(exporter))
    return processors


def _metric_readers() -> List[MetricReader]:
    readers: List[MetricReader] = []
    if settings.OTEL_CONSOLE_EXPORTERS_ENABLED:
        readers.append(PeriodicExportingMetricReader(ConsoleMetricExporter(), export_interval_millis=METRIC_EXPORT_INTERVAL_MS))
    if settings.OTEL_EXPORTER_OTLP_METRICS_ENDPOINT:
        logger.info(f"Exporting metrics over OTLP to {settings.OTEL_EXPORTER_OTLP_METRICS_ENDPOINT}")
        exporter = OTLPMetricExporter(endpoint=settings.OTEL_EXPORTER_OTLP_METRICS_ENDPOINT, insecure=True)
        readers.append(PeriodicExportingMetricReader(exporter, export_interval_millis=METRIC_EXPORT_INTERVAL_MS))
    return readers


def setup_opentelemetry(service_name: str) -> bool:
    """
    Installs the global tracer and meter providers. Exporters are only attached
    when configured. Returns False when providers were already installed.
    """
    global _otel_service_name
    if _otel_service_name is not None:
        logger.debug(f"OpenTelemetry already configured for {_otel_service_name}.")
        return False

    resource = Resource(attributes={ResourceAttributesServiceName: service_name})

    tracer_provider = TracerProvider(resource=resource)
    processors = _span_processors()
    for processor in processors:
        tracer_provider.add_span_processor(processor)
    trace.set_tracer_provider(tracer_provider)

    readers = _metric_readers()
    metrics.set_meter_provider(MeterProvider(resource=resource, metric_readers=readers))

    _otel_service_name = service_name
    logger.info(
        f"OpenTelemetry configured for {service_name} "
        f"({len(processors)} span processors, {len(readers)} metric readers)."
    )
    return True


setup_json_logging()

# Proxies: they follow whichever providers setup_opentelemetry() installs
tracer = trace.get_tracer("brokerage_service.tracer")
meter = metrics.get_meter("brokerage_service.meter")

records_created_counter = meter.create_counter(
    name="brokerage.records.created.total",
    description="Counts records created, partitioned by entity.",
    unit="1",
)

code_collisions_counter = meter.create_counter(
    name="brokerage.code_generation.collisions.total",
    description="Counts generated codes rejected by a unique index and regenerated, partitioned by field.",
    unit="1",
)

list_query_latency_histogram = meter.create_histogram(
    name="brokerage.list_query.latency.seconds",
    description="Latency of paginated list queries including enrichment, partitioned by collection.",
    unit="s",
)
