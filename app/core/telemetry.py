"""OpenTelemetry instrumentation setup

Shared by the API process and the ARQ worker.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.semconv.resource import ResourceAttributes

from app.core.config import get_settings

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger(__name__)


def init_telemetry(
    service_name: str,
    service_version: str = "0.1.0",
    otlp_endpoint: str | None = None,
) -> tuple[trace.Tracer, metrics.Meter]:
    """Initialise OpenTelemetry

    Args:
        service_name: service name (e.g. "idea-intake-backend", "idea-intake-worker")
        service_version: service version
        otlp_endpoint: OTLP receiver; metrics are kept in-process when unset

    Returns:
        (Tracer, Meter) tuple
    """
    endpoint = otlp_endpoint or get_settings().otel_exporter_otlp_endpoint

    resource = Resource.create(
        {
            ResourceAttributes.SERVICE_NAME: service_name,
            ResourceAttributes.SERVICE_VERSION: service_version,
            ResourceAttributes.DEPLOYMENT_ENVIRONMENT: os.getenv("APP_ENV", "development"),
        }
    )

    tracer_provider = TracerProvider(resource=resource)
    trace.set_tracer_provider(tracer_provider)

    metric_readers = []
    if endpoint:
        metric_readers.append(
            PeriodicExportingMetricReader(
                OTLPMetricExporter(endpoint=endpoint, insecure=True),
                export_interval_millis=10000,
            )
        )
    meter_provider = MeterProvider(resource=resource, metric_readers=metric_readers)
    metrics.set_meter_provider(meter_provider)

    tracer = trace.get_tracer(service_name, service_version)
    meter = metrics.get_meter(service_name, service_version)

    logger.info(
        "Telemetry initialized: service=%s, endpoint=%s",
        service_name,
        endpoint or "disabled",
    )

    return tracer, meter


def instrument_fastapi(app: FastAPI) -> None:
    """FastAPI auto-instrumentation"""
    try:
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

        FastAPIInstrumentor.instrument_app(app)
        logger.info("FastAPI instrumentation enabled")
    except Exception as e:
        logger.warning("Failed to instrument FastAPI: %s", e)


class AppMetrics:
    """Custom metrics for the suggestion workflow"""

    def __init__(self, meter: metrics.Meter):
        self.meter = meter
        self._init_llm_metrics()
        self._init_workflow_metrics()
        self._init_arq_metrics()

    def _init_llm_metrics(self) -> None:
        """AI collaborator calls"""
        self.llm_request_total = self.meter.create_counter(
            name="ideas_llm_requests_total",
            description="AI collaborator calls by purpose and outcome",
        )
        self.llm_request_duration = self.meter.create_histogram(
            name="ideas_llm_request_duration_seconds",
            description="AI collaborator call latency",
            unit="s",
        )

    def _init_workflow_metrics(self) -> None:
        """Suggestion lifecycle"""
        self.suggestion_transition_total = self.meter.create_counter(
            name="ideas_suggestion_transitions_total",
            description="Admin status transitions by target status",
        )

    def _init_arq_metrics(self) -> None:
        """ARQ task metrics"""
        self.arq_task_enqueue_total = self.meter.create_counter(
            name="ideas_arq_task_enqueue_total",
            description="ARQ tasks enqueued",
        )
        self.arq_task_duration = self.meter.create_histogram(
            name="ideas_arq_task_duration_seconds",
            description="ARQ task run time",
            unit="s",
        )
        self.arq_task_result = self.meter.create_counter(
            name="ideas_arq_task_result_total",
            description="ARQ task results (success/failed)",
        )


_tracer: trace.Tracer | None = None
_meter: metrics.Meter | None = None
_app_metrics: AppMetrics | None = None
_initialized: bool = False


def is_telemetry_initialized() -> bool:
    return _initialized


def get_tracer() -> trace.Tracer:
    """Return the tracer (noop tracer before initialisation)"""
    if _tracer is None:
        return trace.get_tracer("ideas-noop")
    return _tracer


def get_app_metrics() -> AppMetrics | None:
    """Return the metrics bundle (None before initialisation)"""
    return _app_metrics


def setup_telemetry(service_name: str, service_version: str = "0.1.0") -> None:
    """Global telemetry setup, called once at startup"""
    global _tracer, _meter, _app_metrics, _initialized

    if _initialized:
        logger.warning("Telemetry already initialized, skipping")
        return

    _tracer, _meter = init_telemetry(service_name, service_version)
    _app_metrics = AppMetrics(_meter)
    _initialized = True
