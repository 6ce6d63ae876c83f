"""
observation_demo.wiring

Composition root for observability.

Responsibilities:
- Build the OpenTelemetry tracer provider.
- Build the observation registry with metrics, tracing and logging handlers.
- Fall back to the no-op registry when observability is disabled.
"""

from __future__ import annotations

from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor
from prometheus_client import CollectorRegistry

from observation_demo import __version__
from observation_demo.handlers.logging import (
    LogCorrelationObservationHandler,
    LoggingObservationHandler,
)
from observation_demo.handlers.metrics import (
    MeterObservationHandler,
    TracingAwareMeterObservationHandler,
)
from observation_demo.handlers.tracing import TracingObservationHandler
from observation_demo.observability.logging import get_logger
from observation_demo.observation.context import Context
from observation_demo.observation.handler import FirstMatchingCompositeObservationHandler
from observation_demo.observation.registry import NOOP_REGISTRY, ObservationRegistry
from observation_demo.settings import Settings

log = get_logger(__name__)


def build_tracer_provider(settings: Settings) -> TracerProvider:
    provider = TracerProvider(resource=Resource.create({SERVICE_NAME: settings.service_name}))
    if settings.tracing_console_export:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
    return provider


def build_registry(
    settings: Settings,
    *,
    collector_registry: CollectorRegistry | None = None,
    tracer_provider: TracerProvider | None = None,
) -> ObservationRegistry:
    """
    Handler order is dispatch order: lifecycle log lines, metrics (exactly one of the
    grouped meter handlers), spans, then log correlation.
    """

    if not settings.observation_enabled:
        log.info("observations_disabled")
        return NOOP_REGISTRY

    provider = tracer_provider or build_tracer_provider(settings)
    tracer = provider.get_tracer("observation_demo", __version__)

    meter_handler = MeterObservationHandler(
        registry=collector_registry if collector_registry is not None else CollectorRegistry(),
        namespace=settings.metrics_namespace,
    )

    registry = ObservationRegistry()
    registry.observation_handler(LoggingObservationHandler())
    registry.observation_handler(
        FirstMatchingCompositeObservationHandler(
            [TracingAwareMeterObservationHandler(meter_handler), meter_handler]
        )
    )
    registry.observation_handler(TracingObservationHandler(tracer))
    registry.observation_handler(LogCorrelationObservationHandler())
    registry.observation_filter(_common_tags(settings))
    registry.freeze()

    log.info("observations_enabled", handlers=len(registry.handlers))
    return registry


def _common_tags(settings: Settings):
    # Added right before on_stop so every metric carries the emitting service.
    def observation_filter(context: Context) -> None:
        if "service" not in context.low_cardinality_key_values:
            context.low_cardinality_key_values.set("service", settings.service_name)

    return observation_filter


def meter_handler_of(registry: ObservationRegistry) -> MeterObservationHandler | None:
    """Locate the meter handler wired by `build_registry` (used to serve /metrics)."""

    for handler in registry.handlers:
        if isinstance(handler, MeterObservationHandler):
            return handler
        for child in getattr(handler, "handlers", ()):
            if isinstance(child, MeterObservationHandler):
                return child
    return None


# --- Module Notes -----------------------------------------------------------
# `build_registry` hands out a frozen registry: everything is registered here.
