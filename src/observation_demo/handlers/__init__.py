"""
observation_demo.handlers

Observation handlers bridging the core to metrics, tracing and logging backends.

Responsibilities:
- `metrics`: prometheus_client timers, gauges, counters (+ exemplars).
- `tracing`: OpenTelemetry spans.
- `logging`: structlog lifecycle lines and log correlation.
"""

from observation_demo.handlers.logging import LogCorrelationObservationHandler, LoggingObservationHandler
from observation_demo.handlers.metrics import MeterObservationHandler, TracingAwareMeterObservationHandler
from observation_demo.handlers.tracing import TracingObservationHandler, span_for

__all__ = [
    "LogCorrelationObservationHandler",
    "LoggingObservationHandler",
    "MeterObservationHandler",
    "TracingAwareMeterObservationHandler",
    "TracingObservationHandler",
    "span_for",
]
