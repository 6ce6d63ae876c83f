"""
tests.test_handlers

Metrics, tracing and log-correlation handlers against in-memory backends.

Responsibilities:
- Prometheus timer/gauge/counter samples and exemplars.
- OpenTelemetry span naming, parenting, events, attributes and error status.
- structlog contextvars bound only while a scope is open.
"""

from __future__ import annotations

import pytest
import structlog
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode
from prometheus_client import CollectorRegistry

from observation_demo.handlers import (
    LogCorrelationObservationHandler,
    MeterObservationHandler,
    TracingAwareMeterObservationHandler,
    TracingObservationHandler,
    span_for,
)
from observation_demo.handlers.metrics import sanitize
from observation_demo.observation import (
    FirstMatchingCompositeObservationHandler,
    ObservationRegistry,
)


@pytest.fixture
def meter(collector_registry: CollectorRegistry) -> MeterObservationHandler:
    return MeterObservationHandler(registry=collector_registry)


@pytest.fixture
def tracer(tracer_provider: TracerProvider) -> trace.Tracer:
    return tracer_provider.get_tracer("tests")


def test_sanitize() -> None:
    assert sanitize("foo.metric") == "foo_metric"
    assert sanitize("low.cardinality-key") == "low_cardinality_key"
    assert sanitize("9lives") == "_9lives"


def test_meter_records_timer_gauge_and_events(
    meter: MeterObservationHandler, collector_registry: CollectorRegistry
) -> None:
    registry = ObservationRegistry().observation_handler(meter)
    observation = registry.create("req").low_cardinality_key_value("status", "ok").start()

    assert collector_registry.get_sample_value("req_active") == 1.0
    observation.event("cache.miss")
    observation.event("cache.miss")
    observation.stop()

    assert collector_registry.get_sample_value("req_active") == 0.0
    assert collector_registry.get_sample_value("req_events_cache_miss_total", {"status": "ok"}) == 2.0
    labels = {"status": "ok", "error": "none"}
    assert collector_registry.get_sample_value("req_seconds_count", labels) == 1.0
    assert collector_registry.get_sample_value("req_seconds_sum", labels) >= 0.0


def test_meter_tags_error_type(
    meter: MeterObservationHandler, collector_registry: CollectorRegistry
) -> None:
    registry = ObservationRegistry().observation_handler(meter)

    with pytest.raises(TimeoutError):
        registry.create("req").observe(_raise, TimeoutError())

    assert collector_registry.get_sample_value("req_seconds_count", {"error": "TimeoutError"}) == 1.0


def test_meter_skips_changing_label_keys(
    meter: MeterObservationHandler, collector_registry: CollectorRegistry
) -> None:
    registry = ObservationRegistry().observation_handler(meter)
    registry.create("req").low_cardinality_key_value("a", "1").observe(lambda: None)

    # The registry isolates the handler failure; the work itself still succeeds.
    assert registry.create("req").low_cardinality_key_value("b", "1").observe(lambda: "ok") == "ok"
    assert collector_registry.get_sample_value("req_seconds_count", {"a": "1", "error": "none"}) == 1.0
    assert collector_registry.get_sample_value("req_seconds_count", {"b": "1", "error": "none"}) is None
    assert collector_registry.get_sample_value("req_active") == 0.0


def test_event_names_do_not_collide_with_timer_or_gauge(
    meter: MeterObservationHandler, collector_registry: CollectorRegistry
) -> None:
    registry = ObservationRegistry().observation_handler(meter)

    for _ in range(2):
        observation = registry.create("req").start()
        observation.event("active")
        observation.event("seconds")
        observation.stop()

    assert collector_registry.get_sample_value("req_active") == 0.0
    assert collector_registry.get_sample_value("req_events_active_total") == 2.0
    assert collector_registry.get_sample_value("req_events_seconds_total") == 2.0
    assert collector_registry.get_sample_value("req_seconds_count", {"error": "none"}) == 2.0


def test_tracing_spans_follow_observation_tree(
    tracer: trace.Tracer, span_exporter: InMemorySpanExporter
) -> None:
    registry = ObservationRegistry().observation_handler(TracingObservationHandler(tracer))

    parent = registry.create("parent.op", contextual_name="parent-op").start()
    with parent.open_scope():
        assert trace.get_current_span() is span_for(parent.context)
        child = registry.create("child.op")
        child.high_cardinality_key_value("user.id", "7").start()
        child.event("checkpoint")
        child.stop()
    parent.low_cardinality_key_value("kind", "demo")
    parent.stop()

    spans = {span.name: span for span in span_exporter.get_finished_spans()}
    assert set(spans) == {"parent-op", "child.op"}
    assert spans["child.op"].parent.span_id == spans["parent-op"].context.span_id
    assert spans["child.op"].attributes["user.id"] == "7"
    assert [event.name for event in spans["child.op"].events] == ["checkpoint"]
    assert spans["parent-op"].attributes["kind"] == "demo"
    assert not trace.get_current_span().get_span_context().is_valid


def test_tracing_marks_errors(tracer: trace.Tracer, span_exporter: InMemorySpanExporter) -> None:
    registry = ObservationRegistry().observation_handler(TracingObservationHandler(tracer))

    with pytest.raises(KeyError):
        registry.create("failing").observe(_raise, KeyError("missing"))

    (span,) = span_exporter.get_finished_spans()
    assert span.status.status_code is StatusCode.ERROR
    assert [event.name for event in span.events] == ["exception"]


def test_tracing_aware_meter_attaches_exemplar(
    meter: MeterObservationHandler,
    tracer: trace.Tracer,
    collector_registry: CollectorRegistry,
) -> None:
    registry = (
        ObservationRegistry()
        .observation_handler(
            FirstMatchingCompositeObservationHandler(
                [TracingAwareMeterObservationHandler(meter), meter]
            )
        )
        .observation_handler(TracingObservationHandler(tracer))
    )

    observation = registry.create("traced")
    observation.observe(lambda: None)

    span_context = span_for(observation.context).get_span_context()
    exemplars = [
        sample.exemplar
        for family in collector_registry.collect()
        for sample in family.samples
        if sample.name == "traced_seconds_bucket" and sample.exemplar is not None
    ]
    assert len(exemplars) == 1
    assert exemplars[0].labels == {
        "trace_id": trace.format_trace_id(span_context.trace_id),
        "span_id": trace.format_span_id(span_context.span_id),
    }
    assert collector_registry.get_sample_value("traced_active") == 0.0


def test_log_correlation_binds_only_inside_scope(tracer: trace.Tracer) -> None:
    registry = (
        ObservationRegistry()
        .observation_handler(TracingObservationHandler(tracer))
        .observation_handler(LogCorrelationObservationHandler())
    )
    structlog.contextvars.clear_contextvars()
    seen = {}

    def capture() -> None:
        seen.update(structlog.contextvars.get_contextvars())

    observation = registry.create("correlated", contextual_name="correlated-op")
    observation.observe(capture)

    span_context = span_for(observation.context).get_span_context()
    assert seen == {
        "observation": "correlated-op",
        "trace_id": trace.format_trace_id(span_context.trace_id),
        "span_id": trace.format_span_id(span_context.span_id),
    }
    assert structlog.contextvars.get_contextvars() == {}


def _raise(exc: BaseException) -> None:
    raise exc


# --- Module Notes -----------------------------------------------------------
# `get_sample_value` returns None for unknown samples, so equality checks also prove
# the expected label set was used.
