"""
observation_demo.handlers.metrics

Prometheus metrics for observations.

Responsibilities:
- Record one timer (histogram) per observation name, labelled by low-cardinality tags.
- Track in-flight observations with an "active" gauge.
- Count events signalled on observations.
- Optionally attach trace/span ids as exemplars (`TracingAwareMeterObservationHandler`).
"""

from __future__ import annotations

import re

from opentelemetry import trace
from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram
from prometheus_client.metrics import MetricWrapperBase

from observation_demo.handlers.tracing import span_for
from observation_demo.observation.context import Context, Event
from observation_demo.observation.handler import ObservationHandler

DEFAULT_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)

_INVALID_NAME_CHARS = re.compile(r"[^a-zA-Z0-9_]")
_ACTIVE_GAUGE_KEY = object()


def sanitize(name: str) -> str:
    """Map an observation name / tag key to a valid Prometheus identifier."""

    cleaned = _INVALID_NAME_CHARS.sub("_", name)
    if not cleaned or cleaned[0].isdigit():
        cleaned = f"_{cleaned}"
    return cleaned


def error_tag(context: Context) -> str:
    return type(context.error).__name__ if context.error is not None else "none"


class MeterObservationHandler(ObservationHandler):
    """
    Metric names derive from the observation name (`foo.metric` ->
    `foo_metric_seconds`, `foo_metric_active`, `foo_metric_events_<event>_total`).
    Event counters live under `_events_` so an event name never lands on the timer
    or the gauge. One name must always carry the same tag keys, as
    Prometheus fixes label names per metric.
    """

    def __init__(
        self,
        *,
        registry: CollectorRegistry | None = None,
        namespace: str = "",
        buckets: tuple[float, ...] = DEFAULT_BUCKETS,
    ) -> None:
        self._registry = registry if registry is not None else REGISTRY
        self._namespace = namespace
        self._buckets = buckets
        # Keyed by (type, name): a gauge and a counter never share a cache slot.
        self._metrics: dict[
            tuple[type[MetricWrapperBase], str], tuple[MetricWrapperBase, tuple[str, ...]]
        ] = {}

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def _metric(
        self,
        cls: type[MetricWrapperBase],
        name: str,
        documentation: str,
        labelnames: tuple[str, ...],
        **kwargs,
    ):
        cached = self._metrics.get((cls, name))
        if cached is None:
            metric = cls(
                name,
                documentation,
                labelnames=labelnames,
                namespace=self._namespace,
                registry=self._registry,
                **kwargs,
            )
            self._metrics[(cls, name)] = (metric, labelnames)
            return metric
        metric, registered = cached
        if registered != labelnames:
            raise ValueError(
                f"Metric {name!r} already registered with labels {registered}, got {labelnames}"
            )
        return metric

    @staticmethod
    def _labels(context: Context, *, with_error: bool) -> dict[str, str]:
        labels = {
            sanitize(k): v for k, v in context.low_cardinality_key_values.as_dict().items()
        }
        if with_error:
            labels["error"] = error_tag(context)
        return dict(sorted(labels.items()))

    def on_start(self, context: Context) -> None:
        name = sanitize(context.name or "unnamed")
        gauge = self._metric(
            Gauge, f"{name}_active", f"In-flight '{context.name}' observations", ()
        )
        gauge.inc()
        context.put(_ACTIVE_GAUGE_KEY, gauge)

    def on_event(self, event: Event, context: Context) -> None:
        labels = self._labels(context, with_error=False)
        counter = self._metric(
            Counter,
            f"{sanitize(context.name or 'unnamed')}_events_{sanitize(event.name)}",
            f"Events '{event.name}' signalled on '{context.name}' observations",
            tuple(labels),
        )
        if labels:
            counter = counter.labels(**labels)
        counter.inc()

    def on_stop(self, context: Context) -> None:
        gauge = context.remove(_ACTIVE_GAUGE_KEY)
        if gauge is not None:
            gauge.dec()
        self.record(context)

    def record(self, context: Context, exemplar: dict[str, str] | None = None) -> None:
        labels = self._labels(context, with_error=True)
        histogram = self._metric(
            Histogram,
            f"{sanitize(context.name or 'unnamed')}_seconds",
            f"Duration of '{context.name}' observations",
            tuple(labels),
            buckets=self._buckets,
        )
        if labels:
            histogram = histogram.labels(**labels)
        histogram.observe(context.duration or 0.0, exemplar=exemplar)


class TracingAwareMeterObservationHandler(ObservationHandler):
    """
    Wraps a meter handler and links recorded durations to the observation's span
    via exemplars (visible with the OpenMetrics exposition format).
    """

    def __init__(self, delegate: MeterObservationHandler) -> None:
        self._delegate = delegate

    @property
    def delegate(self) -> MeterObservationHandler:
        return self._delegate

    def supports_context(self, context: Context) -> bool:
        return self._delegate.supports_context(context)

    def on_start(self, context: Context) -> None:
        self._delegate.on_start(context)

    def on_event(self, event: Event, context: Context) -> None:
        self._delegate.on_event(event, context)

    def on_stop(self, context: Context) -> None:
        gauge = context.remove(_ACTIVE_GAUGE_KEY)
        if gauge is not None:
            gauge.dec()
        self._delegate.record(context, exemplar=self._exemplar(context))

    @staticmethod
    def _exemplar(context: Context) -> dict[str, str] | None:
        span = span_for(context)
        if span is None:
            return None
        span_context = span.get_span_context()
        if not span_context.is_valid or not span_context.trace_flags.sampled:
            return None
        return {
            "trace_id": trace.format_trace_id(span_context.trace_id),
            "span_id": trace.format_span_id(span_context.span_id),
        }


# --- Module Notes -----------------------------------------------------------
# Register both handlers inside a FirstMatchingCompositeObservationHandler (tracing-aware
# first) so each observation is recorded exactly once.
