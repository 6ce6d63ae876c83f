"""
observation_demo.handlers.tracing

OpenTelemetry spans for observations.

Responsibilities:
- Start one span per observation, parented on the parent observation's span.
- Mirror events, errors and tags onto the span.
- Make the span current (OpenTelemetry context) while an observation scope is open.
"""

from __future__ import annotations

from opentelemetry import context as otel_context
from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode

from observation_demo.observation.context import Context, Event
from observation_demo.observation.handler import ObservationHandler

_SPAN_KEY = object()
_TOKENS_KEY = object()


def span_for(context: Context) -> Span | None:
    """Span started for `context` by `TracingObservationHandler`, if any."""

    return context.get(_SPAN_KEY)


def span_name(context: Context) -> str:
    return context.contextual_name or context.name or "unnamed"


class TracingObservationHandler(ObservationHandler):
    def __init__(self, tracer: trace.Tracer) -> None:
        self._tracer = tracer

    def on_start(self, context: Context) -> None:
        parent_ctx = None
        parent = context.parent_observation
        if parent is not None:
            parent_span = span_for(parent.context)
            if parent_span is not None:
                parent_ctx = trace.set_span_in_context(parent_span)
        # Without a parent observation the span joins whatever span is current.
        span = self._tracer.start_span(span_name(context), context=parent_ctx)
        context.put(_SPAN_KEY, span)

    def on_event(self, event: Event, context: Context) -> None:
        span = span_for(context)
        if span is not None:
            span.add_event(event.display_name)

    def on_error(self, context: Context) -> None:
        span = span_for(context)
        if span is None or context.error is None:
            return
        span.record_exception(context.error)
        span.set_status(Status(StatusCode.ERROR, str(context.error)))

    def on_scope_opened(self, context: Context) -> None:
        span = span_for(context)
        if span is None:
            return
        token = otel_context.attach(trace.set_span_in_context(span))
        tokens: list[object] = context.get(_TOKENS_KEY) or []
        tokens.append(token)
        context.put(_TOKENS_KEY, tokens)

    def on_scope_closed(self, context: Context) -> None:
        tokens: list[object] = context.get(_TOKENS_KEY) or []
        if tokens:
            otel_context.detach(tokens.pop())

    def on_stop(self, context: Context) -> None:
        span = span_for(context)
        if span is None:
            return
        # Contextual name / tags may have been finalised by a convention at stop time.
        span.update_name(span_name(context))
        span.set_attributes(context.all_key_values())
        span.end()


# --- Module Notes -----------------------------------------------------------
# Exporting spans (console, OTLP, ...) is configured on the TracerProvider in
# `observation_demo.wiring`, not here.
