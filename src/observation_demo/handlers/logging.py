"""
observation_demo.handlers.logging

Logging collaborators for observations.

Responsibilities:
- Log a line before and after every observation (`LoggingObservationHandler`).
- Correlate log lines emitted inside an observation scope with the observation
  and its trace/span ids (`LogCorrelationObservationHandler`).
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog
from opentelemetry import trace

from observation_demo.handlers.tracing import span_for
from observation_demo.observability.logging import get_logger
from observation_demo.observation.context import Context, Event
from observation_demo.observation.handler import ObservationHandler

log = get_logger(__name__)

_TOKENS_KEY = object()


class LoggingObservationHandler(ObservationHandler):
    def on_start(self, context: Context) -> None:
        log.info("observation_started", observation=context.name)

    def on_event(self, event: Event, context: Context) -> None:
        log.debug("observation_event", observation=context.name, observation_event=event.name)

    def on_stop(self, context: Context) -> None:
        log.info(
            "observation_stopped",
            observation=context.name,
            duration_s=round(context.duration or 0.0, 6),
            error=repr(context.error) if context.error is not None else None,
        )


class LogCorrelationObservationHandler(ObservationHandler):
    """
    Binds `observation`, `trace_id` and `span_id` into structlog contextvars when a
    scope opens, and restores the previous values when it closes.
    """

    def on_scope_opened(self, context: Context) -> None:
        tokens = structlog.contextvars.bind_contextvars(**self._fields(context))
        stack: list[Mapping[str, Any]] = context.get(_TOKENS_KEY) or []
        stack.append(tokens)
        context.put(_TOKENS_KEY, stack)

    def on_scope_closed(self, context: Context) -> None:
        stack: list[Mapping[str, Any]] = context.get(_TOKENS_KEY) or []
        if stack:
            structlog.contextvars.reset_contextvars(**stack.pop())

    @staticmethod
    def _fields(context: Context) -> dict[str, str]:
        fields = {"observation": context.contextual_name or context.name or "unnamed"}
        span = span_for(context)
        if span is None:
            return fields
        span_context = span.get_span_context()
        if span_context.is_valid:
            fields["trace_id"] = trace.format_trace_id(span_context.trace_id)
            fields["span_id"] = trace.format_span_id(span_context.span_id)
        return fields


# --- Module Notes -----------------------------------------------------------
# structlog's `merge_contextvars` processor (see `observability.logging`) is what turns
# the bound values into fields on every log line.
