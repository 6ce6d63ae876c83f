"""
observation_demo.observation.handler

Handlers react to observation lifecycle events.

Responsibilities:
- Define the handler capability set (`supports_context` + one callback per event).
- Provide first-matching and all-matching composites.
"""

from __future__ import annotations

from collections.abc import Iterable

from observation_demo.observation.context import Context, Event


class ObservationHandler:
    """
    Base handler. Every callback is a no-op by default, so subclasses only
    override the events they care about.

    `supports_context` must be pure: it is called once per lifecycle call.
    """

    def supports_context(self, context: Context) -> bool:
        return True

    def on_start(self, context: Context) -> None:
        pass

    def on_error(self, context: Context) -> None:
        pass

    def on_event(self, event: Event, context: Context) -> None:
        pass

    def on_scope_opened(self, context: Context) -> None:
        pass

    def on_scope_closed(self, context: Context) -> None:
        pass

    def on_stop(self, context: Context) -> None:
        pass


class _CompositeObservationHandler(ObservationHandler):
    def __init__(self, handlers: Iterable[ObservationHandler]) -> None:
        self.handlers: tuple[ObservationHandler, ...] = tuple(handlers)

    def _targets(self, context: Context) -> list[ObservationHandler]:
        raise NotImplementedError

    def supports_context(self, context: Context) -> bool:
        return any(h.supports_context(context) for h in self.handlers)

    def on_start(self, context: Context) -> None:
        for h in self._targets(context):
            h.on_start(context)

    def on_error(self, context: Context) -> None:
        for h in self._targets(context):
            h.on_error(context)

    def on_event(self, event: Event, context: Context) -> None:
        for h in self._targets(context):
            h.on_event(event, context)

    def on_scope_opened(self, context: Context) -> None:
        for h in self._targets(context):
            h.on_scope_opened(context)

    def on_scope_closed(self, context: Context) -> None:
        for h in self._targets(context):
            h.on_scope_closed(context)

    def on_stop(self, context: Context) -> None:
        for h in self._targets(context):
            h.on_stop(context)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self.handlers)!r})"


class FirstMatchingCompositeObservationHandler(_CompositeObservationHandler):
    """
    Dispatches to the first child (in order) that supports the context.

    Use it to group handlers producing the same signal, e.g. a tracing-aware
    meter handler and a plain meter handler: only one should record.
    """

    def _targets(self, context: Context) -> list[ObservationHandler]:
        for h in self.handlers:
            if h.supports_context(context):
                return [h]
        return []


class AllMatchingCompositeObservationHandler(_CompositeObservationHandler):
    """
    Dispatches to every child that supports the context, in order.
    """

    def _targets(self, context: Context) -> list[ObservationHandler]:
        return [h for h in self.handlers if h.supports_context(context)]


# --- Module Notes -----------------------------------------------------------
# Exceptions raised by a child propagate to the registry dispatch loop, which isolates
# them per top-level handler (see `ObservationRegistry.dispatch`).
