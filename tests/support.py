"""
tests.support

Test doubles shared across test modules.

Responsibilities:
- `RecordingHandler`: records every lifecycle callback it receives.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from observation_demo.observation import Context, Event, ObservationHandler


class RecordingHandler(ObservationHandler):
    """
    Records every callback as a tuple. Several handlers may share one `journal`
    to assert cross-handler ordering.
    """

    def __init__(
        self,
        label: str = "recorder",
        *,
        supports: Callable[[Context], bool] | None = None,
        journal: list[tuple[Any, ...]] | None = None,
    ) -> None:
        self.label = label
        self._supports = supports
        self.calls: list[tuple[Any, ...]] = []
        self._journal = journal

    def _record(self, *entry: Any) -> None:
        self.calls.append(entry)
        if self._journal is not None:
            self._journal.append((self.label, *entry))

    def supports_context(self, context: Context) -> bool:
        return self._supports(context) if self._supports is not None else True

    def on_start(self, context: Context) -> None:
        self._record("on_start", context.name)

    def on_error(self, context: Context) -> None:
        self._record("on_error", context.name, context.error)

    def on_event(self, event: Event, context: Context) -> None:
        self._record("on_event", event.name)

    def on_scope_opened(self, context: Context) -> None:
        self._record("on_scope_opened", context.name)

    def on_scope_closed(self, context: Context) -> None:
        self._record("on_scope_closed", context.name)

    def on_stop(self, context: Context) -> None:
        self._record("on_stop", context.name, context.low_cardinality_key_values.as_dict())

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]
