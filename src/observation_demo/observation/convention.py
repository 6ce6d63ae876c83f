"""
observation_demo.observation.convention

Naming conventions: pure functions computing default names and tags for a context.

Responsibilities:
- Define the convention hook applied by observations at start/stop time.
- Merge convention output into a context without clobbering explicit values.
"""

from __future__ import annotations

from collections.abc import Iterable

from observation_demo.observation.context import Context
from observation_demo.observation.keyvalues import KeyValue


class ObservationConvention:
    """
    Override the getters you need; `None` / empty means "no opinion".
    Implementations must not mutate the context.
    """

    def supports_context(self, context: Context) -> bool:
        return True

    def get_name(self) -> str | None:
        return None

    def get_contextual_name(self, context: Context) -> str | None:
        return None

    def get_low_cardinality_key_values(self, context: Context) -> Iterable[KeyValue]:
        return ()

    def get_high_cardinality_key_values(self, context: Context) -> Iterable[KeyValue]:
        return ()


LOW = "low"
HIGH = "high"


def apply_key_values(
    convention: ObservationConvention,
    context: Context,
    owned: set[tuple[str, str]],
) -> None:
    """
    Add the convention's tags to `context`.

    `owned` tracks (cardinality, key) pairs previously written by a convention.
    Keys set explicitly by the caller are never in `owned` and always win; keys
    owned by the convention are refreshed (stop-time values replace start-time ones).
    """

    for kind, target, values in (
        (LOW, context.low_cardinality_key_values, convention.get_low_cardinality_key_values(context)),
        (HIGH, context.high_cardinality_key_values, convention.get_high_cardinality_key_values(context)),
    ):
        for kv in values:
            if kv.key in target and (kind, kv.key) not in owned:
                continue
            target.add(kv)
            owned.add((kind, kv.key))


# --- Module Notes -----------------------------------------------------------
# Conventions are selected once per observation: the observation's own convention if
# set, else the first matching global convention registered on the registry.
