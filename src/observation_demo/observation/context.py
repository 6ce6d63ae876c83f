"""
observation_demo.observation.context

Mutable state carried through an observation's lifecycle.

Responsibilities:
- Hold name, contextual name, low/high cardinality tags and the captured error.
- Link to the parent observation without owning it (weak reference).
- Offer a private attribute map handlers use to stash their own state
  (spans, context tokens, metric labels).
"""

from __future__ import annotations

import weakref
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from observation_demo.observation.errors import IllegalStateError
from observation_demo.observation.keyvalues import KeyValue, KeyValues

if TYPE_CHECKING:
    from observation_demo.observation.observation import Observation


@dataclass(frozen=True, slots=True)
class Event:
    """
    Something that happened during an observation (e.g. "cache-miss").
    """

    name: str
    contextual_name: str | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Event name must be a non-empty string")

    @property
    def display_name(self) -> str:
        return self.contextual_name or self.name


class Context:
    """
    Subclass to carry domain data (request/response objects, ...) that
    handlers and conventions can read via `isinstance` checks.
    """

    def __init__(self, name: str | None = None) -> None:
        self._name = name
        self._frozen_name = False
        self.contextual_name: str | None = None
        self.low_cardinality_key_values = KeyValues()
        self.high_cardinality_key_values = KeyValues()
        self.error: BaseException | None = None
        self.start_time: datetime | None = None
        self.duration: float | None = None
        self._parent_ref: weakref.ReferenceType[Observation] | None = None
        self._attributes: dict[Any, Any] = {}

    @property
    def name(self) -> str | None:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        if self._frozen_name:
            raise IllegalStateError("Observation name cannot change after start")
        self._name = value

    def freeze_name(self) -> None:
        self._frozen_name = True

    @property
    def parent_observation(self) -> Observation | None:
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    @parent_observation.setter
    def parent_observation(self, observation: Observation | None) -> None:
        self._parent_ref = weakref.ref(observation) if observation is not None else None

    def add_low_cardinality_key_value(self, key_value: KeyValue) -> None:
        self.low_cardinality_key_values.add(key_value)

    def add_high_cardinality_key_value(self, key_value: KeyValue) -> None:
        self.high_cardinality_key_values.add(key_value)

    def all_key_values(self) -> dict[str, str]:
        # High-cardinality values lose to low-cardinality ones on key collision.
        return {
            **self.high_cardinality_key_values.as_dict(),
            **self.low_cardinality_key_values.as_dict(),
        }

    # Handler-private attributes.
    def put(self, key: Any, value: Any) -> None:
        self._attributes[key] = value

    def get(self, key: Any, default: Any = None) -> Any:
        return self._attributes.get(key, default)

    def remove(self, key: Any) -> Any:
        return self._attributes.pop(key, None)

    def contains(self, key: Any) -> bool:
        return key in self._attributes

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self._name!r}, "
            f"contextual_name={self.contextual_name!r}, "
            f"low={self.low_cardinality_key_values!r}, "
            f"high={self.high_cardinality_key_values!r}, "
            f"error={self.error!r})"
        )


# --- Module Notes -----------------------------------------------------------
# A context belongs to exactly one Observation. The core never shares one between two
# running observations, and callers should not either.
