"""
observation_demo.observation

Observation core: lifecycle state machine, scopes, handler dispatch.

Responsibilities:
- Re-export the public API so callers import from one place.
"""

from observation_demo.observation.context import Context, Event
from observation_demo.observation.convention import ObservationConvention
from observation_demo.observation.errors import ConfigurationError, IllegalStateError, ObservationError
from observation_demo.observation.handler import (
    AllMatchingCompositeObservationHandler,
    FirstMatchingCompositeObservationHandler,
    ObservationHandler,
)
from observation_demo.observation.keyvalues import KeyValue, KeyValues
from observation_demo.observation.observation import (
    NOOP_OBSERVATION,
    NOOP_SCOPE,
    NoopObservation,
    Observation,
    Scope,
    State,
    current_scope,
)
from observation_demo.observation.observed import observed
from observation_demo.observation.registry import (
    NOOP_REGISTRY,
    NoopObservationRegistry,
    ObservationRegistry,
)

__all__ = [
    "AllMatchingCompositeObservationHandler",
    "ConfigurationError",
    "Context",
    "Event",
    "FirstMatchingCompositeObservationHandler",
    "IllegalStateError",
    "KeyValue",
    "KeyValues",
    "NOOP_OBSERVATION",
    "NOOP_REGISTRY",
    "NOOP_SCOPE",
    "NoopObservation",
    "NoopObservationRegistry",
    "Observation",
    "ObservationConvention",
    "ObservationError",
    "ObservationHandler",
    "ObservationRegistry",
    "Scope",
    "State",
    "current_scope",
    "observed",
]
