"""
observation_demo.observation.errors

Exceptions raised by the observation core.

Responsibilities:
- Signal caller bugs (invalid lifecycle transitions).
- Signal registry mutations after the registry has been frozen.
"""

from __future__ import annotations


class ObservationError(Exception):
    """Base class for observation core errors."""


class IllegalStateError(ObservationError, RuntimeError):
    """
    An operation was invoked in a lifecycle state that forbids it
    (e.g. `start()` twice, tagging after `stop()`).
    """


class ConfigurationError(ObservationError):
    """The registry was mutated after it started dispatching."""


# --- Module Notes -----------------------------------------------------------
# These are never absorbed by the core: they always reach the caller.
