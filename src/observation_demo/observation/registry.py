"""
observation_demo.observation.registry

The observation registry: configuration holder and observation factory.

Responsibilities:
- Hold handlers (dispatch order = registration order), global conventions,
  predicates and filters.
- Create observations bound to a fresh context.
- Resolve the supporting handlers for a context on every lifecycle call and
  dispatch to them, isolating handler failures.
- Provide the no-op registry used when observability is disabled.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from observation_demo.observability.logging import get_logger
from observation_demo.observation.context import Context
from observation_demo.observation.convention import ObservationConvention
from observation_demo.observation.errors import ConfigurationError
from observation_demo.observation.handler import ObservationHandler
from observation_demo.observation.observation import (
    NOOP_OBSERVATION,
    NoopObservation,
    Observation,
    current_scope,
)

log = get_logger(__name__)

# Returns False to disable the observation (a no-op observation is created instead).
ObservationPredicate = Callable[[str, Context], bool]
# Mutates the context in place right before `on_stop` (e.g. common tags).
ObservationFilter = Callable[[Context], None]


class ObservationRegistry:
    """
    Constructed once by the application (see `observation_demo.wiring`) and passed
    explicitly to whatever creates observations.

    The registry freezes on its first lifecycle dispatch; configuration calls after
    that raise `ConfigurationError`.
    """

    def __init__(self) -> None:
        self._handlers: list[ObservationHandler] = []
        self._conventions: list[ObservationConvention] = []
        self._predicates: list[ObservationPredicate] = []
        self._filters: list[ObservationFilter] = []
        self._frozen = False

    @property
    def is_noop(self) -> bool:
        return False

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def handlers(self) -> tuple[ObservationHandler, ...]:
        return tuple(self._handlers)

    def _check_mutable(self, what: str) -> None:
        if self._frozen:
            raise ConfigurationError(
                f"Cannot register {what}: registry already dispatched observations"
            )

    def observation_handler(self, handler: ObservationHandler) -> ObservationRegistry:
        self._check_mutable("observation handler")
        self._handlers.append(handler)
        return self

    def observation_convention(self, convention: ObservationConvention) -> ObservationRegistry:
        self._check_mutable("observation convention")
        self._conventions.append(convention)
        return self

    def observation_predicate(self, predicate: ObservationPredicate) -> ObservationRegistry:
        self._check_mutable("observation predicate")
        self._predicates.append(predicate)
        return self

    def observation_filter(self, observation_filter: ObservationFilter) -> ObservationRegistry:
        self._check_mutable("observation filter")
        self._filters.append(observation_filter)
        return self

    def freeze(self) -> None:
        self._frozen = True

    def create(
        self,
        name: str,
        context_factory: Callable[[], Context] | None = None,
        *,
        contextual_name: str | None = None,
        convention: ObservationConvention | None = None,
        default_convention: ObservationConvention | None = None,
    ) -> Observation | NoopObservation:
        """
        Build a not-started observation. Returns the no-op observation when there are
        no handlers or a predicate rejects it, so callers never branch on it.

        Convention precedence: `convention` (caller override), then the first matching
        global convention of this registry, then `default_convention`.
        """

        context = context_factory() if context_factory is not None else Context()
        context.name = name
        if not self._handlers or not self.observation_enabled(name, context):
            return NOOP_OBSERVATION

        if context.parent_observation is None:
            context.parent_observation = self.current_observation

        observation = Observation(
            registry=self, context=context, default_convention=default_convention
        )
        if contextual_name is not None:
            observation.contextual_name(contextual_name)
        if convention is not None:
            observation.observation_convention(convention)
        return observation

    def observation_enabled(self, name: str, context: Context) -> bool:
        return all(predicate(name, context) for predicate in self._predicates)

    def handlers_for(self, context: Context) -> list[ObservationHandler]:
        supported = []
        for handler in self._handlers:
            try:
                if handler.supports_context(context):
                    supported.append(handler)
            except Exception:
                log.exception(
                    "observation_handler_failed",
                    handler=type(handler).__name__,
                    callback="supports_context",
                    observation=context.name,
                )
        return supported

    def convention_for(self, context: Context) -> ObservationConvention | None:
        for convention in self._conventions:
            if convention.supports_context(context):
                return convention
        return None

    def apply_filters(self, context: Context) -> None:
        # Runs inside `Observation.stop`: a failing filter is logged and skipped.
        for observation_filter in self._filters:
            try:
                observation_filter(context)
            except Exception:
                log.exception(
                    "observation_filter_failed",
                    observation_filter=getattr(observation_filter, "__qualname__", repr(observation_filter)),
                    observation=context.name,
                )

    @property
    def current_observation(self) -> Observation | None:
        """Observation of the innermost open scope created through this registry."""

        scope = current_scope()
        while scope is not None:
            if not scope.closed and scope.observation.registry is self:
                return scope.observation
            scope = scope.previous
        return None

    def dispatch(self, callback: str, context: Context, *args: Any) -> None:
        """
        Fan out `callback` to every supporting handler, in registration order.

        A failing handler is logged and skipped: it must not break the lifecycle of
        the observation nor starve the handlers registered after it.
        """

        self._frozen = True
        for handler in self.handlers_for(context):
            try:
                getattr(handler, callback)(*args, context)
            except Exception:
                log.exception(
                    "observation_handler_failed",
                    handler=type(handler).__name__,
                    callback=callback,
                    observation=context.name,
                )


class NoopObservationRegistry(ObservationRegistry):
    """
    Registry for disabled observability: accepts configuration, never dispatches.
    """

    @property
    def is_noop(self) -> bool:
        return True

    def observation_handler(self, handler: ObservationHandler) -> ObservationRegistry:
        return self

    def observation_convention(self, convention: ObservationConvention) -> ObservationRegistry:
        return self

    def observation_predicate(self, predicate: ObservationPredicate) -> ObservationRegistry:
        return self

    def observation_filter(self, observation_filter: ObservationFilter) -> ObservationRegistry:
        return self

    def create(
        self,
        name: str,
        context_factory: Callable[[], Context] | None = None,
        *,
        contextual_name: str | None = None,
        convention: ObservationConvention | None = None,
        default_convention: ObservationConvention | None = None,
    ) -> NoopObservation:
        return NOOP_OBSERVATION

    @property
    def current_observation(self) -> Observation | None:
        return None

    def dispatch(self, callback: str, context: Context, *args: Any) -> None:
        return None


NOOP_REGISTRY = NoopObservationRegistry()


# --- Module Notes -----------------------------------------------------------
# `handlers_for` is evaluated on every call because applicability may depend on
# context state that changes during the lifecycle (e.g. an error being set).
