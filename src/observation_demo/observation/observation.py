"""
observation_demo.observation.observation

The observation state machine and its scopes.

Responsibilities:
- Drive a context through CREATED -> STARTED -> STOPPED, dispatching lifecycle
  callbacks through the registry that created the observation.
- Maintain the ambient "current scope" stack per logical execution context.
- Provide `observe` wrappers that always stop the observation and close the scope.
- Provide the no-op observation/scope used when observability is disabled.
"""

from __future__ import annotations

import enum
import time
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, ParamSpec, TypeVar

from observation_demo.observability.logging import get_logger
from observation_demo.observation.context import Context, Event
from observation_demo.observation.convention import HIGH, LOW, ObservationConvention, apply_key_values
from observation_demo.observation.errors import IllegalStateError
from observation_demo.observation.keyvalues import KeyValue

if TYPE_CHECKING:
    from observation_demo.observation.registry import ObservationRegistry

log = get_logger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

# Innermost open scope on the current thread / asyncio task. asyncio copies the
# context into new tasks, so child tasks see (but cannot pop) the parent's scopes.
_current_scope: ContextVar[Scope | None] = ContextVar("observation_current_scope", default=None)


def current_scope() -> Scope | None:
    return _current_scope.get()


def _first_open(scope: Scope | None) -> Scope | None:
    while scope is not None and scope.closed:
        scope = scope.previous
    return scope


class State(enum.StrEnum):
    created = "CREATED"
    started = "STARTED"
    stopped = "STOPPED"


class Scope:
    """
    Marks an observation as current until closed. Use as a context manager so every
    open is paired with exactly one close.
    """

    __slots__ = ("_observation", "_previous", "_closed")

    def __init__(self, observation: Observation, previous: Scope | None) -> None:
        self._observation = observation
        self._previous = previous
        self._closed = False

    @property
    def observation(self) -> Observation:
        return self._observation

    @property
    def previous(self) -> Scope | None:
        return self._previous

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # Closing a non-innermost scope leaves the innermost one current; it skips this
        # (now closed) scope when it closes in turn.
        if _current_scope.get() is self:
            _current_scope.set(_first_open(self._previous))
        self._observation._scope_closed(self)

    def __enter__(self) -> Scope:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Scope(observation={self._observation.context.name!r}, closed={self._closed})"


class Observation:
    """
    A single measured unit of work. Create through `ObservationRegistry.create`.

    Not thread-safe: one observation belongs to one execution flow.
    """

    is_noop = False

    def __init__(
        self,
        *,
        registry: ObservationRegistry,
        context: Context,
        default_convention: ObservationConvention | None = None,
    ) -> None:
        self._registry = registry
        self._context = context
        self._state = State.created
        self._scopes: list[Scope] = []
        self._convention: ObservationConvention | None = None
        self._default_convention = default_convention
        self._resolved_convention: ObservationConvention | None = None
        self._convention_keys: set[tuple[str, str]] = set()
        self._start_ns: int | None = None

    @property
    def context(self) -> Context:
        return self._context

    @property
    def registry(self) -> ObservationRegistry:
        return self._registry

    @property
    def state(self) -> State:
        return self._state

    @property
    def open_scopes(self) -> tuple[Scope, ...]:
        return tuple(self._scopes)

    def _require(self, *allowed: State, action: str) -> None:
        if self._state not in allowed:
            raise IllegalStateError(
                f"Cannot {action} observation {self._context.name!r} in state {self._state}"
            )

    # Configuration (before start) -------------------------------------------------

    def contextual_name(self, name: str | None) -> Observation:
        self._require(State.created, action="set contextual name of")
        self._context.contextual_name = name
        return self

    def observation_convention(self, convention: ObservationConvention) -> Observation:
        self._require(State.created, action="set convention of")
        self._convention = convention
        return self

    def parent_observation(self, parent: Observation | None) -> Observation:
        self._require(State.created, action="set parent of")
        self._context.parent_observation = parent
        return self

    def low_cardinality_key_value(self, key: str, value: object) -> Observation:
        self._require(State.created, State.started, action="tag")
        self._context.add_low_cardinality_key_value(KeyValue.of(key, value))
        self._convention_keys.discard((LOW, key))
        return self

    def high_cardinality_key_value(self, key: str, value: object) -> Observation:
        self._require(State.created, State.started, action="tag")
        self._context.add_high_cardinality_key_value(KeyValue.of(key, value))
        self._convention_keys.discard((HIGH, key))
        return self

    def _resolve_convention(self) -> ObservationConvention | None:
        for candidate in (
            self._convention,
            self._registry.convention_for(self._context),
            self._default_convention,
        ):
            if candidate is not None and candidate.supports_context(self._context):
                return candidate
        return None

    # Lifecycle --------------------------------------------------------------------

    def start(self) -> Observation:
        self._require(State.created, action="start")
        convention = self._resolve_convention()
        if convention is not None:
            self._resolved_convention = convention
            name = convention.get_name()
            if name:
                self._context.name = name
            if self._context.contextual_name is None:
                self._context.contextual_name = convention.get_contextual_name(self._context)
            apply_key_values(convention, self._context, self._convention_keys)

        self._context.freeze_name()
        self._context.start_time = datetime.now(UTC)
        self._start_ns = time.perf_counter_ns()
        self._state = State.started
        self._registry.dispatch("on_start", self._context)
        return self

    def error(self, error: BaseException) -> Observation:
        self._require(State.started, action="record error on")
        if self._context.error is not None:
            # Last error wins.
            log.warning(
                "observation_error_overwritten",
                observation=self._context.name,
                previous=repr(self._context.error),
                error=repr(error),
            )
        self._context.error = error
        self._registry.dispatch("on_error", self._context)
        return self

    def event(self, event: Event | str) -> Observation:
        self._require(State.started, action="signal event on")
        if isinstance(event, str):
            event = Event(name=event)
        self._registry.dispatch("on_event", self._context, event)
        return self

    def stop(self) -> None:
        self._require(State.started, action="stop")
        # Nothing below may keep the observation from reaching STOPPED.
        if self._resolved_convention is not None:
            try:
                apply_key_values(self._resolved_convention, self._context, self._convention_keys)
            except Exception:
                log.exception(
                    "observation_convention_failed",
                    convention=type(self._resolved_convention).__name__,
                    observation=self._context.name,
                )
        self._registry.apply_filters(self._context)
        start_ns = self._start_ns if self._start_ns is not None else time.perf_counter_ns()
        self._context.duration = (time.perf_counter_ns() - start_ns) / 1e9
        self._state = State.stopped
        self._registry.dispatch("on_stop", self._context)

    # Scopes -----------------------------------------------------------------------

    def open_scope(self) -> Scope:
        self._require(State.started, action="open scope of")
        scope = Scope(self, _first_open(_current_scope.get()))
        self._scopes.append(scope)
        self._registry.dispatch("on_scope_opened", self._context)
        _current_scope.set(scope)
        return scope

    def _scope_closed(self, scope: Scope) -> None:
        if scope in self._scopes:
            self._scopes.remove(scope)
        self._registry.dispatch("on_scope_closed", self._context)

    # Guaranteed-release wrappers --------------------------------------------------

    def observe(self, fn: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
        """
        Start, open a scope, run `fn`, and on every exit path close the scope and stop.
        Exceptions (including KeyboardInterrupt) are recorded and re-raised.
        """

        self.start()
        try:
            with self.open_scope():
                return fn(*args, **kwargs)
        except BaseException as exc:
            self.error(exc)
            raise
        finally:
            self.stop()

    async def observe_async(
        self, fn: Callable[P, Awaitable[T]], *args: P.args, **kwargs: P.kwargs
    ) -> T:
        self.start()
        try:
            with self.open_scope():
                return await fn(*args, **kwargs)
        except BaseException as exc:
            # CancelledError lands here too: a cancelled task still stops its observation.
            self.error(exc)
            raise
        finally:
            self.stop()

    @contextmanager
    def scoped(self) -> Iterator[Observation]:
        """`with observation.scoped():` form of `observe`."""

        self.start()
        try:
            with self.open_scope():
                yield self
        except BaseException as exc:
            self.error(exc)
            raise
        finally:
            self.stop()

    def __repr__(self) -> str:
        return f"Observation(state={self._state}, context={self._context!r})"


class NoopScope:
    __slots__ = ()

    closed = False
    previous = None

    def close(self) -> None:
        return None

    def __enter__(self) -> NoopScope:
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None


class NoopObservation:
    """
    Stand-in used when observability is off: every call is accepted and ignored,
    and the wrapped work still runs.
    """

    is_noop = True
    state = State.created

    def __init__(self) -> None:
        self._context = Context("noop")

    @property
    def context(self) -> Context:
        return self._context

    @property
    def open_scopes(self) -> tuple[Scope, ...]:
        return ()

    def contextual_name(self, name: str | None) -> NoopObservation:
        return self

    def observation_convention(self, convention: ObservationConvention) -> NoopObservation:
        return self

    def parent_observation(self, parent: Any) -> NoopObservation:
        return self

    def low_cardinality_key_value(self, key: str, value: object) -> NoopObservation:
        return self

    def high_cardinality_key_value(self, key: str, value: object) -> NoopObservation:
        return self

    def start(self) -> NoopObservation:
        return self

    def error(self, error: BaseException) -> NoopObservation:
        return self

    def event(self, event: Event | str) -> NoopObservation:
        return self

    def stop(self) -> None:
        return None

    def open_scope(self) -> NoopScope:
        return NOOP_SCOPE

    def observe(self, fn: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
        return fn(*args, **kwargs)

    async def observe_async(
        self, fn: Callable[P, Awaitable[T]], *args: P.args, **kwargs: P.kwargs
    ) -> T:
        return await fn(*args, **kwargs)

    @contextmanager
    def scoped(self) -> Iterator[NoopObservation]:
        yield self

    def __repr__(self) -> str:
        return "NoopObservation()"


NOOP_SCOPE = NoopScope()
NOOP_OBSERVATION = NoopObservation()


# --- Module Notes -----------------------------------------------------------
# Handlers are dispatched in-line on the calling thread/task; nothing here queues or
# schedules work. An observation started outside `observe*`/`scoped` that is never
# stopped simply stays STARTED.
