"""
observation_demo.observation.observed

Decorator that observes every call of a function or method.

Responsibilities:
- Wrap sync and async callables in `registry.create(...).observe*(...)`.
- Tag observations with the declaring class and method names.
- Resolve the registry explicitly, from the bound instance, or fall back to no-op.
"""

from __future__ import annotations

import functools
import inspect
from collections.abc import Callable, Mapping
from typing import Any

from observation_demo.observation.registry import NOOP_REGISTRY, ObservationRegistry

# Instances exposing this attribute get their methods observed through it.
REGISTRY_ATTRIBUTE = "observation_registry"


def _resolve_registry(
    registry: ObservationRegistry | None, args: tuple[Any, ...]
) -> ObservationRegistry:
    if registry is not None:
        return registry
    if args:
        bound = getattr(args[0], REGISTRY_ATTRIBUTE, None)
        if isinstance(bound, ObservationRegistry):
            return bound
    return NOOP_REGISTRY


def observed(
    name: str | None = None,
    *,
    contextual_name: str | None = None,
    low_cardinality_key_values: Mapping[str, str] | None = None,
    registry: ObservationRegistry | None = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Observe each call of the decorated callable.

    `name` defaults to "method.observed"; `contextual_name` defaults to
    "<class>#<method>" (the module stands in for the class of plain functions).
    """

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        qualname = fn.__qualname__
        class_name, _, method_name = qualname.rpartition(".")
        class_name = class_name.rpartition(".")[2]
        if not class_name or class_name == "<locals>":
            class_name = fn.__module__
        default_contextual = f"{class_name}#{method_name}"

        def _create(args: tuple[Any, ...]):
            observation = _resolve_registry(registry, args).create(
                name or "method.observed",
                contextual_name=contextual_name or default_contextual,
            )
            observation.low_cardinality_key_value("class", class_name)
            observation.low_cardinality_key_value("method", method_name)
            for key, value in (low_cardinality_key_values or {}).items():
                observation.low_cardinality_key_value(key, value)
            return observation

        if inspect.iscoroutinefunction(fn):

            @functools.wraps(fn)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                return await _create(args).observe_async(fn, *args, **kwargs)

            return async_wrapper

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            return _create(args).observe(fn, *args, **kwargs)

        return wrapper

    return decorator


# --- Module Notes -----------------------------------------------------------
# Registry resolution happens per call, so services can receive their registry in
# `__init__` (as `self.observation_registry`) after the class body was decorated.
