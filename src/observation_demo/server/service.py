"""
observation_demo.server.service

Demo services behind the server endpoints.

Responsibilities:
- `FooService.foo`: observed via the `observed` decorator, simulates latency.
- `UserService.greet`: observed, enriches the current observation with the user id.
"""

from __future__ import annotations

import asyncio
import random

from observation_demo.observability.logging import get_logger
from observation_demo.observation.observed import observed
from observation_demo.observation.registry import ObservationRegistry

log = get_logger(__name__)


class _LatencySimulator:
    def __init__(self, *, max_latency_ms: int, rng: random.Random | None = None) -> None:
        self._max_latency_ms = max_latency_ms
        self._rng = rng or random.Random()

    async def sleep(self) -> None:
        # Simulates latency.
        if self._max_latency_ms > 0:
            await asyncio.sleep(self._rng.randrange(self._max_latency_ms) / 1000)


class FooService(_LatencySimulator):
    def __init__(
        self,
        *,
        registry: ObservationRegistry,
        max_latency_ms: int,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(max_latency_ms=max_latency_ms, rng=rng)
        self.observation_registry = registry

    @observed(
        name="foo.metric",
        contextual_name="my-contextual-name",
        low_cardinality_key_values={"low.cardinality.key": "low cardinality value"},
    )
    async def foo(self) -> str:
        await self.sleep()
        return "foo"


class UserService(_LatencySimulator):
    def __init__(
        self,
        *,
        registry: ObservationRegistry,
        max_latency_ms: int,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(max_latency_ms=max_latency_ms, rng=rng)
        self.observation_registry = registry

    @observed(name="user.name", contextual_name="getting-user-name")
    async def greet(self, user_id: str) -> str:
        current = self.observation_registry.current_observation
        if current is not None:
            # Unbounded value space: span attribute only, never a metric label.
            current.high_cardinality_key_value("userId", user_id)
        log.info("greeting_user", user_id=user_id)
        await self.sleep()
        return f"Hello user {user_id}"


# --- Module Notes -----------------------------------------------------------
# `observed` finds the registry through `self.observation_registry`, so the decorated
# methods need no registry at class-definition time.
