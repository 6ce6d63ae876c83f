"""
observation_demo.client.runner

The command-line runner: one manually built observation per server call.

Responsibilities:
- Show the manual observation API: technical name, contextual name, low- and
  high-cardinality tags, `observe_async` wrapping the work.
"""

from __future__ import annotations

import random

from observation_demo.client.http import ServerClient
from observation_demo.observability.logging import get_logger
from observation_demo.observation.registry import ObservationRegistry

log = get_logger(__name__)

# Simulates a small, bounded set of values: safe as metric labels.
USER_TYPES = ("userType1", "userType2", "userType3")
# Simulates an unbounded set of values: span attributes only.
MAX_USER_ID = 100_000


async def run_once(
    *,
    registry: ObservationRegistry,
    client: ServerClient,
    rng: random.Random | None = None,
) -> str:
    rng = rng or random.Random()
    user_id = str(rng.randrange(MAX_USER_ID))

    # "my.observation" is the technical name (metric name); "command-line-runner" is
    # the contextual name (span name).
    observation = (
        registry.create("my.observation")
        .low_cardinality_key_value("userType", rng.choice(USER_TYPES))
        .high_cardinality_key_value("userId", user_id)
        .contextual_name("command-line-runner")
    )

    async def _call() -> str:
        # Inside the scope: these lines carry the observation's trace/span ids.
        log.info("sending_request", user_id=user_id)
        response = await client.user(user_id=user_id)
        log.info("got_response", response=response)
        return response

    return await observation.observe_async(_call)


# --- Module Notes -----------------------------------------------------------
# The server-side request is a separate trace: trace context is not propagated over
# HTTP in this demo.
