"""
observation_demo.client.__main__

Entrypoint for running the demo client via `python -m observation_demo.client`.

Responsibilities:
- Load settings and configure logging.
- Wire the observation registry.
- Call the server `client_requests` times, then flush spans.
"""

from __future__ import annotations

import asyncio

import httpx

from observation_demo.client.http import ServerClient
from observation_demo.client.runner import run_once
from observation_demo.observability.logging import configure_logging, get_logger
from observation_demo.settings import Settings, get_settings
from observation_demo.wiring import build_registry, build_tracer_provider

log = get_logger(__name__)


async def run(settings: Settings) -> None:
    tracer_provider = build_tracer_provider(settings)
    registry = build_registry(settings, tracer_provider=tracer_provider)
    try:
        async with httpx.AsyncClient(
            base_url=settings.server_base_url, timeout=settings.client_timeout_s
        ) as http:
            client = ServerClient(http=http, registry=registry)
            for _ in range(settings.client_requests):
                await run_once(registry=registry, client=client)
        log.info("client_finished", requests=settings.client_requests)
    finally:
        tracer_provider.shutdown()


def main() -> None:
    settings = get_settings()
    configure_logging(
        service_name=settings.service_name, level=settings.log_level, fmt=settings.log_format
    )
    asyncio.run(run(settings))


if __name__ == "__main__":
    main()


# --- Module Notes -----------------------------------------------------------
# A failed request propagates out of `run_once` after its observations were stopped
# with the error recorded; the process exits non-zero.
