"""
observation_demo.server.app

FastAPI app factory for the demo server.

Responsibilities:
- Build the FastAPI application and register routes/middleware.
- Wire the observation registry (or accept one built by the caller, e.g. tests).
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from opentelemetry.sdk.trace import TracerProvider
from prometheus_client import CollectorRegistry

from observation_demo import __version__
from observation_demo.observability.logging import configure_logging, get_logger
from observation_demo.observation.registry import ObservationRegistry
from observation_demo.server.middleware import ObservationMiddleware
from observation_demo.server.routes import router
from observation_demo.server.service import FooService, UserService
from observation_demo.settings import Settings
from observation_demo.wiring import build_registry, build_tracer_provider, meter_handler_of

log = get_logger(__name__)


def create_app(
    *,
    settings: Settings,
    registry: ObservationRegistry | None = None,
    collector_registry: CollectorRegistry | None = None,
    tracer_provider: TracerProvider | None = None,
) -> FastAPI:
    # Configure structured logging once at process startup (before app serves requests).
    configure_logging(
        service_name=settings.service_name, level=settings.log_level, fmt=settings.log_format
    )

    if registry is None:
        tracer_provider = tracer_provider or build_tracer_provider(settings)
        registry = build_registry(
            settings,
            collector_registry=collector_registry,
            tracer_provider=tracer_provider,
        )

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env, observed_paths=settings.observed_paths)
        try:
            yield
        finally:
            # Flush span processors so the last spans are not lost.
            if tracer_provider is not None:
                tracer_provider.shutdown()
            log.info("shutdown")

    app = FastAPI(title="Observation Demo Server", version=__version__, lifespan=lifespan)

    app.state.registry = registry
    app.state.meter_handler = meter_handler_of(registry)
    app.state.foo_service = FooService(registry=registry, max_latency_ms=settings.max_latency_ms)
    app.state.user_service = UserService(registry=registry, max_latency_ms=settings.max_latency_ms)

    app.add_middleware(
        ObservationMiddleware,
        registry=registry,
        observed_paths=settings.observed_paths,
    )
    app.include_router(router)

    return app


# --- Module Notes -----------------------------------------------------------
# This file is intentionally small: app composition stays here; request handling stays
# in routes/services, observation semantics in `observation_demo.observation`.
