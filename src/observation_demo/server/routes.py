"""
observation_demo.server.routes

Demo endpoints.

Responsibilities:
- `/foo`, `/user/{user_id}`: delegate to the observed services.
- `/healthz`: liveness probe.
- `/metrics`: Prometheus exposition of observation metrics.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from observation_demo.observability.logging import get_logger
from observation_demo.server.service import FooService, UserService

log = get_logger(__name__)

router = APIRouter()


def foo_service(request: Request) -> FooService:
    # Services are built once in `create_app` and stashed on app.state.
    return request.app.state.foo_service  # type: ignore[attr-defined]


def user_service(request: Request) -> UserService:
    return request.app.state.user_service  # type: ignore[attr-defined]


@router.get("/foo", response_class=PlainTextResponse)
async def foo(service: FooService = Depends(foo_service)) -> str:
    log.info("got_request")
    return await service.foo()


@router.get("/user/{user_id}", response_class=PlainTextResponse)
async def user(user_id: str, service: UserService = Depends(user_service)) -> str:
    return await service.greet(user_id)


@router.get("/healthz", tags=["health"])
async def healthz() -> dict[str, str]:
    # Liveness: process is up and serving HTTP.
    return {"status": "ok"}


@router.get("/metrics", include_in_schema=False)
async def metrics(request: Request) -> Response:
    meter_handler = request.app.state.meter_handler  # type: ignore[attr-defined]
    if meter_handler is None:
        # Observations disabled: nothing is recorded.
        return Response(content=b"", media_type=CONTENT_TYPE_LATEST)
    return Response(content=generate_latest(meter_handler.registry), media_type=CONTENT_TYPE_LATEST)


# --- Module Notes -----------------------------------------------------------
# Only `/foo` and `/user/*` are in the default `observed_paths`; health and metrics
# scrapes stay out of the request metrics.
