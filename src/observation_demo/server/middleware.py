"""
observation_demo.server.middleware

HTTP middleware creating one observation per request.

Responsibilities:
- Wrap requests whose path matches `observed_paths` in an `http.server.requests`
  observation (scope open for the whole request).
- Generate/propagate request IDs and bind them into structlog contextvars.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from observation_demo.http_conventions import (
    DEFAULT_SERVER_CONVENTION,
    HTTP_SERVER_REQUESTS,
    HttpServerContext,
)
from observation_demo.observation.registry import ObservationRegistry


class ObservationMiddleware(BaseHTTPMiddleware):
    """
    - Ensures every request has a request id
    - Observes requests on the configured path prefixes; others pass through untouched
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        registry: ObservationRegistry,
        observed_paths: Sequence[str],
    ) -> None:
        super().__init__(app)
        self._registry = registry
        self._observed_paths = tuple(observed_paths)

    def _observed(self, path: str) -> bool:
        return any(path == p or path.startswith(p.rstrip("/") + "/") for p in self._observed_paths)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        # Prefer a caller-provided request id for continuity; otherwise generate one.
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        with structlog.contextvars.bound_contextvars(request_id=request_id):
            if self._observed(request.url.path):
                response = await self._observe(request, call_next)
            else:
                response = await call_next(request)

        response.headers["x-request-id"] = request_id
        return response

    async def _observe(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        context = HttpServerContext(request)
        observation = self._registry.create(
            HTTP_SERVER_REQUESTS,
            lambda: context,
            default_convention=DEFAULT_SERVER_CONVENTION,
        )

        async def _handle() -> Response:
            context.response = await call_next(request)
            return context.response

        # Exceptions are recorded on the observation and re-raised to Starlette.
        return await observation.observe_async(_handle)


# --- Module Notes -----------------------------------------------------------
# Path matching is by prefix segment: "/user" covers "/user/42" but not "/users".
