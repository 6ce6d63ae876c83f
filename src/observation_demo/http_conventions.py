"""
observation_demo.http_conventions

Contexts and default naming conventions for HTTP observations.

Responsibilities:
- `HttpServerContext` / `HttpClientContext`: carry request/response objects.
- Default conventions producing `method`, `uri`, `status`, `outcome` (low cardinality)
  and `http.url` (high cardinality) tags plus an `http <method>` contextual name.
"""

from __future__ import annotations

from collections.abc import Iterable

import httpx
from starlette.requests import Request
from starlette.responses import Response

from observation_demo.observation.context import Context
from observation_demo.observation.convention import ObservationConvention
from observation_demo.observation.keyvalues import KeyValue

HTTP_SERVER_REQUESTS = "http.server.requests"
HTTP_CLIENT_REQUESTS = "http.client.requests"

UNKNOWN = "UNKNOWN"


def outcome(status: int | None) -> str:
    if status is None:
        return UNKNOWN
    if 100 <= status < 200:
        return "INFORMATIONAL"
    if 200 <= status < 300:
        return "SUCCESS"
    if 300 <= status < 400:
        return "REDIRECTION"
    if 400 <= status < 500:
        return "CLIENT_ERROR"
    if 500 <= status < 600:
        return "SERVER_ERROR"
    return UNKNOWN


class HttpServerContext(Context):
    def __init__(self, request: Request) -> None:
        super().__init__()
        self.request = request
        self.response: Response | None = None

    @property
    def status(self) -> int | None:
        if self.response is not None:
            return self.response.status_code
        # The app raised before producing a response; the server answers 500.
        return 500 if self.error is not None else None

    @property
    def route_template(self) -> str:
        route = self.request.scope.get("route")
        path = getattr(route, "path", None)
        if path:
            return path
        return "NOT_FOUND" if self.status == 404 else UNKNOWN


class HttpClientContext(Context):
    def __init__(self, *, method: str, uri_template: str, url: str) -> None:
        super().__init__()
        self.method = method
        self.uri_template = uri_template
        self.url = url
        self.response: httpx.Response | None = None

    @property
    def status(self) -> int | None:
        return self.response.status_code if self.response is not None else None


class DefaultHttpServerConvention(ObservationConvention):
    def supports_context(self, context: Context) -> bool:
        return isinstance(context, HttpServerContext)

    def get_contextual_name(self, context: HttpServerContext) -> str | None:  # type: ignore[override]
        return f"http {context.request.method.lower()}"

    def get_low_cardinality_key_values(self, context: HttpServerContext) -> Iterable[KeyValue]:  # type: ignore[override]
        status = context.status
        return (
            KeyValue.of("method", context.request.method),
            KeyValue.of("uri", context.route_template),
            KeyValue.of("status", status if status is not None else UNKNOWN),
            KeyValue.of("outcome", outcome(status)),
        )

    def get_high_cardinality_key_values(self, context: HttpServerContext) -> Iterable[KeyValue]:  # type: ignore[override]
        return (KeyValue.of("http.url", str(context.request.url)),)


class DefaultHttpClientConvention(ObservationConvention):
    def supports_context(self, context: Context) -> bool:
        return isinstance(context, HttpClientContext)

    def get_contextual_name(self, context: HttpClientContext) -> str | None:  # type: ignore[override]
        return f"http {context.method.lower()}"

    def get_low_cardinality_key_values(self, context: HttpClientContext) -> Iterable[KeyValue]:  # type: ignore[override]
        status = context.status
        return (
            KeyValue.of("method", context.method),
            KeyValue.of("uri", context.uri_template),
            # No response: the request never made it (connect error, timeout, ...).
            KeyValue.of("status", status if status is not None else "CLIENT_ERROR"),
            KeyValue.of("outcome", outcome(status)),
        )

    def get_high_cardinality_key_values(self, context: HttpClientContext) -> Iterable[KeyValue]:  # type: ignore[override]
        return (KeyValue.of("http.url", context.url),)


DEFAULT_SERVER_CONVENTION = DefaultHttpServerConvention()
DEFAULT_CLIENT_CONVENTION = DefaultHttpClientConvention()


# --- Module Notes -----------------------------------------------------------
# Conventions run at start (route and status still unknown) and again at stop, when
# the stop-time values replace the start-time placeholders.
