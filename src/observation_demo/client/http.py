"""
observation_demo.client.http

HTTP client boundary used by the demo client to call the demo server.

Responsibilities:
- Observe each outgoing request as a child `http.client.requests` observation.
- Provide a stable interface the runner calls instead of raw httpx.
"""

from __future__ import annotations

import httpx

from observation_demo.http_conventions import (
    DEFAULT_CLIENT_CONVENTION,
    HTTP_CLIENT_REQUESTS,
    HttpClientContext,
)
from observation_demo.observation.registry import ObservationRegistry


class ServerClient:
    """
    Requests made inside an open observation scope become its children, so the
    client span nests under the runner's span.
    """

    def __init__(self, *, http: httpx.AsyncClient, registry: ObservationRegistry) -> None:
        self._http = http
        self._registry = registry

    async def foo(self) -> str:
        r = await self._request("GET", "/foo")
        return r.text

    async def user(self, *, user_id: str) -> str:
        r = await self._request("GET", "/user/{user_id}", user_id=user_id)
        return r.text

    async def _request(self, method: str, uri_template: str, **path_params: str) -> httpx.Response:
        path = uri_template.format(**path_params)
        context = HttpClientContext(
            method=method,
            uri_template=uri_template,
            url=str(self._http.base_url.join(path)),
        )
        observation = self._registry.create(
            HTTP_CLIENT_REQUESTS,
            lambda: context,
            default_convention=DEFAULT_CLIENT_CONVENTION,
        )

        async def _send() -> httpx.Response:
            context.response = await self._http.request(method, path)
            context.response.raise_for_status()
            return context.response

        return await observation.observe_async(_send)


# --- Module Notes -----------------------------------------------------------
# base_url and timeouts are configured on the AsyncClient by the caller (see
# `observation_demo.client.__main__`).
