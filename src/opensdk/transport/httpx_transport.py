from __future__ import annotations

from typing import Any, Optional

import httpx

from opensdk.client.resource import RequestContext
from opensdk.core.errors import TransportError
from opensdk.domain.models import BODY_METHODS


def _parse_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class HttpxTransport:
    """
    Async transport over httpx.

    HTTP >= 400 raises TransportError with the status and parsed body, so the
    retry classifier sees the same fields as for any other transport.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: float = 30.0):
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def __call__(self, request: RequestContext) -> Any:
        kwargs: dict[str, Any] = {"params": request.params or None, "headers": request.headers}
        if request.method in BODY_METHODS:
            kwargs["json"] = request.data

        try:
            response = await self.client.request(request.method, request.url, **kwargs)
        except httpx.TimeoutException as e:
            raise TransportError(str(e) or "request timed out", code="ETIMEDOUT", name="TimeoutError") from e
        except httpx.TransportError as e:
            raise TransportError(str(e) or type(e).__name__, code="ECONNRESET", name=type(e).__name__) from e

        body = _parse_body(response)
        if response.status_code >= 400:
            raise TransportError(
                f"{response.status_code} {response.reason_phrase}",
                status=response.status_code,
                response={"status": response.status_code, "data": body},
            )
        return body

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "HttpxTransport":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()
