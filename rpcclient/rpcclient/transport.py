"""Transport adapters for the JSON-RPC client.

The client only needs ``await transport.request(payload) -> bytes``.
``HttpTransport`` is the reference implementation on ``httpx.AsyncClient``.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Protocol, runtime_checkable

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

log = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


@runtime_checkable
class Transport(Protocol):
    """One request/response exchange.

    ``payload`` is the serialized request, or ``None`` for a discovery
    ``GET``.  Returns the raw response body (empty when there is none).
    Transport failures are raised as-is.
    """

    async def request(self, payload: bytes | None, *, method: str | None = None) -> bytes:
        ...


class HttpTransport:
    """JSON-RPC over HTTP(S).

    Parameters
    ----------
    url : str
        Endpoint URL, e.g. ``http://127.0.0.1:8100/api``.
    headers : Mapping[str, str] | None
        Extra headers; they override the JSON defaults.
    verify : bool
        TLS certificate verification.  On by default.
    timeout : float
        Request timeout in seconds.
    max_retries : int
        Attempts for connection establishment.  Only failures that happen
        before the request reaches the server are retried.
    http_transport : httpx.AsyncBaseTransport | None
        Low-level httpx transport, e.g. ``httpx.ASGITransport`` in tests.
    """

    def __init__(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
        verify: bool = True,
        timeout: float = 30.0,
        max_retries: int = 3,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        parsed = httpx.URL(url)
        if parsed.scheme not in ("http", "https"):
            raise ValueError(f'Protocol "{parsed.scheme}" not supported. Expected "http" or "https"')
        self.url = parsed
        self.headers = {**DEFAULT_HEADERS, **(headers or {})}
        self.max_retries = max(1, max_retries)
        self._client = httpx.AsyncClient(
            headers=self.headers,
            verify=verify,
            timeout=httpx.Timeout(timeout),
            transport=http_transport,
        )

    # -- Lifecycle -----------------------------------------------------

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    # -- Internal retry helper -----------------------------------------

    def _get_retrier(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=0.5, max=10),
            retry=retry_if_exception_type((httpx.ConnectError, httpx.ConnectTimeout)),
            reraise=True,
        )

    # -- Exchange ------------------------------------------------------

    async def request(self, payload: bytes | None, *, method: str | None = None) -> bytes:
        """POST *payload* (or GET when it is ``None``) and return the body.

        Raises ``httpx.HTTPStatusError`` for HTTP status >= 400.
        """
        method = method or ("GET" if payload is None else "POST")
        content = payload if method not in ("GET", "HEAD", "OPTIONS") else None

        async for attempt in self._get_retrier():
            with attempt:
                resp = await self._client.request(method, self.url, content=content)
        resp.raise_for_status()
        return resp.content
