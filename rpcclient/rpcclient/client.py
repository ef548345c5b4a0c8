"""JSON-RPC 2.0 client engine.

* ``call(method, *params)``   → result of the remote method
* ``notify(method, *params)`` → fire-and-forget, no id
* ``batch()``                 → builder; ``await batch.call(...).notify(...).do()``
* ``connect(url)``            → ``ServiceProxy`` exposing discovered methods

Talks to the server through a ``Transport``; ``HttpTransport`` is used
when the client is built from a URL.

Run directly for a quick demo::

    python -m rpcclient.client
"""

from __future__ import annotations

import functools
import itertools
import logging
import secrets
import threading
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable

from rpcwire.config import ClientSettings
from rpcwire.errors import ClientErrorCode, JsonRpcClientError, JsonRpcServerError
from rpcwire.jsonrpc import JsonRpcRequest, Params, decode, encode, is_response, is_valid_id

from rpcclient.transport import HttpTransport, Transport

log = logging.getLogger(__name__)

# Names a discovered method may not shadow on a ServiceProxy.
RESERVED_NAMES = frozenset({"call", "notify", "batch"})


def _params(args: tuple[Any, ...], kwargs: dict[str, Any]) -> Params:
    if args and kwargs:
        raise TypeError("JSON-RPC params are either positional or named, not both")
    return dict(kwargs) if kwargs else list(args)


def _invalid_response(detail: str | None = None) -> JsonRpcClientError:
    return JsonRpcClientError(ClientErrorCode.INVALID_RESPONSE, detail)


def _has_error(res: Any) -> bool:
    return isinstance(res, dict) and res.get("error") is not None


class JsonRpcClient:
    """Async JSON-RPC 2.0 client.

    Ids are ``"<prefix>-<n>"``: a random prefix per client instance and a
    counter starting at 1.  An id is reserved before the request is sent,
    so concurrent callers never share one.
    """

    def __init__(self, transport: Transport) -> None:
        self.transport = transport
        self.id_prefix = secrets.token_hex(10)
        self._id_counter = itertools.count(1)
        self._id_lock = threading.Lock()

    @classmethod
    def from_url(cls, url: str, **options: Any) -> "JsonRpcClient":
        """Client over ``HttpTransport(url, **options)``."""
        return cls(HttpTransport(url, **options))

    @classmethod
    def from_settings(cls, settings: ClientSettings | None = None) -> "JsonRpcClient":
        settings = settings or ClientSettings.from_env()
        return cls.from_url(
            settings.url,
            verify=settings.verify_tls,
            timeout=settings.timeout,
            max_retries=settings.max_retries,
        )

    # -- Lifecycle -----------------------------------------------------

    async def aclose(self) -> None:
        aclose = getattr(self.transport, "aclose", None)
        if aclose is not None:
            await aclose()

    async def __aenter__(self) -> "JsonRpcClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    # -- Internals -----------------------------------------------------

    def next_id(self) -> str:
        with self._id_lock:
            return f"{self.id_prefix}-{next(self._id_counter)}"

    async def _exchange(self, payload: Any) -> Any | None:
        """Send *payload*; return the decoded body, or ``None`` if it is empty."""
        body = await self.transport.request(encode(payload))
        if not body or not body.strip():
            return None
        try:
            return decode(body)
        except ValueError as exc:
            raise JsonRpcClientError(ClientErrorCode.RESPONSE_PARSE_ERROR, str(exc)) from None

    @staticmethod
    def _check_id(req_id: Any, res_id: Any) -> None:
        if res_id != req_id:
            raise JsonRpcClientError(
                ClientErrorCode.MISMATCHED_IDS, f"request id {req_id}; response id {res_id}"
            )

    # -- Unary RPC -----------------------------------------------------

    async def call(self, method: str, *args: Any, **kwargs: Any) -> Any:
        """Call *method* and return its result.

        Raises ``JsonRpcServerError`` for an error response and
        ``JsonRpcClientError`` when the response is absent, unparsable,
        malformed or carries another id.
        """
        req = JsonRpcRequest(method=method, params=_params(args, kwargs), id=self.next_id())
        log.debug("rpc → %s(id=%s)", method, req.id)

        res = await self._exchange(req.to_dict())
        if res is None:
            raise _invalid_response("empty response")
        if not isinstance(res, dict):
            raise _invalid_response()

        if _has_error(res):
            err = JsonRpcServerError.from_dict(res)
            # a null id means the server could not read ours
            if err.id is not None:
                self._check_id(req.id, err.id)
            raise err
        if "result" in res:
            self._check_id(req.id, res.get("id"))
            if res.get("jsonrpc") != "2.0":
                raise _invalid_response("missing or invalid 'jsonrpc' field")
            return res["result"]

        raise _invalid_response()

    async def notify(self, method: str, *args: Any, **kwargs: Any) -> None:
        """Send a notification.  An empty reply body is success."""
        req = JsonRpcRequest(method=method, params=_params(args, kwargs))
        log.debug("rpc → %s(notification)", method)

        res = await self._exchange(req.to_dict())
        if res is None:
            return None
        if _has_error(res):
            raise JsonRpcServerError.from_dict(res)
        raise _invalid_response("unexpected reply to a notification")

    def batch(self) -> "Batch":
        return Batch(self)

    # -- Discovery -----------------------------------------------------

    async def discover(self) -> list["MethodDescriptor"]:
        """Fetch the server's method descriptions with a ``GET``."""
        body = await self.transport.request(None, method="GET")
        try:
            raw = decode(body)
        except ValueError as exc:
            raise JsonRpcClientError(ClientErrorCode.RESPONSE_PARSE_ERROR, str(exc)) from None
        if not isinstance(raw, list):
            raise _invalid_response("method description must be an array")

        descriptors = []
        for item in raw:
            if not isinstance(item, dict) or not isinstance(item.get("name"), str):
                log.debug("skipping malformed method description %r", item)
                continue
            params = item.get("params")
            params = tuple(str(p) for p in params) if isinstance(params, list) else ()
            descriptors.append(MethodDescriptor(item["name"], params))
        return descriptors


class Batch:
    """Accumulates calls and notifications sent as one JSON array.

    ``do()`` returns one entry per call; failed entries are returned as
    ``JsonRpcServerError`` / ``JsonRpcClientError`` instances, not raised.
    Entries are ordered by call submission when their id matches a
    reserved one; the rest (null or foreign ids, malformed entries) follow
    in the order the server sent them.
    """

    def __init__(self, client: JsonRpcClient) -> None:
        self._client = client
        self._requests: list[JsonRpcRequest] = []

    def __len__(self) -> int:
        return len(self._requests)

    @property
    def ids(self) -> list[Any]:
        return [r.id for r in self._requests if not r.is_notification]

    def call(self, method: str, *args: Any, **kwargs: Any) -> "Batch":
        self._requests.append(
            JsonRpcRequest(method=method, params=_params(args, kwargs), id=self._client.next_id())
        )
        return self

    def notify(self, method: str, *args: Any, **kwargs: Any) -> "Batch":
        self._requests.append(JsonRpcRequest(method=method, params=_params(args, kwargs)))
        return self

    async def do(self) -> list[Any] | None:
        """Send the batch.  ``None`` when the server sent no body."""
        log.debug("rpc → batch of %d", len(self._requests))
        res = await self._client._exchange([r.to_dict() for r in self._requests])
        if res is None:
            return None
        if not isinstance(res, list):
            if _has_error(res):
                raise JsonRpcServerError.from_dict(res)
            raise _invalid_response("batch response must be an array")

        positions = {rid: pos for pos, rid in enumerate(self.ids)}
        placed: dict[int, Any] = {}
        trailing: list[Any] = []
        for raw in res:
            value = _batch_entry(raw)
            rid = raw.get("id") if isinstance(raw, dict) else None
            pos = positions.get(rid) if rid is not None and is_valid_id(rid) else None
            if pos is None or pos in placed:
                trailing.append(value)
            else:
                placed[pos] = value
        return [placed[pos] for pos in sorted(placed)] + trailing


def _batch_entry(raw: Any) -> Any:
    if not is_response(raw):
        return _invalid_response()
    if "error" in raw:
        return JsonRpcServerError.from_dict(raw)
    return raw["result"]


# ── Discovery proxy ──────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class MethodDescriptor:
    name: str
    params: tuple[str, ...] = ()


class ServiceProxy:
    """Lookup-based access to discovered methods.

    ``proxy.sum(2, 3)`` and ``proxy["sum"](2, 3)`` both forward to
    ``client.call("sum", 2, 3)``.  ``call``, ``notify`` and ``batch`` always
    refer to the client operations, never to remote methods.
    """

    def __init__(self, client: JsonRpcClient, descriptors: Iterable[MethodDescriptor] = ()) -> None:
        self.client = client
        self.methods: dict[str, MethodDescriptor] = {
            d.name: d for d in descriptors if d.name not in RESERVED_NAMES
        }

    @classmethod
    async def discover(cls, client: JsonRpcClient) -> "ServiceProxy":
        """Build a proxy from the server's description.

        Discovery is best-effort: on any failure the proxy is returned
        with no remote methods.
        """
        try:
            descriptors = await client.discover()
        except Exception as exc:
            log.warning("method discovery failed, continuing without it: %s", exc)
            descriptors = []
        return cls(client, descriptors)

    # -- Client operations ---------------------------------------------

    async def call(self, method: str, *args: Any, **kwargs: Any) -> Any:
        return await self.client.call(method, *args, **kwargs)

    async def notify(self, method: str, *args: Any, **kwargs: Any) -> None:
        await self.client.notify(method, *args, **kwargs)

    def batch(self) -> Batch:
        return self.client.batch()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "ServiceProxy":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    # -- Method lookup -------------------------------------------------

    def __contains__(self, name: object) -> bool:
        return name in self.methods

    def __getitem__(self, name: str) -> Callable[..., Awaitable[Any]]:
        if name not in self.methods:
            raise KeyError(name)
        return functools.partial(self.client.call, name)

    def __getattr__(self, name: str) -> Callable[..., Awaitable[Any]]:
        methods = self.__dict__.get("methods", {})
        if name.startswith("_") or name not in methods:
            raise AttributeError(f"{type(self).__name__!r} object has no remote method {name!r}")
        return functools.partial(self.client.call, name)

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | set(self.methods))


async def connect(url: str, **options: Any) -> ServiceProxy:
    """Create a client for *url* and discover its methods."""
    return await ServiceProxy.discover(JsonRpcClient.from_url(url, **options))


# ── Demo entrypoint ──────────────────────────────────────────────────


async def _demo() -> None:
    from dotenv import load_dotenv

    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    settings = ClientSettings.from_env()

    async with await connect(
        settings.url,
        verify=settings.verify_tls,
        timeout=settings.timeout,
        max_retries=settings.max_retries,
    ) as proxy:
        print(f"── methods: {sorted(proxy.methods)}")

        print("── sum ──")
        print(f"  result: {await proxy.sum(17, 25)}")

        print("── mirror ──")
        print(f"  result: {await proxy.call('mirror', {'msg': 'hello'})}")

        print("── batch ──")
        results = await proxy.batch().call("ping").notify("log_message", "hi").call("missing").do()
        for r in results or []:
            print(f"  entry: {r!r}")

        print("── done ──")


if __name__ == "__main__":
    import anyio

    anyio.run(_demo)
