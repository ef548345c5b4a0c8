"""JSON-RPC 2.0 payload dispatcher.

Turns one inbound body (single request or batch) into the response
payload, or ``None`` when nothing must be sent back (all notifications).

Every item of a batch runs in its own task inside an ``anyio`` task
group; the dispatcher returns once all of them have settled.  Response
slots are addressed by item index, so the batch response keeps the
submission order regardless of completion order.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any

import anyio
from rpcwire.errors import JsonRpcServerError, ServerErrorCode
from rpcwire.jsonrpc import JsonRpcRequest, JsonRpcResponse, decode, encode

from rpcserver.registry import MethodRegistry

log = logging.getLogger(__name__)

_OMITTED = object()


def describe_exception(exc: BaseException) -> dict[str, Any]:
    """Serializable description of a handler failure for the ``data`` field."""
    return {"name": type(exc).__name__, "message": str(exc)}


class Dispatcher:
    """Runs JSON-RPC payloads against a ``MethodRegistry``."""

    def __init__(self, registry: MethodRegistry) -> None:
        self.registry = registry

    # -- Entry points --------------------------------------------------
    async def handle(self, body: bytes | str | None) -> Any | None:
        """Parse *body* and dispatch it.  Returns the response payload or ``None``."""
        if body is None or not body.strip():
            return JsonRpcServerError(ServerErrorCode.PARSE_ERROR, "empty body").to_dict()
        try:
            payload = decode(body)
        except ValueError as exc:
            # JSONDecodeError and UnicodeDecodeError both derive from ValueError
            log.warning("unparsable request body: %s", exc)
            return JsonRpcServerError(ServerErrorCode.PARSE_ERROR, str(exc)).to_dict()
        return await self.handle_payload(payload)

    async def handle_payload(self, payload: Any) -> Any | None:
        """Dispatch an already-decoded payload."""
        is_batch = isinstance(payload, list)
        if is_batch and not payload:
            return JsonRpcServerError(ServerErrorCode.INVALID_REQUEST, "empty batch").to_dict()
        items = payload if is_batch else [payload]

        slots: list[Any] = [_OMITTED] * len(items)
        async with anyio.create_task_group() as tg:
            for idx, item in enumerate(items):
                tg.start_soon(self._run_item, item, idx, slots)

        filled = [slot for slot in slots if slot is not _OMITTED]
        if not filled:
            return None
        if not is_batch:
            return filled[0]
        return filled

    # -- Per-item ------------------------------------------------------
    async def _run_item(self, item: Any, idx: int, slots: list[Any]) -> None:
        try:
            request = JsonRpcRequest.from_dict(item)
        except ValueError as exc:
            log.info("rpc ← invalid request at index %d: %s", idx, exc)
            slots[idx] = JsonRpcServerError(ServerErrorCode.INVALID_REQUEST, str(exc)).to_dict()
            return

        try:
            response = await self.invoke(request)
        except Exception as exc:
            log.exception("dispatch failure for %s", request.method)
            response = JsonRpcServerError(
                ServerErrorCode.INTERNAL_ERROR, str(exc), None if request.is_notification else request.id
            ).to_dict()
        if not request.is_notification:
            slots[idx] = response

    async def invoke(self, request: JsonRpcRequest) -> dict[str, Any]:
        """Run one validated request and return its response dict.

        Never raises for handler failures; they come back as error responses.
        """
        req_id = None if request.is_notification else request.id
        log.info("rpc ← %s(id=%s)", request.method, req_id)

        spec = self.registry.resolve(request.method)
        if spec is None:
            return JsonRpcServerError(ServerErrorCode.METHOD_NOT_FOUND, request.method, req_id).to_dict()

        try:
            args, kwargs = spec.bind(request.params)
        except TypeError as exc:
            return JsonRpcServerError(ServerErrorCode.INVALID_PARAMS, str(exc), req_id).to_dict()

        try:
            result = spec.handler(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            log.exception("handler error for %s", request.method)
            return JsonRpcServerError(
                ServerErrorCode.APPLICATION_ERROR, None, req_id, describe_exception(exc)
            ).to_dict()

        try:
            encode(result)
        except (TypeError, ValueError, RecursionError) as exc:
            log.error("unserializable result from %s: %s", request.method, exc)
            return JsonRpcServerError(ServerErrorCode.INTERNAL_ERROR, str(exc), req_id).to_dict()

        return JsonRpcResponse.success(req_id, result).to_dict()
