"""JSON-RPC 2.0 wire-format models and codec.

Pure data — no I/O, no business logic.  Both the client and the server
import these for serialisation only.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Any

from rpcwire.errors import JsonRpcServerError, ServerErrorCode

JSONRPC_VERSION = "2.0"

# ── Standard error codes (JSON-RPC 2.0 §5.1) ────────────────────────
PARSE_ERROR = ServerErrorCode.PARSE_ERROR.number
INVALID_REQUEST = ServerErrorCode.INVALID_REQUEST.number
METHOD_NOT_FOUND = ServerErrorCode.METHOD_NOT_FOUND.number
INVALID_PARAMS = ServerErrorCode.INVALID_PARAMS.number
INTERNAL_ERROR = ServerErrorCode.INTERNAL_ERROR.number
APPLICATION_ERROR = ServerErrorCode.APPLICATION_ERROR.number


class _Missing:
    """Marker for an absent ``id`` (a notification), distinct from ``null``."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_ID"

    def __bool__(self) -> bool:
        return False


NO_ID: Any = _Missing()

Params = list[Any] | dict[str, Any]


# ── Codec ────────────────────────────────────────────────────────────


def to_jsonable(value: Any) -> Any:
    """Replace non-finite floats with ``None`` the way ``JSON.stringify`` does.

    Tuples become lists.  Anything else is returned untouched and left for
    ``json`` to accept or reject.
    """
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def encode(payload: Any) -> bytes:
    """Serialise *payload* to UTF-8 JSON.  Raises ``TypeError``/``ValueError``."""
    # ASCII output escapes lone surrogates, which UTF-8 cannot carry
    return json.dumps(to_jsonable(payload), allow_nan=False).encode("ascii")


def decode(body: bytes | str) -> Any:
    """Parse a JSON body.  Raises ``ValueError`` on bad input."""
    if isinstance(body, bytes):
        body = body.decode("utf-8")
    try:
        return json.loads(body)
    except RecursionError:
        raise ValueError("JSON nested too deeply") from None


def is_valid_id(value: Any) -> bool:
    return value is None or isinstance(value, str) or (
        isinstance(value, (int, float)) and not isinstance(value, bool)
    )


# ── Models ───────────────────────────────────────────────────────────
@dataclass(slots=True)
class JsonRpcRequest:
    """JSON-RPC 2.0 request.

    A request built without ``id`` is a notification.
    """

    method: str
    params: Params = field(default_factory=list)
    id: Any = NO_ID
    jsonrpc: str = JSONRPC_VERSION

    @property
    def is_notification(self) -> bool:
        return self.id is NO_ID

    # -- Convenience ---------------------------------------------------
    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"jsonrpc": self.jsonrpc, "method": self.method, "params": self.params}
        if not self.is_notification:
            d["id"] = self.id
        return d

    @classmethod
    def from_dict(cls, raw: Any) -> "JsonRpcRequest":
        """Parse a raw dict into a request — raises ``ValueError`` on bad input.

        ``params`` may be omitted and defaults to an empty list, as JSON-RPC 2.0
        allows; only a present ``params`` of another type is rejected.
        """
        if not isinstance(raw, dict):
            raise ValueError("request must be a JSON object")
        if raw.get("jsonrpc") != JSONRPC_VERSION:
            raise ValueError("missing or invalid 'jsonrpc' field")
        method = raw.get("method")
        if not isinstance(method, str):
            raise ValueError("missing or invalid 'method' field")
        params = raw.get("params", [])
        if not isinstance(params, (list, dict)):
            raise ValueError("'params' must be a JSON array or object")
        req_id = raw.get("id", NO_ID)
        if req_id is not NO_ID and not is_valid_id(req_id):
            raise ValueError("'id' must be a string, number or null")
        return cls(method=method, params=params, id=req_id)


@dataclass(slots=True)
class JsonRpcResponse:
    """Outbound JSON-RPC 2.0 response."""

    id: Any
    result: Any = None
    error: JsonRpcServerError | None = None
    jsonrpc: str = JSONRPC_VERSION

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"jsonrpc": self.jsonrpc}
        if self.error is not None:
            d["error"] = self.error.to_error_dict()
        else:
            d["result"] = self.result
        d["id"] = self.id
        return d

    # -- Factories -----------------------------------------------------
    @classmethod
    def success(cls, req_id: Any, result: Any) -> "JsonRpcResponse":
        return cls(id=req_id, result=result)

    @classmethod
    def fail(cls, error: JsonRpcServerError) -> "JsonRpcResponse":
        return cls(id=error.id, error=error)


def is_response(raw: Any) -> bool:
    """True for a well-formed response object: version tag plus exactly one of result/error."""
    if not isinstance(raw, dict) or raw.get("jsonrpc") != JSONRPC_VERSION:
        return False
    return ("result" in raw) != ("error" in raw)
