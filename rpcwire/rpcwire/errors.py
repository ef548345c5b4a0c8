"""JSON-RPC 2.0 error taxonomy.

Three families with disjoint numeric pools:

* ``ProtocolErrorCode`` — generic protocol error, the fallback of every family.
* ``ServerErrorCode``   — codes sent on the wire (JSON-RPC 2.0 §5.1 plus
  the server-defined ``APPLICATION_ERROR``).
* ``ClientErrorCode``   — failures detected locally by the client.  These
  never cross the wire.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Base for error families.  Members are ``(number, default_message)``."""

    def __init__(self, number: int, default_message: str) -> None:
        self.number = number
        self.default_message = default_message

    @classmethod
    def from_number(cls, number: int) -> "ErrorCode | None":
        for member in cls:
            if member.number == number:
                return member
        return None

    @classmethod
    def from_name(cls, name: str) -> "ErrorCode | None":
        return cls.__members__.get(name)


class ProtocolErrorCode(ErrorCode):
    E_JSONRPC20 = (-32000, "Json RPC 2.0 protocol error")


class ServerErrorCode(ErrorCode):
    # server-defined
    APPLICATION_ERROR = (-32099, "Application error")
    # pre-defined
    INVALID_REQUEST = (-32600, "Invalid Request")
    METHOD_NOT_FOUND = (-32601, "Method not found")
    INVALID_PARAMS = (-32602, "Invalid params")
    INTERNAL_ERROR = (-32603, "Internal error")
    PARSE_ERROR = (-32700, "Parse error")


class ClientErrorCode(ErrorCode):
    INVALID_RESPONSE = (-31600, "Invalid response")
    MISMATCHED_IDS = (-31601, "Mismatched IDs")
    RESPONSE_PARSE_ERROR = (-31700, "Response parse error")


# ── Family registry ──────────────────────────────────────────────────

ERROR_FAMILIES: dict[str, type[ErrorCode]] = {
    "protocol": ProtocolErrorCode,
    "server": ServerErrorCode,
    "client": ClientErrorCode,
}


def _check_disjoint(families: dict[str, type[ErrorCode]]) -> None:
    seen: dict[int, str] = {}
    for family, codes in families.items():
        for member in codes:
            owner = seen.setdefault(member.number, family)
            if owner != family:
                raise RuntimeError(
                    f"error code {member.number} registered by both {owner!r} and {family!r}"
                )


_check_disjoint(ERROR_FAMILIES)


def _compose_message(default: str, message: str | None) -> str:
    if not message:
        return default
    if message.startswith(default):
        return message
    return f"{default}: {message}"


# ── Exceptions ───────────────────────────────────────────────────────


class JsonRpcError(Exception):
    """Base JSON-RPC error.

    ``code`` may be an ``ErrorCode`` member, a symbolic name
    (``"METHOD_NOT_FOUND"``) or a numeric code (``-32601``).  Lookups try the
    class's own family first, then the protocol pool; anything unknown falls
    back to ``ProtocolErrorCode.E_JSONRPC20``.  An unregistered numeric code is
    still kept in ``number``.
    """

    family: type[ErrorCode] = ProtocolErrorCode

    def __init__(self, code: ErrorCode | str | int | None = None, message: str | None = None) -> None:
        member, number = self._resolve(code)
        self.code = member
        self.number = number
        self.message = _compose_message(member.default_message, message)
        super().__init__(self.message)

    @property
    def name(self) -> str:
        """Symbolic error code."""
        return self.code.name

    @classmethod
    def _resolve(cls, code: ErrorCode | str | int | None) -> tuple[ErrorCode, int]:
        fallback = ProtocolErrorCode.E_JSONRPC20
        if isinstance(code, ErrorCode):
            if isinstance(code, (cls.family, ProtocolErrorCode)):
                return code, code.number
            return fallback, fallback.number
        # bool is an int subclass; it is never a valid code
        if isinstance(code, int) and not isinstance(code, bool):
            member = cls.family.from_number(code) or ProtocolErrorCode.from_number(code)
            return member or fallback, code
        if isinstance(code, str):
            member = cls.family.from_name(code) or ProtocolErrorCode.from_name(code)
            if member is not None:
                return member, member.number
        return fallback, fallback.number

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name}, {self.number}, {self.message!r})"


class JsonRpcServerError(JsonRpcError):
    """Error that travels on the wire as an error response."""

    family = ServerErrorCode

    def __init__(
        self,
        code: ErrorCode | str | int | None = None,
        message: str | None = None,
        id: Any = None,
        data: Any = None,
    ) -> None:
        super().__init__(code, message)
        self.id = id
        self.data = data

    def to_error_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"code": self.number, "message": self.message}
        if self.data is not None:
            d["data"] = self.data
        return d

    def to_dict(self) -> dict[str, Any]:
        return {"jsonrpc": "2.0", "error": self.to_error_dict(), "id": self.id}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "JsonRpcServerError":
        """Rebuild from a wire error response ``{"error": {...}, "id": ...}``."""
        error = raw.get("error")
        if not isinstance(error, dict):
            error = {}
        code = error.get("code")
        message = error.get("message")
        return cls(
            code if isinstance(code, int) else None,
            message if isinstance(message, str) else None,
            raw.get("id"),
            error.get("data"),
        )


class JsonRpcClientError(JsonRpcError):
    """Failure detected by the client itself (bad, absent or mismatched response)."""

    family = ClientErrorCode
