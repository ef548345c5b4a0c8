"""rpcwire — JSON-RPC 2.0 wire-format models and error taxonomy."""

from rpcwire.errors import (
    ERROR_FAMILIES,
    ClientErrorCode,
    ErrorCode,
    JsonRpcClientError,
    JsonRpcError,
    JsonRpcServerError,
    ProtocolErrorCode,
    ServerErrorCode,
)
from rpcwire.jsonrpc import (
    APPLICATION_ERROR,
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    NO_ID,
    PARSE_ERROR,
    JsonRpcRequest,
    JsonRpcResponse,
)

__all__ = [
    "JsonRpcRequest",
    "JsonRpcResponse",
    "NO_ID",
    "JsonRpcError",
    "JsonRpcServerError",
    "JsonRpcClientError",
    "ErrorCode",
    "ProtocolErrorCode",
    "ServerErrorCode",
    "ClientErrorCode",
    "ERROR_FAMILIES",
    "PARSE_ERROR",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "INVALID_PARAMS",
    "INTERNAL_ERROR",
    "APPLICATION_ERROR",
]
