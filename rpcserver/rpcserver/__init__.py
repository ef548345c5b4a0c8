"""rpcserver — JSON-RPC 2.0 method registry, dispatcher and HTTP binding."""

from rpcserver.dispatcher import Dispatcher
from rpcserver.registry import DESCRIBE_METHOD, MethodRegistry, MethodSpec

__all__ = ["Dispatcher", "MethodRegistry", "MethodSpec", "DESCRIBE_METHOD"]
