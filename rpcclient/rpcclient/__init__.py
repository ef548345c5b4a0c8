"""rpcclient — JSON-RPC 2.0 client engine and transports."""

from rpcclient.client import Batch, JsonRpcClient, MethodDescriptor, ServiceProxy, connect
from rpcclient.transport import HttpTransport, Transport

__all__ = [
    "JsonRpcClient",
    "Batch",
    "ServiceProxy",
    "MethodDescriptor",
    "connect",
    "Transport",
    "HttpTransport",
]
