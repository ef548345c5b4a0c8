"""Integration tests — full roundtrip client → HTTP → dispatcher → client.

Uses httpx.ASGITransport for a realistic HTTP test without processes.
"""

import anyio
import httpx
import pytest
from rpcclient.client import JsonRpcClient, ServiceProxy, connect
from rpcclient.transport import HttpTransport
from rpcserver.registry import DESCRIBE_METHOD, MethodRegistry
from rpcserver.server import create_app
from rpcwire.errors import JsonRpcServerError, ServerErrorCode


def build_registry() -> MethodRegistry:
    registry = MethodRegistry()

    def ping():
        return "pong"

    async def promise_string():
        await anyio.sleep(0)
        return "promise string"

    async def promise_object():
        return {"prop": "val"}

    def exception_error():
        raise Exception("throw Error")

    async def exception_error_promise():
        raise Exception("reject Error")

    registry.add(
        ping,
        "mirror", lambda p: p,
        "sum", lambda a, b: a + b,
        "call", lambda: "API method 'call'",
        "notify", lambda unp1, unp2: f"API method 'notify'. Params: '{unp1}', '{unp2}'",
        "batch", lambda unp: f"API method 'batch'. Params: '{unp}'",
        ("inv", lambda a: 1 / a, "ignored"),
        "restParams", lambda f, s, *args: [f, s, args[0], args[-1]],
        promise_string,
        promise_object,
        exception_error,
        exception_error_promise,
    )
    return registry


@pytest.fixture
def asgi():
    return httpx.ASGITransport(app=create_app(build_registry(), path="/api"))  # type: ignore[arg-type]


@pytest.fixture
async def client(asgi):
    """JsonRpcClient wired to the in-process Starlette app."""
    rpc = JsonRpcClient(HttpTransport("http://test/api", http_transport=asgi))
    yield rpc
    await rpc.aclose()


@pytest.fixture
async def proxy(asgi):
    proxy = await connect("http://test/api", http_transport=asgi)
    yield proxy
    await proxy.aclose()


# ── Discovery ────────────────────────────────────────────────────────


@pytest.mark.anyio
async def test_proxy_exposes_discovered_methods(proxy):
    for name in ("ping", "mirror", "sum", "inv", "promise_string", "exception_error"):
        assert name in proxy
    for name in ("call", "notify", "batch", DESCRIBE_METHOD):
        assert name not in proxy.methods


@pytest.mark.anyio
async def test_describe_call(client):
    description = await client.call(DESCRIBE_METHOD)
    assert description[:4] == [
        {"name": "ping", "params": []},
        {"name": "mirror", "params": ["p"]},
        {"name": "sum", "params": ["a", "b"]},
        {"name": "call", "params": []},
    ]
    assert {"name": "restParams", "params": ["f", "s", "...args"]} in description


@pytest.mark.anyio
async def test_discovery_against_unreachable_server():
    def refuse(request):
        raise httpx.ConnectError("refused", request=request)

    proxy = await connect(
        "https://127.0.0.1/api", http_transport=httpx.MockTransport(refuse), max_retries=1
    )
    assert proxy.methods == {}
    with pytest.raises(httpx.ConnectError):
        await proxy.call("ping")


# ── Calls ────────────────────────────────────────────────────────────


@pytest.mark.anyio
async def test_calls(client):
    assert await client.call("ping") == "pong"
    assert await client.call("mirror", {"num": 1, "str": "str", "obj": {"bool": True}}) == {
        "num": 1,
        "str": "str",
        "obj": {"bool": True},
    }
    assert await client.call("sum", 2, 3) == 5
    assert await client.call("inv", 2) == 0.5
    assert await client.call("call") == "API method 'call'"
    assert await client.call("batch", True) == "API method 'batch'. Params: 'True'"
    assert await client.call("restParams", "first", "second", "rest_0", {"must": "be"}, {"rest": "last"}) == [
        "first",
        "second",
        "rest_0",
        {"rest": "last"},
    ]


@pytest.mark.anyio
async def test_calls_through_proxy(proxy):
    assert await proxy.ping() == "pong"
    assert await proxy.sum(2, -3) == -1
    assert await proxy.inv(-2) == -0.5
    assert await proxy.promise_string() == "promise string"
    assert await proxy.promise_object() == {"prop": "val"}


@pytest.mark.anyio
async def test_concurrent_calls(client):
    results = {}

    async def run(i):
        results[i] = await client.call("sum", i, i)

    async with anyio.create_task_group() as tg:
        for i in range(10):
            tg.start_soon(run, i)
    assert results == {i: 2 * i for i in range(10)}


@pytest.mark.anyio
async def test_method_not_found(client):
    with pytest.raises(JsonRpcServerError, match="Method not found: miss_func_1") as exc_info:
        await client.call("miss_func_1")
    assert exc_info.value.number == -32601


@pytest.mark.anyio
async def test_application_errors(proxy):
    with pytest.raises(JsonRpcServerError, match="Application error") as exc_info:
        await proxy.exception_error()
    assert exc_info.value.code is ServerErrorCode.APPLICATION_ERROR
    assert exc_info.value.data == {"name": "Exception", "message": "throw Error"}

    with pytest.raises(JsonRpcServerError) as exc_info:
        await proxy.exception_error_promise()
    assert exc_info.value.data == {"name": "Exception", "message": "reject Error"}

    with pytest.raises(JsonRpcServerError) as exc_info:
        await proxy.inv(0)
    assert exc_info.value.data["name"] == "ZeroDivisionError"


@pytest.mark.anyio
async def test_invalid_params(client):
    with pytest.raises(JsonRpcServerError) as exc_info:
        await client.call("sum", 1)
    assert exc_info.value.code is ServerErrorCode.INVALID_PARAMS


# ── Notifications ────────────────────────────────────────────────────


@pytest.mark.anyio
async def test_notifications(client):
    for method, params in [
        ("miss_func_1", ()),
        ("ping", ()),
        ("notify", ({}, "2")),
        ("exception_error", ()),
        ("sum", (1,)),
    ]:
        assert await client.notify(method, *params) is None


# ── Batches ──────────────────────────────────────────────────────────


@pytest.mark.anyio
async def test_batch(client):
    result = await (
        client.batch()
        .call("miss_func_1")
        .call("ping")
        .notify("mirror", 1)
        .call("sum", -2, 3)
        .notify("inv", 0)
        .notify("notify", {}, "2")
        .notify("miss_func_2")
        .call("batch", False)
        .do()
    )
    assert len(result) == 4
    assert isinstance(result[0], JsonRpcServerError)
    assert str(result[0]) == "Method not found: miss_func_1"
    assert result[1:] == ["pong", 1, "API method 'batch'. Params: 'False'"]


@pytest.mark.anyio
async def test_batch_all_notifications(client):
    result = await (
        client.batch()
        .notify("miss_func_1")
        .notify("ping")
        .notify("sum", -2, 3)
        .notify("batch", False)
        .do()
    )
    assert result is None


@pytest.mark.anyio
async def test_empty_batch_raises_invalid_request(client):
    with pytest.raises(JsonRpcServerError) as exc_info:
        await client.batch().do()
    assert exc_info.value.code is ServerErrorCode.INVALID_REQUEST


@pytest.mark.anyio
async def test_error_does_not_corrupt_connection(client):
    """A failed call should not break subsequent calls."""
    with pytest.raises(JsonRpcServerError):
        await client.call("nonexistent")

    assert await client.call("mirror", {"still": "works"}) == {"still": "works"}
