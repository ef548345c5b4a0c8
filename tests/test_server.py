"""Tests for the HTTP binding.

Uses ``httpx.ASGITransport`` to test Starlette in-process without
starting a real server.
"""

import httpx
import pytest
from rpcserver.server import app, create_app
from rpcserver.registry import MethodRegistry


@pytest.fixture
def client():
    """In-process async test client."""
    transport = httpx.ASGITransport(app=app)  # type: ignore[arg-type]
    return httpx.AsyncClient(transport=transport, base_url="http://test")


# ── Unary tests ──────────────────────────────────────────────────────


@pytest.mark.anyio
async def test_mirror(client):
    resp = await client.post(
        "/api", json={"jsonrpc": "2.0", "method": "mirror", "params": [{"msg": "hi"}], "id": "1"}
    )
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/json")
    data = resp.json()
    assert data["result"] == {"msg": "hi"}
    assert data["id"] == "1"


@pytest.mark.anyio
async def test_sum(client):
    resp = await client.post(
        "/api", json={"jsonrpc": "2.0", "method": "sum", "params": {"a": 3, "b": 4}, "id": "2"}
    )
    assert resp.json()["result"] == 7


@pytest.mark.anyio
async def test_method_not_found(client):
    resp = await client.post(
        "/api", json={"jsonrpc": "2.0", "method": "nonexistent", "params": [], "id": "3"}
    )
    data = resp.json()
    assert data["error"]["code"] == -32601  # METHOD_NOT_FOUND
    assert data["error"]["message"] == "Method not found: nonexistent"


@pytest.mark.anyio
async def test_parse_error(client):
    resp = await client.post(
        "/api",
        content=b"not json",
        headers={"content-type": "application/json"},
    )
    data = resp.json()
    assert data["error"]["code"] == -32700  # PARSE_ERROR
    assert data["id"] is None


@pytest.mark.anyio
async def test_invalid_request(client):
    resp = await client.post("/api", json={"jsonrpc": "1.0", "method": "mirror"})
    data = resp.json()
    assert data["error"]["code"] == -32600  # INVALID_REQUEST


@pytest.mark.anyio
async def test_deeply_nested_body_is_parse_error(client):
    resp = await client.post("/api", content=b"[" * 100000 + b"]" * 100000)
    assert resp.status_code == 200
    assert resp.json()["error"]["code"] == -32700


@pytest.mark.anyio
async def test_lone_surrogate_method_name(client):
    resp = await client.post(
        "/api", content=b'{"jsonrpc":"2.0","method":"\\ud800","params":[],"id":1}'
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["error"]["code"] == -32601
    assert data["id"] == 1


@pytest.mark.anyio
async def test_lone_surrogate_id_is_echoed(client):
    resp = await client.post(
        "/api", content=b'{"jsonrpc":"2.0","method":"mirror","params":[1],"id":"\\ud800"}'
    )
    assert resp.status_code == 200
    assert b"\\ud800" in resp.content
    data = resp.json()
    assert data["result"] == 1
    assert data["id"] == "\ud800"


@pytest.mark.anyio
async def test_application_error(client):
    resp = await client.post(
        "/api", json={"jsonrpc": "2.0", "method": "fail", "params": ["boom"], "id": 5}
    )
    error = resp.json()["error"]
    assert error["code"] == -32099
    assert error["data"] == {"name": "RuntimeError", "message": "boom"}


@pytest.mark.anyio
async def test_non_finite_result_is_null(client):
    resp = await client.post(
        "/api", content=b'{"jsonrpc": "2.0", "method": "mirror", "params": [Infinity], "id": 1}'
    )
    assert resp.json()["result"] is None


# ── Notifications and batches ────────────────────────────────────────


@pytest.mark.anyio
async def test_notification_empty_body(client):
    resp = await client.post("/api", json={"jsonrpc": "2.0", "method": "ping", "params": []})
    assert resp.status_code == 200
    assert resp.content == b""


@pytest.mark.anyio
async def test_batch(client):
    resp = await client.post(
        "/api",
        json=[
            {"jsonrpc": "2.0", "method": "ping", "params": [], "id": 1},
            {"jsonrpc": "2.0", "method": "log_message", "params": ["hi"]},
            {"jsonrpc": "2.0", "method": "sum", "params": [1, 2], "id": 2},
        ],
    )
    data = resp.json()
    assert [r["id"] for r in data] == [1, 2]
    assert [r["result"] for r in data] == ["pong", 3]


@pytest.mark.anyio
async def test_empty_batch(client):
    resp = await client.post("/api", content=b"[]")
    data = resp.json()
    assert data["error"]["code"] == -32600


# ── Discovery ────────────────────────────────────────────────────────


@pytest.mark.anyio
async def test_get_describes_methods(client):
    resp = await client.get("/api")
    assert resp.status_code == 200
    data = resp.json()
    assert {"name": "sum", "params": ["a", "b"]} in data
    assert {"name": "restParams", "params": ["f", "s", "...args"]} in data


@pytest.mark.anyio
async def test_custom_registry_and_path():
    registry = MethodRegistry()
    registry.add("hello", lambda name: f"hello {name}")
    transport = httpx.ASGITransport(app=create_app(registry, path="rpc/"))  # type: ignore[arg-type]
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.post(
            "/rpc", json={"jsonrpc": "2.0", "method": "hello", "params": ["bob"], "id": 1}
        )
        assert resp.json()["result"] == "hello bob"
        assert (await client.get("/rpc")).json() == [{"name": "hello", "params": ["name"]}]
