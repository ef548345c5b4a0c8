"""JSON-RPC 2.0 over HTTP — Starlette ASGI binding.

* ``GET  <path>`` → method descriptions ``[{"name", "params"}, ...]``
* ``POST <path>`` → request or batch; an all-notification payload gets
  HTTP 200 with an empty body.

Run directly::

    python -m rpcserver.server
"""

from __future__ import annotations

import logging
from typing import Any

from rpcwire.jsonrpc import encode
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Route

from rpcserver.dispatcher import Dispatcher
from rpcserver.handlers import registry as default_registry
from rpcserver.registry import MethodRegistry

log = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json"


def _json_response(payload: Any) -> Response:
    # JSONResponse refuses NaN; encode() maps it to null instead
    return Response(content=encode(payload), media_type=JSON_MEDIA_TYPE)


# ── App factory ──────────────────────────────────────────────────────


def create_app(registry: MethodRegistry | None = None, path: str = "/api") -> Starlette:
    """Build an ASGI app serving *registry* at *path*."""
    registry = default_registry if registry is None else registry
    dispatcher = Dispatcher(registry)

    async def rpc_endpoint(request: Request) -> Response:
        if request.method == "GET":
            return _json_response(registry.describe())
        body = await request.body()
        payload = await dispatcher.handle(body)
        if payload is None:
            return Response(status_code=200)
        return _json_response(payload)

    path = "/" + path.strip("/")
    return Starlette(
        debug=False,
        routes=[Route(path, rpc_endpoint, methods=["GET", "POST"])],
    )


app = create_app()


# ── Runnable entrypoint ──────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn
    from dotenv import load_dotenv
    from rpcwire.config import ServerSettings

    load_dotenv()
    settings = ServerSettings.from_env()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    uvicorn.run(
        create_app(path=settings.path),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
