"""Example RPC handlers.

All handlers are registered on the module-level ``registry`` which the
server imports.
"""

from __future__ import annotations

import logging

import anyio

from rpcserver.registry import MethodRegistry

log = logging.getLogger(__name__)

registry = MethodRegistry()

# ── Plain handlers ───────────────────────────────────────────────────


@registry.handler()
def ping() -> str:
    return "pong"


@registry.handler("mirror")
def mirror(p):
    """Return the argument unchanged."""
    return p


@registry.handler("sum")
def _sum(a, b):
    return a + b


@registry.handler()
def inv(a):
    return 1 / a


@registry.handler("restParams")
def rest_params(f, s, *args):
    """First two arguments, then the first and last of the rest."""
    return [f, s, args[0] if args else None, args[-1] if args else None]


# ── Async handlers ───────────────────────────────────────────────────


@registry.handler()
async def sleep(seconds: float = 0.0, value=None):
    """Wait *seconds*, then return *value*."""
    await anyio.sleep(seconds)
    return value


@registry.handler()
async def fail(message: str = "boom"):
    """Always raises; exercises the application-error path."""
    await anyio.sleep(0)
    raise RuntimeError(message)


@registry.handler()
def log_message(message: str, level: str = "info") -> None:
    """Fire-and-forget target for notifications."""
    log.log(logging.getLevelName(level.upper()), "client says: %s", message)
