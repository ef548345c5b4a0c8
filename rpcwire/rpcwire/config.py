"""Runtime settings for the server and client entrypoints.

Defaults live on the dataclasses; ``from_env`` overrides them from the
process environment (entrypoints load a ``.env`` file first).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


@dataclass
class ServerSettings:
    host: str = "127.0.0.1"
    port: int = 8100
    path: str = "/api"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "ServerSettings":
        env = os.environ if env is None else env
        return cls(
            host=env.get("JSONRPC_HOST") or cls.host,
            port=_env_int(env, "JSONRPC_PORT", cls.port),
            path=env.get("JSONRPC_PATH") or cls.path,
            log_level=(env.get("LOG_LEVEL") or cls.log_level).upper(),
        )


@dataclass
class ClientSettings:
    url: str = "http://127.0.0.1:8100/api"
    timeout: float = 30.0
    verify_tls: bool = True
    max_retries: int = 3

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "ClientSettings":
        env = os.environ if env is None else env
        return cls(
            url=env.get("JSONRPC_URL") or cls.url,
            timeout=_env_float(env, "JSONRPC_TIMEOUT", cls.timeout),
            verify_tls=_env_bool(env, "JSONRPC_VERIFY_TLS", cls.verify_tls),
            max_retries=_env_int(env, "JSONRPC_MAX_RETRIES", cls.max_retries),
        )
