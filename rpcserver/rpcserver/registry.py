"""Method registry.

Maps JSON-RPC method names to handlers together with their declared
parameter names.  Handlers may be plain or ``async`` callables.

Usage::

    registry = MethodRegistry()

    @registry.handler()
    async def echo(msg):
        return msg

    registry.add("sum", lambda a, b: a + b)
    registry.add(ping, ("inv", inv), "mirror", mirror)
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

log = logging.getLogger(__name__)

# Reserved name under which the registry answers introspection calls.
DESCRIBE_METHOD = "rpc:api.description"

HandlerFn = Callable[..., Any]


def _signature(fn: HandlerFn) -> inspect.Signature | None:
    try:
        return inspect.signature(fn)
    except (TypeError, ValueError):
        return None


def declared_params(fn: HandlerFn) -> tuple[str, ...]:
    """Parameter names of *fn* in declaration order.

    ``*args`` is reported as ``"...args"`` and ``**kwargs`` as ``"**kwargs"``.
    """
    sig = _signature(fn)
    if sig is None:
        return ()
    names = []
    for p in sig.parameters.values():
        if p.kind is inspect.Parameter.VAR_POSITIONAL:
            names.append(f"...{p.name}")
        elif p.kind is inspect.Parameter.VAR_KEYWORD:
            names.append(f"**{p.name}")
        else:
            names.append(p.name)
    return tuple(names)


@dataclass(slots=True)
class MethodSpec:
    """A registered method: handler plus its declared parameter names."""

    name: str
    handler: HandlerFn
    params: tuple[str, ...] = ()
    signature: inspect.Signature | None = field(default=None, repr=False, compare=False)

    def bind(self, params: list[Any] | dict[str, Any]) -> tuple[tuple[Any, ...], dict[str, Any]]:
        """Split *params* into call arguments.

        Raises ``TypeError`` when they do not fit the handler's signature.
        """
        if isinstance(params, dict):
            args, kwargs = (), dict(params)
        else:
            args, kwargs = tuple(params), {}
        if self.signature is not None:
            self.signature.bind(*args, **kwargs)
        return args, kwargs


def _anonymous(fn: Any) -> bool:
    name = getattr(fn, "__name__", None)
    return not name or name == "<lambda>"


class MethodRegistry:
    """Method name → ``MethodSpec`` mapping with a cached description."""

    def __init__(self) -> None:
        self._methods: dict[str, MethodSpec] = {}
        self._description: list[dict[str, Any]] | None = None
        self._describe_spec = MethodSpec(DESCRIBE_METHOD, self.describe, (), _signature(self.describe))

    # -- Registration --------------------------------------------------
    def add(self, *args: Any) -> None:
        """Register methods.

        Accepts any mix of::

            add(func)                    # name taken from func.__name__
            add("name", func)
            add("a", f1, "b", f2, f3)
            add(("name", func, ...))     # extra items are ignored

        Every argument is checked before the registry changes, so a bad
        argument leaves it untouched.
        """
        pending: dict[str, HandlerFn] = {}
        i = 0
        while i < len(args):
            arg = args[i]
            if isinstance(arg, str):
                name: Any = arg
                fn = args[i + 1] if i + 1 < len(args) else None
                i += 2
            elif isinstance(arg, (list, tuple)):
                name = arg[0] if len(arg) > 0 else None
                fn = arg[1] if len(arg) > 1 else None
                i += 1
            elif callable(arg):
                fn = arg
                name = None if _anonymous(fn) else fn.__name__
                i += 1
            else:
                raise TypeError(f"Invalid argument: unsupported argument of type {type(arg).__name__!r}")

            if not callable(fn):
                msg = f"expected a callable but received {type(fn).__name__!r}"
                if name:
                    msg += f" for method {name!r}"
                raise TypeError(f"Invalid argument: {msg}")
            if not isinstance(name, str) or not name:
                raise TypeError(f"Invalid argument: 'name' must be specified for anonymous function {fn!r}")
            pending[name] = fn

        for name, fn in pending.items():
            self._register(MethodSpec(name, fn, declared_params(fn), _signature(fn)))

    def add_method(self, name: str, fn: HandlerFn, params: Iterable[str] | None = None) -> MethodSpec:
        """Register *fn* under *name* with explicitly declared parameter names."""
        if not callable(fn):
            raise TypeError(
                f"Invalid argument: expected a callable but received {type(fn).__name__!r} for method {name!r}"
            )
        if not isinstance(name, str) or not name:
            raise TypeError("Invalid argument: 'name' must be a non-empty string")
        declared = tuple(params) if params is not None else declared_params(fn)
        spec = MethodSpec(name, fn, declared, _signature(fn))
        self._register(spec)
        return spec

    def handler(
        self, name: str | None = None, params: Iterable[str] | None = None
    ) -> Callable[[HandlerFn], HandlerFn]:
        """Decorator that registers *fn* under *name* (default: its own name)."""

        def decorator(fn: HandlerFn) -> HandlerFn:
            if name is None and _anonymous(fn):
                raise TypeError(f"Invalid argument: 'name' must be specified for anonymous function {fn!r}")
            self.add_method(name or fn.__name__, fn, params)
            return fn

        return decorator

    def _register(self, spec: MethodSpec) -> None:
        if spec.name in self._methods:
            log.warning("overwriting handler for %r", spec.name)
        self._methods[spec.name] = spec
        self._description = None
        log.debug("registered handler %r → %s", spec.name, getattr(spec.handler, "__qualname__", spec.handler))

    # -- Lookup --------------------------------------------------------
    def resolve(self, name: str) -> MethodSpec | None:
        """Return the ``MethodSpec`` for *name*, or ``None`` when it is unknown.

        ``DESCRIBE_METHOD`` resolves to :meth:`describe` unless a user
        method took that name.
        """
        spec = self._methods.get(name)
        if spec is None and name == DESCRIBE_METHOD:
            return self._describe_spec
        return spec

    # -- Introspection -------------------------------------------------
    def describe(self) -> list[dict[str, Any]]:
        """``[{"name": ..., "params": [...]}, ...]`` in registration order."""
        if self._description is None:
            self._description = [
                {"name": spec.name, "params": list(spec.params)}
                for spec in self._methods.values()
            ]
        return self._description

    @property
    def methods(self) -> list[str]:
        return list(self._methods.keys())

    def is_registered(self, method: str) -> bool:
        return method in self._methods
