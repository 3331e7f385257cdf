"""
Callable values produced from function and arrow nodes.

A closure keeps a reference to the context that was active when its node
was converted.  Every call binds parameters into a fresh child of that
captured context, so two calls never share parameter bindings and the
captured frame stays alive for as long as the closure does.
"""

import functools
import json
from typing import Any, Callable, Dict

from .values import BigInt, UNDEFINED
from .errors import error_argument_count, error_stray_signal
from .signals import BreakSignal, ContinueSignal, ReturnSignal
from .log import get_logger

logger = get_logger(__name__)


class Closure:
    """A function literal bound to its capturing context."""

    def __init__(self, node, context):
        self.node = node
        self.context = context
        self.__name__ = node.name or "anonymous"

    def __call__(self, *args: Any) -> Any:
        from .ast import run_statements

        params = self.node.params
        if len(args) != len(params):
            raise error_argument_count(len(params), len(args), f"call to {self.__name__}")
        local = self.context.child(f"call {self.__name__}")
        for param, arg in zip(params, args):
            local.define(param, arg)
        try:
            run_statements(self.node.body, local)
        except ReturnSignal as signal:
            return signal.value
        except (BreakSignal, ContinueSignal) as signal:
            raise error_stray_signal(signal.keyword, f"function {self.__name__}") from None
        return UNDEFINED

    def __repr__(self) -> str:
        return f"<closure {self.__name__}/{len(self.node.params)}>"


class ArrowClosure:
    """
    An arrow function bound to its defining context.

    Missing arguments read as undefined and extra arguments are ignored.
    """

    __name__ = "arrow"

    def __init__(self, node, context):
        self.node = node
        self.context = context

    def __call__(self, *args: Any) -> Any:
        local = self.context.child("arrow")
        for i, param in enumerate(self.node.params):
            local.define(param, args[i] if i < len(args) else UNDEFINED)
        return self.node.body.execute(local)

    def __repr__(self) -> str:
        return f"<arrow ({', '.join(self.node.params)})>"


def _canonical(value: Any) -> Any:
    # Tagged forms keep kinds JSON would merge (bigint vs number) apart.
    if isinstance(value, BigInt):
        return {"$bigint": str(int(value))}
    if value is UNDEFINED:
        return {"$undefined": True}
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, list):
        return [_canonical(v) for v in value]
    if isinstance(value, dict):
        return {"$object": {str(k): _canonical(v) for k, v in value.items()}}
    # Callables and symbols are keyed by identity.
    return {"$ref": f"{type(value).__name__}@{id(value):x}"}


def cache_key(args: tuple) -> str:
    """Canonical serialization of an argument list."""
    return json.dumps([_canonical(a) for a in args], sort_keys=True)



def memoize(fn: Callable[..., Any]) -> Callable[..., Any]:
    """
    Wrap ``fn`` in a result cache keyed by the canonical form of its arguments.

    Purity is asserted by the caller and never verified: side effects in the
    wrapped function only happen on a cache miss.
    """
    cache: Dict[str, Any] = {}
    name = getattr(fn, "__name__", "anonymous")

    @functools.wraps(fn)
    def memoized(*args: Any) -> Any:
        key = cache_key(args)
        if key in cache:
            logger.debug("memo hit for %s%s", name, key)
            return cache[key]
        result = fn(*args)
        cache[key] = result
        return result

    memoized.cache = cache
    return memoized
