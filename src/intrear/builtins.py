"""
Built-in callable registry.

Every root execution context is seeded with these callables, and every
root type environment with their signatures:

    print(...)   typeOf(x)   now()   random()   isNaN(x)
    abs(x)       sqrt(x)     floor(x)   ceil(x)   fetch(url)

``fetch`` is the only host capability that touches the network.  Scripts
cannot await, so the call blocks until the response text is available.
"""

import functools
import math
import random
import time
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional

from .types import (
    FunctionType, ANY, BOOLEAN, NUMBER, STRING, VOID, function_of,
)
from .values import UNDEFINED, kind_of, to_number, to_text
from .errors import error_host
from .log import get_logger

logger = get_logger(__name__)


@dataclass
class BuiltinHost:
    """Per-root state shared by the built-ins installed into one context."""
    context: Any  # ExecutionContext; untyped to avoid an import cycle
    rng: random.Random


@dataclass
class BuiltinFunction:
    """
    A built-in function with its implementation and type signature.

    ``implementation`` receives the :class:`BuiltinHost` followed by the
    script-supplied arguments.
    """
    name: str
    signature: FunctionType
    implementation: Callable[..., Any]
    doc: str = ""

    def bind(self, host: BuiltinHost) -> Callable[..., Any]:
        """Produce the script-visible callable for one root context."""
        impl = self.implementation

        @functools.wraps(impl)
        def bound(*args: Any) -> Any:
            return impl(host, *args)

        bound.__name__ = self.name
        bound.__qualname__ = self.name
        bound.__doc__ = self.doc
        return bound


class BuiltinRegistry:
    """
    Registry of all built-in functions.

    Functions are registered by name and installed into root contexts.
    """

    def __init__(self):
        self._functions: Dict[str, BuiltinFunction] = {}
        self._register_all()

    def get_function(self, name: str) -> Optional[BuiltinFunction]:
        """Look up a function by name."""
        return self._functions.get(name)

    def functions(self) -> Iterator[BuiltinFunction]:
        return iter(self._functions.values())

    def names(self) -> List[str]:
        return list(self._functions)

    def register(self, func: BuiltinFunction) -> None:
        """Register a function."""
        self._functions[func.name] = func

    def install(self, context) -> None:
        """Bind every built-in into ``context`` (a root execution context)."""
        host = BuiltinHost(context=context, rng=random.Random(context.config.random_seed))
        for func in self._functions.values():
            context.define(func.name, func.bind(host))

    def _register_all(self) -> None:
        self._register_io_functions()
        self._register_utility_functions()
        self._register_math_functions()
        self._register_network_functions()

    # --- I/O ---

    def _register_io_functions(self) -> None:
        def _print(host: BuiltinHost, *args: Any) -> Any:
            out = host.context.output
            out.write(" ".join(to_text(a) for a in args) + "\n")
            return UNDEFINED

        self.register(BuiltinFunction(
            "print", function_of([ANY], VOID, variadic=True), _print,
            "Write the arguments, space separated, to the output sink."))

    # --- Utilities ---

    def _register_utility_functions(self) -> None:
        def _type_of(host: BuiltinHost, value: Any = UNDEFINED) -> str:
            return kind_of(value)

        def _now(host: BuiltinHost) -> int:
            return int(time.time() * 1000)

        def _random(host: BuiltinHost) -> float:
            return host.rng.random()

        def _is_nan(host: BuiltinHost, value: Any = UNDEFINED) -> bool:
            n = to_number(value)
            return isinstance(n, float) and math.isnan(n)

        self.register(BuiltinFunction(
            "typeOf", function_of([ANY], STRING), _type_of,
            "Runtime kind name of a value ('array' for arrays)."))
        self.register(BuiltinFunction(
            "now", function_of([], NUMBER), _now,
            "Milliseconds since the Unix epoch."))
        self.register(BuiltinFunction(
            "random", function_of([], NUMBER), _random,
            "Uniform float in [0, 1)."))
        self.register(BuiltinFunction(
            "isNaN", function_of([ANY], BOOLEAN), _is_nan,
            "True if the value coerces to NaN."))

    # --- Math ---

    def _register_math_functions(self) -> None:
        def _finite_or_self(fn: Callable[[float], Any]) -> Callable[..., Any]:
            def impl(host: BuiltinHost, value: Any = UNDEFINED) -> Any:
                n = to_number(value)
                if isinstance(n, float) and (math.isnan(n) or math.isinf(n)):
                    return n
                return fn(n)
            return impl

        def _sqrt(host: BuiltinHost, value: Any = UNDEFINED) -> float:
            n = to_number(value)
            if math.isnan(n) or n < 0:
                return math.nan
            if math.isinf(n):
                return n
            return math.sqrt(n)

        self.register(BuiltinFunction(
            "abs", function_of([NUMBER], NUMBER), _finite_or_self(abs), "Absolute value."))
        self.register(BuiltinFunction(
            "sqrt", function_of([NUMBER], NUMBER), _sqrt,
            "Square root (NaN for negative input)."))
        self.register(BuiltinFunction(
            "floor", function_of([NUMBER], NUMBER), _finite_or_self(math.floor),
            "Largest integer <= x."))
        self.register(BuiltinFunction(
            "ceil", function_of([NUMBER], NUMBER), _finite_or_self(math.ceil),
            "Smallest integer >= x."))

    # --- Network ---

    def _register_network_functions(self) -> None:
        def _fetch(host: BuiltinHost, url: Any = UNDEFINED) -> str:
            target = to_text(url)
            timeout = host.context.config.fetch_timeout
            logger.info("fetch %s (timeout=%ss)", target, timeout)
            try:
                with urllib.request.urlopen(target, timeout=timeout) as resp:
                    charset = resp.headers.get_content_charset() or "utf-8"
                    return resp.read().decode(charset, errors="replace")
            except (urllib.error.URLError, ValueError, OSError) as exc:
                logger.warning("fetch %s failed: %s", target, exc)
                raise error_host("fetch", exc) from exc

        self.register(BuiltinFunction(
            "fetch", function_of([STRING], STRING), _fetch,
            "GET a URL and return the response body as text."))


# Global registry instance
_registry: Optional[BuiltinRegistry] = None


def get_builtin_registry() -> BuiltinRegistry:
    """Get the global builtin registry."""
    global _registry
    if _registry is None:
        _registry = BuiltinRegistry()
    return _registry
