"""
Built-in methods on strings, arrays and numbers.

The allow-list is closed: an unknown method on one of these kinds is an
error.  Other receivers fall back to calling a same-named callable property.
Inference mirrors the allow-list and answers ``any`` for everything it does
not model.
"""

import math
import re
from typing import Any, Callable, Dict, List, Tuple

from .types import Type, ANY, NUMBER, STRING, ArrayType, array_of, types_equal
from .values import UNDEFINED, BigInt, describe, is_number, is_truthy, to_number, to_text
from .errors import error_null_access, error_not_callable, error_unknown_method

_INT_PREFIX = re.compile(r"^\s*([+-]?)(0[xX][0-9a-fA-F]+|\d+)")
_FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:Infinity|\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?))")


def parse_int(text: str) -> Any:
    """Leading-integer parse; NaN if the string does not start with digits."""
    match = _INT_PREFIX.match(text)
    if not match:
        return math.nan
    sign, digits = match.groups()
    value = int(digits, 16) if digits[:2].lower() == "0x" else int(digits)
    return -value if sign == "-" else value


def parse_float(text: str) -> Any:
    """Leading-decimal parse; NaN if the string does not start with a number."""
    match = _FLOAT_PREFIX.match(text)
    if not match:
        return math.nan
    return float(match.group(1))


def _slice_bounds(length: int, args: List[Any]) -> Tuple[int, int]:
    def bound(value: Any, default: int) -> int:
        if value is UNDEFINED:
            return default
        n = to_number(value)
        if isinstance(n, float):
            if math.isnan(n):
                return 0
            if math.isinf(n):
                return length if n > 0 else 0
        n = int(n)
        if n < 0:
            return max(length + n, 0)
        return min(n, length)

    start = bound(args[0] if len(args) > 0 else UNDEFINED, 0)
    end = bound(args[1] if len(args) > 1 else UNDEFINED, length)
    return start, end


def _callback(args: List[Any], method: str) -> Callable[..., Any]:
    fn = args[0] if args else UNDEFINED
    if not callable(fn):
        raise error_not_callable(f"{method} callback ({describe(fn)})")
    return fn


# --- string ---

def _string_method(target: str, method: str, args: List[Any]) -> Any:
    if method == "length":
        return len(target)
    if method == "toUpperCase":
        return target.upper()
    if method == "toLowerCase":
        return target.lower()
    if method == "slice":
        start, end = _slice_bounds(len(target), args)
        return target[start:end]
    if method == "parseInt":
        return parse_int(target)
    if method == "parseFloat":
        return parse_float(target)
    raise error_unknown_method("string", method)


# --- array ---

def _array_method(target: list, method: str, args: List[Any]) -> Any:
    if method == "length":
        return len(target)
    if method == "push":
        target.extend(args)
        return len(target)
    if method == "pop":
        return target.pop() if target else UNDEFINED
    if method == "map":
        fn = _callback(args, method)
        return [fn(item) for item in list(target)]
    if method == "filter":
        fn = _callback(args, method)
        return [item for item in list(target) if is_truthy(fn(item))]
    raise error_unknown_method("array", method)


# --- number ---

def _number_method(target: Any, method: str, args: List[Any]) -> Any:
    if method == "toString":
        return to_text(target)
    raise error_unknown_method("number", method)


def call_method(target: Any, method: str, args: List[Any]) -> Any:
    """
    Invoke ``method`` on an evaluated receiver.

    Dispatches by runtime kind to the allow-lists above.  An object must
    carry a callable property of that name; no other receiver has methods.
    """
    if target is None or target is UNDEFINED:
        raise error_null_access(f"method '{method}'")
    if isinstance(target, str):
        return _string_method(target, method, args)
    if isinstance(target, list):
        return _array_method(target, method, args)
    if is_number(target) or isinstance(target, BigInt):
        return _number_method(target, method, args)
    fn = target.get(method) if isinstance(target, dict) else None
    if callable(fn):
        return fn(*args)
    raise error_unknown_method(describe(target), method)


# =============================================================================
# Inference
# =============================================================================

_STRING_RESULTS: Dict[str, Type] = {
    "length": NUMBER,
    "toUpperCase": STRING,
    "toLowerCase": STRING,
    "slice": STRING,
    "parseInt": NUMBER,
    "parseFloat": NUMBER,
}

_NUMBER_RESULTS: Dict[str, Type] = {
    "toString": STRING,
}


def infer_method(target: Type, method: str) -> Type:
    """Result type of ``method`` on a receiver of type ``target``."""
    if types_equal(target, STRING) and method in _STRING_RESULTS:
        return _STRING_RESULTS[method]
    if types_equal(target, NUMBER) and method in _NUMBER_RESULTS:
        return _NUMBER_RESULTS[method]
    if isinstance(target, ArrayType):
        if method in ("length", "push"):
            return NUMBER
        if method == "pop":
            return target.element_type
        if method in ("map", "filter"):
            return array_of(ANY)
    return ANY
