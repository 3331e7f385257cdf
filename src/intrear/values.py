"""
Runtime value model for the Intrear evaluator.

Script values are plain Python objects:

    number     int / float (never bool)
    string     str
    boolean    bool
    null       None
    undefined  UNDEFINED
    bigint     BigInt
    symbol     Symbol
    array      list
    object     dict
    function   any Python callable (closures and built-ins)

The helpers here give those objects the scripting language's semantics for
kind names, truthiness, strict equality and text rendering.
"""

import math
from typing import Any

from .types import (
    Type, ANY, BIGINT, BOOLEAN, NULL, NUMBER, STRING, SYMBOL, UNDEFINED as UNDEFINED_TYPE,
    array_of, object_of, types_equal,
)


class Undefined:
    """The ``undefined`` value (a singleton)."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "undefined"

    def __bool__(self) -> bool:
        return False


UNDEFINED = Undefined()


class BigInt(int):
    """An arbitrary-precision integer kept distinct from ``number``."""

    def __repr__(self) -> str:
        return f"{int(self)}n"


class Symbol:
    """A unique symbol value; two symbols are never equal."""

    def __init__(self, description: str = ""):
        self.description = description

    def __repr__(self) -> str:
        return f"Symbol({self.description})"


def is_undefined(value: Any) -> bool:
    return value is UNDEFINED


def is_number(value: Any) -> bool:
    """True for script numbers (bool and BigInt excluded)."""
    return isinstance(value, (int, float)) and not isinstance(value, (bool, BigInt))


def kind_of(value: Any) -> str:
    """Runtime kind name as reported by the ``typeOf`` built-in."""
    if value is UNDEFINED:
        return "undefined"
    if value is None:
        return "object"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, BigInt):
        return "bigint"
    if is_number(value):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Symbol):
        return "symbol"
    if isinstance(value, list):
        return "array"
    if callable(value):
        return "function"
    return "object"


def describe(value: Any) -> str:
    """Kind name used in error messages (distinguishes null from object)."""
    if value is None:
        return "null"
    return kind_of(value)


def is_truthy(value: Any) -> bool:
    """Truthiness of a script value."""
    if value is None or value is UNDEFINED:
        return False
    if isinstance(value, bool):
        return value
    if is_number(value):
        return value != 0 and not math.isnan(value)
    if isinstance(value, (BigInt, str)):
        return bool(value)
    return True


def strict_equals(left: Any, right: Any) -> bool:
    """
    Strict equality: same kind and same value for primitives, identity for
    arrays, objects, functions and symbols.
    """
    if kind_of(left) != kind_of(right):
        return False
    if isinstance(left, (list, dict, Symbol)) or callable(left):
        return left is right
    return left == right


def format_number(n: Any) -> str:
    if isinstance(n, float):
        if math.isnan(n):
            return "NaN"
        if math.isinf(n):
            return "Infinity" if n > 0 else "-Infinity"
        if n.is_integer() and abs(n) < 1e21:
            return str(int(n))
        return repr(n)
    return str(int(n))


def to_text(value: Any) -> str:
    """Render a value the way string concatenation and ``print`` show it."""
    if value is UNDEFINED:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, BigInt):
        return str(int(value))
    if is_number(value):
        return format_number(value)
    if isinstance(value, list):
        return ",".join("" if v is None or v is UNDEFINED else to_text(v) for v in value)
    if isinstance(value, Symbol):
        return repr(value)
    if callable(value):
        return f"[function {getattr(value, '__name__', 'anonymous')}]"
    return "[object Object]"


def type_of_value(value: Any) -> Type:
    """
    Static type describing a runtime value, used when a literal is inferred.

    Arrays and objects are described recursively; an array whose elements
    disagree degrades to Array<any>.
    """
    if value is UNDEFINED:
        return UNDEFINED_TYPE
    if value is None:
        return NULL
    if isinstance(value, bool):
        return BOOLEAN
    if isinstance(value, BigInt):
        return BIGINT
    if is_number(value):
        return NUMBER
    if isinstance(value, str):
        return STRING
    if isinstance(value, Symbol):
        return SYMBOL
    if isinstance(value, list):
        return array_of(common_element_type([type_of_value(v) for v in value]))
    if isinstance(value, dict):
        return object_of({str(k): type_of_value(v) for k, v in value.items()})
    return ANY


def common_element_type(types: list) -> Type:
    """The shared type of a list of element types, or ``any`` on mismatch."""
    if not types:
        return ANY
    first = types[0]
    for t in types[1:]:
        if not types_equal(first, t):
            return ANY
    return first


def to_number(value: Any) -> float:
    """Numeric coercion used by the numeric built-ins (``Number(x)``)."""
    if value is UNDEFINED:
        return math.nan
    if value is None:
        return 0
    if isinstance(value, bool):
        return 1 if value else 0
    if is_number(value) or isinstance(value, BigInt):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            return int(text, 0) if text.lower().startswith(("0x", "0o", "0b")) else float(text)
        except ValueError:
            return math.nan
    if isinstance(value, list):
        if not value:
            return 0
        if len(value) == 1:
            return to_number(to_text(value[0]))
    return math.nan
