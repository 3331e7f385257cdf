"""
Binary operator enumeration shared by the execution and inference passes.

Each operator has one canonical member carrying both of its spellings: the
symbol used when building trees for execution (``"+"``) and the identifier
used by inference-oriented tooling (``"o_plus"``).  Both resolve to the same
member, so the two passes can never disagree about an operator's category.
"""

import math
from enum import Enum
from typing import Any, Dict

from .types import (
    Type, ANY, BOOLEAN, NUMBER, STRING, ArrayType,
    array_of, format_type, types_equal,
)
from .values import (
    common_element_type, describe, is_number, is_truthy, strict_equals, to_text, type_of_value,
)
from .errors import (
    error_bad_operands, error_not_an_array, error_type_mismatch, error_unknown_operator,
)


class OperatorCategory(Enum):
    ARITHMETIC = "arithmetic"
    COMPARISON = "comparison"
    BOOLEAN = "boolean"
    CONCAT = "concat"
    STRING_CONCAT = "string-concat"


class Operator(Enum):
    """Canonical operators: (symbol, inference name, category)."""
    PLUS = ("+", "o_plus", OperatorCategory.ARITHMETIC)
    MINUS = ("-", "o_minus", OperatorCategory.ARITHMETIC)
    MUL = ("*", "o_mul", OperatorCategory.ARITHMETIC)
    DIV = ("/", "o_div", OperatorCategory.ARITHMETIC)
    IDIV = ("//", "o_idiv", OperatorCategory.ARITHMETIC)
    POW = ("^", "o_pow", OperatorCategory.ARITHMETIC)
    EQ = ("==", "o_eq", OperatorCategory.COMPARISON)
    NEQ = ("!==", "o_neq", OperatorCategory.COMPARISON)
    LT = ("<", "o_lt", OperatorCategory.COMPARISON)
    LTE = ("<=", "o_lte", OperatorCategory.COMPARISON)
    GT = (">", "o_gt", OperatorCategory.COMPARISON)
    GTE = (">=", "o_gte", OperatorCategory.COMPARISON)
    AND = ("&&", "o_and", OperatorCategory.BOOLEAN)
    OR = ("||", "o_or", OperatorCategory.BOOLEAN)
    CONCAT = ("concat", "o_concat", OperatorCategory.CONCAT)
    STRCAT = ("><", "o_strcat", OperatorCategory.STRING_CONCAT)

    def __init__(self, symbol: str, inference_name: str, category: OperatorCategory):
        self.symbol = symbol
        self.inference_name = inference_name
        self.category = category

    def __str__(self) -> str:
        return self.symbol


_BY_TOKEN: Dict[str, Operator] = {}
for _op in Operator:
    _BY_TOKEN[_op.symbol] = _op
    _BY_TOKEN[_op.inference_name] = _op


def resolve_operator(token) -> Operator:
    """Resolve an operator from either spelling (or pass a member through)."""
    if isinstance(token, Operator):
        return token
    op = _BY_TOKEN.get(token)
    if op is None:
        raise error_unknown_operator(str(token))
    return op


# =============================================================================
# Execution
# =============================================================================

def _divide(left: float, right: float) -> float:
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


def _power(left: float, right: float) -> float:
    if left < 0 and not float(right).is_integer():
        return math.nan
    try:
        return left ** right
    except ZeroDivisionError:
        return math.inf
    except OverflowError:
        return math.inf


def _arithmetic(op: Operator, left: Any, right: Any) -> Any:
    if op is Operator.PLUS and isinstance(left, str) and isinstance(right, str):
        return left + right
    if not (is_number(left) and is_number(right)):
        raise error_bad_operands(
            f"operator '{op.symbol}' requires numeric operands, got "
            f"{describe(left)} and {describe(right)}")
    if op is Operator.PLUS:
        return left + right
    if op is Operator.MINUS:
        return left - right
    if op is Operator.MUL:
        return left * right
    if op is Operator.DIV:
        return _divide(left, right)
    if op is Operator.IDIV:
        quotient = _divide(left, right)
        if math.isnan(quotient) or math.isinf(quotient):
            return quotient
        return math.floor(quotient)
    return _power(left, right)


def _compare(op: Operator, left: Any, right: Any) -> bool:
    if op is Operator.EQ:
        return strict_equals(left, right)
    if op is Operator.NEQ:
        return not strict_equals(left, right)
    comparable = (is_number(left) and is_number(right)) or (
        isinstance(left, str) and isinstance(right, str))
    if not comparable:
        raise error_bad_operands(
            f"operator '{op.symbol}' cannot compare {describe(left)} with {describe(right)}")
    if op is Operator.LT:
        return left < right
    if op is Operator.LTE:
        return left <= right
    if op is Operator.GT:
        return left > right
    return left >= right


def _array_element_type(items: list) -> Type:
    return common_element_type([type_of_value(v) for v in items])


def _check_concat_elements(left: list, right: list) -> None:
    """Two homogeneous arrays may only be joined if their element types agree."""
    left_type = _array_element_type(left)
    right_type = _array_element_type(right)
    if ANY in (left_type, right_type) or types_equal(left_type, right_type):
        return
    raise error_bad_operands(
        f"operator 'concat' cannot join Array<{format_type(left_type)}> "
        f"with Array<{format_type(right_type)}>")


def apply_operator(op: Operator, left: Any, right: Any) -> Any:
    """Apply ``op`` to two already-evaluated operands."""
    if op.category is OperatorCategory.ARITHMETIC:
        return _arithmetic(op, left, right)
    if op.category is OperatorCategory.COMPARISON:
        return _compare(op, left, right)
    if op.category is OperatorCategory.BOOLEAN:
        if op is Operator.AND:
            return is_truthy(left) and is_truthy(right)
        return is_truthy(left) or is_truthy(right)
    if op.category is OperatorCategory.CONCAT:
        if not isinstance(left, list) or not isinstance(right, list):
            raise error_not_an_array(
                f"{describe(left)} and {describe(right)}; operator 'concat' requires two arrays")
        _check_concat_elements(left, right)
        return left + right
    return to_text(left) + to_text(right)


# =============================================================================
# Inference
# =============================================================================

def infer_operator(op: Operator, left: Type, right: Type) -> Type:
    """Deduce the result type of ``op`` applied to operands of the given types."""
    if op.category is OperatorCategory.ARITHMETIC:
        if not (types_equal(left, NUMBER) and types_equal(right, NUMBER)):
            raise error_type_mismatch(
                f"{op.inference_name} requires numeric operands, got "
                f"{format_type(left)} and {format_type(right)}")
        return NUMBER
    if op.category is OperatorCategory.COMPARISON:
        if not types_equal(left, right):
            raise error_type_mismatch(
                f"{op.inference_name} requires operands of same type, got "
                f"{format_type(left)} and {format_type(right)}")
        return BOOLEAN
    if op.category is OperatorCategory.BOOLEAN:
        if not (types_equal(left, BOOLEAN) and types_equal(right, BOOLEAN)):
            raise error_type_mismatch(
                f"{op.inference_name} requires boolean operands, got "
                f"{format_type(left)} and {format_type(right)}")
        return BOOLEAN
    if op.category is OperatorCategory.CONCAT:
        if not (isinstance(left, ArrayType) and isinstance(right, ArrayType)):
            raise error_type_mismatch(
                "operator 'concat' requires both operands to be arrays, got "
                f"{format_type(left)} and {format_type(right)}")
        if types_equal(left.element_type, right.element_type):
            return array_of(left.element_type)
        if ANY in (left.element_type, right.element_type):
            return array_of(ANY)
        raise error_type_mismatch(
            f"operator 'concat' cannot join {format_type(left)} with {format_type(right)}")
    return STRING
