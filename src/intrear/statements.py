"""
Control-flow statements: blocks, conditionals, loops, switch and try/catch.

Loops absorb BreakSignal and ContinueSignal raised by their bodies and let
every other signal or error propagate.  TryCatch catches evaluator errors
only; control signals pass through it unchanged.
"""

from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple, Union

from .types import Type, BOOLEAN, STRING, VOID, ArrayType, object_of, types_equal
from .values import UNDEFINED, describe, strict_equals
from .errors import (
    IntrearError, error_condition_not_boolean, error_not_an_array, error_type_mismatch,
)
from .signals import BreakSignal, ContinueSignal
from .ast import Node, infer_statements, run_statements
from .log import get_logger

logger = get_logger(__name__)

# Type of the value bound to a catch variable.
ERROR_VALUE_TYPE = object_of({"name": STRING, "code": STRING, "message": STRING})


def _condition(node: Node, context) -> bool:
    value = node.execute(context)
    if not isinstance(value, bool):
        raise error_condition_not_boolean(describe(value))
    return value


def _check_condition_type(node: Node, env) -> None:
    cond_type = node.infer_type(env)
    if not types_equal(cond_type, BOOLEAN):
        raise error_type_mismatch(f"condition must be boolean, got {cond_type.name}")


def error_value(err: IntrearError) -> dict:
    """The object a catch variable is bound to."""
    return {"name": type(err).__name__, "code": err.code, "message": err.message}


# =============================================================================
# Blocks and Conditionals
# =============================================================================

@dataclass(frozen=True, eq=False)
class Block(Node):
    """Statements run in a fresh child scope; the value is the last statement's."""
    statements: Sequence[Node] = ()

    def __post_init__(self):
        self._freeze("statements")

    def execute(self, context) -> Any:
        return run_statements(self.statements, context.child("block"))

    def infer_type(self, env) -> Type:
        return infer_statements(self.statements, env.child("block"))


@dataclass(frozen=True, eq=False)
class If(Node):
    """Run one of two branches depending on a boolean condition."""
    condition: Node
    then_branch: Sequence[Node]
    else_branch: Optional[Sequence[Node]] = None

    def __post_init__(self):
        self._freeze("then_branch", "else_branch")

    def execute(self, context) -> Any:
        branch = self.then_branch if _condition(self.condition, context) else self.else_branch
        if branch is None:
            return UNDEFINED
        return run_statements(branch, context.child("if"))

    def infer_type(self, env) -> Type:
        _check_condition_type(self.condition, env)
        infer_statements(self.then_branch, env.child("then"))
        if self.else_branch is not None:
            infer_statements(self.else_branch, env.child("else"))
        return VOID


@dataclass(frozen=True)
class SwitchCase:
    """One ``case``: a match expression and the body run when it matches."""
    match: Node
    body: Sequence[Node]

    def __post_init__(self):
        object.__setattr__(self, "body", tuple(self.body))


@dataclass(frozen=True, eq=False)
class Switch(Node):
    """
    Run the body of the first case whose value strictly equals the control
    value, or the default body when none does.  There is no fall-through.
    """
    expression: Node
    cases: Sequence[Union[SwitchCase, Tuple[Node, Sequence[Node]]]] = ()
    default: Optional[Sequence[Node]] = None

    def __post_init__(self):
        cases = tuple(c if isinstance(c, SwitchCase) else SwitchCase(*c) for c in self.cases)
        object.__setattr__(self, "cases", cases)
        self._freeze("default")

    def execute(self, context) -> Any:
        value = self.expression.execute(context)
        for case in self.cases:
            if strict_equals(value, case.match.execute(context)):
                return run_statements(case.body, context.child("case"))
        if self.default is not None:
            return run_statements(self.default, context.child("default"))
        return UNDEFINED

    def infer_type(self, env) -> Type:
        expr_type = self.expression.infer_type(env)
        for case in self.cases:
            match_type = case.match.infer_type(env)
            if not types_equal(expr_type, match_type):
                raise error_type_mismatch(
                    f"switch case type {match_type.name} does not match "
                    f"expression type {expr_type.name}")
            infer_statements(case.body, env.child("case"))
        if self.default is not None:
            infer_statements(self.default, env.child("default"))
        return VOID


# =============================================================================
# Loops
# =============================================================================
#
# A loop execution owns one scope for its condition and update.  While and
# DoWhile bodies run in that scope as well, so the condition sees the
# body's assignments.  For and ForEach bodies get a fresh child of it
# per iteration, so a closure made in the body keeps that iteration's
# bindings.  Nothing reaches the enclosing scope.

@dataclass(frozen=True, eq=False)
class While(Node):
    """Repeat the body while the condition holds."""
    condition: Node
    body: Sequence[Node] = ()

    def __post_init__(self):
        self._freeze("body")

    def execute(self, context) -> Any:
        scope = context.child("while")
        result = UNDEFINED
        while _condition(self.condition, scope):
            try:
                result = run_statements(self.body, scope)
            except ContinueSignal:
                continue
            except BreakSignal:
                break
        return result

    def infer_type(self, env) -> Type:
        scope = env.child("while")
        _check_condition_type(self.condition, scope)
        infer_statements(self.body, scope)
        return VOID


@dataclass(frozen=True, eq=False)
class DoWhile(Node):
    """Run the body once, then repeat while the condition holds."""
    body: Sequence[Node]
    condition: Node

    def __post_init__(self):
        self._freeze("body")

    def execute(self, context) -> Any:
        scope = context.child("do-while")
        result = UNDEFINED
        while True:
            try:
                result = run_statements(self.body, scope)
            except ContinueSignal:
                pass
            except BreakSignal:
                break
            if not _condition(self.condition, scope):
                break
        return result

    def infer_type(self, env) -> Type:
        scope = env.child("do-while")
        infer_statements(self.body, scope)
        _check_condition_type(self.condition, scope)
        return VOID


@dataclass(frozen=True, eq=False)
class For(Node):
    """
    C-style loop.  ``init``, ``condition`` and ``update`` may each be None;
    a missing condition always holds.
    """
    init: Optional[Node]
    condition: Optional[Node]
    update: Optional[Node]
    body: Sequence[Node] = ()

    def __post_init__(self):
        self._freeze("body")

    def execute(self, context) -> Any:
        scope = context.child("for")
        if self.init is not None:
            self.init.execute(scope)
        result = UNDEFINED
        while self.condition is None or _condition(self.condition, scope):
            try:
                result = run_statements(self.body, scope.child("for body"))
            except ContinueSignal:
                pass
            except BreakSignal:
                break
            if self.update is not None:
                self.update.execute(scope)
        return result

    def infer_type(self, env) -> Type:
        scope = env.child("for")
        if self.init is not None:
            self.init.infer_type(scope)
        if self.condition is not None:
            _check_condition_type(self.condition, scope)
        if self.update is not None:
            self.update.infer_type(scope)
        infer_statements(self.body, scope.child("for body"))
        return VOID


@dataclass(frozen=True, eq=False)
class ForEach(Node):
    """Run the body once per array element, bound to ``item``."""
    item: str
    iterable: Node
    body: Sequence[Node] = ()

    def __post_init__(self):
        self._freeze("body")

    def execute(self, context) -> Any:
        array = self.iterable.execute(context)
        if not isinstance(array, list):
            raise error_not_an_array(describe(array))
        result = UNDEFINED
        for element in array:
            scope = context.child("for-each")
            scope.define(self.item, element)
            try:
                result = run_statements(self.body, scope)
            except ContinueSignal:
                continue
            except BreakSignal:
                break
        return result

    def infer_type(self, env) -> Type:
        iterable_type = self.iterable.infer_type(env)
        if not isinstance(iterable_type, ArrayType):
            raise error_type_mismatch(
                f"target of ForEach must be an array, got {iterable_type.name}")
        scope = env.child("for-each")
        scope.define(self.item, iterable_type.element_type)
        infer_statements(self.body, scope)
        return VOID


# =============================================================================
# Error Handling
# =============================================================================

@dataclass(frozen=True, eq=False)
class TryCatch(Node):
    """
    Run ``try_block``; on an evaluator error run ``catch_block`` with the
    error bound to ``catch_var`` as ``{name, code, message}``.
    """
    try_block: Sequence[Node]
    catch_var: str
    catch_block: Sequence[Node] = ()

    def __post_init__(self):
        self._freeze("try_block", "catch_block")

    def execute(self, context) -> Any:
        try:
            return run_statements(self.try_block, context.child("try"))
        except IntrearError as err:
            logger.debug("caught %s[%s]: %s", type(err).__name__, err.code, err.message)
            scope = context.child("catch")
            scope.define(self.catch_var, error_value(err))
            return run_statements(self.catch_block, scope)

    def infer_type(self, env) -> Type:
        infer_statements(self.try_block, env.child("try"))
        scope = env.child("catch")
        scope.define(self.catch_var, ERROR_VALUE_TYPE)
        infer_statements(self.catch_block, scope)
        return VOID
