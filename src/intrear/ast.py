"""
Expression and declaration nodes for the Intrear evaluator.

Programs are trees of immutable nodes built directly by the caller.  Every
node supports two independent traversals:

    execute(context)   -> runtime value (may raise errors or control signals)
    infer_type(env)    -> static Type (may raise TypeMismatchError/UnboundNameError)

Control-flow statements (blocks, conditionals, loops, switch, try/catch)
live in ``statements``.
"""

import math
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, Tuple, Union
from abc import ABC, abstractmethod

from .types import (
    Type, ANY, NUMBER, VOID, ArrayType, FunctionType, ObjectType,
    array_of, function_of, object_of, resolve_declaration_kind, resolve_type_name,
    types_equal,
)
from .values import (
    UNDEFINED, BigInt, Symbol, common_element_type, describe, is_number, to_text,
    type_of_value,
)
from .errors import (
    IntrearError,
    error_bad_index,
    error_function_literal,
    error_host,
    error_not_an_array,
    error_not_callable,
    error_null_access,
    error_script,
    error_type_mismatch,
    error_unsupported_kind,
)
from .signals import BreakSignal, ContinueSignal, ControlSignal, ReturnSignal
from .operators import Operator, apply_operator, infer_operator, resolve_operator
from .methods import call_method, infer_method
from .closures import ArrowClosure, Closure, memoize


# =============================================================================
# Base Class and Helpers
# =============================================================================

@dataclass(frozen=True, eq=False)
class Node(ABC):
    """Base class for all tree nodes."""

    @abstractmethod
    def execute(self, context) -> Any:
        """Evaluate this node against an execution context."""
        pass

    @abstractmethod
    def infer_type(self, env) -> Type:
        """Deduce this node's static type against a type environment."""
        pass

    def _freeze(self, *names: str) -> None:
        for name in names:
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, tuple(value))

    def describe(self) -> str:
        """Short label used in diagnostics."""
        return type(self).__name__


def run_statements(statements: Iterable[Node], context) -> Any:
    """Execute statements in order, returning the last value (undefined if none)."""
    result = UNDEFINED
    for stmt in statements:
        result = stmt.execute(context)
    return result


def infer_statements(statements: Iterable[Node], env) -> Type:
    """Infer statements in order, returning the last type (void if none)."""
    result = VOID
    for stmt in statements:
        result = stmt.infer_type(env)
    return result


def evaluate_argument(node: Node, context) -> Any:
    """
    Evaluate a node in an argument position.

    Function and arrow literals become closures over ``context`` instead of
    being executed.
    """
    if isinstance(node, (FunctionLiteral, ArrowFunction)):
        return node.to_callable(context)
    return node.execute(context)


def as_index(value: Any) -> Optional[int]:
    """Return ``value`` as a non-negative integer index, or None if it is not one."""
    if not is_number(value) or math.isnan(value) or math.isinf(value):
        return None
    if value < 0 or int(value) != value:
        return None
    return int(value)


def call_host(name: str, fn: Callable[..., Any], *args: Any) -> Any:
    """Invoke a callable, wrapping foreign exceptions as HostError."""
    try:
        return fn(*args)
    except (IntrearError, ControlSignal):
        raise
    except Exception as exc:
        raise error_host(name, exc) from exc


# =============================================================================
# Values and Names
# =============================================================================

@dataclass(frozen=True, eq=False)
class Literal(Node):
    """A scalar literal (number, string, boolean, null, undefined, bigint, symbol)."""
    value: Any = UNDEFINED

    def __post_init__(self):
        value = self.value
        if not (value is None or value is UNDEFINED
                or isinstance(value, (bool, int, float, str, BigInt, Symbol))):
            raise ValueError(
                f"Literal holds scalars only, got {type(value).__name__}; "
                "use ArrayLiteral or ObjectLiteral for collections")

    def execute(self, context) -> Any:
        return self.value

    def infer_type(self, env) -> Type:
        return type_of_value(self.value)


@dataclass(frozen=True, eq=False)
class VariableReference(Node):
    """A reference to a bound name."""
    name: str

    def execute(self, context) -> Any:
        return context.lookup(self.name)

    def infer_type(self, env) -> Type:
        return env.lookup(self.name)


@dataclass(frozen=True, eq=False)
class VariableDeclaration(Node):
    """
    Declare ``name`` of a given kind in the current scope.

    Kind ``function`` requires a function or arrow literal initializer,
    which is converted to a closure.  Every other kind evaluates the
    initializer and checks the value's runtime kind.  Both passes read the
    same kind table, so a declaration rejected by one is rejected by the
    other.
    """
    kind: str
    name: str
    initializer: Node

    def _rules(self):
        rules = resolve_declaration_kind(self.kind)
        if rules is None:
            raise error_unsupported_kind(self.kind, f"declaration of '{self.name}'")
        return rules

    def execute(self, context) -> Any:
        rules = self._rules()
        if self.kind == "function":
            if not isinstance(self.initializer, (FunctionLiteral, ArrowFunction)):
                raise error_type_mismatch(
                    f"variable '{self.name}' expected a function literal, "
                    f"got {self.initializer.describe()}")
            value = self.initializer.to_callable(context)
        else:
            value = self.initializer.execute(context)
            if not rules.runtime_check(value):
                raise error_type_mismatch(
                    f"variable '{self.name}' expected {self.kind}, got {describe(value)}")
        context.define(self.name, value)
        return value

    def infer_type(self, env) -> Type:
        rules = self._rules()
        actual = self.initializer.infer_type(env)
        expected = rules.expected_static_type(actual)
        if expected is None or not types_equal(actual, expected):
            wanted = expected.name if expected is not None else self.kind
            raise error_type_mismatch(
                f"type mismatch in declaration of '{self.name}': "
                f"expected {wanted}, got {actual.name}")
        env.define(self.name, actual)
        return actual


@dataclass(frozen=True, eq=False)
class Assignment(Node):
    """
    Re-assign an already bound name.

    The new value is written into the *current* frame, so assigning inside
    a nested scope shadows the outer binding rather than mutating it.
    """
    name: str
    expression: Node

    def execute(self, context) -> Any:
        context.lookup(self.name)
        value = self.expression.execute(context)
        context.define(self.name, value)
        return value

    def infer_type(self, env) -> Type:
        current = env.lookup(self.name)
        new = self.expression.infer_type(env)
        if not types_equal(current, new):
            raise error_type_mismatch(
                f"type mismatch in assignment to '{self.name}': "
                f"expected {current.name}, got {new.name}")
        return current


# =============================================================================
# Control Transfer
# =============================================================================

@dataclass(frozen=True, eq=False)
class Return(Node):
    """Leave the enclosing function with a value (undefined when omitted)."""
    expression: Optional[Node] = None

    def execute(self, context) -> Any:
        value = UNDEFINED if self.expression is None else self.expression.execute(context)
        raise ReturnSignal(value)

    def infer_type(self, env) -> Type:
        if self.expression is None:
            return VOID
        return self.expression.infer_type(env)


@dataclass(frozen=True, eq=False)
class Break(Node):
    """Exit the innermost loop."""

    def execute(self, context) -> Any:
        raise BreakSignal()

    def infer_type(self, env) -> Type:
        return VOID


@dataclass(frozen=True, eq=False)
class Continue(Node):
    """Skip to the next iteration of the innermost loop."""

    def execute(self, context) -> Any:
        raise ContinueSignal()

    def infer_type(self, env) -> Type:
        return VOID


@dataclass(frozen=True, eq=False)
class Error(Node):
    """Raise a script error whose text is the evaluated message."""
    message: Node

    def execute(self, context) -> Any:
        raise error_script(to_text(self.message.execute(context)))

    def infer_type(self, env) -> Type:
        self.message.infer_type(env)
        return VOID


# =============================================================================
# Functions
# =============================================================================

@dataclass(frozen=True, eq=False)
class FunctionLiteral(Node):
    """
    A block-bodied function.

    The node is a factory: :meth:`to_callable` produces a new closure over
    whatever context is active at conversion time.  Executing the node
    directly is an error.
    """
    name: Optional[str]
    params: Sequence[str]
    body: Sequence[Node]
    param_types: Optional[Sequence[Type]] = None
    return_type: Optional[Type] = None
    pure: bool = False

    def __post_init__(self):
        self._freeze("params", "body", "param_types")
        if self.param_types is not None and len(self.param_types) != len(self.params):
            raise ValueError(
                f"function {self.name or 'anonymous'}: {len(self.params)} parameter(s) "
                f"but {len(self.param_types)} declared type(s)")

    def execute(self, context) -> Any:
        raise error_function_literal(
            f"function literal '{self.name or 'anonymous'}' cannot be executed directly")

    def to_callable(self, context) -> Callable[..., Any]:
        fn: Callable[..., Any] = Closure(self, context)
        if self.pure and context.config.memoize_pure:
            fn = memoize(fn)
        return fn

    def declared_param_types(self) -> Tuple[Type, ...]:
        """Declared parameter types, with ``any`` for untyped parameters."""
        if self.param_types is not None:
            return tuple(self.param_types)
        return tuple(ANY for _ in self.params)

    def infer_type(self, env) -> Type:
        params = self.declared_param_types()
        local = env.child(f"function {self.name or 'anonymous'}")
        for param, param_type in zip(self.params, params):
            local.define(param, param_type)
        if self.name and self.param_types is not None and self.return_type is not None:
            # Fully annotated: recursive calls can be checked against the signature.
            local.define(self.name, function_of(params, self.return_type))

        body_type = infer_statements(self.body, local)
        if self.return_type is not None and not types_equal(body_type, self.return_type):
            raise error_type_mismatch(
                f"return type mismatch in '{self.name or 'anonymous'}': "
                f"expected {self.return_type.name}, got {body_type.name}")

        fn_type = function_of(
            params, self.return_type if self.return_type is not None else body_type)
        if self.name:
            env.define(self.name, fn_type)
        return fn_type


@dataclass(frozen=True, eq=False)
class ArrowFunction(Node):
    """A single-expression function with lexical scoping."""
    params: Sequence[str]
    body: Node

    def __post_init__(self):
        self._freeze("params")

    def execute(self, context) -> Any:
        raise error_function_literal("arrow function cannot be executed directly")

    def to_callable(self, context) -> Callable[..., Any]:
        return ArrowClosure(self, context)

    def infer_type(self, env) -> Type:
        local = env.child("arrow")
        for param in self.params:
            local.define(param, ANY)
        return function_of([ANY] * len(self.params), self.body.infer_type(local))


@dataclass(frozen=True, eq=False)
class FunctionCall(Node):
    """Call the callable bound to ``name``."""
    name: str
    args: Sequence[Node] = ()

    def __post_init__(self):
        self._freeze("args")

    def execute(self, context) -> Any:
        fn = context.lookup(self.name)
        if not callable(fn):
            raise error_not_callable(self.name)
        args = [evaluate_argument(arg, context) for arg in self.args]
        return call_host(self.name, fn, *args)

    def infer_type(self, env) -> Type:
        fn_type = env.lookup(self.name)
        if not isinstance(fn_type, FunctionType):
            raise error_type_mismatch(f"'{self.name}' is not a function (got {fn_type.name})")
        if fn_type.variadic:
            for arg in self.args:
                arg.infer_type(env)
            return fn_type.return_type
        if len(fn_type.param_types) != len(self.args):
            raise error_type_mismatch(
                f"argument count mismatch in call to '{self.name}': "
                f"expected {len(fn_type.param_types)}, got {len(self.args)}")
        for i, (arg, param_type) in enumerate(zip(self.args, fn_type.param_types)):
            arg_type = arg.infer_type(env)
            if not types_equal(arg_type, param_type):
                raise error_type_mismatch(
                    f"argument {i} of '{self.name}': expected {param_type.name}, "
                    f"got {arg_type.name}")
        return fn_type.return_type


# =============================================================================
# Operators and Methods
# =============================================================================

@dataclass(frozen=True, eq=False)
class BinaryOperation(Node):
    """
    A binary operator applied to two operands.

    ``operator`` accepts either spelling of an operator ("+" or "o_plus").
    Both operands are always evaluated, left first.
    """
    operator: Union[str, Operator]
    left: Node
    right: Node

    @property
    def operands(self) -> Tuple[Node, Node]:
        return (self.left, self.right)

    @property
    def op(self) -> Operator:
        return resolve_operator(self.operator)

    def execute(self, context) -> Any:
        left = self.left.execute(context)
        right = self.right.execute(context)
        return apply_operator(self.op, left, right)

    def infer_type(self, env) -> Type:
        left = self.left.infer_type(env)
        right = self.right.infer_type(env)
        return infer_operator(self.op, left, right)


@dataclass(frozen=True, eq=False)
class MethodCall(Node):
    """Call a built-in method (or a callable property) on a value."""
    target: Node
    method: str
    args: Sequence[Node] = ()

    def __post_init__(self):
        self._freeze("args")

    def execute(self, context) -> Any:
        target = self.target.execute(context)
        if target is None or target is UNDEFINED:
            raise error_null_access(f"method '{self.method}'")
        args = [evaluate_argument(arg, context) for arg in self.args]
        return call_host(self.method, call_method, target, self.method, args)

    def infer_type(self, env) -> Type:
        return infer_method(self.target.infer_type(env), self.method)


# =============================================================================
# Collections
# =============================================================================

@dataclass(frozen=True, eq=False)
class ArrayLiteral(Node):
    """An array built from element expressions, evaluated in order."""
    elements: Sequence[Node] = ()

    def __post_init__(self):
        self._freeze("elements")

    def execute(self, context) -> Any:
        return [element.execute(context) for element in self.elements]

    def infer_type(self, env) -> Type:
        return array_of(common_element_type([e.infer_type(env) for e in self.elements]))


@dataclass(frozen=True, eq=False)
class ObjectLiteral(Node):
    """
    An object built from named property expressions, evaluated in order.

    Function and arrow literals used as property values become closures, so
    an object can carry callable properties.
    """
    properties: Union[Mapping[str, Node], Sequence[Tuple[str, Node]]] = ()

    def __post_init__(self):
        items = self.properties.items() if isinstance(self.properties, Mapping) else self.properties
        object.__setattr__(self, "properties", tuple((str(k), v) for k, v in items))

    def execute(self, context) -> Any:
        return {key: evaluate_argument(node, context) for key, node in self.properties}

    def infer_type(self, env) -> Type:
        return object_of({key: node.infer_type(env) for key, node in self.properties})


@dataclass(frozen=True, eq=False)
class IndexAssignment(Node):
    """
    Write ``value`` into ``target[index]`` in place.

    Writing past the end pads the array with undefined.
    """
    target: Node
    index: Node
    value: Node

    def execute(self, context) -> Any:
        array = self.target.execute(context)
        index = self.index.execute(context)
        value = self.value.execute(context)
        if not isinstance(array, list):
            raise error_not_an_array(describe(array))
        if not is_number(index):
            raise error_bad_index(f"index must be a number, got {describe(index)}")
        position = as_index(index)
        if position is None:
            raise error_bad_index(f"index must be a non-negative integer, got {to_text(index)}")
        index = position
        if index >= len(array):
            array.extend([UNDEFINED] * (index + 1 - len(array)))
        array[index] = value
        return value

    def infer_type(self, env) -> Type:
        array_type = self.target.infer_type(env)
        index_type = self.index.infer_type(env)
        value_type = self.value.infer_type(env)
        if not types_equal(index_type, NUMBER):
            raise error_type_mismatch(f"index must be a number, got {index_type.name}")
        if not isinstance(array_type, ArrayType):
            raise error_type_mismatch(f"index target must be an array, got {array_type.name}")
        if not types_equal(array_type.element_type, value_type):
            raise error_type_mismatch(
                f"assigned value type {value_type.name} does not match "
                f"element type {array_type.element_type.name}")
        return value_type


@dataclass(frozen=True, eq=False)
class PropertyAccess(Node):
    """
    Read a property by static name or by a computed key.

    Arrays and strings answer ``length`` and integer indices; anything
    missing reads as undefined.
    """
    object: Node
    property: Union[str, Node]

    def _key(self, context) -> Any:
        if isinstance(self.property, str):
            return self.property
        return self.property.execute(context)

    def execute(self, context) -> Any:
        target = self.object.execute(context)
        if target is None or target is UNDEFINED:
            what = self.property if isinstance(self.property, str) else "computed"
            raise error_null_access(f"property '{what}'")
        key = self._key(context)
        if isinstance(target, dict):
            return target.get(key if isinstance(key, str) else to_text(key), UNDEFINED)
        if isinstance(target, (list, str)):
            if key == "length":
                return len(target)
            if isinstance(key, str) and key.isdigit():
                key = int(key)
            position = as_index(key)
            if position is not None and position < len(target):
                return target[position]
        return UNDEFINED

    def infer_type(self, env) -> Type:
        object_type = self.object.infer_type(env)
        if isinstance(object_type, ObjectType) and isinstance(self.property, str):
            found = object_type.property_type(self.property)
            return found if found is not None else ANY
        return ANY


# =============================================================================
# Custom Nodes
# =============================================================================

@dataclass(frozen=True, eq=False)
class CustomNode(Node):
    """A caller-defined node: an execute callback plus a fixed or computed type."""
    callback: Callable[[Any], Any]
    type_spec: Union[Type, Callable[[Any], Type]]

    def execute(self, context) -> Any:
        name = getattr(self.callback, "__name__", "custom node")
        return call_host(name, self.callback, context)

    def infer_type(self, env) -> Type:
        if isinstance(self.type_spec, Type):
            return self.type_spec
        return self.type_spec(env)


def custom_node(execute: Callable[[Any], Any],
                type_spec: Union[Type, str, Callable[[Any], Type]]) -> CustomNode:
    """
    Create a node from a host callback.

    Args:
        execute: Called with the execution context; its result is the node's value
        type_spec: A Type, a primitive type name, or a callable taking the
            type environment and returning a Type
    """
    if isinstance(type_spec, str):
        resolved = resolve_type_name(type_spec)
        if resolved is None:
            raise ValueError(f"unknown primitive type: {type_spec}")
        type_spec = resolved
    if not isinstance(type_spec, Type) and not callable(type_spec):
        raise TypeError("type_spec must be a Type, a type name, or a callable")
    return CustomNode(execute, type_spec)
