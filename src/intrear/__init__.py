"""
Intrear: a tree-walking evaluator with an optional type-inference pass.

Programs are trees of node objects built by the caller (or loaded from a
YAML/JSON document).  The same tree can be checked statically and executed.

Usage:
    from intrear import (
        Interpreter, check, Literal, VariableDeclaration, ArrowFunction,
        BinaryOperation, VariableReference, FunctionCall,
    )

    program = [
        VariableDeclaration("number", "x", Literal(5)),
        VariableDeclaration("function", "double", ArrowFunction(
            ["n"], BinaryOperation("+", VariableReference("n"), VariableReference("n")))),
        VariableDeclaration("number", "y", FunctionCall("double", [VariableReference("x")])),
    ]
    context = Interpreter(program).execute()
    context.lookup("y")   # 10
"""

from importlib.metadata import PackageNotFoundError, version

from .types import (
    Type,
    PrimitiveType,
    FunctionType,
    ArrayType,
    ObjectType,
    NUMBER,
    STRING,
    BOOLEAN,
    NULL,
    UNDEFINED as UNDEFINED_TYPE,
    BIGINT,
    SYMBOL,
    VOID,
    ANY,
    array_of,
    object_of,
    function_of,
    types_equal,
    format_type,
    resolve_type_name,
)

from .values import (
    UNDEFINED,
    BigInt,
    Symbol,
)

from .errors import (
    ErrorSeverity,
    Diagnostic,
    DiagnosticCollector,
    IntrearError,
    UnboundNameError,
    TypeMismatchError,
    ContractViolation,
    ScriptError,
    HostError,
)

from .signals import (
    ControlSignal,
    ReturnSignal,
    BreakSignal,
    ContinueSignal,
)

from .config import InterpreterConfig, load_config
from .environment import TypeEnvironment
from .context import ExecutionContext, create_context
from .builtins import BuiltinFunction, BuiltinRegistry, get_builtin_registry
from .operators import Operator, OperatorCategory, resolve_operator
from .closures import Closure, ArrowClosure, memoize

from .ast import (
    Node,
    Literal,
    VariableReference,
    VariableDeclaration,
    Assignment,
    Return,
    Break,
    Continue,
    Error,
    FunctionLiteral,
    ArrowFunction,
    FunctionCall,
    BinaryOperation,
    MethodCall,
    ArrayLiteral,
    ObjectLiteral,
    IndexAssignment,
    PropertyAccess,
    CustomNode,
    custom_node,
)

from .statements import (
    Block,
    If,
    While,
    DoWhile,
    For,
    ForEach,
    Switch,
    SwitchCase,
    TryCatch,
)

from .interpreter import Interpreter, run, check, CheckResult
from .loader import load_program, node_from_dict, type_from_spec

try:
    __version__ = version("intrear")
except PackageNotFoundError:  # pragma: no cover - handled when package not installed
    __version__ = "unknown"

__all__ = [
    # Types
    "Type", "PrimitiveType", "FunctionType", "ArrayType", "ObjectType",
    "NUMBER", "STRING", "BOOLEAN", "NULL", "UNDEFINED_TYPE", "BIGINT", "SYMBOL",
    "VOID", "ANY", "array_of", "object_of", "function_of", "types_equal",
    "format_type", "resolve_type_name",
    # Values
    "UNDEFINED", "BigInt", "Symbol",
    # Errors
    "ErrorSeverity", "Diagnostic", "DiagnosticCollector", "IntrearError",
    "UnboundNameError", "TypeMismatchError", "ContractViolation", "ScriptError",
    "HostError",
    # Signals
    "ControlSignal", "ReturnSignal", "BreakSignal", "ContinueSignal",
    # Scopes and runtime
    "InterpreterConfig", "load_config", "TypeEnvironment", "ExecutionContext",
    "create_context", "BuiltinFunction", "BuiltinRegistry", "get_builtin_registry",
    "Operator", "OperatorCategory", "resolve_operator",
    "Closure", "ArrowClosure", "memoize",
    # Nodes
    "Node", "Literal", "VariableReference", "VariableDeclaration", "Assignment",
    "Return", "Break", "Continue", "Error", "FunctionLiteral", "ArrowFunction",
    "FunctionCall", "BinaryOperation", "MethodCall", "ArrayLiteral",
    "ObjectLiteral", "IndexAssignment", "PropertyAccess", "CustomNode",
    "custom_node", "Block", "If", "While", "DoWhile", "For", "ForEach", "Switch",
    "SwitchCase", "TryCatch",
    # Driver
    "Interpreter", "run", "check", "CheckResult",
    "load_program", "node_from_dict", "type_from_spec",
]
