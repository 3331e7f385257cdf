"""
Build node trees from YAML or JSON program documents.

A document is a mapping with a ``program`` list (or a bare list).  Each
entry names its node class under ``node`` and carries that node's fields::

    program:
      - node: VariableDeclaration
        kind: number
        name: x
        initializer: {node: Literal, value: 5}
      - node: FunctionCall
        name: print
        args:
          - {node: VariableReference, name: x}

Literal values are YAML scalars; ``{bigint: "123"}`` and ``{symbol: "tag"}``
produce the two kinds YAML has no notation for, and a Literal with no
``value`` is undefined.  Types are written as a primitive name,
``{array: T}``, ``{object: {prop: T}}`` or ``{function: {params: [T], returns: T}}``.
"""

import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Union

import yaml

from .types import Type, array_of, function_of, object_of, resolve_type_name
from .values import BigInt, Symbol
from . import ast
from . import statements
from .log import get_logger

logger = get_logger(__name__)

__all__ = ["node_from_dict", "type_from_spec", "program_from_data", "load_program"]


# Field kinds; a trailing "?" marks the field optional.
_SCHEMA: Dict[str, Dict[str, str]] = {
    "Literal": {"value": "literal?"},
    "VariableReference": {"name": "str"},
    "VariableDeclaration": {"kind": "str", "name": "str", "initializer": "node"},
    "Assignment": {"name": "str", "expression": "node"},
    "Return": {"expression": "node?"},
    "Break": {},
    "Continue": {},
    "Error": {"message": "node"},
    "FunctionLiteral": {
        "name": "str?", "params": "names", "body": "nodes",
        "param_types": "types?", "return_type": "type?", "pure": "bool?",
    },
    "ArrowFunction": {"params": "names", "body": "node"},
    "FunctionCall": {"name": "str", "args": "nodes?"},
    "BinaryOperation": {"operator": "str", "left": "node", "right": "node"},
    "MethodCall": {"target": "node", "method": "str", "args": "nodes?"},
    "ArrayLiteral": {"elements": "nodes?"},
    "ObjectLiteral": {"properties": "node_map?"},
    "IndexAssignment": {"target": "node", "index": "node", "value": "node"},
    "PropertyAccess": {"object": "node", "property": "key"},
    "Block": {"statements": "nodes?"},
    "If": {"condition": "node", "then_branch": "nodes", "else_branch": "nodes?"},
    "While": {"condition": "node", "body": "nodes?"},
    "DoWhile": {"body": "nodes", "condition": "node"},
    "For": {"init": "node?", "condition": "node?", "update": "node?", "body": "nodes?"},
    "ForEach": {"item": "str", "iterable": "node", "body": "nodes?"},
    "Switch": {"expression": "node", "cases": "cases?", "default": "nodes?"},
    "TryCatch": {"try_block": "nodes", "catch_var": "str", "catch_block": "nodes?"},
}

_ALIASES = {"Operator": "BinaryOperation"}


def _node_class(name: str):
    name = _ALIASES.get(name, name)
    if name not in _SCHEMA:
        raise ValueError(f"unknown node kind: {name}")
    return name, getattr(ast, name, None) or getattr(statements, name)


def type_from_spec(spec: Any) -> Type:
    """Convert a type description (see module docstring) to a Type."""
    if isinstance(spec, str):
        resolved = resolve_type_name(spec)
        if resolved is None:
            raise ValueError(f"unknown type name: {spec}")
        return resolved
    if isinstance(spec, dict) and len(spec) == 1:
        (tag, body), = spec.items()
        if tag == "array":
            return array_of(type_from_spec(body))
        if tag == "object" and isinstance(body, dict):
            return object_of({str(k): type_from_spec(v) for k, v in body.items()})
        if tag == "function" and isinstance(body, dict):
            params = [type_from_spec(p) for p in body.get("params", [])]
            return function_of(params, type_from_spec(body.get("returns", "void")))
    raise ValueError(f"malformed type: {spec!r}")


def _literal(value: Any) -> Any:
    if isinstance(value, dict) and len(value) == 1:
        if "bigint" in value:
            return BigInt(int(value["bigint"]))
        if "symbol" in value:
            return Symbol(str(value["symbol"]))
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    raise ValueError(
        f"unsupported literal value {value!r}; use ArrayLiteral or ObjectLiteral for collections")


def _nodes(value: Any, where: str) -> List[ast.Node]:
    if not isinstance(value, list):
        raise ValueError(f"{where}: expected a list of nodes")
    return [node_from_dict(item) for item in value]


def _case(value: Any) -> statements.SwitchCase:
    if not isinstance(value, dict) or "match" not in value:
        raise ValueError("switch case must be a mapping with 'match' and 'body'")
    return statements.SwitchCase(node_from_dict(value["match"]),
                                 _nodes(value.get("body", []), "case body"))


_CONVERTERS: Dict[str, Callable[[Any, str], Any]] = {
    "str": lambda v, where: _require(isinstance(v, str), v, where, "a string"),
    "bool": lambda v, where: _require(isinstance(v, bool), v, where, "a boolean"),
    "literal": lambda v, where: _literal(v),
    "node": lambda v, where: node_from_dict(v),
    "nodes": _nodes,
    "names": lambda v, where: [_require(isinstance(n, str), n, where, "a name") for n in v]
    if isinstance(v, list) else _require(False, v, where, "a list of names"),
    "type": lambda v, where: type_from_spec(v),
    "types": lambda v, where: [type_from_spec(t) for t in v],
    "node_map": lambda v, where: {str(k): node_from_dict(n) for k, n in v.items()}
    if isinstance(v, dict) else _require(False, v, where, "a mapping of nodes"),
    "key": lambda v, where: v if isinstance(v, str) else node_from_dict(v),
    "cases": lambda v, where: [_case(c) for c in v],
}


def _require(ok: bool, value: Any, where: str, what: str) -> Any:
    if not ok:
        raise ValueError(f"{where}: expected {what}, got {value!r}")
    return value


def node_from_dict(data: Any) -> ast.Node:
    """
    Build one node (and its children) from a mapping.

    Raises:
        ValueError: unknown node kind, unknown field, missing required field
            or a malformed field value
    """
    if not isinstance(data, dict) or "node" not in data:
        raise ValueError(f"expected a node mapping with a 'node' key, got {data!r}")
    name, cls = _node_class(data["node"])
    schema = _SCHEMA[name]

    unknown = sorted(set(data) - set(schema) - {"node"})
    if unknown:
        raise ValueError(f"{name}: unknown field(s) {', '.join(unknown)}")

    kwargs: Dict[str, Any] = {}
    for field_name, kind in schema.items():
        optional = kind.endswith("?")
        kind = kind.rstrip("?")
        if field_name not in data:
            if not optional:
                raise ValueError(f"{name}: missing field '{field_name}'")
            continue
        value = data[field_name]
        if value is None and optional and kind != "literal":
            continue
        kwargs[field_name] = _CONVERTERS[kind](value, f"{name}.{field_name}")

    if name == "FunctionLiteral":
        kwargs.setdefault("name", None)
    return cls(**kwargs)


def program_from_data(data: Any) -> List[ast.Node]:
    """Build a program from an already parsed document."""
    if isinstance(data, dict):
        if "program" not in data:
            raise ValueError("program document must have a 'program' key")
        data = data["program"]
    if not isinstance(data, list):
        raise ValueError("program must be a list of nodes")
    return [node_from_dict(item) for item in data]


def load_program(path: Union[str, Path]) -> List[ast.Node]:
    """Load a program from a ``.json``, ``.yaml`` or ``.yml`` file."""
    program_path = Path(path)
    if not program_path.exists():
        raise FileNotFoundError(f"program file not found: {program_path}")
    text = program_path.read_text(encoding="utf-8")
    try:
        if program_path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ValueError(f"failed to parse {program_path}: {exc}") from exc
    nodes = program_from_data(data)
    logger.info("loaded %d top-level node(s) from %s", len(nodes), program_path)
    return nodes
