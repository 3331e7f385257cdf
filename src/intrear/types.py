"""
Type system definitions for the Intrear evaluator.

Types are structural values:
    Primitives: number, string, boolean, null, undefined, bigint, symbol,
                void, any
    Composites: function (params -> return), array<T>, object {name: T}

Equality is structural and recursive.  The ``any`` tag is *not* a wildcard:
it only equals another ``any``.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Mapping, Optional, Tuple
from abc import ABC, abstractmethod


# =============================================================================
# Type Classes
# =============================================================================

@dataclass(frozen=True)
class Type(ABC):
    """Base class for all Intrear types."""

    @property
    @abstractmethod
    def name(self) -> str:
        """The type name for display/errors."""
        pass

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class PrimitiveType(Type):
    """A primitive type identified only by its tag."""
    tag: str

    @property
    def name(self) -> str:
        return self.tag


@dataclass(frozen=True)
class FunctionType(Type):
    """
    A function type: ordered parameter types plus one return type.

    ``variadic`` marks built-ins such as ``print`` whose arity is open; it
    is ignored by structural equality.
    """
    param_types: Tuple[Type, ...]
    return_type: Type
    variadic: bool = field(default=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "param_types", tuple(self.param_types))

    @property
    def name(self) -> str:
        params = ", ".join(t.name for t in self.param_types)
        return f"({params}) => {self.return_type.name}"


@dataclass(frozen=True)
class ArrayType(Type):
    """An array type: Array<T>."""
    element_type: Type

    @property
    def name(self) -> str:
        return f"Array<{self.element_type.name}>"


@dataclass(frozen=True)
class ObjectType(Type):
    """
    An object type mapping property names to types.

    Properties are stored sorted by name so that two object types built
    from differently ordered mappings compare and hash identically.
    """
    properties: Tuple[Tuple[str, Type], ...] = ()

    def __post_init__(self):
        items = self.properties.items() if isinstance(self.properties, Mapping) else self.properties
        object.__setattr__(self, "properties", tuple(sorted(items, key=lambda kv: kv[0])))

    @property
    def property_map(self) -> Dict[str, Type]:
        return dict(self.properties)

    def property_type(self, prop: str) -> Optional[Type]:
        """Return the type of ``prop`` or None if the object has no such property."""
        for key, prop_type in self.properties:
            if key == prop:
                return prop_type
        return None

    @property
    def name(self) -> str:
        if not self.properties:
            return "{ }"
        props = ", ".join(f"{key}: {t.name}" for key, t in self.properties)
        return f"{{ {props} }}"


# =============================================================================
# Built-in Type Instances
# =============================================================================

NUMBER = PrimitiveType("number")
STRING = PrimitiveType("string")
BOOLEAN = PrimitiveType("boolean")
NULL = PrimitiveType("null")
UNDEFINED = PrimitiveType("undefined")
BIGINT = PrimitiveType("bigint")
SYMBOL = PrimitiveType("symbol")
VOID = PrimitiveType("void")
ANY = PrimitiveType("any")

PRIMITIVE_TYPES: Dict[str, PrimitiveType] = {
    t.tag: t for t in (NUMBER, STRING, BOOLEAN, NULL, UNDEFINED, BIGINT, SYMBOL, VOID, ANY)
}


def resolve_type_name(name: str) -> Optional[PrimitiveType]:
    """Look up a primitive type by tag."""
    return PRIMITIVE_TYPES.get(name)


def array_of(element_type: Type) -> ArrayType:
    """Create an array type with the given element type."""
    return ArrayType(element_type)


def object_of(properties: Mapping[str, Type]) -> ObjectType:
    """Create an object type from a name -> type mapping."""
    return ObjectType(tuple(properties.items()))


def function_of(param_types: Iterable[Type], return_type: Type,
                variadic: bool = False) -> FunctionType:
    """Create a function type."""
    return FunctionType(tuple(param_types), return_type, variadic)


# =============================================================================
# Structural Equality and Formatting
# =============================================================================

def types_equal(a: Type, b: Type) -> bool:
    """
    Compare two types structurally.

    Primitives compare by tag, so ``any`` only matches ``any``.  Function
    types compare parameter lists positionally and then return types;
    arrays compare element types; objects compare property-name sets and
    per-property types regardless of declaration order.
    """
    if isinstance(a, PrimitiveType) and isinstance(b, PrimitiveType):
        return a.tag == b.tag
    if isinstance(a, FunctionType) and isinstance(b, FunctionType):
        if len(a.param_types) != len(b.param_types):
            return False
        for pa, pb in zip(a.param_types, b.param_types):
            if not types_equal(pa, pb):
                return False
        return types_equal(a.return_type, b.return_type)
    if isinstance(a, ArrayType) and isinstance(b, ArrayType):
        return types_equal(a.element_type, b.element_type)
    if isinstance(a, ObjectType) and isinstance(b, ObjectType):
        a_props = a.property_map
        b_props = b.property_map
        if a_props.keys() != b_props.keys():
            return False
        return all(types_equal(a_props[key], b_props[key]) for key in a_props)
    return False


def format_type(t: Type) -> str:
    """Render a type for diagnostics."""
    return t.name


def is_array(t: Type) -> bool:
    return isinstance(t, ArrayType)


def is_object(t: Type) -> bool:
    return isinstance(t, ObjectType)


def is_function(t: Type) -> bool:
    return isinstance(t, FunctionType)


# =============================================================================
# Declaration Kinds
# =============================================================================

@dataclass(frozen=True)
class DeclarationKind:
    """
    Rules for one ``VariableDeclaration`` kind, shared by both passes.

    ``static_type`` is the exact type the initializer must infer to; when it
    is None the initializer's own type is accepted as long as it has the
    right shape (``shape_check``).
    """
    name: str
    runtime_check: Callable[[object], bool]
    static_type: Optional[Type] = None
    shape_check: Optional[Callable[[Type], bool]] = None

    def expected_static_type(self, actual: Type) -> Optional[Type]:
        """
        Return the type the initializer is required to have, or None if its
        inferred type has the wrong shape.
        """
        if self.static_type is not None:
            return self.static_type
        if self.shape_check is not None and self.shape_check(actual):
            return actual
        return None


def _declaration_kinds() -> Dict[str, DeclarationKind]:
    # Imported lazily: values depends on this module for type_of_value.
    from .values import BigInt, Symbol, is_undefined, is_number

    kinds = [
        DeclarationKind("number", is_number, NUMBER),
        DeclarationKind("string", lambda v: isinstance(v, str), STRING),
        DeclarationKind("boolean", lambda v: isinstance(v, bool), BOOLEAN),
        DeclarationKind("null", lambda v: v is None, NULL),
        DeclarationKind("undefined", is_undefined, UNDEFINED),
        DeclarationKind("bigint", lambda v: isinstance(v, BigInt), BIGINT),
        DeclarationKind("symbol", lambda v: isinstance(v, Symbol), SYMBOL),
        DeclarationKind("array", lambda v: isinstance(v, list), shape_check=is_array),
        DeclarationKind("object", lambda v: isinstance(v, dict), shape_check=is_object),
        DeclarationKind("function", callable, shape_check=is_function),
    ]
    return {kind.name: kind for kind in kinds}


_KINDS: Optional[Dict[str, DeclarationKind]] = None


def resolve_declaration_kind(name: str) -> Optional[DeclarationKind]:
    """Look up a declaration kind by name (None for unsupported kinds)."""
    global _KINDS
    if _KINDS is None:
        _KINDS = _declaration_kinds()
    return _KINDS.get(name)
