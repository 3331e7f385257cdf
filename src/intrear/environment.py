"""
Type environment for the inference pass.

One frame per lexical scope; frames chain to their parent.  Lookups walk
toward the root, declarations always write into the current frame.
"""

from typing import Dict, Optional

from .types import Type
from .errors import UnboundNameError, error_unbound_name


class TypeEnvironment:
    """
    A single frame of type bindings.

    The root frame created by :meth:`root` carries the signatures of the
    built-in callables so that programs calling them can be checked.
    """

    def __init__(self, parent: Optional["TypeEnvironment"] = None, name: str = "global"):
        self.types: Dict[str, Type] = {}
        self.parent = parent
        self.name = name  # For debugging

    @classmethod
    def root(cls) -> "TypeEnvironment":
        """Create a fresh root environment seeded with built-in signatures."""
        from .builtins import get_builtin_registry

        env = cls(name="global")
        for builtin in get_builtin_registry().functions():
            env.define(builtin.name, builtin.signature)
        return env

    def lookup(self, name: str) -> Type:
        """Look up a type binding, raising UnboundNameError if absent."""
        env: Optional[TypeEnvironment] = self
        while env is not None:
            if name in env.types:
                return env.types[name]
            env = env.parent
        raise error_unbound_name(name, type_pass=True)

    def contains(self, name: str) -> bool:
        """Check if a name is bound in this frame or any parent."""
        try:
            self.lookup(name)
        except UnboundNameError:
            return False
        return True

    def define(self, name: str, type_: Type) -> None:
        """Bind a name in this frame (shadowing any parent binding)."""
        self.types[name] = type_

    def child(self, name: str = "block") -> "TypeEnvironment":
        """Create a nested frame chained to this one."""
        return TypeEnvironment(parent=self, name=name)

    def __repr__(self) -> str:
        return f"TypeEnvironment({self.name!r}, {sorted(self.types)})"
