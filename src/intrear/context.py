"""
Execution context for the Intrear evaluator.

Contexts form a chain of value frames, one per lexical scope.  They are
ordinary heap objects: a closure keeps the frame it captured alive for as
long as the closure itself is reachable, even after the scope that created
the frame has finished executing.
"""

import sys
from typing import Any, Dict, Optional, TextIO

from .config import InterpreterConfig
from .errors import UnboundNameError, error_unbound_name


class ExecutionContext:
    """
    A single frame of runtime bindings.

    Only the root frame is seeded with built-ins; nested frames reach them
    through the parent chain, and a ``define`` in a nested frame shadows a
    built-in exactly like any other binding.  The root also owns the
    interpreter config and the output sink used by ``print``.
    """

    def __init__(
        self,
        parent: Optional["ExecutionContext"] = None,
        name: str = "global",
        config: Optional[InterpreterConfig] = None,
        output: Optional[TextIO] = None,
        install_builtins: bool = True,
    ):
        self.variables: Dict[str, Any] = {}
        self.parent = parent
        self.name = name  # For debugging
        if parent is None:
            self._config = config or InterpreterConfig()
            self._output = output
            if install_builtins:
                from .builtins import get_builtin_registry
                get_builtin_registry().install(self)

    @property
    def root(self) -> "ExecutionContext":
        ctx = self
        while ctx.parent is not None:
            ctx = ctx.parent
        return ctx

    @property
    def config(self) -> InterpreterConfig:
        return self.root._config

    @property
    def output(self) -> TextIO:
        """The print sink; resolved lazily so test capture of stdout works."""
        out = self.root._output
        return out if out is not None else sys.stdout

    def lookup(self, name: str) -> Any:
        """Look up a variable, raising UnboundNameError if absent."""
        ctx: Optional[ExecutionContext] = self
        while ctx is not None:
            if name in ctx.variables:
                return ctx.variables[name]
            ctx = ctx.parent
        raise error_unbound_name(name)

    def contains(self, name: str) -> bool:
        """Check if a variable exists in this frame or any parent."""
        try:
            self.lookup(name)
        except UnboundNameError:
            return False
        return True

    def define(self, name: str, value: Any) -> None:
        """Bind a variable in this frame (shadowing any parent binding)."""
        self.variables[name] = value

    def child(self, name: str = "block") -> "ExecutionContext":
        """Create a nested frame chained to this one."""
        return ExecutionContext(parent=self, name=name)

    def __repr__(self) -> str:
        return f"ExecutionContext({self.name!r}, {sorted(self.variables)})"


def create_context(
    config: Optional[InterpreterConfig] = None,
    output: Optional[TextIO] = None,
) -> ExecutionContext:
    """
    Create a fresh root context carrying the built-in callables.

    Args:
        config: Interpreter settings (defaults apply when omitted)
        output: Sink for the ``print`` built-in (stdout when omitted)
    """
    return ExecutionContext(config=config, output=output)
