"""
Top-level driver: execute a program, or check it without running it.

Execution and checking are independent.  ``Interpreter.execute`` never runs
inference; ``check`` never runs code.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, TextIO

from .types import Type
from .errors import Diagnostic, DiagnosticCollector, IntrearError, error_stray_signal
from .signals import ControlSignal
from .environment import TypeEnvironment
from .context import ExecutionContext, create_context
from .config import InterpreterConfig
from .ast import Node
from .log import get_logger

logger = get_logger(__name__)


class Interpreter:
    """
    Executes an ordered sequence of top-level nodes.

    Each call to :meth:`execute` runs the whole program against one fresh
    root context and returns it, so top-level bindings can be read back
    with ``context.lookup(name)``.
    """

    def __init__(self, nodes: Sequence[Node], config: Optional[InterpreterConfig] = None,
                 output: Optional[TextIO] = None):
        self.nodes = list(nodes)
        self.config = config or InterpreterConfig()
        self.output = output

    def execute(self) -> ExecutionContext:
        context = create_context(self.config, self.output)
        logger.info("executing %d top-level node(s)", len(self.nodes))
        for index, node in enumerate(self.nodes):
            logger.debug("node %d: %s", index, node.describe())
            try:
                node.execute(context)
            except ControlSignal as signal:
                raise error_stray_signal(
                    signal.keyword, f"top-level node {index} ({node.describe()})") from None
            except IntrearError as err:
                logger.info("node %d failed: [%s] %s", index, err.code, err.message)
                raise
        return context


def run(nodes: Sequence[Node], callback: Optional[Callable[[ExecutionContext], Any]] = None,
        config: Optional[InterpreterConfig] = None, output: Optional[TextIO] = None) -> Any:
    """
    Execute ``nodes`` and hand the resulting root context to ``callback``.

    Returns the callback's result, or None when no callback is given.
    """
    context = Interpreter(nodes, config=config, output=output).execute()
    if callback is not None:
        return callback(context)
    return None


@dataclass
class CheckResult:
    """Result of type checking a program."""
    diagnostics: List[Diagnostic]
    has_errors: bool
    node_types: List[Optional[Type]] = field(default_factory=list)
    bindings: Dict[str, Type] = field(default_factory=dict)


def check(nodes: Sequence[Node], max_errors: int = 20) -> CheckResult:
    """
    Run the inference pass over each top-level node.

    Every node is inferred against the same root type environment.  A
    failing node contributes one diagnostic and a ``None`` entry in
    ``node_types``; checking stops after ``max_errors`` errors.

    Args:
        nodes: The program
        max_errors: Maximum errors before stopping (default 20)

    Returns:
        CheckResult with diagnostics, per-node types and the top-level bindings
    """
    env = TypeEnvironment.root()
    builtins = dict(env.types)
    collector = DiagnosticCollector(max_errors=max_errors)
    node_types: List[Optional[Type]] = []

    for index, node in enumerate(nodes):
        try:
            node_types.append(node.infer_type(env))
        except IntrearError as err:
            if err.diagnostic.node is None:
                err.diagnostic.node = f"top-level node {index} ({node.describe()})"
            collector.add_error(err)
            node_types.append(None)
            if collector.should_stop:
                logger.info("check stopped after %d error(s)", collector.error_count)
                break

    bindings = {name: t for name, t in env.types.items() if builtins.get(name) is not t}
    return CheckResult(
        diagnostics=collector.diagnostics,
        has_errors=collector.has_errors,
        node_types=node_types,
        bindings=bindings,
    )
