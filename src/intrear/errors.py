"""
Intrear exceptions and diagnostics.

Error code ranges:
- E2xx: Type errors (inference pass and runtime declaration checks)
- E3xx: Contract violations (shape/usage errors during execution)
- E4xx: Errors raised by scripts or by host callables

Control signals (return/break/continue) live in ``signals`` and are
deliberately not part of this hierarchy.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class Diagnostic:
    """A single diagnostic message."""
    code: str                       # E201, E301, etc.
    message: str                    # Human-readable message
    severity: ErrorSeverity = ErrorSeverity.ERROR
    node: Optional[str] = None      # Description of the node that raised it
    hints: List[str] = field(default_factory=list)

    def format(self) -> str:
        """Format the diagnostic for display."""
        parts = [f"{self.severity.value}[{self.code}]: {self.message}"]
        if self.node:
            parts.append(f"    --> in {self.node}")
        for hint in self.hints:
            parts.append(f"    = hint: {hint}")
        return "\n".join(parts)


class IntrearError(Exception):
    """Base exception for all evaluator errors a script can observe."""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    @property
    def code(self) -> str:
        return self.diagnostic.code

    @property
    def message(self) -> str:
        return self.diagnostic.message

    def __str__(self) -> str:
        return self.diagnostic.message


class UnboundNameError(IntrearError):
    """A variable or type name is not bound anywhere up the scope chain."""
    pass


class TypeMismatchError(IntrearError):
    """Types disagree (E2xx)."""
    pass


class ContractViolation(IntrearError):
    """A runtime contract was not met (E3xx)."""
    pass


class ScriptError(IntrearError):
    """An error raised explicitly by the script (E401)."""
    pass


class HostError(IntrearError):
    """A host callable or built-in failed (E402)."""
    pass


def _diag(code: str, message: str, node: Optional[str] = None,
          hints: Optional[List[str]] = None) -> Diagnostic:
    return Diagnostic(code=code, message=message, node=node, hints=hints or [])


# --- Type error codes ---

def error_type_mismatch(message: str, node: Optional[str] = None) -> TypeMismatchError:
    """E201: Type mismatch."""
    return TypeMismatchError(_diag("E201", message, node))


def error_unbound_name(name: str, node: Optional[str] = None,
                       type_pass: bool = False) -> UnboundNameError:
    """E202: Unbound name."""
    what = "type name" if type_pass else "variable"
    return UnboundNameError(_diag("E202", f"undefined {what}: {name}", node))


def error_unsupported_kind(kind: str, node: Optional[str] = None) -> TypeMismatchError:
    """E203: Unsupported declaration kind."""
    return TypeMismatchError(_diag(
        "E203",
        f"unsupported variable type: {kind}",
        node,
        hints=["supported kinds: number, string, boolean, null, undefined, "
               "bigint, symbol, array, object, function"],
    ))


# --- Contract violation codes ---

def error_condition_not_boolean(got: str, node: Optional[str] = None) -> ContractViolation:
    """E301: Condition did not evaluate to a boolean."""
    return ContractViolation(_diag("E301", f"condition must be boolean, got {got}", node))


def error_not_an_array(got: str, node: Optional[str] = None) -> ContractViolation:
    """E302: Target is not an array."""
    return ContractViolation(_diag("E302", f"target is not an array (got {got})", node))


def error_not_callable(name: str, node: Optional[str] = None) -> ContractViolation:
    """E303: Invoked value is not callable."""
    return ContractViolation(_diag("E303", f"'{name}' is not callable", node))


def error_argument_count(expected: int, got: int, node: Optional[str] = None) -> ContractViolation:
    """E304: Wrong number of arguments."""
    return ContractViolation(_diag(
        "E304", f"argument count mismatch: expected {expected}, got {got}", node))


def error_null_access(what: str, node: Optional[str] = None) -> ContractViolation:
    """E305: Property or method access on null/undefined."""
    return ContractViolation(_diag("E305", f"cannot access {what} of null/undefined", node))


def error_unknown_method(kind: str, method: str, node: Optional[str] = None) -> ContractViolation:
    """E306: Method not in the allow-list for the receiver's kind."""
    return ContractViolation(_diag("E306", f"unknown {kind} method: {method}", node))


def error_unknown_operator(op: str, node: Optional[str] = None) -> ContractViolation:
    """E307: Operator token not recognised."""
    return ContractViolation(_diag("E307", f"unknown operator: {op}", node))


def error_bad_operands(message: str, node: Optional[str] = None) -> ContractViolation:
    """E308: Operands of the wrong runtime kind."""
    return ContractViolation(_diag("E308", message, node))


def error_function_literal(message: str, node: Optional[str] = None) -> ContractViolation:
    """E309: Function/arrow node used where a value-producing expression is required."""
    return ContractViolation(_diag(
        "E309", message, node,
        hints=["function literals are converted to closures in declarations "
               "of kind 'function' and in call arguments"],
    ))


def error_stray_signal(signal: str, node: Optional[str] = None) -> ContractViolation:
    """E310: A control signal escaped the construct that should absorb it."""
    return ContractViolation(_diag("E310", f"'{signal}' used outside of its enclosing construct", node))


def error_bad_index(message: str, node: Optional[str] = None) -> ContractViolation:
    """E311: Invalid array index."""
    return ContractViolation(_diag("E311", message, node))


# --- Script and host errors ---

def error_script(message: str, node: Optional[str] = None) -> ScriptError:
    """E401: Error raised by an Error node."""
    return ScriptError(_diag("E401", message, node))


def error_host(name: str, exc: BaseException, node: Optional[str] = None) -> HostError:
    """E402: Host callable raised."""
    return HostError(_diag("E402", f"{name} failed: {exc}", node))


class DiagnosticCollector:
    """Collects diagnostics during an inference run."""

    def __init__(self, max_errors: int = 20):
        self.diagnostics: List[Diagnostic] = []
        self.max_errors = max_errors
        self._error_count = 0

    def add(self, diagnostic: Diagnostic) -> None:
        """Add a diagnostic."""
        self.diagnostics.append(diagnostic)
        if diagnostic.severity == ErrorSeverity.ERROR:
            self._error_count += 1

    def add_error(self, error: IntrearError) -> None:
        """Add an error exception as a diagnostic."""
        self.add(error.diagnostic)

    @property
    def error_count(self) -> int:
        return self._error_count

    @property
    def has_errors(self) -> bool:
        return self._error_count > 0

    @property
    def should_stop(self) -> bool:
        """Check if we've hit the max error limit."""
        return self._error_count >= self.max_errors
