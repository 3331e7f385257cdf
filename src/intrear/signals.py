"""
Control signals for non-local exits.

Signals unwind the Python stack like exceptions but are not errors: a
TryCatch node never catches them.  Function calls absorb ReturnSignal,
loops absorb BreakSignal and ContinueSignal.
"""

from typing import Any

from .values import UNDEFINED


class ControlSignal(Exception):
    """Base class for return/break/continue."""
    keyword = "signal"


class ReturnSignal(ControlSignal):
    """Raised by a Return node; carries the returned value."""
    keyword = "return"

    def __init__(self, value: Any = UNDEFINED):
        super().__init__("return")
        self.value = value


class BreakSignal(ControlSignal):
    """Raised by a Break node."""
    keyword = "break"


class ContinueSignal(ControlSignal):
    """Raised by a Continue node."""
    keyword = "continue"
