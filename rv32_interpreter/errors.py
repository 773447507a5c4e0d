"""
Fatal interpreter conditions.

Every error that must stop a step or a run derives from InterpreterError.
Malformed instruction shapes and out-of-range memory accesses are NOT in
this module: those degrade to no-ops and are only logged.

The engine fills in ``pc`` and ``line_text`` on the way out of step(), so
the caller can point at the offending source line.
"""

from typing import Optional


class InterpreterError(Exception):
    """Base class for errors that abort the current step or run."""

    kind = "Interpreter"

    def __init__(self, message: str, pc: Optional[int] = None, line_text: str = ""):
        self.message = message
        self.pc = pc
        self.line_text = line_text
        super().__init__(message)

    def __str__(self) -> str:
        if self.pc is None:
            return self.message
        text = f"pc={self.pc}: {self.message}"
        if self.line_text:
            text += f" [{self.line_text.strip()}]"
        return text


class RegisterError(InterpreterError):
    """Register name is neither an ABI name nor x0..x31."""
    kind = "Register"


class ImmediateError(InterpreterError):
    """Immediate literal is not a base-10 signed integer."""
    kind = "Immediate"


class LabelError(InterpreterError):
    """Branch or jump target is neither a displacement nor a known label."""
    kind = "Label"


class DivisionByZeroError(InterpreterError):
    """div/rem with a zero divisor."""
    kind = "Division"
