"""
RV32 Assembly Interpreter
=========================
Executes RV32I assembly text (plus mul/div/rem) line by line against a
simulated register file and flat little-endian memory. Built for
step-debugging: the engine decodes only the line the PC points at, so a
program edited between steps is always reinterpreted.

Architecture:
    ┌───────────┐    ┌───────────┐    ┌──────────────┐    ┌─────────────┐
    │ Source    │───>│ Label     │───>│ Decoder      │───>│ Engine      │
    │ lines     │    │ pass      │    │ (one line)   │    │ (dispatch)  │
    └───────────┘    └───────────┘    └──────────────┘    └─────────────┘

    - cpu/regs.py:         32 x int32 register file, ABI name table
    - cpu/alu.py:          operator enums + pure arithmetic/compare functions
    - cpu/instructions.py: frozen dataclass per instruction shape
    - cpu/decoder.py:      regex shape matching, text -> instruction
    - mem/memory.py:       bounds-checked memory + access history
    - emu.py:              load / step / run, breakpoints, trace
"""

__version__ = "0.1.0"

from .errors import (
    InterpreterError, RegisterError, ImmediateError, LabelError, DivisionByZeroError,
)
from .emu import Interpreter, StopReason, configure
from .cpu.decoder import decode_line


def run_program(lines, *, memory_size: int = Interpreter.DEFAULT_MEMORY_SIZE,
                max_steps=None) -> Interpreter:
    """Configure, load and run a program; return the interpreter for inspection.

    Args:
        lines: Program text, as a string or a sequence of lines.
        memory_size: Bytes of data memory (also the initial sp).
        max_steps: Optional step budget passed to Interpreter.run().
    """
    emu = configure(memory_size)
    emu.load(lines)
    emu.run(max_steps=max_steps)
    return emu
