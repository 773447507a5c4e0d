"""
RV32 Interpreter: Integer Register File

Register model (RV32I):
  x0        zero  hard-wired to 0, writes are discarded
  x1        ra    return address (link register for call/jal)
  x2        sp    stack pointer, preset to the memory size
  x3        gp    global pointer
  x4        tp    thread pointer
  x5-x7     t0-t2 temporaries
  x8        s0/fp saved register / frame pointer
  x9        s1    saved register
  x10-x17   a0-a7 arguments / return values
  x18-x27   s2-s11 saved registers
  x28-x31   t3-t6 temporaries

All registers hold signed 32-bit values. Every write is wrapped modulo 2^32
and reinterpreted as signed, so a register never holds a value outside
[-2^31, 2^31).
"""

from typing import Dict, List

from ..errors import RegisterError

NUM_REGISTERS = 32

ZERO = 0
RA = 1
SP = 2

# Canonical ABI name per register index (x8 displays as fp)
REGISTER_NAMES = (
    'zero', 'ra', 'sp', 'gp', 'tp', 't0', 't1', 't2',
    'fp', 's1', 'a0', 'a1', 'a2', 'a3', 'a4', 'a5',
    'a6', 'a7', 's2', 's3', 's4', 's5', 's6', 's7',
    's8', 's9', 's10', 's11', 't3', 't4', 't5', 't6',
)


def _build_name_table() -> Dict[str, int]:
    table = {}
    for index, abi in enumerate(REGISTER_NAMES):
        table[abi] = index
        table[f'x{index}'] = index
    table['s0'] = 8
    return table


# name -> index, built once at import and never mutated
ABI_TO_REGISTER: Dict[str, int] = _build_name_table()


def register_number(name: str) -> int:
    """Resolve an ABI name ('sp') or numeric name ('x2') to an index.

    Raises RegisterError for anything else; an unknown register means the
    program is structurally broken, so this is never softened to a no-op.
    """
    try:
        return ABI_TO_REGISTER[name]
    except KeyError:
        raise RegisterError(f"invalid register: {name}") from None


def to_signed32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


class RegisterFile:
    """32 x 32-bit integer registers with x0 wired to zero."""

    __slots__ = ('_regs', 'stack_top')

    def __init__(self, stack_top: int = 0):
        self.stack_top = stack_top
        self._regs: List[int] = [0] * NUM_REGISTERS
        self._regs[SP] = to_signed32(stack_top)

    def __getitem__(self, index: int) -> int:
        return self._regs[index]

    def __setitem__(self, index: int, value: int):
        if index == ZERO:
            return
        self._regs[index] = to_signed32(value)

    def snapshot(self) -> List[int]:
        """Copy of all 32 values, index-ordered."""
        return list(self._regs)

    # --- Display ---

    def display(self) -> str:
        """One line per register, e.g. ``x2  (sp  ): 10240``."""
        lines = []
        for index, value in enumerate(self._regs):
            lines.append(f"x{index:<2d} ({REGISTER_NAMES[index]:<4s}): {value}")
        return '\n'.join(lines)

    def reset(self):
        """Zero every register and restore the stack pointer."""
        self._regs = [0] * NUM_REGISTERS
        self._regs[SP] = to_signed32(self.stack_top)
