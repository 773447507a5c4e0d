"""
RV32 Interpreter: ALU Operations + Branch Conditions

Instructions carry an operator tag (AluOp / Cond member), never a closure.
The pure numeric functions below give each tag its meaning:

  compute(op, a, b)   -> signed 32-bit result of an arithmetic/logic op
  compare(cond, a, b) -> bool for branches and set-less-than

Operand and result convention: signed 32-bit Python ints. Unsigned
variants reinterpret both operands modulo 2^32 before comparing.

Division follows the host-independent truncating rule (quotient rounds
toward zero, remainder takes the dividend's sign). A zero divisor is
fatal. The overflow case (-2^31 / -1) wraps to -2^31 with remainder 0.

Shift amounts use the low five bits of the second operand, as the RV32I
shift instructions do.
"""

from enum import Enum

from .regs import to_signed32
from ..errors import DivisionByZeroError


class AluOp(Enum):
    ADD = 'add'
    SUB = 'sub'
    MUL = 'mul'
    DIV = 'div'
    REM = 'rem'
    AND = 'and'
    OR = 'or'
    XOR = 'xor'
    SLL = 'sll'
    SRL = 'srl'
    SRA = 'sra'


class Cond(Enum):
    EQ = 'eq'
    NE = 'ne'
    LT = 'lt'
    LTU = 'ltu'
    GT = 'gt'
    GTU = 'gtu'
    LE = 'le'
    LEU = 'leu'
    GE = 'ge'
    GEU = 'geu'


def to_unsigned32(value: int) -> int:
    return value & 0xFFFFFFFF


def sign_extend(value: int, bits: int) -> int:
    """Sign-extend the low ``bits`` of value."""
    mask = (1 << bits) - 1
    value &= mask
    if value & (1 << (bits - 1)):
        value -= 1 << bits
    return value


def _trunc_div(a: int, b: int) -> int:
    if b == 0:
        raise DivisionByZeroError("division by zero")
    q = abs(a) // abs(b)
    return -q if (a < 0) != (b < 0) else q


# ══════════════════════════════════════════════
# Arithmetic / logic
# ══════════════════════════════════════════════

def compute(op: AluOp, a: int, b: int) -> int:
    """Apply op to two signed 32-bit operands, returning signed 32-bit."""
    if op is AluOp.ADD:
        result = a + b
    elif op is AluOp.SUB:
        result = a - b
    elif op is AluOp.MUL:
        result = a * b
    elif op is AluOp.DIV:
        result = _trunc_div(a, b)
    elif op is AluOp.REM:
        result = a - b * _trunc_div(a, b)
    elif op is AluOp.AND:
        result = a & b
    elif op is AluOp.OR:
        result = a | b
    elif op is AluOp.XOR:
        result = a ^ b
    elif op is AluOp.SLL:
        result = a << (b & 0x1F)
    elif op is AluOp.SRL:
        result = to_unsigned32(a) >> (b & 0x1F)
    elif op is AluOp.SRA:
        result = to_signed32(a) >> (b & 0x1F)
    else:
        raise ValueError(f"Unknown ALU operation: {op}")
    return to_signed32(result)


# ══════════════════════════════════════════════
# Comparisons
# ══════════════════════════════════════════════

def compare(cond: Cond, a: int, b: int) -> bool:
    """Evaluate a branch / set-less-than condition."""
    if cond in (Cond.LTU, Cond.GTU, Cond.LEU, Cond.GEU):
        a, b = to_unsigned32(a), to_unsigned32(b)

    if cond is Cond.EQ:
        return a == b
    if cond is Cond.NE:
        return a != b
    if cond in (Cond.LT, Cond.LTU):
        return a < b
    if cond in (Cond.GT, Cond.GTU):
        return a > b
    if cond in (Cond.LE, Cond.LEU):
        return a <= b
    if cond in (Cond.GE, Cond.GEU):
        return a >= b
    raise ValueError(f"Unknown condition: {cond}")
