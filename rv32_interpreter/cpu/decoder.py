"""
RV32 Interpreter: Source Line Decoder

Maps ONE line of assembly text to ONE instruction variant (see
instructions.py). Decoding is stateless: the engine decodes only the line
the PC points at, every step, so edits to the program text between steps
are always picked up.

Decode steps:
  1. Strip a trailing '#' comment and surrounding whitespace.
  2. Blank lines and label definitions ("loop:") become silent no-ops;
     they still occupy an instruction slot. Text after a label's colon is
     never executed.
  3. Take the leading whitespace-delimited token as the mnemonic and find
     its table (REG_REG, REG_IMM, ...) or irregular form (j, call, jal...).
  4. Match the operand shape for that table:
       THREE   mnemonic rd, rs1, operand3
       TWO     mnemonic rd, operand
       MEM     mnemonic reg, offset(base)      (offset may be omitted)
       ONE     mnemonic target
       BARE    mnemonic
  5. Build the instruction.

Failure modes:
  - Unknown mnemonic or shape mismatch -> NoOp(reason). Never raises.
  - Unknown register name             -> RegisterError (fatal)
  - Immediate not base-10             -> ImmediateError (fatal)
"""

import re
from typing import Optional, Tuple

from .alu import AluOp, Cond
from .regs import register_number, to_signed32, RA, ZERO
from .instructions import (
    NoOp, RegReg, RegImm, LoadImm, LoadImmKind, Load, Store,
    Branch, BranchZero, Jump, JumpAndLink, JumpAndLinkReg,
    SetLessThan, SetLessThanImm,
)
from ..errors import ImmediateError

# ──────────────────────────────────────────────
# Operand shapes
# ──────────────────────────────────────────────

THREE = 'THREE'
TWO = 'TWO'
MEM = 'MEM'
ONE = 'ONE'
BARE = 'BARE'

_OPERAND = r'([+-]?[\w.]+)'

SHAPES = {
    THREE: re.compile(r'(\w+)\s+(\w+)\s*,\s*(\w+)\s*,\s*' + _OPERAND),
    TWO:   re.compile(r'(\w+)\s+(\w+)\s*,\s*' + _OPERAND),
    MEM:   re.compile(r'(\w+)\s+(\w+)\s*,\s*([+-]?[0-9]+)?\s*\(\s*(\w+)\s*\)'),
    ONE:   re.compile(r'(\w+)\s+' + _OPERAND),
    BARE:  re.compile(r'(\w+)'),
}

_LABEL_RE = re.compile(r'([A-Za-z_.][\w.]*)\s*:')
_IMMEDIATE_RE = re.compile(r'[+-]?[0-9]+')


# ──────────────────────────────────────────────
# Mnemonic tables
# ──────────────────────────────────────────────

REG_REG = {
    'add': AluOp.ADD,
    'sub': AluOp.SUB,
    'mul': AluOp.MUL,
    'div': AluOp.DIV,
    'rem': AluOp.REM,
    'and': AluOp.AND,
    'or':  AluOp.OR,
    'xor': AluOp.XOR,
    'sll': AluOp.SLL,
    'srl': AluOp.SRL,
    'sra': AluOp.SRA,
}

REG_IMM = {
    'addi': AluOp.ADD,
    'andi': AluOp.AND,
    'ori':  AluOp.OR,
    'xori': AluOp.XOR,
    'slli': AluOp.SLL,
    'srli': AluOp.SRL,
    'srai': AluOp.SRA,
}

LOAD_IMM = {
    'li':    LoadImmKind.LI,
    'lui':   LoadImmKind.LUI,
    'auipc': LoadImmKind.AUIPC,
}

# mnemonic -> (width in bytes, sign-extend)
LOADS = {
    'lw':  (4, True),
    'lh':  (2, True),
    'lhu': (2, False),
    'lb':  (1, True),
    'lbu': (1, False),
}

STORES = {
    'sw': 4,
    'sh': 2,
    'sb': 1,
}

BRANCHES = {
    'beq':  Cond.EQ,
    'bne':  Cond.NE,
    'blt':  Cond.LT,
    'bltu': Cond.LTU,
    'bgt':  Cond.GT,
    'bgtu': Cond.GTU,
    'ble':  Cond.LE,
    'bleu': Cond.LEU,
    'bge':  Cond.GE,
    'bgeu': Cond.GEU,
}

BRANCHES_ZERO = {
    'beqz': Cond.EQ,
    'bnez': Cond.NE,
    'bltz': Cond.LT,
    'bgtz': Cond.GT,
    'blez': Cond.LE,
    'bgez': Cond.GE,
}

# mnemonic -> unsigned comparison
SETS = {'slt': False, 'sltu': True}
SETS_IMM = {'slti': False, 'sltiu': True}

IRREGULAR = ('j', 'call', 'jr', 'jal', 'jalr', 'mv', 'ret', 'nop')


# ══════════════════════════════════════════════
# Token helpers
# ══════════════════════════════════════════════

def strip_comment(text: str) -> str:
    """Drop a trailing '#' comment and surrounding whitespace."""
    return text.split('#', 1)[0].strip()


def label_name(text: str) -> Optional[str]:
    """Return the label name if the line starts with ``identifier:``."""
    m = _LABEL_RE.match(strip_comment(text))
    return m.group(1) if m else None


def is_displacement(text: str) -> bool:
    """True when a branch/jump target is a literal signed displacement."""
    return _IMMEDIATE_RE.fullmatch(text) is not None


def parse_immediate(text: str) -> int:
    """Parse a base-10 signed immediate, wrapped to 32 bits.

    Hex, binary and symbolic immediates are rejected with ImmediateError.
    """
    if not _IMMEDIATE_RE.fullmatch(text):
        raise ImmediateError(f"immediate parse error: {text}")
    return to_signed32(int(text))


def _match(shape: str, line: str) -> Optional[Tuple[str, ...]]:
    m = SHAPES[shape].fullmatch(line)
    return m.groups() if m else None


# ══════════════════════════════════════════════
# Decoder
# ══════════════════════════════════════════════

def decode_line(text: str):
    """Decode one source line into an instruction variant.

    Returns a NoOp carrying a reason when the mnemonic is unknown or the
    operands do not fit the mnemonic's shape.
    """
    line = strip_comment(text)
    if not line:
        return NoOp("blank line", silent=True)
    if label_name(line) is not None:
        return NoOp("label definition", silent=True)

    mnem = line.split(None, 1)[0]

    if mnem in REG_REG:
        ops = _match(THREE, line)
        if ops is None:
            return _shape_mismatch(mnem, THREE)
        return RegReg(REG_REG[mnem], register_number(ops[1]),
                      register_number(ops[2]), register_number(ops[3]))

    if mnem in REG_IMM:
        ops = _match(THREE, line)
        if ops is None:
            return _shape_mismatch(mnem, THREE)
        return RegImm(REG_IMM[mnem], register_number(ops[1]),
                      register_number(ops[2]), parse_immediate(ops[3]))

    if mnem in LOAD_IMM:
        ops = _match(TWO, line)
        if ops is None:
            return _shape_mismatch(mnem, TWO)
        return LoadImm(LOAD_IMM[mnem], register_number(ops[1]),
                       parse_immediate(ops[2]))

    if mnem in LOADS:
        ops = _match(MEM, line)
        if ops is None:
            return _shape_mismatch(mnem, MEM)
        width, signed = LOADS[mnem]
        return Load(rd=register_number(ops[1]), rs1=register_number(ops[3]),
                    imm=_offset(ops[2]), width=width, signed=signed)

    if mnem in STORES:
        ops = _match(MEM, line)
        if ops is None:
            return _shape_mismatch(mnem, MEM)
        return Store(rs1=register_number(ops[3]), rs2=register_number(ops[1]),
                     imm=_offset(ops[2]), width=STORES[mnem])

    if mnem in BRANCHES:
        ops = _match(THREE, line)
        if ops is None:
            return _shape_mismatch(mnem, THREE)
        return Branch(BRANCHES[mnem], register_number(ops[1]),
                      register_number(ops[2]), ops[3])

    if mnem in BRANCHES_ZERO:
        ops = _match(TWO, line)
        if ops is None:
            return _shape_mismatch(mnem, TWO)
        return BranchZero(BRANCHES_ZERO[mnem], register_number(ops[1]), ops[2])

    if mnem in SETS:
        ops = _match(THREE, line)
        if ops is None:
            return _shape_mismatch(mnem, THREE)
        return SetLessThan(register_number(ops[1]), register_number(ops[2]),
                           register_number(ops[3]), unsigned=SETS[mnem])

    if mnem in SETS_IMM:
        ops = _match(THREE, line)
        if ops is None:
            return _shape_mismatch(mnem, THREE)
        return SetLessThanImm(register_number(ops[1]), register_number(ops[2]),
                              parse_immediate(ops[3]), unsigned=SETS_IMM[mnem])

    if mnem in IRREGULAR:
        return _decode_irregular(mnem, line)

    return NoOp(f"unknown mnemonic: {mnem}")


def _decode_irregular(mnem: str, line: str):
    """j, call, jr, jal, jalr, mv, ret, nop."""
    if mnem == 'j':
        ops = _match(ONE, line)
        if ops is None:
            return _shape_mismatch(mnem, ONE)
        return Jump(ops[1])

    if mnem == 'call':
        ops = _match(ONE, line)
        if ops is None:
            return _shape_mismatch(mnem, ONE)
        return JumpAndLink(RA, ops[1])

    if mnem == 'jal':
        # jal rd, target | jal target (links ra)
        ops = _match(TWO, line)
        if ops is not None:
            return JumpAndLink(register_number(ops[1]), ops[2])
        ops = _match(ONE, line)
        if ops is not None:
            return JumpAndLink(RA, ops[1])
        return _shape_mismatch(mnem, TWO)

    if mnem == 'jr':
        ops = _match(ONE, line)
        if ops is None:
            return _shape_mismatch(mnem, ONE)
        return JumpAndLinkReg(ZERO, register_number(ops[1]), 0)

    if mnem == 'jalr':
        # jalr rd, rs1, imm | jalr rd, imm(rs1) | jalr rs1 (links ra)
        ops = _match(THREE, line)
        if ops is not None:
            return JumpAndLinkReg(register_number(ops[1]), register_number(ops[2]),
                                  parse_immediate(ops[3]))
        ops = _match(MEM, line)
        if ops is not None:
            return JumpAndLinkReg(register_number(ops[1]), register_number(ops[3]),
                                  _offset(ops[2]))
        ops = _match(ONE, line)
        if ops is not None:
            return JumpAndLinkReg(RA, register_number(ops[1]), 0)
        return _shape_mismatch(mnem, THREE)

    if mnem == 'mv':
        ops = _match(TWO, line)
        if ops is None:
            return _shape_mismatch(mnem, TWO)
        return RegImm(AluOp.ADD, register_number(ops[1]), register_number(ops[2]), 0)

    if mnem == 'ret':
        if _match(BARE, line) is None:
            return _shape_mismatch(mnem, BARE)
        return JumpAndLinkReg(ZERO, RA, 0)

    # nop
    if _match(BARE, line) is None:
        return _shape_mismatch(mnem, BARE)
    return NoOp("nop", silent=True)


def _offset(text: Optional[str]) -> int:
    return 0 if text is None else parse_immediate(text)


def _shape_mismatch(mnem: str, shape: str) -> NoOp:
    return NoOp(f"operands do not match {shape} shape for '{mnem}'")
