"""
RV32 Interpreter: Instruction Variants

Instructions are grouped by how they are WRITTEN in assembly, not by their
machine encoding format (R, I, S, B, ...). Each variant is a frozen
dataclass holding just the operand fields its shape needs plus an operator
tag; the engine owns the behaviour (see emu.Interpreter._build_dispatch).

  RegReg          add x1, x2, x3        rd = op(rs1, rs2)
  RegImm          addi x1, x2, -5       rd = op(rs1, imm)   (also mv)
  LoadImm         li / lui / auipc      rd = f(pc, imm)
  Load            lw x1, 8(sp)          rd = mem[rs1 + imm]
  Store           sw x1, 8(sp)          mem[rs1 + imm] = rs2
  Branch          beq x1, x2, loop      pc += disp if cond(rs1, rs2)
  BranchZero      bnez x1, loop         pc += disp if cond(rs1, 0)
  Jump            j loop                pc += disp
  JumpAndLink     jal ra, f / call f    rd = pc + 4; pc += disp
  JumpAndLinkReg  jalr ra, t0, 0 / jr   rd = pc + 4; pc = rs1 + imm
  SetLessThan     slt / sltu            rd = rs1 < rs2
  SetLessThanImm  slti / sltiu          rd = rs1 < imm
  NoOp            anything unrecognised pc += 4

Branch and jump targets stay as text: a literal displacement or a label
name, resolved against the label table at execution time.
"""

from dataclasses import dataclass
from enum import Enum

from .alu import AluOp, Cond


class LoadImmKind(Enum):
    LI = 'li'
    LUI = 'lui'
    AUIPC = 'auipc'


@dataclass(frozen=True)
class NoOp:
    reason: str = ""
    silent: bool = False  # label lines and blank lines


@dataclass(frozen=True)
class RegReg:
    op: AluOp
    rd: int
    rs1: int
    rs2: int


@dataclass(frozen=True)
class RegImm:
    op: AluOp
    rd: int
    rs1: int
    imm: int


@dataclass(frozen=True)
class LoadImm:
    kind: LoadImmKind
    rd: int
    imm: int


@dataclass(frozen=True)
class Load:
    rd: int
    rs1: int
    imm: int
    width: int       # bytes: 4, 2 or 1
    signed: bool


@dataclass(frozen=True)
class Store:
    rs1: int         # base address register
    rs2: int         # value register
    imm: int
    width: int


@dataclass(frozen=True)
class Branch:
    cond: Cond
    rs1: int
    rs2: int
    target: str


@dataclass(frozen=True)
class BranchZero:
    cond: Cond
    rs1: int
    target: str


@dataclass(frozen=True)
class Jump:
    target: str


@dataclass(frozen=True)
class JumpAndLink:
    rd: int
    target: str


@dataclass(frozen=True)
class JumpAndLinkReg:
    rd: int
    rs1: int
    imm: int


@dataclass(frozen=True)
class SetLessThan:
    rd: int
    rs1: int
    rs2: int
    unsigned: bool


@dataclass(frozen=True)
class SetLessThanImm:
    rd: int
    rs1: int
    imm: int
    unsigned: bool
