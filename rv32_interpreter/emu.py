"""
RV32 Interpreter: Execution Engine

Integrates:
  - Register file (cpu/regs.py)
  - Flat memory + access history (mem/memory.py)
  - Line decoder (cpu/decoder.py)
  - ALU operations (cpu/alu.py)

Program model:
  The program is an ordered list of source lines. Line ``i`` occupies the
  instruction slot at byte address ``BASE_ADDRESS + 4 * i``. Label lines
  ("loop:") occupy a slot too (they execute as no-ops) and bind the label
  to the NEXT slot: ``BASE_ADDRESS + 4 * i + 4``.

Execution model (one step):
  1. Map PC to a line; if PC is below the base or past the last line the
     engine is Done and nothing executes.
  2. Decode that line fresh (no decoded-instruction cache).
  3. Dispatch on the instruction type: update registers/memory and PC.
  4. Recompute Done from the new PC.

Stop reasons for run():
  DONE     PC left the program; PC is reset to the base afterwards
  TIMEOUT  max_steps exhausted
  BREAK    breakpoint address reached

Fatal errors (InterpreterError subclasses) propagate out of step()/run()
with ``pc`` and ``line_text`` filled in. State is left as it was at the
failing instruction.
"""

import logging
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set, Union

from .cpu.regs import RegisterFile, ZERO
from .cpu.alu import Cond, compute, compare, sign_extend
from .cpu.decoder import decode_line, label_name, is_displacement, parse_immediate, strip_comment
from .cpu.instructions import (
    NoOp, RegReg, RegImm, LoadImm, LoadImmKind, Load, Store,
    Branch, BranchZero, Jump, JumpAndLink, JumpAndLinkReg,
    SetLessThan, SetLessThanImm,
)
from .mem.memory import Memory
from .errors import InterpreterError, LabelError

log = logging.getLogger(__name__)

ADDR_MASK = 0xFFFFFFFF


class StopReason(Enum):
    DONE = 'DONE'
    TIMEOUT = 'TIMEOUT'
    BREAK = 'BREAK'


class Interpreter:
    """Steppable RV32 assembly interpreter.

    Usage:
        emu = Interpreter(memory_size=1024)
        emu.load(["li a0, 5", "loop:", "addi a0, a0, -1", "bnez a0, loop"])
        emu.run()
        print(emu.registers[10])   # 0
    """

    BASE_ADDRESS = 16
    INSTRUCTION_SIZE = 4
    DEFAULT_MEMORY_SIZE = 10 * 1024

    def __init__(self, memory_size: Optional[int] = None):
        if memory_size is None:
            memory_size = self.DEFAULT_MEMORY_SIZE

        self.regs = RegisterFile(stack_top=memory_size)
        self.mem = Memory(memory_size)

        self.pc: int = self.BASE_ADDRESS
        self.labels: Dict[str, int] = {}
        self.done: bool = True  # nothing loaded yet
        self._program: List[str] = []

        self._breakpoints: Set[int] = set()

        self._trace = False
        self._trace_output: List[str] = []

        self._dispatch = self._build_dispatch()

    # ══════════════════════════════════════════════
    # Loading
    # ══════════════════════════════════════════════

    def load(self, lines: Union[str, Iterable[str]]):
        """Replace the program text and rebuild the label table.

        Registers, memory and PC are left untouched; Done is recomputed
        from the current PC against the new program length. A plain string
        is split into lines first.
        """
        if isinstance(lines, str):
            lines = lines.splitlines()
        program = list(lines)

        labels: Dict[str, int] = {}
        for index, line in enumerate(program):
            name = label_name(line)
            if name is None:
                continue
            addr = self._slot_address(index) + self.INSTRUCTION_SIZE
            if name in labels:
                log.warning("label '%s' redefined on line %d (was %d, now %d)",
                            name, index + 1, labels[name], addr)
            labels[name] = addr
            log.debug("label %s -> %d", name, addr)

        self._program = program
        self.labels = labels
        self.done = self._slot_index(self.pc) is None

    @property
    def program(self) -> List[str]:
        return list(self._program)

    def _slot_address(self, index: int) -> int:
        return self.BASE_ADDRESS + index * self.INSTRUCTION_SIZE

    def _slot_index(self, pc: int) -> Optional[int]:
        """Line index for pc, or None when pc is outside the program."""
        if pc < self.BASE_ADDRESS:
            return None
        index = (pc - self.BASE_ADDRESS) // self.INSTRUCTION_SIZE
        if index >= len(self._program):
            return None
        return index

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> Optional[StopReason]:
        """Execute the instruction at PC.

        Returns StopReason.DONE when the program has finished (either
        before or as a result of this step), else None.
        """
        index = self._slot_index(self.pc)
        if index is None:
            self.done = True
            return StopReason.DONE

        pc = self.pc
        text = self._program[index]

        if self._trace:
            self._trace_output.append(f"{pc:6d}: {strip_comment(text)}")
        log.debug("pc=%d %s", pc, text.strip())

        try:
            instr = decode_line(text)
            self._dispatch[type(instr)](instr)
        except InterpreterError as e:
            if e.pc is None:
                e.pc = pc
                e.line_text = text
            raise

        if self._slot_index(self.pc) is None:
            self.done = True
            return StopReason.DONE
        return None

    def run(self, max_steps: Optional[int] = None) -> StopReason:
        """Step until the program finishes.

        On DONE the PC goes back to the base address so the next run starts
        from the top. Registers and memory are NOT reset between runs.

        Args:
            max_steps: Step budget; TIMEOUT when exhausted (None = unbounded)

        Returns:
            StopReason indicating why execution stopped
        """
        steps = 0
        while not self.done:
            # skip the check on the first step so a run can resume from a breakpoint
            if steps and self.pc in self._breakpoints:
                return StopReason.BREAK
            if max_steps is not None and steps >= max_steps:
                return StopReason.TIMEOUT
            self.step()
            steps += 1

        log.debug("run finished after %d steps", steps)
        self.pc = self.BASE_ADDRESS
        self.done = self._slot_index(self.pc) is None
        return StopReason.DONE

    def current_line(self) -> str:
        """Source line at PC, or '' when PC is outside the program."""
        index = self._slot_index(self.pc)
        return "" if index is None else self._program[index]

    # ══════════════════════════════════════════════
    # State accessors
    # ══════════════════════════════════════════════

    @property
    def registers(self) -> List[int]:
        return self.regs.snapshot()

    @property
    def memory(self) -> bytes:
        return self.mem.snapshot()

    @property
    def access_history(self) -> List[str]:
        return self.mem.history

    # ══════════════════════════════════════════════
    # Control-flow helpers
    # ══════════════════════════════════════════════

    def _advance(self):
        self.pc = (self.pc + self.INSTRUCTION_SIZE) & ADDR_MASK

    def _displacement(self, target: str) -> int:
        """Literal displacement first, then label lookup relative to PC."""
        if is_displacement(target):
            return parse_immediate(target)
        if target in self.labels:
            return self.labels[target] - self.pc
        raise LabelError(f"invalid jump target: {target}")

    def _branch(self, taken: bool, target: str):
        if taken:
            self.pc = (self.pc + self._displacement(target)) & ADDR_MASK
        else:
            self._advance()

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════
    # Handler signature: handler(instr). Each one updates PC itself.

    def _build_dispatch(self) -> dict:
        """Build instruction type -> handler dispatch table."""
        return {
            NoOp:           self._op_noop,
            RegReg:         self._op_reg_reg,
            RegImm:         self._op_reg_imm,
            LoadImm:        self._op_load_imm,
            Load:           self._op_load,
            Store:          self._op_store,
            Branch:         self._op_branch,
            BranchZero:     self._op_branch_zero,
            Jump:           self._op_jump,
            JumpAndLink:    self._op_jal,
            JumpAndLinkReg: self._op_jalr,
            SetLessThan:    self._op_slt,
            SetLessThanImm: self._op_slti,
        }

    def _op_noop(self, instr: NoOp):
        if not instr.silent:
            log.warning("no-op at pc=%d: %s", self.pc, instr.reason)
        self._advance()

    def _op_reg_reg(self, instr: RegReg):
        if instr.rd != ZERO:
            self.regs[instr.rd] = compute(instr.op, self.regs[instr.rs1], self.regs[instr.rs2])
        self._advance()

    def _op_reg_imm(self, instr: RegImm):
        if instr.rd != ZERO:
            self.regs[instr.rd] = compute(instr.op, self.regs[instr.rs1], instr.imm)
        self._advance()

    def _op_load_imm(self, instr: LoadImm):
        if instr.rd != ZERO:
            if instr.kind is LoadImmKind.LI:
                value = instr.imm
            elif instr.kind is LoadImmKind.LUI:
                value = instr.imm << 12
            else:
                value = self.pc + (instr.imm << 12)
            self.regs[instr.rd] = value
        self._advance()

    def _op_load(self, instr: Load):
        if instr.rd != ZERO:
            addr = (self.regs[instr.rs1] + instr.imm) & ADDR_MASK
            value = self.mem.load(addr, instr.width)
            if instr.signed:
                value = sign_extend(value, 8 * instr.width)
            self.regs[instr.rd] = value
        self._advance()

    def _op_store(self, instr: Store):
        addr = (self.regs[instr.rs1] + instr.imm) & ADDR_MASK
        self.mem.store(addr, instr.width, self.regs[instr.rs2])
        self._advance()

    def _op_branch(self, instr: Branch):
        taken = compare(instr.cond, self.regs[instr.rs1], self.regs[instr.rs2])
        self._branch(taken, instr.target)

    def _op_branch_zero(self, instr: BranchZero):
        self._branch(compare(instr.cond, self.regs[instr.rs1], 0), instr.target)

    def _op_jump(self, instr: Jump):
        self._branch(True, instr.target)

    def _op_jal(self, instr: JumpAndLink):
        # resolve first: an unknown label must not clobber the link register
        disp = self._displacement(instr.target)
        self.regs[instr.rd] = self.pc + self.INSTRUCTION_SIZE
        self.pc = (self.pc + disp) & ADDR_MASK

    def _op_jalr(self, instr: JumpAndLinkReg):
        target = (self.regs[instr.rs1] + instr.imm) & ADDR_MASK
        self.regs[instr.rd] = self.pc + self.INSTRUCTION_SIZE
        self.pc = target

    def _op_slt(self, instr: SetLessThan):
        cond = Cond.LTU if instr.unsigned else Cond.LT
        self.regs[instr.rd] = 1 if compare(cond, self.regs[instr.rs1], self.regs[instr.rs2]) else 0
        self._advance()

    def _op_slti(self, instr: SetLessThanImm):
        cond = Cond.LTU if instr.unsigned else Cond.LT
        self.regs[instr.rd] = 1 if compare(cond, self.regs[instr.rs1], instr.imm) else 0
        self._advance()

    # ══════════════════════════════════════════════
    # Breakpoint API
    # ══════════════════════════════════════════════

    def add_breakpoint(self, addr: int):
        """run() stops with BREAK before executing the slot at addr."""
        self._breakpoints.add(addr & ADDR_MASK)

    def remove_breakpoint(self, addr: int):
        self._breakpoints.discard(addr & ADDR_MASK)

    def clear_breakpoints(self):
        self._breakpoints.clear()

    # ══════════════════════════════════════════════
    # Trace / Debug
    # ══════════════════════════════════════════════

    def enable_trace(self, enable: bool = True):
        """Record one line per executed instruction."""
        self._trace = enable

    def get_trace(self) -> str:
        return '\n'.join(self._trace_output)

    def clear_trace(self):
        self._trace_output.clear()

    def reset(self):
        """Power-on reset: registers, memory, history, PC, breakpoints, trace.

        The loaded program text is kept and its labels are rebuilt.
        """
        self.regs.reset()
        self.mem.reset()
        self.pc = self.BASE_ADDRESS
        self._breakpoints.clear()
        self._trace_output.clear()
        self.load(self._program)


def configure(memory_size: int = Interpreter.DEFAULT_MEMORY_SIZE) -> Interpreter:
    """Allocate a fresh interpreter: zeroed memory, sp = memory_size."""
    return Interpreter(memory_size)
