"""
Register File and ALU Tests for the RV32 Interpreter.

32-bit wrap-around, the x0 hard-wire, truncating division and the
signed/unsigned comparison split.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from rv32_interpreter.cpu.regs import (
    RegisterFile, register_number, to_signed32, NUM_REGISTERS, SP,
)
from rv32_interpreter.cpu.alu import AluOp, Cond, compute, compare, sign_extend
from rv32_interpreter.errors import RegisterError, DivisionByZeroError

INT_MIN = -0x80000000
INT_MAX = 0x7FFFFFFF


class TestRegisterFile:

    def test_round_trip(self):
        regs = RegisterFile(stack_top=1024)
        for i in range(1, NUM_REGISTERS):
            regs[i] = i * 3 - 40
        for i in range(1, NUM_REGISTERS):
            assert regs[i] == i * 3 - 40

    def test_x0_hardwired(self):
        regs = RegisterFile()
        regs[0] = 1234
        assert regs[0] == 0

    def test_stack_pointer_preset(self):
        regs = RegisterFile(stack_top=2048)
        assert regs[SP] == 2048
        assert regs.snapshot()[2] == 2048

    def test_writes_wrap(self):
        regs = RegisterFile()
        regs[1] = 0xFFFFFFFF
        regs[2] = 0x80000000
        regs[3] = 0x1_0000_0005
        assert regs[1] == -1
        assert regs[2] == INT_MIN
        assert regs[3] == 5

    def test_reset(self):
        regs = RegisterFile(stack_top=512)
        regs[5] = 9
        regs[SP] = 0
        regs.reset()
        assert regs[5] == 0
        assert regs[SP] == 512

    def test_display(self):
        text = RegisterFile(stack_top=1024).display()
        lines = text.splitlines()
        assert len(lines) == NUM_REGISTERS
        assert lines[2] == "x2  (sp  ): 1024"
        assert lines[31].startswith("x31 (t6  )")


class TestRegisterNames:

    def test_abi_names(self):
        assert register_number("zero") == 0
        assert register_number("ra") == 1
        assert register_number("sp") == 2
        assert register_number("s0") == 8
        assert register_number("fp") == 8
        assert register_number("a0") == 10
        assert register_number("s11") == 27
        assert register_number("t6") == 31

    def test_numeric_names(self):
        for i in range(NUM_REGISTERS):
            assert register_number(f"x{i}") == i

    def test_unknown_name(self):
        for bad in ("x32", "a8", "X1", "r1", ""):
            with pytest.raises(RegisterError):
                register_number(bad)

    def test_to_signed32(self):
        assert to_signed32(0x7FFFFFFF) == INT_MAX
        assert to_signed32(0x80000000) == INT_MIN
        assert to_signed32(-1) == -1


class TestCompute:

    def test_add_sub_wrap(self):
        assert compute(AluOp.ADD, INT_MAX, 1) == INT_MIN
        assert compute(AluOp.SUB, INT_MIN, 1) == INT_MAX
        assert compute(AluOp.SUB, 0, 1) == -1

    def test_mul_wraps(self):
        assert compute(AluOp.MUL, 0x10000, 0x10000) == 0
        assert compute(AluOp.MUL, -3, 7) == -21

    def test_div_truncates_toward_zero(self):
        assert compute(AluOp.DIV, 7, 2) == 3
        assert compute(AluOp.DIV, -7, 2) == -3
        assert compute(AluOp.DIV, 7, -2) == -3
        assert compute(AluOp.REM, -7, 2) == -1
        assert compute(AluOp.REM, 7, -2) == 1

    def test_div_overflow_wraps(self):
        assert compute(AluOp.DIV, INT_MIN, -1) == INT_MIN
        assert compute(AluOp.REM, INT_MIN, -1) == 0

    def test_div_by_zero(self):
        with pytest.raises(DivisionByZeroError):
            compute(AluOp.DIV, 5, 0)
        with pytest.raises(DivisionByZeroError):
            compute(AluOp.REM, 5, 0)

    def test_logic(self):
        assert compute(AluOp.AND, 0b1100, 0b1010) == 0b1000
        assert compute(AluOp.OR, 0b1100, 0b1010) == 0b1110
        assert compute(AluOp.XOR, -1, 0) == -1

    def test_shifts(self):
        assert compute(AluOp.SLL, 1, 31) == INT_MIN
        assert compute(AluOp.SLL, 1, 33) == 2
        assert compute(AluOp.SRL, -1, 28) == 15
        assert compute(AluOp.SRA, -16, 2) == -4
        assert compute(AluOp.SRA, INT_MIN, 31) == -1


class TestCompare:

    def test_signed(self):
        assert compare(Cond.LT, -1, 1)
        assert compare(Cond.GE, 1, -1)
        assert compare(Cond.LE, 3, 3)
        assert not compare(Cond.GT, 3, 3)

    def test_unsigned_reinterprets(self):
        assert not compare(Cond.LTU, -1, 1)
        assert compare(Cond.GTU, -1, 1)
        assert compare(Cond.GEU, INT_MIN, INT_MAX)
        assert compare(Cond.LEU, 0, -1)

    def test_equality(self):
        assert compare(Cond.EQ, 5, 5)
        assert compare(Cond.NE, 5, -5)


class TestSignExtend:

    def test_byte(self):
        assert sign_extend(0xFF, 8) == -1
        assert sign_extend(0x7F, 8) == 127
        assert sign_extend(0x180, 8) == -128

    def test_half(self):
        assert sign_extend(0xFFFE, 16) == -2
        assert sign_extend(0x1234, 16) == 0x1234
