"""Instruction-level Y86 simulator: machine state, single steps and a runner."""

from __future__ import annotations

import itertools
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TextIO

from y86kit.isa import (
    DEFAULT_CC,
    MEM_SIZE,
    AddressError,
    AluOp,
    IType,
    LoadError,
    Memory,
    Register,
    RegisterFile,
    Status,
    cc_name,
    compute_alu,
    compute_cc,
    cond_holds,
    reg_valid,
    stat_name,
)

_NEEDS_REGIDS = frozenset({
    IType.RRMOVL, IType.ALU, IType.PUSHL, IType.POPL,
    IType.IRMOVL, IType.RMMOVL, IType.MRMOVL, IType.IADDL,
})
_NEEDS_IMM = frozenset({
    IType.IRMOVL, IType.RMMOVL, IType.MRMOVL,
    IType.JMP, IType.CALL, IType.IADDL,
})


def _s32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value & 0x80000000 else value


def _u32(value: int) -> int:
    return value & 0xFFFFFFFF


class _Fault(Exception):
    """Stops an instruction with a status and an optional message."""

    def __init__(self, status: Status, message: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.message = message


@dataclass
class State:
    """Programmer-visible machine state: PC, registers, memory and condition codes."""

    pc: int = 0
    regs: RegisterFile = field(default_factory=RegisterFile)
    mem: Memory = field(default_factory=lambda: Memory(MEM_SIZE))
    cc: int = DEFAULT_CC

    def copy(self) -> State:
        """Return an independent copy."""
        return State(self.pc, self.regs.copy(), self.mem.copy(), self.cc)

    def diff(self, other: State, out: TextIO | None = None) -> bool:
        """Report how ``other`` differs from this state; True if it does."""
        found = False
        if self.pc != other.pc:
            found = True
            if out is not None:
                out.write("pc:\t0x%.8x\t0x%.8x\n" % (_u32(self.pc), _u32(other.pc)))
        if self.cc != other.cc:
            found = True
            if out is not None:
                out.write("cc:\t%s\t%s\n" % (cc_name(self.cc), cc_name(other.cc)))
        if self.regs.diff(other.regs, out):
            found = True
        if self.mem.diff(other.mem, out):
            found = True
        return found

    def step(self, err: TextIO | None = None) -> Status:
        """Execute one instruction and return the resulting status.

        Problems are described on ``err`` when it is given.
        """
        try:
            self._execute()
        except _Fault as fault:
            if err is not None and fault.message is not None:
                err.write(fault.message)
            return fault.status
        return Status.AOK

    def _execute(self) -> None:
        pc = self.pc
        regs = self.regs
        mem = self.mem

        def bad_address(status: Status = Status.ADR, newline: bool = True) -> _Fault:
            end = "\n" if newline else ""
            return _Fault(status, "PC = 0x%x, Invalid instruction address%s" % (_u32(pc), end))

        def bad_register(reg: int) -> _Fault:
            return _Fault(Status.INS, "PC = 0x%x, Invalid register ID 0x%.1x\n" % (_u32(pc), reg))

        def bad_stack(addr: int) -> _Fault:
            return _Fault(Status.ADR, "PC = 0x%x, Invalid stack address 0x%x\n" % (_u32(pc), _u32(addr)))

        def need_valid(reg: int) -> None:
            if not reg_valid(reg):
                raise bad_register(reg)

        try:
            byte0 = mem.get_byte(pc)
        except AddressError:
            raise bad_address() from None
        ftpc = pc + 1
        hi0, lo0 = (byte0 >> 4) & 0xF, byte0 & 0xF

        ok1 = True
        hi1 = lo1 = int(Register.NONE)
        if hi0 in _NEEDS_REGIDS:
            try:
                byte1 = mem.get_byte(ftpc)
            except AddressError:
                ok1, byte1 = False, 0
            ftpc += 1
            hi1, lo1 = (byte1 >> 4) & 0xF, byte1 & 0xF

        okc = True
        cval = 0
        if hi0 in _NEEDS_IMM:
            try:
                cval = mem.get_word(ftpc)
            except AddressError:
                okc = False
            ftpc += 4

        if hi0 == IType.NOP:
            self.pc = ftpc
        elif hi0 == IType.HALT:
            raise _Fault(Status.HLT)
        elif hi0 == IType.RRMOVL:
            if not ok1:
                raise bad_address()
            need_valid(hi1)
            need_valid(lo1)
            val = regs.get(hi1)
            if cond_holds(self.cc, lo0):
                regs.set(lo1, val)
            self.pc = ftpc
        elif hi0 == IType.IRMOVL:
            if not ok1:
                raise bad_address()
            if not okc:
                raise bad_address(Status.INS, newline=False)
            need_valid(lo1)
            regs.set(lo1, cval)
            self.pc = ftpc
        elif hi0 == IType.RMMOVL:
            if not ok1:
                raise bad_address()
            if not okc:
                raise bad_address(Status.INS)
            need_valid(hi1)
            if reg_valid(lo1):
                cval = _s32(cval + regs.get(lo1))
            try:
                mem.set_word(cval, regs.get(hi1))
            except AddressError:
                raise _Fault(Status.ADR, "PC = 0x%x, Invalid data address 0x%x\n"
                             % (_u32(pc), _u32(cval))) from None
            self.pc = ftpc
        elif hi0 == IType.MRMOVL:
            if not ok1:
                raise bad_address()
            if not okc:
                raise _Fault(Status.INS, "PC = 0x%x, Invalid instruction addres\n" % _u32(pc))
            need_valid(hi1)
            if reg_valid(lo1):
                cval = _s32(cval + regs.get(lo1))
            try:
                val = mem.get_word(cval)
            except AddressError:
                raise _Fault(Status.ADR) from None
            regs.set(hi1, val)
            self.pc = ftpc
        elif hi0 == IType.ALU:
            if not ok1:
                raise bad_address()
            arg_a = regs.get(hi1)
            arg_b = regs.get(lo1)
            regs.set(lo1, compute_alu(lo0, arg_a, arg_b))
            self.cc = compute_cc(lo0, arg_a, arg_b)
            self.pc = ftpc
        elif hi0 == IType.JMP:
            if not ok1 or not okc:
                raise bad_address()
            self.pc = cval if cond_holds(self.cc, lo0) else ftpc
        elif hi0 == IType.CALL:
            if not ok1 or not okc:
                raise bad_address()
            val = _s32(regs.get(Register.ESP) - 4)
            regs.set(Register.ESP, val)
            try:
                mem.set_word(val, ftpc)
            except AddressError:
                raise bad_stack(val) from None
            self.pc = cval
        elif hi0 == IType.RET:
            dval = regs.get(Register.ESP)
            try:
                val = mem.get_word(dval)
            except AddressError:
                raise bad_stack(dval) from None
            regs.set(Register.ESP, dval + 4)
            self.pc = val
        elif hi0 == IType.PUSHL:
            if not ok1:
                raise bad_address()
            need_valid(hi1)
            val = regs.get(hi1)
            dval = _s32(regs.get(Register.ESP) - 4)
            regs.set(Register.ESP, dval)
            try:
                mem.set_word(dval, val)
            except AddressError:
                raise bad_stack(dval) from None
            self.pc = ftpc
        elif hi0 == IType.POPL:
            if not ok1:
                raise bad_address()
            need_valid(hi1)
            dval = regs.get(Register.ESP)
            regs.set(Register.ESP, dval + 4)
            try:
                val = mem.get_word(dval)
            except AddressError:
                raise bad_stack(dval) from None
            regs.set(hi1, val)
            self.pc = ftpc
        elif hi0 == IType.LEAVE:
            dval = regs.get(Register.EBP)
            regs.set(Register.ESP, dval + 4)
            try:
                val = mem.get_word(dval)
            except AddressError:
                raise bad_stack(dval) from None
            regs.set(Register.EBP, val)
            self.pc = ftpc
        elif hi0 == IType.IADDL:
            if not ok1:
                raise bad_address()
            if not okc:
                raise bad_address(Status.INS, newline=False)
            need_valid(lo1)
            arg_b = regs.get(lo1)
            regs.set(lo1, arg_b + cval)
            self.cc = compute_cc(AluOp.ADD, cval, arg_b)
            self.pc = ftpc
        else:
            raise _Fault(Status.INS, "PC = 0x%x, Invalid instruction %.2x\n" % (_u32(pc), byte0))


def run(state: State, max_steps: int = 10000, err: TextIO | None = None) -> tuple[int, Status]:
    """Step until the status is no longer AOK or ``max_steps`` are taken.

    Returns the number of steps taken and the final status.
    """
    status = Status.AOK
    steps = 0
    while steps < max_steps and status == Status.AOK:
        status = state.step(err)
        steps += 1
    return steps, status


def _atoi(text: str) -> int:
    text = text.lstrip()
    sign = -1 if text.startswith("-") else 1
    if text[:1] in "+-":
        text = text[1:]
    digits = "".join(itertools.takewhile(str.isdigit, text))
    return sign * int(digits) if digits else 0


def main(argv: Sequence[str] | None = None) -> int:
    """Load an object-code file, run it and report the changes it made."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not 1 <= len(args) <= 2:
        print("Usage: yis code_file [max_steps]")
        return 0

    state = State()
    saved_regs = state.regs.copy()
    try:
        with open(args[0], encoding="utf-8", errors="replace") as code_file:
            try:
                loaded = state.mem.load(code_file, report_error=True)
            except LoadError:
                loaded = 0
    except OSError:
        sys.stderr.write(f"Can't open code file '{args[0]}'\n")
        return 1
    if not loaded:
        print("Exiting")
        return 1

    saved_mem = state.mem.copy()
    max_steps = _atoi(args[1]) if len(args) > 1 else 10000

    steps, status = run(state, max_steps, sys.stdout)
    print("Stopped in %d steps at PC = 0x%x.  Status '%s', CC %s"
          % (steps, _u32(state.pc), stat_name(status), cc_name(state.cc)))
    print("Changes to registers:")
    saved_regs.diff(state.regs, sys.stdout)
    print("\nChanges to memory:")
    saved_mem.diff(state.mem, sys.stdout)
    return 0