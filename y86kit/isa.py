"""Y86 instruction set: registers, encodings, memory, ALU and condition codes."""

from __future__ import annotations

import re
import sys
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import IntEnum
from typing import TextIO


class Register(IntEnum):
    """Program register identifiers."""

    EAX = 0
    ECX = 1
    EDX = 2
    EBX = 3
    ESP = 4
    EBP = 5
    ESI = 6
    EDI = 7
    NONE = 0xF
    ERR = 0x10


class ArgKind(IntEnum):
    """Kinds of instruction operand."""

    REG = 0
    MEM = 1
    IMM = 2
    NONE = 3


class IType(IntEnum):
    """Instruction codes (the high four bits of the first byte)."""

    HALT = 0
    NOP = 1
    RRMOVL = 2
    IRMOVL = 3
    RMMOVL = 4
    MRMOVL = 5
    ALU = 6
    JMP = 7
    CALL = 8
    RET = 9
    PUSHL = 10
    POPL = 11
    IADDL = 12
    LEAVE = 13
    POP2 = 14


class AluOp(IntEnum):
    """ALU function codes."""

    ADD = 0
    SUB = 1
    AND = 2
    XOR = 3
    NONE = 4


class Cond(IntEnum):
    """Jump and conditional-move conditions."""

    YES = 0
    LE = 1
    L = 2
    E = 3
    NE = 4
    GE = 5
    G = 6


class Status(IntEnum):
    """Processor status codes."""

    BUB = 0
    AOK = 1
    HLT = 2
    ADR = 3
    INS = 4
    PIP = 5


F_NONE = 0
BPL = 32
"""Bytes per line of a memory dump; memory sizes are rounded up to it."""

MEM_SIZE = 1 << 13
BIG_MEM_SIZE = 1 << 16

_REG_NAMES = ("%eax", "%ecx", "%edx", "%ebx", "%esp", "%ebp", "%esi", "%edi")
_NO_REG_NAME = "----"


def _s32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value & 0x80000000 else value


def hpack(hi: int, lo: int) -> int:
    """Pack two four-bit fields into one byte."""
    return ((hi & 0xF) << 4) | (lo & 0xF)


def find_register(name: str) -> Register:
    """Return the register called ``name``, or Register.ERR."""
    try:
        return Register(_REG_NAMES.index(name))
    except ValueError:
        return Register.ERR


def reg_name(reg: int) -> str:
    """Return the printed name of a register id."""
    if 0 <= reg < len(_REG_NAMES):
        return _REG_NAMES[reg]
    return _NO_REG_NAME


def reg_valid(reg: int) -> bool:
    """True if ``reg`` names a program register."""
    return 0 <= reg < len(_REG_NAMES)


@dataclass(frozen=True)
class Instruction:
    """Encoding information for one instruction or data directive.

    ``arg1hi`` is 0/1 for a register operand (low/high nibble) and the byte
    count for an immediate operand.
    """

    name: str
    code: int
    size: int
    arg1: ArgKind
    arg1pos: int
    arg1hi: int
    arg2: ArgKind
    arg2pos: int
    arg2hi: int


_R, _M, _I, _N = ArgKind.REG, ArgKind.MEM, ArgKind.IMM, ArgKind.NONE

INSTRUCTION_SET: tuple[Instruction, ...] = (
    Instruction("nop", hpack(IType.NOP, F_NONE), 1, _N, 0, 0, _N, 0, 0),
    Instruction("halt", hpack(IType.HALT, F_NONE), 1, _N, 0, 0, _N, 0, 0),
    Instruction("rrmovl", hpack(IType.RRMOVL, F_NONE), 2, _R, 1, 1, _R, 1, 0),
    Instruction("cmovle", hpack(IType.RRMOVL, Cond.LE), 2, _R, 1, 1, _R, 1, 0),
    Instruction("cmovl", hpack(IType.RRMOVL, Cond.L), 2, _R, 1, 1, _R, 1, 0),
    Instruction("cmove", hpack(IType.RRMOVL, Cond.E), 2, _R, 1, 1, _R, 1, 0),
    Instruction("cmovne", hpack(IType.RRMOVL, Cond.NE), 2, _R, 1, 1, _R, 1, 0),
    Instruction("cmovge", hpack(IType.RRMOVL, Cond.GE), 2, _R, 1, 1, _R, 1, 0),
    Instruction("cmovg", hpack(IType.RRMOVL, Cond.G), 2, _R, 1, 1, _R, 1, 0),
    Instruction("irmovl", hpack(IType.IRMOVL, F_NONE), 6, _I, 2, 4, _R, 1, 0),
    Instruction("rmmovl", hpack(IType.RMMOVL, F_NONE), 6, _R, 1, 1, _M, 1, 0),
    Instruction("mrmovl", hpack(IType.MRMOVL, F_NONE), 6, _M, 1, 0, _R, 1, 1),
    Instruction("addl", hpack(IType.ALU, AluOp.ADD), 2, _R, 1, 1, _R, 1, 0),
    Instruction("subl", hpack(IType.ALU, AluOp.SUB), 2, _R, 1, 1, _R, 1, 0),
    Instruction("andl", hpack(IType.ALU, AluOp.AND), 2, _R, 1, 1, _R, 1, 0),
    Instruction("xorl", hpack(IType.ALU, AluOp.XOR), 2, _R, 1, 1, _R, 1, 0),
    Instruction("jmp", hpack(IType.JMP, Cond.YES), 5, _I, 1, 4, _N, 0, 0),
    Instruction("jle", hpack(IType.JMP, Cond.LE), 5, _I, 1, 4, _N, 0, 0),
    Instruction("jl", hpack(IType.JMP, Cond.L), 5, _I, 1, 4, _N, 0, 0),
    Instruction("je", hpack(IType.JMP, Cond.E), 5, _I, 1, 4, _N, 0, 0),
    Instruction("jne", hpack(IType.JMP, Cond.NE), 5, _I, 1, 4, _N, 0, 0),
    Instruction("jge", hpack(IType.JMP, Cond.GE), 5, _I, 1, 4, _N, 0, 0),
    Instruction("jg", hpack(IType.JMP, Cond.G), 5, _I, 1, 4, _N, 0, 0),
    Instruction("call", hpack(IType.CALL, F_NONE), 5, _I, 1, 4, _N, 0, 0),
    Instruction("ret", hpack(IType.RET, F_NONE), 1, _N, 0, 0, _N, 0, 0),
    Instruction("pushl", hpack(IType.PUSHL, F_NONE), 2, _R, 1, 1, _N, 0, 0),
    Instruction("popl", hpack(IType.POPL, F_NONE), 2, _R, 1, 1, _N, 0, 0),
    Instruction("iaddl", hpack(IType.IADDL, F_NONE), 6, _I, 2, 4, _R, 1, 0),
    Instruction("leave", hpack(IType.LEAVE, F_NONE), 1, _N, 0, 0, _N, 0, 0),
    Instruction("pop2", hpack(IType.POP2, F_NONE), 0, _N, 0, 0, _N, 0, 0),
    Instruction(".byte", 0x00, 1, _I, 0, 1, _N, 0, 0),
    Instruction(".word", 0x00, 2, _I, 0, 2, _N, 0, 0),
    Instruction(".long", 0x00, 4, _I, 0, 4, _N, 0, 0),
)

INVALID_INSTR = Instruction("XXX", 0, 0, _N, 0, 0, _N, 0, 0)

_BY_NAME = {instr.name: instr for instr in INSTRUCTION_SET}


def find_instr(name: str) -> Instruction | None:
    """Return the instruction called ``name``, or None."""
    return _BY_NAME.get(name)


def iname(code: int) -> str:
    """Return the name of the first instruction encoded as ``code``."""
    return next((i.name for i in INSTRUCTION_SET if i.code == code), "<bad>")


def bad_instr() -> Instruction:
    """The placeholder instruction used after an error."""
    return INVALID_INSTR


_ALU_SYMBOLS = "+-&^"


def op_name(op: int) -> str:
    """Return the symbol of an ALU operation, '?' if unknown."""
    if 0 <= op < AluOp.NONE:
        return _ALU_SYMBOLS[op]
    return "?"


def compute_alu(op: int, a: int, b: int) -> int:
    """Compute an ALU operation on 32-bit words (SUB gives b - a)."""
    a, b = _s32(a), _s32(b)
    if op == AluOp.ADD:
        return _s32(a + b)
    if op == AluOp.SUB:
        return _s32(b - a)
    if op == AluOp.AND:
        return a & b
    if op == AluOp.XOR:
        return a ^ b
    return 0


def _pack_cc(zero: bool, sign: bool, ovf: bool) -> int:
    return (int(zero) << 2) | (int(sign) << 1) | int(ovf)


DEFAULT_CC = _pack_cc(True, False, False)


def compute_cc(op: int, a: int, b: int) -> int:
    """Compute the packed condition codes (Z, S, O) for an ALU operation."""
    a, b = _s32(a), _s32(b)
    val = compute_alu(op, a, b)
    if op == AluOp.ADD:
        ovf = (a < 0) == (b < 0) and (val < 0) != (a < 0)
    elif op == AluOp.SUB:
        ovf = (a > 0) == (b < 0) and (val < 0) != (b < 0)
    else:
        ovf = False
    return _pack_cc(val == 0, val < 0, ovf)


_CC_NAMES = tuple(
    f"Z={(c >> 2) & 1} S={(c >> 1) & 1} O={c & 1}" for c in range(8)
)


def cc_name(cc: int) -> str:
    """Return the printed form of packed condition codes."""
    if 0 <= cc <= 7:
        return _CC_NAMES[cc]
    return "???????????"


def stat_name(status: int) -> str:
    """Return the short name of a status code."""
    if 0 <= status <= Status.PIP:
        return Status(status).name
    return "Invalid Status"


def cond_holds(cc: int, cond: int) -> bool:
    """True if condition ``cond`` is satisfied by condition codes ``cc``."""
    zf = bool((cc >> 2) & 1)
    sf = bool((cc >> 1) & 1)
    of = bool(cc & 1)
    if cond == Cond.YES:
        return True
    if cond == Cond.LE:
        return (sf != of) or zf
    if cond == Cond.L:
        return sf != of
    if cond == Cond.E:
        return zf
    if cond == Cond.NE:
        return not zf
    if cond == Cond.GE:
        return sf == of
    if cond == Cond.G:
        return sf == of and not zf
    return False


class AddressError(IndexError):
    """An access outside the bounds of a memory."""

    def __init__(self, address: int) -> None:
        super().__init__(f"invalid address 0x{address & 0xFFFFFFFF:x}")
        self.address = address


class LoadError(ValueError):
    """A malformed line in an object-code listing."""

    def __init__(self, message: str, lineno: int) -> None:
        super().__init__(f"line {lineno}: {message}")
        self.lineno = lineno


_ADDR_RE = re.compile(r"\s*0[xX]([0-9A-Fa-f]*)\s*")
_CODE_RE = re.compile(r"\s*((?:[0-9A-Fa-f]{2})*)")


class Memory:
    """Byte-addressed memory, sized in whole blocks of BPL bytes."""

    def __init__(self, length: int) -> None:
        length = ((length + BPL - 1) // BPL) * BPL
        self.contents = bytearray(length)

    def __len__(self) -> int:
        return len(self.contents)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Memory):
            return NotImplemented
        return self.contents == other.contents

    def clear(self) -> None:
        """Set every byte to zero."""
        self.contents[:] = bytes(len(self.contents))

    def copy(self) -> Memory:
        """Return an independent copy."""
        result = Memory(len(self))
        result.contents[:] = self.contents
        return result

    def get_byte(self, pos: int) -> int:
        """Read one byte."""
        if not 0 <= pos < len(self.contents):
            raise AddressError(pos)
        return self.contents[pos]

    def get_word(self, pos: int) -> int:
        """Read a little-endian signed 32-bit word."""
        if pos < 0 or pos + 4 > len(self.contents):
            raise AddressError(pos)
        return _s32(int.from_bytes(self.contents[pos:pos + 4], "little"))

    def set_byte(self, pos: int, value: int) -> None:
        """Write one byte."""
        if not 0 <= pos < len(self.contents):
            raise AddressError(pos)
        self.contents[pos] = value & 0xFF

    def set_word(self, pos: int, value: int) -> None:
        """Write a little-endian 32-bit word."""
        if pos < 0 or pos + 4 > len(self.contents):
            raise AddressError(pos)
        self.contents[pos:pos + 4] = (value & 0xFFFFFFFF).to_bytes(4, "little")

    def diff(self, other: Memory, out: TextIO | None = None) -> bool:
        """Report words that differ; without ``out`` stop at the first."""
        length = min(len(self), len(other))
        found = False
        for pos in range(0, length - 3, 4):
            old, new = self.get_word(pos), other.get_word(pos)
            if old != new:
                found = True
                if out is None:
                    break
                out.write("0x%.4x:\t0x%.8x\t0x%.8x\n"
                          % (pos, old & 0xFFFFFFFF, new & 0xFFFFFFFF))
        return found

    def dump(self, out: TextIO, pos: int, length: int) -> None:
        """Print the words of the blocks covering [pos, pos + length)."""
        shift = pos % BPL
        pos -= shift
        length += shift
        length = ((length + BPL - 1) // BPL) * BPL
        length = min(length, len(self) - pos)
        for start in range(pos, pos + length, BPL):
            out.write("0x%.4x:" % start)
            val = 0
            for addr in range(start, start + BPL, 4):
                try:
                    val = self.get_word(addr)
                except AddressError:
                    pass
                out.write(" %.8x" % (val & 0xFFFFFFFF))

    def load(self, lines: Iterable[str], report_error: bool = False) -> int:
        """Load an object-code listing and return the number of bytes read.

        Lines not starting with a ``0x`` address are skipped.  Raises
        LoadError on a malformed line or an address outside the memory;
        with ``report_error`` the problem is also described on stderr.
        """
        count = 0
        for lineno, line in enumerate(lines, 1):
            match = _ADDR_RE.match(line)
            if not match:
                continue
            pos = match.end()
            if line[pos:pos + 1] != ":":
                if report_error:
                    shown = line[pos + 1:pos + 2]
                    sys.stderr.write("Error reading file. Expected colon\n")
                    sys.stderr.write(f"Line {lineno}:{line}\n")
                    sys.stderr.write(f"Reading '{shown}' at position {pos + 1}\n")
                raise LoadError("expected colon", lineno)
            address = int(match.group(1), 16) if match.group(1) else 0
            hexcode = _CODE_RE.match(line, pos + 1).group(1)
            for value in bytes.fromhex(hexcode):
                if address >= len(self.contents):
                    if report_error:
                        sys.stderr.write(
                            "Error reading file. Invalid address. 0x%x\n" % address
                        )
                        sys.stderr.write(f"Line {lineno}:{line}\n")
                    raise LoadError("invalid address 0x%x" % address, lineno)
                self.contents[address] = value
                address += 1
                count += 1
        return count


@dataclass
class RegisterFile:
    """The eight program registers, each a signed 32-bit word."""

    values: list[int] = field(default_factory=lambda: [0] * len(_REG_NAMES))

    def get(self, reg: int) -> int:
        """Read a register; anything but a program register reads 0."""
        return self.values[reg] if reg_valid(reg) else 0

    def set(self, reg: int, value: int) -> None:
        """Write a register; writes to other ids are ignored."""
        if reg_valid(reg):
            self.values[reg] = _s32(value)

    def copy(self) -> RegisterFile:
        """Return an independent copy."""
        return RegisterFile(list(self.values))

    def diff(self, other: RegisterFile, out: TextIO | None = None) -> bool:
        """Report registers that differ; without ``out`` stop at the first."""
        found = False
        for name, old, new in zip(_REG_NAMES, self.values, other.values):
            if old != new:
                found = True
                if out is None:
                    break
                out.write("%s:\t0x%.8x\t0x%.8x\n"
                          % (name, old & 0xFFFFFFFF, new & 0xFFFFFFFF))
        return found

    def dump(self, out: TextIO) -> None:
        """Print register names on one line and their values on the next."""
        out.write("".join(f"   {name}  " for name in _REG_NAMES) + "\n")
        out.write("".join(" %x" % (v & 0xFFFFFFFF) for v in self.values) + "\n")