"""Two-pass assembler turning Y86 assembly source into an object-code listing."""

from __future__ import annotations

import itertools
import re
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TextIO

from y86kit.isa import (
    INSTRUCTION_SET,
    ArgKind,
    Register,
    bad_instr,
    find_instr,
    find_register,
    hpack,
)

TOK_PER_LINE = 12
"""A line holds fewer tokens than this."""

STRMAX = 4096
"""Lines must be shorter than this, counting the line terminator."""

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_UINT64_MAX = (1 << 64) - 1


class TokenType(Enum):
    """Kinds of token on an assembly line."""

    IDENT = "I"
    NUM = "N"
    REG = "R"
    INSTR = "X"
    PUNCT = "P"
    ERR = "E"


@dataclass(frozen=True)
class Token:
    """One lexical token; ``value`` is meaningful for numbers only."""

    type: TokenType
    text: str
    value: int = 0


class AssemblyError(Exception):
    """Assembly failed.

    ``errors`` holds one message per offending line.  ``listing`` is the
    output produced by the second pass when the errors surfaced there, and
    None when the first pass already failed.
    """

    def __init__(self, errors: Sequence[str], listing: str | None = None) -> None:
        super().__init__("\n".join(errors))
        self.errors = list(errors)
        self.listing = listing


def _s32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value & 0x80000000 else value


def _cdiv(num: int, den: int) -> int:
    """Integer division truncating toward zero."""
    quotient = abs(num) // abs(den)
    return quotient if (num >= 0) == (den >= 0) else -quotient


_INSTR_NAMES = tuple(sorted(
    {instr.name for instr in INSTRUCTION_SET if instr.name != "pop2"} | {".pos", ".align"},
    key=len,
    reverse=True,
))
_REG_RE = re.compile(r"%e(?:ax|cx|dx|bx|sp|bp|si|di)")
_DEC_RE = re.compile(r"-?[0-9]+")
_HEX_RE = re.compile(r"0[xX][0-9a-fA-F]+")
_PUNCT_RE = re.compile(r"[():,]")
_IDENT_RE = re.compile(r"[A-Za-z][A-Za-z0-9_]*")


def _candidates(line: str, pos: int) -> list[Token]:
    found: list[Token] = []
    name = next((n for n in _INSTR_NAMES if line.startswith(n, pos)), None)
    if name is not None:
        found.append(Token(TokenType.INSTR, name))
    if m := _REG_RE.match(line, pos):
        found.append(Token(TokenType.REG, m.group()))
    if m := _DEC_RE.match(line, pos):
        value = max(_INT64_MIN, min(_INT64_MAX, int(m.group())))
        found.append(Token(TokenType.NUM, m.group(), _s32(value)))
    if m := _HEX_RE.match(line, pos):
        value = min(_UINT64_MAX, int(m.group()[2:], 16))
        found.append(Token(TokenType.NUM, m.group(), _s32(value)))
    if m := _PUNCT_RE.match(line, pos):
        found.append(Token(TokenType.PUNCT, m.group()))
    if m := _IDENT_RE.match(line, pos):
        found.append(Token(TokenType.IDENT, m.group()))
    return found


def tokenize(line: str) -> list[Token]:
    """Split one line (without its terminator) into tokens.

    Blanks and '$' are skipped, and '#', '//' or '/*' start a comment that
    runs to the end of the line.  The longest match wins; on a tie the
    earlier kind wins (instruction, register, number, punctuation,
    identifier).  An unrecognised character ends the list with an ERR token
    holding the rest of the line.
    """
    tokens: list[Token] = []
    pos = 0
    while pos < len(line):
        ch = line[pos]
        if ch in " \t$":
            pos += 1
            continue
        if ch == "#" or line.startswith(("//", "/*"), pos):
            break
        found = _candidates(line, pos)
        if not found:
            tokens.append(Token(TokenType.ERR, line[pos:]))
            break
        best = max(found, key=lambda tok: len(tok.text))
        tokens.append(best)
        pos += len(best.text)
    return tokens


_END = Token(TokenType.ERR, "")


class _Cursor:
    """Reads the tokens of one line in order."""

    def __init__(self, tokens: Sequence[Token]) -> None:
        self.tokens = tokens
        self.pos = 0

    def at(self, index: int) -> Token:
        return self.tokens[index] if index < len(self.tokens) else _END

    def peek(self) -> Token:
        return self.at(self.pos)

    def take(self) -> Token:
        tok = self.peek()
        self.pos += 1
        return tok


def _is_punct(tok: Token, char: str) -> bool:
    return tok.type is TokenType.PUNCT and tok.text == char


class Assembler:
    """Assembles source text into an object-code listing.

    The first pass collects label addresses; the second encodes each
    instruction and writes one listing line per source line.  With
    ``verilog`` the listing instead becomes memory-initialisation
    statements, split over eight banks when ``block_factor`` is 8.
    ``big_mem`` widens listed addresses to four hex digits.  Error
    messages are also written to ``err`` when it is given.
    """

    def __init__(
        self,
        *,
        big_mem: bool = False,
        verilog: bool = False,
        block_factor: int = 0,
        err: TextIO | None = None,
    ) -> None:
        self.big_mem = big_mem
        self.verilog = verilog
        self.block_factor = block_factor
        self.err = err
        self.symbols: dict[str, int] = {}
        self.errors: list[str] = []
        self._pass_no = 1
        self._lineno = 1
        self._bytepos = 0
        self._error_mode = False
        self._input_line = ""

    def assemble(self, source: str) -> str:
        """Assemble ``source`` and return the listing; raise AssemblyError on errors."""
        self.symbols = {}
        self.errors = []
        self._input_line = ""
        self._run_pass(source, 1)
        if self.errors:
            raise AssemblyError(self.errors)
        listing = self._run_pass(source, 2)
        if self.errors:
            raise AssemblyError(self.errors, listing)
        return listing

    def _run_pass(self, source: str, pass_no: int) -> str:
        self._pass_no = pass_no
        self._bytepos = 0
        out: list[str] = []
        *lines, tail = source.split("\n")
        for lineno, raw in enumerate(lines, 1):
            self._lineno = lineno
            self._error_mode = False
            text = raw.rstrip("\r")
            if len(text) + 1 >= STRMAX:
                self._fail("Input Line too long")
            self._input_line = text
            tokens = tokenize(text)
            if tokens and tokens[-1].type is TokenType.ERR:
                self._fail("Invalid line")
                continue
            if len(tokens) > TOK_PER_LINE - 1:
                self._fail("Line too long")
            self._finish_line(tokens, out)
        if tokenize(tail.rstrip("\r")):
            self._lineno = len(lines) + 1
            self._error_mode = False
            self._fail("Missing end-of-line on final line")
        return "".join(line + "\n" for line in out)

    def _fail(self, message: str) -> None:
        if not self._error_mode:
            text = f"Error on line {self._lineno}: {message}"
            self.errors.append(text)
            if self.err is not None:
                self.err.write(text + "\n")
                self.err.write("Line %d, Byte 0x%.4x: %s\n"
                               % (self._lineno, self._bytepos & 0xFFFFFFFF, self._input_line))
        self._error_mode = True

    def _find_symbol(self, name: str) -> int:
        if name in self.symbols:
            return self.symbols[name]
        self._fail("Can't find label")
        return -1

    def _finish_line(self, tokens: Sequence[Token], out: list[str]) -> None:
        start = self._bytepos
        listing = self._pass_no > 1
        if not tokens:
            if listing:
                self._emit(out, start, None)
            return
        if self._error_mode:
            return

        cur = _Cursor(tokens)
        if tokens[0].type is TokenType.IDENT:
            if not _is_punct(cur.at(1), ":"):
                self._fail("Missing Colon")
                return
            if not listing:
                self.symbols.setdefault(tokens[0].text, self._bytepos)
            cur.pos = 2
            if len(tokens) == 2:
                if listing:
                    self._emit(out, start, b"")
                return

        head = cur.take()
        if head.type is not TokenType.INSTR:
            self._fail("Bad Instruction")
            return
        if head.text == ".pos":
            arg = cur.peek()
            if arg.type is not TokenType.NUM:
                self._fail("Invalid Address")
                return
            self._bytepos = arg.value
            if listing:
                self._emit(out, self._bytepos, b"")
            return
        if head.text == ".align":
            arg = cur.peek()
            if arg.type is not TokenType.NUM or arg.value <= 0:
                self._fail("Invalid Alignment")
                return
            align = arg.value
            self._bytepos = _cdiv(self._bytepos + align - 1, align) * align
            if listing:
                self._emit(out, self._bytepos, b"")
            return

        instr = find_instr(head.text)
        if instr is None:
            self._fail("Invalid Instruction")
            instr = bad_instr()
        self._bytepos += instr.size
        if not listing:
            return

        code = bytearray(6)
        code[0] = instr.code
        code[1] = hpack(Register.NONE, Register.NONE)
        self._get_arg(cur, code, instr.arg1, instr.arg1pos, instr.arg1hi)
        if instr.arg2 is not ArgKind.NONE:
            if not _is_punct(cur.peek(), ","):
                self._fail("Expecting Comma")
                return
            cur.take()
            self._get_arg(cur, code, instr.arg2, instr.arg2pos, instr.arg2hi)
        self._emit(out, start, bytes(code[:instr.size]))

    def _get_arg(self, cur: _Cursor, code: bytearray, kind: ArgKind, pos: int, hi: int) -> None:
        if kind is ArgKind.REG:
            self._get_reg(cur, code, pos, hi)
        elif kind is ArgKind.MEM:
            self._get_mem(cur, code, pos)
        elif kind is ArgKind.IMM:
            self._get_num(cur, code, pos, hi)

    def _get_reg(self, cur: _Cursor, code: bytearray, pos: int, hi: int) -> None:
        tok = cur.peek()
        if tok.type is not TokenType.REG:
            self._fail("Expecting Register ID")
            return
        rval = int(find_register(tok.text))
        if hi:
            code[pos] = ((code[pos] & 0x0F) | (rval << 4)) & 0xFF
        else:
            code[pos] = ((code[pos] & 0xF0) | rval) & 0xFF
        cur.take()

    def _get_num(self, cur: _Cursor, code: bytearray, pos: int, nbytes: int) -> None:
        tok = cur.peek()
        if tok.type is TokenType.NUM:
            val = tok.value
        elif tok.type is TokenType.IDENT:
            val = self._find_symbol(tok.text)
        else:
            self._fail("Number Expected")
            return
        code[pos:pos + nbytes] = (val & ((1 << (8 * nbytes)) - 1)).to_bytes(nbytes, "little")
        cur.take()

    def _get_mem(self, cur: _Cursor, code: bytearray, pos: int) -> None:
        rval = int(Register.NONE)
        val = 0
        tok = cur.peek()
        if tok.type is TokenType.NUM:
            val = tok.value
            cur.take()
        elif tok.type is TokenType.IDENT:
            val = self._find_symbol(tok.text)
            cur.take()
        if _is_punct(cur.peek(), "("):
            cur.take()
            reg = cur.peek()
            if reg.type is not TokenType.REG:
                self._fail("Expecting Register Id")
                return
            rval = int(find_register(reg.text))
            cur.take()
            if not _is_punct(cur.peek(), ")"):
                self._fail("Expecting ')'")
                return
            cur.take()
        code[pos] = (code[pos] & 0xF0) | (rval & 0xF)
        code[pos + 1:pos + 5] = (val & 0xFFFFFFFF).to_bytes(4, "little")

    def _emit(self, out: list[str], pos: int, code: bytes | None) -> None:
        if code is None:
            prefix = " " * (23 if self.big_mem else 22) + "| "
        else:
            hexcode = code.hex().ljust(12)
            if self.big_mem:
                prefix = "  0x%04x:%s  | " % (pos & 0xFFFF, hexcode)
            else:
                prefix = "  0x%03x: %s | " % (pos & 0xFFF, hexcode)
        if not self.verilog:
            out.append(prefix + self._input_line)
            return
        out.append(f"//{prefix}{self._input_line}")
        for offset, byte in enumerate(code or b""):
            addr = pos + offset
            if self.block_factor:
                bank = _cdiv(addr, self.block_factor)
                out.append("    bank%d[%d] = 8'h%.2x;"
                           % (addr - bank * self.block_factor, bank, byte))
            else:
                out.append("    mem[%d] = 8'h%.2x;" % (addr, byte))


def _atoi(text: str) -> int:
    text = text.lstrip()
    sign = -1 if text.startswith("-") else 1
    if text[:1] in "+-":
        text = text[1:]
    digits = "".join(itertools.takewhile(str.isdigit, text))
    return sign * int(digits) if digits else 0


def _usage() -> int:
    print("Usage: yas [-V[n]] file.ys")
    print("   -V[n]  Generate memory initialization in Verilog format (n-way blocking)")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Assemble ``file.ys`` into ``file.yo`` (or Verilog on standard output)."""
    args = sys.argv[1:] if argv is None else list(argv)
    verilog = False
    block_factor = 0
    if not args:
        return _usage()
    if args[0].startswith("-"):
        if args[0][1:2] != "V":
            return _usage()
        verilog = True
        if len(args[0]) > 2:
            block_factor = _atoi(args[0][2:])
            if block_factor != 8:
                sys.stderr.write(f"Unknown blocking factor {block_factor}\n")
                return 1
        args = args[1:]
    if not args or not args[0].endswith(".ys"):
        return _usage()

    name = args[0]
    root = name[:-3]
    if len(root) > 500:
        sys.stderr.write("File name too long\n")
        return 1
    try:
        with open(name, encoding="utf-8", errors="replace") as infile:
            source = infile.read()
    except OSError:
        sys.stderr.write(f"Can't open input file '{name}'\n")
        return 1

    assembler = Assembler(verilog=verilog, block_factor=block_factor, err=sys.stderr)

    def assemble() -> tuple[str, int]:
        try:
            return assembler.assemble(source), 0
        except AssemblyError as exc:
            return exc.listing or "", 1

    if verilog:
        listing, status = assemble()
        sys.stdout.write(listing)
        return status

    outname = root + ".yo"
    try:
        outfile = open(outname, "w", encoding="utf-8")
    except OSError:
        sys.stderr.write(f"Can't open output file '{outname}'\n")
        return 1
    with outfile:
        listing, status = assemble()
        outfile.write(listing)
    return status