"""Show 32-bit words as IEEE single-precision floats or as integers."""

from __future__ import annotations

import math
import string
import struct
import sys
from collections.abc import Sequence
from itertools import takewhile

FLOAT_SIZE = 32
FRAC_SIZE = 23
EXP_SIZE = 8
BIAS = (1 << (EXP_SIZE - 1)) - 1
FRAC_MASK = (1 << FRAC_SIZE) - 1
EXP_MASK = (1 << EXP_SIZE) - 1

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_DIGITS = {8: "01234567", 10: string.digits, 16: string.hexdigits}


def float_to_bits(value: float) -> int:
    """Return the single-precision bit pattern of ``value``.

    Values too large for single precision become signed infinity.
    """
    try:
        packed = struct.pack("<f", value)
    except OverflowError:
        packed = struct.pack("<f", math.copysign(math.inf, value))
    return struct.unpack("<I", packed)[0]


def bits_to_float(bits: int) -> float:
    """Return the float whose single-precision bit pattern is ``bits``."""
    return struct.unpack("<f", struct.pack("<I", bits & 0xFFFFFFFF))[0]


def _strtoll(text: str) -> int:
    """Parse the longest integer prefix of ``text`` with automatic base."""
    rest = text.lstrip(" \t\n\v\f\r")
    sign = 1
    if rest and rest[0] in "+-":
        sign = -1 if rest[0] == "-" else 1
        rest = rest[1:]
    if rest[:2].lower() == "0x" and len(rest) > 2 and rest[2] in string.hexdigits:
        base, rest = 16, rest[2:]
    elif rest.startswith("0"):
        base = 8
    else:
        base = 10
    digits = "".join(takewhile(lambda ch: ch in _DIGITS[base], rest))
    value = sign * int(digits, base) if digits else 0
    return max(_INT64_MIN, min(_INT64_MAX, value))


def _strtof(text: str) -> float:
    if "_" in text:
        raise ValueError(f"not a number: {text!r}")
    try:
        return float(text)
    except ValueError:
        if "x" not in text.lower():
            raise
        return float.fromhex(text)


def parse_number(text: str, allow_float: bool = True) -> int:
    """Parse a decimal, octal, hex or floating-point literal as a 32-bit word.

    Floating-point literals (containing '.' or, outside hex, 'e') are turned
    into their single-precision bit pattern.  Raises ValueError when the text
    cannot be used.
    """
    is_hex = False
    is_float = False
    for ch in text:
        if ch in "xX":
            is_hex = True
        elif ch in "eE":
            if not is_hex:
                is_float = True
        elif ch == ".":
            is_float = True

    if is_float:
        if not allow_float:
            raise ValueError(f"floating-point value not allowed: {text!r}")
        return float_to_bits(_strtof(text))

    value = _strtoll(text)
    if value >> 31 not in (-1, 0, 1):
        raise ValueError(f"value out of 32-bit range: {text!r}")
    return value & 0xFFFFFFFF


def _format_g(value: float, sign: int) -> str:
    if math.isnan(value):
        return "-nan" if sign else "nan"
    return "%.10g" % value


def describe_float(bits: int) -> str:
    """Describe the structure of a single-precision bit pattern."""
    bits &= 0xFFFFFFFF
    value = bits_to_float(bits)
    exp = (bits >> FRAC_SIZE) & EXP_MASK
    frac = bits & FRAC_MASK
    sign = (bits >> (FLOAT_SIZE - 1)) & 0x1
    sign_char = "-" if sign else "+"

    lines = [
        "",
        f"Floating point value {_format_g(value, sign)}",
        "Bit Representation 0x%.8x, sign = %x, exponent = 0x%.2x, fraction = 0x%.6x"
        % (bits, sign, exp, frac),
    ]
    if exp == EXP_MASK:
        lines.append(f"{sign_char}Infinity" if frac == 0 else "Not-A-Number")
    else:
        denorm = exp == 0
        uexp = 1 - BIAS if denorm else exp - BIAS
        mantissa = frac if denorm else frac + (1 << FRAC_SIZE)
        fman = mantissa / (1 << FRAC_SIZE)
        kind = "Denormalized" if denorm else "Normalized"
        lines.append("%s.  %c%.10f X 2^(%d)" % (kind, sign_char, fman, uexp))
    return "\n".join(lines) + "\n"


def describe_int(bits: int) -> str:
    """Show a 32-bit word in hex, as a signed and as an unsigned integer."""
    bits &= 0xFFFFFFFF
    signed = bits - (1 << 32) if bits & 0x80000000 else bits
    return "Hex = 0x%.8x,\tSigned = %d,\tUnsigned = %u\n" % (bits, signed, bits)


def _args(argv: Sequence[str] | None) -> list[str]:
    return sys.argv[1:] if argv is None else list(argv)


def fshow_main(argv: Sequence[str] | None = None) -> int:
    """Show the floating-point structure of each argument."""
    usage = (
        "Usage: fshow val1 val2 ...\n"
        "Values may be given as hex patterns or as floating point numbers\n"
    )
    args = _args(argv)
    if not args:
        print(usage, end="")
        return 0
    for text in args:
        try:
            bits = parse_number(text, allow_float=True)
        except ValueError:
            print(f"Invalid 32-bit number: '{text}'")
            print(usage, end="")
            return 0
        print(describe_float(bits), end="")
    return 0


def ishow_main(argv: Sequence[str] | None = None) -> int:
    """Show the integer values of each argument."""
    args = _args(argv)
    if not args:
        print("Usage: ishow val1 val2 ...\nValues may be given in hex or decimal\n", end="")
        return 0
    for text in args:
        try:
            bits = parse_number(text, allow_float=False)
        except ValueError:
            print(f"Cannot convert '{text}' to 32-bit number")
            continue
        print(describe_int(bits), end="")
    return 0