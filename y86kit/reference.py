"""Straightforward reference versions of the bit puzzles."""

import math

from y86kit.numshow import bits_to_float, float_to_bits

_MASK32 = 0xFFFFFFFF
_INT_MIN = -(1 << 31)
_INT_MAX = (1 << 31) - 1


def _s32(value: int) -> int:
    value &= _MASK32
    return value - (1 << 32) if value & 0x80000000 else value


def _f32(value: float) -> float:
    return bits_to_float(float_to_bits(value))


def bit_xor(x: int, y: int) -> int:
    """x ^ y."""
    return _s32(x) ^ _s32(y)


def tmin() -> int:
    """The minimum two's-complement integer."""
    return _INT_MIN


def is_tmax(x: int) -> int:
    """1 if x is the maximum integer."""
    return int(_s32(x) == _INT_MAX)


def all_odd_bits(x: int) -> int:
    """1 if all odd-numbered bits of x are set."""
    x = _s32(x)
    return int(all(x & (1 << i) for i in range(1, 32, 2)))


def negate(x: int) -> int:
    """-x with 32-bit wraparound."""
    return _s32(-_s32(x))


def is_ascii_digit(x: int) -> int:
    """1 if x is the code of an ASCII digit."""
    return int(0x30 <= _s32(x) <= 0x39)


def conditional(x: int, y: int, z: int) -> int:
    """x ? y : z."""
    return _s32(y) if _s32(x) else _s32(z)


def is_less_or_equal(x: int, y: int) -> int:
    """1 if x <= y."""
    return int(_s32(x) <= _s32(y))


def logical_neg(x: int) -> int:
    """!x."""
    return int(_s32(x) == 0)


def how_many_bits(x: int) -> int:
    """Minimum two's-complement width of x."""
    x = _s32(x)
    if x < 0:
        x = -x - 1
    return x.bit_length() + 1


def float_scale2(uf: int) -> int:
    """Bit pattern of 2*f computed in single precision."""
    uf &= _MASK32
    f = bits_to_float(uf)
    if math.isnan(f):
        return uf
    return float_to_bits(2 * f)


def float_float2int(uf: int) -> int:
    """(int) f, with the minimum integer for anything out of range."""
    f = bits_to_float(uf)
    if not math.isfinite(f):
        return _INT_MIN
    value = math.trunc(f)
    if not _INT_MIN <= value <= _INT_MAX:
        return _INT_MIN
    return value


def float_power2(x: int) -> int:
    """Bit pattern of 2.0**x by repeated single-precision squaring."""
    x = _s32(x)
    if x == _INT_MIN:
        return 0
    result = 1.0
    p2 = 2.0
    if x < 0:
        x = -x
        p2 = 0.5
    while x > 0:
        if x & 0x1:
            result = _f32(result * p2)
        p2 = _f32(p2 * p2)
        x >>= 1
    return float_to_bits(result)