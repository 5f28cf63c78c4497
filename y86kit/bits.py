"""Bit-twiddling puzzle solutions on 32-bit two's-complement words.

Integer arguments are treated as C ``int`` values and float arguments as the
unsigned bit pattern of a single-precision number.
"""

_MASK32 = 0xFFFFFFFF


def _s32(value: int) -> int:
    value &= _MASK32
    return value - (1 << 32) if value & 0x80000000 else value


def _u32(value: int) -> int:
    return value & _MASK32


def _not(value: int) -> int:
    return int(value == 0)


def bit_xor(x: int, y: int) -> int:
    """x ^ y using only ~ and &."""
    x, y = _s32(x), _s32(y)
    return _s32(~(x & y) & ~(~x & ~y))


def tmin() -> int:
    """The minimum two's-complement integer."""
    return _s32(1 << 31)


def is_tmax(x: int) -> int:
    """1 if x is the maximum two's-complement integer, else 0."""
    return _not(_s32(x) ^ _s32(~(1 << 31)))


def all_odd_bits(x: int) -> int:
    """1 if every odd-numbered bit of x is set, else 0."""
    a = 0xA
    aa = a | (0xA << 4)
    aaaa = aa | (aa << 8)
    mask = _s32(aaaa | (aaaa << 16))
    return _not((_s32(x) & mask) ^ mask)


def negate(x: int) -> int:
    """-x."""
    return _s32(~_s32(x) + 1)


def is_ascii_digit(x: int) -> int:
    """1 if 0x30 <= x <= 0x39, else 0."""
    a = _s32(_s32(x) + ~0x30 + 1)
    return _not(a >> 4) & (_not(a >> 3) | _not(a & 0x6))


def conditional(x: int, y: int, z: int) -> int:
    """Same as the C expression x ? y : z."""
    mask = _s32(_not(_s32(x)) - 1)
    return _s32((mask & _s32(y)) | (~mask & _s32(z)))


def is_less_or_equal(x: int, y: int) -> int:
    """1 if x <= y, else 0."""
    x, y = _s32(x), _s32(y)
    diff_sign = _s32(y - x) >> 31
    return (
        _not(y ^ x)
        | ((x >> 31) & (_not(y >> 31) | _not(diff_sign)))
        | (_not(x >> 31) & _not(y >> 31) & _not(diff_sign))
    )


def logical_neg(x: int) -> int:
    """The C ! operator without using it."""
    x = _s32(x)
    return (~((_s32(~x + 1) >> 31) | (x >> 31))) & 1


def how_many_bits(x: int) -> int:
    """Minimum number of bits needed to represent x in two's complement."""
    x = _s32(x)
    flag = x >> 31
    x = (flag & ~x) | (~flag & x)
    b16 = _not(_not(x >> 16)) << 4
    x >>= b16
    b8 = _not(_not(x >> 8)) << 3
    x >>= b8
    b4 = _not(_not(x >> 4)) << 2
    x >>= b4
    b2 = _not(_not(x >> 2)) << 1
    x >>= b2
    b1 = _not(_not(x >> 1))
    x >>= b1
    b0 = x
    return b0 + b1 + b2 + b4 + b8 + b16 + 1


def float_scale2(uf: int) -> int:
    """Bit pattern of 2*f; NaN and infinity are returned unchanged."""
    uf = _u32(uf)
    sign = uf & (1 << 31)
    exp = (uf & 0x7F800000) >> 23
    frac = uf & 0x7FFFFF
    if exp == 0xFF:
        return uf
    if exp == 0:
        return _u32(sign | (exp << 23) | (frac << 1))
    return _u32(sign | ((exp + 1) << 23) | frac)


def float_float2int(uf: int) -> int:
    """Bit-level (int) f; out-of-range values give the minimum integer."""
    uf = _u32(uf)
    sign = (uf >> 31) & 0x1
    exp = ((uf & 0x7F800000) >> 23) - 127
    frac = uf & 0x7FFFFF
    if exp < 0:
        return 0
    if exp >= 31:
        return _s32(0x80000000)
    if exp < 23:
        frac |= 1 << 23
        frac >>= 23 - exp
    else:
        frac <<= exp - 23
    return _s32(-frac if sign else frac)


def float_power2(x: int) -> int:
    """Bit pattern of 2.0**x: 0 when too small, +inf when too large."""
    x = _s32(x)
    if x > 127:
        return 0xFF << 23
    if x < -149:
        return 0
    if x <= -127:
        return 1 << (149 + x)
    return (x + 127) << 23