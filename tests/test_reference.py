import struct

import pytest

from y86kit import reference

TMIN = -(1 << 31)
TMAX = (1 << 31) - 1


def _bits(value):
    return struct.unpack("<I", struct.pack("<f", value))[0]


def test_tmin():
    assert reference.tmin() == TMIN


def test_bit_xor_self_inverse():
    for x, y in [(4, 5), (TMIN, -1), (123456, -98765)]:
        assert reference.bit_xor(reference.bit_xor(x, y), y) == x


def test_bit_xor_example():
    assert reference.bit_xor(4, 5) == 1


def test_is_tmax():
    assert reference.is_tmax(0x7FFFFFFF) == 1
    assert reference.is_tmax(0x7FFFFFFE) == 0
    assert reference.is_tmax(0xFFFFFFFF) == 0


def test_all_odd_bits():
    assert reference.all_odd_bits(0xAAAAAAAA) == 1
    assert reference.all_odd_bits(0xFFFFFFFD) == 0
    assert reference.all_odd_bits(0xFFFFFFFF) == 1


def test_negate_wraps_tmin():
    assert reference.negate(TMIN) == TMIN
    assert reference.negate(1) == -1


@pytest.mark.parametrize("x", [0, 7, -7, TMAX, TMIN + 1])
def test_negate_involution(x):
    assert reference.negate(reference.negate(x)) == x


def test_is_ascii_digit():
    assert reference.is_ascii_digit(0x35) == 1
    assert reference.is_ascii_digit(0x3A) == 0
    assert reference.is_ascii_digit(0x05) == 0


def test_conditional():
    assert reference.conditional(2, 4, 5) == 4
    assert reference.conditional(0, 4, 5) == 5


def test_is_less_or_equal():
    assert reference.is_less_or_equal(4, 5) == 1
    assert reference.is_less_or_equal(5, 4) == 0
    assert reference.is_less_or_equal(0xFFFFFFFF, 0) == 1


def test_logical_neg():
    assert reference.logical_neg(3) == 0
    assert reference.logical_neg(0) == 1


@pytest.mark.parametrize(
    "x, expected",
    [(12, 5), (298, 10), (-5, 4), (0, 1), (-1, 1), (0x80000000, 32)],
)
def test_how_many_bits(x, expected):
    assert reference.how_many_bits(x) == expected


def test_float_scale2_doubles():
    assert reference.float_scale2(_bits(1.5)) == _bits(3.0)
    assert reference.float_scale2(_bits(-0.25)) == _bits(-0.5)


def test_float_scale2_nan_and_overflow():
    assert reference.float_scale2(0x7FC00000) == 0x7FC00000
    assert reference.float_scale2(0x7F7FFFFF) == 0x7F800000
    assert reference.float_scale2(0x7F800000) == 0x7F800000


def test_float_float2int():
    assert reference.float_float2int(_bits(1.5)) == 1
    assert reference.float_float2int(_bits(-2.75)) == -2
    assert reference.float_float2int(_bits(0.5)) == 0
    assert reference.float_float2int(0x7F800000) == TMIN
    assert reference.float_float2int(0x7FC00000) == TMIN


def test_float_power2():
    assert reference.float_power2(0) == 0x3F800000
    assert reference.float_power2(3) == _bits(8.0)
    assert reference.float_power2(-1) == _bits(0.5)
    assert reference.float_power2(200) == 0x7F800000
    assert reference.float_power2(-149) == 1
    assert reference.float_power2(-150) == 0
    assert reference.float_power2(TMIN) == 0