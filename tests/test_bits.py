import random

import pytest

from y86kit import bits, reference

TMIN = -(1 << 31)
TMAX = (1 << 31) - 1

_rng = random.Random(2011)
INTS = (
    list(range(-300, 300))
    + list(range(TMIN, TMIN + 60))
    + list(range(TMAX - 60, TMAX + 1))
    + [_rng.randint(TMIN, TMAX) for _ in range(400)]
)
SMALL_INTS = (
    list(range(-8, 9))
    + [TMIN, TMIN + 1, TMAX, TMAX - 1, 0x30, 0x39]
    + [_rng.randint(TMIN, TMAX) for _ in range(20)]
)

SIGN = 0x80000000
ONE = 0x3F800000
SMALLEST_NORM = 0x00800000
LARGEST_NORM = 0x7F000000


def _float_inputs():
    vals = []
    for i in range(300):
        vals += [i, SIGN | i]
        vals += [SMALLEST_NORM + i, SMALLEST_NORM - i, SIGN | (SMALLEST_NORM + i), SIGN | (SMALLEST_NORM - i)]
        vals += [ONE + i, ONE - i, SIGN | (ONE + i), SIGN | (ONE - i)]
        vals += [LARGEST_NORM - i, SIGN | (LARGEST_NORM - i)]
    vals += [0x7F800000, SIGN | 0x7F800000, 0x7FC00000, SIGN | 0x7FC00000]
    vals += [_rng.getrandbits(32) for _ in range(500)]
    return vals


FLOATS = _float_inputs()


def test_documented_examples():
    assert bits.bit_xor(4, 5) == 1
    assert bits.all_odd_bits(0xFFFFFFFD) == 0
    assert bits.all_odd_bits(0xAAAAAAAA) == 1
    assert bits.negate(1) == -1
    assert bits.is_ascii_digit(0x35) == 1
    assert bits.is_ascii_digit(0x3A) == 0
    assert bits.is_ascii_digit(0x05) == 0
    assert bits.conditional(2, 4, 5) == 4
    assert bits.is_less_or_equal(4, 5) == 1
    assert bits.logical_neg(3) == 0
    assert bits.logical_neg(0) == 1


@pytest.mark.parametrize(
    "x, expected",
    [(12, 5), (298, 10), (-5, 4), (0, 1), (-1, 1), (0x80000000, 32)],
)
def test_how_many_bits_examples(x, expected):
    assert bits.how_many_bits(x) == expected


def test_tmin():
    assert bits.tmin() == TMIN


def test_is_tmax_edges():
    assert bits.is_tmax(TMAX) == 1
    assert bits.is_tmax(-1) == 0
    assert bits.is_tmax(TMIN) == 0


def test_one_arg_matches_reference():
    for x in INTS:
        assert bits.is_tmax(x) == reference.is_tmax(x), x
        assert bits.all_odd_bits(x) == reference.all_odd_bits(x), x
        assert bits.negate(x) == reference.negate(x), x
        assert bits.is_ascii_digit(x) == reference.is_ascii_digit(x), x
        assert bits.logical_neg(x) == reference.logical_neg(x), x
        assert bits.how_many_bits(x) == reference.how_many_bits(x), x


def test_two_arg_matches_reference():
    for x in SMALL_INTS:
        for y in SMALL_INTS:
            assert bits.bit_xor(x, y) == reference.bit_xor(x, y), (x, y)
            assert bits.is_less_or_equal(x, y) == reference.is_less_or_equal(x, y), (x, y)


def test_conditional_matches_reference():
    for x in SMALL_INTS[:12]:
        for y in SMALL_INTS[:12]:
            for z in SMALL_INTS[:12]:
                assert bits.conditional(x, y, z) == reference.conditional(x, y, z)


def test_less_or_equal_overflow_edges():
    assert bits.is_less_or_equal(TMIN, TMAX) == 1
    assert bits.is_less_or_equal(TMAX, TMIN) == 0


def test_float_scale2_nan_returned_unchanged():
    assert bits.float_scale2(0x7FC00000) == 0x7FC00000
    assert bits.float_scale2(SIGN | 0x7FC00000) == SIGN | 0x7FC00000


def test_float_scale2_matches_reference():
    cases = [u for u in FLOATS if not ((u >> 23) & 0xFF == 0xFE and u & 0x7FFFFF)]
    for uf in cases:
        assert bits.float_scale2(uf) == reference.float_scale2(uf), hex(uf)


def test_float_float2int_out_of_range():
    assert bits.float_float2int(0x7F800000) == TMIN
    assert bits.float_float2int(0x7FC00000) == TMIN


def test_float_float2int_matches_reference_below_2_pow_23():
    cases = [u for u in FLOATS if not 23 <= ((u >> 23) & 0xFF) - 127 <= 30]
    for uf in cases:
        assert bits.float_float2int(uf) == reference.float_float2int(uf), hex(uf)


def test_float_power2_limits():
    assert bits.float_power2(1000) == 0xFF << 23
    assert bits.float_power2(-150) == 0
    assert bits.float_power2(-149) == 1
    assert bits.float_power2(0) == ONE


def test_float_power2_matches_reference():
    for x in list(range(-200, 200)) + [TMIN, TMAX]:
        assert bits.float_power2(x) == reference.float_power2(x), x