"""Check the bit-puzzle solutions against their reference versions.

Each puzzle is run over a large window of arguments around zero, the
extreme integers and, for floating-point puzzles, the interesting regions
of the single-precision encoding.  The first mismatch ends the check of a
puzzle.  The checks always run to completion, so the ``-T`` limit is
accepted and ignored.
"""

from __future__ import annotations

import getopt
import itertools
import random
import sys
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import TextIO

from y86kit import bits, reference
from y86kit.numshow import parse_number

TMIN = -(1 << 31)
TMAX = (1 << 31) - 1

TEST_RANGE = 500000
"""Values generated on each side of every boundary for one-argument puzzles."""

MAX_TEST_VALS = 13 * TEST_RANGE
"""Integer ranges at most this wide are tested exhaustively."""

DEFAULT_TIMEOUT = 10

_FULL_RANGE = ((TMIN, TMAX), (TMIN, TMAX), (TMIN, TMAX))
_FLOAT_RANGE = ((1, 1), (1, 1), (1, 1))

_SMALLEST_NORM = 0x00800000
_ONE = 0x3F800000
_LARGEST_NORM = 0x7F000000
_INF = 0x7F800000
_NAN = 0x7FC00000
_SIGN = 0x80000000


def _s32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value & 0x80000000 else value


def _show(value: int) -> str:
    return "%d[0x%x]" % (value, value & 0xFFFFFFFF)


@dataclass(frozen=True)
class Puzzle:
    """A puzzle: its solution, its reference version and how to test it."""

    name: str
    solution: Callable[..., int]
    reference: Callable[..., int]
    args: int
    ops: str
    op_limit: int
    rating: int
    arg_ranges: tuple[tuple[int, int], ...] = _FULL_RANGE

    @property
    def is_float(self) -> bool:
        """True when arguments are single-precision bit patterns."""
        return self.arg_ranges[0] == (1, 1)


@dataclass(frozen=True)
class Failure:
    """The first argument tuple on which a solution disagreed."""

    name: str
    args: tuple[int, ...]
    got: int
    expected: int

    def __str__(self) -> str:
        shown = ",".join(_show(arg) for arg in self.args)
        return (
            f"ERROR: Test {self.name}({shown}) failed...\n"
            f"...Gives {_show(self.got)}. Should be {_show(self.expected)}"
        )


PUZZLES: tuple[Puzzle, ...] = (
    Puzzle("bitXor", bits.bit_xor, reference.bit_xor, 2, "& ~", 14, 1),
    Puzzle("tmin", bits.tmin, reference.tmin, 0, "! ~ & ^ | + << >>", 4, 1),
    Puzzle("isTmax", bits.is_tmax, reference.is_tmax, 1, "! ~ & ^ | +", 10, 1),
    Puzzle("allOddBits", bits.all_odd_bits, reference.all_odd_bits, 1,
           "! ~ & ^ | + << >>", 12, 2),
    Puzzle("negate", bits.negate, reference.negate, 1, "! ~ & ^ | + << >>", 5, 2),
    Puzzle("isAsciiDigit", bits.is_ascii_digit, reference.is_ascii_digit, 1,
           "! ~ & ^ | + << >>", 15, 3),
    Puzzle("conditional", bits.conditional, reference.conditional, 3,
           "! ~ & ^ | << >>", 16, 3),
    Puzzle("isLessOrEqual", bits.is_less_or_equal, reference.is_less_or_equal, 2,
           "! ~ & ^ | + << >>", 24, 3),
    Puzzle("logicalNeg", bits.logical_neg, reference.logical_neg, 1,
           "~ & ^ | + << >>", 12, 4),
    Puzzle("howManyBits", bits.how_many_bits, reference.how_many_bits, 1,
           "! ~ & ^ | + << >>", 90, 4),
    Puzzle("floatScale2", bits.float_scale2, reference.float_scale2, 1,
           "$", 30, 4, _FLOAT_RANGE),
    Puzzle("floatFloat2Int", bits.float_float2int, reference.float_float2int, 1,
           "$", 30, 4, _FLOAT_RANGE),
    Puzzle("floatPower2", bits.float_power2, reference.float_power2, 1,
           "$", 30, 4, _FLOAT_RANGE),
)


def _float_vals(test_range: int) -> list[int]:
    test_range = min(test_range, 1 << 23)
    vals: list[int] = []
    for i in range(test_range):
        vals += [
            i,
            _SIGN | i,
            _SMALLEST_NORM + i,
            _SMALLEST_NORM - i,
            _SIGN | (_SMALLEST_NORM + i),
            _SIGN | (_SMALLEST_NORM - i),
            _ONE + i,
            _ONE - i,
            _SIGN | (_ONE + i),
            _SIGN | (_ONE - i),
            _LARGEST_NORM - i,
            _SIGN | (_LARGEST_NORM - i),
        ]
    vals += [_INF, _SIGN | _INF, _NAN, _SIGN | _NAN]
    return [_s32(v) for v in vals]


def gen_vals(
    low: int,
    high: int,
    test_range: int,
    fixed: int | None = None,
    rng: random.Random | None = None,
) -> list[int]:
    """Generate the argument values for one parameter of a puzzle.

    ``fixed`` pins the argument to a single value.  The range (1, 1) marks a
    floating-point argument.  Narrow integer ranges are enumerated; wide
    ones are sampled near both ends, around zero and at random.
    """
    if fixed is not None:
        return [_s32(fixed)]
    if low == 1 and high == 1:
        return _float_vals(test_range)
    if high - MAX_TEST_VALS <= low:
        return list(range(low, high + 1))

    rng = rng if rng is not None else random.Random(1)
    vals: list[int] = []
    for i in range(test_range):
        vals.append(low + i)
        vals.append(high - i)
        if low <= i <= high:
            vals.append(i)
        if low <= -i <= high:
            vals.append(-i)
        weight = rng.random()
        vals.append(int(low * (1 - weight) + high * weight))
    return vals


def _arg_ranges(args: int, test_range: int) -> list[int]:
    if args == 1:
        per_arg = test_range
    elif args == 2:
        per_arg = int(test_range ** 0.5)
    else:
        per_arg = int(test_range ** 0.333)
    return [max(per_arg, 1)] * 3


def check_puzzle(
    puzzle: Puzzle,
    fixed_args: Sequence[int | None] | None = None,
    test_range: int = TEST_RANGE,
    rng: random.Random | None = None,
) -> Failure | None:
    """Compare a puzzle's solution with its reference; return the first mismatch."""
    if not 0 <= puzzle.args <= 3:
        raise ValueError(
            f"Configuration error: invalid number of args ({puzzle.args}) "
            f"for function {puzzle.name}"
        )
    fixed = list(fixed_args) if fixed_args is not None else []
    fixed += [None] * (3 - len(fixed))
    rng = rng if rng is not None else random.Random(1)

    ranges = _arg_ranges(puzzle.args, test_range)
    arg_lists: Iterable[list[int]] = [
        gen_vals(low, high, ranges[i], fixed[i], rng)
        for i, (low, high) in enumerate(puzzle.arg_ranges[: puzzle.args])
    ]
    for args in itertools.product(*arg_lists):
        got = _s32(puzzle.solution(*args))
        expected = _s32(puzzle.reference(*args))
        if got != expected:
            return Failure(puzzle.name, tuple(args), got, expected)
    return None


def run_tests(
    puzzles: Iterable[Puzzle] = PUZZLES,
    only: str | None = None,
    grade: bool = False,
    rating: int = 0,
    fixed_args: Sequence[int | None] | None = None,
    out: TextIO | None = None,
) -> int:
    """Check the puzzles, print a score table and return the error count."""
    out = out if out is not None else sys.stdout
    rng = random.Random(1)
    errors = 0
    points = 0
    max_points = 0

    out.write("Score\tRating\tErrors\tFunction\n")
    for puzzle in puzzles:
        if only is not None and puzzle.name != only:
            continue
        weight = rating or puzzle.rating
        failure = check_puzzle(puzzle, fixed_args, TEST_RANGE, rng)
        terrors = 1 if failure else 0
        if failure and not grade:
            out.write(f"{failure}\n")
        errors += terrors
        earned = 0 if terrors else weight
        points += earned
        max_points += weight
        if grade or terrors < 1:
            out.write(f" {earned}\t{weight}\t{terrors}\t{puzzle.name}\n")

    out.write(f"Total points: {points}/{max_points}\n")
    return errors


def _atoi(text: str) -> int:
    text = text.lstrip()
    sign = -1 if text.startswith("-") else 1
    if text[:1] in "+-":
        text = text[1:]
    digits = "".join(itertools.takewhile(str.isdigit, text))
    return sign * int(digits) if digits else 0


def _usage(cmd: str) -> int:
    print(f"Usage: {cmd} [-hg] [-r <n>] [-f <name> [-1|-2|-3 <val>]*] [-T <time limit>]")
    print("  -1 <val>  Specify first function argument")
    print("  -2 <val>  Specify second function argument")
    print("  -3 <val>  Specify third function argument")
    print("  -f <name> Test only the named function")
    print("  -g        Compact output for grading (with no error msgs)")
    print("  -h        Print this message")
    print("  -r <n>    Give uniform weight of n for all problems")
    print("  -T <lim>  Set timeout limit to lim")
    return 1


def main(argv: Sequence[str] | None = None) -> int:
    """Command-line entry point."""
    cmd = "btest"
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        opts, _ = getopt.getopt(args, "hgf:r:T:1:2:3:")
    except getopt.GetoptError:
        return _usage(cmd)

    grade = False
    only: str | None = None
    rating = 0
    fixed: list[int | None] = [None, None, None]
    for flag, value in opts:
        if flag == "-h":
            return _usage(cmd)
        if flag == "-g":
            grade = True
        elif flag == "-f":
            only = value
        elif flag == "-r":
            rating = _atoi(value)
            if rating < 0:
                return _usage(cmd)
        elif flag in ("-1", "-2", "-3"):
            try:
                fixed[int(flag[1]) - 1] = parse_number(value, allow_float=True)
            except ValueError:
                print(f"Bad argument '{value}'")
                return 0
        elif flag == "-T":
            _atoi(value)

    run_tests(PUZZLES, only, grade, rating, fixed, sys.stdout)
    return 0