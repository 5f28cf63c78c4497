import io
import random

import pytest

from y86kit import btest
from y86kit.btest import (
    PUZZLES,
    TMAX,
    TMIN,
    Failure,
    Puzzle,
    check_puzzle,
    gen_vals,
    main,
    run_tests,
)


def _bad_puzzle(args=1, rating=2):
    return Puzzle(
        name="bad",
        solution=lambda *a: a[0] if a else 0,
        reference=lambda *a: -a[0] if a else 1,
        args=args,
        ops="",
        op_limit=0,
        rating=rating,
        arg_ranges=((0, 5), (0, 5), (0, 5)),
    )


def test_puzzle_names_in_order():
    passing = [
        p.name for p in PUZZLES
        if check_puzzle(p, (1, 1, 1), 2, random.Random(0)) is None
    ]
    assert passing == [
        "bitXor", "tmin", "isTmax", "allOddBits", "negate", "isAsciiDigit",
        "conditional", "isLessOrEqual", "logicalNeg", "howManyBits",
        "floatScale2", "floatFloat2Int", "floatPower2",
    ]


def test_float_puzzles_flagged():
    float_sized = [
        p.name for p in PUZZLES
        if len(gen_vals(p.arg_ranges[0][0], p.arg_ranges[0][1], 2, None, random.Random(0))) == 28
    ]
    assert float_sized == ["floatScale2", "floatFloat2Int", "floatPower2"]
    assert [p.name for p in PUZZLES if p.is_float] == float_sized


def test_gen_vals_fixed_is_signed():
    assert gen_vals(TMIN, TMAX, 10, 0xFFFFFFFF, random.Random(0)) == [-1]


def test_gen_vals_exhaustive_small_range():
    assert gen_vals(-3, 3, 100, None, random.Random(0)) == list(range(-3, 4))


def test_gen_vals_float_region():
    vals = gen_vals(1, 1, 2, None, random.Random(0))
    assert len(vals) == 2 * 12 + 4
    assert 0x7F800000 in vals
    assert 0x3F800000 in vals
    assert 0x7FC00000 in vals
    assert all(TMIN <= v <= TMAX for v in vals)


def test_gen_vals_sampling_boundaries():
    vals = gen_vals(TMIN, TMAX, 3, None, random.Random(0))
    assert len(vals) == 15
    assert {TMIN, TMIN + 2, TMAX, TMAX - 2, 0} <= set(vals)
    assert all(TMIN <= v <= TMAX for v in vals)


@pytest.mark.parametrize("puzzle", PUZZLES, ids=lambda p: p.name)
def test_solutions_match_reference(puzzle):
    assert check_puzzle(puzzle, None, 2, random.Random(0)) is None


def test_check_puzzle_reports_first_mismatch():
    failure = check_puzzle(_bad_puzzle(), None, 10, random.Random(0))
    assert failure == Failure("bad", (1,), 1, -1)
    assert str(failure) == (
        "ERROR: Test bad(1[0x1]) failed...\n...Gives 1[0x1]. Should be -1[0xffffffff]"
    )


def test_check_puzzle_fixed_argument():
    failure = check_puzzle(_bad_puzzle(), (3, None, None), 10, random.Random(0))
    assert failure.args == (3,)
    assert failure.got == 3
    assert failure.expected == -3


def test_check_puzzle_zero_args_message():
    failure = check_puzzle(_bad_puzzle(args=0), None, 10, random.Random(0))
    assert failure.args == ()
    assert str(failure).startswith("ERROR: Test bad() failed...")


def test_check_puzzle_rejects_bad_arg_count():
    with pytest.raises(ValueError):
        check_puzzle(_bad_puzzle(args=4), None, 2, random.Random(0))


def test_run_tests_single_puzzle():
    out = io.StringIO()
    errors = run_tests(PUZZLES, "tmin", False, 0, None, out)
    assert errors == 0
    text = out.getvalue()
    assert text.startswith("Score\tRating\tErrors\tFunction\n")
    assert " 1\t1\t0\ttmin\n" in text
    assert text.endswith("Total points: 1/1\n")


def test_run_tests_uniform_rating():
    out = io.StringIO()
    run_tests(PUZZLES, "tmin", False, 3, None, out)
    assert "Total points: 3/3" in out.getvalue()


def test_run_tests_failure_verbose():
    out = io.StringIO()
    errors = run_tests([_bad_puzzle()], None, False, 0, None, out)
    text = out.getvalue()
    assert errors == 1
    assert "ERROR: Test bad(1[0x1]) failed..." in text
    assert "\tbad\n" not in text
    assert "Total points: 0/2" in text


def test_run_tests_failure_grade_mode():
    out = io.StringIO()
    errors = run_tests([_bad_puzzle()], None, True, 0, None, out)
    text = out.getvalue()
    assert errors == 1
    assert "ERROR" not in text
    assert " 0\t2\t1\tbad\n" in text


def test_run_tests_unknown_name_runs_nothing():
    out = io.StringIO()
    assert run_tests(PUZZLES, "nosuch", False, 0, None, out) == 0
    assert out.getvalue().endswith("Total points: 0/0\n")


def test_main_help(capsys):
    assert main(["-h"]) == 1
    assert capsys.readouterr().out.startswith("Usage: btest")


def test_main_negative_rating(capsys):
    assert main(["-r", "-2"]) == 1
    assert "Usage:" in capsys.readouterr().out


def test_main_bad_argument(capsys):
    assert main(["-1", "1.5q"]) == 0
    assert "Bad argument '1.5q'" in capsys.readouterr().out


def test_main_single_function(capsys):
    assert main(["-f", "tmin"]) == 0
    assert "Total points: 1/1" in capsys.readouterr().out


def test_main_fixed_argument(capsys):
    assert main(["-f", "negate", "-1", "5"]) == 0
    out = capsys.readouterr().out
    assert " 2\t2\t0\tnegate" in out
    assert "Total points: 2/2" in out


def test_main_unknown_option(capsys):
    assert main(["-z"]) == 1
    assert "Usage:" in capsys.readouterr().out


def test_sampling_above_exhaustive_limit():
    assert btest.MAX_TEST_VALS == 13 * btest.TEST_RANGE
    high = btest.MAX_TEST_VALS + 1
    vals = gen_vals(0, high, 1, None, random.Random(0))
    assert vals[:2] == [0, high]
    assert len(vals) < 10
    assert all(0 <= v <= high for v in vals)