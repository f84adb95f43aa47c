import math

from fincore.safe_math import (
    clamp,
    is_finite_number,
    round_half_up,
    safe_average,
    safe_delta,
    safe_divide,
    safe_percentage,
    safe_round,
    safe_sum,
)

NAN = float("nan")
INF = float("inf")


def test_safe_divide_by_zero_uses_default_fallback() -> None:
    assert safe_divide(10, 0) == 0


def test_safe_divide_regular() -> None:
    assert safe_divide(10, 4) == 2.5


def test_safe_divide_non_finite_operands() -> None:
    assert safe_divide(NAN, 1, -1) == -1
    assert safe_divide(1, INF, 7) == 7
    assert safe_divide(INF, 2, None) is None


def test_safe_divide_overflowing_result() -> None:
    assert safe_divide(1e308, 1e-308, 0) == 0


def test_safe_average_empty_is_none() -> None:
    assert safe_average([]) is None
    assert safe_average([], fallback=0) == 0


def test_safe_average_skips_non_finite() -> None:
    assert safe_average([1, NAN, 3, INF]) == 2
    assert safe_average([NAN, INF], fallback=-1) == -1


def test_safe_percentage() -> None:
    assert safe_percentage(1, 4) == 25
    assert safe_percentage(1, 0) == 0
    assert safe_percentage(1, 0, fallback=None) is None


def test_safe_delta() -> None:
    assert safe_delta(150, 100) == 50
    assert safe_delta(50, 100) == -50
    assert safe_delta(5, 0) == 100
    assert safe_delta(0, 0) == 0
    assert safe_delta(-5, 0, fallback=None) is None
    assert safe_delta(NAN, 10, fallback=-1) == -1


def test_safe_delta_from_zero_baseline() -> None:
    assert safe_delta(INF, 0) == 100
    assert safe_delta(NAN, 0, fallback=-1) == -1
    assert safe_delta("5", 0, fallback=-1) == -1
    assert safe_delta(5, INF, fallback=-1) == -1


def test_safe_round_half_goes_up() -> None:
    assert safe_round(2.5) == 3
    assert safe_round(-2.5) == -2
    assert safe_round(3.14159, 2) == 3.14
    assert safe_round(NAN, fallback=-1) == -1


def test_safe_round_extreme_decimals_fall_back() -> None:
    assert safe_round(1.5, 400, -1) == -1
    assert safe_round(1.5, -400, -1) == -1
    assert safe_round(1234.5, -2) == 1200


def test_round_half_up_returns_int() -> None:
    assert round_half_up(0.5) == 1
    assert round_half_up(-0.5) == 0
    assert round_half_up(-19.999999999999996) == -20
    assert isinstance(round_half_up(7.2), int)
    assert round_half_up(INF) == 0


def test_safe_sum_treats_non_finite_as_zero() -> None:
    assert safe_sum([1, NAN, 2, INF, -INF]) == 3
    assert safe_sum([]) == 0


def test_clamp() -> None:
    assert clamp(150, 0, 100) == 100
    assert clamp(-5, 0, 100) == 0
    assert clamp(50, 0, 100) == 50
    assert clamp(NAN, 0, 100) == 0


def test_is_finite_number() -> None:
    assert is_finite_number(1)
    assert is_finite_number(2.5)
    assert not is_finite_number(True)
    assert not is_finite_number("3")
    assert not is_finite_number(None)
    assert not is_finite_number(math.inf)
