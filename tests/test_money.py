import math

import pytest

from leal.money import round_to_two_decimals


def test_halves_round_away_from_zero():
    assert round_to_two_decimals(0.125) == 0.13
    assert round_to_two_decimals(-0.125) == -0.13


@pytest.mark.parametrize("value", [0.0, 2.5, 10.25, -7.75, 100.0])
def test_two_decimal_values_unchanged(value):
    assert round_to_two_decimals(value) == value


@pytest.mark.parametrize("value", [1.23456, 3.14159, 0.3333, 99.999, -5.55555])
def test_idempotent_and_symmetric(value):
    once = round_to_two_decimals(value)
    assert round_to_two_decimals(once) == once
    assert round_to_two_decimals(-value) == -once
    assert abs(once - value) <= 0.005 + 1e-9


def test_non_finite_passthrough():
    assert math.isinf(round_to_two_decimals(math.inf))
    assert math.isnan(round_to_two_decimals(math.nan))