"""
Unit tests for numeric coercion helpers.
"""

import math

import pytest

from src.utils.coercion import coerce_number, coerce_percentage, parse_float, round_half_up


@pytest.mark.parametrize("value,expected", [
    (57, 57),
    (12.5, 12.5),
    ("57%", 57),
    ("57", 57),
    ("12.5 %", 12.5),
    ({"percentage": "12%"}, 12),
    ({"percentage": {"percentage": 8}}, 8),
    ("abc", 0),
    (None, 0),
    ([], 0),
    ({"value": 3}, 0),
    (float("nan"), 0),
    (True, 0),
])
def test_coerce_percentage(value, expected):
    assert coerce_percentage(value) == expected


def test_parse_float_reads_leading_number():
    assert parse_float("4.0 out of 5 stars") == 4.0
    assert parse_float(" 3") == 3.0
    assert parse_float("-2.5e1x") == -25.0
    assert parse_float("Infinity") == math.inf
    assert math.isnan(parse_float("five"))
    assert math.isnan(parse_float(""))
    assert math.isnan(parse_float(None))


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(2.4999) == 2
    assert round_half_up(33.333) == 33


def test_coerce_number_default():
    assert coerce_number("85") == 85
    assert coerce_number(40.5) == 40.5
    assert coerce_number("heavy") == 0
    assert coerce_number(float("inf"), default=7) == 7
    assert coerce_number("Infinity") == 0
    assert coerce_number(None, default=-1) == -1


def test_integers_beyond_float_range():
    huge = 10 ** 400
    assert coerce_percentage(huge) == 0
    assert coerce_percentage({"percentage": -huge}) == 0
    assert coerce_number(huge, default=3) == 3
    assert parse_float(huge) == math.inf
    assert round_half_up(7) == 7
