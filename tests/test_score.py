import math

import pytest
from hypothesis import given
from hypothesis import strategies as st

from qlimaster.score import (
    InvalidScoreError,
    NotHalfStepError,
    OutOfRangeError,
    ScoreError,
    format_score,
    parse,
)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("", 0),
        ("0", 0),
        ("1", 1),
        ("10", 10),
        ("1.", 1.5),
        ("1,", 1.5),
        ("3,", 3.5),
        (".", 0.5),
        (",", 0.5),
        ("1.5", 1.5),
        ("1,5", 1.5),
        ("0.5", 0.5),
        ("0,5", 0.5),
        ("9.5", 9.5),
        ("  2  ", 2),
        ("  ,  ", 0.5),
    ],
)
def test_parse_valid(text, expected):
    assert parse(text, 10) == pytest.approx(expected, abs=1e-9)


@pytest.mark.parametrize(
    ("text", "max_value", "error"),
    [
        ("abc", 10, InvalidScoreError),
        ("-1", 10, InvalidScoreError),
        ("1.5.", 10, InvalidScoreError),
        ("11", 10, OutOfRangeError),
        ("10.5", 10, OutOfRangeError),
        ("1.25", 10, NotHalfStepError),
        ("1,25", 10, NotHalfStepError),
        ("1", 0, InvalidScoreError),
    ],
)
def test_parse_invalid(text, max_value, error):
    with pytest.raises(error):
        parse(text, max_value)


@pytest.mark.parametrize(
    ("text", "max_value", "expected"),
    [
        ("0", 10, 0),
        ("10", 10, 10),
        ("10,", 10.5, 10.5),
        ("5", 5, 5),
    ],
)
def test_parse_boundary_values(text, max_value, expected):
    assert parse(text, max_value) == pytest.approx(expected, abs=1e-9)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0, "0"),
        (1, "1"),
        (10, "10"),
        (0.5, "0,5"),
        (1.5, "1,5"),
        (10.5, "10,5"),
        (2.5, "2,5"),
    ],
)
def test_format(value, expected):
    assert format_score(value) == expected


def test_round_trip_halves_up_to_ten():
    for halves in range(21):
        value = halves / 2
        formatted = format_score(value)
        assert parse(formatted, 10) == pytest.approx(value, abs=1e-9), formatted


def test_errors_are_typed():
    with pytest.raises(InvalidScoreError) as info:
        parse("abc", 10)
    assert isinstance(info.value, ScoreError)
    assert isinstance(info.value, ValueError)


def test_underscores_rejected():
    with pytest.raises(InvalidScoreError):
        parse("1_0", 100)


def test_nan_rejected():
    with pytest.raises(InvalidScoreError):
        parse("nan", 10)


def test_infinity_out_of_range():
    with pytest.raises(OutOfRangeError):
        parse("inf", 10)


def _clamp_max(raw):
    value = abs(raw)
    if value == 0 or value > 1000:
        value = 10.0
    value = math.floor(value * 2 + 0.5) / 2
    if value == 0:
        value = 0.5
    return value


@pytest.mark.parametrize(
    "seed",
    ["", "0", "1", "10", "1.", "1,", ".", ",", "3,5", "3.5", "abc", "-1", "11", "1.25", " 2 ", "1.5."],
)
def test_parse_seed_invariants(seed):
    try:
        value = parse(seed, 10.0)
    except ScoreError as exc:
        assert isinstance(exc, (InvalidScoreError, OutOfRangeError, NotHalfStepError))
    else:
        assert 0 <= value <= 10.0
        assert math.fmod(value * 2, 1) == 0


@given(st.text(), st.floats(allow_nan=False, allow_infinity=False))
def test_parse_property(text, raw_max):
    max_value = _clamp_max(raw_max)
    try:
        value = parse(text, max_value)
    except ScoreError as exc:
        assert isinstance(exc, (InvalidScoreError, OutOfRangeError, NotHalfStepError))
    else:
        assert 0 <= value <= max_value
        assert math.fmod(value * 2, 1) == 0


@given(st.integers(min_value=0, max_value=200))
def test_format_round_trip_property(halves):
    value = halves / 2
    formatted = format_score(value)
    assert "e" not in formatted.lower()
    assert "." not in formatted
    assert parse(formatted, 1000) == value