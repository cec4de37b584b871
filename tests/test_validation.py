import pytest

from rapid_change_atc.utils.validation import format_number, parse_float, parse_int


@pytest.mark.parametrize(
    "value, expected",
    [
        (-27.0, "-27"),
        (0.2, "0.2"),
        (1500, "1500"),
        (0.00001, "0.00001"),
        (-0.000045, "-0.000045"),
        (1e-9, "0"),
        (-1e-9, "0"),
        (123456789.5, "123456789.5"),
        (1e16, "10000000000000000"),
        (12.3456789, "12.345679"),
    ],
)
def test_format_number_is_fixed_point(value, expected):
    assert format_number(value) == expected


def test_format_number_custom_precision():
    assert format_number(1.23456, max_decimals=2) == "1.23"
    assert format_number(10.0, max_decimals=0) == "10"


@pytest.mark.parametrize("value, expected", [("12abc", 12), ("3.7", 3), (3.7, 3), (True, None), ("x", None)])
def test_parse_int(value, expected):
    assert parse_int(value) == expected


@pytest.mark.parametrize("value, expected", [("-2.5mm", -2.5), ("nan", None), (float("inf"), None), (None, None)])
def test_parse_float(value, expected):
    assert parse_float(value) == expected
