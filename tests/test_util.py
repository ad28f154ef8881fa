from datetime import date, datetime, time
from decimal import Decimal

import pytest

from pyparkcharge.exceptions import ValidationError
from pyparkcharge.util import (
    floor_to_hour,
    floor_to_step,
    format_clock_time,
    hours_between,
    mask_email,
    parse_clock_time,
    parse_date,
    parse_number,
    to_decimal,
)


def test_parse_date_accepts_strings_and_dates() -> None:
    assert parse_date("2025-06-01") == date(2025, 6, 1)
    assert parse_date(date(2025, 6, 1)) == date(2025, 6, 1)
    assert parse_date(datetime(2025, 6, 1, 10, 0)) == date(2025, 6, 1)
    assert parse_date("2025-06-01T10:00:00+00:00") == date(2025, 6, 1)
    assert parse_date("2025-06-01 10:00:00") == date(2025, 6, 1)


@pytest.mark.parametrize("value", ["01/06/2025", "", "2025-06-011", "2025-06-01junk"])
def test_parse_date_invalid(value: str) -> None:
    with pytest.raises(ValidationError):
        parse_date(value)


def test_parse_clock_time_accepts_stored_seconds() -> None:
    assert parse_clock_time("09:00") == time(9, 0)
    assert parse_clock_time("9:30") == time(9, 30)
    assert parse_clock_time("10:00:00") == time(10, 0)


def test_parse_clock_time_invalid() -> None:
    with pytest.raises(ValidationError):
        parse_clock_time("25:00")
    with pytest.raises(ValidationError):
        parse_clock_time("noon")


def test_quantization() -> None:
    assert floor_to_hour(time(9, 45)) == time(9, 0)
    assert floor_to_step(time(9, 45), 30) == time(9, 30)
    assert floor_to_step(time(9, 29), 30) == time(9, 0)
    with pytest.raises(ValidationError):
        floor_to_step(time(9, 0), 7)


def test_hours_between_ignores_minutes() -> None:
    assert hours_between(time(10, 0), time(12, 30)) == 2
    assert hours_between(time(10, 0), time(10, 30)) == 0


def test_format_clock_time() -> None:
    assert format_clock_time(time(7, 5)) == "07:05"


def test_to_decimal_rejects_non_finite() -> None:
    assert to_decimal(2, "rate") == Decimal("2")
    with pytest.raises(ValidationError):
        to_decimal(float("nan"), "rate")
    with pytest.raises(ValidationError):
        to_decimal(Decimal("Infinity"), "rate")
    with pytest.raises(ValidationError):
        to_decimal("abc", "rate")


def test_parse_number_extracts_rates() -> None:
    assert parse_number("$2/hr") == Decimal("2")
    assert parse_number("7.2kW") == Decimal("7.2")
    assert parse_number(3) == Decimal("3")
    assert parse_number("n/a") is None
    assert parse_number(None) is None


def test_mask_email() -> None:
    assert mask_email("renter@example.com") == "r****r@example.com"
    assert mask_email("ab@example.com") == "**@example.com"
    assert mask_email(None) == "***"
