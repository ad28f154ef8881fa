"""Shared utilities for validation and normalization."""

from __future__ import annotations

import math
import re
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any

from .exceptions import ValidationError

_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2})(?:\.\d+)?)?$")
_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")


def parse_date(value: date | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Date must be a non-empty string.")
    text = value.strip()
    # Timestamps keep only their date part.
    if len(text) > 10 and text[10] in "T ":
        text = text[:10]
    try:
        return date.fromisoformat(text)
    except ValueError as exc:
        raise ValidationError("Date is not a valid YYYY-MM-DD value.") from exc


def parse_clock_time(value: time | str) -> time:
    """Parse ``HH:MM`` or ``HH:MM:SS`` into a naive time."""
    if isinstance(value, time):
        return value.replace(tzinfo=None)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Time must be a non-empty string.")
    match = _CLOCK_RE.match(value.strip())
    if match is None:
        raise ValidationError("Time is not a valid HH:MM value.")
    hour, minute, second = int(match[1]), int(match[2]), int(match[3] or 0)
    try:
        return time(hour, minute, second)
    except ValueError as exc:
        raise ValidationError("Time is out of range.") from exc


def format_clock_time(value: time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def floor_to_hour(value: time) -> time:
    return time(value.hour)


def floor_to_step(value: time, minute_step: int) -> time:
    if minute_step <= 0 or 60 % minute_step:
        raise ValidationError("Minute step must evenly divide an hour.")
    return time(value.hour, value.minute - value.minute % minute_step)


def hours_between(from_time: time, to_time: time) -> int:
    # Whole clock hours only; minutes and day rollover are ignored.
    return abs(to_time.hour - from_time.hour) % 24


def to_decimal(value: Any, field: str) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number.")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError(f"{field} must be finite.")
    try:
        result = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValidationError(f"{field} must be a number.") from exc
    if not result.is_finite():
        raise ValidationError(f"{field} must be finite.")
    return result


def parse_number(value: Any) -> Decimal | None:
    """Extract a number from values such as ``2``, ``"2.5"`` or ``"$2/hr"``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float | Decimal):
        try:
            return to_decimal(value, "value")
        except ValidationError:
            return None
    if not isinstance(value, str):
        return None
    match = _NUMBER_RE.search(value.replace(",", "."))
    if match is None:
        return None
    return Decimal(match[0])


def coerce_text(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    return text or None


def mask_email(email: str | None) -> str:
    if not isinstance(email, str) or "@" not in email:
        return "***"
    local, _, domain = email.partition("@")
    if len(local) <= 2:
        masked_local = "*" * len(local)
    else:
        masked_local = f"{local[:1]}{'*' * (len(local) - 2)}{local[-1:]}"
    return f"{masked_local}@{domain}"
