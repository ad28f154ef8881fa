"""Fee calculation for a reserved time range."""

from __future__ import annotations

from datetime import time
from decimal import ROUND_HALF_UP, Decimal

from .models import FeeBreakdown
from .util import hours_between, to_decimal

DEFAULT_SERVICE_FEE = Decimal("0.25")
DEFAULT_HOURLY_RATE = Decimal("2.00")
_CENTS = Decimal("0.01")


def _money(value: Decimal) -> Decimal:
    return value.quantize(_CENTS, rounding=ROUND_HALF_UP)


def calculate_fees(
    from_time: time,
    to_time: time,
    hourly_rate: Decimal | int | float | str,
    service_fee: Decimal | int | float | str = DEFAULT_SERVICE_FEE,
) -> FeeBreakdown:
    rate = to_decimal(hourly_rate, "hourly_rate")
    fee = to_decimal(service_fee, "service_fee")
    usage = _money(hours_between(from_time, to_time) * rate)
    fee = _money(fee)
    return FeeBreakdown(usage_fee=usage, service_fee=fee, total_fee=_money(usage + fee))
