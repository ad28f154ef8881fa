from datetime import date, datetime, time, timedelta

from pyparkcharge.models import ReservationStatus
from pyparkcharge.status import classify


def test_end_instant_is_still_active() -> None:
    now = datetime(2025, 6, 1, 12, 0, 0)
    assert classify(date(2025, 6, 1), time(12, 0), now) is ReservationStatus.ACTIVE


def test_one_microsecond_later_is_completed() -> None:
    now = datetime(2025, 6, 1, 12, 0, 0) + timedelta(microseconds=1)
    assert classify(date(2025, 6, 1), time(12, 0), now) is ReservationStatus.COMPLETED


def test_future_reservation_is_active() -> None:
    now = datetime(2025, 5, 31, 23, 0)
    assert classify(date(2025, 6, 1), time(9, 0), now) is ReservationStatus.ACTIVE


def test_aware_now_compares_in_local_time() -> None:
    end_local = datetime(2025, 6, 1, 12, 0).astimezone()
    assert classify(date(2025, 6, 1), time(12, 0), end_local) is ReservationStatus.ACTIVE
    later = end_local + timedelta(seconds=1)
    assert classify(date(2025, 6, 1), time(12, 0), later) is ReservationStatus.COMPLETED
