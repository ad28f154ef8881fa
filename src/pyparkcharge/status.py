"""Active/Completed classification from stored end time."""

from __future__ import annotations

from datetime import date, datetime, time

from .models import ReservationStatus


def reservation_end(reservation_date: date, to_time: time) -> datetime:
    return datetime.combine(reservation_date, to_time.replace(tzinfo=None))


def classify(reservation_date: date, to_time: time, now: datetime) -> ReservationStatus:
    """Return ``Completed`` once ``now`` is strictly past the end instant.

    The end instant is interpreted in local time. An aware ``now`` is
    compared against the local end instant made aware the same way.
    """
    end = reservation_end(reservation_date, to_time)
    if now.tzinfo is not None:
        end = end.astimezone()
    if now > end:
        return ReservationStatus.COMPLETED
    return ReservationStatus.ACTIVE
