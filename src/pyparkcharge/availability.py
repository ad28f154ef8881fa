"""Slot availability against stored reservations."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import date, time
from typing import TYPE_CHECKING, Any

from .exceptions import ValidationError
from .models import Availability, ResourceType
from .store.const import FROM_TIME_COLUMN, TO_TIME_COLUMN
from .util import parse_clock_time

if TYPE_CHECKING:
    from .repository import ReservationRepository

_LOGGER = logging.getLogger(__name__)


def intervals_overlap(first_from: time, first_to: time, second_from: time, second_to: time) -> bool:
    """Half-open ``[from, to)`` overlap; touching intervals do not overlap."""
    return first_from < second_to and second_from < first_to


def find_conflicts(
    records: Iterable[Mapping[str, Any]],
    from_time: time,
    to_time: time,
) -> list[Mapping[str, Any]]:
    conflicts: list[Mapping[str, Any]] = []
    for record in records:
        try:
            existing_from = parse_clock_time(record.get(FROM_TIME_COLUMN))
            existing_to = parse_clock_time(record.get(TO_TIME_COLUMN))
        except ValidationError:
            # An unreadable slot cannot be proven free.
            _LOGGER.warning("Stored reservation has unreadable times; treating slot as taken")
            conflicts.append(record)
            continue
        if intervals_overlap(from_time, to_time, existing_from, existing_to):
            conflicts.append(record)
    return conflicts


class AvailabilityChecker:
    """Decide whether a candidate interval is free on one resource and date."""

    def __init__(self, repository: ReservationRepository) -> None:
        self._repository = repository

    async def check(
        self,
        resource_type: ResourceType,
        resource_id: str,
        reservation_date: date,
        from_time: time,
        to_time: time,
    ) -> Availability:
        records = await self._repository.list_by_resource_and_date(
            resource_type,
            resource_id,
            reservation_date,
        )
        conflicts = find_conflicts(records, from_time, to_time)
        _LOGGER.debug(
            "Availability %s/%s on %s: %s existing, %s conflicting",
            resource_type,
            resource_id,
            reservation_date,
            len(records),
            len(conflicts),
        )
        return Availability.CONFLICT if conflicts else Availability.AVAILABLE
