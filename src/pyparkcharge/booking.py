"""End-to-end execution of a booking request."""

from __future__ import annotations

import logging
from datetime import date, time
from decimal import Decimal

from .availability import AvailabilityChecker
from .exceptions import ConflictError, InfraError, PyParkChargeError, ValidationError
from .models import (
    Availability,
    BookingOutcome,
    BookingRequest,
    BookingState,
    FeeBreakdown,
    ReservationDraft,
    Resource,
    WalletSettlement,
)
from .pricing import calculate_fees
from .repository import ReservationRepository
from .util import (
    coerce_text,
    floor_to_hour,
    floor_to_step,
    mask_email,
    parse_clock_time,
    parse_date,
    to_decimal,
)

_LOGGER = logging.getLogger(__name__)

DEFAULT_END_MINUTE_STEP = 30


class _Attempt:
    """State trail of one booking attempt."""

    def __init__(self) -> None:
        self.states: list[BookingState] = []

    def enter(self, state: BookingState) -> None:
        self.states.append(state)

    def abort(self, error: Exception) -> BookingOutcome:
        self.states.append(BookingState.ABORTED)
        return BookingOutcome(
            state=BookingState.ABORTED,
            states=tuple(self.states),
            error=error,
        )


class BookingOrchestrator:
    """Validate, check, price and persist one reservation.

    Nothing is written before ``Persisting``, so an abort never needs a
    rollback. There are no retries; callers re-run the whole attempt.
    """

    def __init__(
        self,
        repository: ReservationRepository,
        *,
        availability: AvailabilityChecker | None = None,
        service_fee: Decimal | None = None,
        end_minute_step: int = DEFAULT_END_MINUTE_STEP,
    ) -> None:
        self._repository = repository
        self._availability = availability or AvailabilityChecker(repository)
        self._service_fee = service_fee if service_fee is not None else repository.service_fee
        if end_minute_step <= 0 or 60 % end_minute_step:
            raise ValidationError("end_minute_step must evenly divide an hour.")
        self._end_minute_step = end_minute_step

    async def book(self, request: BookingRequest) -> BookingOutcome:
        attempt = _Attempt()

        attempt.enter(BookingState.VALIDATING)
        try:
            resource, renter_email, reservation_date, from_time, to_time, rate = self._validate(
                request
            )
        except ValidationError as exc:
            _LOGGER.debug("Booking rejected during validation: %s", exc)
            return attempt.abort(exc)

        attempt.enter(BookingState.CHECKING_AVAILABILITY)
        try:
            availability = await self._availability.check(
                resource.resource_type,
                resource.id,
                reservation_date,
                from_time,
                to_time,
            )
        except PyParkChargeError as exc:
            self._log_abort(BookingState.CHECKING_AVAILABILITY, exc)
            return attempt.abort(exc)
        if availability is Availability.CONFLICT:
            _LOGGER.debug(
                "Booking of %s/%s on %s conflicts with an existing reservation",
                resource.resource_type,
                resource.id,
                reservation_date,
            )
            return attempt.abort(ConflictError("Requested time slot is already booked."))

        attempt.enter(BookingState.PRICING)
        fees = calculate_fees(from_time, to_time, rate, self._service_fee)

        attempt.enter(BookingState.PERSISTING)
        try:
            draft = ReservationDraft(
                resource_type=resource.resource_type,
                resource_id=resource.id,
                renter_email=renter_email,
                provider_email=resource.owner_email,
                date=reservation_date,
                from_time=from_time,
                to_time=to_time,
                fees=fees,
                wallet=WalletSettlement(
                    renter=await self._repository.get_wallet(renter_email),
                    provider=resource.wallet,
                ),
            )
            reservation = await self._repository.create(draft)
        except (ConflictError, InfraError) as exc:
            self._log_abort(BookingState.PERSISTING, exc)
            return attempt.abort(exc)

        attempt.enter(BookingState.DONE)
        _LOGGER.debug(
            "Booked %s/%s for %s as %s",
            resource.resource_type,
            resource.id,
            mask_email(renter_email),
            reservation.canonical_id,
        )
        return BookingOutcome(
            state=BookingState.DONE,
            states=tuple(attempt.states),
            reservation=reservation,
            fees=fees,
        )

    def quote(self, resource: Resource, from_time: time | str, to_time: time | str) -> FeeBreakdown:
        """Price a time range without booking it."""
        start, end = self._normalize_range(from_time, to_time)
        return calculate_fees(start, end, resource.hourly_rate, self._service_fee)

    def _validate(
        self,
        request: BookingRequest,
    ) -> tuple[Resource, str, date, time, time, Decimal]:
        resource = request.resource
        if resource is None or coerce_text(resource.id) is None:
            raise ValidationError("Resource id is required.")
        if coerce_text(resource.owner_email) is None:
            raise ValidationError("Provider information is required.")
        renter_email = coerce_text(request.renter_email)
        if renter_email is None:
            raise ValidationError("Renter email is required.")
        if request.date is None or request.from_time is None or request.to_time is None:
            raise ValidationError("Date, start time and end time are required.")
        reservation_date = parse_date(request.date)
        from_time, to_time = self._normalize_range(request.from_time, request.to_time)
        rate = to_decimal(resource.hourly_rate, "hourly_rate")
        if rate < 0:
            raise ValidationError("hourly_rate must not be negative.")
        return resource, renter_email, reservation_date, from_time, to_time, rate

    def _normalize_range(self, from_time: time | str, to_time: time | str) -> tuple[time, time]:
        start = floor_to_hour(parse_clock_time(from_time))
        end = floor_to_step(parse_clock_time(to_time), self._end_minute_step)
        if start >= end:
            raise ValidationError("End time must be later than start time.")
        return start, end

    def _log_abort(self, state: BookingState, error: PyParkChargeError) -> None:
        if isinstance(error, InfraError):
            _LOGGER.warning("Booking aborted while %s: %s", state, error)
        else:
            _LOGGER.debug("Booking aborted while %s: %s", state, error)
