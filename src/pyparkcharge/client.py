"""Client facade for booking, listing and cancelling reservations."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime, time
from decimal import Decimal

import aiohttp

from .accounts import IdentityProvider
from .availability import AvailabilityChecker
from .bookmarks import BookmarkCache, MemoryBookmarkCache
from .booking import DEFAULT_END_MINUTE_STEP, BookingOrchestrator
from .exceptions import ConfigError, NotFoundError, PyParkChargeError, StoreError, ValidationError
from .models import (
    BookingOutcome,
    BookingRequest,
    BookingState,
    FeeBreakdown,
    Resource,
    ReservationStatus,
    ReservationSummary,
    ResourceType,
)
from .pricing import DEFAULT_HOURLY_RATE, DEFAULT_SERVICE_FEE
from .repository import ReservationRepository, resource_address
from .status import classify
from .store.base import BaseStore
from .store.const import DEFAULT_API_URI
from .store.postgrest import PostgrestStore
from .util import coerce_text, mask_email, to_decimal

_LOGGER = logging.getLogger(__name__)
_DEFAULT_TIMEOUT = aiohttp.ClientTimeout(total=30)


class Client:
    """Facade over the reservation engine and its collaborators."""

    def __init__(
        self,
        session: aiohttp.ClientSession | None = None,
        *,
        base_url: str | None = None,
        api_key: str | None = None,
        api_uri: str | None = DEFAULT_API_URI,
        timeout: aiohttp.ClientTimeout | None = None,
        retry_count: int = 0,
        store: BaseStore | None = None,
        identity: IdentityProvider | None = None,
        bookmarks: BookmarkCache | None = None,
        service_fee: Decimal | int | float | str = DEFAULT_SERVICE_FEE,
        default_hourly_rate: Decimal | int | float | str = DEFAULT_HOURLY_RATE,
        end_minute_step: int = DEFAULT_END_MINUTE_STEP,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if store is None and not base_url:
            raise ConfigError("Either store or base_url is required.")
        try:
            self._service_fee = to_decimal(service_fee, "service_fee")
            self._default_hourly_rate = to_decimal(default_hourly_rate, "default_hourly_rate")
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc
        self._session = session
        self._owns_session = session is None
        self._base_url = base_url
        self._api_key = api_key
        self._api_uri = api_uri
        self._timeout = timeout or _DEFAULT_TIMEOUT
        self._retry_count = max(0, retry_count)
        self._store = store
        self._identity = identity
        self._bookmarks = bookmarks if bookmarks is not None else MemoryBookmarkCache()
        self._end_minute_step = end_minute_step
        self._clock = clock or datetime.now
        self._repository: ReservationRepository | None = None
        self._orchestrator: BookingOrchestrator | None = None

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    @property
    def repository(self) -> ReservationRepository:
        if self._repository is None:
            self._repository = ReservationRepository(
                self._ensure_store(),
                default_hourly_rate=self._default_hourly_rate,
                service_fee=self._service_fee,
            )
        return self._repository

    @property
    def orchestrator(self) -> BookingOrchestrator:
        if self._orchestrator is None:
            self._orchestrator = BookingOrchestrator(
                self.repository,
                availability=AvailabilityChecker(self.repository),
                service_fee=self._service_fee,
                end_minute_step=self._end_minute_step,
            )
        return self._orchestrator

    async def list_resources(self, resource_type: ResourceType | str) -> list[Resource]:
        return await self.repository.list_resources(ResourceType(resource_type))

    async def get_resource(self, resource_type: ResourceType | str, resource_id: str) -> Resource:
        return await self.repository.get_resource(ResourceType(resource_type), resource_id)

    def quote(self, resource: Resource, from_time: time | str, to_time: time | str) -> FeeBreakdown:
        return self.orchestrator.quote(resource, from_time, to_time)

    async def book(
        self,
        resource_type: ResourceType | str,
        resource_id: str,
        reservation_date: date | str | None,
        from_time: time | str | None,
        to_time: time | str | None,
        *,
        renter_email: str | None = None,
    ) -> BookingOutcome:
        """Book a slot; failures come back as an aborted outcome."""
        try:
            resource = await self.get_resource(resource_type, resource_id)
            renter = await self._renter_email(renter_email)
        except (PyParkChargeError, ValueError) as exc:
            error = exc if isinstance(exc, PyParkChargeError) else ValidationError(str(exc))
            return BookingOutcome(
                state=BookingState.ABORTED,
                states=(BookingState.VALIDATING, BookingState.ABORTED),
                error=error,
            )
        return await self.orchestrator.book(
            BookingRequest(
                resource=resource,
                renter_email=renter,
                date=reservation_date,
                from_time=from_time,
                to_time=to_time,
            )
        )

    async def list_reservations(
        self,
        *,
        renter_email: str | None = None,
        status: ReservationStatus | None = None,
    ) -> list[ReservationSummary]:
        renter = await self._require_renter(renter_email)
        repository = self.repository
        now = self._clock()
        resources: dict[tuple[ResourceType, str], Resource | None] = {}
        summaries: list[ReservationSummary] = []
        for stored in await repository.list_by_renter(renter):
            try:
                reservation = repository.to_reservation(stored.resource_type, stored.record)
            except StoreError:
                _LOGGER.warning("Skipping unreadable %s reservation row", stored.resource_type)
                continue
            resource = None
            if reservation.resource_id is not None:
                key = (reservation.resource_type, reservation.resource_id)
                if key not in resources:
                    resources[key] = await repository.find_resource(*key)
                resource = resources[key]
            if resource is not None:
                reservation = repository.to_reservation(
                    stored.resource_type,
                    stored.record,
                    hourly_rate=resource.hourly_rate,
                )
            reservation_status = classify(reservation.date, reservation.to_time, now)
            if status is not None and reservation_status is not status:
                continue
            summaries.append(
                ReservationSummary(
                    reservation=reservation,
                    status=reservation_status,
                    address=resource_address(resource),
                )
            )
        _LOGGER.debug(
            "Listed %s reservations for %s",
            len(summaries),
            mask_email(renter),
        )
        return summaries

    async def get_reservation(
        self,
        canonical_id: str,
        *,
        renter_email: str | None = None,
    ) -> ReservationSummary:
        wanted = coerce_text(canonical_id)
        if wanted is None:
            raise ValidationError("canonical_id is required.")
        for summary in await self.list_reservations(renter_email=renter_email):
            if summary.canonical_id == wanted:
                return summary
        raise NotFoundError("Reservation was not found.")

    async def cancel(self, canonical_id: str, *, renter_email: str | None = None) -> None:
        """Cancel a reservation; a second call raises ``NotFoundError``."""
        summary = await self.get_reservation(canonical_id, renter_email=renter_email)
        await self.repository.delete(summary.reservation)
        await self._bookmarks.remove(summary.canonical_id)

    async def saved_ids(self) -> set[str]:
        return await self._bookmarks.get()

    async def toggle_saved(self, canonical_id: str) -> bool:
        """Flip a bookmark and return whether it is now saved."""
        if canonical_id in await self._bookmarks.get():
            await self._bookmarks.remove(canonical_id)
            return False
        await self._bookmarks.add(canonical_id)
        return True

    async def _renter_email(self, renter_email: str | None) -> str | None:
        explicit = coerce_text(renter_email)
        if explicit is not None:
            return explicit
        if self._identity is None:
            return None
        return coerce_text(await self._identity.current_email())

    async def _require_renter(self, renter_email: str | None) -> str:
        renter = await self._renter_email(renter_email)
        if renter is None:
            raise ValidationError("Please sign in to view your reservations.")
        return renter

    def _ensure_store(self) -> BaseStore:
        if self._store is None:
            self._store = PostgrestStore(
                self._ensure_session(),
                base_url=self._base_url or "",
                api_key=self._api_key,
                api_uri=self._api_uri,
                timeout=self._timeout,
                retry_count=self._retry_count,
            )
        return self._store

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session
