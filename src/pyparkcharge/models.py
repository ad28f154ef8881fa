"""Public data models."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, time
from decimal import Decimal
from enum import StrEnum
from typing import Any

from .exceptions import user_message_for


class ResourceType(StrEnum):
    PARKING = "parking"
    CHARGING = "charging"


class ReservationStatus(StrEnum):
    ACTIVE = "Active"
    COMPLETED = "Completed"


class Availability(StrEnum):
    AVAILABLE = "available"
    CONFLICT = "conflict"


class BookingState(StrEnum):
    VALIDATING = "validating"
    CHECKING_AVAILABILITY = "checking_availability"
    PRICING = "pricing"
    PERSISTING = "persisting"
    DONE = "done"
    ABORTED = "aborted"


@dataclass(frozen=True, slots=True)
class WalletAddress:
    account_id: str = ""
    evm_address: str = ""


@dataclass(frozen=True, slots=True)
class WalletSettlement:
    renter: WalletAddress = WalletAddress()
    provider: WalletAddress = WalletAddress()


@dataclass(frozen=True, slots=True)
class ParkingSpot:
    id: str
    address: str
    owner_email: str
    hourly_rate: Decimal
    wallet: WalletAddress = WalletAddress()

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.PARKING


@dataclass(frozen=True, slots=True)
class ChargingStation:
    id: str
    address: str
    owner_email: str
    hourly_rate: Decimal
    average_power_kw: float | None = None
    wallet: WalletAddress = WalletAddress()

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.CHARGING


Resource = ParkingSpot | ChargingStation


@dataclass(frozen=True, slots=True)
class FeeBreakdown:
    usage_fee: Decimal
    service_fee: Decimal
    total_fee: Decimal


@dataclass(frozen=True, slots=True)
class ReservationDraft:
    """A validated and priced booking that has not been stored yet."""

    resource_type: ResourceType
    resource_id: str
    renter_email: str
    provider_email: str
    date: date
    from_time: time
    to_time: time
    fees: FeeBreakdown
    wallet: WalletSettlement = WalletSettlement()


@dataclass(frozen=True, slots=True)
class Reservation:
    canonical_id: str
    resource_type: ResourceType
    resource_id: str | None
    renter_email: str
    provider_email: str
    date: date
    from_time: time
    to_time: time
    computed_fee: Decimal | None = None
    wallet: WalletSettlement = WalletSettlement()
    record: Mapping[str, Any] = field(default_factory=dict, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class ReservationSummary:
    reservation: Reservation
    status: ReservationStatus
    address: str

    @property
    def canonical_id(self) -> str:
        return self.reservation.canonical_id


@dataclass(frozen=True, slots=True)
class BookingRequest:
    """Raw booking intent as submitted by a caller."""

    resource: Resource | None
    renter_email: str | None
    date: date | str | None
    from_time: time | str | None
    to_time: time | str | None


@dataclass(frozen=True, slots=True)
class BookingOutcome:
    state: BookingState
    states: tuple[BookingState, ...]
    reservation: Reservation | None = None
    fees: FeeBreakdown | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.state is BookingState.DONE

    @property
    def message(self) -> str | None:
        if self.error is None:
            return None
        return user_message_for(self.error)
