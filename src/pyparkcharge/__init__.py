"""pyparkcharge package."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from .accounts import IdentityProvider, StaticIdentity
from .bookmarks import BookmarkCache, JsonFileBookmarkCache, MemoryBookmarkCache
from .client import Client
from .exceptions import (
    AuthError,
    ConfigError,
    ConflictError,
    InfraError,
    NetworkError,
    NotFoundError,
    StoreError,
    ValidationError,
    user_message_for,
)
from .models import (
    BookingOutcome,
    BookingState,
    ChargingStation,
    FeeBreakdown,
    ParkingSpot,
    Reservation,
    ReservationStatus,
    ReservationSummary,
    ResourceType,
)

try:
    __version__ = version("pyparkcharge")
except PackageNotFoundError:  # pragma: no cover - not installed
    __version__ = "0.0.0"

__all__ = [
    "AuthError",
    "BookingOutcome",
    "BookingState",
    "BookmarkCache",
    "ChargingStation",
    "Client",
    "ConfigError",
    "ConflictError",
    "FeeBreakdown",
    "IdentityProvider",
    "InfraError",
    "JsonFileBookmarkCache",
    "MemoryBookmarkCache",
    "NetworkError",
    "NotFoundError",
    "ParkingSpot",
    "Reservation",
    "ReservationStatus",
    "ReservationSummary",
    "ResourceType",
    "StaticIdentity",
    "StoreError",
    "ValidationError",
    "__version__",
    "user_message_for",
]
