"""Unified reservation access over the per-type backing tables."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import Any

from .exceptions import NotFoundError, StoreError, ValidationError
from .identity import IdSource, reconcile_identity, resolve_resource_id, synthetic_id
from .models import (
    ChargingStation,
    ParkingSpot,
    Reservation,
    ReservationDraft,
    Resource,
    ResourceType,
    WalletAddress,
    WalletSettlement,
)
from .pricing import DEFAULT_HOURLY_RATE, DEFAULT_SERVICE_FEE, calculate_fees
from .store.base import BaseStore, Row, encode_value
from .store.const import (
    DATE_COLUMN,
    FEE_COLUMN,
    FROM_TIME_COLUMN,
    PROVIDER_ACCOUNT_COLUMN,
    PROVIDER_EMAIL_COLUMN,
    PROVIDER_EVM_COLUMN,
    RENTER_ACCOUNT_COLUMN,
    RENTER_EMAIL_COLUMN,
    RENTER_EVM_COLUMN,
    RESOURCE_OWNER_COLUMN,
    REWARD_DEFAULTS,
    TO_TIME_COLUMN,
    USER_ACCOUNT_COLUMN,
    USER_EMAIL_COLUMN,
    USER_EVM_COLUMN,
    USER_TABLE,
)
from .store.loader import TableManifest, get_manifest
from .util import coerce_text, mask_email, parse_clock_time, parse_date, parse_number

_LOGGER = logging.getLogger(__name__)

UNKNOWN_ADDRESS = "unknown"


def resource_address(resource: Resource | None) -> str:
    return resource.address if resource is not None else UNKNOWN_ADDRESS


@dataclass(frozen=True, slots=True)
class StoredRecord:
    """A raw reservation row tagged with the table it came from."""

    resource_type: ResourceType
    record: Mapping[str, Any] = field(default_factory=dict)


class ReservationRepository:
    """CRUD boundary for reservations and the resources they reference.

    Callers only see ``ResourceType``; table and column names stay inside
    this class and the table manifests.
    """

    def __init__(
        self,
        store: BaseStore,
        *,
        manifests: Mapping[ResourceType, TableManifest] | None = None,
        default_hourly_rate: Decimal = DEFAULT_HOURLY_RATE,
        service_fee: Decimal = DEFAULT_SERVICE_FEE,
    ) -> None:
        if store is None:
            raise ValidationError("Store is required.")
        self._store = store
        self._manifests = dict(manifests) if manifests is not None else {
            resource_type: get_manifest(resource_type) for resource_type in ResourceType
        }
        self._default_hourly_rate = default_hourly_rate
        self._service_fee = service_fee

    @property
    def default_hourly_rate(self) -> Decimal:
        return self._default_hourly_rate

    @property
    def service_fee(self) -> Decimal:
        return self._service_fee

    def manifest(self, resource_type: ResourceType | str) -> TableManifest:
        try:
            return self._manifests[ResourceType(resource_type)]
        except (KeyError, ValueError) as exc:
            raise ValidationError(f"Unsupported resource type {resource_type!r}.") from exc

    async def list_by_renter(self, email: str) -> list[StoredRecord]:
        renter = coerce_text(email)
        if renter is None:
            raise ValidationError("Renter email is required.")
        records: list[StoredRecord] = []
        for resource_type, manifest in self._manifests.items():
            rows = await self._store.select(
                manifest.reservation_table,
                {RENTER_EMAIL_COLUMN: renter},
            )
            records.extend(StoredRecord(resource_type, row) for row in rows)
        _LOGGER.debug("Listed %s reservations for %s", len(records), mask_email(renter))
        return records

    async def list_by_resource_and_date(
        self,
        resource_type: ResourceType,
        resource_id: str,
        reservation_date: date,
    ) -> list[Row]:
        manifest = self.manifest(resource_type)
        return await self._store.select(
            manifest.reservation_table,
            {
                manifest.resource_id_column: resource_id,
                DATE_COLUMN: reservation_date,
            },
        )

    async def create(self, draft: ReservationDraft) -> Reservation:
        manifest = self.manifest(draft.resource_type)
        row: dict[str, Any] = dict(manifest.insert_defaults)
        row.update(REWARD_DEFAULTS)
        row.update(
            {
                RENTER_EMAIL_COLUMN: draft.renter_email,
                PROVIDER_EMAIL_COLUMN: draft.provider_email,
                DATE_COLUMN: draft.date,
                FROM_TIME_COLUMN: draft.from_time,
                TO_TIME_COLUMN: draft.to_time,
                PROVIDER_ACCOUNT_COLUMN: draft.wallet.provider.account_id,
                PROVIDER_EVM_COLUMN: draft.wallet.provider.evm_address,
                RENTER_ACCOUNT_COLUMN: draft.wallet.renter.account_id,
                RENTER_EVM_COLUMN: draft.wallet.renter.evm_address,
                manifest.resource_id_column: draft.resource_id,
            }
        )
        stored = await self._store.insert(manifest.reservation_table, row)
        # Echo back what we wrote for columns the store left out of its reply.
        merged = {key: encode_value(value) for key, value in row.items()}
        merged.update(stored)
        reservation = self.to_reservation(draft.resource_type, merged)
        _LOGGER.debug(
            "Created %s reservation %s for %s",
            draft.resource_type,
            reservation.canonical_id,
            mask_email(draft.renter_email),
        )
        return replace(reservation, computed_fee=draft.fees.total_fee)

    async def delete(self, reservation: Reservation) -> None:
        """Remove a reservation's row, falling back to a composite match.

        Raises ``NotFoundError`` when no strategy removed a row.
        """
        manifest = self.manifest(reservation.resource_type)
        table = manifest.reservation_table
        for column in self._id_columns(reservation, manifest):
            try:
                removed = await self._store.delete(table, {column: reservation.canonical_id})
            except StoreError as exc:
                _LOGGER.warning(
                    "Delete by %s rejected for %s: %s",
                    column,
                    reservation.canonical_id,
                    exc.detail,
                )
                continue
            if removed:
                _LOGGER.debug(
                    "Deleted %s reservation %s by %s",
                    reservation.resource_type,
                    reservation.canonical_id,
                    column,
                )
                return
        _LOGGER.debug("Deleting %s by composite match", reservation.canonical_id)
        removed = await self._store.delete(table, self._composite_filters(reservation))
        if not removed:
            raise NotFoundError("Reservation was not found.")
        if len(removed) > 1:
            _LOGGER.warning(
                "Composite delete for %s removed %s rows",
                reservation.canonical_id,
                len(removed),
            )

    async def get_resource(self, resource_type: ResourceType, resource_id: str) -> Resource:
        manifest = self.manifest(resource_type)
        resource_value = coerce_text(resource_id)
        if resource_value is None:
            raise ValidationError("Resource id is required.")
        rows = await self._store.select(
            manifest.resource_table,
            {manifest.resource_id_column: resource_value},
        )
        if not rows:
            raise NotFoundError(f"{resource_type} resource {resource_value} was not found.")
        return self._map_resource(manifest, rows[0])

    async def list_resources(self, resource_type: ResourceType) -> list[Resource]:
        manifest = self.manifest(resource_type)
        rows = await self._store.select(manifest.resource_table)
        resources: list[Resource] = []
        for row in rows:
            try:
                resources.append(self._map_resource(manifest, row))
            except StoreError:
                _LOGGER.warning("Skipping %s resource row without an id", resource_type)
        return resources

    async def find_resource(
        self,
        resource_type: ResourceType,
        resource_id: str | None,
    ) -> Resource | None:
        """Return the resource, or ``None`` when it is missing or unreadable.

        Network and auth failures still propagate.
        """
        if coerce_text(resource_id) is None:
            return None
        try:
            return await self.get_resource(resource_type, resource_id)
        except NotFoundError:
            return None
        except StoreError as exc:
            _LOGGER.warning("Lookup of %s resource failed, treating as unknown: %s", resource_type, exc)
            return None

    async def resolve_resource_address(
        self,
        resource_type: ResourceType,
        resource_id: str | None,
    ) -> str:
        return resource_address(await self.find_resource(resource_type, resource_id))

    async def get_wallet(self, email: str) -> WalletAddress:
        """Return a user's wallet fields; empty when the user row is missing."""
        rows = await self._store.select(USER_TABLE, {USER_EMAIL_COLUMN: email})
        if not rows:
            return WalletAddress()
        row = rows[0]
        return WalletAddress(
            account_id=coerce_text(row.get(USER_ACCOUNT_COLUMN)) or "",
            evm_address=coerce_text(row.get(USER_EVM_COLUMN)) or "",
        )

    def to_reservation(
        self,
        resource_type: ResourceType,
        record: Mapping[str, Any],
        *,
        hourly_rate: Decimal | None = None,
    ) -> Reservation:
        """Map a stored row to a ``Reservation`` with its canonical id."""
        manifest = self.manifest(resource_type)
        if not isinstance(record, Mapping):
            raise StoreError("Store response included invalid reservation data.")
        try:
            reservation_date = parse_date(record.get(DATE_COLUMN))
            from_time = parse_clock_time(record.get(FROM_TIME_COLUMN))
            to_time = parse_clock_time(record.get(TO_TIME_COLUMN))
        except ValidationError as exc:
            raise StoreError("Store returned invalid reservation data.") from exc
        stored_fee = parse_number(record.get(FEE_COLUMN))
        if stored_fee is None:
            stored_fee = calculate_fees(
                from_time,
                to_time,
                hourly_rate if hourly_rate is not None else self._default_hourly_rate,
                self._service_fee,
            ).total_fee
        return Reservation(
            canonical_id=reconcile_identity(record, manifest).value,
            resource_type=manifest.resource_type,
            resource_id=resolve_resource_id(record, manifest),
            renter_email=coerce_text(record.get(RENTER_EMAIL_COLUMN)) or "",
            provider_email=coerce_text(record.get(PROVIDER_EMAIL_COLUMN)) or "",
            date=reservation_date,
            from_time=from_time,
            to_time=to_time,
            computed_fee=stored_fee,
            wallet=WalletSettlement(
                renter=WalletAddress(
                    account_id=coerce_text(record.get(RENTER_ACCOUNT_COLUMN)) or "",
                    evm_address=coerce_text(record.get(RENTER_EVM_COLUMN)) or "",
                ),
                provider=WalletAddress(
                    account_id=coerce_text(record.get(PROVIDER_ACCOUNT_COLUMN)) or "",
                    evm_address=coerce_text(record.get(PROVIDER_EVM_COLUMN)) or "",
                ),
            ),
            record=dict(record),
        )

    def _id_columns(self, reservation: Reservation, manifest: TableManifest) -> list[str]:
        if reservation.record:
            source = reconcile_identity(reservation.record, manifest).source
        elif reservation.canonical_id == synthetic_id(
            manifest.resource_type,
            reservation.date,
            reservation.from_time,
            reservation.to_time,
        ):
            source = IdSource.SYNTHETIC
        else:
            return [manifest.primary_id_column, manifest.transaction_id_column]
        if source is IdSource.PRIMARY:
            return [manifest.primary_id_column]
        if source is IdSource.TRANSACTION:
            return [manifest.transaction_id_column]
        return []

    def _composite_filters(self, reservation: Reservation) -> dict[str, Any]:
        record = reservation.record
        filters: dict[str, Any] = {
            DATE_COLUMN: record.get(DATE_COLUMN) or reservation.date,
            FROM_TIME_COLUMN: record.get(FROM_TIME_COLUMN) or reservation.from_time,
            TO_TIME_COLUMN: record.get(TO_TIME_COLUMN) or reservation.to_time,
        }
        if reservation.provider_email:
            filters[PROVIDER_EMAIL_COLUMN] = reservation.provider_email
        if reservation.renter_email:
            filters[RENTER_EMAIL_COLUMN] = reservation.renter_email
        return filters

    def _map_resource(self, manifest: TableManifest, row: Mapping[str, Any]) -> Resource:
        resource_id = coerce_text(row.get(manifest.resource_id_column))
        if resource_id is None:
            raise StoreError("Store response missing resource id.")
        address = UNKNOWN_ADDRESS
        for column in manifest.address_columns:
            value = coerce_text(row.get(column))
            if value is not None:
                address = value
                break
        hourly_rate = self._default_hourly_rate
        for column in manifest.rate_columns:
            rate = parse_number(row.get(column))
            if rate is not None:
                hourly_rate = rate
                break
        wallet = WalletAddress(
            account_id=coerce_text(row.get(PROVIDER_ACCOUNT_COLUMN)) or "",
            evm_address=coerce_text(row.get(PROVIDER_EVM_COLUMN)) or "",
        )
        owner_email = coerce_text(row.get(RESOURCE_OWNER_COLUMN)) or ""
        if manifest.resource_type is ResourceType.CHARGING:
            power = None
            if manifest.power_column:
                power_value = parse_number(row.get(manifest.power_column))
                power = float(power_value) if power_value is not None else None
            return ChargingStation(
                id=resource_id,
                address=address,
                owner_email=owner_email,
                hourly_rate=hourly_rate,
                average_power_kw=power,
                wallet=wallet,
            )
        return ParkingSpot(
            id=resource_id,
            address=address,
            owner_email=owner_email,
            hourly_rate=hourly_rate,
            wallet=wallet,
        )
