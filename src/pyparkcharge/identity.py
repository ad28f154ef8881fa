"""Canonical reservation identity from heterogeneous stored records.

Rows in the two reservation tables do not agree on which column holds the
reservation's own id, and older rows may lack it entirely. Every other part
of the library refers to reservations through the id produced here.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, time
from enum import StrEnum
from typing import Any

from .exceptions import ValidationError
from .models import ResourceType
from .store.const import DATE_COLUMN, FROM_TIME_COLUMN, TO_TIME_COLUMN
from .store.loader import TableManifest
from .util import coerce_text, format_clock_time, parse_clock_time, parse_date


class IdSource(StrEnum):
    PRIMARY = "primary"
    TRANSACTION = "transaction"
    SYNTHETIC = "synthetic"


@dataclass(frozen=True, slots=True)
class CanonicalIdentity:
    value: str
    source: IdSource


def _date_text(value: Any) -> str:
    try:
        return parse_date(value).isoformat()
    except ValidationError:
        return coerce_text(value) or ""


def _time_text(value: Any) -> str:
    try:
        return format_clock_time(parse_clock_time(value))
    except ValidationError:
        return coerce_text(value) or ""


def synthetic_id(
    resource_type: ResourceType | str,
    reservation_date: date | str,
    from_time: time | str,
    to_time: time | str,
) -> str:
    """Composite key used when a record carries no natural id."""
    return "-".join(
        (
            str(resource_type),
            _date_text(reservation_date),
            _time_text(from_time),
            _time_text(to_time),
        )
    )


def reconcile_identity(record: Mapping[str, Any], manifest: TableManifest) -> CanonicalIdentity:
    primary = coerce_text(record.get(manifest.primary_id_column))
    if primary is not None:
        return CanonicalIdentity(primary, IdSource.PRIMARY)
    transaction = coerce_text(record.get(manifest.transaction_id_column))
    if transaction is not None:
        return CanonicalIdentity(transaction, IdSource.TRANSACTION)
    return CanonicalIdentity(
        synthetic_id(
            manifest.resource_type,
            record.get(DATE_COLUMN, ""),
            record.get(FROM_TIME_COLUMN, ""),
            record.get(TO_TIME_COLUMN, ""),
        ),
        IdSource.SYNTHETIC,
    )


def reconcile_canonical_id(record: Mapping[str, Any], manifest: TableManifest) -> str:
    return reconcile_identity(record, manifest).value


def resolve_resource_id(record: Mapping[str, Any], manifest: TableManifest) -> str | None:
    """Return the referenced resource id, or ``None`` when no column holds one."""
    for column in manifest.resource_ref_columns:
        value = coerce_text(record.get(column))
        if value is not None:
            return value
    return None
