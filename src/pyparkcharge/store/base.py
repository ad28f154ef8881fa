"""Storage collaborator interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import date, time
from decimal import Decimal
from typing import Any

from ..exceptions import ValidationError
from ..util import format_clock_time

Row = dict[str, Any]
Filters = Mapping[str, Any]


def encode_value(value: Any) -> Any:
    """Convert dates, clock times and decimals to their stored text form."""
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, time):
        return format_clock_time(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


class BaseStore(ABC):
    """Record-oriented CRUD over named tables with column-equality filters."""

    def _require_table(self, table: str) -> str:
        if not isinstance(table, str) or not table.strip():
            raise ValidationError("Table name must be a non-empty string.")
        return table.strip()

    def _normalize_filters(self, filters: Filters | None) -> dict[str, Any]:
        if filters is None:
            return {}
        if not isinstance(filters, Mapping):
            raise ValidationError("Filters must be a mapping of column names to values.")
        normalized: dict[str, Any] = {}
        for column, value in filters.items():
            if not isinstance(column, str) or not column:
                raise ValidationError("Filter columns must be non-empty strings.")
            normalized[column] = value
        return normalized

    def _require_filters(self, filters: Filters | None) -> dict[str, Any]:
        normalized = self._normalize_filters(filters)
        if not normalized:
            # Unfiltered mutations would touch every row in the table.
            raise ValidationError("Mutations require at least one filter.")
        return normalized

    @abstractmethod
    async def select(self, table: str, filters: Filters | None = None) -> list[Row]:
        """Return rows matching every filter."""

    @abstractmethod
    async def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        """Insert a row and return it as stored."""

    @abstractmethod
    async def delete(self, table: str, filters: Filters) -> list[Row]:
        """Delete matching rows and return them."""

    @abstractmethod
    async def update(
        self,
        table: str,
        filters: Filters,
        patch: Mapping[str, Any],
    ) -> list[Row]:
        """Apply a patch to matching rows and return them."""
