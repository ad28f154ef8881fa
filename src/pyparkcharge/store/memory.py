"""In-process store for tests and offline use."""

from __future__ import annotations

import asyncio
import copy
import itertools
from collections.abc import Mapping, Sequence
from typing import Any

from ..exceptions import ConflictError, ValidationError
from .base import BaseStore, Filters, Row, encode_value


class MemoryStore(BaseStore):
    """Keep tables as lists of rows.

    ``auto_ids`` names, per table, a column filled with an increasing integer
    when an inserted row lacks it. ``unique_keys`` emulates a store-level
    uniqueness constraint: an insert whose values for those columns match an
    existing row raises ``ConflictError``. ``latency`` suspends every call
    for that many seconds so concurrent callers interleave.
    """

    def __init__(
        self,
        tables: Mapping[str, Sequence[Mapping[str, Any]]] | None = None,
        *,
        auto_ids: Mapping[str, str] | None = None,
        unique_keys: Mapping[str, Sequence[str]] | None = None,
        latency: float = 0.0,
    ) -> None:
        self._tables: dict[str, list[Row]] = {}
        for table, rows in (tables or {}).items():
            self._tables[table] = [self._encode_row(row) for row in rows]
        self._auto_ids = dict(auto_ids or {})
        self._unique_keys = {table: tuple(columns) for table, columns in (unique_keys or {}).items()}
        self._latency = max(0.0, latency)
        self._counter = itertools.count(1)

    def rows(self, table: str) -> list[Row]:
        """Return a copy of a table's rows."""
        return copy.deepcopy(self._tables.get(table, []))

    async def select(self, table: str, filters: Filters | None = None) -> list[Row]:
        table_name = self._require_table(table)
        criteria = self._encode_row(self._normalize_filters(filters))
        await self._pause()
        return [
            copy.deepcopy(row)
            for row in self._tables.get(table_name, [])
            if self._matches(row, criteria)
        ]

    async def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        table_name = self._require_table(table)
        if not isinstance(row, Mapping) or not row:
            raise ValidationError("Row must be a non-empty mapping.")
        stored = self._encode_row(row)
        await self._pause()
        rows = self._tables.setdefault(table_name, [])
        unique = self._unique_keys.get(table_name)
        if unique:
            key = tuple(stored.get(column) for column in unique)
            if any(tuple(existing.get(column) for column in unique) == key for existing in rows):
                raise ConflictError("Store rejected a conflicting row.")
        id_column = self._auto_ids.get(table_name)
        if id_column and stored.get(id_column) in (None, ""):
            stored[id_column] = next(self._counter)
        rows.append(stored)
        return copy.deepcopy(stored)

    async def delete(self, table: str, filters: Filters) -> list[Row]:
        table_name = self._require_table(table)
        criteria = self._encode_row(self._require_filters(filters))
        await self._pause()
        rows = self._tables.get(table_name, [])
        removed = [row for row in rows if self._matches(row, criteria)]
        self._tables[table_name] = [row for row in rows if not self._matches(row, criteria)]
        return removed

    async def update(
        self,
        table: str,
        filters: Filters,
        patch: Mapping[str, Any],
    ) -> list[Row]:
        table_name = self._require_table(table)
        if not isinstance(patch, Mapping) or not patch:
            raise ValidationError("Patch must be a non-empty mapping.")
        criteria = self._encode_row(self._require_filters(filters))
        changes = self._encode_row(patch)
        await self._pause()
        updated: list[Row] = []
        for row in self._tables.get(table_name, []):
            if self._matches(row, criteria):
                row.update(changes)
                updated.append(copy.deepcopy(row))
        return updated

    async def _pause(self) -> None:
        # Always yield so callers interleave even without latency.
        await asyncio.sleep(self._latency)

    def _encode_row(self, row: Mapping[str, Any]) -> Row:
        return {column: encode_value(value) for column, value in row.items()}

    def _matches(self, row: Row, criteria: Row) -> bool:
        for column, expected in criteria.items():
            actual = row.get(column)
            if expected is None:
                if actual is not None:
                    return False
            elif actual is None or str(actual) != str(expected):
                return False
        return True
