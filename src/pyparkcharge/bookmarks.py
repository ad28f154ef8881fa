"""Local bookmark cache of canonical reservation ids."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

_LOGGER = logging.getLogger(__name__)


@runtime_checkable
class BookmarkCache(Protocol):
    async def get(self) -> set[str]:
        """Return saved canonical ids."""

    async def add(self, canonical_id: str) -> None:
        """Save a canonical id."""

    async def remove(self, canonical_id: str) -> None:
        """Forget a canonical id; unknown ids are ignored."""


class MemoryBookmarkCache:
    def __init__(self, initial: set[str] | None = None) -> None:
        self._ids: set[str] = set(initial or ())

    async def get(self) -> set[str]:
        return set(self._ids)

    async def add(self, canonical_id: str) -> None:
        self._ids.add(canonical_id)

    async def remove(self, canonical_id: str) -> None:
        self._ids.discard(canonical_id)


class JsonFileBookmarkCache:
    """Bookmarks persisted as a JSON list in a single file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = asyncio.Lock()

    async def get(self) -> set[str]:
        async with self._lock:
            return await asyncio.to_thread(self._load)

    async def add(self, canonical_id: str) -> None:
        async with self._lock:
            ids = await asyncio.to_thread(self._load)
            if canonical_id in ids:
                return
            ids.add(canonical_id)
            await asyncio.to_thread(self._save, ids)

    async def remove(self, canonical_id: str) -> None:
        async with self._lock:
            ids = await asyncio.to_thread(self._load)
            if canonical_id not in ids:
                return
            ids.discard(canonical_id)
            await asyncio.to_thread(self._save, ids)

    def _load(self) -> set[str]:
        if not self._path.exists():
            return set()
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            _LOGGER.warning("Bookmark file %s is not valid JSON; starting empty", self._path)
            return set()
        if not isinstance(payload, list):
            _LOGGER.warning("Bookmark file %s does not hold a list; starting empty", self._path)
            return set()
        return {item for item in payload if isinstance(item, str)}

    def _save(self, ids: set[str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(sorted(ids), indent=2), encoding="utf-8")
