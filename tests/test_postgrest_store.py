from __future__ import annotations

from datetime import date, time
from typing import Any

import aiohttp
import pytest

from pyparkcharge.exceptions import (
    AuthError,
    ConflictError,
    NetworkError,
    StoreError,
    ValidationError,
)
from pyparkcharge.store.postgrest import PostgrestStore


class _FakeResponse:
    def __init__(
        self,
        *,
        status: int = 200,
        json_data: object | None = None,
        text_data: str = "",
        json_error: Exception | None = None,
    ) -> None:
        self.status = status
        self._json_data = json_data
        self._text_data = text_data
        self._json_error = json_error

    async def json(self) -> object:
        if self._json_error is not None:
            raise self._json_error
        return self._json_data

    async def text(self) -> str:
        return self._text_data


class _FakeRequestContext:
    def __init__(self, response: _FakeResponse) -> None:
        self._response = response

    async def __aenter__(self) -> _FakeResponse:
        return self._response

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


class _SequenceSession:
    def __init__(self, results: list[object]) -> None:
        self._results = results
        self.calls: list[dict[str, Any]] = []

    def request(self, method: str, url: str, **kwargs: Any) -> _FakeRequestContext:
        self.calls.append({"method": method, "url": url, "kwargs": kwargs})
        result = self._results[len(self.calls) - 1]
        if isinstance(result, Exception):
            raise result
        return _FakeRequestContext(result)


def _store(session: object, **kwargs: Any) -> PostgrestStore:
    return PostgrestStore(
        session,  # type: ignore[arg-type]
        base_url="https://project.example.co/",
        api_key="anon-key",
        **kwargs,
    )


def test_build_url() -> None:
    store = _store(_SequenceSession([]))
    assert store._build_url("Parking") == "https://project.example.co/rest/v1/Parking"
    with pytest.raises(ValidationError):
        store._build_url("")
    with pytest.raises(ValidationError):
        store._build_url("https://elsewhere.example/table")


def test_requires_base_url() -> None:
    with pytest.raises(ValidationError):
        PostgrestStore(_SequenceSession([]), base_url=" ")  # type: ignore[arg-type]


def test_build_params_encodes_filters() -> None:
    store = _store(_SequenceSession([]))
    params = store._build_params(
        {"date": date(2025, 6, 1), "from_time": time(10), "parking_id": 7, "id": None, "paid": True}
    )
    assert params == {
        "date": "eq.2025-06-01",
        "from_time": "eq.10:00",
        "parking_id": "eq.7",
        "id": "is.null",
        "paid": "is.true",
    }


@pytest.mark.asyncio
async def test_select_sends_filters_and_api_key() -> None:
    session = _SequenceSession([_FakeResponse(json_data=[{"id": 1}])])
    store = _store(session)
    rows = await store.select("Parking_Transactions", {"useremail_id": "a@b.c"})
    assert rows == [{"id": 1}]
    call = session.calls[0]
    assert call["method"] == "GET"
    assert call["url"] == "https://project.example.co/rest/v1/Parking_Transactions"
    assert call["kwargs"]["params"] == {"useremail_id": "eq.a@b.c", "select": "*"}
    assert call["kwargs"]["headers"]["apikey"] == "anon-key"
    assert call["kwargs"]["headers"]["Authorization"] == "Bearer anon-key"


@pytest.mark.asyncio
async def test_insert_returns_stored_row() -> None:
    session = _SequenceSession([_FakeResponse(status=201, json_data=[{"id": 5, "date": "2025-06-01"}])])
    store = _store(session)
    row = await store.insert("Parking_Transactions", {"date": date(2025, 6, 1), "from_time": time(10)})
    assert row == {"id": 5, "date": "2025-06-01"}
    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["kwargs"]["json"] == [{"date": "2025-06-01", "from_time": "10:00"}]
    assert call["kwargs"]["headers"]["Prefer"] == "return=representation"


@pytest.mark.asyncio
async def test_insert_conflict_maps_to_conflict_error() -> None:
    session = _SequenceSession(
        [_FakeResponse(status=409, text_data='{"message": "duplicate key value"}')]
    )
    store = _store(session)
    with pytest.raises(ConflictError) as exc_info:
        await store.insert("Parking_Transactions", {"date": "2025-06-01"})
    assert exc_info.value.detail == "duplicate key value"


@pytest.mark.asyncio
async def test_delete_requires_filters() -> None:
    store = _store(_SequenceSession([]))
    with pytest.raises(ValidationError):
        await store.delete("Parking_Transactions", {})


@pytest.mark.asyncio
async def test_delete_returns_removed_rows() -> None:
    session = _SequenceSession([_FakeResponse(json_data=[])])
    store = _store(session)
    assert await store.delete("Parking_Transactions", {"id": "9"}) == []
    assert session.calls[0]["method"] == "DELETE"
    assert session.calls[0]["kwargs"]["params"] == {"id": "eq.9"}


@pytest.mark.asyncio
async def test_update_sends_patch() -> None:
    session = _SequenceSession([_FakeResponse(json_data=[{"id": 9, "status": "Done"}])])
    store = _store(session)
    rows = await store.update("Charging_Transaction", {"id": 9}, {"status": "Done"})
    assert rows == [{"id": 9, "status": "Done"}]
    assert session.calls[0]["method"] == "PATCH"
    assert session.calls[0]["kwargs"]["json"] == {"status": "Done"}


@pytest.mark.asyncio
async def test_select_retries_get() -> None:
    session = _SequenceSession([aiohttp.ClientError("boom"), _FakeResponse(json_data=[])])
    store = _store(session, retry_count=1)
    assert await store.select("Parking") == []
    assert len(session.calls) == 2


@pytest.mark.asyncio
async def test_insert_is_not_retried() -> None:
    session = _SequenceSession([aiohttp.ClientError("boom")])
    store = _store(session, retry_count=3)
    with pytest.raises(NetworkError):
        await store.insert("Parking_Transactions", {"date": "2025-06-01"})
    assert len(session.calls) == 1


@pytest.mark.asyncio
async def test_timeout_maps_to_network_error() -> None:
    session = _SequenceSession([TimeoutError()])
    store = _store(session)
    with pytest.raises(NetworkError):
        await store.select("Parking")


@pytest.mark.asyncio
async def test_auth_error() -> None:
    session = _SequenceSession([_FakeResponse(status=401)])
    store = _store(session)
    with pytest.raises(AuthError):
        await store.select("Parking")


@pytest.mark.asyncio
async def test_store_error_on_bad_request() -> None:
    session = _SequenceSession(
        [_FakeResponse(status=400, text_data='{"message": "invalid input syntax for type bigint"}')]
    )
    store = _store(session)
    with pytest.raises(StoreError) as exc_info:
        await store.delete("Parking_Transactions", {"id": "parking-2025-06-01-10:00-12:00"})
    assert "bigint" in exc_info.value.detail


@pytest.mark.asyncio
async def test_invalid_json_response() -> None:
    session = _SequenceSession([_FakeResponse(json_error=ValueError("bad"))])
    store = _store(session)
    with pytest.raises(StoreError):
        await store.select("Parking")


@pytest.mark.asyncio
async def test_unexpected_payload_shape() -> None:
    session = _SequenceSession([_FakeResponse(json_data="nope")])
    store = _store(session)
    with pytest.raises(StoreError):
        await store.select("Parking")
