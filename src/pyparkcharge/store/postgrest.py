"""Hosted relational store reached through its REST dialect."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

import aiohttp

from ..exceptions import AuthError, ConflictError, NetworkError, StoreError, ValidationError
from .base import BaseStore, Filters, Row, encode_value
from .const import DEFAULT_API_URI, DEFAULT_HEADERS

_LOGGER = logging.getLogger(__name__)
_DEFAULT_TIMEOUT = aiohttp.ClientTimeout(total=30)
_RETURN_REPRESENTATION = "return=representation"


class PostgrestStore(BaseStore):
    """Store implementation over the hosted database's REST interface."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        *,
        base_url: str,
        api_key: str | None = None,
        api_uri: str | None = DEFAULT_API_URI,
        timeout: aiohttp.ClientTimeout | None = None,
        retry_count: int = 0,
    ) -> None:
        if session is None:
            raise ValidationError("Session is required.")
        self._session = session
        self._base_url = self._normalize_base_url(base_url)
        self._api_uri = self._normalize_api_uri(api_uri)
        self._api_key = api_key
        self._timeout = timeout or _DEFAULT_TIMEOUT
        self._retry_count = max(0, retry_count)

    async def select(self, table: str, filters: Filters | None = None) -> list[Row]:
        params = self._build_params(self._normalize_filters(filters))
        params["select"] = "*"
        data = await self._request_json("GET", table, params=params)
        return self._expect_rows(data)

    async def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        if not isinstance(row, Mapping) or not row:
            raise ValidationError("Row must be a non-empty mapping.")
        payload = [{key: encode_value(value) for key, value in row.items()}]
        data = await self._request_json(
            "POST",
            table,
            json=payload,
            prefer=_RETURN_REPRESENTATION,
        )
        rows = self._expect_rows(data)
        if not rows:
            raise StoreError("Store did not return the inserted row.")
        return rows[0]

    async def delete(self, table: str, filters: Filters) -> list[Row]:
        params = self._build_params(self._require_filters(filters))
        data = await self._request_json(
            "DELETE",
            table,
            params=params,
            prefer=_RETURN_REPRESENTATION,
        )
        return self._expect_rows(data)

    async def update(
        self,
        table: str,
        filters: Filters,
        patch: Mapping[str, Any],
    ) -> list[Row]:
        if not isinstance(patch, Mapping) or not patch:
            raise ValidationError("Patch must be a non-empty mapping.")
        params = self._build_params(self._require_filters(filters))
        data = await self._request_json(
            "PATCH",
            table,
            params=params,
            json={key: encode_value(value) for key, value in patch.items()},
            prefer=_RETURN_REPRESENTATION,
        )
        return self._expect_rows(data)

    def _build_url(self, table: str) -> str:
        table_name = self._require_table(table)
        if table_name.startswith("http://") or table_name.startswith("https://"):
            raise ValidationError("Use table names, not URLs, when building store requests.")
        return f"{self._base_url}{self._api_uri}/{table_name}"

    def _build_headers(self, prefer: str | None) -> dict[str, str]:
        headers = dict(DEFAULT_HEADERS)
        if self._api_key:
            headers["apikey"] = self._api_key
            headers["Authorization"] = f"Bearer {self._api_key}"
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _build_params(self, filters: dict[str, Any]) -> dict[str, str]:
        params: dict[str, str] = {}
        for column, value in filters.items():
            if value is None:
                params[column] = "is.null"
            elif isinstance(value, bool):
                params[column] = f"is.{str(value).lower()}"
            else:
                params[column] = f"eq.{encode_value(value)}"
        return params

    def _expect_rows(self, data: Any) -> list[Row]:
        if data is None:
            return []
        if isinstance(data, dict):
            return [data]
        if not isinstance(data, list):
            raise StoreError("Store response included invalid rows.")
        return [item for item in data if isinstance(item, dict)]

    async def _request_json(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, str] | None = None,
        json: Any | None = None,
        prefer: str | None = None,
    ) -> Any:
        url = self._build_url(table)
        request_kwargs: dict[str, Any] = {"headers": self._build_headers(prefer)}
        if params:
            request_kwargs["params"] = params
        if json is not None:
            request_kwargs["json"] = json
        return await self._request(method, url, **request_kwargs)

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        retries = self._retry_count if method.upper() == "GET" else 0
        attempts = retries + 1
        for attempt in range(attempts):
            try:
                async with self._session.request(
                    method,
                    url,
                    timeout=self._timeout,
                    ssl=True,
                    **kwargs,
                ) as response:
                    await self._raise_for_status(response)
                    if response.status == 204:
                        return None
                    try:
                        return await response.json()
                    except (aiohttp.ContentTypeError, ValueError) as exc:
                        raise StoreError("Response did not contain valid JSON.") from exc
            except (aiohttp.ClientError, TimeoutError) as exc:
                if attempt >= attempts - 1:
                    raise NetworkError("Network request failed.") from exc
                _LOGGER.debug(
                    "Store %s %s failed on attempt %s, retrying",
                    method,
                    url,
                    attempt + 1,
                )
        raise StoreError("Request failed.")

    async def _raise_for_status(self, response: aiohttp.ClientResponse) -> None:
        if 200 <= response.status < 300:
            return
        detail = await self._error_message_from_response(response)
        if response.status in (401, 403):
            raise AuthError("Authentication failed.", detail=detail)
        if response.status == 409:
            raise ConflictError("Store rejected a conflicting row.", detail=detail)
        raise StoreError(
            f"Store request failed with status {response.status}.",
            detail=detail,
        )

    async def _error_message_from_response(self, response: aiohttp.ClientResponse) -> str | None:
        try:
            text = await response.text()
        except (aiohttp.ClientError, UnicodeDecodeError):
            return None
        if not text:
            return None
        try:
            payload = json.loads(text)
        except ValueError:
            return text[:200]
        if isinstance(payload, dict):
            message = payload.get("message") or payload.get("hint") or payload.get("details")
            if isinstance(message, str) and message:
                return message
        return text[:200]

    def _normalize_base_url(self, base_url: str) -> str:
        if not isinstance(base_url, str) or not base_url.strip():
            raise ValidationError("base_url must be a non-empty string.")
        return base_url.strip().rstrip("/")

    def _normalize_api_uri(self, api_uri: str | None) -> str:
        if api_uri is None:
            return ""
        if not isinstance(api_uri, str):
            raise ValidationError("api_uri must be a string.")
        normalized = api_uri.strip().strip("/")
        if not normalized:
            return ""
        return f"/{normalized}"
