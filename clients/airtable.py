"""Minimal Airtable REST client built on aiohttp."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import aiohttp

from bot_core.errors import CollaboratorError, ConfigurationMissing
from bot_core.interfaces import DatastoreRecord, SortSpec


AIRTABLE_API_URL = "https://api.airtable.com/v0"
PAGE_SIZE = 100


def _quote_formula_value(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def equals_ignore_case(field: str, value: str) -> str:
    """Formula matching ``field`` against ``value`` regardless of case."""
    return f"UPPER({{{field}}}) = {_quote_formula_value(value.upper())}"


def is_after_today(field: str) -> str:
    return f"IS_AFTER({{{field}}}, TODAY())"


def is_checked(field: str) -> str:
    return f"{{{field}}}"


def all_of(*conditions: str) -> str:
    conditions = tuple(condition for condition in conditions if condition)
    if len(conditions) == 1:
        return conditions[0]
    return f"AND({', '.join(conditions)})"


def decode_record(payload: Any) -> DatastoreRecord:
    """Turn one ``{"id", "fields", "createdTime"}`` object into a record."""

    if not isinstance(payload, dict) or not isinstance(payload.get("id"), str):
        raise CollaboratorError("airtable", f"unexpected record shape: {payload!r:.200}")
    fields = payload.get("fields", {})
    if not isinstance(fields, dict):
        raise CollaboratorError("airtable", f"record {payload['id']} has non-object fields")
    return DatastoreRecord(
        id=payload["id"],
        fields=dict(fields),
        created_time=str(payload.get("createdTime", "")),
    )


def decode_page(payload: Any) -> Tuple[List[DatastoreRecord], Optional[str]]:
    """Decode a list response into records and the next-page offset."""

    if not isinstance(payload, dict) or not isinstance(payload.get("records"), list):
        raise CollaboratorError("airtable", "response has no records list")
    offset = payload.get("offset")
    if offset is not None and not isinstance(offset, str):
        raise CollaboratorError("airtable", "pagination offset is not a string")
    return [decode_record(item) for item in payload["records"]], offset


class AirtableClient:
    """Read and write rows of one Airtable base.

    Every failure (missing credentials excepted) surfaces as
    :class:`CollaboratorError`; missing credentials raise
    :class:`ConfigurationMissing` before any request is made.
    """

    def __init__(
        self,
        api_key: str,
        base_id: str,
        *,
        timeout: float = 10.0,
        api_url: str = AIRTABLE_API_URL,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._api_key = api_key
        self._base_id = base_id
        self._api_url = api_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None
        self._logger = logging.getLogger(__name__)

    @property
    def configured(self) -> bool:
        return bool(self._api_key and self._base_id)

    async def find_one(self, table: str, formula: str) -> Optional[DatastoreRecord]:
        params = {"filterByFormula": formula, "maxRecords": "1"}
        payload = await self._request("GET", table, params=params)
        records, _ = decode_page(payload)
        return records[0] if records else None

    async def find_all(
        self,
        table: str,
        formula: Optional[str] = None,
        sort: Optional[SortSpec] = None,
    ) -> List[DatastoreRecord]:
        params: Dict[str, str] = {"pageSize": str(PAGE_SIZE)}
        if formula:
            params["filterByFormula"] = formula
        for index, (field, direction) in enumerate(sort or ()):
            params[f"sort[{index}][field]"] = field
            params[f"sort[{index}][direction]"] = direction

        records: List[DatastoreRecord] = []
        offset: Optional[str] = None
        while True:
            if offset:
                params["offset"] = offset
            payload = await self._request("GET", table, params=params)
            page, offset = decode_page(payload)
            records.extend(page)
            if not offset:
                break
        self._logger.debug("Fetched %s record(s) from %s", len(records), table)
        return records

    async def create_record(self, table: str, fields: Dict[str, Any]) -> DatastoreRecord:
        body = {"records": [{"fields": fields}], "typecast": True}
        payload = await self._request("POST", table, json=body)
        records, _ = decode_page(payload)
        if not records:
            raise CollaboratorError("airtable create", "no record returned")
        return records[0]

    async def update_record(self, table: str, record_id: str, fields: Dict[str, Any]) -> DatastoreRecord:
        body = {"records": [{"id": record_id, "fields": fields}], "typecast": True}
        payload = await self._request("PATCH", table, json=body)
        records, _ = decode_page(payload)
        if not records:
            raise CollaboratorError("airtable update", "no record returned")
        return records[0]

    def _table_url(self, table: str) -> str:
        return f"{self._api_url}/{self._base_id}/{quote(table, safe='')}"

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def _request(self, method: str, table: str, **kwargs) -> Any:
        if not self._api_key:
            raise ConfigurationMissing("AIRTABLE_API_KEY")
        if not self._base_id:
            raise ConfigurationMissing("AIRTABLE_BASE_ID")
        if not table:
            raise ConfigurationMissing("table id")

        headers = {"Authorization": f"Bearer {self._api_key}"}
        operation = f"airtable {method} {table}"
        try:
            async with self._get_session().request(
                method,
                self._table_url(table),
                headers=headers,
                timeout=self._timeout,
                **kwargs,
            ) as resp:
                if resp.status >= 400:
                    detail = await resp.text()
                    raise CollaboratorError(operation, f"HTTP {resp.status}: {detail[:200]}")
                try:
                    return await resp.json()
                except (aiohttp.ContentTypeError, ValueError) as exc:
                    raise CollaboratorError(operation, "response is not JSON") from exc
        except aiohttp.ClientError as exc:
            raise CollaboratorError(operation, str(exc)) from exc
        except asyncio.TimeoutError as exc:
            raise CollaboratorError(operation, "timed out") from exc

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
