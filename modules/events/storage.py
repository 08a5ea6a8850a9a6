"""Event records kept in the Airtable events table."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from bot_core.errors import ConfigurationMissing
from bot_core.interfaces import DatastoreClient, DatastoreRecord
from clients.airtable import all_of, equals_ignore_case, is_after_today, is_checked


FIELD_TITLE = "Title"
FIELD_DATE = "Date"
FIELD_DESCRIPTION = "Description"
FIELD_REGISTRATION_URL = "Registration URL"
FIELD_EVENT_CODE = "EventCode"
FIELD_PUBLISHED = "Published"


@dataclass(frozen=True)
class EventRecord:
    record_id: str
    title: str
    date: str
    description: str = ""
    registration_url: str = ""
    event_code: str = ""
    published: bool = False

    @classmethod
    def from_record(cls, record: DatastoreRecord) -> "EventRecord":
        return cls(
            record_id=record.id,
            title=str(record.get(FIELD_TITLE) or ""),
            date=str(record.get(FIELD_DATE) or ""),
            description=str(record.get(FIELD_DESCRIPTION) or ""),
            registration_url=str(record.get(FIELD_REGISTRATION_URL) or ""),
            event_code=str(record.get(FIELD_EVENT_CODE) or "").upper(),
            published=bool(record.get(FIELD_PUBLISHED, False)),
        )


class EventStorage:
    """Read and write events; event codes are always compared upper-cased."""

    def __init__(self, datastore: DatastoreClient, table_id: str) -> None:
        self.datastore = datastore
        self.table_id = table_id

    @property
    def ready(self) -> bool:
        return bool(self.table_id) and self.datastore.configured

    def _require_ready(self) -> None:
        if not self.ready:
            raise ConfigurationMissing("AIRTABLE_EVENTS_TABLE_ID")

    async def list_upcoming(self) -> List[EventRecord]:
        """Published events dated after today, soonest first."""
        if not self.ready:
            logging.error("Airtable credentials for events are not set.")
            return []
        records = await self.datastore.find_all(
            self.table_id,
            formula=all_of(is_checked(FIELD_PUBLISHED), is_after_today(FIELD_DATE)),
            sort=[(FIELD_DATE, "asc")],
        )
        return [EventRecord.from_record(record) for record in records]

    async def list_all(self) -> List[EventRecord]:
        """Every event, newest first."""
        if not self.ready:
            logging.error("Airtable credentials for events are not set.")
            return []
        records = await self.datastore.find_all(self.table_id, sort=[(FIELD_DATE, "desc")])
        return [EventRecord.from_record(record) for record in records]

    async def find_by_code(self, event_code: str) -> Optional[EventRecord]:
        if not self.ready:
            logging.error("Airtable credentials for events are not set.")
            return None
        record = await self.datastore.find_one(
            self.table_id, equals_ignore_case(FIELD_EVENT_CODE, event_code)
        )
        return EventRecord.from_record(record) if record else None

    async def create(
        self,
        *,
        title: str,
        date: str,
        event_code: str,
        description: str = "",
        registration_url: str = "",
        published: bool = True,
    ) -> EventRecord:
        self._require_ready()
        record = await self.datastore.create_record(
            self.table_id,
            {
                FIELD_TITLE: title,
                FIELD_DATE: date,
                FIELD_DESCRIPTION: description,
                FIELD_REGISTRATION_URL: registration_url,
                FIELD_EVENT_CODE: event_code.upper(),
                FIELD_PUBLISHED: published,
            },
        )
        logging.info("Created event %s (%s)", event_code.upper(), record.id)
        return EventRecord.from_record(record)

    async def update(self, record_id: str, fields: Dict[str, Any]) -> EventRecord:
        """Update raw Airtable fields (keys are the FIELD_* column names)."""
        self._require_ready()
        record = await self.datastore.update_record(self.table_id, record_id, fields)
        logging.info("Updated event record %s: %s", record_id, sorted(fields))
        return EventRecord.from_record(record)
