"""Member lookups against the Airtable members table."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from bot_core.interfaces import DatastoreClient, DatastoreRecord
from clients.airtable import equals_ignore_case


FIELD_IDENTITY_CODE = "aetherId"
FIELD_FULL_NAME = "fullName"


@dataclass(frozen=True)
class MemberRecord:
    record_id: str
    identity_code: str
    full_name: str

    @classmethod
    def from_record(cls, record: DatastoreRecord) -> "MemberRecord":
        return cls(
            record_id=record.id,
            identity_code=str(record.get(FIELD_IDENTITY_CODE) or ""),
            full_name=str(record.get(FIELD_FULL_NAME) or ""),
        )


class MemberStorage:
    def __init__(self, datastore: DatastoreClient, table_id: str) -> None:
        self.datastore = datastore
        self.table_id = table_id

    @property
    def ready(self) -> bool:
        return bool(self.table_id) and self.datastore.configured

    async def find_by_identity_code(self, identity_code: str) -> Optional[MemberRecord]:
        """Case-insensitive lookup; ``None`` when unknown or not configured."""
        if not self.ready:
            logging.error("Airtable credentials for members are not set.")
            return None
        record = await self.datastore.find_one(
            self.table_id, equals_ignore_case(FIELD_IDENTITY_CODE, identity_code.strip())
        )
        return MemberRecord.from_record(record) if record else None
