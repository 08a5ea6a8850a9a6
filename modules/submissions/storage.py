"""Community questions and suggestions kept in the Airtable submissions table."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List

from bot_core.errors import ConfigurationMissing
from bot_core.interfaces import DatastoreClient, DatastoreRecord


FIELD_TEXT = "Submission"
FIELD_TYPE = "Type"
FIELD_AUTHOR = "Telegram User ID"
FIELD_CONTEXT = "Context"

DEFAULT_CONTEXT = "General"


class SubmissionKind(str, Enum):
    # values are the Airtable single-select options
    QUESTION = "Questions"
    SUGGESTION = "Suggestions"


@dataclass(frozen=True)
class SubmissionRecord:
    text: str
    kind: str
    context: str = DEFAULT_CONTEXT
    author_id: str = ""
    submitted_at: str = ""

    @classmethod
    def from_record(cls, record: DatastoreRecord) -> "SubmissionRecord":
        return cls(
            text=str(record.get(FIELD_TEXT) or ""),
            kind=str(record.get(FIELD_TYPE) or ""),
            context=str(record.get(FIELD_CONTEXT) or DEFAULT_CONTEXT),
            author_id=str(record.get(FIELD_AUTHOR) or ""),
            submitted_at=record.created_time,
        )


class SubmissionStorage:
    def __init__(self, datastore: DatastoreClient, table_id: str) -> None:
        self.datastore = datastore
        self.table_id = table_id

    @property
    def ready(self) -> bool:
        return bool(self.table_id) and self.datastore.configured

    async def record(
        self,
        author_id: int,
        text: str,
        kind: SubmissionKind,
        context: str = DEFAULT_CONTEXT,
    ) -> SubmissionRecord:
        if not self.ready:
            raise ConfigurationMissing("AIRTABLE_QUESTIONS_TABLE_ID")
        record = await self.datastore.create_record(
            self.table_id,
            {
                FIELD_TEXT: text,
                FIELD_TYPE: kind.value,
                FIELD_AUTHOR: str(author_id),
                FIELD_CONTEXT: context,
            },
        )
        logging.info("Recorded %s from user_id=%s (context=%s)", kind.value, author_id, context)
        return SubmissionRecord.from_record(record)

    async def list_all(self) -> List[SubmissionRecord]:
        """Every submission, newest first."""
        if not self.ready:
            logging.error("Airtable credentials for submissions are not set.")
            return []
        records = await self.datastore.find_all(self.table_id)
        submissions = [SubmissionRecord.from_record(record) for record in records]
        # Airtable createdTime is ISO-8601 UTC, so string order is time order
        submissions.sort(key=lambda item: item.submitted_at, reverse=True)
        return submissions
