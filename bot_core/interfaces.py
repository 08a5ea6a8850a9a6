"""
Collaborator contracts used by the router and the feature modules.

The production implementations live in ``clients/``; tests substitute
in-memory fakes that satisfy the same protocols.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple, Union, runtime_checkable

from bot_core.types import BotIdentity, LinkButton


Keyboard = Sequence[Sequence[LinkButton]]
SortSpec = Sequence[Tuple[str, str]]


@dataclass(frozen=True)
class DatastoreRecord:
    """One row of an Airtable table."""

    id: str
    fields: Dict[str, Any] = field(default_factory=dict)
    created_time: str = ""

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)


@runtime_checkable
class MessagingClient(Protocol):
    """Operations the bot needs from the Telegram Bot API."""

    async def send_text(
        self,
        chat_id: Union[int, str],
        text: str,
        reply_to_message_id: Optional[int] = None,
        keyboard: Optional[Keyboard] = None,
    ) -> bool:
        ...

    async def get_member_status(self, chat_id: int, user_id: int) -> str:
        ...

    async def create_single_use_invite(self, chat_id: Union[int, str]) -> Optional[str]:
        ...

    async def restrict_member(
        self,
        chat_id: int,
        user_id: int,
        permissions: Dict[str, bool],
        until_epoch_seconds: Optional[int] = None,
    ) -> None:
        ...

    async def ban_member(self, chat_id: int, user_id: int) -> None:
        ...

    async def unban_member(self, chat_id: int, user_id: int) -> None:
        ...

    async def delete_message(self, chat_id: int, message_id: int) -> None:
        ...

    async def get_self_identity(self) -> BotIdentity:
        ...


@runtime_checkable
class DatastoreClient(Protocol):
    """Operations the bot needs from the Airtable REST API."""

    @property
    def configured(self) -> bool:
        ...

    async def find_one(self, table: str, formula: str) -> Optional[DatastoreRecord]:
        ...

    async def find_all(
        self,
        table: str,
        formula: Optional[str] = None,
        sort: Optional[SortSpec] = None,
    ) -> List[DatastoreRecord]:
        ...

    async def create_record(self, table: str, fields: Dict[str, Any]) -> DatastoreRecord:
        ...

    async def update_record(self, table: str, record_id: str, fields: Dict[str, Any]) -> DatastoreRecord:
        ...


__all__ = [
    "DatastoreClient",
    "DatastoreRecord",
    "Keyboard",
    "MessagingClient",
    "SortSpec",
]
