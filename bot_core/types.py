"""Value types passed between the webhook, the router and the handlers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Sequence

from aiogram.types import Message, Update


logger = logging.getLogger(__name__)


class ChatKind(str, Enum):
    PRIVATE = "private"
    GROUP = "group"
    CHANNEL = "channel"

    @classmethod
    def from_telegram(cls, chat_type: str) -> "ChatKind":
        """Map a Telegram chat type onto the three kinds the router cares about."""

        if chat_type == "private":
            return cls.PRIVATE
        if chat_type == "channel":
            return cls.CHANNEL
        # "group" and "supergroup" behave identically for moderation
        return cls.GROUP


class PrivilegeLevel(int, Enum):
    REGULAR = 0
    CHAT_ADMIN = 1
    SUPER_ADMIN = 2


@dataclass(frozen=True)
class User:
    id: int
    display_name: str = ""


@dataclass(frozen=True)
class Chat:
    id: int
    kind: ChatKind

    @property
    def is_private(self) -> bool:
        return self.kind is ChatKind.PRIVATE


@dataclass(frozen=True)
class IncomingMessage:
    """A single inbound chat message, decoded from one webhook delivery."""

    id: int
    sender: User
    chat: Chat
    text: str = ""
    replied_to: Optional["IncomingMessage"] = None

    @classmethod
    def from_telegram(cls, message: Message) -> Optional["IncomingMessage"]:
        if message.from_user is None:
            logger.debug("Message %s has no sender; ignoring", message.message_id)
            return None

        replied_to = None
        if message.reply_to_message is not None:
            replied_to = cls.from_telegram(message.reply_to_message)

        return cls(
            id=message.message_id,
            sender=User(
                id=message.from_user.id,
                display_name=message.from_user.full_name,
            ),
            chat=Chat(id=message.chat.id, kind=ChatKind.from_telegram(message.chat.type)),
            text=message.text or "",
            replied_to=replied_to,
        )

    @classmethod
    def from_update(cls, payload: Mapping[str, Any]) -> Optional["IncomingMessage"]:
        """Decode a raw Telegram update body.

        Raises ``ValueError`` (pydantic's ``ValidationError``) when the body is
        not a Telegram update. Returns ``None`` for updates that carry no
        ``message`` (edits, callbacks, channel posts).
        """

        update = Update.model_validate(dict(payload))
        if update.message is None:
            return None
        return cls.from_telegram(update.message)


@dataclass(frozen=True)
class ActionResult:
    success: bool
    message: str


@dataclass(frozen=True)
class LinkButton:
    text: str
    url: str


@dataclass(frozen=True)
class Reply:
    """Text to send back to the chat the command came from."""

    text: str
    reply_to_message_id: Optional[int] = None
    keyboard: Optional[Sequence[Sequence[LinkButton]]] = None


@dataclass(frozen=True)
class BotIdentity:
    username: str


__all__ = [
    "ActionResult",
    "BotIdentity",
    "Chat",
    "ChatKind",
    "IncomingMessage",
    "LinkButton",
    "PrivilegeLevel",
    "Reply",
    "User",
]
