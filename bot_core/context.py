"""Per-message state handed to command handlers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from bot_core.commands import Command
from bot_core.interfaces import Keyboard
from bot_core.types import Chat, IncomingMessage, PrivilegeLevel, Reply, User
from utils.config import BotSettings

if TYPE_CHECKING:
    from modules.moderation.permission_check import PrivilegeResolver


@dataclass
class CommandContext:
    """Everything a handler needs to act on one message.

    The sender's privilege is resolved on first use and then reused for the
    rest of this message only.
    """

    message: IncomingMessage
    command: Command
    settings: BotSettings
    resolver: "PrivilegeResolver"
    _privilege: Optional[PrivilegeLevel] = field(default=None, init=False, repr=False)

    @property
    def chat(self) -> Chat:
        return self.message.chat

    @property
    def sender(self) -> User:
        return self.message.sender

    @property
    def target(self) -> Optional[User]:
        """Author of the replied-to message, if any."""
        if self.message.replied_to is None:
            return None
        return self.message.replied_to.sender

    async def privilege(self) -> PrivilegeLevel:
        if self._privilege is None:
            self._privilege = await self.resolver.resolve(self.chat, self.sender)
            logging.debug(
                "Resolved privilege %s for user_id=%s chat_id=%s",
                self._privilege.name,
                self.sender.id,
                self.chat.id,
            )
        return self._privilege

    def reply(self, text: str, *, quote: bool = False, keyboard: Optional[Keyboard] = None) -> Reply:
        return Reply(
            text,
            reply_to_message_id=self.message.id if quote else None,
            keyboard=keyboard,
        )
