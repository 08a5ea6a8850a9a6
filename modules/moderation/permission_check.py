import logging

from bot_core.errors import CollaboratorError
from bot_core.interfaces import MessagingClient
from bot_core.types import Chat, PrivilegeLevel, User
from utils.config import BotSettings


ADMIN_STATUSES = frozenset({"creator", "administrator"})


class PrivilegeResolver:
    """Decide what a user may do in a chat"""

    def __init__(self, messenger: MessagingClient, settings: BotSettings):
        self.messenger = messenger
        self.settings = settings

    async def resolve(self, chat: Chat, sender: User) -> PrivilegeLevel:
        """
        Private chats: SUPER_ADMIN for the configured admin id, REGULAR otherwise.
        Groups: CHAT_ADMIN for creators and administrators according to Telegram,
        REGULAR for everybody else and whenever the lookup fails.
        """
        if chat.is_private:
            if self.settings.is_super_admin(sender.id):
                return PrivilegeLevel.SUPER_ADMIN
            return PrivilegeLevel.REGULAR

        try:
            status = await self.messenger.get_member_status(chat.id, sender.id)
        except CollaboratorError as exc:
            logging.warning(
                "Error checking admin status of user_id=%s in chat_id=%s: %s",
                sender.id,
                chat.id,
                exc,
            )
            return PrivilegeLevel.REGULAR

        if status in ADMIN_STATUSES:
            return PrivilegeLevel.CHAT_ADMIN
        return PrivilegeLevel.REGULAR

    async def is_privileged_target(self, chat: Chat, target: User) -> bool:
        """Check whether a moderation target is itself an admin"""
        if self.settings.is_super_admin(target.id):
            return True
        level = await self.resolve(chat, target)
        return level is not PrivilegeLevel.REGULAR
