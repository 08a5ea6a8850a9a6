import asyncio
import logging
import time
from typing import Callable, Dict, Optional

from bot_core.commands import CommandKind
from bot_core.context import CommandContext
from bot_core.errors import CollaboratorError
from bot_core.interfaces import MessagingClient
from bot_core.registry import Handler
from bot_core.types import Reply
from modules.base import Module
from utils.time_utils import TimeUtils


MUTED_PERMISSIONS: Dict[str, bool] = {"can_send_messages": False}

FULL_PERMISSIONS: Dict[str, bool] = {
    "can_send_messages": True,
    "can_send_audios": True,
    "can_send_documents": True,
    "can_send_photos": True,
    "can_send_videos": True,
    "can_send_video_notes": True,
    "can_send_voice_notes": True,
    "can_send_polls": True,
    "can_send_other_messages": True,
    "can_add_web_page_previews": True,
    "can_change_info": True,
    "can_invite_users": True,
    "can_pin_messages": True,
}

INVALID_DURATION = "Invalid duration. Use format like `1h`, `2d`."


def _with_reason(text: str, reason: str) -> str:
    reason = reason.strip()
    return f"{text} Reason: {reason}" if reason else text


class ModerationModule(Module):
    """
    Reply-based moderation for group admins: /ban, /mute, /unmute, /unban, /del.

    The router has already checked that the sender is a chat admin, that the
    command replies to a message and, for ban and mute, that the target is
    not an admin. Handlers only perform the Telegram call and confirm it.
    """

    required_services = ("messenger",)

    messenger: MessagingClient

    def __init__(self, clock: Callable[[], float] = time.time):
        super().__init__("moderation", priority=20)
        self._clock = clock

    def handlers(self) -> Dict[CommandKind, Handler]:
        return {
            CommandKind.BAN: self.handle_ban,
            CommandKind.MUTE: self.handle_mute,
            CommandKind.UNMUTE: self.handle_unmute,
            CommandKind.UNBAN: self.handle_unban,
            CommandKind.DELETE: self.handle_delete,
        }

    async def handle_ban(self, ctx: CommandContext) -> Reply:
        """Handle /ban command"""
        target = ctx.target
        logging.info("Banning user_id=%s in chat_id=%s", target.id, ctx.chat.id)
        try:
            await self.messenger.ban_member(ctx.chat.id, target.id)
        except CollaboratorError as e:
            logging.error("Ban failed for user_id=%s: %s", target.id, e)
            return ctx.reply("Failed to ban user.", quote=True)
        return ctx.reply(_with_reason("User has been banned.", ctx.command.arg_string))

    async def handle_mute(self, ctx: CommandContext) -> Reply:
        """Handle /mute command"""
        target = ctx.target
        seconds = TimeUtils.parse_duration(ctx.command.first_arg())
        if seconds <= 0:
            return ctx.reply(INVALID_DURATION, quote=True)

        until = int(self._clock()) + seconds
        logging.info(
            "Muting user_id=%s in chat_id=%s for %ss (until %s)", target.id, ctx.chat.id, seconds, until
        )
        try:
            await self.messenger.restrict_member(ctx.chat.id, target.id, dict(MUTED_PERMISSIONS), until)
        except CollaboratorError as e:
            logging.error("Mute failed for user_id=%s: %s", target.id, e)
            return ctx.reply("Failed to mute user.", quote=True)

        text = f"User has been muted for {TimeUtils.format_duration(seconds)}."
        return ctx.reply(_with_reason(text, ctx.command.rest_after_first()))

    async def handle_unmute(self, ctx: CommandContext) -> Reply:
        """Handle /unmute command"""
        target = ctx.target
        try:
            await self.messenger.restrict_member(ctx.chat.id, target.id, dict(FULL_PERMISSIONS))
        except CollaboratorError as e:
            logging.error("Unmute failed for user_id=%s: %s", target.id, e)
            return ctx.reply("Failed to unmute user.", quote=True)
        return ctx.reply("User has been unmuted.")

    async def handle_unban(self, ctx: CommandContext) -> Reply:
        """Handle /unban command"""
        target = ctx.target
        try:
            await self.messenger.unban_member(ctx.chat.id, target.id)
        except CollaboratorError as e:
            logging.error("Unban failed for user_id=%s: %s", target.id, e)
            return ctx.reply("Failed to unban user.", quote=True)
        return ctx.reply("User has been unbanned.")

    async def handle_delete(self, ctx: CommandContext) -> Optional[Reply]:
        """Delete the replied-to message together with the command itself."""
        target_message_id = ctx.message.replied_to.id
        target_result, command_result = await asyncio.gather(
            self.messenger.delete_message(ctx.chat.id, target_message_id),
            self.messenger.delete_message(ctx.chat.id, ctx.message.id),
            return_exceptions=True,
        )

        if isinstance(command_result, BaseException):
            logging.warning("Could not delete command message %s: %s", ctx.message.id, command_result)
        if isinstance(target_result, BaseException):
            if not isinstance(target_result, CollaboratorError):
                raise target_result
            logging.error("Delete failed for message %s: %s", target_message_id, target_result)
            return ctx.reply("Failed to delete message.")
        return None


def get_module(container=None) -> ModerationModule:
    return ModerationModule()
