"""Telegram Bot API gateway built on aiogram's ``Bot``."""

from __future__ import annotations

import logging
import time
from typing import Dict, Optional, Union

from aiogram import Bot
from aiogram.client.default import DefaultBotProperties
from aiogram.client.session.aiohttp import AiohttpSession
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramAPIError, TelegramBadRequest
from aiogram.types import (
    ChatPermissions,
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    ReplyParameters,
)

from bot_core.errors import CollaboratorError
from bot_core.interfaces import Keyboard
from bot_core.types import BotIdentity
from utils.config import BotSettings


INVITE_LINK_TTL_SECONDS = 86400


def create_bot(settings: BotSettings) -> Bot:
    """Build an aiogram ``Bot`` whose HTTP calls are bounded by ``request_timeout``."""

    session = AiohttpSession(timeout=settings.request_timeout)
    return Bot(
        token=settings.bot_token,
        session=session,
        default=DefaultBotProperties(parse_mode=ParseMode.MARKDOWN),
    )


def build_keyboard(keyboard: Optional[Keyboard]) -> Optional[InlineKeyboardMarkup]:
    if not keyboard:
        return None
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text=button.text, url=button.url) for button in row]
            for row in keyboard
        ]
    )


class TelegramGateway:
    """Narrow wrapper over the Bot API calls the router and handlers need.

    Mutations raise :class:`CollaboratorError`; ``send_text`` and
    ``create_single_use_invite`` report failure through their return value.
    """

    def __init__(self, bot: Bot) -> None:
        self.bot = bot
        self._logger = logging.getLogger(__name__)

    async def send_text(
        self,
        chat_id: Union[int, str],
        text: str,
        reply_to_message_id: Optional[int] = None,
        keyboard: Optional[Keyboard] = None,
    ) -> bool:
        kwargs = {}
        if reply_to_message_id:
            kwargs["reply_parameters"] = ReplyParameters(
                message_id=reply_to_message_id,
                allow_sending_without_reply=True,
            )
        markup = build_keyboard(keyboard)
        if markup is not None:
            kwargs["reply_markup"] = markup

        try:
            await self.bot.send_message(chat_id=chat_id, text=text, **kwargs)
            return True
        except TelegramBadRequest as exc:
            if "can't parse entities" not in str(exc):
                self._logger.error("Error sending Telegram message to %s: %s", chat_id, exc)
                return False
            # user-supplied text broke the Markdown; send it verbatim instead
            self._logger.warning("Markdown rejected for chat %s; resending as plain text", chat_id)
            try:
                await self.bot.send_message(chat_id=chat_id, text=text, parse_mode=None, **kwargs)
                return True
            except TelegramAPIError as retry_exc:
                self._logger.error("Error sending Telegram message to %s: %s", chat_id, retry_exc)
                return False
        except TelegramAPIError as exc:
            self._logger.error("Error sending Telegram message to %s: %s", chat_id, exc)
            return False

    async def get_member_status(self, chat_id: int, user_id: int) -> str:
        try:
            member = await self.bot.get_chat_member(chat_id=chat_id, user_id=user_id)
        except TelegramAPIError as exc:
            raise CollaboratorError("getChatMember", str(exc)) from exc

        status = getattr(member, "status", None)
        if status is None:
            raise CollaboratorError("getChatMember", "response carries no status")
        return str(getattr(status, "value", status))

    async def create_single_use_invite(self, chat_id: Union[int, str]) -> Optional[str]:
        try:
            link = await self.bot.create_chat_invite_link(
                chat_id=chat_id,
                member_limit=1,
                expire_date=int(time.time()) + INVITE_LINK_TTL_SECONDS,
            )
        except TelegramAPIError as exc:
            self._logger.error("Failed to create invite link for %s: %s", chat_id, exc)
            return None
        return getattr(link, "invite_link", None) or None

    async def restrict_member(
        self,
        chat_id: int,
        user_id: int,
        permissions: Dict[str, bool],
        until_epoch_seconds: Optional[int] = None,
    ) -> None:
        await self._call(
            "restrictChatMember",
            self.bot.restrict_chat_member(
                chat_id=chat_id,
                user_id=user_id,
                permissions=ChatPermissions(**permissions),
                until_date=until_epoch_seconds,
            ),
        )

    async def ban_member(self, chat_id: int, user_id: int) -> None:
        await self._call("banChatMember", self.bot.ban_chat_member(chat_id=chat_id, user_id=user_id))

    async def unban_member(self, chat_id: int, user_id: int) -> None:
        await self._call(
            "unbanChatMember",
            self.bot.unban_chat_member(chat_id=chat_id, user_id=user_id, only_if_banned=True),
        )

    async def delete_message(self, chat_id: int, message_id: int) -> None:
        await self._call(
            "deleteMessage", self.bot.delete_message(chat_id=chat_id, message_id=message_id)
        )

    async def get_self_identity(self) -> BotIdentity:
        try:
            me = await self.bot.get_me()
        except TelegramAPIError as exc:
            raise CollaboratorError("getMe", str(exc)) from exc
        if not getattr(me, "username", None):
            raise CollaboratorError("getMe", "bot has no username")
        return BotIdentity(username=me.username)

    async def register_webhook(self, url: str, secret: str = "") -> None:
        """Point Telegram at ``url``; updates sent elsewhere are dropped."""
        await self._call(
            "setWebhook",
            self.bot.set_webhook(
                url=url,
                secret_token=secret or None,
                allowed_updates=["message"],
                drop_pending_updates=False,
            ),
        )
        self._logger.info("Webhook registered at %s", url)

    async def _call(self, operation: str, request) -> None:
        try:
            ok = await request
        except TelegramAPIError as exc:
            self._logger.error("%s failed: %s", operation, exc)
            raise CollaboratorError(operation, str(exc)) from exc
        if ok is False:
            raise CollaboratorError(operation, "Telegram returned false")

    async def close(self) -> None:
        await self.bot.session.close()
