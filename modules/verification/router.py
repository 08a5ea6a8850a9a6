"""Onboarding: /start and identity-code verification."""

from __future__ import annotations

import logging
from typing import Dict

from bot_core.commands import CommandKind, is_identity_code
from bot_core.context import CommandContext
from bot_core.interfaces import MessagingClient
from bot_core.registry import Handler
from bot_core.types import LinkButton, Reply
from modules.base import Module
from modules.verification.storage import MemberStorage
from utils.config import BotSettings


WELCOME = (
    "Welcome to the Aether Bot! Please verify your identity by sending your "
    "Aether ID (e.g., `AETH-XX12`)."
)
MISSING_CODE = "Please provide your Aether ID."
CODE_FORMAT_HINT = "Please provide your Aether ID in the format `AETH-XX12` or `AETHADM-XXXXXX`."
VERIFICATION_FAILED = (
    "❌ Verification failed. Please check your Aether ID and try again. "
    "You can get your ID by joining at aether.build/join."
)
JOIN_GROUP_BUTTON = "Join the Community Group"

CAPABILITIES = (
    "*Here's what you can do:*\n\n"
    "/events - View upcoming events.\n"
    "/ask [your question] - Ask a general question to the community.\n"
    "/asklive [event_code] [your question] - Ask a question during a live event.\n"
    "/suggest [your idea] - Submit a suggestion."
)


def render_verified(full_name: str) -> str:
    return f"✅ Verification successful! Welcome, {full_name}.\n\n{CAPABILITIES}"


class VerificationModule(Module):
    """Welcome new users and verify them against the members table."""

    required_services = ("messenger", "settings", "member_storage")

    messenger: MessagingClient
    settings: BotSettings
    member_storage: MemberStorage

    def __init__(self) -> None:
        super().__init__("verification", priority=10)
        self._logger = logging.getLogger(__name__)

    def handlers(self) -> Dict[CommandKind, Handler]:
        return {
            CommandKind.START: self.handle_start,
            CommandKind.VERIFY: self.handle_verify,
        }

    async def handle_start(self, ctx: CommandContext) -> Reply:
        return ctx.reply(WELCOME)

    async def handle_verify(self, ctx: CommandContext) -> Reply:
        code = ctx.command.first_arg()
        if not code:
            return ctx.reply(MISSING_CODE)
        if not is_identity_code(code):
            return ctx.reply(CODE_FORMAT_HINT)

        member = await self.member_storage.find_by_identity_code(code)
        if member is None or not member.full_name:
            self._logger.info("Verification failed for user_id=%s", ctx.sender.id)
            return ctx.reply(VERIFICATION_FAILED)

        self._logger.info("Verified user_id=%s as member %s", ctx.sender.id, member.record_id)
        keyboard = None
        group_chat_id = self.settings.group_chat_id
        if group_chat_id:
            invite_link = await self.messenger.create_single_use_invite(group_chat_id)
            if invite_link:
                keyboard = [[LinkButton(JOIN_GROUP_BUTTON, invite_link)]]
        return ctx.reply(render_verified(member.full_name), keyboard=keyboard)


def get_module(container=None) -> VerificationModule:
    return VerificationModule()
