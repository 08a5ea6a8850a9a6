"""Command interpretation, authorization and dispatch.

One call to :meth:`CommandRouter.handle` processes one inbound message to
completion. Nothing is kept between messages.
"""

from __future__ import annotations

import logging
from typing import List

from bot_core.commands import Command, CommandKind, CommandScope, CommandSpec, find_identity_code
from bot_core.context import CommandContext
from bot_core.errors import CollaboratorError, ValidationError
from bot_core.interfaces import MessagingClient
from bot_core.registry import CommandRegistry, HandlerResult
from bot_core.types import IncomingMessage, LinkButton, PrivilegeLevel, Reply
from modules.moderation.permission_check import PrivilegeResolver
from utils.config import BotSettings


REPLY_REQUIRED = "This command must be used as a reply to a user's message."
TARGET_IS_ADMIN = "This command cannot be used on an administrator."
PRIVATE_ONLY_REDIRECT = "To keep our chat clean, please use this command in a private message with me."
PRIVATE_CHAT_BUTTON = "Chat with Aether Bot"
UNKNOWN_COMMAND = "Sorry, I don't recognize that command."
ADMIN_AUTHENTICATED = "🔑 Admin authentication successful. Fetching all submissions..."
HELP_NUDGE = "Hi there! I can only respond to commands right now. Try `/start` to see your options."
GENERIC_FAILURE = "Something went wrong while processing your request. Please try again later."

# ban and mute refuse admin targets; unmute, unban and delete do not
TARGET_PROTECTED = frozenset({CommandKind.BAN, CommandKind.MUTE})


logger = logging.getLogger(__name__)


class CommandRouter:
    """Route a message to the handler registered for its command kind."""

    def __init__(
        self,
        registry: CommandRegistry,
        messenger: MessagingClient,
        resolver: PrivilegeResolver,
        settings: BotSettings,
    ) -> None:
        registry.ensure_complete()
        self.registry = registry
        self.messenger = messenger
        self.resolver = resolver
        self.settings = settings

    async def handle(self, message: IncomingMessage) -> None:
        command = Command.parse(message.text)
        if command is None:
            await self._handle_free_text(message)
            return

        ctx = self._context(message, command)
        spec = command.spec
        logger.info(
            "Dispatching %s (known=%s) for user_id=%s chat_id=%s chat_kind=%s",
            command.name,
            spec is not None,
            message.sender.id,
            message.chat.id,
            message.chat.kind.value,
        )

        if spec is None:
            await self._handle_unknown(ctx)
        elif spec.is_moderation:
            await self._handle_moderation(ctx, spec)
        elif spec.scope is CommandScope.PRIVATE_ONLY and not ctx.chat.is_private:
            await self._redirect_to_private(ctx)
        elif spec.is_admin_only:
            await self._handle_admin(ctx, spec)
        else:
            await self._run(ctx, spec.kind)

    async def _handle_moderation(self, ctx: CommandContext, spec: CommandSpec) -> None:
        if spec.scope is CommandScope.GROUP_ONLY and ctx.chat.is_private:
            logger.debug("Ignoring %s outside a group chat", ctx.command.name)
            return

        if await ctx.privilege() is not PrivilegeLevel.CHAT_ADMIN:
            # moderation commands stay invisible to non-admins
            logger.info("Ignoring %s from non-admin user_id=%s", ctx.command.name, ctx.sender.id)
            return

        target = ctx.target
        if target is None:
            await self._send(ctx, ctx.reply(REPLY_REQUIRED, quote=True))
            return

        if spec.kind in TARGET_PROTECTED and await self.resolver.is_privileged_target(ctx.chat, target):
            logger.info(
                "Refusing %s against admin user_id=%s in chat_id=%s",
                ctx.command.name,
                target.id,
                ctx.chat.id,
            )
            await self._send(ctx, ctx.reply(TARGET_IS_ADMIN, quote=True))
            return

        await self._run(ctx, spec.kind)

    async def _handle_admin(self, ctx: CommandContext, spec: CommandSpec) -> None:
        privilege = await ctx.privilege()
        if ctx.chat.is_private:
            allowed = privilege is PrivilegeLevel.SUPER_ADMIN
        else:
            allowed = privilege is PrivilegeLevel.CHAT_ADMIN

        if not allowed:
            logger.info("Ignoring %s from unprivileged user_id=%s", ctx.command.name, ctx.sender.id)
            return
        await self._run(ctx, spec.kind)

    async def _handle_unknown(self, ctx: CommandContext) -> None:
        if ctx.chat.is_private:
            await self._send(ctx, ctx.reply(UNKNOWN_COMMAND))
        else:
            logger.debug("Ignoring unknown command %s in chat_id=%s", ctx.command.name, ctx.chat.id)

    async def _redirect_to_private(self, ctx: CommandContext) -> None:
        keyboard = None
        try:
            identity = await self.messenger.get_self_identity()
            keyboard = [[LinkButton(PRIVATE_CHAT_BUTTON, f"https://t.me/{identity.username}")]]
        except CollaboratorError as exc:
            logger.warning("Could not fetch bot identity for private-chat link: %s", exc)
        await self._send(ctx, ctx.reply(PRIVATE_ONLY_REDIRECT, quote=True, keyboard=keyboard))

    async def _handle_free_text(self, message: IncomingMessage) -> None:
        text = message.text

        if self.settings.matches_admin_phrase(text):
            logger.info("Admin phrase received from user_id=%s chat_id=%s", message.sender.id, message.chat.id)
            ctx = self._context(message, Command(name=""))
            await self._send(ctx, ctx.reply(ADMIN_AUTHENTICATED))
            await self._run(ctx, CommandKind.SUBMISSIONS_REPORT)
            return

        code = find_identity_code(text)
        if code:
            logger.info("Implicit verification attempt from user_id=%s", message.sender.id)
            ctx = self._context(message, Command(name="/verify", raw_args=(code,), arg_string=code))
            await self._run(ctx, CommandKind.VERIFY)
            return

        if message.chat.is_private:
            ctx = self._context(message, Command(name=""))
            await self._send(ctx, ctx.reply(HELP_NUDGE))

    async def _run(self, ctx: CommandContext, kind: CommandKind) -> None:
        handler = self.registry.get(kind)
        if handler is None:
            # ensure_complete() at construction makes this unreachable
            raise RuntimeError(f"No handler registered for {kind.value}")

        try:
            result = await handler(ctx)
        except ValidationError as exc:
            result = ctx.reply(exc.message, quote=True)
        except CollaboratorError as exc:
            logger.error("Handler for %s failed: %s", kind.value, exc)
            result = ctx.reply(GENERIC_FAILURE)

        for reply in _as_replies(result):
            await self._send(ctx, reply)

    async def _send(self, ctx: CommandContext, reply: Reply) -> None:
        sent = await self.messenger.send_text(
            ctx.chat.id,
            reply.text,
            reply.reply_to_message_id,
            reply.keyboard,
        )
        if not sent:
            logger.warning("Reply to chat_id=%s was not delivered", ctx.chat.id)

    def _context(self, message: IncomingMessage, command: Command) -> CommandContext:
        return CommandContext(
            message=message,
            command=command,
            settings=self.settings,
            resolver=self.resolver,
        )


def _as_replies(result: HandlerResult) -> List[Reply]:
    if result is None:
        return []
    if isinstance(result, Reply):
        return [result]
    return list(result)
