"""Questions, live-event questions and suggestions from members."""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from bot_core.commands import CommandKind
from bot_core.context import CommandContext
from bot_core.errors import BotError, ValidationError
from bot_core.registry import Handler
from bot_core.types import Reply
from modules.base import Module
from modules.submissions.storage import (
    DEFAULT_CONTEXT,
    SubmissionKind,
    SubmissionRecord,
    SubmissionStorage,
)


MAX_REPORT_LENGTH = 4000

ASK_USAGE = "Usage: `/ask How do I join Horizon Studio?`"
ASK_LIVE_USAGE = "Usage: `/asklive WAD25 How do you see AI impacting architecture?`"
SUGGEST_USAGE = "Usage: `/suggest We should have a portfolio review session.`"
SUBMISSION_FAILED = "Sorry, your submission could not be saved. Please try again later."
REPORT_TOO_LONG = "Report is too long for one message. Sending recent entries:"
NO_SUBMISSIONS = "No submissions found."


def utf16_length(text: str) -> int:
    """Length as Telegram counts it, in UTF-16 code units."""
    return len(text.encode("utf-16-le")) // 2


def truncate_utf16(text: str, limit: int) -> str:
    data = text.encode("utf-16-le")[: limit * 2]
    # drop a trailing high surrogate whose pair was cut off
    if len(data) >= 2 and 0xD800 <= int.from_bytes(data[-2:], "little") <= 0xDBFF:
        data = data[:-2]
    return data.decode("utf-16-le")


def render_report(submissions: Sequence[SubmissionRecord]) -> List[str]:
    """Return the messages that make up the submissions report."""
    if not submissions:
        return [NO_SUBMISSIONS]

    report = "📝 *All Community Submissions:*\n\n"
    for item in submissions:
        report += f"*{item.kind}* | Context: *{item.context}* \n> {item.text}\n\n"

    if utf16_length(report) > MAX_REPORT_LENGTH:
        return [REPORT_TOO_LONG, truncate_utf16(report, MAX_REPORT_LENGTH)]
    return [report]


class SubmissionsModule(Module):
    required_services = ("submission_storage",)

    submission_storage: SubmissionStorage

    def __init__(self) -> None:
        super().__init__("submissions", priority=40)
        self._logger = logging.getLogger(__name__)

    def handlers(self) -> Dict[CommandKind, Handler]:
        return {
            CommandKind.ASK: self.handle_ask,
            CommandKind.ASK_LIVE: self.handle_ask_live,
            CommandKind.SUGGEST: self.handle_suggest,
            CommandKind.SUBMISSIONS_REPORT: self.handle_report,
        }

    async def handle_ask(self, ctx: CommandContext) -> Reply:
        question = ctx.command.arg_string
        if not question:
            raise ValidationError(ASK_USAGE)
        return await self._submit(
            ctx,
            question,
            SubmissionKind.QUESTION,
            DEFAULT_CONTEXT,
            "Thanks! Your question has been submitted.",
        )

    async def handle_ask_live(self, ctx: CommandContext) -> Reply:
        event_code = ctx.command.first_arg().upper()
        question = ctx.command.rest_after_first()
        if not event_code or not question:
            raise ValidationError(ASK_LIVE_USAGE)
        return await self._submit(
            ctx,
            question,
            SubmissionKind.QUESTION,
            event_code,
            f"Thanks! Your question for event *{event_code}* has been submitted.",
        )

    async def handle_suggest(self, ctx: CommandContext) -> Reply:
        suggestion = ctx.command.arg_string
        if not suggestion:
            raise ValidationError(SUGGEST_USAGE)
        return await self._submit(
            ctx,
            suggestion,
            SubmissionKind.SUGGESTION,
            DEFAULT_CONTEXT,
            "Great idea! Your suggestion has been recorded.",
        )

    async def handle_report(self, ctx: CommandContext) -> List[Reply]:
        submissions = await self.submission_storage.list_all()
        self._logger.info("Sending submissions report with %s entries", len(submissions))
        return [ctx.reply(text) for text in render_report(submissions)]

    async def _submit(
        self,
        ctx: CommandContext,
        text: str,
        kind: SubmissionKind,
        context: str,
        acknowledgement: str,
    ) -> Reply:
        try:
            await self.submission_storage.record(ctx.sender.id, text, kind, context)
        except BotError as exc:
            # ConfigurationMissing or CollaboratorError
            self._logger.error("Airtable submission error: %s", exc)
            return ctx.reply(SUBMISSION_FAILED)
        return ctx.reply(acknowledgement)


def get_module(container=None) -> SubmissionsModule:
    return SubmissionsModule()
