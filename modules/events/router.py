"""Event listing for members and event management for admins."""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Dict, Mapping, Optional, Sequence

from bot_core.commands import CommandKind
from bot_core.context import CommandContext
from bot_core.errors import CollaboratorError, ValidationError
from bot_core.interfaces import MessagingClient
from bot_core.registry import Handler
from bot_core.types import ActionResult, Reply
from modules.base import Module
from modules.events.storage import (
    FIELD_DATE,
    FIELD_DESCRIPTION,
    FIELD_PUBLISHED,
    FIELD_REGISTRATION_URL,
    FIELD_TITLE,
    EventRecord,
    EventStorage,
)
from utils.arg_parser import parse_args
from utils.config import BotSettings
from utils.time_utils import TimeUtils


REQUIRED_CREATE_FIELDS = ("title", "date", "code")

# updateevent key -> Airtable column
UPDATABLE_FIELDS = {
    "title": FIELD_TITLE,
    "date": FIELD_DATE,
    "description": FIELD_DESCRIPTION,
    "link": FIELD_REGISTRATION_URL,
}

NOT_CONFIGURED = "Airtable for events not configured."
NO_UPCOMING_EVENTS = "No upcoming events right now. Check back soon!"
NO_EVENTS = "No events found."
UPDATE_USAGE = 'Usage: `/updateevent <event_code> key="value" ...`'
CLOSE_USAGE = "Usage: `/closeevent <event_code>`"
REGISTRATIONS_USAGE = "Usage: `/registrations <event_code>`"


def render_upcoming_events(events: Sequence[EventRecord]) -> str:
    if not events:
        return NO_UPCOMING_EVENTS
    text = "📅 *Upcoming Events:*\n\n"
    for event in events:
        text += f"*{event.title}* (Code: `{event.event_code}`)\n"
        if event.registration_url:
            text += f"[Register Here]({event.registration_url})\n"
        text += "\n"
    return text


def event_status(event: EventRecord, today: date) -> str:
    if not event.published:
        return "Closed"
    event_date = TimeUtils.parse_calendar_date(event.date)
    if event_date is not None and event_date > today:
        return "Upcoming"
    return "Past"


def render_admin_events(events: Sequence[EventRecord], today: date) -> str:
    if not events:
        return NO_EVENTS
    text = "📋 *All Events:*\n\n"
    for event in events:
        text += (
            f"*{event.title}*\n"
            f"Code: `{event.event_code}` | Status: *{event_status(event, today)}*\n"
            f"Date: {event.date}\n\n"
        )
    return text


def render_announcement(event: EventRecord) -> str:
    text = f"📣 *New event:* {event.title}\nDate: {event.date}\nCode: `{event.event_code}`\n"
    if event.description:
        text += f"\n{event.description}\n"
    if event.registration_url:
        text += f"\n[Register Here]({event.registration_url})"
    return text


class EventsModule(Module):
    """Handle /events and the admin-only event management commands."""

    required_services = ("messenger", "settings", "event_storage")

    messenger: MessagingClient
    settings: BotSettings
    event_storage: EventStorage

    def __init__(self, today: Callable[[], date] = date.today) -> None:
        super().__init__("events", priority=30)
        self._today = today
        self._logger = logging.getLogger(__name__)

    def handlers(self) -> Dict[CommandKind, Handler]:
        return {
            CommandKind.EVENTS: self.handle_events,
            CommandKind.CREATE_EVENT: self.handle_create_event,
            CommandKind.UPDATE_EVENT: self.handle_update_event,
            CommandKind.CLOSE_EVENT: self.handle_close_event,
            CommandKind.LIST_EVENTS: self.handle_list_events,
            CommandKind.REGISTRATIONS: self.handle_registrations,
        }

    async def handle_events(self, ctx: CommandContext) -> Reply:
        events = await self.event_storage.list_upcoming()
        return ctx.reply(render_upcoming_events(events))

    async def handle_list_events(self, ctx: CommandContext) -> Reply:
        events = await self.event_storage.list_all()
        return ctx.reply(render_admin_events(events, self._today()), quote=True)

    async def handle_create_event(self, ctx: CommandContext) -> Reply:
        result = await self.create_event(parse_args(ctx.command.arg_string))
        return ctx.reply(result.message, quote=True)

    async def handle_update_event(self, ctx: CommandContext) -> Reply:
        event_code = ctx.command.first_arg()
        if not event_code:
            raise ValidationError(UPDATE_USAGE)
        result = await self.update_event(event_code, parse_args(ctx.command.rest_after_first()))
        return ctx.reply(result.message, quote=True)

    async def handle_close_event(self, ctx: CommandContext) -> Reply:
        event_code = ctx.command.first_arg()
        if not event_code:
            raise ValidationError(CLOSE_USAGE)
        result = await self.update_event(event_code, {"status": "closed"})
        return ctx.reply(result.message, quote=True)

    async def handle_registrations(self, ctx: CommandContext) -> Reply:
        event_code = ctx.command.first_arg()
        base_id = self.settings.airtable_base_id
        table_id = self.settings.events_table_id
        if not event_code or not base_id or not table_id:
            raise ValidationError(REGISTRATIONS_USAGE)
        code = event_code.upper()
        link = f"https://airtable.com/{base_id}/{table_id}?filter_EventCode={code}"
        return ctx.reply(f"View registrations for `{code}` in Airtable:\n\n{link}", quote=True)

    async def create_event(self, args: Mapping[str, str]) -> ActionResult:
        """Create a published event from title/date/code (+ description, link)."""
        for name in REQUIRED_CREATE_FIELDS:
            if not args.get(name):
                return ActionResult(
                    False,
                    f"Missing required field `{name}`. Please provide at least "
                    "`title`, `date` (YYYY-MM-DD), and `code`.",
                )

        if TimeUtils.parse_calendar_date(args["date"]) is None:
            return ActionResult(False, f"Invalid date `{args['date']}`. Use the format YYYY-MM-DD.")

        if not self.event_storage.ready:
            self._logger.error("Cannot create event: Airtable for events is not configured")
            return ActionResult(False, NOT_CONFIGURED)

        code = args["code"].upper()
        try:
            if await self.event_storage.find_by_code(code) is not None:
                return ActionResult(False, f"An event with code `{code}` already exists.")
            event = await self.event_storage.create(
                title=args["title"],
                date=args["date"].strip(),
                event_code=code,
                description=args.get("description", ""),
                registration_url=args.get("link", ""),
                published=True,
            )
        except CollaboratorError as exc:
            self._logger.error("Airtable create event error: %s", exc)
            return ActionResult(False, "Failed to create event in Airtable.")

        await self._announce(event)
        return ActionResult(True, f'✅ Event "{event.title}" created successfully with code `{code}`.')

    async def update_event(self, event_code: str, args: Mapping[str, str]) -> ActionResult:
        code = event_code.upper()
        fields = self._fields_to_update(args)
        if isinstance(fields, ActionResult):
            return fields
        if not fields:
            return ActionResult(False, "No fields provided to update.")

        if not self.event_storage.ready:
            self._logger.error("Cannot update event: Airtable for events is not configured")
            return ActionResult(False, NOT_CONFIGURED)

        try:
            event = await self.event_storage.find_by_code(code)
            if event is None:
                return ActionResult(False, f"Event with code `{code}` not found.")
            await self.event_storage.update(event.record_id, fields)
        except CollaboratorError as exc:
            self._logger.error("Airtable update event error: %s", exc)
            return ActionResult(False, "Failed to update event.")

        return ActionResult(True, f"✅ Event `{code}` updated successfully.")

    @staticmethod
    def _fields_to_update(args: Mapping[str, str]):
        fields = {}
        for key, column in UPDATABLE_FIELDS.items():
            if args.get(key):
                fields[column] = args[key]

        if FIELD_DATE in fields:
            if TimeUtils.parse_calendar_date(fields[FIELD_DATE]) is None:
                return ActionResult(False, f"Invalid date `{fields[FIELD_DATE]}`. Use the format YYYY-MM-DD.")
            fields[FIELD_DATE] = fields[FIELD_DATE].strip()

        status = (args.get("status") or "").strip().lower()
        if status == "closed":
            fields[FIELD_PUBLISHED] = False
        elif status == "open":
            fields[FIELD_PUBLISHED] = True
        return fields

    async def _announce(self, event: EventRecord) -> Optional[bool]:
        channel_id = self.settings.announcement_channel_id
        if not channel_id:
            return None
        sent = await self.messenger.send_text(channel_id, render_announcement(event))
        if not sent:
            self._logger.warning("Failed to announce event %s in %s", event.event_code, channel_id)
        return sent


def get_module(container=None) -> EventsModule:
    return EventsModule()
