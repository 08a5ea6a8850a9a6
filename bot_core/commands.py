"""Command vocabulary: the closed set of commands the bot understands."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


# "AETH-XX12", "aeth1234": fixed prefix, optional hyphen, 4+ alphanumerics
IDENTITY_CODE_PATTERN = re.compile(r"AETH-?[A-Z0-9]{4,}", re.IGNORECASE)


class CommandScope(str, Enum):
    ANY_CHAT = "any"
    GROUP_ONLY = "group"
    PRIVATE_ONLY = "private"


class CommandAccess(str, Enum):
    PUBLIC = "public"
    # group admins only; invisible to everybody else
    MODERATOR = "moderator"
    # group admins in groups, the configured super admin in private chats
    ADMIN = "admin"


class CommandKind(str, Enum):
    START = "start"
    VERIFY = "verify"
    EVENTS = "events"
    ASK = "ask"
    ASK_LIVE = "asklive"
    SUGGEST = "suggest"
    BAN = "ban"
    MUTE = "mute"
    UNMUTE = "unmute"
    UNBAN = "unban"
    DELETE = "delete"
    CREATE_EVENT = "createevent"
    UPDATE_EVENT = "updateevent"
    CLOSE_EVENT = "closeevent"
    LIST_EVENTS = "listevents"
    REGISTRATIONS = "registrations"
    # not reachable through a slash command; triggered by the admin phrase
    SUBMISSIONS_REPORT = "submissions_report"


@dataclass(frozen=True)
class CommandSpec:
    kind: CommandKind
    names: Tuple[str, ...]
    scope: CommandScope = CommandScope.ANY_CHAT
    access: CommandAccess = CommandAccess.PUBLIC

    @property
    def is_moderation(self) -> bool:
        return self.access is CommandAccess.MODERATOR

    @property
    def is_admin_only(self) -> bool:
        return self.access is CommandAccess.ADMIN


COMMAND_SPECS: Tuple[CommandSpec, ...] = (
    CommandSpec(CommandKind.START, ("/start",)),
    CommandSpec(CommandKind.VERIFY, ("/verify",)),
    CommandSpec(CommandKind.EVENTS, ("/events",), scope=CommandScope.PRIVATE_ONLY),
    CommandSpec(CommandKind.ASK, ("/ask",), scope=CommandScope.PRIVATE_ONLY),
    CommandSpec(CommandKind.ASK_LIVE, ("/asklive",), scope=CommandScope.PRIVATE_ONLY),
    CommandSpec(CommandKind.SUGGEST, ("/suggest",), scope=CommandScope.PRIVATE_ONLY),
    CommandSpec(CommandKind.BAN, ("/ban",), CommandScope.GROUP_ONLY, CommandAccess.MODERATOR),
    CommandSpec(CommandKind.MUTE, ("/mute",), CommandScope.GROUP_ONLY, CommandAccess.MODERATOR),
    CommandSpec(CommandKind.UNMUTE, ("/unmute",), CommandScope.GROUP_ONLY, CommandAccess.MODERATOR),
    CommandSpec(CommandKind.UNBAN, ("/unban",), CommandScope.GROUP_ONLY, CommandAccess.MODERATOR),
    CommandSpec(CommandKind.DELETE, ("/del", "/delete"), CommandScope.GROUP_ONLY, CommandAccess.MODERATOR),
    CommandSpec(CommandKind.CREATE_EVENT, ("/createevent",), access=CommandAccess.ADMIN),
    CommandSpec(CommandKind.UPDATE_EVENT, ("/updateevent",), access=CommandAccess.ADMIN),
    CommandSpec(CommandKind.CLOSE_EVENT, ("/closeevent",), access=CommandAccess.ADMIN),
    CommandSpec(CommandKind.LIST_EVENTS, ("/listevents",), access=CommandAccess.ADMIN),
    CommandSpec(CommandKind.REGISTRATIONS, ("/registrations",), access=CommandAccess.ADMIN),
    CommandSpec(CommandKind.SUBMISSIONS_REPORT, (), access=CommandAccess.ADMIN),
)

_SPECS_BY_NAME: Dict[str, CommandSpec] = {
    name: spec for spec in COMMAND_SPECS for name in spec.names
}


def lookup(name: str) -> Optional[CommandSpec]:
    """Case-sensitive lookup of a command token such as ``/ban``."""
    return _SPECS_BY_NAME.get(name)


def _normalise_command_name(token: str) -> str:
    # "/ban@aether_bot" -> "/ban"; Telegram appends the bot name in groups
    if "@" in token:
        token = token.split("@", 1)[0]
    return token


@dataclass(frozen=True)
class Command:
    name: str
    raw_args: Tuple[str, ...] = ()
    arg_string: str = ""

    @classmethod
    def parse(cls, text: Optional[str]) -> Optional["Command"]:
        """Split ``/name arg1 arg2`` into its parts; ``None`` unless text starts with '/'."""

        if not text or not text.startswith("/"):
            return None
        parts = text.split(maxsplit=1)
        name = _normalise_command_name(parts[0])
        arg_string = parts[1].strip() if len(parts) > 1 else ""
        command = cls(name=name, raw_args=tuple(arg_string.split()), arg_string=arg_string)
        logging.debug("Parsed command %s with %s argument(s)", command.name, len(command.raw_args))
        return command

    @property
    def spec(self) -> Optional[CommandSpec]:
        return lookup(self.name)

    def first_arg(self) -> str:
        return self.raw_args[0] if self.raw_args else ""

    def rest_after_first(self) -> str:
        """Argument text with the first token removed, original spacing kept."""
        if not self.raw_args:
            return ""
        parts = self.arg_string.split(maxsplit=1)
        return parts[1].strip() if len(parts) > 1 else ""


def is_identity_code(code: str) -> bool:
    return bool(code) and IDENTITY_CODE_PATTERN.fullmatch(code.strip()) is not None


def find_identity_code(text: str) -> Optional[str]:
    """Return the first identity code embedded in free text, if any."""
    match = IDENTITY_CODE_PATTERN.search(text or "")
    return match.group(0) if match else None


__all__ = [
    "COMMAND_SPECS",
    "Command",
    "CommandAccess",
    "CommandKind",
    "CommandScope",
    "CommandSpec",
    "IDENTITY_CODE_PATTERN",
    "find_identity_code",
    "is_identity_code",
    "lookup",
]
