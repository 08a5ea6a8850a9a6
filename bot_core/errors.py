"""Exception types shared by the router, handlers and collaborator clients."""

from __future__ import annotations


class BotError(Exception):
    """Base class for errors raised inside the bot."""


class ConfigurationMissing(BotError):
    """A credential or table identifier needed by an operation is not set."""

    def __init__(self, setting: str) -> None:
        super().__init__(f"Required setting '{setting}' is not configured")
        self.setting = setting


class CollaboratorError(BotError):
    """A call to Telegram or Airtable failed or returned an unexpected shape."""

    def __init__(self, operation: str, detail: str = "") -> None:
        message = f"{operation} failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.operation = operation
        self.detail = detail


class ValidationError(BotError):
    """Malformed command input; the message is shown to the user as-is."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


__all__ = [
    "BotError",
    "CollaboratorError",
    "ConfigurationMissing",
    "ValidationError",
]
