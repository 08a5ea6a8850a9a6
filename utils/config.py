"""Configuration helpers for the Aether bot."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Iterable

from dotenv import find_dotenv, load_dotenv


DEFAULT_WEBHOOK_PATH = "/api/telegram-bot"


@dataclass(frozen=True)
class BotSettings:
    """Runtime settings loaded from the environment.

    Every field is optional at load time. Operations that need a missing
    value log an error and fall back to a safe default instead.
    """

    bot_token: str = ""
    airtable_api_key: str = ""
    airtable_base_id: str = ""
    members_table_id: str = ""
    events_table_id: str = ""
    submissions_table_id: str = ""
    super_admin_id: str = ""
    group_chat_id: str = ""
    announcement_channel_id: str = ""
    webhook_host: str = "0.0.0.0"
    webhook_port: int = 8080
    webhook_path: str = DEFAULT_WEBHOOK_PATH
    webhook_url: str = ""
    webhook_secret: str = ""
    request_timeout: float = 10.0
    log_level: str = "INFO"

    def is_super_admin(self, user_id: int) -> bool:
        admin_id = self.super_admin_id.strip()
        return bool(admin_id) and admin_id == str(user_id)

    def matches_admin_phrase(self, text: str) -> bool:
        admin_id = self.super_admin_id.strip()
        return bool(admin_id) and text.strip().upper() == admin_id.upper()

    def missing(self, names: Iterable[str]) -> list[str]:
        return [name for name in names if not getattr(self, name)]


def _load_env_file() -> None:
    """Load variables from a .env file when available."""

    env_file = find_dotenv(usecwd=True)
    if env_file:
        load_dotenv(env_file)
        logging.getLogger(__name__).debug("Loaded environment variables from %s", env_file)
    else:
        logging.getLogger(__name__).debug("No .env file discovered; using process environment")


def _env(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


def _env_number(name: str, default, cast):
    raw = _env(name)
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        raise RuntimeError(f"Environment variable {name} must be a number, got {raw!r}") from None


def load_settings() -> BotSettings:
    """Load settings from the environment (and a .env file, if one is found)."""

    _load_env_file()
    settings = BotSettings(
        bot_token=_env("TELEGRAM_BOT_TOKEN"),
        airtable_api_key=_env("AIRTABLE_API_KEY"),
        airtable_base_id=_env("AIRTABLE_BASE_ID"),
        members_table_id=_env("AIRTABLE_MEMBERS_TABLE_ID"),
        events_table_id=_env("AIRTABLE_EVENTS_TABLE_ID"),
        submissions_table_id=_env("AIRTABLE_QUESTIONS_TABLE_ID"),
        super_admin_id=_env("TELEGRAM_ADMIN_ID"),
        group_chat_id=_env("TELEGRAM_GROUP_CHAT_ID"),
        announcement_channel_id=_env("TELEGRAM_ANNOUNCEMENT_CHANNEL_ID"),
        webhook_host=_env("WEBHOOK_HOST", "0.0.0.0"),
        webhook_port=_env_number("PORT", 8080, int),
        webhook_path=_env("WEBHOOK_PATH", DEFAULT_WEBHOOK_PATH),
        webhook_url=_env("WEBHOOK_URL"),
        webhook_secret=_env("WEBHOOK_SECRET"),
        request_timeout=_env_number("REQUEST_TIMEOUT", 10.0, float),
        log_level=_env("LOG_LEVEL", "INFO").upper(),
    )

    missing = settings.missing(("bot_token", "airtable_api_key", "airtable_base_id"))
    if missing:
        logging.getLogger(__name__).warning(
            "Settings loaded with missing values: %s", ", ".join(sorted(missing))
        )
    return settings
