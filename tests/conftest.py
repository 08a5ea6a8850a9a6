from pathlib import Path
import sys

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from bot_core.bot import AetherBot
from fakes import (
    CHAT_ADMIN_ID,
    EVENTS_TABLE,
    GROUP_ID,
    MEMBERS_TABLE,
    SUBMISSIONS_TABLE,
    SUPER_ADMIN_ID,
    FakeDatastore,
    FakeMessenger,
)
from utils.config import BotSettings


@pytest.fixture
def settings():
    return BotSettings(
        bot_token="123:test-token",
        airtable_api_key="key",
        airtable_base_id="appBase",
        members_table_id=MEMBERS_TABLE,
        events_table_id=EVENTS_TABLE,
        submissions_table_id=SUBMISSIONS_TABLE,
        super_admin_id=str(SUPER_ADMIN_ID),
        group_chat_id=str(GROUP_ID),
    )


@pytest.fixture
def messenger():
    fake = FakeMessenger()
    fake.set_status(GROUP_ID, CHAT_ADMIN_ID, "administrator")
    return fake


@pytest.fixture
def datastore():
    return FakeDatastore()


@pytest.fixture
def bot(settings, messenger, datastore):
    return AetherBot(settings, messenger=messenger, datastore=datastore)


@pytest.fixture
def router(bot):
    return bot.router
