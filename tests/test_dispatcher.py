import pytest

from bot_core.commands import CommandKind
from bot_core.dispatcher import (
    ADMIN_AUTHENTICATED,
    GENERIC_FAILURE,
    HELP_NUDGE,
    PRIVATE_CHAT_BUTTON,
    PRIVATE_ONLY_REDIRECT,
    REPLY_REQUIRED,
    TARGET_IS_ADMIN,
    UNKNOWN_COMMAND,
    CommandRouter,
)
from bot_core.errors import CollaboratorError, ValidationError
from bot_core.registry import CommandRegistry
from bot_core.types import ChatKind
from fakes import (
    CHAT_ADMIN_ID,
    EVENTS_TABLE,
    GROUP_ID,
    SUBMISSIONS_TABLE,
    SUPER_ADMIN_ID,
    make_message,
)
from modules.moderation.permission_check import PrivilegeResolver
from modules.verification.router import VERIFICATION_FAILED


MUTATIONS = ("ban_member", "unban_member", "restrict_member", "delete_message")

MODERATION_TEXTS = ["/ban spam", "/mute 1h", "/unmute", "/unban", "/del", "/delete"]


def mutation_calls(messenger):
    return [call for call in messenger.calls if call[0] in MUTATIONS]


@pytest.mark.asyncio
@pytest.mark.parametrize("text", MODERATION_TEXTS)
@pytest.mark.parametrize("status", ["member", "restricted", "left", "kicked"])
async def test_moderation_is_silent_for_non_admins(router, messenger, text, status):
    messenger.set_status(GROUP_ID, 5, status)
    await router.handle(make_message(text, sender_id=5, reply_to_sender=6))

    assert messenger.sent == []
    assert mutation_calls(messenger) == []


@pytest.mark.asyncio
@pytest.mark.parametrize("text", MODERATION_TEXTS)
async def test_moderation_is_silent_in_private_chats(router, messenger, text):
    await router.handle(make_message(text, sender_id=SUPER_ADMIN_ID, kind=ChatKind.PRIVATE))

    assert messenger.sent == []
    assert mutation_calls(messenger) == []


@pytest.mark.asyncio
@pytest.mark.parametrize("text", MODERATION_TEXTS)
async def test_moderation_requires_a_replied_to_message(router, messenger, text):
    message = make_message(text, sender_id=CHAT_ADMIN_ID)
    await router.handle(message)

    assert messenger.texts == [REPLY_REQUIRED]
    assert messenger.sent[0]["reply_to_message_id"] == message.id
    assert mutation_calls(messenger) == []


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["/ban", "/mute 1h"])
@pytest.mark.parametrize("target", [CHAT_ADMIN_ID, SUPER_ADMIN_ID, 43])
async def test_ban_and_mute_refuse_admin_targets(router, messenger, text, target):
    messenger.set_status(GROUP_ID, 43, "creator")
    await router.handle(make_message(text, sender_id=CHAT_ADMIN_ID, reply_to_sender=target))

    assert messenger.texts == [TARGET_IS_ADMIN]
    assert mutation_calls(messenger) == []


@pytest.mark.asyncio
async def test_unmute_is_allowed_on_admin_targets(router, messenger):
    messenger.set_status(GROUP_ID, 43, "administrator")
    await router.handle(make_message("/unmute", sender_id=CHAT_ADMIN_ID, reply_to_sender=43))

    assert messenger.texts == ["User has been unmuted."]
    assert len(messenger.calls_named("restrict_member")) == 1


@pytest.mark.asyncio
async def test_sender_privilege_is_resolved_once_per_message(router, messenger):
    await router.handle(make_message("/ban", sender_id=CHAT_ADMIN_ID, reply_to_sender=6))

    lookups = messenger.calls_named("get_member_status")
    assert lookups == [
        ("get_member_status", GROUP_ID, CHAT_ADMIN_ID),
        ("get_member_status", GROUP_ID, 6),
    ]
    assert messenger.texts == ["User has been banned."]


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["/events", "/ask Why?", "/asklive DW25 Why?", "/suggest More pizza"])
async def test_private_only_commands_redirect_from_groups(router, messenger, datastore, text):
    message = make_message(text, sender_id=5)
    await router.handle(message)

    assert len(messenger.sent) == 1
    reply = messenger.sent[0]
    assert reply["text"] == PRIVATE_ONLY_REDIRECT
    assert reply["reply_to_message_id"] == message.id
    button = reply["keyboard"][0][0]
    assert button.text == PRIVATE_CHAT_BUTTON
    assert button.url == "https://t.me/aether_bot"
    assert datastore.calls == []


@pytest.mark.asyncio
async def test_redirect_without_button_when_identity_unavailable(router, messenger):
    messenger.failing.add("get_self_identity")
    await router.handle(make_message("/events", sender_id=5))

    assert messenger.texts == [PRIVATE_ONLY_REDIRECT]
    assert messenger.sent[0]["keyboard"] is None


@pytest.mark.asyncio
async def test_unknown_command_replies_only_in_private(router, messenger):
    await router.handle(make_message("/dance", sender_id=5))
    assert messenger.sent == []

    await router.handle(make_message("/dance", sender_id=5, kind=ChatKind.PRIVATE))
    assert messenger.texts == [UNKNOWN_COMMAND]


@pytest.mark.asyncio
async def test_admin_commands_in_private_need_super_admin(router, messenger, datastore):
    await router.handle(make_message("/listevents", sender_id=5, kind=ChatKind.PRIVATE))
    assert messenger.sent == []
    assert datastore.calls == []

    await router.handle(make_message("/listevents", sender_id=SUPER_ADMIN_ID, kind=ChatKind.PRIVATE))
    assert messenger.texts == ["No events found."]


@pytest.mark.asyncio
async def test_admin_commands_in_groups_need_chat_admin(router, messenger, datastore):
    await router.handle(make_message("/listevents", sender_id=5))
    assert messenger.sent == []

    await router.handle(make_message("/listevents", sender_id=CHAT_ADMIN_ID))
    assert messenger.texts == ["No events found."]
    assert datastore.calls_named("find_all")[0][1] == EVENTS_TABLE


@pytest.mark.asyncio
@pytest.mark.parametrize("kind", [ChatKind.PRIVATE, ChatKind.GROUP])
async def test_admin_phrase_sends_confirmation_then_report(router, messenger, datastore, kind):
    datastore.add(
        SUBMISSIONS_TABLE,
        {"Submission": "When is demo day?", "Type": "Questions", "Context": "General"},
    )
    await router.handle(make_message(str(SUPER_ADMIN_ID), sender_id=9, kind=kind))

    assert messenger.texts[0] == ADMIN_AUTHENTICATED
    assert "When is demo day?" in messenger.texts[1]
    assert len(messenger.sent) == 2


@pytest.mark.asyncio
async def test_identity_code_in_free_text_runs_verification(router, messenger, datastore):
    await router.handle(make_message("AETH-1234", sender_id=5, kind=ChatKind.PRIVATE))

    assert messenger.texts == [VERIFICATION_FAILED]
    assert messenger.calls_named("create_single_use_invite") == []
    assert datastore.calls_named("find_one")[0][2] == 'UPPER({aetherId}) = "AETH-1234"'


@pytest.mark.asyncio
async def test_plain_text_gets_nudge_only_in_private(router, messenger):
    await router.handle(make_message("hello", sender_id=5))
    assert messenger.sent == []

    await router.handle(make_message("hello", sender_id=5, kind=ChatKind.PRIVATE))
    assert messenger.texts == [HELP_NUDGE]
    assert "`/start`" in HELP_NUDGE


def _complete_registry(**overrides):
    async def noop(ctx):
        return None

    registry = CommandRegistry()
    for kind in CommandKind:
        registry.add(kind, overrides.get(kind.name, noop), owner="test")
    return registry


def test_router_refuses_incomplete_registry(messenger, settings):
    registry = CommandRegistry()
    with pytest.raises(RuntimeError):
        CommandRouter(registry, messenger, PrivilegeResolver(messenger, settings), settings)


def test_registry_rejects_duplicate_handlers():
    registry = _complete_registry()
    with pytest.raises(ValueError):
        registry.add(CommandKind.START, lambda ctx: None, owner="again")


@pytest.mark.asyncio
async def test_collaborator_failure_becomes_generic_reply(messenger, settings):
    async def broken(ctx):
        raise CollaboratorError("airtable GET", "HTTP 500")

    registry = _complete_registry(START=broken)
    router = CommandRouter(registry, messenger, PrivilegeResolver(messenger, settings), settings)
    await router.handle(make_message("/start", sender_id=5, kind=ChatKind.PRIVATE))

    assert messenger.texts == [GENERIC_FAILURE]


@pytest.mark.asyncio
async def test_validation_error_becomes_quoted_usage_reply(messenger, settings):
    async def strict(ctx):
        raise ValidationError("Usage: `/start`")

    registry = _complete_registry(START=strict)
    router = CommandRouter(registry, messenger, PrivilegeResolver(messenger, settings), settings)
    message = make_message("/start", sender_id=5, kind=ChatKind.PRIVATE)
    await router.handle(message)

    assert messenger.texts == ["Usage: `/start`"]
    assert messenger.sent[0]["reply_to_message_id"] == message.id
