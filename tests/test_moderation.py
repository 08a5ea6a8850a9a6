import pytest

from fakes import CHAT_ADMIN_ID, GROUP_ID, make_message
from modules.moderation.router import (
    FULL_PERMISSIONS,
    INVALID_DURATION,
    MUTED_PERMISSIONS,
    ModerationModule,
)

TARGET_ID = 6
NOW = 1_700_000_000


@pytest.fixture
def moderated_router(bot):
    # pin the mute clock for deterministic until timestamps
    module = next(m for m in bot.module_loader.loaded_modules if isinstance(m, ModerationModule))
    module._clock = lambda: NOW
    return bot.router


def admin_reply(text):
    return make_message(text, sender_id=CHAT_ADMIN_ID, reply_to_sender=TARGET_ID)


@pytest.mark.asyncio
async def test_ban_with_reason(router, messenger):
    await router.handle(admin_reply("/ban spamming links"))

    assert messenger.calls_named("ban_member") == [("ban_member", GROUP_ID, TARGET_ID)]
    assert messenger.texts == ["User has been banned. Reason: spamming links"]


@pytest.mark.asyncio
async def test_ban_failure(router, messenger):
    messenger.failing.add("ban_member")
    await router.handle(admin_reply("/ban"))

    assert messenger.texts == ["Failed to ban user."]


@pytest.mark.asyncio
async def test_mute_without_duration_is_rejected(router, messenger):
    await router.handle(admin_reply("/mute"))

    assert messenger.texts == [INVALID_DURATION]
    assert messenger.calls_named("restrict_member") == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "text, seconds, confirmation",
    [
        ("/mute 2h", 7200, "User has been muted for 2 hours."),
        ("/mute 3d flooding", 259200, "User has been muted for 3 days. Reason: flooding"),
        ("/mute 30m", 1800, "User has been muted for 30 minutes."),
    ],
)
async def test_mute_restricts_until_epoch_seconds(moderated_router, messenger, text, seconds, confirmation):
    await moderated_router.handle(admin_reply(text))

    assert messenger.calls_named("restrict_member") == [
        ("restrict_member", GROUP_ID, TARGET_ID, MUTED_PERMISSIONS, NOW + seconds)
    ]
    assert messenger.texts == [confirmation]


@pytest.mark.asyncio
async def test_mute_failure_sends_no_confirmation(router, messenger):
    messenger.failing.add("restrict_member")
    await router.handle(admin_reply("/mute 1h"))

    assert messenger.texts == ["Failed to mute user."]


@pytest.mark.asyncio
async def test_unmute_restores_full_permissions(router, messenger):
    await router.handle(admin_reply("/unmute"))

    assert messenger.calls_named("restrict_member") == [
        ("restrict_member", GROUP_ID, TARGET_ID, FULL_PERMISSIONS, None)
    ]
    assert messenger.texts == ["User has been unmuted."]


@pytest.mark.asyncio
async def test_unban(router, messenger):
    await router.handle(admin_reply("/unban"))

    assert messenger.calls_named("unban_member") == [("unban_member", GROUP_ID, TARGET_ID)]
    assert messenger.texts == ["User has been unbanned."]


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["/del", "/delete"])
async def test_delete_removes_both_messages_silently(router, messenger, text):
    message = admin_reply(text)
    await router.handle(message)

    deleted = {call[2] for call in messenger.calls_named("delete_message")}
    assert deleted == {message.id, message.replied_to.id}
    assert messenger.sent == []


@pytest.mark.asyncio
async def test_delete_failure_on_target_is_reported(router, messenger):
    message = admin_reply("/del")
    messenger.failing_deletes.add(message.replied_to.id)
    await router.handle(message)

    assert messenger.texts == ["Failed to delete message."]
    assert len(messenger.calls_named("delete_message")) == 2


@pytest.mark.asyncio
async def test_delete_failure_on_command_only_is_logged(router, messenger):
    message = admin_reply("/del")
    messenger.failing_deletes.add(message.id)
    await router.handle(message)

    assert messenger.sent == []
