import pytest

from app.realtime.presence import PresenceNotifier
from app.realtime.registry import ConnectionRegistry
from conftest import RecordingEmitter


@pytest.fixture
def emitter():
    return RecordingEmitter()


@pytest.fixture
def presence(emitter):
    return PresenceNotifier(ConnectionRegistry(), emitter)


@pytest.mark.asyncio
async def test_online_broadcast_only_on_first_connection(presence, emitter):
    await presence.connect("bob", "b1")
    emitter.clear()

    assert await presence.connect("alice", "a1") is True
    assert emitter.sent("user-online") == [{"userId": "alice"}]
    assert emitter.targets("user-online") == ["b1"]

    emitter.clear()
    assert await presence.connect("alice", "a2") is False
    assert emitter.sent("user-online") == []


@pytest.mark.asyncio
async def test_offline_broadcast_only_on_last_connection(presence, emitter):
    await presence.connect("bob", "b1")
    await presence.connect("alice", "a1")
    await presence.connect("alice", "a2")
    emitter.clear()

    assert await presence.disconnect("a1") == "alice"
    assert emitter.sent("user-offline") == []

    assert await presence.disconnect("a2") == "alice"
    assert emitter.sent("user-offline") == [{"userId": "alice"}]
    assert emitter.targets("user-offline") == ["b1"]


@pytest.mark.asyncio
async def test_user_is_not_told_about_itself(presence, emitter):
    await presence.connect("alice", "a1")
    await presence.connect("alice", "a2")

    assert emitter.sent("user-online") == []


@pytest.mark.asyncio
async def test_joiner_receives_online_users(presence, emitter):
    await presence.connect("bob", "b1")
    await presence.connect("carol", "c1")
    await presence.connect("alice", "a1")

    assert emitter.sent("online-users", to="a1") == [{"userIds": ["bob", "carol"]}]


@pytest.mark.asyncio
async def test_disconnect_unknown_sid_is_noop(presence, emitter):
    assert await presence.disconnect("never-joined") is None
    assert emitter.events == []


@pytest.mark.asyncio
async def test_typing_is_passed_through_to_receiver(presence, emitter):
    await presence.connect("bob", "b1")
    await presence.connect("bob", "b2")
    await presence.connect("alice", "a1")
    emitter.clear()

    assert await presence.typing("alice", "bob") == 2
    assert await presence.stop_typing("alice", "bob") == 2
    assert emitter.targets("user-typing") == ["b1", "b2"]
    assert emitter.sent("user-typing") == [{"userId": "alice"}] * 2
    assert emitter.sent("user-stop-typing", to="b1") == [{"userId": "alice"}]


@pytest.mark.asyncio
async def test_typing_to_offline_user_sends_nothing(presence, emitter):
    assert await presence.typing("alice", "bob") == 0
    assert emitter.events == []
