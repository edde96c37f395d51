import pytest

from app.realtime.events import ChatSocketHandlers


class FakeSocketServer:
    def __init__(self):
        self.handlers = {}

    def on(self, event, handler=None, namespace=None):
        self.handlers[event] = handler


@pytest.fixture
def handlers(services, emitter):
    return ChatSocketHandlers(services, emitter)


def test_bind_registers_each_event_once(handlers):
    sio = FakeSocketServer()
    handlers.bind(sio)

    assert set(sio.handlers) == {
        "connect", "disconnect", "join", "send-message", "user-typing",
        "user-stop-typing", "load-messages", "*",
    }
    assert sio.handlers["send-message"] == handlers.on_send_message


@pytest.mark.asyncio
async def test_join_binds_connection(handlers, services, emitter):
    await handlers.on_connect("s1", {})
    await handlers.on_join("s1", {"userId": "alice"})

    assert services.registry.owner_of("s1") == "alice"
    assert emitter.sent("online-users", to="s1") == [{"userIds": []}]


@pytest.mark.asyncio
async def test_join_accepts_bare_user_id(handlers, services):
    await handlers.on_join("s1", "alice")
    assert services.registry.owner_of("s1") == "alice"


@pytest.mark.asyncio
async def test_join_without_user_id_is_rejected(handlers, services, emitter):
    await handlers.on_join("s1", {})

    assert services.registry.owner_of("s1") is None
    assert emitter.sent("error", to="s1")[0]["code"] == "NotAuthenticated"


@pytest.mark.asyncio
async def test_rejoin_as_other_user_rebinds(handlers, services, emitter):
    await handlers.on_join("b1", "bob")
    await handlers.on_join("s1", "alice")
    await handlers.on_join("s1", "carol")

    assert services.registry.owner_of("s1") == "carol"
    assert not services.registry.is_online("alice")
    assert {"userId": "alice"} in emitter.sent("user-offline", to="b1")


@pytest.mark.asyncio
async def test_send_before_join_is_not_authenticated(handlers, emitter, store):
    await handlers.on_send_message("s1", {"receiverId": "bob", "text": "hi"})

    assert emitter.sent("error", to="s1")[0]["code"] == "NotAuthenticated"
    assert await store.get("chats") is None


@pytest.mark.asyncio
async def test_send_message_round_trip(handlers, services, emitter, alice_and_bob):
    await handlers.on_join("a1", "alice")
    await handlers.on_join("b1", "bob")
    emitter.clear()

    await handlers.on_send_message("a1", {"receiverId": "bob", "text": "hi"})

    assert emitter.targets("message-received") == ["b1"]
    assert emitter.targets("message-sent") == ["a1"]
    assert emitter.targets("chat-updated") == ["a1", "b1"]

    chat_id = emitter.sent("message-sent")[0]["chatId"]
    await handlers.on_send_message("b1", {"receiverId": "alice", "text": "hello", "chatId": chat_id})

    await handlers.on_load_messages("a1", {"userId": "bob"})
    loaded = emitter.sent("messages-loaded", to="a1")[0]
    assert loaded["userId"] == "bob"
    assert [m["text"] for m in loaded["messages"]] == ["hi", "hello"]


@pytest.mark.asyncio
async def test_send_errors_go_to_sender_only(handlers, emitter):
    await handlers.on_join("a1", "alice")
    await handlers.on_join("b1", "bob")
    emitter.clear()

    await handlers.on_send_message("a1", {"receiverId": "alice", "text": "me"})
    await handlers.on_send_message("a1", {"receiverId": "bob", "text": "  "})
    await handlers.on_send_message("a1", {"receiverId": "bob", "text": 5})

    errors = emitter.sent("error")
    assert [e["code"] for e in errors] == ["InvalidParticipants", "EmptyMessage", "InvalidMessage"]
    assert emitter.targets("error") == ["a1", "a1", "a1"]


@pytest.mark.asyncio
async def test_typing_events(handlers, emitter):
    await handlers.on_join("a1", "alice")
    await handlers.on_join("b1", "bob")
    emitter.clear()

    await handlers.on_typing("a1", {"receiverId": "bob"})
    await handlers.on_stop_typing("a1", {"receiverId": "bob"})

    assert emitter.sent("user-typing", to="b1") == [{"userId": "alice"}]
    assert emitter.sent("user-stop-typing", to="b1") == [{"userId": "alice"}]


@pytest.mark.asyncio
async def test_load_messages_with_no_chat(handlers, emitter):
    await handlers.on_join("a1", "alice")
    await handlers.on_load_messages("a1", {"userId": "bob"})

    assert emitter.sent("messages-loaded", to="a1") == [{"userId": "bob", "messages": []}]


@pytest.mark.asyncio
async def test_disconnect_marks_user_offline(handlers, services, emitter):
    await handlers.on_join("a1", "alice")
    await handlers.on_join("b1", "bob")

    await handlers.on_disconnect("a1")

    assert not services.registry.is_online("alice")
    assert emitter.sent("user-offline", to="b1") == [{"userId": "alice"}]


@pytest.mark.asyncio
async def test_unknown_event_is_ignored(handlers, emitter):
    await handlers.on_unknown_event("dance", "a1", {"x": 1})
    assert emitter.events == []
