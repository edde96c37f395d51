import pytest

from app.core.errors import ConnectionAlreadyBound
from app.realtime.registry import ConnectionRegistry


@pytest.fixture
def registry():
    return ConnectionRegistry()


def test_presence_transitions_fire_once_per_edge(registry):
    assert registry.register("u", "c1") is True
    assert registry.register("u", "c2") is False

    assert registry.unregister("u", "c1") is False
    assert registry.is_online("u")

    assert registry.unregister("u", "c2") is True
    assert not registry.is_online("u")
    assert "u" not in registry.online_users()


def test_connections_for_is_a_snapshot(registry):
    registry.register("u", "c1")
    snapshot = registry.connections_for("u")
    registry.register("u", "c2")

    assert snapshot == ["c1"]
    assert registry.connections_for("u") == ["c1", "c2"]
    assert registry.connections_for("nobody") == []


def test_unregister_unknown_is_noop(registry):
    assert registry.unregister("ghost", "c1") is False
    registry.register("u", "c1")
    assert registry.unregister("u", "c-other") is False
    assert registry.connections_for("u") == ["c1"]


def test_connection_cannot_switch_owner_without_unregister(registry):
    registry.register("alice", "c1")
    with pytest.raises(ConnectionAlreadyBound):
        registry.register("bob", "c1")

    assert registry.owner_of("c1") == "alice"
    assert registry.connections_for("bob") == []

    registry.unregister("alice", "c1")
    assert registry.register("bob", "c1") is True
    assert registry.owner_of("c1") == "bob"


def test_register_same_connection_twice_is_idempotent(registry):
    assert registry.register("u", "c1") is True
    assert registry.register("u", "c1") is False
    assert registry.connections_for("u") == ["c1"]
    assert registry.unregister("u", "c1") is True


def test_unregister_connection_by_sid(registry):
    registry.register("u", "c1")
    registry.register("u", "c2")

    assert registry.unregister_connection("c1") == ("u", False)
    assert registry.unregister_connection("c2") == ("u", True)
    assert registry.unregister_connection("c2") == (None, False)


def test_clear_drops_everything(registry):
    registry.register("a", "c1")
    registry.register("b", "c2")
    registry.clear()

    assert registry.online_users() == []
    assert registry.owner_of("c1") is None
