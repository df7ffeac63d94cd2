import pytest

from services.session_registry import Connection, ConnectionState, SessionRegistry


def _active(user_id: str) -> Connection:
    conn = Connection()
    conn.authenticate(user_id)
    conn.activate()
    return conn


def test_connection_lifecycle() -> None:
    conn = Connection("c1")
    assert conn.state is ConnectionState.CONNECTING
    conn.authenticate("alice")
    assert conn.user_id == "alice"
    assert conn.state is ConnectionState.AUTHENTICATED
    conn.activate()
    assert conn.is_active
    conn.close()
    assert conn.state is ConnectionState.DISCONNECTED
    assert not conn.is_active


def test_connection_rejects_out_of_order_transitions() -> None:
    conn = Connection()
    with pytest.raises(RuntimeError):
        conn.activate()
    conn.authenticate("alice")
    with pytest.raises(RuntimeError):
        conn.authenticate("bob")


def test_send_queues_event_and_drain_returns_in_order() -> None:
    conn = _active("alice")
    assert conn.send("typing", {"from": "bob"})
    assert conn.send("stop-typing", {"from": "bob"})
    assert conn.drain() == [
        {"event": "typing", "data": {"from": "bob"}},
        {"event": "stop-typing", "data": {"from": "bob"}},
    ]
    assert conn.drain() == []


def test_send_drops_oldest_when_full() -> None:
    conn = Connection(queue_size=2)
    conn.send("a", {})
    conn.send("b", {})
    conn.send("c", {})
    assert [m["event"] for m in conn.drain()] == ["b", "c"]


def test_send_after_close_returns_false() -> None:
    conn = _active("alice")
    conn.close()
    assert conn.send("typing", {}) is False
    assert conn.drain() == []


@pytest.mark.asyncio
async def test_next_message_awaits_queued_event() -> None:
    conn = _active("alice")
    conn.send("moderation-result", {"videoId": "v1"})
    assert await conn.next_message() == {"event": "moderation-result", "data": {"videoId": "v1"}}


def test_register_and_lookup() -> None:
    registry = SessionRegistry()
    conn = _active("alice")
    assert registry.register("alice", conn) is None
    assert registry.get("alice") is conn
    assert "alice" in registry
    assert len(registry) == 1
    assert registry.get("bob") is None


def test_last_connect_wins() -> None:
    registry = SessionRegistry()
    first = _active("alice")
    second = _active("alice")
    registry.register("alice", first)
    assert registry.register("alice", second) is first
    assert registry.get("alice") is second
    assert len(registry) == 1


def test_reregistering_same_connection_returns_none() -> None:
    registry = SessionRegistry()
    conn = _active("alice")
    registry.register("alice", conn)
    assert registry.register("alice", conn) is None


def test_stale_disconnect_does_not_remove_newer_connection() -> None:
    registry = SessionRegistry()
    first = _active("alice")
    second = _active("alice")
    registry.register("alice", first)
    registry.register("alice", second)

    assert registry.unregister("alice", first) is False
    assert registry.get("alice") is second

    assert registry.unregister("alice", second) is True
    assert registry.get("alice") is None


def test_unregister_unknown_user_is_noop() -> None:
    registry = SessionRegistry()
    assert registry.unregister("ghost", _active("ghost")) is False


def test_online_user_ids_sorted_and_close_all() -> None:
    registry = SessionRegistry()
    conns = {uid: _active(uid) for uid in ("carol", "alice", "bob")}
    for uid, conn in conns.items():
        registry.register(uid, conn)
    assert registry.online_user_ids() == ["alice", "bob", "carol"]

    registry.close_all()
    assert len(registry) == 0
    assert all(c.state is ConnectionState.DISCONNECTED for c in conns.values())


@pytest.mark.asyncio
async def test_close_wakes_reader_with_close_code() -> None:
    conn = _active("alice")
    conn.send("typing", {"from": "bob"})
    conn.close(code=4409)

    assert await conn.next_message() == {"event": "typing", "data": {"from": "bob"}}
    assert await conn.next_message() is None
    assert conn.close_code == 4409


@pytest.mark.asyncio
async def test_close_on_full_queue_still_wakes_reader() -> None:
    conn = Connection(queue_size=1)
    conn.send("a", {})
    conn.close()
    assert await conn.next_message() is None


def test_close_is_idempotent() -> None:
    conn = _active("alice")
    conn.close(code=4409)
    conn.close()
    assert conn.close_code == 4409
