"""Tests for the bounded in-memory payment session store."""

from __future__ import annotations

from payrecon.api.services import SessionStore, StoredSession


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _stored() -> StoredSession:
    return StoredSession(session=object(), config=object())


class TestSessionStore:
    def test_add_and_get(self):
        store = SessionStore()
        stored = _stored()
        store.add("a", stored)
        assert store.get("a") is stored
        assert "a" in store
        assert store.get("missing") is None

    def test_oldest_evicted_past_limit(self):
        store = SessionStore(max_sessions=2)
        for sid in ("a", "b", "c"):
            store.add(sid, _stored())
        assert len(store) == 2
        assert store.get("a") is None
        assert store.get("b") is not None
        assert store.get("c") is not None

    def test_read_keeps_session_alive(self):
        store = SessionStore(max_sessions=2)
        store.add("a", _stored())
        store.add("b", _stored())
        store.get("a")
        store.add("c", _stored())
        assert "a" in store
        assert "b" not in store

    def test_idle_sessions_expire(self):
        clock = FakeClock()
        store = SessionStore(ttl_seconds=60, clock=clock)
        store.add("a", _stored())
        clock.now += 30
        store.add("b", _stored())
        clock.now += 45
        assert store.get("a") is None
        assert store.get("b") is not None
        assert len(store) == 1

    def test_access_resets_idle_clock(self):
        clock = FakeClock()
        store = SessionStore(ttl_seconds=60, clock=clock)
        store.add("a", _stored())
        clock.now += 50
        assert store.get("a") is not None
        clock.now += 50
        assert store.get("a") is not None

    def test_zero_ttl_never_expires(self):
        clock = FakeClock()
        store = SessionStore(ttl_seconds=0, clock=clock)
        store.add("a", _stored())
        clock.now += 10**6
        assert "a" in store

    def test_remove(self):
        store = SessionStore()
        store.add("a", _stored())
        assert store.remove("a") is True
        assert store.remove("a") is False
        assert len(store) == 0
