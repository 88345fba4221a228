"""
Tests for the login session stores.
"""
import pytest
from sqlalchemy import inspect

from fityog.core.database import build_engine
from fityog.services.session_store import MemorySessionStore, SqlSessionStore


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class TestMemorySessionStore:

    def test_create_and_get(self):
        store = MemorySessionStore()
        sid = store.create(7)
        assert store.get(sid) == 7

    def test_tokens_are_unique_and_opaque(self):
        store = MemorySessionStore()
        sids = {store.create(1) for _ in range(50)}
        assert len(sids) == 50
        assert all(len(sid) >= 32 for sid in sids)

    def test_unknown_token(self):
        assert MemorySessionStore().get("not-a-session") is None

    def test_session_expires_after_ttl(self):
        clock = FakeClock()
        store = MemorySessionStore(ttl_s=60, clock=clock)
        sid = store.create(1)

        clock.advance(59)
        assert store.get(sid) == 1
        clock.advance(1)
        assert store.get(sid) is None

    def test_destroy(self):
        store = MemorySessionStore()
        sid = store.create(1)
        store.destroy(sid)
        assert store.get(sid) is None
        store.destroy(sid)

    def test_prune_removes_only_expired(self):
        clock = FakeClock()
        store = MemorySessionStore(ttl_s=60, clock=clock)
        old = store.create(1)
        clock.advance(30)
        fresh = store.create(2)
        clock.advance(40)

        assert store.prune() == 1
        assert store.get(old) is None
        assert store.get(fresh) == 2

    def test_prune_runs_on_check_period(self):
        clock = FakeClock()
        store = MemorySessionStore(ttl_s=10, check_period_s=100, clock=clock)
        store.create(1)
        clock.advance(20)

        store.get("x")
        assert len(store._sessions) == 1

        clock.advance(100)
        store.get("x")
        assert len(store._sessions) == 0


@pytest.fixture
def engine(settings):
    engine = build_engine("sqlite:///:memory:", settings)
    yield engine
    engine.dispose()


class TestSqlSessionStore:

    def test_table_created_on_first_use(self, engine):
        store = SqlSessionStore(engine)
        assert not inspect(engine).has_table("session")

        sid = store.create(3)

        assert inspect(engine).has_table("session")
        assert store.get(sid) == 3

    def test_lookup_before_any_create(self, engine):
        assert SqlSessionStore(engine).get("nope") is None

    def test_destroy(self, engine):
        store = SqlSessionStore(engine)
        sid = store.create(3)
        store.destroy(sid)
        assert store.get(sid) is None

    def test_expired_session_is_rejected_and_pruned(self, engine):
        store = SqlSessionStore(engine, ttl_s=-1)
        sid = store.create(3)

        assert store.get(sid) is None
        assert store.prune() == 1

    def test_sessions_survive_a_new_store_on_the_same_database(self, engine):
        sid = SqlSessionStore(engine).create(5)
        assert SqlSessionStore(engine).get(sid) == 5
