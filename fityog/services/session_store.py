"""
Login session stores.

A session maps an opaque cookie token to a user id until it expires.
The in-memory store pairs with the in-memory storage backend; the SQL
store keeps sessions in a `session` table next to the entity tables and
creates that table the first time it is needed.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Tuple
import logging
import secrets
import threading
import time

from sqlalchemy import Column, DateTime, Integer, MetaData, String, Table, delete, select
from sqlalchemy.engine import Engine

from fityog.core.database import translate_db_errors

logger = logging.getLogger(__name__)

DEFAULT_TTL_S = 7 * 24 * 3600
DEFAULT_CHECK_PERIOD_S = 24 * 3600


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


class SessionStore(ABC):
    """Token -> user id, with expiry. Expired entries are pruned at most once per check period."""

    def __init__(
        self,
        ttl_s: int = DEFAULT_TTL_S,
        check_period_s: int = DEFAULT_CHECK_PERIOD_S,
        clock=time.monotonic,
    ):
        self.ttl_s = ttl_s
        self.check_period_s = check_period_s
        self._clock = clock
        self._last_prune = clock()

    @abstractmethod
    def create(self, user_id: int) -> str:
        """Start a session for `user_id` and return its token."""

    @abstractmethod
    def get(self, sid: str) -> Optional[int]:
        """Return the user id for a live session, None if unknown or expired."""

    @abstractmethod
    def destroy(self, sid: str) -> None:
        """End a session. Unknown tokens are ignored."""

    @abstractmethod
    def prune(self) -> int:
        """Drop expired sessions and return how many were removed."""

    def _maybe_prune(self) -> None:
        if self._clock() - self._last_prune >= self.check_period_s:
            self._last_prune = self._clock()
            self.prune()


class MemorySessionStore(SessionStore):
    """Dict-backed sessions; expiry runs on the injected clock."""

    def __init__(
        self,
        ttl_s: int = DEFAULT_TTL_S,
        check_period_s: int = DEFAULT_CHECK_PERIOD_S,
        clock=time.monotonic,
    ):
        super().__init__(ttl_s, check_period_s, clock)
        self._sessions: Dict[str, Tuple[int, float]] = {}
        self._lock = threading.Lock()

    def create(self, user_id: int) -> str:
        sid = new_session_id()
        with self._lock:
            self._sessions[sid] = (user_id, self._clock() + self.ttl_s)
        self._maybe_prune()
        return sid

    def get(self, sid: str) -> Optional[int]:
        self._maybe_prune()
        with self._lock:
            entry = self._sessions.get(sid)
        if entry is None:
            return None
        user_id, expires_at = entry
        if expires_at <= self._clock():
            return None
        return user_id

    def destroy(self, sid: str) -> None:
        with self._lock:
            self._sessions.pop(sid, None)

    def prune(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [sid for sid, (_, exp) in self._sessions.items() if exp <= now]
            for sid in expired:
                del self._sessions[sid]
        if expired:
            logger.debug(f"Pruned {len(expired)} expired sessions")
        return len(expired)


_metadata = MetaData()

session_table = Table(
    "session",
    _metadata,
    Column("sid", String(128), primary_key=True),
    Column("user_id", Integer, nullable=False),
    Column("expires_at", DateTime(timezone=True), nullable=False, index=True),
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlSessionStore(SessionStore):
    """Sessions in a `session` table, created on first use."""

    def __init__(
        self,
        engine: Engine,
        ttl_s: int = DEFAULT_TTL_S,
        check_period_s: int = DEFAULT_CHECK_PERIOD_S,
    ):
        super().__init__(ttl_s, check_period_s)
        self.engine = engine
        self._table_ready = False
        self._table_lock = threading.Lock()

    def _ensure_table(self) -> None:
        if self._table_ready:
            return
        with self._table_lock:
            if not self._table_ready:
                with translate_db_errors("session table create"):
                    session_table.create(self.engine, checkfirst=True)
                self._table_ready = True
                logger.info("Session table ready")

    def create(self, user_id: int) -> str:
        self._ensure_table()
        sid = new_session_id()
        expires_at = _utcnow() + timedelta(seconds=self.ttl_s)
        with translate_db_errors("session create"), self.engine.begin() as conn:
            conn.execute(
                session_table.insert().values(sid=sid, user_id=user_id, expires_at=expires_at)
            )
        self._maybe_prune()
        return sid

    def get(self, sid: str) -> Optional[int]:
        self._ensure_table()
        with translate_db_errors("session lookup"), self.engine.connect() as conn:
            row = conn.execute(
                select(session_table.c.user_id, session_table.c.expires_at).where(
                    session_table.c.sid == sid
                )
            ).first()
        if row is None:
            return None
        if _as_utc(row.expires_at) <= _utcnow():
            return None
        return row.user_id

    def destroy(self, sid: str) -> None:
        self._ensure_table()
        with translate_db_errors("session destroy"), self.engine.begin() as conn:
            conn.execute(delete(session_table).where(session_table.c.sid == sid))

    def prune(self) -> int:
        self._ensure_table()
        with translate_db_errors("session prune"), self.engine.begin() as conn:
            result = conn.execute(
                delete(session_table).where(session_table.c.expires_at <= _utcnow())
            )
        return result.rowcount or 0
