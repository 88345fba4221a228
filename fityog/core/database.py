"""
Database connection management with connection pooling.

Engines are built per storage backend rather than at import time, so the
in-memory backend never touches a database driver.
"""
from contextlib import contextmanager
from sqlalchemy import create_engine, event, make_url, text
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool
from fityog.core.config import Settings
from fityog.core.exceptions import StorageUnavailableError
import logging

logger = logging.getLogger(__name__)

Base = declarative_base()


def _is_sqlite_memory(url: str) -> bool:
    database = make_url(url).database
    return not database or database == ":memory:" or "mode=memory" in url


def build_engine(url: str, settings: Settings) -> Engine:
    """
    Create an engine for `url`.

    Server databases get a bounded QueuePool. SQLite files get SQLAlchemy's
    default pool, one connection per checkout; an in-memory SQLite database
    only exists inside its connection, so it gets a single StaticPool
    connection and is meant for tests. SQLite always enforces foreign keys.
    """
    if url.startswith("sqlite"):
        pool_args = {"poolclass": StaticPool} if _is_sqlite_memory(url) else {}
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            echo=settings.DEBUG,
            **pool_args,
        )

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            """SQLite ignores foreign keys unless asked."""
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    engine = create_engine(
        url,
        poolclass=QueuePool,
        pool_size=settings.DB_POOL_SIZE,  # Number of connections to maintain
        max_overflow=settings.DB_MAX_OVERFLOW,  # Additional connections beyond pool_size
        pool_timeout=settings.DB_POOL_TIMEOUT,  # Seconds to wait for connection
        pool_recycle=settings.DB_POOL_RECYCLE,  # Recycle connections after this many seconds
        pool_pre_ping=True,  # Verify connections before using
        echo=settings.DEBUG,  # Log SQL queries in debug mode
    )

    @event.listens_for(engine, "checkout")
    def receive_checkout(dbapi_conn, connection_record, connection_proxy):
        logger.debug("Connection checked out from pool")

    @event.listens_for(engine, "checkin")
    def receive_checkin(dbapi_conn, connection_record):
        logger.debug("Connection returned to pool")

    return engine


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autoflush=False,
        bind=engine,
        expire_on_commit=False,  # Prevent lazy loading issues
    )


def check_db_connection(engine: Engine) -> bool:
    """
    Check if database connection is healthy.

    Returns:
        True if connection is healthy, False otherwise
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False


@contextmanager
def translate_db_errors(operation: str):
    """Re-raise connection-level driver failures as StorageUnavailableError."""
    try:
        yield
    except (OperationalError, InterfaceError) as e:
        logger.error(
            f"Database unavailable during {operation}: {e}",
            extra={"extra_fields": {"operation": operation}},
        )
        raise StorageUnavailableError(f"Database unavailable during {operation}") from e
