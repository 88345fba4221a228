"""
Storage backends.

`create_storage` picks the backend named by `settings.STORAGE_BACKEND`:

    memory   -> MemoryStorage (process lifetime, development/tests)
    database -> SqlStorage    (SQLAlchemy, sessions in the same database)
"""

import logging

from fityog.core.config import Settings
from fityog.core.database import build_engine
from fityog.services.session_store import MemorySessionStore, SqlSessionStore
from fityog.services.storage.base import IdSequence, Storage
from fityog.services.storage.memory import MemoryStorage
from fityog.services.storage.sql import SqlStorage

logger = logging.getLogger(__name__)

__all__ = ["IdSequence", "Storage", "MemoryStorage", "SqlStorage", "create_storage"]


def create_storage(settings: Settings) -> Storage:
    if settings.STORAGE_BACKEND == "memory":
        logger.info("Using in-memory storage")
        return MemoryStorage(
            session_store=MemorySessionStore(
                ttl_s=settings.SESSION_TTL_S,
                check_period_s=settings.SESSION_CHECK_PERIOD_S,
            )
        )

    engine = build_engine(settings.database_url, settings)
    storage = SqlStorage(
        engine,
        session_store=SqlSessionStore(
            engine,
            ttl_s=settings.SESSION_TTL_S,
            check_period_s=settings.SESSION_CHECK_PERIOD_S,
        ),
    )
    if settings.DB_AUTO_CREATE_SCHEMA:
        storage.create_schema()
    logger.info(f"Using database storage ({engine.url.get_backend_name()})")
    return storage
