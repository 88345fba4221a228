"""
Relational storage backend (SQLAlchemy).

One ORM session per call, checked out of the engine's pool and returned
when the call finishes. Filtering is pushed down to the database as
equality predicates on `user_id` and `is_expert`.
"""

from datetime import datetime, timezone
from typing import List, Optional, Type, TypeVar
import logging

from pydantic import BaseModel
from sqlalchemy import exc as sa_exc
from sqlalchemy.engine import Engine

from fityog import models
from fityog.core.database import (
    Base,
    build_session_factory,
    check_db_connection,
    translate_db_errors,
)
from fityog.core.exceptions import ConflictError, IntegrityError
from fityog.schemas import (
    Booking,
    BookingCreate,
    Exercise,
    ExerciseCreate,
    User,
    UserCreate,
)
from fityog.services.session_store import SessionStore, SqlSessionStore
from fityog.services.storage.base import Storage

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_schema(schema: Type[SchemaT], row) -> SchemaT:
    """Copy an ORM row into its pydantic counterpart."""
    data = {}
    for column in row.__table__.columns:
        value = getattr(row, column.key)
        if isinstance(value, datetime):
            value = _to_utc(value)
        data[column.key] = value
    return schema.model_validate(data)


class SqlStorage(Storage):
    """Entities in the `users`, `exercises` and `bookings` tables."""

    def __init__(self, engine: Engine, session_store: Optional[SessionStore] = None):
        self.engine = engine
        self.SessionLocal = build_session_factory(engine)
        self._session_store = session_store or SqlSessionStore(engine)

    @property
    def session_store(self) -> SessionStore:
        return self._session_store

    def create_schema(self) -> None:
        """Create the entity tables if they do not exist yet."""
        with translate_db_errors("create schema"):
            Base.metadata.create_all(self.engine)

    def get_user(self, user_id: int) -> Optional[User]:
        with translate_db_errors("get_user"), self.SessionLocal() as db:
            row = db.get(models.User, user_id)
            return _to_schema(User, row) if row else None

    def get_user_by_username(self, username: str) -> Optional[User]:
        with translate_db_errors("get_user_by_username"), self.SessionLocal() as db:
            row = db.query(models.User).filter(models.User.username == username).first()
            return _to_schema(User, row) if row else None

    def create_user(self, user: UserCreate) -> User:
        row = models.User(**user.model_dump())
        with translate_db_errors("create_user"), self.SessionLocal() as db:
            try:
                db.add(row)
                db.commit()
            except sa_exc.IntegrityError as e:
                db.rollback()
                logger.info(f"Rejected duplicate username: {user.username}")
                raise ConflictError(f"Username already exists: {user.username}") from e
            db.refresh(row)
            logger.info(f"Created user {row.id}")
            return _to_schema(User, row)

    def get_experts(self) -> List[User]:
        with translate_db_errors("get_experts"), self.SessionLocal() as db:
            rows = (
                db.query(models.User)
                .filter(models.User.is_expert == True)  # noqa: E712
                .order_by(models.User.id)
                .all()
            )
            return [_to_schema(User, row) for row in rows]

    def get_exercises(self, user_id: int) -> List[Exercise]:
        with translate_db_errors("get_exercises"), self.SessionLocal() as db:
            rows = (
                db.query(models.Exercise)
                .filter(models.Exercise.user_id == user_id)
                .order_by(models.Exercise.id)
                .all()
            )
            return [_to_schema(Exercise, row) for row in rows]

    def create_exercise(self, exercise: ExerciseCreate) -> Exercise:
        data = exercise.model_dump()
        data["date"] = _to_utc(data["date"])
        return self._insert(models.Exercise(**data), Exercise, "exercise")

    def create_booking(self, booking: BookingCreate) -> Booking:
        data = booking.model_dump()
        data["date"] = _to_utc(data["date"])
        data["status"] = booking.status.value
        return self._insert(models.Booking(**data), Booking, "booking")

    def _insert(self, row, schema: Type[SchemaT], kind: str) -> SchemaT:
        with translate_db_errors(f"create_{kind}"), self.SessionLocal() as db:
            try:
                db.add(row)
                db.commit()
            except sa_exc.IntegrityError as e:
                db.rollback()
                logger.warning(
                    f"Rejected {kind} with unknown reference",
                    extra={"extra_fields": {"kind": kind, "error": str(e.orig)}},
                )
                raise IntegrityError(f"Referenced user does not exist for {kind}") from e
            db.refresh(row)
            return _to_schema(schema, row)

    def ping(self) -> bool:
        return check_db_connection(self.engine)

    def close(self) -> None:
        self.engine.dispose()
