"""
In-memory storage backend.

State lives for the life of the process; intended for development and
tests. Foreign keys are not checked.
"""

from typing import Dict, List, Optional, TypeVar
import logging
import threading

from pydantic import BaseModel

from fityog.core.exceptions import ConflictError
from fityog.schemas import (
    Booking,
    BookingCreate,
    Exercise,
    ExerciseCreate,
    User,
    UserCreate,
)
from fityog.services.session_store import MemorySessionStore, SessionStore
from fityog.services.storage.base import IdSequence, Storage

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _copy(model: Optional[ModelT]) -> Optional[ModelT]:
    """Callers get their own copy; stored models are never handed out."""
    return model.model_copy(deep=True) if model is not None else None


class MemoryStorage(Storage):
    """Dict-backed store keyed by id. Dicts keep insertion order."""

    def __init__(self, session_store: Optional[SessionStore] = None):
        self._session_store = session_store or MemorySessionStore()
        self._users: Dict[int, User] = {}
        self._exercises: Dict[int, Exercise] = {}
        self._bookings: Dict[int, Booking] = {}
        self._user_ids = IdSequence()
        self._exercise_ids = IdSequence()
        self._booking_ids = IdSequence()
        # Username check and insert must be one step
        self._users_lock = threading.Lock()

    @property
    def session_store(self) -> SessionStore:
        return self._session_store

    def get_user(self, user_id: int) -> Optional[User]:
        return _copy(self._users.get(user_id))

    def get_user_by_username(self, username: str) -> Optional[User]:
        for user in list(self._users.values()):
            if user.username == username:
                return _copy(user)
        return None

    def create_user(self, user: UserCreate) -> User:
        with self._users_lock:
            if self.get_user_by_username(user.username) is not None:
                raise ConflictError(f"Username already exists: {user.username}")
            created = User(id=self._user_ids.next(), **user.model_dump())
            self._users[created.id] = created
        logger.info(f"Created user {created.id}")
        return _copy(created)

    def get_experts(self) -> List[User]:
        return [_copy(user) for user in list(self._users.values()) if user.is_expert]

    def get_exercises(self, user_id: int) -> List[Exercise]:
        return [_copy(e) for e in list(self._exercises.values()) if e.user_id == user_id]

    def create_exercise(self, exercise: ExerciseCreate) -> Exercise:
        created = Exercise(id=self._exercise_ids.next(), **exercise.model_dump())
        self._exercises[created.id] = created
        return _copy(created)

    def create_booking(self, booking: BookingCreate) -> Booking:
        created = Booking(id=self._booking_ids.next(), **booking.model_dump())
        self._bookings[created.id] = created
        return _copy(created)
