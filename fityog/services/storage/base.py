"""
Base classes for storage backends.

Every backend (in-memory, relational) implements `Storage` so that route
handlers work against one contract and never check which backend they got.

Contract shared by all implementations:
- Lookups never raise on a miss; they return None or an empty list.
- Creations assign an id strictly greater than any id previously handed
  out for that entity kind by the same backend instance.
- Creations fail only with ConflictError (uniqueness) or IntegrityError
  (a referenced row is missing). Transient driver failures surface as
  StorageUnavailableError.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
import threading

from fityog.schemas import (
    Booking,
    BookingCreate,
    Exercise,
    ExerciseCreate,
    User,
    UserCreate,
)
from fityog.services.session_store import SessionStore


class IdSequence:
    """Monotonic id source for one entity kind. Safe to share across threads."""

    def __init__(self, start: int = 1):
        self._next = start
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            value = self._next
            self._next += 1
            return value


class Storage(ABC):
    """Single point of access for users, exercises and bookings."""

    @property
    @abstractmethod
    def session_store(self) -> SessionStore:
        """Login sessions, persisted in the same medium as the entities."""

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]:
        pass

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[User]:
        pass

    @abstractmethod
    def create_user(self, user: UserCreate) -> User:
        """
        Insert a user.

        Raises:
            ConflictError: the username is taken. The store is unchanged.
        """

    @abstractmethod
    def get_experts(self) -> List[User]:
        pass

    @abstractmethod
    def get_exercises(self, user_id: int) -> List[Exercise]:
        pass

    @abstractmethod
    def create_exercise(self, exercise: ExerciseCreate) -> Exercise:
        pass

    @abstractmethod
    def create_booking(self, booking: BookingCreate) -> Booking:
        pass

    def ping(self) -> bool:
        """Return True if the backend can serve requests."""
        return True

    def close(self) -> None:
        """Release backend resources (connections, pools)."""
