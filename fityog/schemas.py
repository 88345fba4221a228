from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Optional, List, Literal


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base for everything that crosses the wire; fields serialize as camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _not_blank(value: str) -> str:
    if not value or not value.strip():
        raise ValueError("must not be empty")
    return value.strip()


NonBlankStr = Annotated[str, AfterValidator(_not_blank)]


# --- Users ---

class UserProfile(CamelModel):
    """Expert metadata; all optional."""
    is_expert: bool = False
    bio: Optional[str] = None
    specialties: Optional[List[str]] = None
    rating: Optional[float] = None
    photo_url: Optional[str] = None
    experience: Optional[str] = None


class UserCreate(UserProfile):
    """Fields needed to create a user. `password` is already hashed."""
    username: NonBlankStr
    password: str


class User(UserCreate):
    id: int


class UserResponse(UserProfile):
    """Public view of a user, never includes the password hash."""
    id: int
    username: str


# --- Exercises ---

class ExerciseCreate(CamelModel):
    user_id: int
    type: NonBlankStr
    duration: int = Field(ge=0)  # minutes
    calories: Optional[int] = Field(default=None, ge=0)
    date: datetime = Field(default_factory=utcnow)


class Exercise(ExerciseCreate):
    id: int


# --- Bookings ---

class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class BookingCreate(CamelModel):
    user_id: int
    expert_id: int
    date: datetime
    time: str = Field(min_length=1)
    contact_info: NonBlankStr
    status: BookingStatus = BookingStatus.PENDING


class Booking(BookingCreate):
    id: int


# --- Request bodies ---

class Credentials(BaseModel):
    username: NonBlankStr
    password: str = Field(min_length=1)


class ExerciseRequest(CamelModel):
    type: NonBlankStr
    duration: int = Field(ge=0)
    calories: Optional[int] = Field(default=None, ge=0)
    date: Optional[datetime] = None


class BookingRequest(CamelModel):
    expert_id: int
    date: datetime
    time: str = Field(pattern=r"^([01]?\d|2[0-3]):[0-5]\d$")  # 24-hour HH:MM
    contact_info: NonBlankStr


class ChatRequest(BaseModel):
    prompt: NonBlankStr


# --- AI recommendations ---

Difficulty = Literal["beginner", "intermediate", "advanced"]


class RecommendationItem(BaseModel):
    """An asana or exercise suggested by the assistant."""
    name: str = Field(min_length=1)
    duration: int = Field(gt=0)  # minutes
    benefits: List[str] = Field(min_length=1)
    difficulty: Difficulty
    instructions: List[str] = Field(min_length=1)


class ResourceItem(BaseModel):
    title: str = Field(min_length=1)
    type: Literal["book", "article"]
    description: str


class Recommendation(BaseModel):
    message: str
    asanas: List[RecommendationItem]
    exercises: List[RecommendationItem]
    resources: List[ResourceItem]
