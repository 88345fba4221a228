"""
Exercises API Router

Logged workouts for the authenticated user. Append-only.
"""
from fastapi import APIRouter, Depends
from typing import List

from fityog.core.auth import get_current_user, get_storage
from fityog.schemas import Exercise, ExerciseCreate, ExerciseRequest, User, utcnow
from fityog.services.storage import Storage

router = APIRouter(prefix="/api/exercises", tags=["exercises"])


@router.get("", response_model=List[Exercise])
def list_exercises(
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """Returns only exercises belonging to the authenticated user."""
    return storage.get_exercises(current_user.id)


@router.post("", response_model=Exercise)
def log_exercise(
    request: ExerciseRequest,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """Log a workout. The owner is always the caller; date defaults to now."""
    return storage.create_exercise(
        ExerciseCreate(
            user_id=current_user.id,
            type=request.type,
            duration=request.duration,
            calories=request.calories,
            date=request.date or utcnow(),
        )
    )
