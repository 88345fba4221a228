"""
Experts API Router

Lists the users flagged as bookable fitness/yoga professionals.
"""
from fastapi import APIRouter, Depends
from typing import List

from fityog.core.auth import get_current_user, get_storage
from fityog.schemas import User, UserResponse
from fityog.services.storage import Storage

router = APIRouter(prefix="/api/experts", tags=["experts"])


@router.get("", response_model=List[UserResponse])
def list_experts(
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    return [UserResponse.model_validate(expert.model_dump()) for expert in storage.get_experts()]
