"""
Bookings API Router

Session requests from the authenticated user to an expert.

The expert's is_expert flag and slot availability are not checked here;
bookings are requests that start out "pending".
"""
from fastapi import APIRouter, Depends
import logging

from fityog.core.auth import get_current_user, get_storage
from fityog.schemas import Booking, BookingCreate, BookingRequest, User
from fityog.services.storage import Storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["bookings"])


@router.post("", response_model=Booking)
def create_booking(
    request: BookingRequest,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    booking = storage.create_booking(
        BookingCreate(
            user_id=current_user.id,
            expert_id=request.expert_id,
            date=request.date,
            time=request.time,
            contact_info=request.contact_info,
        )
    )
    logger.info(
        f"Booking {booking.id} requested",
        extra={"extra_fields": {"user_id": current_user.id, "expert_id": booking.expert_id}},
    )
    return booking
