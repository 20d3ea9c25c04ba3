# backend/studio_core/schemas/booking.py
from datetime import datetime
from typing import Optional

from ..core.enums import BookingStatus
from .base import ORMResponseModel, StrictRequestModel


class BookingCreateRequest(StrictRequestModel):
    event_instance_id: str
    membership_id: Optional[str] = None
    is_remote: bool = False
    # Staff booking on behalf of a customer
    customer_id: Optional[str] = None
    skip_health_check: bool = False


class BookingResponse(ORMResponseModel):
    id: str
    studio_id: str
    customer_id: str
    event_instance_id: str
    status: BookingStatus
    is_remote: bool
    membership_id: Optional[str]
    payment_id: Optional[str]
    cancelled_at: Optional[datetime]
