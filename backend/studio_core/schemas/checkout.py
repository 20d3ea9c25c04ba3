# backend/studio_core/schemas/checkout.py
from datetime import datetime
from typing import Optional

from ..core.enums import MembershipStatus, PaymentStatus
from .base import ORMResponseModel, StrictRequestModel


class CheckoutRequest(StrictRequestModel):
    plan_id: str
    coupon_code: Optional[str] = None


class MembershipResponse(ORMResponseModel):
    id: str
    plan_id: str
    customer_id: str
    status: MembershipStatus
    start_utc: datetime
    end_utc: Optional[datetime]
    remaining_uses: int


class PaymentResponse(ORMResponseModel):
    id: str
    amount_cents: int
    currency: str
    status: PaymentStatus
    provider: str
    provider_ref: str


class CheckoutResponse(ORMResponseModel):
    membership: MembershipResponse
    payment: PaymentResponse
    coupon_applied: bool
