# backend/studio_core/services/checkout_service.py
"""
Checkout Service

Plan purchase: applies an optional coupon, records a synthetic paid
payment and opens an active membership in one transaction.
"""

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Optional
import uuid

from sqlalchemy.orm import Session

from ..core.enums import DiscountType, MembershipStatus, PaymentStatus, PlanType
from ..core.outcomes import ErrorCode, Outcome
from ..models.coupon import Coupon
from ..models.membership import Membership
from ..models.payment import Payment
from ..models.studio import Studio
from ..repositories import RepositoryFactory
from ..utils.time_utils import utc_now
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass
class CheckoutResult:
    membership: Membership
    payment: Payment
    coupon_applied: bool = False


def apply_discount(price_cents: int, coupon: Coupon) -> int:
    if coupon.discount_type == DiscountType.PERCENT.value:
        return max(0, price_cents - (price_cents * coupon.discount_value // 100))
    return max(0, price_cents - coupon.discount_value)


class CheckoutService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.membership_repository = RepositoryFactory.create_membership_repository(db)
        self.payment_repository = RepositoryFactory.create_base_repository(db, Payment)

    def _usable_coupon(
        self, studio_id: str, code: Optional[str], now: datetime
    ) -> Optional[Coupon]:
        """Unusable codes (unknown, inactive, outside validity, used up) are ignored, not errors."""
        if not code or not code.strip():
            return None
        coupon = self.membership_repository.get_coupon_by_code(studio_id, code)
        if coupon is None or not coupon.active:
            return None
        if coupon.valid_from_utc is not None and now < coupon.valid_from_utc:
            return None
        if coupon.valid_to_utc is not None and now > coupon.valid_to_utc:
            return None
        if coupon.max_uses > 0 and coupon.times_used >= coupon.max_uses:
            return None
        return coupon

    @BaseService.measure_operation("checkout")
    def checkout(
        self,
        studio: Studio,
        customer_id: str,
        plan_id: str,
        coupon_code: Optional[str] = None,
        *,
        now: Optional[datetime] = None,
    ) -> Outcome[CheckoutResult]:
        now = now or utc_now()
        plan = self.membership_repository.get_plan(studio.id, plan_id)
        if plan is None or not plan.active:
            return Outcome.failure(ErrorCode.PLAN_UNAVAILABLE, plan_id=plan_id)

        coupon = self._usable_coupon(studio.id, coupon_code, now)
        price = apply_discount(plan.price_cents, coupon) if coupon else plan.price_cents

        with self.transaction():
            payment = self.payment_repository.create(
                studio_id=studio.id,
                customer_id=customer_id,
                amount_cents=price,
                currency=plan.currency,
                status=PaymentStatus.PAID.value,
                provider="manual",
                provider_ref=f"manual-{uuid.uuid4().hex}",
                coupon_id=coupon.id if coupon else None,
            )
            membership = self.membership_repository.create(
                studio_id=studio.id,
                customer_id=customer_id,
                plan_id=plan.id,
                status=MembershipStatus.ACTIVE.value,
                start_utc=now,
                remaining_uses=plan.punch_card_uses if plan.type == PlanType.PUNCH_CARD.value else 0,
            )
            if coupon is not None:
                coupon.times_used += 1

        self.log_operation(
            "checkout",
            studio_id=studio.id,
            plan_id=plan.id,
            membership_id=membership.id,
            amount_cents=price,
        )
        return Outcome.success(
            CheckoutResult(membership=membership, payment=payment, coupon_applied=coupon is not None)
        )
