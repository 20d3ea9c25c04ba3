# backend/studio_core/services/billing_service.py
"""
Billing Service

Posts and voids the account charge behind a priced drop-in booking. Both
operations flush into the caller's open transaction and never commit, so a
charge is written or voided atomically with the booking change it reflects.
"""

from datetime import datetime
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core.enums import BillingChargeStatus
from ..models.billing import SESSION_REGISTRATION, BillingCharge, BillingChargeLineItem
from ..models.booking import Booking
from ..models.event_instance import EventInstance
from ..repositories import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

CANCELLED_BOOKING_REASON = "Cancelled booking"


def session_charge_description(instance: EventInstance) -> str:
    title = instance.series.title if instance.series is not None else ""
    return f"{title or 'Session'} - {instance.start_utc:%Y-%m-%d}"


class BillingService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.billing_repository = RepositoryFactory.create_billing_repository(db)

    def ensure_session_charge(
        self, booking: Booking, instance: EventInstance, now: datetime
    ) -> Optional[BillingCharge]:
        """
        Post the charge for a drop-in booking, or re-post the one it already has.

        A free session posts nothing. Re-posting clears a previous void and
        refreshes the amount and single line item from the instance price.
        """
        amount = max(0, instance.price_cents or 0)
        if amount <= 0:
            return None

        description = session_charge_description(instance)
        charge = self.billing_repository.find_for_source(
            booking.studio_id, SESSION_REGISTRATION, booking.id
        )
        if charge is None:
            charge = self.billing_repository.create(
                studio_id=booking.studio_id,
                customer_id=booking.customer_id,
                status=BillingChargeStatus.POSTED.value,
                charge_date=now.date(),
                due_date=now.date(),
                currency=instance.currency,
                subtotal_cents=amount,
                tax_cents=0,
                total_cents=amount,
                source_type=SESSION_REGISTRATION,
                source_id=booking.id,
                updated_at=now,
            )
            charge.line_items.append(self._line_item(description, amount))
            self.db.flush()
            return charge

        charge.status = BillingChargeStatus.POSTED.value
        charge.void_reason = ""
        charge.voided_at = None
        charge.subtotal_cents = amount
        charge.total_cents = amount
        charge.charge_date = now.date()
        charge.due_date = now.date()
        charge.updated_at = now

        if charge.line_items:
            line = charge.line_items[0]
            line.description = description
            line.unit_price_cents = amount
            line.line_subtotal_cents = amount
            line.line_total_cents = amount
        else:
            charge.line_items.append(self._line_item(description, amount))
        self.db.flush()
        return charge

    def void_session_charge(self, booking: Booking, now: datetime) -> Optional[BillingCharge]:
        """Void the booking's posted charge, if any. An already voided charge is left as is."""
        charge = self.billing_repository.find_for_source(
            booking.studio_id, SESSION_REGISTRATION, booking.id
        )
        if charge is None or charge.status == BillingChargeStatus.VOIDED.value:
            return charge

        charge.status = BillingChargeStatus.VOIDED.value
        charge.void_reason = CANCELLED_BOOKING_REASON
        charge.voided_at = now
        charge.updated_at = now
        self.db.flush()
        self.logger.info(
            "Voided session charge",
            extra={"charge_id": charge.id, "booking_id": booking.id},
        )
        return charge

    @staticmethod
    def _line_item(description: str, amount: int) -> BillingChargeLineItem:
        return BillingChargeLineItem(
            description=description,
            quantity=1,
            unit_price_cents=amount,
            line_subtotal_cents=amount,
            tax_cents=0,
            line_total_cents=amount,
        )
