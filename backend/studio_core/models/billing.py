# backend/studio_core/models/billing.py
"""
Billing charges posted against a customer's account.

A priced drop-in booking posts one charge keyed by
``(studio_id, source_type, source_id)``. Rebooking re-posts that same
charge and cancelling voids it, so a booking never owns more than one.
"""

from sqlalchemy import Column, Date, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.enums import BillingChargeStatus
from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import UTCDateTime

SESSION_REGISTRATION = "session_registration"


class BillingCharge(Base):
    __tablename__ = "billing_charges"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    studio_id = Column(String(26), ForeignKey("studios.id"), nullable=False)
    customer_id = Column(String(26), ForeignKey("customers.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=BillingChargeStatus.POSTED.value)
    charge_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=True)
    currency = Column(String(3), nullable=False, default="ILS")
    subtotal_cents = Column(Integer, nullable=False, default=0)
    tax_cents = Column(Integer, nullable=False, default=0)
    total_cents = Column(Integer, nullable=False, default=0)
    source_type = Column(String(50), nullable=False, default="")
    source_id = Column(String(26), nullable=True)
    note = Column(Text, nullable=False, default="")
    created_at = Column(UTCDateTime, server_default=func.now())
    updated_at = Column(UTCDateTime, nullable=True)
    voided_at = Column(UTCDateTime, nullable=True)
    void_reason = Column(String(200), nullable=False, default="")

    line_items = relationship(
        "BillingChargeLineItem", back_populates="charge", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("studio_id", "source_type", "source_id", name="uq_billing_charge_source"),
    )

    def __repr__(self) -> str:
        return f"<BillingCharge {self.id} {self.source_type}:{self.source_id} {self.status}>"


class BillingChargeLineItem(Base):
    __tablename__ = "billing_charge_line_items"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    charge_id = Column(String(26), ForeignKey("billing_charges.id"), nullable=False, index=True)
    description = Column(String(300), nullable=False, default="")
    quantity = Column(Integer, nullable=False, default=1)
    unit_price_cents = Column(Integer, nullable=False, default=0)
    line_subtotal_cents = Column(Integer, nullable=False, default=0)
    tax_cents = Column(Integer, nullable=False, default=0)
    line_total_cents = Column(Integer, nullable=False, default=0)

    charge = relationship("BillingCharge", back_populates="line_items")
