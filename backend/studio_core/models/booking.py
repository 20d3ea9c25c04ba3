# backend/studio_core/models/booking.py
"""
Booking model.

A customer holds at most one booking row per instance: cancelling keeps
the row, and booking again reactivates it.
"""

from sqlalchemy import Boolean, Column, ForeignKey, Index, String
from sqlalchemy.sql import func

from ..core.enums import BookingStatus
from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import UTCDateTime


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    studio_id = Column(String(26), ForeignKey("studios.id"), nullable=False)
    customer_id = Column(String(26), ForeignKey("customers.id"), nullable=False)
    event_instance_id = Column(String(26), ForeignKey("event_instances.id"), nullable=False)
    status = Column(String(20), nullable=False, default=BookingStatus.CONFIRMED.value)
    is_remote = Column(Boolean, nullable=False, default=False)
    membership_id = Column(String(26), ForeignKey("memberships.id"), nullable=True, index=True)
    payment_id = Column(String(26), ForeignKey("payments.id"), nullable=True)
    created_at = Column(UTCDateTime, server_default=func.now())
    cancelled_at = Column(UTCDateTime, nullable=True)

    __table_args__ = (
        Index("ix_bookings_instance_status", "event_instance_id", "status"),
        Index("ix_bookings_customer_instance", "customer_id", "event_instance_id"),
    )

    def __repr__(self) -> str:
        return f"<Booking {self.id} instance={self.event_instance_id} {self.status}>"
