# backend/studio_core/models/payment.py
from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.sql import func

from ..core.enums import PaymentStatus
from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import UTCDateTime


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    studio_id = Column(String(26), ForeignKey("studios.id"), nullable=False)
    customer_id = Column(String(26), ForeignKey("customers.id"), nullable=False, index=True)
    amount_cents = Column(Integer, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="ILS")
    status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    provider = Column(String(50), nullable=False, default="manual")
    provider_ref = Column(String(100), nullable=False, default="")
    coupon_id = Column(String(26), ForeignKey("coupons.id"), nullable=True)
    created_at = Column(UTCDateTime, server_default=func.now())
