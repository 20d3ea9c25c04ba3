# backend/studio_core/models/coupon.py
from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from ..core.enums import DiscountType
from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import UTCDateTime


class Coupon(Base):
    """Discount code applied at plan checkout. ``max_uses`` of 0 means unlimited."""

    __tablename__ = "coupons"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    studio_id = Column(String(26), ForeignKey("studios.id"), nullable=False)
    code = Column(String(50), nullable=False)
    discount_type = Column(String(20), nullable=False, default=DiscountType.PERCENT.value)
    discount_value = Column(Integer, nullable=False, default=0)
    max_uses = Column(Integer, nullable=False, default=0)
    times_used = Column(Integer, nullable=False, default=0)
    valid_from_utc = Column(UTCDateTime, nullable=True)
    valid_to_utc = Column(UTCDateTime, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(UTCDateTime, server_default=func.now())

    __table_args__ = (UniqueConstraint("studio_id", "code", name="uq_coupon_studio_code"),)
