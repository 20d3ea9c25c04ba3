# backend/studio_core/models/plan.py
from sqlalchemy import Boolean, Column, ForeignKey, Integer, String
from sqlalchemy.sql import func

from ..core.enums import PlanType
from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import UTCDateTime


class Plan(Base):
    """
    A purchasable membership plan.

    ``weekly_limit`` applies to WEEKLY_LIMIT plans, ``punch_card_uses`` to
    PUNCH_CARD plans. ``daily_limit`` of 0 means no per-day cap.
    """

    __tablename__ = "plans"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    studio_id = Column(String(26), ForeignKey("studios.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    type = Column(String(20), nullable=False, default=PlanType.UNLIMITED.value)
    weekly_limit = Column(Integer, nullable=False, default=0)
    punch_card_uses = Column(Integer, nullable=False, default=0)
    daily_limit = Column(Integer, nullable=False, default=0)
    remote_only = Column(Boolean, nullable=False, default=False)
    price_cents = Column(Integer, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="ILS")
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(UTCDateTime, server_default=func.now())

    def __repr__(self) -> str:
        return f"<Plan {self.name!r} {self.type}>"
