# backend/studio_core/models/membership.py
from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.enums import MembershipStatus
from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import UTCDateTime


class Membership(Base):
    """A customer's purchased plan. ``remaining_uses`` only counts down for punch cards."""

    __tablename__ = "memberships"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    studio_id = Column(String(26), ForeignKey("studios.id"), nullable=False)
    customer_id = Column(String(26), ForeignKey("customers.id"), nullable=False, index=True)
    plan_id = Column(String(26), ForeignKey("plans.id"), nullable=False)
    status = Column(String(20), nullable=False, default=MembershipStatus.ACTIVE.value)
    start_utc = Column(UTCDateTime, nullable=False)
    end_utc = Column(UTCDateTime, nullable=True)
    remaining_uses = Column(Integer, nullable=False, default=0)
    created_at = Column(UTCDateTime, server_default=func.now())

    plan = relationship("Plan")

    def __repr__(self) -> str:
        return f"<Membership {self.id} plan={self.plan_id} {self.status}>"
