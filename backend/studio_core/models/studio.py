# backend/studio_core/models/studio.py
"""
Studio (tenant root) and Room models.

Every other record carries a ``studio_id``; the studio's IANA time zone
and week-start day drive all local-calendar computations.
"""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import StringListType, UTCDateTime


class Studio(Base):
    __tablename__ = "studios"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    slug = Column(String(100), nullable=False, unique=True, index=True)
    name = Column(String(200), nullable=False)
    timezone = Column(String(64), nullable=False, default="UTC")
    # 0 = Sunday ... 6 = Saturday
    week_starts_on = Column(Integer, nullable=False, default=0)
    default_locale = Column(String(16), nullable=False, default="en")
    holiday_calendars = Column(StringListType, nullable=False, default=list)
    created_at = Column(UTCDateTime, server_default=func.now())

    rooms = relationship("Room", back_populates="studio", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("week_starts_on >= 0 AND week_starts_on <= 6", name="ck_studio_week_start"),
    )

    def __repr__(self) -> str:
        return f"<Studio {self.slug} tz={self.timezone}>"


class Room(Base):
    __tablename__ = "rooms"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    studio_id = Column(String(26), ForeignKey("studios.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    created_at = Column(UTCDateTime, server_default=func.now())

    studio = relationship("Studio", back_populates="rooms")
