# backend/studio_core/models/event_series.py
"""
EventSeries model: the weekly recurrence template for a class.

The series stores wall-clock time in the studio's zone; concrete UTC
start/end values only exist on the generated EventInstance rows.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Integer, String, Text, Time
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import GuidSetType, UTCDateTime


class EventSeries(Base):
    __tablename__ = "event_series"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    studio_id = Column(String(26), ForeignKey("studios.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    instructor_id = Column(String(26), ForeignKey("instructors.id"), nullable=True)
    room_id = Column(String(26), ForeignKey("rooms.id"), nullable=True)

    # 0 = Sunday ... 6 = Saturday
    day_of_week = Column(Integer, nullable=False)
    start_time_local = Column(Time, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=60)
    recurrence_interval_weeks = Column(Integer, nullable=False, default=1)
    is_active = Column(Boolean, nullable=False, default=True)

    default_capacity = Column(Integer, nullable=False, default=12)
    remote_capacity = Column(Integer, nullable=False, default=0)
    price_cents = Column(Integer, nullable=False, default=2500)
    currency = Column(String(3), nullable=False, default="ILS")
    remote_invite_url = Column(String(500), nullable=False, default="")
    cancellation_window_hours = Column(Integer, nullable=False, default=6)

    # Empty set = any plan or drop-in may book
    allowed_plan_ids = Column(GuidSetType, nullable=False, default=set)

    created_at = Column(UTCDateTime, server_default=func.now())

    instances = relationship(
        "EventInstance", back_populates="series", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_series_day_of_week"),
    )

    def __repr__(self) -> str:
        return f"<EventSeries {self.title!r} dow={self.day_of_week} at {self.start_time_local}>"
