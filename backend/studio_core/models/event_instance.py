# backend/studio_core/models/event_instance.py
"""
EventInstance model: one concrete occurrence of a class.

``start_utc``/``end_utc`` are absolute instants; capacity, price and the
cancellation window are snapshotted from the series at generation time
so later series edits do not rewrite already-booked sessions.
"""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.enums import EventStatus
from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import GuidSetType, UTCDateTime


class EventInstance(Base):
    __tablename__ = "event_instances"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    studio_id = Column(String(26), ForeignKey("studios.id"), nullable=False)
    event_series_id = Column(String(26), ForeignKey("event_series.id"), nullable=True, index=True)
    instructor_id = Column(String(26), ForeignKey("instructors.id"), nullable=True)
    room_id = Column(String(26), ForeignKey("rooms.id"), nullable=True)

    start_utc = Column(UTCDateTime, nullable=False)
    end_utc = Column(UTCDateTime, nullable=False)

    capacity = Column(Integer, nullable=False, default=0)
    remote_capacity = Column(Integer, nullable=False, default=0)
    price_cents = Column(Integer, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="ILS")
    remote_invite_url = Column(String(500), nullable=False, default="")
    cancellation_window_hours = Column(Integer, nullable=False, default=0)
    notes = Column(Text, nullable=False, default="")
    # Overrides the series allow-list when non-empty
    allowed_plan_ids = Column(GuidSetType, nullable=False, default=set)

    status = Column(String(20), nullable=False, default=EventStatus.SCHEDULED.value)
    # Bumped under the per-instance booking lock on backends without row locks
    booking_version = Column(Integer, nullable=False, default=0)
    created_at = Column(UTCDateTime, server_default=func.now())

    series = relationship("EventSeries", back_populates="instances")

    __table_args__ = (
        Index("ix_event_instances_studio_start", "studio_id", "start_utc"),
        CheckConstraint("start_utc < end_utc", name="ck_instance_start_before_end"),
    )

    @property
    def duration_minutes(self) -> int:
        return max(0, round((self.end_utc - self.start_utc).total_seconds() / 60))

    def __repr__(self) -> str:
        return f"<EventInstance {self.id} {self.start_utc.isoformat()} {self.status}>"
