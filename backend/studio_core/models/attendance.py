# backend/studio_core/models/attendance.py
from sqlalchemy import Column, ForeignKey, String, UniqueConstraint
from sqlalchemy.sql import func

from ..core.enums import AttendanceStatus
from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import UTCDateTime


class Attendance(Base):
    """Check-in record for one customer at one instance."""

    __tablename__ = "attendance"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    studio_id = Column(String(26), ForeignKey("studios.id"), nullable=False)
    event_instance_id = Column(String(26), ForeignKey("event_instances.id"), nullable=False)
    customer_id = Column(String(26), ForeignKey("customers.id"), nullable=False)
    status = Column(String(20), nullable=False, default=AttendanceStatus.PRESENT.value)
    recorded_at = Column(UTCDateTime, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("event_instance_id", "customer_id", name="uq_attendance_instance_customer"),
    )
