# backend/studio_core/models/payroll.py
"""
InstructorPayrollEntry model.

One row per (studio, instructor, instance); reporting the same session
again updates the row in place.
"""

from sqlalchemy import Column, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from ..core.enums import PayrollRateUnit
from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import UTCDateTime


class InstructorPayrollEntry(Base):
    __tablename__ = "instructor_payroll_entries"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    studio_id = Column(String(26), ForeignKey("studios.id"), nullable=False)
    instructor_id = Column(String(26), ForeignKey("instructors.id"), nullable=False, index=True)
    event_instance_id = Column(String(26), ForeignKey("event_instances.id"), nullable=False)
    reported_by_user_id = Column(String(26), nullable=True)
    reported_at_utc = Column(UTCDateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=0)
    booked_count = Column(Integer, nullable=False, default=0)
    present_count = Column(Integer, nullable=False, default=0)
    units = Column(Float, nullable=False, default=0.0)
    rate_cents = Column(Integer, nullable=False, default=0)
    rate_unit = Column(String(20), nullable=False, default=PayrollRateUnit.SESSION.value)
    amount_cents = Column(Integer, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="ILS")
    created_at = Column(UTCDateTime, server_default=func.now())

    __table_args__ = (
        UniqueConstraint(
            "studio_id",
            "instructor_id",
            "event_instance_id",
            name="uq_payroll_studio_instructor_instance",
        ),
    )
