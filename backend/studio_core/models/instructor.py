# backend/studio_core/models/instructor.py
from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.sql import func

from ..core.enums import PayrollRateUnit
from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import UTCDateTime


class Instructor(Base):
    """Studio-scoped instructor with the payroll rate used for compensation entries."""

    __tablename__ = "instructors"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    studio_id = Column(String(26), ForeignKey("studios.id"), nullable=False, index=True)
    user_id = Column(String(26), nullable=True)
    display_name = Column(String(200), nullable=False)
    rate_cents = Column(Integer, nullable=False, default=0)
    rate_unit = Column(String(20), nullable=False, default=PayrollRateUnit.SESSION.value)
    rate_currency = Column(String(3), nullable=False, default="")
    created_at = Column(UTCDateTime, server_default=func.now())
