# backend/studio_core/schemas/payroll.py
from datetime import datetime
from typing import Optional

from ..core.enums import PayrollRateUnit
from .base import ORMResponseModel, StrictRequestModel


class PayrollReportRequest(StrictRequestModel):
    event_instance_id: str


class PayrollEntryResponse(ORMResponseModel):
    id: str
    studio_id: str
    instructor_id: str
    event_instance_id: str
    reported_by_user_id: Optional[str]
    reported_at_utc: datetime
    duration_minutes: int
    booked_count: int
    present_count: int
    units: float
    rate_cents: int
    rate_unit: PayrollRateUnit
    amount_cents: int
    currency: str
