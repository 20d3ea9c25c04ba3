# backend/studio_core/services/payroll_service.py
"""
Payroll Service

Instructor compensation per session. Entries are upserted: reporting a
session again recomputes booked/present counts and overwrites the row.
"""

from datetime import datetime
import logging
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import AttendanceStatus, PayrollRateUnit
from ..core.exceptions import NotFoundException, ValidationException
from ..models.attendance import Attendance
from ..models.event_instance import EventInstance
from ..models.instructor import Instructor
from ..models.payroll import InstructorPayrollEntry
from ..models.studio import Studio
from ..repositories import RepositoryFactory
from ..utils.time_utils import utc_now
from .base import BaseService

logger = logging.getLogger(__name__)


def compute_units(
    rate_cents: int, rate_unit: PayrollRateUnit, duration_minutes: int
) -> Tuple[float, int]:
    """
    Return ``(units, amount_cents)`` for one session.

    Hourly rates scale with duration; every other unit is a flat per-session
    amount. A non-positive rate pays nothing.
    """
    if rate_cents <= 0:
        return 0.0, 0
    if PayrollRateUnit(rate_unit) == PayrollRateUnit.HOUR:
        hours = max(0, duration_minutes) / 60.0
        return hours, int(round(rate_cents * hours))
    return 1.0, rate_cents


class PayrollService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.payroll_repository = RepositoryFactory.create_payroll_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.instance_repository = RepositoryFactory.create_event_instance_repository(db)
        self.instructor_repository = RepositoryFactory.create_base_repository(db, Instructor)

    @BaseService.measure_operation("upsert_payroll_entry")
    def upsert_payroll_entry(
        self,
        studio: Studio,
        reporter_user_id: Optional[str],
        instance: EventInstance,
        instructor: Instructor,
        *,
        now: Optional[datetime] = None,
    ) -> InstructorPayrollEntry:
        """Recompute and store the payroll row for (studio, instructor, instance)."""
        booked = self.booking_repository.count_all_confirmed(instance.id)
        present = self.payroll_repository.count_present(instance.id)
        duration_minutes = max(
            0, int(round((instance.end_utc - instance.start_utc).total_seconds() / 60))
        )
        rate_unit = PayrollRateUnit(instructor.rate_unit or PayrollRateUnit.SESSION.value)
        units, amount_cents = compute_units(instructor.rate_cents, rate_unit, duration_minutes)
        currency = instructor.rate_currency or instance.currency or settings.default_currency

        with self.transaction():
            entry = self.payroll_repository.find_entry(studio.id, instructor.id, instance.id)
            if entry is None:
                entry = InstructorPayrollEntry(
                    studio_id=studio.id,
                    instructor_id=instructor.id,
                    event_instance_id=instance.id,
                )
                self.db.add(entry)

            entry.reported_by_user_id = reporter_user_id or None
            entry.reported_at_utc = now or utc_now()
            entry.duration_minutes = duration_minutes
            entry.booked_count = booked
            entry.present_count = present
            entry.units = units
            entry.rate_cents = instructor.rate_cents
            entry.rate_unit = rate_unit.value
            entry.amount_cents = amount_cents
            entry.currency = currency

        self.log_operation(
            "upsert_payroll_entry",
            studio_id=studio.id,
            instance_id=instance.id,
            instructor_id=instructor.id,
            amount_cents=amount_cents,
        )
        return entry

    def report_session(
        self, studio: Studio, instance_id: str, reporter_user_id: Optional[str] = None
    ) -> InstructorPayrollEntry:
        """
        Resolve the session's instructor and upsert its payroll entry.

        Raises:
            NotFoundException: If the session or its instructor is missing
            ValidationException: If the session has no instructor
        """
        instance = self.instance_repository.get_for_studio(studio.id, instance_id)
        if instance is None:
            raise NotFoundException("Session not found", code="EVENT_NOT_FOUND")
        if not instance.instructor_id:
            raise ValidationException("Session has no instructor", code="NO_INSTRUCTOR")
        instructor = self.instructor_repository.get_for_studio(studio.id, instance.instructor_id)
        if instructor is None:
            raise NotFoundException("Instructor not found", code="INSTRUCTOR_NOT_FOUND")
        return self.upsert_payroll_entry(studio, reporter_user_id, instance, instructor)

    @BaseService.measure_operation("record_attendance")
    def record_attendance(
        self,
        studio: Studio,
        instance_id: str,
        customer_id: str,
        status: AttendanceStatus = AttendanceStatus.PRESENT,
    ) -> Attendance:
        """Create or update the single attendance row for (instance, customer)."""
        instance = self.instance_repository.get_for_studio(studio.id, instance_id)
        if instance is None:
            raise NotFoundException("Session not found", code="EVENT_NOT_FOUND")

        with self.transaction():
            attendance = self.payroll_repository.find_attendance(instance.id, customer_id)
            if attendance is None:
                attendance = Attendance(
                    studio_id=studio.id,
                    event_instance_id=instance.id,
                    customer_id=customer_id,
                )
                self.db.add(attendance)
            attendance.status = AttendanceStatus(status).value
            attendance.recorded_at = utc_now()
        return attendance
