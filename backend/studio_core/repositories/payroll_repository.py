# backend/studio_core/repositories/payroll_repository.py
import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..core.enums import AttendanceStatus
from ..models.attendance import Attendance
from ..models.payroll import InstructorPayrollEntry
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class PayrollRepository(BaseRepository[InstructorPayrollEntry]):
    def __init__(self, db: Session):
        super().__init__(db, InstructorPayrollEntry)

    def find_entry(
        self, studio_id: str, instructor_id: str, instance_id: str
    ) -> Optional[InstructorPayrollEntry]:
        return self.find_one_by(
            studio_id=studio_id, instructor_id=instructor_id, event_instance_id=instance_id
        )

    def count_present(self, instance_id: str) -> int:
        query = self.db.query(func.count(Attendance.id)).filter(
            Attendance.event_instance_id == instance_id,
            Attendance.status == AttendanceStatus.PRESENT.value,
        )
        return int(self._execute_scalar(query) or 0)

    def find_attendance(self, instance_id: str, customer_id: str) -> Optional[Attendance]:
        query = self.db.query(Attendance).filter(
            Attendance.event_instance_id == instance_id,
            Attendance.customer_id == customer_id,
        )
        rows = self._execute_query(query.limit(1))
        return rows[0] if rows else None
