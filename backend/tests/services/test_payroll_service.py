"""Instructor payroll computation and idempotent per-session entries."""

from datetime import datetime, timezone

import pytest
from sqlalchemy.orm import Session

from studio_core.core.config import settings
from studio_core.core.enums import AttendanceStatus, BookingStatus, PayrollRateUnit
from studio_core.core.exceptions import NotFoundException, ValidationException
from studio_core.core.ulid_helper import generate_ulid
from studio_core.models import Attendance, Booking, InstructorPayrollEntry
from studio_core.services.payroll_service import PayrollService, compute_units
from tests.factories.studio_builders import (
    create_customer,
    create_instance,
    create_instructor,
    create_studio,
)

START = datetime(2030, 1, 7, 8, tzinfo=timezone.utc)


class TestComputeUnits:
    @pytest.mark.parametrize("rate", [0, -100])
    def test_non_positive_rate_pays_nothing(self, rate):
        assert compute_units(rate, PayrollRateUnit.HOUR, 60) == (0.0, 0)
        assert compute_units(rate, PayrollRateUnit.SESSION, 60) == (0.0, 0)

    def test_hourly_rate_scales_with_duration(self):
        assert compute_units(10000, PayrollRateUnit.HOUR, 90) == (1.5, 15000)
        assert compute_units(8000, PayrollRateUnit.HOUR, 45) == (0.75, 6000)

    def test_hourly_amount_is_rounded(self):
        units, amount = compute_units(1000, PayrollRateUnit.HOUR, 20)
        assert units == pytest.approx(1 / 3)
        assert amount == 333

    def test_negative_duration_counts_as_zero(self):
        assert compute_units(10000, PayrollRateUnit.HOUR, -30) == (0.0, 0)

    @pytest.mark.parametrize(
        "unit",
        [PayrollRateUnit.SESSION, PayrollRateUnit.DAY, PayrollRateUnit.WEEK, PayrollRateUnit.MONTH],
    )
    def test_other_units_are_flat(self, unit):
        assert compute_units(12000, unit, 75) == (1.0, 12000)

    def test_accepts_stored_string_unit(self):
        assert compute_units(6000, "HOUR", 30) == (0.5, 3000)


@pytest.fixture
def studio(db: Session):
    return create_studio(db)


def _book(db: Session, studio, instance, count: int) -> list:
    customers = []
    for _ in range(count):
        customer = create_customer(db, studio)
        db.add(
            Booking(
                studio_id=studio.id,
                customer_id=customer.id,
                event_instance_id=instance.id,
                status=BookingStatus.CONFIRMED.value,
            )
        )
        customers.append(customer)
    db.commit()
    return customers


class TestReportSession:
    def test_hourly_entry(self, db: Session, studio):
        instructor = create_instructor(
            db, studio, rate_cents=10000, rate_unit=PayrollRateUnit.HOUR.value
        )
        instance = create_instance(
            db, studio, start_utc=START, duration_minutes=90, instructor_id=instructor.id
        )
        customers = _book(db, studio, instance, 2)
        reporter_id = generate_ulid()
        service = PayrollService(db)
        service.record_attendance(studio, instance.id, customers[0].id)

        entry = service.report_session(studio, instance.id, reporter_user_id=reporter_id)

        assert entry.duration_minutes == 90
        assert entry.booked_count == 2
        assert entry.present_count == 1
        assert entry.units == pytest.approx(1.5)
        assert entry.amount_cents == 15000
        assert entry.rate_unit == PayrollRateUnit.HOUR.value
        assert entry.currency == "ILS"
        assert entry.reported_by_user_id == reporter_id

    def test_instructor_currency_wins(self, db: Session, studio):
        instructor = create_instructor(db, studio, rate_cents=5000, rate_currency="USD")
        instance = create_instance(db, studio, start_utc=START, instructor_id=instructor.id)
        entry = PayrollService(db).report_session(studio, instance.id)
        assert entry.currency == "USD"
        assert (entry.units, entry.amount_cents) == (1.0, 5000)

    def test_falls_back_to_configured_currency(self, db: Session, studio, monkeypatch):
        monkeypatch.setattr(settings, "default_currency", "EUR")
        instructor = create_instructor(db, studio, rate_cents=5000)
        instance = create_instance(
            db, studio, start_utc=START, instructor_id=instructor.id, currency=""
        )
        entry = PayrollService(db).report_session(studio, instance.id)
        assert entry.currency == "EUR"

    def test_reporting_again_updates_single_row(self, db: Session, studio):
        instructor = create_instructor(db, studio, rate_cents=5000)
        instance = create_instance(db, studio, start_utc=START, instructor_id=instructor.id)
        customers = _book(db, studio, instance, 2)
        service = PayrollService(db)

        first = service.report_session(studio, instance.id)
        assert first.present_count == 0

        for customer in customers:
            service.record_attendance(studio, instance.id, customer.id)
        second = service.report_session(studio, instance.id)

        assert second.id == first.id
        assert second.present_count == 2
        assert db.query(InstructorPayrollEntry).count() == 1

    def test_session_without_instructor(self, db: Session, studio):
        instance = create_instance(db, studio, start_utc=START)
        with pytest.raises(ValidationException):
            PayrollService(db).report_session(studio, instance.id)

    def test_missing_session(self, db: Session, studio):
        with pytest.raises(NotFoundException):
            PayrollService(db).report_session(studio, generate_ulid())


class TestRecordAttendance:
    def test_upserts_one_row_per_customer(self, db: Session, studio):
        instance = create_instance(db, studio, start_utc=START)
        customer = create_customer(db, studio)
        service = PayrollService(db)

        service.record_attendance(studio, instance.id, customer.id, AttendanceStatus.NO_SHOW)
        service.record_attendance(studio, instance.id, customer.id, AttendanceStatus.PRESENT)

        rows = db.query(Attendance).all()
        assert len(rows) == 1
        assert rows[0].status == AttendanceStatus.PRESENT.value
