# backend/studio_core/services/__init__.py
from .base import BaseService
from .booking_service import BookingService
from .checkout_service import CheckoutService
from .conflict_checker import ConflictChecker
from .payroll_service import PayrollService, compute_units
from .schedule_service import ScheduleService
from .timezone_service import TimezoneService
from .week_window_service import WeekWindowService

__all__ = [
    "BaseService",
    "BookingService",
    "CheckoutService",
    "ConflictChecker",
    "PayrollService",
    "ScheduleService",
    "TimezoneService",
    "WeekWindowService",
    "compute_units",
]
