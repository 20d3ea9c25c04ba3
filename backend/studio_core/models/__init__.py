# backend/studio_core/models/__init__.py
"""
SQLAlchemy models for the studio scheduling platform.

Importing this package registers every table on ``Base.metadata``.
"""

from .attendance import Attendance
from .billing import BillingCharge, BillingChargeLineItem
from .booking import Booking
from .coupon import Coupon
from .customer import Customer, HealthDeclaration
from .event_instance import EventInstance
from .event_series import EventSeries
from .instructor import Instructor
from .membership import Membership
from .payment import Payment
from .payroll import InstructorPayrollEntry
from .plan import Plan
from .studio import Room, Studio

__all__ = [
    "Attendance",
    "BillingCharge",
    "BillingChargeLineItem",
    "Booking",
    "Coupon",
    "Customer",
    "EventInstance",
    "EventSeries",
    "HealthDeclaration",
    "Instructor",
    "InstructorPayrollEntry",
    "Membership",
    "Payment",
    "Plan",
    "Room",
    "Studio",
]
