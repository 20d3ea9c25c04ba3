# backend/studio_core/core/enums.py
"""
Core enums for the studio scheduling platform.

Stored as their string values so rows stay readable in the database and
in API payloads.
"""

from enum import Enum


class UserRole(str, Enum):
    """Roles attached to an authenticated request context."""

    ADMIN = "admin"
    STAFF = "staff"
    INSTRUCTOR = "instructor"
    CUSTOMER = "customer"
    GUEST = "guest"


class EventStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    CANCELLED = "CANCELLED"


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class PlanType(str, Enum):
    """How a plan limits bookings."""

    WEEKLY_LIMIT = "WEEKLY_LIMIT"  # N bookings per studio week
    PUNCH_CARD = "PUNCH_CARD"  # fixed bank of uses
    UNLIMITED = "UNLIMITED"


class MembershipStatus(str, Enum):
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


class AttendanceStatus(str, Enum):
    PRESENT = "PRESENT"
    NO_SHOW = "NO_SHOW"


class PayrollRateUnit(str, Enum):
    SESSION = "SESSION"
    HOUR = "HOUR"
    DAY = "DAY"
    WEEK = "WEEK"
    MONTH = "MONTH"


class DiscountType(str, Enum):
    PERCENT = "PERCENT"
    AMOUNT = "AMOUNT"


class BillingChargeStatus(str, Enum):
    DRAFT = "DRAFT"
    POSTED = "POSTED"
    VOIDED = "VOIDED"
