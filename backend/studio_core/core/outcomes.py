# backend/studio_core/core/outcomes.py
"""
Typed results for booking and scheduling operations.

Expected business-rule failures (class full, weekly limit reached, ...)
are not exceptional: services return an ``Outcome`` carrying an
``ErrorCode`` and callers branch on it. The API layer turns a failed
outcome into a ``DomainException`` with ``to_domain_exception()``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, Optional, Type, TypeVar

from .exceptions import (
    BusinessRuleException,
    ConflictException,
    DomainException,
    NotFoundException,
)

T = TypeVar("T")


class ErrorCode(str, Enum):
    EVENT_UNAVAILABLE = "EVENT_UNAVAILABLE"
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    SESSION_IN_PAST = "SESSION_IN_PAST"
    ALREADY_BOOKED = "ALREADY_BOOKED"
    HEALTH_DECLARATION_REQUIRED = "HEALTH_DECLARATION_REQUIRED"
    CLASS_FULL = "CLASS_FULL"
    REMOTE_UNAVAILABLE = "REMOTE_UNAVAILABLE"
    REMOTE_FULL = "REMOTE_FULL"
    MEMBERSHIP_NOT_ACTIVE = "MEMBERSHIP_NOT_ACTIVE"
    MEMBERSHIP_EXPIRED = "MEMBERSHIP_EXPIRED"
    PLAN_UNAVAILABLE = "PLAN_UNAVAILABLE"
    PLAN_REMOTE_ONLY = "PLAN_REMOTE_ONLY"
    NO_REMAINING_USES = "NO_REMAINING_USES"
    DAILY_LIMIT_REACHED = "DAILY_LIMIT_REACHED"
    WEEKLY_LIMIT_REACHED = "WEEKLY_LIMIT_REACHED"
    PLAN_REQUIRED_FOR_CLASS = "PLAN_REQUIRED_FOR_CLASS"
    PLAN_NOT_ELIGIBLE = "PLAN_NOT_ELIGIBLE"
    ALREADY_CANCELLED = "ALREADY_CANCELLED"
    CANCELLATION_WINDOW_CLOSED = "CANCELLATION_WINDOW_CLOSED"
    SCHEDULING_CONFLICT = "SCHEDULING_CONFLICT"


ERROR_MESSAGES: Dict[ErrorCode, str] = {
    ErrorCode.EVENT_UNAVAILABLE: "Event is not available",
    ErrorCode.EVENT_NOT_FOUND: "Event not found",
    ErrorCode.SESSION_IN_PAST: "Session is in the past",
    ErrorCode.ALREADY_BOOKED: "Already booked",
    ErrorCode.HEALTH_DECLARATION_REQUIRED: "Health declaration required",
    ErrorCode.CLASS_FULL: "Class is full",
    ErrorCode.REMOTE_UNAVAILABLE: "Remote attendance unavailable",
    ErrorCode.REMOTE_FULL: "Remote spots are full",
    ErrorCode.MEMBERSHIP_NOT_ACTIVE: "Membership not active",
    ErrorCode.MEMBERSHIP_EXPIRED: "Membership expired",
    ErrorCode.PLAN_UNAVAILABLE: "Plan not available",
    ErrorCode.PLAN_REMOTE_ONLY: "Plan is limited to remote attendance",
    ErrorCode.NO_REMAINING_USES: "No remaining uses",
    ErrorCode.DAILY_LIMIT_REACHED: "Daily limit reached",
    ErrorCode.WEEKLY_LIMIT_REACHED: "Weekly limit reached",
    ErrorCode.PLAN_REQUIRED_FOR_CLASS: "Plan required for this class",
    ErrorCode.PLAN_NOT_ELIGIBLE: "Plan not eligible for this class",
    ErrorCode.ALREADY_CANCELLED: "Already cancelled",
    ErrorCode.CANCELLATION_WINDOW_CLOSED: "Cancellation window closed",
    ErrorCode.SCHEDULING_CONFLICT: "Session overlaps with another scheduled session.",
}

_EXCEPTION_TYPES: Dict[ErrorCode, Type[DomainException]] = {
    ErrorCode.EVENT_NOT_FOUND: NotFoundException,
    ErrorCode.ALREADY_BOOKED: ConflictException,
    ErrorCode.CLASS_FULL: ConflictException,
    ErrorCode.REMOTE_FULL: ConflictException,
    ErrorCode.ALREADY_CANCELLED: ConflictException,
    ErrorCode.SCHEDULING_CONFLICT: ConflictException,
}


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of an operation that can fail on a business rule."""

    ok: bool
    value: Optional[T] = None
    error: Optional[ErrorCode] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Outcome[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: ErrorCode, **details: Any) -> "Outcome[T]":
        return cls(ok=False, error=error, details=details)

    @property
    def message(self) -> str:
        if self.error is None:
            return ""
        return ERROR_MESSAGES[self.error]

    def to_domain_exception(self) -> DomainException:
        if self.error is None:
            raise ValueError("Successful outcome has no exception")
        exc_type = _EXCEPTION_TYPES.get(self.error, BusinessRuleException)
        return exc_type(self.message, code=self.error.value, details=dict(self.details))
