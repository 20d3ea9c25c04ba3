# backend/studio_core/schemas/schedule.py
from datetime import date, datetime, time
from typing import Optional, Set

from pydantic import Field, field_validator, model_validator

from ..core.enums import EventStatus
from .base import ORMResponseModel, StrictRequestModel


class GenerateRequest(StrictRequestModel):
    """Studio-local date window ``[from_date, to_date)``."""

    from_date: date
    to_date: date

    @model_validator(mode="after")
    def _check_window(self) -> "GenerateRequest":
        if self.to_date < self.from_date:
            raise ValueError("to_date must not be before from_date")
        return self


class GenerateResponse(ORMResponseModel):
    created: int


class InstanceCreateRequest(StrictRequestModel):
    title: str = Field(..., min_length=1, max_length=200)
    local_date: date
    start_time_local: time
    duration_minutes: int = Field(..., gt=0)
    room_id: Optional[str] = None
    instructor_id: Optional[str] = None
    capacity: int = Field(default=0, ge=0)
    remote_capacity: int = Field(default=0, ge=0)
    price_cents: int = Field(default=0, ge=0)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    cancellation_window_hours: int = Field(default=0, ge=0)
    allowed_plan_ids: Set[str] = Field(default_factory=set)
    description: str = ""
    notes: str = ""
    remote_invite_url: str = ""
    status: EventStatus = EventStatus.SCHEDULED


class InstanceUpdateRequest(StrictRequestModel):
    """Partial update; only fields present in the payload are applied."""

    start_utc: Optional[datetime] = None
    end_utc: Optional[datetime] = None
    room_id: Optional[str] = None
    instructor_id: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=0)
    remote_capacity: Optional[int] = Field(default=None, ge=0)
    price_cents: Optional[int] = Field(default=None, ge=0)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    cancellation_window_hours: Optional[int] = Field(default=None, ge=0)
    remote_invite_url: Optional[str] = None
    notes: Optional[str] = None
    allowed_plan_ids: Optional[Set[str]] = None
    status: Optional[EventStatus] = None

    @field_validator("start_utc", "end_utc")
    @classmethod
    def _require_offset(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            raise ValueError("timestamps must include a UTC offset")
        return value


class EventInstanceResponse(ORMResponseModel):
    id: str
    studio_id: str
    event_series_id: Optional[str]
    instructor_id: Optional[str]
    room_id: Optional[str]
    start_utc: datetime
    end_utc: datetime
    capacity: int
    remote_capacity: int
    price_cents: int
    currency: str
    cancellation_window_hours: int
    allowed_plan_ids: Set[str]
    notes: str
    status: EventStatus


class WeekWindowResponse(ORMResponseModel):
    week_start_utc: datetime
    week_end_utc: datetime
