# backend/studio_core/routes/schedule.py
"""
Schedule routes: series generation, ad-hoc instances, week windows.
"""

from datetime import datetime, timezone
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..core.exceptions import DomainException, NotFoundException
from ..core.request_context import RequestContext
from ..database import get_db
from ..models.studio import Studio
from ..repositories import RepositoryFactory
from ..schemas.schedule import (
    EventInstanceResponse,
    GenerateRequest,
    GenerateResponse,
    InstanceCreateRequest,
    InstanceUpdateRequest,
    WeekWindowResponse,
)
from ..services.schedule_service import ScheduleService
from ..services.week_window_service import WeekWindowService
from .dependencies import get_schedule_service, get_studio, require_staff, require_ulid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/studios/{studio_id}", tags=["schedule"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    raise exc.to_http_exception()


@router.post("/series/{series_id}/generate", response_model=GenerateResponse)
def generate_series_instances(
    series_id: str,
    payload: GenerateRequest,
    studio: Studio = Depends(get_studio),
    _: RequestContext = Depends(require_staff),
    db: Session = Depends(get_db),
    schedule_service: ScheduleService = Depends(get_schedule_service),
) -> GenerateResponse:
    try:
        require_ulid(series_id, "series_id")
        series = RepositoryFactory.create_event_series_repository(db).get_for_studio(
            studio.id, series_id
        )
        if series is None:
            raise NotFoundException("Series not found", code="SERIES_NOT_FOUND")
        created = schedule_service.generate_for_series(
            studio, series, payload.from_date, payload.to_date
        )
    except DomainException as e:
        handle_domain_exception(e)
    return GenerateResponse(created=created)


@router.post("/generate", response_model=GenerateResponse)
def generate_studio_instances(
    payload: GenerateRequest,
    studio: Studio = Depends(get_studio),
    _: RequestContext = Depends(require_staff),
    schedule_service: ScheduleService = Depends(get_schedule_service),
) -> GenerateResponse:
    try:
        created = schedule_service.generate_for_studio(studio, payload.from_date, payload.to_date)
    except DomainException as e:
        handle_domain_exception(e)
    return GenerateResponse(created=created)


@router.post(
    "/instances", response_model=EventInstanceResponse, status_code=status.HTTP_201_CREATED
)
def create_instance(
    payload: InstanceCreateRequest,
    studio: Studio = Depends(get_studio),
    _: RequestContext = Depends(require_staff),
    schedule_service: ScheduleService = Depends(get_schedule_service),
) -> EventInstanceResponse:
    try:
        outcome = schedule_service.create_instance(
            studio,
            title=payload.title,
            local_date=payload.local_date,
            start_time_local=payload.start_time_local,
            duration_minutes=payload.duration_minutes,
            room_id=payload.room_id,
            instructor_id=payload.instructor_id,
            capacity=payload.capacity,
            remote_capacity=payload.remote_capacity,
            price_cents=payload.price_cents,
            currency=payload.currency,
            cancellation_window_hours=payload.cancellation_window_hours,
            allowed_plan_ids=payload.allowed_plan_ids,
            description=payload.description,
            notes=payload.notes,
            remote_invite_url=payload.remote_invite_url,
            status=payload.status,
        )
        if not outcome.ok:
            raise outcome.to_domain_exception()
    except DomainException as e:
        handle_domain_exception(e)
    return EventInstanceResponse.model_validate(outcome.value)


@router.patch("/instances/{instance_id}", response_model=EventInstanceResponse)
def update_instance(
    instance_id: str,
    payload: InstanceUpdateRequest,
    studio: Studio = Depends(get_studio),
    _: RequestContext = Depends(require_staff),
    schedule_service: ScheduleService = Depends(get_schedule_service),
) -> EventInstanceResponse:
    try:
        require_ulid(instance_id, "instance_id")
        outcome = schedule_service.update_instance(
            studio, instance_id, **payload.model_dump(exclude_unset=True)
        )
        if not outcome.ok:
            raise outcome.to_domain_exception()
    except DomainException as e:
        handle_domain_exception(e)
    return EventInstanceResponse.model_validate(outcome.value)


@router.get("/week-window", response_model=WeekWindowResponse)
def get_week_window(
    at: Optional[datetime] = Query(default=None, description="Instant inside the week (UTC)"),
    studio: Studio = Depends(get_studio),
) -> WeekWindowResponse:
    instant = at or datetime.now(timezone.utc)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    start, end = WeekWindowService.get_week_window_utc(studio, instant)
    return WeekWindowResponse(week_start_utc=start, week_end_utc=end)
