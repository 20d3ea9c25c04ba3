# backend/studio_core/services/schedule_service.py
"""
Schedule Service

Materializes EventSeries recurrence templates into EventInstance rows and
manages ad-hoc instances:
- Weekly recurrence expansion in the studio's local calendar
- Idempotent regeneration (an existing (series, start_utc) pair is skipped)
- Room/instructor conflict avoidance through ConflictChecker
- Ad-hoc instance creation and reschedule with conflict validation
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import EventStatus
from ..core.exceptions import NotFoundException, ValidationException
from ..core.outcomes import ErrorCode, Outcome
from ..models.event_instance import EventInstance
from ..models.event_series import EventSeries
from ..models.studio import Studio
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..utils.time_utils import ensure_utc, sunday_based_weekday
from .base import BaseService
from .conflict_checker import ConflictChecker
from .timezone_service import TimezoneService

logger = logging.getLogger(__name__)

_UPDATABLE_INSTANCE_FIELDS = (
    "capacity",
    "remote_capacity",
    "price_cents",
    "remote_invite_url",
    "cancellation_window_hours",
    "notes",
    "allowed_plan_ids",
)


@dataclass
class GenerationStats:
    created: int = 0
    skipped_existing: int = 0
    skipped_conflict: int = 0


def next_occurrence(
    from_local: datetime, day_of_week: int, start_time: time, interval_weeks: int
) -> datetime:
    """
    First local wall-clock start on or after ``from_local`` falling on
    ``day_of_week`` (0 = Sunday ... 6 = Saturday).

    A same-day candidate earlier than ``from_local`` is pushed forward by
    the recurrence interval.
    """
    diff = (day_of_week - sunday_based_weekday(from_local.date()) + 7) % 7
    candidate = datetime.combine(from_local.date() + timedelta(days=diff), start_time)
    if candidate < from_local:
        candidate += timedelta(days=7 * max(interval_weeks, 1))
    return candidate


class ScheduleService(BaseService):
    def __init__(self, db: Session, conflict_checker: Optional[ConflictChecker] = None):
        super().__init__(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db)
        self.instance_repository = RepositoryFactory.create_event_instance_repository(db)
        self.series_repository = RepositoryFactory.create_event_series_repository(db)

    # Recurrence generation

    @BaseService.measure_operation("generate_for_studio")
    def generate_for_studio(self, studio: Studio, from_date: date, to_date: date) -> int:
        """Generate instances for every active series of the studio. Returns the number created."""
        total = 0
        for series in self.series_repository.list_active_for_studio(studio.id):
            total += self.generate_for_series(studio, series, from_date, to_date)
        return total

    @BaseService.measure_operation("generate_for_series")
    def generate_for_series(
        self, studio: Studio, series: EventSeries, from_date: date, to_date: date
    ) -> int:
        """
        Expand one series over ``[from_date, to_date)`` (studio-local dates).

        The existence checks and the batch insert run in one transaction.
        Returns the number of instances actually created.

        Raises:
            ValidationException: If the series has a non-positive duration
                or an invalid day of week
        """
        self._validate_series(series)
        stats = GenerationStats()
        interval_weeks = max(series.recurrence_interval_weeks or 1, 1)
        step = timedelta(days=7 * interval_weeks)
        duration = timedelta(minutes=series.duration_minutes)
        to_local = datetime.combine(to_date, time.min)

        with self.transaction():
            occurrences: List[EventInstance] = []
            current = next_occurrence(
                datetime.combine(from_date, time.min),
                series.day_of_week,
                series.start_time_local,
                interval_weeks,
            )
            while current < to_local:
                start_utc = TimezoneService.naive_local_to_utc(current, studio.timezone)
                # Elapsed length is fixed; only the start follows the DST policy
                end_utc = start_utc + duration

                if self.instance_repository.exists_for_series_start(series.id, start_utc):
                    stats.skipped_existing += 1
                elif self.conflict_checker.has_conflict(
                    studio.id,
                    start_utc,
                    end_utc,
                    room_id=series.room_id,
                    instructor_id=series.instructor_id,
                ):
                    stats.skipped_conflict += 1
                    self.logger.info(
                        f"Skipped session for series {series.id} at {start_utc.isoformat()} due to overlap",
                        extra={
                            "studio_id": studio.id,
                            "series_id": series.id,
                            "start_utc": start_utc.isoformat(),
                        },
                    )
                else:
                    occurrences.append(self._instance_from_series(studio, series, start_utc, end_utc))

                current += step

            if occurrences:
                self.instance_repository.add_all(occurrences)
            stats.created = len(occurrences)

        prometheus_metrics.record_generation(
            stats.created, stats.skipped_existing, stats.skipped_conflict
        )
        self.logger.debug(
            "Generated instances for series",
            extra={
                "series_id": series.id,
                "created": stats.created,
                "skipped_existing": stats.skipped_existing,
                "skipped_conflict": stats.skipped_conflict,
            },
        )
        return stats.created

    @staticmethod
    def _validate_series(series: EventSeries) -> None:
        if series.duration_minutes is None or series.duration_minutes <= 0:
            raise ValidationException(
                "Series duration must be positive",
                code="INVALID_DURATION",
                details={"series_id": series.id, "duration_minutes": series.duration_minutes},
            )
        if series.day_of_week is None or not 0 <= series.day_of_week <= 6:
            raise ValidationException(
                "Series day of week must be between 0 (Sunday) and 6 (Saturday)",
                code="INVALID_DAY_OF_WEEK",
                details={"series_id": series.id, "day_of_week": series.day_of_week},
            )

    @staticmethod
    def _instance_from_series(
        studio: Studio, series: EventSeries, start_utc: datetime, end_utc: datetime
    ) -> EventInstance:
        return EventInstance(
            studio_id=studio.id,
            event_series_id=series.id,
            instructor_id=series.instructor_id,
            room_id=series.room_id,
            start_utc=start_utc,
            end_utc=end_utc,
            capacity=series.default_capacity,
            remote_capacity=series.remote_capacity,
            price_cents=series.price_cents,
            currency=series.currency,
            remote_invite_url=series.remote_invite_url or "",
            cancellation_window_hours=series.cancellation_window_hours,
            status=EventStatus.SCHEDULED.value,
        )

    # Ad-hoc instances

    @BaseService.measure_operation("create_instance")
    def create_instance(
        self,
        studio: Studio,
        *,
        title: str,
        local_date: date,
        start_time_local: time,
        duration_minutes: int,
        room_id: Optional[str] = None,
        instructor_id: Optional[str] = None,
        capacity: int = 0,
        remote_capacity: int = 0,
        price_cents: int = 0,
        currency: Optional[str] = None,
        cancellation_window_hours: int = 0,
        allowed_plan_ids: Optional[set] = None,
        description: str = "",
        notes: str = "",
        remote_invite_url: str = "",
        status: EventStatus = EventStatus.SCHEDULED,
    ) -> Outcome[EventInstance]:
        """
        Create a one-off instance owned by an inactive single-use series.

        Raises:
            ValidationException: If the title is blank or duration is not positive
        """
        if not title or not title.strip() or duration_minutes <= 0:
            raise ValidationException("Title and duration required", code="INVALID_INSTANCE")

        room_id = room_id or None
        instructor_id = instructor_id or None
        start_utc = TimezoneService.local_to_utc(local_date, start_time_local, studio.timezone)
        end_utc = start_utc + timedelta(minutes=duration_minutes)

        if self.conflict_checker.has_conflict(
            studio.id, start_utc, end_utc, room_id=room_id, instructor_id=instructor_id
        ):
            return Outcome.failure(ErrorCode.SCHEDULING_CONFLICT, start_utc=start_utc.isoformat())

        currency = currency or settings.default_currency
        plan_ids = set(allowed_plan_ids or ())
        with self.transaction():
            series = self.series_repository.create(
                studio_id=studio.id,
                title=title.strip(),
                description=description,
                instructor_id=instructor_id,
                room_id=room_id,
                day_of_week=sunday_based_weekday(local_date),
                start_time_local=start_time_local,
                duration_minutes=duration_minutes,
                recurrence_interval_weeks=1,
                default_capacity=capacity,
                remote_capacity=remote_capacity,
                price_cents=price_cents,
                currency=currency,
                remote_invite_url=remote_invite_url,
                allowed_plan_ids=plan_ids,
                cancellation_window_hours=cancellation_window_hours,
                is_active=False,
            )
            instance = self.instance_repository.create(
                studio_id=studio.id,
                event_series_id=series.id,
                instructor_id=instructor_id,
                room_id=room_id,
                start_utc=start_utc,
                end_utc=end_utc,
                capacity=capacity,
                remote_capacity=remote_capacity,
                price_cents=price_cents,
                currency=currency,
                remote_invite_url=remote_invite_url,
                cancellation_window_hours=cancellation_window_hours,
                notes=notes,
                status=EventStatus(status).value,
            )

        self.log_operation("create_instance", studio_id=studio.id, instance_id=instance.id)
        return Outcome.success(instance)

    @BaseService.measure_operation("update_instance")
    def update_instance(
        self, studio: Studio, instance_id: str, **changes: Any
    ) -> Outcome[EventInstance]:
        """
        Apply a partial update to an instance.

        Only keys present in ``changes`` are applied. ``room_id`` and
        ``instructor_id`` may be set to None to clear them. When start, end,
        room or instructor change and the instance is not being cancelled,
        the new schedule is checked for conflicts against every other instance.

        Raises:
            NotFoundException: If the instance does not belong to the studio
            ValidationException: If the resulting start is not before the end
        """
        instance = self.instance_repository.get_for_studio(studio.id, instance_id)
        if instance is None:
            raise NotFoundException("Event not found", code=ErrorCode.EVENT_NOT_FOUND.value)

        next_values: Dict[str, Any] = {
            "start_utc": ensure_utc(changes["start_utc"])
            if changes.get("start_utc")
            else instance.start_utc,
            "end_utc": ensure_utc(changes["end_utc"]) if changes.get("end_utc") else instance.end_utc,
            "room_id": (changes["room_id"] or None) if "room_id" in changes else instance.room_id,
            "instructor_id": (changes["instructor_id"] or None)
            if "instructor_id" in changes
            else instance.instructor_id,
        }
        next_status = EventStatus(changes.get("status") or instance.status)

        if next_values["start_utc"] >= next_values["end_utc"]:
            raise ValidationException("Start must be before end", code="INVALID_TIME_RANGE")

        schedule_changed = any(
            next_values[key] != getattr(instance, key) for key in next_values
        )
        if schedule_changed and next_status != EventStatus.CANCELLED:
            if self.conflict_checker.has_conflict(
                studio.id,
                next_values["start_utc"],
                next_values["end_utc"],
                room_id=next_values["room_id"],
                instructor_id=next_values["instructor_id"],
                exclude_instance_id=instance.id,
            ):
                return Outcome.failure(ErrorCode.SCHEDULING_CONFLICT, instance_id=instance.id)

        with self.transaction():
            for key, value in next_values.items():
                setattr(instance, key, value)
            instance.status = next_status.value
            if changes.get("currency"):
                instance.currency = changes["currency"]
            for key in _UPDATABLE_INSTANCE_FIELDS:
                if changes.get(key) is not None:
                    setattr(instance, key, changes[key])

        self.log_operation("update_instance", studio_id=studio.id, instance_id=instance.id)
        return Outcome.success(instance)
