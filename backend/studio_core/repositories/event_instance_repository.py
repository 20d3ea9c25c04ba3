# backend/studio_core/repositories/event_instance_repository.py
"""
EventInstance repository: overlap queries for conflict checking, the
idempotence lookup used by generation, and the per-instance booking lock.
"""

from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy import or_, update
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import EventStatus
from ..core.exceptions import RepositoryException
from ..models.event_instance import EventInstance
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class EventInstanceRepository(BaseRepository[EventInstance]):
    def __init__(self, db: Session):
        super().__init__(db, EventInstance)

    def find_overlapping_sessions(
        self,
        studio_id: str,
        start_utc: datetime,
        end_utc: datetime,
        *,
        room_id: Optional[str] = None,
        instructor_id: Optional[str] = None,
        exclude_instance_id: Optional[str] = None,
    ) -> List[EventInstance]:
        """
        Non-cancelled instances in the studio whose half-open interval
        intersects ``[start_utc, end_utc)`` and share the room or instructor.
        """
        resource_filters = []
        if room_id:
            resource_filters.append(EventInstance.room_id == room_id)
        if instructor_id:
            resource_filters.append(EventInstance.instructor_id == instructor_id)
        if not resource_filters:
            return []

        query = self.db.query(EventInstance).filter(
            EventInstance.studio_id == studio_id,
            EventInstance.status != EventStatus.CANCELLED.value,
            EventInstance.start_utc < end_utc,
            EventInstance.end_utc > start_utc,
            or_(*resource_filters),
        )
        if exclude_instance_id:
            query = query.filter(EventInstance.id != exclude_instance_id)
        return self._execute_query(query)

    def exists_for_series_start(self, series_id: str, start_utc: datetime) -> bool:
        try:
            return (
                self.db.query(EventInstance.id)
                .filter(
                    EventInstance.event_series_id == series_id,
                    EventInstance.start_utc == start_utc,
                )
                .first()
                is not None
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking existing instance for series {series_id}: {str(e)}")
            raise RepositoryException(f"Failed to check existing instance: {str(e)}")

    def lock_for_booking(self, instance_id: str) -> Optional[EventInstance]:
        """
        Take the per-instance booking lock and return a fresh copy of the row.

        PostgreSQL uses ``SELECT ... FOR UPDATE``. SQLite has no row locks, so
        the row is touched with an UPDATE, which takes the database write lock
        until the surrounding transaction ends. Lock timeouts surface as
        OperationalError for the caller's retry policy.
        """
        try:
            if self.dialect_name == "postgresql":
                return (
                    self.db.query(EventInstance)
                    .filter(EventInstance.id == instance_id)
                    .populate_existing()
                    .with_for_update()
                    .first()
                )

            self.db.execute(
                update(EventInstance)
                .where(EventInstance.id == instance_id)
                .values(booking_version=EventInstance.booking_version + 1)
                .execution_options(synchronize_session=False)
            )
            return (
                self.db.query(EventInstance)
                .filter(EventInstance.id == instance_id)
                .populate_existing()
                .first()
            )
        except OperationalError:
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking instance {instance_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock instance: {str(e)}")

    def list_for_studio_between(
        self, studio_id: str, start_utc: datetime, end_utc: datetime
    ) -> List[EventInstance]:
        query = (
            self.db.query(EventInstance)
            .filter(
                EventInstance.studio_id == studio_id,
                EventInstance.start_utc >= start_utc,
                EventInstance.start_utc < end_utc,
            )
            .order_by(EventInstance.start_utc)
        )
        return self._execute_query(query)
