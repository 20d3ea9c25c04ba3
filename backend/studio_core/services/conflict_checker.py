# backend/studio_core/services/conflict_checker.py
"""
Conflict Checker Service

Answers whether a proposed time window double-books a room or an
instructor. Every non-cancelled instance in the studio is considered,
whatever series owns it. Intervals are half-open, so a session ending
exactly when another starts is not a conflict.
"""

from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..models.event_instance import EventInstance
from ..repositories import RepositoryFactory
from ..repositories.event_instance_repository import EventInstanceRepository
from .base import BaseService

logger = logging.getLogger(__name__)


class ConflictChecker(BaseService):
    def __init__(self, db: Session, repository: Optional[EventInstanceRepository] = None):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_event_instance_repository(db)

    @BaseService.measure_operation("find_conflicts")
    def find_conflicts(
        self,
        studio_id: str,
        start_utc: datetime,
        end_utc: datetime,
        room_id: Optional[str] = None,
        instructor_id: Optional[str] = None,
        exclude_instance_id: Optional[str] = None,
    ) -> List[EventInstance]:
        """
        Instances that share the room or the instructor and overlap
        ``[start_utc, end_utc)``. Empty when neither resource is given.
        """
        if not room_id and not instructor_id:
            return []

        return self.repository.find_overlapping_sessions(
            studio_id,
            start_utc,
            end_utc,
            room_id=room_id,
            instructor_id=instructor_id,
            exclude_instance_id=exclude_instance_id,
        )

    def has_conflict(
        self,
        studio_id: str,
        start_utc: datetime,
        end_utc: datetime,
        room_id: Optional[str] = None,
        instructor_id: Optional[str] = None,
        exclude_instance_id: Optional[str] = None,
    ) -> bool:
        conflicts = self.find_conflicts(
            studio_id,
            start_utc,
            end_utc,
            room_id=room_id,
            instructor_id=instructor_id,
            exclude_instance_id=exclude_instance_id,
        )
        if conflicts:
            self.logger.debug(
                "Scheduling conflict detected",
                extra={
                    "studio_id": studio_id,
                    "start_utc": start_utc.isoformat(),
                    "conflicting_instance_ids": [c.id for c in conflicts],
                },
            )
        return bool(conflicts)
