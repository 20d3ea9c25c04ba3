# backend/studio_core/repositories/event_series_repository.py
import logging
from typing import List

from sqlalchemy.orm import Session

from ..models.event_series import EventSeries
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class EventSeriesRepository(BaseRepository[EventSeries]):
    def __init__(self, db: Session):
        super().__init__(db, EventSeries)

    def list_active_for_studio(self, studio_id: str) -> List[EventSeries]:
        query = (
            self.db.query(EventSeries)
            .filter(EventSeries.studio_id == studio_id, EventSeries.is_active.is_(True))
            .order_by(EventSeries.day_of_week, EventSeries.start_time_local)
        )
        return self._execute_query(query)
