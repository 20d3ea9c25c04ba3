# backend/studio_core/repositories/studio_repository.py
import logging
from typing import List

from sqlalchemy.orm import Session

from ..models.studio import Studio
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class StudioRepository(BaseRepository[Studio]):
    def __init__(self, db: Session):
        super().__init__(db, Studio)

    def list_ids(self) -> List[str]:
        rows = self._execute_query(self.db.query(Studio.id).order_by(Studio.created_at, Studio.id))
        return [row[0] for row in rows]
