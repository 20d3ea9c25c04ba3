# backend/studio_core/repositories/billing_repository.py
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..models.billing import BillingCharge
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BillingRepository(BaseRepository[BillingCharge]):
    def __init__(self, db: Session):
        super().__init__(db, BillingCharge)

    def find_for_source(
        self, studio_id: str, source_type: str, source_id: str
    ) -> Optional[BillingCharge]:
        return self.find_one_by(studio_id=studio_id, source_type=source_type, source_id=source_id)
