# backend/studio_core/repositories/customer_repository.py
import logging

from sqlalchemy.orm import Session

from ..models.customer import Customer, HealthDeclaration
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class CustomerRepository(BaseRepository[Customer]):
    def __init__(self, db: Session):
        super().__init__(db, Customer)

    def has_health_declaration(self, studio_id: str, customer_id: str) -> bool:
        query = self.db.query(HealthDeclaration.id).filter(
            HealthDeclaration.studio_id == studio_id,
            HealthDeclaration.customer_id == customer_id,
        )
        return self._execute_query(query.limit(1)) != []
