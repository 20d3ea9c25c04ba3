# backend/studio_core/repositories/membership_repository.py
"""
Membership, plan and coupon lookups used by booking and checkout.
"""

import logging
from typing import Any, Optional

from sqlalchemy import func, update
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.coupon import Coupon
from ..models.membership import Membership
from ..models.plan import Plan
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class MembershipRepository(BaseRepository[Membership]):
    def __init__(self, db: Session):
        super().__init__(db, Membership)

    def get_plan(self, studio_id: str, plan_id: str) -> Optional[Plan]:
        query = self.db.query(Plan).filter(Plan.id == plan_id, Plan.studio_id == studio_id)
        rows = self._execute_query(query.limit(1))
        return rows[0] if rows else None

    def get_coupon_by_code(self, studio_id: str, code: str) -> Optional[Coupon]:
        """Case-insensitive coupon lookup within a studio."""
        query = self.db.query(Coupon).filter(
            Coupon.studio_id == studio_id,
            func.upper(Coupon.code) == code.strip().upper(),
        )
        rows = self._execute_query(query.limit(1))
        return rows[0] if rows else None

    def consume_use(self, membership: Membership) -> bool:
        """
        Spend one punch in a single UPDATE guarded by ``remaining_uses > 0``.

        Returns False when no use was left at write time.
        """
        spent = self._adjust_remaining_uses(
            membership, Membership.remaining_uses - 1, Membership.remaining_uses > 0
        )
        return spent == 1

    def restore_use(self, membership: Membership) -> None:
        self._adjust_remaining_uses(membership, Membership.remaining_uses + 1)

    def _adjust_remaining_uses(
        self, membership: Membership, new_value: Any, *conditions: Any
    ) -> int:
        try:
            result = self.db.execute(
                update(Membership)
                .where(Membership.id == membership.id, *conditions)
                .values(remaining_uses=new_value)
                .execution_options(synchronize_session=False)
            )
        except OperationalError:
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Error adjusting uses on membership {membership.id}: {str(e)}")
            raise RepositoryException(f"Failed to update membership uses: {str(e)}")
        self.db.expire(membership, ["remaining_uses"])
        return result.rowcount
