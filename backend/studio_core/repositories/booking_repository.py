# backend/studio_core/repositories/booking_repository.py
"""
Booking repository.

Capacity and plan-limit counts only consider CONFIRMED bookings and are
always evaluated inside the caller's booking transaction.
"""

from datetime import datetime
import logging
from typing import Optional

from sqlalchemy import func, update
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import BookingStatus
from ..core.exceptions import RepositoryException
from ..models.booking import Booking
from ..models.event_instance import EventInstance
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    def __init__(self, db: Session):
        super().__init__(db, Booking)

    def find_for_customer_instance(self, customer_id: str, instance_id: str) -> Optional[Booking]:
        return self.find_one_by(customer_id=customer_id, event_instance_id=instance_id)

    def mark_cancelled(self, booking: Booking, cancelled_at: datetime) -> bool:
        """
        Cancel in one conditional UPDATE. Returns False if the booking was
        already cancelled by the time the write ran.
        """
        try:
            result = self.db.execute(
                update(Booking)
                .where(Booking.id == booking.id, Booking.status != BookingStatus.CANCELLED.value)
                .values(status=BookingStatus.CANCELLED.value, cancelled_at=cancelled_at)
                .execution_options(synchronize_session=False)
            )
        except OperationalError:
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Error cancelling booking {booking.id}: {str(e)}")
            raise RepositoryException(f"Failed to cancel booking: {str(e)}")
        self.db.expire(booking, ["status", "cancelled_at"])
        return result.rowcount == 1

    def count_confirmed(self, instance_id: str, *, is_remote: bool) -> int:
        """Confirmed bookings in one attendance pool (in-person or remote)."""
        query = self.db.query(func.count(Booking.id)).filter(
            Booking.event_instance_id == instance_id,
            Booking.status == BookingStatus.CONFIRMED.value,
            Booking.is_remote.is_(is_remote),
        )
        return int(self._execute_scalar(query) or 0)

    def count_all_confirmed(self, instance_id: str) -> int:
        query = self.db.query(func.count(Booking.id)).filter(
            Booking.event_instance_id == instance_id,
            Booking.status == BookingStatus.CONFIRMED.value,
        )
        return int(self._execute_scalar(query) or 0)

    def count_membership_bookings_between(
        self,
        studio_id: str,
        customer_id: str,
        membership_id: str,
        start_utc: datetime,
        end_utc: datetime,
    ) -> int:
        """
        Confirmed bookings made with a membership whose instance starts in
        ``[start_utc, end_utc)``.
        """
        query = (
            self.db.query(func.count(Booking.id))
            .join(EventInstance, EventInstance.id == Booking.event_instance_id)
            .filter(
                Booking.studio_id == studio_id,
                Booking.customer_id == customer_id,
                Booking.membership_id == membership_id,
                Booking.status == BookingStatus.CONFIRMED.value,
                EventInstance.start_utc >= start_utc,
                EventInstance.start_utc < end_utc,
            )
        )
        return int(self._execute_scalar(query) or 0)
