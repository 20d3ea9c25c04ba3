# backend/studio_core/repositories/factory.py
"""
Repository factory.

Centralizes repository creation so services share one way of wiring
a session into data access.
"""

from typing import TYPE_CHECKING, Any

from sqlalchemy.orm import Session

from .base_repository import BaseRepository

if TYPE_CHECKING:
    from .billing_repository import BillingRepository
    from .booking_repository import BookingRepository
    from .customer_repository import CustomerRepository
    from .event_instance_repository import EventInstanceRepository
    from .event_series_repository import EventSeriesRepository
    from .membership_repository import MembershipRepository
    from .payroll_repository import PayrollRepository
    from .studio_repository import StudioRepository


class RepositoryFactory:
    @staticmethod
    def create_base_repository(db: Session, model: Any) -> BaseRepository[Any]:
        """Generic repository for models without custom queries."""
        return BaseRepository(db, model)

    @staticmethod
    def create_studio_repository(db: Session) -> "StudioRepository":
        from .studio_repository import StudioRepository

        return StudioRepository(db)

    @staticmethod
    def create_event_series_repository(db: Session) -> "EventSeriesRepository":
        from .event_series_repository import EventSeriesRepository

        return EventSeriesRepository(db)

    @staticmethod
    def create_event_instance_repository(db: Session) -> "EventInstanceRepository":
        from .event_instance_repository import EventInstanceRepository

        return EventInstanceRepository(db)

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_customer_repository(db: Session) -> "CustomerRepository":
        from .customer_repository import CustomerRepository

        return CustomerRepository(db)

    @staticmethod
    def create_membership_repository(db: Session) -> "MembershipRepository":
        from .membership_repository import MembershipRepository

        return MembershipRepository(db)

    @staticmethod
    def create_billing_repository(db: Session) -> "BillingRepository":
        from .billing_repository import BillingRepository

        return BillingRepository(db)

    @staticmethod
    def create_payroll_repository(db: Session) -> "PayrollRepository":
        from .payroll_repository import PayrollRepository

        return PayrollRepository(db)
