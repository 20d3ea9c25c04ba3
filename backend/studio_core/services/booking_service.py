# backend/studio_core/services/booking_service.py
"""
Booking Service

The transactional core of class registration:
- Eligibility checks in a fixed order (first failure wins)
- Capacity arbitration serialized per instance under a row lock
- Drop-in payments, billing charges and punch-card adjustments committed
  atomically with the booking
- Cancellation with deadline enforcement, punch restoration and charge void

The per-instance lock does not cover memberships: punch counters and
cancellation are applied as conditional UPDATEs.

Business-rule failures are returned as ``Outcome`` values. Only store
failures raise, as ServiceException once the retry budget is spent.
"""

from datetime import datetime, timedelta
import logging
from typing import Optional, Set
import uuid

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import BookingStatus, EventStatus, MembershipStatus, PaymentStatus, PlanType
from ..core.exceptions import NotFoundException, ServiceException
from ..core.outcomes import ErrorCode, Outcome
from ..database import with_db_retry
from ..models.booking import Booking
from ..models.customer import Customer
from ..models.event_instance import EventInstance
from ..models.membership import Membership
from ..models.payment import Payment
from ..models.plan import Plan
from ..models.studio import Studio
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..utils.time_utils import utc_now
from .base import BaseService
from .billing_service import BillingService
from .week_window_service import WeekWindowService

logger = logging.getLogger(__name__)


class BookingService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.instance_repository = RepositoryFactory.create_event_instance_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.customer_repository = RepositoryFactory.create_customer_repository(db)
        self.membership_repository = RepositoryFactory.create_membership_repository(db)
        self.payment_repository = RepositoryFactory.create_base_repository(db, Payment)
        self.billing_service = BillingService(db)

    @BaseService.measure_operation("create_booking")
    def create_booking(
        self,
        studio: Studio,
        customer_id: str,
        instance_id: str,
        *,
        membership_id: Optional[str] = None,
        is_remote: bool = False,
        skip_health_check: bool = False,
        now: Optional[datetime] = None,
    ) -> Outcome[Booking]:
        """
        Register a customer for an instance.

        Runs as one transaction holding the instance's booking lock, so the
        capacity count and the insert cannot interleave with a concurrent
        request for the same instance. A lock or serialization conflict is
        retried transparently before surfacing as ServiceException.

        Raises:
            NotFoundException: If the customer does not belong to the studio
            ServiceException: If the store fails or retries are exhausted
        """
        try:
            outcome = with_db_retry(
                "create_booking",
                lambda: self._create_booking_once(
                    studio,
                    customer_id,
                    instance_id,
                    membership_id=membership_id,
                    is_remote=is_remote,
                    skip_health_check=skip_health_check,
                    now=now or utc_now(),
                ),
                max_attempts=settings.booking_retry_attempts,
                on_retry=self.db.rollback,
            )
        except OperationalError as e:
            self.db.rollback()
            self.logger.error(
                f"Booking transaction failed: {str(e)}",
                extra={"studio_id": studio.id, "instance_id": instance_id},
            )
            raise ServiceException("Could not complete booking, please try again")

        prometheus_metrics.record_booking_outcome(
            "book", "OK" if outcome.ok else outcome.error.value
        )
        if outcome.ok:
            self.log_operation(
                "create_booking",
                studio_id=studio.id,
                instance_id=instance_id,
                booking_id=outcome.value.id,
            )
        else:
            self.logger.info(
                f"Booking rejected: {outcome.message}",
                extra={
                    "studio_id": studio.id,
                    "instance_id": instance_id,
                    "customer_id": customer_id,
                    "error_code": outcome.error.value,
                },
            )
        return outcome

    def _create_booking_once(
        self,
        studio: Studio,
        customer_id: str,
        instance_id: str,
        *,
        membership_id: Optional[str],
        is_remote: bool,
        skip_health_check: bool,
        now: datetime,
    ) -> Outcome[Booking]:
        try:
            # Lock first: every read below sees data no concurrent booking can change
            instance = self.instance_repository.lock_for_booking(instance_id)
            if instance is None or instance.studio_id != studio.id:
                self.db.rollback()
                return Outcome.failure(ErrorCode.EVENT_NOT_FOUND, instance_id=instance_id)

            customer = self.customer_repository.get_for_studio(studio.id, customer_id)
            if customer is None:
                raise NotFoundException("Customer not found", code="CUSTOMER_NOT_FOUND")

            outcome = self._book_locked(
                studio,
                customer,
                instance,
                membership_id=membership_id,
                is_remote=is_remote,
                skip_health_check=skip_health_check,
                now=now,
            )
            # A rejected booking still commits: it persists the health flag self-heal
            # and releases the lock
            self.db.commit()
            return outcome
        except OperationalError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Transaction failed: {str(e)}")
            self.db.rollback()
            raise ServiceException(f"Database operation failed: {str(e)}")
        except Exception:
            self.db.rollback()
            raise

    def _book_locked(
        self,
        studio: Studio,
        customer: Customer,
        instance: EventInstance,
        *,
        membership_id: Optional[str],
        is_remote: bool,
        skip_health_check: bool,
        now: datetime,
    ) -> Outcome[Booking]:
        if instance.status != EventStatus.SCHEDULED.value:
            return Outcome.failure(ErrorCode.EVENT_UNAVAILABLE)

        if instance.start_utc <= now:
            return Outcome.failure(ErrorCode.SESSION_IN_PAST)

        existing = self.booking_repository.find_for_customer_instance(customer.id, instance.id)
        if existing is not None and existing.status != BookingStatus.CANCELLED.value:
            return Outcome.failure(ErrorCode.ALREADY_BOOKED, booking_id=existing.id)

        if not skip_health_check and not customer.signed_health_view:
            if not self.customer_repository.has_health_declaration(studio.id, customer.id):
                return Outcome.failure(ErrorCode.HEALTH_DECLARATION_REQUIRED)
            customer.signed_health_view = True
            self.db.flush()

        capacity_error = self._check_capacity(instance, is_remote)
        if capacity_error is not None:
            return Outcome.failure(capacity_error)

        membership: Optional[Membership] = None
        plan: Optional[Plan] = None
        if membership_id:
            membership = self.membership_repository.get_for_studio(studio.id, membership_id)
            if (
                membership is None
                or membership.customer_id != customer.id
                or membership.status != MembershipStatus.ACTIVE.value
            ):
                return Outcome.failure(ErrorCode.MEMBERSHIP_NOT_ACTIVE)

            plan = self.membership_repository.get_plan(studio.id, membership.plan_id)
            if plan is None or not plan.active:
                return Outcome.failure(ErrorCode.PLAN_UNAVAILABLE)

            eligibility_error = self._check_eligibility(
                studio, customer, membership, plan, instance, is_remote
            )
            if eligibility_error is not None:
                return Outcome.failure(eligibility_error)

        allowed_plan_ids = self._allowed_plan_ids(instance)
        if allowed_plan_ids:
            if plan is None:
                return Outcome.failure(ErrorCode.PLAN_REQUIRED_FOR_CLASS)
            if plan.id not in allowed_plan_ids:
                return Outcome.failure(ErrorCode.PLAN_NOT_ELIGIBLE, plan_id=plan.id)

        payment: Optional[Payment] = None
        if membership is None:
            if existing is None or existing.payment_id is None:
                payment = self.payment_repository.create(
                    studio_id=studio.id,
                    customer_id=customer.id,
                    amount_cents=instance.price_cents,
                    currency=instance.currency,
                    status=PaymentStatus.PAID.value,
                    provider="manual",
                    provider_ref=f"manual-{uuid.uuid4().hex}",
                )
        elif plan is not None and plan.type == PlanType.PUNCH_CARD.value:
            if not self.membership_repository.consume_use(membership):
                return Outcome.failure(ErrorCode.NO_REMAINING_USES)

        if existing is not None:
            booking = existing
            booking.status = BookingStatus.CONFIRMED.value
            booking.cancelled_at = None
            booking.is_remote = is_remote
            booking.membership_id = membership.id if membership else None
            if payment is not None:
                booking.payment_id = payment.id
            self.db.flush()
        else:
            booking = self.booking_repository.create(
                studio_id=studio.id,
                customer_id=customer.id,
                event_instance_id=instance.id,
                membership_id=membership.id if membership else None,
                payment_id=payment.id if payment else None,
                status=BookingStatus.CONFIRMED.value,
                is_remote=is_remote,
            )

        if membership is None:
            self.billing_service.ensure_session_charge(booking, instance, now)
        return Outcome.success(booking)

    def _check_capacity(self, instance: EventInstance, is_remote: bool) -> Optional[ErrorCode]:
        confirmed = self.booking_repository.count_confirmed(instance.id, is_remote=is_remote)
        if is_remote:
            if instance.remote_capacity <= 0:
                return ErrorCode.REMOTE_UNAVAILABLE
            if confirmed >= instance.remote_capacity:
                return ErrorCode.REMOTE_FULL
            return None
        if confirmed >= instance.capacity:
            return ErrorCode.CLASS_FULL
        return None

    def _check_eligibility(
        self,
        studio: Studio,
        customer: Customer,
        membership: Membership,
        plan: Plan,
        instance: EventInstance,
        is_remote: bool,
    ) -> Optional[ErrorCode]:
        """Plan-type rules, evaluated against the instance's studio-local day and week."""
        if plan.remote_only and not is_remote:
            return ErrorCode.PLAN_REMOTE_ONLY

        if membership.end_utc is not None and instance.start_utc >= membership.end_utc:
            return ErrorCode.MEMBERSHIP_EXPIRED

        if plan.daily_limit and plan.daily_limit > 0:
            day_start, day_end = WeekWindowService.get_day_window_utc(studio, instance.start_utc)
            used = self.booking_repository.count_membership_bookings_between(
                studio.id, customer.id, membership.id, day_start, day_end
            )
            if used >= plan.daily_limit:
                return ErrorCode.DAILY_LIMIT_REACHED

        plan_type = PlanType(plan.type)
        if plan_type == PlanType.PUNCH_CARD:
            if membership.remaining_uses <= 0:
                return ErrorCode.NO_REMAINING_USES
        elif plan_type == PlanType.WEEKLY_LIMIT:
            week_start, week_end = WeekWindowService.get_week_window_utc(studio, instance.start_utc)
            used = self.booking_repository.count_membership_bookings_between(
                studio.id, customer.id, membership.id, week_start, week_end
            )
            if used >= plan.weekly_limit:
                return ErrorCode.WEEKLY_LIMIT_REACHED
        return None

    @staticmethod
    def _allowed_plan_ids(instance: EventInstance) -> Set[str]:
        """Instance-level allow-list when set, otherwise the owning series'."""
        if instance.allowed_plan_ids:
            return set(instance.allowed_plan_ids)
        if instance.series is not None:
            return set(instance.series.allowed_plan_ids or ())
        return set()

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(
        self,
        studio: Studio,
        booking_id: str,
        *,
        customer_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Outcome[Booking]:
        """
        Cancel a booking before the instance's cancellation deadline.

        ``customer_id`` restricts the lookup to the customer's own bookings.
        The status change, punch restoration and charge void commit together,
        and a lock conflict is retried like booking creation.

        Raises:
            NotFoundException: If the booking is not visible to the caller
            ServiceException: If the store fails or retries are exhausted
        """
        now = now or utc_now()
        try:
            outcome = with_db_retry(
                "cancel_booking",
                lambda: self._cancel_once(studio, booking_id, customer_id, now),
                max_attempts=settings.booking_retry_attempts,
                on_retry=self.db.rollback,
            )
        except OperationalError as e:
            self.db.rollback()
            self.logger.error(
                f"Cancellation transaction failed: {str(e)}",
                extra={"studio_id": studio.id, "booking_id": booking_id},
            )
            raise ServiceException("Could not cancel booking, please try again")

        prometheus_metrics.record_booking_outcome(
            "cancel", "OK" if outcome.ok else outcome.error.value
        )
        if outcome.ok:
            self.log_operation("cancel_booking", studio_id=studio.id, booking_id=booking_id)
        return outcome

    def _cancel_once(
        self, studio: Studio, booking_id: str, customer_id: Optional[str], now: datetime
    ) -> Outcome[Booking]:
        try:
            booking = self.booking_repository.get_for_studio(studio.id, booking_id)
            if booking is None or (customer_id is not None and booking.customer_id != customer_id):
                raise NotFoundException("Booking not found", code="BOOKING_NOT_FOUND")

            outcome = self._cancel(studio, booking, now)
            if outcome.ok:
                self.db.commit()
            else:
                self.db.rollback()
            return outcome
        except OperationalError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Transaction failed: {str(e)}")
            self.db.rollback()
            raise ServiceException(f"Database operation failed: {str(e)}")
        except Exception:
            self.db.rollback()
            raise

    def _cancel(self, studio: Studio, booking: Booking, now: datetime) -> Outcome[Booking]:
        if booking.status == BookingStatus.CANCELLED.value:
            return Outcome.failure(ErrorCode.ALREADY_CANCELLED)

        instance = self.instance_repository.get_for_studio(studio.id, booking.event_instance_id)
        if instance is None:
            return Outcome.failure(ErrorCode.EVENT_NOT_FOUND)

        deadline = instance.start_utc - timedelta(hours=instance.cancellation_window_hours)
        if now > deadline:
            return Outcome.failure(
                ErrorCode.CANCELLATION_WINDOW_CLOSED, deadline_utc=deadline.isoformat()
            )

        punch_card = self._punch_card_membership(studio, booking)

        if not self.booking_repository.mark_cancelled(booking, now):
            return Outcome.failure(ErrorCode.ALREADY_CANCELLED)
        if punch_card is not None:
            self.membership_repository.restore_use(punch_card)
        self.billing_service.void_session_charge(booking, now)
        return Outcome.success(booking)

    def _punch_card_membership(self, studio: Studio, booking: Booking) -> Optional[Membership]:
        """The booking's membership when it is the customer's punch card, else None."""
        if not booking.membership_id:
            return None
        membership = self.membership_repository.get_by_id(booking.membership_id)
        if membership is None or membership.customer_id != booking.customer_id:
            return None
        plan = self.membership_repository.get_plan(studio.id, membership.plan_id)
        if plan is None or plan.type != PlanType.PUNCH_CARD.value:
            return None
        return membership
