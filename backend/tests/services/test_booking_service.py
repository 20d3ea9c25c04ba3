"""
Booking arbitration: eligibility ordering, capacity pools, plan rules and
cancellation deadlines.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.orm import Session

from studio_core.core.enums import (
    BillingChargeStatus,
    BookingStatus,
    EventStatus,
    MembershipStatus,
    PlanType,
)
from studio_core.core.exceptions import NotFoundException
from studio_core.core.outcomes import ErrorCode
from studio_core.core.ulid_helper import generate_ulid
from studio_core.models import BillingCharge, Booking, Customer, Payment
from studio_core.services.booking_service import BookingService
from tests.factories.studio_builders import (
    add_health_declaration,
    create_customer,
    create_instance,
    create_membership,
    create_plan,
    create_series,
    create_studio,
)


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


# Monday 2030-01-07; Jerusalem studio weeks run Sunday 2030-01-06 .. Saturday 2030-01-12
WEEK_MONDAY = utc(2030, 1, 7, 8)


@pytest.fixture
def studio(db: Session):
    return create_studio(db, timezone="Asia/Jerusalem", week_starts_on=0)


@pytest.fixture
def customer(db: Session, studio):
    return create_customer(db, studio)


@pytest.fixture
def instance(db: Session, studio):
    return create_instance(db, studio, start_utc=WEEK_MONDAY, capacity=2, price_cents=2500)


@pytest.fixture
def service(db: Session) -> BookingService:
    return BookingService(db)


class TestDropInBooking:
    def test_success_creates_paid_payment(self, db, service, studio, customer, instance):
        outcome = service.create_booking(studio, customer.id, instance.id)

        assert outcome.ok
        booking = outcome.value
        assert booking.status == BookingStatus.CONFIRMED.value
        assert booking.membership_id is None
        payment = db.get(Payment, booking.payment_id)
        assert payment.amount_cents == 2500
        assert payment.currency == "ILS"
        assert payment.provider == "manual"
        assert payment.provider_ref.startswith("manual-")

    def test_unknown_instance(self, service, studio, customer):
        outcome = service.create_booking(studio, customer.id, generate_ulid())
        assert outcome.error == ErrorCode.EVENT_NOT_FOUND

    def test_instance_of_other_studio(self, db, service, studio, customer):
        foreign = create_instance(db, create_studio(db), start_utc=WEEK_MONDAY)
        outcome = service.create_booking(studio, customer.id, foreign.id)
        assert outcome.error == ErrorCode.EVENT_NOT_FOUND

    def test_unknown_customer_raises(self, service, studio, instance):
        with pytest.raises(NotFoundException):
            service.create_booking(studio, generate_ulid(), instance.id)

    def test_cancelled_instance(self, db, service, studio, customer, instance):
        instance.status = EventStatus.CANCELLED.value
        db.commit()
        outcome = service.create_booking(studio, customer.id, instance.id)
        assert outcome.error == ErrorCode.EVENT_UNAVAILABLE

    def test_started_session(self, db, service, studio, customer):
        past = create_instance(db, studio, start_utc=datetime.now(timezone.utc) - timedelta(minutes=5))
        outcome = service.create_booking(studio, customer.id, past.id)
        assert outcome.error == ErrorCode.SESSION_IN_PAST

    def test_already_booked(self, service, studio, customer, instance):
        assert service.create_booking(studio, customer.id, instance.id).ok
        outcome = service.create_booking(studio, customer.id, instance.id)
        assert outcome.error == ErrorCode.ALREADY_BOOKED


class TestHealthDeclaration:
    def test_required_without_declaration(self, db, service, studio, instance):
        unsigned = create_customer(db, studio, signed_health_view=False)
        outcome = service.create_booking(studio, unsigned.id, instance.id)
        assert outcome.error == ErrorCode.HEALTH_DECLARATION_REQUIRED

    def test_flag_heals_from_declaration(self, db, service, studio, instance):
        unsigned = create_customer(db, studio, signed_health_view=False)
        add_health_declaration(db, studio, unsigned)

        outcome = service.create_booking(studio, unsigned.id, instance.id)

        assert outcome.ok
        db.expire_all()
        assert db.get(Customer, unsigned.id).signed_health_view is True

    def test_healed_flag_persists_when_booking_is_rejected(self, db, service, studio):
        full = create_instance(db, studio, start_utc=WEEK_MONDAY, capacity=0)
        unsigned = create_customer(db, studio, signed_health_view=False)
        add_health_declaration(db, studio, unsigned)

        outcome = service.create_booking(studio, unsigned.id, full.id)

        assert outcome.error == ErrorCode.CLASS_FULL
        db.expire_all()
        assert db.get(Customer, unsigned.id).signed_health_view is True

    def test_staff_may_skip(self, db, service, studio, instance):
        unsigned = create_customer(db, studio, signed_health_view=False)
        outcome = service.create_booking(studio, unsigned.id, instance.id, skip_health_check=True)
        assert outcome.ok

    def test_checked_before_capacity(self, db, service, studio):
        full = create_instance(db, studio, start_utc=WEEK_MONDAY, capacity=0)
        unsigned = create_customer(db, studio, signed_health_view=False)
        outcome = service.create_booking(studio, unsigned.id, full.id)
        assert outcome.error == ErrorCode.HEALTH_DECLARATION_REQUIRED


class TestCapacity:
    def test_class_full(self, db, service, studio, instance):
        for _ in range(2):
            assert service.create_booking(studio, create_customer(db, studio).id, instance.id).ok
        outcome = service.create_booking(studio, create_customer(db, studio).id, instance.id)
        assert outcome.error == ErrorCode.CLASS_FULL

    def test_remote_unavailable(self, service, studio, customer, instance):
        outcome = service.create_booking(studio, customer.id, instance.id, is_remote=True)
        assert outcome.error == ErrorCode.REMOTE_UNAVAILABLE

    def test_remote_pool_is_separate(self, db, service, studio):
        hybrid = create_instance(db, studio, start_utc=WEEK_MONDAY, capacity=1, remote_capacity=1)
        assert service.create_booking(studio, create_customer(db, studio).id, hybrid.id).ok
        assert service.create_booking(
            studio, create_customer(db, studio).id, hybrid.id, is_remote=True
        ).ok
        outcome = service.create_booking(
            studio, create_customer(db, studio).id, hybrid.id, is_remote=True
        )
        assert outcome.error == ErrorCode.REMOTE_FULL

    def test_cancelled_bookings_free_a_spot(self, db, service, studio):
        single = create_instance(db, studio, start_utc=WEEK_MONDAY, capacity=1)
        first = service.create_booking(studio, create_customer(db, studio).id, single.id).value
        assert service.cancel_booking(studio, first.id).ok
        assert service.create_booking(studio, create_customer(db, studio).id, single.id).ok


class TestMemberships:
    def test_membership_of_other_customer(self, db, service, studio, customer, instance):
        plan = create_plan(db, studio)
        stranger = create_customer(db, studio)
        membership = create_membership(db, studio, stranger, plan)
        outcome = service.create_booking(
            studio, customer.id, instance.id, membership_id=membership.id
        )
        assert outcome.error == ErrorCode.MEMBERSHIP_NOT_ACTIVE

    def test_inactive_membership(self, db, service, studio, customer, instance):
        plan = create_plan(db, studio)
        membership = create_membership(
            db, studio, customer, plan, status=MembershipStatus.CANCELLED.value
        )
        outcome = service.create_booking(
            studio, customer.id, instance.id, membership_id=membership.id
        )
        assert outcome.error == ErrorCode.MEMBERSHIP_NOT_ACTIVE

    def test_inactive_plan(self, db, service, studio, customer, instance):
        plan = create_plan(db, studio, active=False)
        membership = create_membership(db, studio, customer, plan)
        outcome = service.create_booking(
            studio, customer.id, instance.id, membership_id=membership.id
        )
        assert outcome.error == ErrorCode.PLAN_UNAVAILABLE

    def test_remote_only_plan(self, db, service, studio, customer, instance):
        plan = create_plan(db, studio, remote_only=True)
        membership = create_membership(db, studio, customer, plan)
        outcome = service.create_booking(
            studio, customer.id, instance.id, membership_id=membership.id
        )
        assert outcome.error == ErrorCode.PLAN_REMOTE_ONLY

    def test_expired_membership(self, db, service, studio, customer, instance):
        plan = create_plan(db, studio)
        membership = create_membership(
            db, studio, customer, plan, end_utc=WEEK_MONDAY - timedelta(days=1)
        )
        outcome = service.create_booking(
            studio, customer.id, instance.id, membership_id=membership.id
        )
        assert outcome.error == ErrorCode.MEMBERSHIP_EXPIRED

    def test_membership_booking_creates_no_payment(self, db, service, studio, customer, instance):
        plan = create_plan(db, studio)
        membership = create_membership(db, studio, customer, plan)
        outcome = service.create_booking(
            studio, customer.id, instance.id, membership_id=membership.id
        )
        assert outcome.ok
        assert outcome.value.payment_id is None
        assert outcome.value.membership_id == membership.id
        assert db.query(Payment).count() == 0

    def test_daily_limit(self, db, service, studio, customer):
        plan = create_plan(db, studio, daily_limit=1)
        membership = create_membership(db, studio, customer, plan)
        morning = create_instance(db, studio, start_utc=WEEK_MONDAY)
        evening = create_instance(db, studio, start_utc=WEEK_MONDAY + timedelta(hours=8))
        next_day = create_instance(db, studio, start_utc=WEEK_MONDAY + timedelta(days=1))

        assert service.create_booking(studio, customer.id, morning.id, membership_id=membership.id).ok
        outcome = service.create_booking(
            studio, customer.id, evening.id, membership_id=membership.id
        )
        assert outcome.error == ErrorCode.DAILY_LIMIT_REACHED
        assert service.create_booking(
            studio, customer.id, next_day.id, membership_id=membership.id
        ).ok


class TestWeeklyLimit:
    def test_third_booking_in_week_rejected(self, db, service, studio, customer):
        plan = create_plan(db, studio, type=PlanType.WEEKLY_LIMIT.value, weekly_limit=2)
        membership = create_membership(db, studio, customer, plan)
        same_week = [
            create_instance(db, studio, start_utc=WEEK_MONDAY + timedelta(days=offset))
            for offset in range(3)
        ]
        following_week = create_instance(db, studio, start_utc=WEEK_MONDAY + timedelta(days=7))

        for instance in same_week[:2]:
            assert service.create_booking(
                studio, customer.id, instance.id, membership_id=membership.id
            ).ok
        outcome = service.create_booking(
            studio, customer.id, same_week[2].id, membership_id=membership.id
        )
        assert outcome.error == ErrorCode.WEEKLY_LIMIT_REACHED
        assert service.create_booking(
            studio, customer.id, following_week.id, membership_id=membership.id
        ).ok

    def test_cancelled_bookings_do_not_count(self, db, service, studio, customer):
        plan = create_plan(db, studio, type=PlanType.WEEKLY_LIMIT.value, weekly_limit=1)
        membership = create_membership(db, studio, customer, plan)
        first = create_instance(db, studio, start_utc=WEEK_MONDAY)
        second = create_instance(db, studio, start_utc=WEEK_MONDAY + timedelta(days=1))

        booking = service.create_booking(
            studio, customer.id, first.id, membership_id=membership.id
        ).value
        assert service.cancel_booking(studio, booking.id).ok
        assert service.create_booking(
            studio, customer.id, second.id, membership_id=membership.id
        ).ok


class TestPunchCard:
    def test_no_remaining_uses(self, db, service, studio, customer, instance):
        plan = create_plan(db, studio, type=PlanType.PUNCH_CARD.value, punch_card_uses=0)
        membership = create_membership(db, studio, customer, plan)
        outcome = service.create_booking(
            studio, customer.id, instance.id, membership_id=membership.id
        )
        assert outcome.error == ErrorCode.NO_REMAINING_USES

    def test_book_and_cancel_round_trip(self, db, service, studio, customer, instance):
        plan = create_plan(db, studio, type=PlanType.PUNCH_CARD.value, punch_card_uses=2)
        membership = create_membership(db, studio, customer, plan)

        booking = service.create_booking(
            studio, customer.id, instance.id, membership_id=membership.id
        ).value
        db.refresh(membership)
        assert membership.remaining_uses == 1

        assert service.cancel_booking(studio, booking.id, customer_id=customer.id).ok
        db.refresh(membership)
        assert membership.remaining_uses == 2


class TestPlanGating:
    def test_series_allow_list_requires_plan(self, db, service, studio, customer):
        plan = create_plan(db, studio)
        series = create_series(db, studio, allowed_plan_ids={plan.id})
        gated = create_instance(db, studio, start_utc=WEEK_MONDAY, event_series_id=series.id)
        outcome = service.create_booking(studio, customer.id, gated.id)
        assert outcome.error == ErrorCode.PLAN_REQUIRED_FOR_CLASS

    def test_plan_not_in_allow_list(self, db, service, studio, customer):
        allowed = create_plan(db, studio)
        other = create_plan(db, studio, name="Other")
        series = create_series(db, studio, allowed_plan_ids={allowed.id})
        gated = create_instance(db, studio, start_utc=WEEK_MONDAY, event_series_id=series.id)
        membership = create_membership(db, studio, customer, other)
        outcome = service.create_booking(
            studio, customer.id, gated.id, membership_id=membership.id
        )
        assert outcome.error == ErrorCode.PLAN_NOT_ELIGIBLE

    def test_instance_allow_list_overrides_series(self, db, service, studio, customer):
        series_plan = create_plan(db, studio, name="Series plan")
        instance_plan = create_plan(db, studio, name="Instance plan")
        series = create_series(db, studio, allowed_plan_ids={series_plan.id})
        gated = create_instance(
            db,
            studio,
            start_utc=WEEK_MONDAY,
            event_series_id=series.id,
            allowed_plan_ids={instance_plan.id},
        )
        series_membership = create_membership(db, studio, customer, series_plan)
        instance_membership = create_membership(db, studio, customer, instance_plan)

        rejected = service.create_booking(
            studio, customer.id, gated.id, membership_id=series_membership.id
        )
        assert rejected.error == ErrorCode.PLAN_NOT_ELIGIBLE
        assert service.create_booking(
            studio, customer.id, gated.id, membership_id=instance_membership.id
        ).ok


class TestCancellation:
    def test_cancel_before_deadline(self, db, service, studio, customer):
        session = create_instance(db, studio, start_utc=WEEK_MONDAY, cancellation_window_hours=6)
        booking = service.create_booking(studio, customer.id, session.id).value

        outcome = service.cancel_booking(
            studio, booking.id, now=WEEK_MONDAY - timedelta(hours=6)
        )

        assert outcome.ok
        assert outcome.value.status == BookingStatus.CANCELLED.value
        assert outcome.value.cancelled_at is not None

    def test_cancel_after_deadline(self, db, service, studio, customer):
        session = create_instance(db, studio, start_utc=WEEK_MONDAY, cancellation_window_hours=6)
        booking = service.create_booking(studio, customer.id, session.id).value

        outcome = service.cancel_booking(
            studio, booking.id, now=WEEK_MONDAY - timedelta(hours=5, minutes=59)
        )

        assert outcome.error == ErrorCode.CANCELLATION_WINDOW_CLOSED
        db.refresh(booking)
        assert booking.status == BookingStatus.CONFIRMED.value

    def test_zero_window_allows_cancel_until_start(self, db, service, studio, customer, instance):
        booking = service.create_booking(studio, customer.id, instance.id).value
        assert service.cancel_booking(studio, booking.id, now=WEEK_MONDAY).ok

    def test_already_cancelled(self, service, studio, customer, instance):
        booking = service.create_booking(studio, customer.id, instance.id).value
        assert service.cancel_booking(studio, booking.id).ok
        outcome = service.cancel_booking(studio, booking.id)
        assert outcome.error == ErrorCode.ALREADY_CANCELLED

    def test_other_customers_booking_is_not_visible(self, db, service, studio, customer, instance):
        booking = service.create_booking(studio, customer.id, instance.id).value
        with pytest.raises(NotFoundException):
            service.cancel_booking(studio, booking.id, customer_id=create_customer(db, studio).id)

    def test_rebooking_reactivates_row(self, db, service, studio, customer, instance):
        booking = service.create_booking(studio, customer.id, instance.id).value
        assert service.cancel_booking(studio, booking.id).ok

        outcome = service.create_booking(studio, customer.id, instance.id)

        assert outcome.ok
        assert outcome.value.id == booking.id
        assert outcome.value.cancelled_at is None
        assert db.query(Booking).count() == 1
        # The original drop-in payment is reused
        assert db.query(Payment).count() == 1


def charge_for(db: Session, booking: Booking) -> BillingCharge:
    return (
        db.query(BillingCharge)
        .filter(
            BillingCharge.source_type == "session_registration",
            BillingCharge.source_id == booking.id,
        )
        .one()
    )


class TestBillingCharges:
    def test_drop_in_posts_charge_with_line_item(self, db, service, studio, customer):
        series = create_series(db, studio, title="Ashtanga")
        session = create_instance(
            db, studio, start_utc=WEEK_MONDAY, price_cents=3200, event_series_id=series.id
        )
        now = utc(2030, 1, 2, 9)

        booking = service.create_booking(studio, customer.id, session.id, now=now).value

        charge = charge_for(db, booking)
        assert charge.status == BillingChargeStatus.POSTED.value
        assert charge.customer_id == customer.id
        assert (charge.subtotal_cents, charge.tax_cents, charge.total_cents) == (3200, 0, 3200)
        assert charge.currency == "ILS"
        assert charge.charge_date == now.date()
        [line] = charge.line_items
        assert line.description == "Ashtanga - 2030-01-07"
        assert (line.quantity, line.unit_price_cents, line.line_total_cents) == (1, 3200, 3200)

    def test_ad_hoc_session_uses_generic_description(self, db, service, studio, customer, instance):
        booking = service.create_booking(studio, customer.id, instance.id).value
        [line] = charge_for(db, booking).line_items
        assert line.description == "Session - 2030-01-07"

    def test_free_session_posts_no_charge(self, db, service, studio, customer):
        free = create_instance(db, studio, start_utc=WEEK_MONDAY, price_cents=0)
        assert service.create_booking(studio, customer.id, free.id).ok
        assert db.query(BillingCharge).count() == 0

    def test_membership_booking_posts_no_charge(self, db, service, studio, customer, instance):
        membership = create_membership(db, studio, customer, create_plan(db, studio))
        assert service.create_booking(
            studio, customer.id, instance.id, membership_id=membership.id
        ).ok
        assert db.query(BillingCharge).count() == 0

    def test_rejected_booking_posts_no_charge(self, db, service, studio, customer):
        full = create_instance(db, studio, start_utc=WEEK_MONDAY, capacity=0)
        assert service.create_booking(studio, customer.id, full.id).error == ErrorCode.CLASS_FULL
        assert db.query(BillingCharge).count() == 0

    def test_cancel_voids_charge(self, db, service, studio, customer, instance):
        booking = service.create_booking(studio, customer.id, instance.id).value
        cancelled_at = utc(2030, 1, 3, 12)

        assert service.cancel_booking(studio, booking.id, now=cancelled_at).ok

        charge = charge_for(db, booking)
        assert charge.status == BillingChargeStatus.VOIDED.value
        assert charge.void_reason == "Cancelled booking"
        assert charge.voided_at == cancelled_at

    def test_closed_window_leaves_charge_posted(self, db, service, studio, customer):
        session = create_instance(db, studio, start_utc=WEEK_MONDAY, cancellation_window_hours=6)
        booking = service.create_booking(studio, customer.id, session.id).value

        outcome = service.cancel_booking(studio, booking.id, now=WEEK_MONDAY - timedelta(hours=1))

        assert outcome.error == ErrorCode.CANCELLATION_WINDOW_CLOSED
        assert charge_for(db, booking).status == BillingChargeStatus.POSTED.value

    def test_rebooking_reposts_same_charge(self, db, service, studio, customer, instance):
        booking = service.create_booking(studio, customer.id, instance.id).value
        assert service.cancel_booking(studio, booking.id).ok

        assert service.create_booking(studio, customer.id, instance.id).ok

        assert db.query(BillingCharge).count() == 1
        charge = charge_for(db, booking)
        assert charge.status == BillingChargeStatus.POSTED.value
        assert charge.void_reason == ""
        assert charge.voided_at is None
        assert len(charge.line_items) == 1
