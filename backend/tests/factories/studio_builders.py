"""Builders for studio-scoped records used across the service and route tests."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Optional

from sqlalchemy.orm import Session

from studio_core.core.enums import EventStatus, MembershipStatus, PlanType
from studio_core.core.ulid_helper import generate_ulid
from studio_core.models import (
    Customer,
    EventInstance,
    EventSeries,
    HealthDeclaration,
    Instructor,
    Membership,
    Plan,
    Room,
    Studio,
)


def create_studio(db: Session, **overrides: Any) -> Studio:
    values = {
        "slug": f"studio-{generate_ulid().lower()}",
        "name": "Test Studio",
        "timezone": "Asia/Jerusalem",
        "week_starts_on": 0,
    }
    values.update(overrides)
    studio = Studio(**values)
    db.add(studio)
    db.commit()
    return studio


def create_room(db: Session, studio: Studio, name: str = "Main Hall") -> Room:
    room = Room(studio_id=studio.id, name=name)
    db.add(room)
    db.commit()
    return room


def create_instructor(db: Session, studio: Studio, **overrides: Any) -> Instructor:
    values = {"studio_id": studio.id, "display_name": "Dana", "rate_cents": 0}
    values.update(overrides)
    instructor = Instructor(**values)
    db.add(instructor)
    db.commit()
    return instructor


def create_series(db: Session, studio: Studio, **overrides: Any) -> EventSeries:
    values = {
        "studio_id": studio.id,
        "title": "Vinyasa",
        "day_of_week": 2,
        "start_time_local": time(18, 0),
        "duration_minutes": 60,
        "recurrence_interval_weeks": 1,
        "default_capacity": 10,
        "price_cents": 2500,
        "currency": "ILS",
        "cancellation_window_hours": 6,
    }
    values.update(overrides)
    series = EventSeries(**values)
    db.add(series)
    db.commit()
    return series


def create_instance(
    db: Session,
    studio: Studio,
    *,
    start_utc: Optional[datetime] = None,
    duration_minutes: int = 60,
    **overrides: Any,
) -> EventInstance:
    start = start_utc or datetime.now(timezone.utc) + timedelta(days=3)
    values = {
        "studio_id": studio.id,
        "start_utc": start,
        "end_utc": start + timedelta(minutes=duration_minutes),
        "capacity": 10,
        "remote_capacity": 0,
        "price_cents": 2500,
        "currency": "ILS",
        "cancellation_window_hours": 0,
        "status": EventStatus.SCHEDULED.value,
    }
    values.update(overrides)
    instance = EventInstance(**values)
    db.add(instance)
    db.commit()
    return instance


def create_customer(
    db: Session, studio: Studio, *, signed_health_view: bool = True, **overrides: Any
) -> Customer:
    values = {
        "studio_id": studio.id,
        "full_name": "Noa Levi",
        "email": f"{generate_ulid().lower()}@example.com",
        "signed_health_view": signed_health_view,
    }
    values.update(overrides)
    customer = Customer(**values)
    db.add(customer)
    db.commit()
    return customer


def add_health_declaration(db: Session, studio: Studio, customer: Customer) -> HealthDeclaration:
    declaration = HealthDeclaration(studio_id=studio.id, customer_id=customer.id, payload="{}")
    db.add(declaration)
    db.commit()
    return declaration


def create_plan(db: Session, studio: Studio, **overrides: Any) -> Plan:
    values = {
        "studio_id": studio.id,
        "name": "Unlimited",
        "type": PlanType.UNLIMITED.value,
        "price_cents": 40000,
        "currency": "ILS",
    }
    values.update(overrides)
    plan = Plan(**values)
    db.add(plan)
    db.commit()
    return plan


def create_membership(
    db: Session,
    studio: Studio,
    customer: Customer,
    plan: Plan,
    **overrides: Any,
) -> Membership:
    values = {
        "studio_id": studio.id,
        "customer_id": customer.id,
        "plan_id": plan.id,
        "status": MembershipStatus.ACTIVE.value,
        "start_utc": datetime(2020, 1, 1, tzinfo=timezone.utc),
        "remaining_uses": plan.punch_card_uses if plan.type == PlanType.PUNCH_CARD.value else 0,
    }
    values.update(overrides)
    membership = Membership(**values)
    db.add(membership)
    db.commit()
    return membership


def next_weekday(start: date, sunday_based_dow: int) -> date:
    """First date on or after ``start`` with the given 0 = Sunday weekday."""
    current = (start.weekday() + 1) % 7
    return start + timedelta(days=(sunday_based_dow - current) % 7)
