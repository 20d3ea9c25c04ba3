"""Punch-card counter updates applied in SQL."""

from sqlalchemy import update
from sqlalchemy.orm import Session

from studio_core.core.enums import PlanType
from studio_core.models import Membership
from studio_core.repositories import RepositoryFactory
from tests.factories.studio_builders import (
    create_customer,
    create_membership,
    create_plan,
    create_studio,
)


def punch_card(db: Session, uses: int) -> Membership:
    studio = create_studio(db)
    plan = create_plan(db, studio, type=PlanType.PUNCH_CARD.value, punch_card_uses=uses)
    return create_membership(db, studio, create_customer(db, studio), plan)


def drain_elsewhere(db: Session, membership: Membership, remaining: int) -> None:
    db.execute(
        update(Membership)
        .where(Membership.id == membership.id)
        .values(remaining_uses=remaining)
        .execution_options(synchronize_session=False)
    )


class TestMembershipRepository:
    def test_consume_use_decrements_in_place(self, db: Session):
        membership = punch_card(db, 3)
        repository = RepositoryFactory.create_membership_repository(db)

        assert repository.consume_use(membership)
        assert membership.remaining_uses == 2

    def test_consume_use_checks_stored_count_not_loaded_one(self, db: Session):
        membership = punch_card(db, 1)
        repository = RepositoryFactory.create_membership_repository(db)
        drain_elsewhere(db, membership, 0)

        assert not repository.consume_use(membership)
        assert membership.remaining_uses == 0

    def test_restore_use_adds_to_stored_count(self, db: Session):
        membership = punch_card(db, 5)
        repository = RepositoryFactory.create_membership_repository(db)
        # Loaded copy still says 5
        drain_elsewhere(db, membership, 3)

        repository.restore_use(membership)

        assert membership.remaining_uses == 4

    def test_get_plan_is_studio_scoped(self, db: Session):
        membership = punch_card(db, 1)
        repository = RepositoryFactory.create_membership_repository(db)
        assert repository.get_plan(membership.studio_id, membership.plan_id) is not None
        assert repository.get_plan(create_studio(db).id, membership.plan_id) is None
