# backend/studio_core/tasks/schedule_tasks.py
"""
Background instance generation.

Every studio is swept in its own session. A failure in one studio is
logged and counted, and the sweep moves on to the next one.
"""

from datetime import date, datetime, timedelta, timezone
import logging
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from studio_core.core.config import settings
from studio_core.database import SessionLocal, get_db_session
from studio_core.monitoring.prometheus_metrics import prometheus_metrics
from studio_core.repositories import RepositoryFactory
from studio_core.services.schedule_service import ScheduleService
from studio_core.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


def run_generation_sweep(
    session_factory: Callable[[], Session] = SessionLocal,
    *,
    today: Optional[date] = None,
    horizon_days: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Generate instances for ``[today, today + horizon)`` in every studio.

    Returns a summary with per-studio created counts and the ids of
    studios that failed.
    """
    from_date = today or datetime.now(timezone.utc).date()
    to_date = from_date + timedelta(days=horizon_days or settings.generation_horizon_days)

    with session_factory() as db:
        studio_ids = RepositoryFactory.create_studio_repository(db).list_ids()

    created: Dict[str, int] = {}
    failed: Dict[str, str] = {}
    for studio_id in studio_ids:
        db = session_factory()
        try:
            studio = RepositoryFactory.create_studio_repository(db).get_by_id(studio_id)
            if studio is None:
                continue
            created[studio_id] = ScheduleService(db).generate_for_studio(studio, from_date, to_date)
        except Exception as exc:
            db.rollback()
            failed[studio_id] = str(exc)
            prometheus_metrics.inc_sweep_failure()
            logger.error(
                f"Instance generation failed for studio {studio_id}: {exc}",
                exc_info=True,
                extra={"studio_id": studio_id},
            )
        finally:
            db.close()

    summary = {
        "from_date": from_date.isoformat(),
        "to_date": to_date.isoformat(),
        "created": created,
        "total_created": sum(created.values()),
        "failed": failed,
    }
    logger.info(
        f"Generation sweep finished: {summary['total_created']} instances, {len(failed)} failed studios",
        extra={"total_created": summary["total_created"], "failed_studios": list(failed)},
    )
    return summary


@celery_app.task(
    name="studio_core.tasks.schedule_tasks.generate_upcoming_instances",
    bind=True,
    max_retries=3,
)
def generate_upcoming_instances(self: Any) -> Dict[str, Any]:
    """
    Periodic sweep; safe to re-run because generation skips existing instances.

    Per-studio failures are absorbed by the sweep. Anything that escapes it
    (the studio list itself could not be read) retries the whole run.
    """
    try:
        return run_generation_sweep()
    except Exception as exc:
        logger.error(f"Generation sweep failed: {exc}", exc_info=True)
        raise self.retry(exc=exc, countdown=300)


@celery_app.task(
    name="studio_core.tasks.schedule_tasks.generate_for_studio",
    bind=True,
    max_retries=3,
)
def generate_for_studio(self: Any, studio_id: str, from_date: str, to_date: str) -> int:
    """On-demand generation for one studio, retried on failure."""
    try:
        with get_db_session() as db:
            studio = RepositoryFactory.create_studio_repository(db).get_by_id(studio_id)
            if studio is None:
                logger.warning(f"Studio {studio_id} not found for generation")
                return 0
            return ScheduleService(db).generate_for_studio(
                studio, date.fromisoformat(from_date), date.fromisoformat(to_date)
            )
    except Exception as exc:
        logger.error(f"Generation for studio {studio_id} failed: {exc}")
        raise self.retry(exc=exc, countdown=60)
