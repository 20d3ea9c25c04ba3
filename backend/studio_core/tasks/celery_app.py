# backend/studio_core/tasks/celery_app.py
"""
Celery application configuration.

Redis is the broker and result backend; the beat schedule drives the
periodic instance generation sweep.
"""

import logging
from typing import Any, Dict, Type, cast

from celery import Celery, Task
from celery.signals import setup_logging

from studio_core.core.config import settings
from studio_core.core.request_context import configure_logging


def _normalize_redis_url(url: str) -> str:
    """Ensure the Redis URL selects a database number."""
    if not any(url.endswith(f"/{i}") for i in range(16)):
        return f"{url}/0"
    return url


def create_celery_app() -> Celery:
    broker_url = _normalize_redis_url(settings.broker_url)
    result_backend = settings.celery_result_backend or broker_url

    celery_app = Celery("studio_core", broker=broker_url, backend=result_backend)

    celery_app.conf.update(
        {
            "task_serializer": "json",
            "accept_content": ["json"],
            "result_serializer": "json",
            "timezone": "UTC",
            "enable_utc": True,
            "worker_prefetch_multiplier": 1,
            "worker_max_tasks_per_child": 1000,
            "task_soft_time_limit": 300,
            "task_time_limit": 600,
            "task_acks_late": True,
            "task_reject_on_worker_lost": True,
            "task_default_retry_delay": 60,
            "worker_hijack_root_logger": False,
            "broker_transport_options": {"visibility_timeout": 3600},
        }
    )

    celery_app.conf.imports = ("studio_core.tasks.schedule_tasks",)
    celery_app.conf.task_routes = {"studio_core.tasks.schedule_tasks.*": {"queue": "scheduling"}}

    from studio_core.tasks.beat_schedule import get_beat_schedule

    celery_app.conf.beat_schedule = get_beat_schedule()
    return celery_app


@setup_logging.connect  # type: ignore[misc]
def config_loggers(*args: Any, **kwargs: Any) -> None:
    """Use the application's logging setup instead of Celery's."""
    configure_logging(settings.log_level)


celery_app = create_celery_app()


class BaseTask(Task):  # type: ignore[misc]
    """Base task that logs failures and retries."""

    def on_failure(self, exc: Exception, task_id: str, args: Any, kwargs: Any, einfo: Any) -> None:
        logging.getLogger(__name__).error(
            f"Task {self.name}[{task_id}] failed with exception: {exc}",
            exc_info=True,
            extra={"task_id": task_id, "task_name": self.name},
        )
        super().on_failure(exc, task_id, args, kwargs, einfo)

    def on_retry(self, exc: Exception, task_id: str, args: Any, kwargs: Any, einfo: Any) -> None:
        logging.getLogger(__name__).warning(
            f"Task {self.name}[{task_id}] retry {self.request.retries} due to: {exc}",
            extra={"task_id": task_id, "task_name": self.name, "retry_count": self.request.retries},
        )
        super().on_retry(exc, task_id, args, kwargs, einfo)


celery_app.Task = cast(Type[Task], BaseTask)


@celery_app.task(name="studio_core.tasks.health_check")  # type: ignore[misc]
def health_check() -> Dict[str, str]:
    from datetime import datetime, timezone

    current_task = celery_app.current_task
    return {
        "status": "healthy",
        "worker": current_task.request.hostname if current_task else "unknown",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
