# backend/studio_core/tasks/beat_schedule.py
"""
Celery Beat schedule.

The generation sweep interval comes from settings so operators can tune
it without a deploy.
"""

from datetime import timedelta
from typing import Any, Dict

from studio_core.core.config import settings


def get_beat_schedule() -> Dict[str, Dict[str, Any]]:
    return {
        "generate-upcoming-instances": {
            "task": "studio_core.tasks.schedule_tasks.generate_upcoming_instances",
            "schedule": timedelta(hours=settings.generation_sweep_interval_hours),
            "options": {"queue": "scheduling", "expires": 3600},
        },
    }
