from __future__ import annotations
"""shiftdrop/workers/celery_app.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Celery app + routage + auto-import des modules de tâches + beat schedule.
"""
from celery import Celery

from shiftdrop.core.config import settings
from shiftdrop.workers.scheduler.beat_schedule import beat_schedule

celery = Celery("shiftdrop", broker=settings.REDIS_URL, backend=settings.REDIS_URL)

# Routage par files
celery.conf.task_routes = {
    "outbox.dispatch": {"queue": "outbox"},
}

celery.conf.update(
    imports=[
        "shiftdrop.workers.tasks.outbox_tasks",
    ],
    beat_schedule=beat_schedule,
)
