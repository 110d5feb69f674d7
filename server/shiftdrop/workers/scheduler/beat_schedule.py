from __future__ import annotations
"""server/shiftdrop/workers/scheduler/beat_schedule.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Planification périodique des tâches Celery (Beat).
"""

from shiftdrop.core.config import settings

beat_schedule = {
    "dispatch-outbox-every-poll-interval": {
        "task": "outbox.dispatch",
        "schedule": float(settings.OUTBOX_POLL_INTERVAL_SECONDS),
        # un tick non consommé avant le suivant est inutile
        "options": {"expires": float(settings.OUTBOX_POLL_INTERVAL_SECONDS)},
    },
}
