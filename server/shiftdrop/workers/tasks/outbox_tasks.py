# server/shiftdrop/workers/tasks/outbox_tasks.py
from __future__ import annotations
"""
Driver Celery du worker outbox : un tick par exécution de `outbox.dispatch`
(planifié par Beat toutes les OUTBOX_POLL_INTERVAL_SECONDS).
"""
from celery.utils.log import get_task_logger

from shiftdrop.infrastructure.notifications.dispatcher import build_dispatcher
from shiftdrop.workers.celery_app import celery
from shiftdrop.workers.outbox_worker import OutboxWorker

logger = get_task_logger(__name__)


def dispatch_outbox_batch() -> int:
    worker = OutboxWorker(build_dispatcher())
    processed = worker.process_batch()
    if processed:
        logger.info("outbox.dispatch: %d message(s) processed", processed)
    return processed


@celery.task(name="outbox.dispatch")
def dispatch_outbox_batch_task() -> int:
    return dispatch_outbox_batch()
