from __future__ import annotations
"""server/shiftdrop/workers/outbox_worker.py
~~~~~~~~~~~~~~~~~~~~~~~~
Worker outbox : boucle de polling qui livre les messages PENDING "prêts".

Un tick :
    1) fetch_ready(now, batch_size) dans UNE transaction
    2) pour chaque message : résolution du message_type -> payload typé -> dispatcher
       - succès  -> SENT (processed_at)
       - échec   -> grille de retry (PENDING + next_retry_at, ou FAILED)
    3) commit unique de toutes les mises à jour du tick

L'exception d'un message n'interrompt jamais le batch. Le signal d'arrêt
(threading.Event) est consulté entre deux ticks et entre deux messages,
jamais pendant un envoi.

Limite connue : un seul worker actif par déploiement (pas de verrou de ligne
entre workers). Deux drivers possibles, exclusifs : thread embarqué
(`start()` / `stop()`) ou tâche Celery `outbox.dispatch` (voir tasks/outbox_tasks.py).
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import timedelta
from typing import Optional, Sequence

from sqlalchemy.orm import sessionmaker

from shiftdrop.core.clock import Clock, SystemClock
from shiftdrop.core.config import parse_backoffs, settings
from shiftdrop.infrastructure.messaging.outbox import Outbox
from shiftdrop.infrastructure.messaging.payloads import deserialize
from shiftdrop.infrastructure.notifications.dispatcher import NotificationDispatcher
from shiftdrop.infrastructure.persistence.database.models.outbox_message import OutboxMessage
from shiftdrop.infrastructure.persistence.database.session import unit_of_work

logger = logging.getLogger(__name__)


class OutboxWorker:
    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        session_factory: Optional[sessionmaker] = None,
        clock: Optional[Clock] = None,
        schedule: Optional[Sequence[timedelta]] = None,
        batch_size: Optional[int] = None,
        poll_interval: Optional[float] = None,
        max_error_len: Optional[int] = None,
    ):
        self.dispatcher = dispatcher
        self.session_factory = session_factory
        self.clock = clock or SystemClock()
        self.schedule = list(schedule) if schedule is not None else parse_backoffs(settings.OUTBOX_BACKOFFS)
        self.batch_size = batch_size or settings.OUTBOX_BATCH_SIZE
        self.poll_interval = poll_interval if poll_interval is not None else settings.OUTBOX_POLL_INTERVAL_SECONDS
        self.max_error_len = max_error_len or settings.OUTBOX_LAST_ERROR_MAX

        self._stop_event = threading.Event()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._future: Optional[Future] = None

    # --- Un tick --------------------------------------------------------------

    def process_batch(self, stop_event: Optional[threading.Event] = None) -> int:
        """
        Traite un batch. Retourne le nombre de messages effectivement tentés
        (0 si rien n'était prêt).
        """
        processed = sent = 0
        with unit_of_work(self.session_factory) as s:
            outbox = Outbox(s, self.clock)
            messages = outbox.fetch_ready(limit=self.batch_size)
            if not messages:
                return 0

            for msg in messages:
                if stop_event is not None and stop_event.is_set():
                    # le reste du batch est laissé tel quel (toujours PENDING)
                    break
                processed += 1
                if self._process_one(msg):
                    sent += 1

        logger.info("outbox: batch processed=%d sent=%d failed=%d", processed, sent, processed - sent)
        return processed

    def _process_one(self, msg: OutboxMessage) -> bool:
        try:
            payload = deserialize(msg.message_type, msg.payload)
            if not self.dispatcher.send(msg.message_type, payload):
                raise RuntimeError("Dispatcher reported failure")
        except Exception as exc:
            error = str(exc) or exc.__class__.__name__
            msg.mark_failed(error, self.clock.now(), self.schedule, max_error_len=self.max_error_len)
            logger.warning(
                "outbox: delivery failed id=%s type=%s retry_count=%d status=%s error=%s",
                msg.id, msg.message_type, msg.retry_count, msg.status.value, error,
            )
            return False

        msg.mark_sent(self.clock.now())
        return True

    # --- Boucle ---------------------------------------------------------------

    def run(self, stop_event: Optional[threading.Event] = None) -> None:
        """Boucle bloquante : un tick puis attente de poll_interval, jusqu'au signal d'arrêt."""
        stop_event = stop_event or self._stop_event
        logger.info(
            "outbox: worker started (interval=%ss, batch=%d)", self.poll_interval, self.batch_size
        )
        while not stop_event.is_set():
            try:
                self.process_batch(stop_event)
            except Exception:
                logger.exception("outbox: unexpected error during tick")
            stop_event.wait(self.poll_interval)
        logger.info("outbox: worker stopped")

    def start(self) -> Future:
        """Lance la boucle sur un thread dédié. Le Future se termine à l'arrêt de la boucle."""
        if self._future is not None and not self._future.done():
            return self._future
        self._stop_event.clear()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="outbox-worker")
        self._future = self._executor.submit(self.run, self._stop_event)
        return self._future

    def stop(self, timeout: Optional[float] = None) -> None:
        """Demande l'arrêt et attend la fin du tick en cours."""
        self._stop_event.set()
        if self._future is not None:
            self._future.result(timeout=timeout)
        if self._executor is not None:
            self._executor.shutdown(wait=True)
        self._executor = None
        self._future = None
