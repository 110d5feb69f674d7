from __future__ import annotations
"""server/shiftdrop/main.py
~~~~~~~~~~~~~~~~~~~~~~~~
Point d'entrée FastAPI.

- Traduction des erreurs métier en codes HTTP (400 / 404 / 409).
- Worker outbox embarqué démarré/arrêté par le lifespan si OUTBOX_WORKER_EMBEDDED.
  Sinon, le worker tourne côté Celery (tâche `outbox.dispatch`).
"""
import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shiftdrop.api.v1.router import api_router
from shiftdrop.core.config import settings
from shiftdrop.core.logging import setup_logging
from shiftdrop.domain.errors import (
    BusinessRuleViolation,
    ConcurrencyConflict,
    DomainError,
    InvalidInput,
    NotFound,
)
from shiftdrop.infrastructure.notifications.dispatcher import build_dispatcher
from shiftdrop.workers.outbox_worker import OutboxWorker

logger = logging.getLogger(__name__)


def status_for(exc: DomainError) -> int:
    if isinstance(exc, NotFound):
        return 404
    if isinstance(exc, ConcurrencyConflict):
        return 409
    if isinstance(exc, (InvalidInput, BusinessRuleViolation)):
        return 400
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    worker = None
    if settings.OUTBOX_WORKER_EMBEDDED:
        logger.info("embedded outbox worker enabled")
        worker = OutboxWorker(build_dispatcher())
        worker.start()
    try:
        yield
    finally:
        if worker is not None:
            await asyncio.to_thread(worker.stop, settings.OUTBOX_POLL_INTERVAL_SECONDS * 2 + 30)


app = FastAPI(title="ShiftDrop", version="0.1.0", lifespan=lifespan)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    return JSONResponse(status_code=status_for(exc), content={"error": exc.message, "code": exc.code})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "code": InvalidInput.code, "details": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()]


app.include_router(api_router, prefix="/api/v1")
