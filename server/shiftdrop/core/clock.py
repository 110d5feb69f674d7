from __future__ import annotations
"""server/shiftdrop/core/clock.py
~~~~~~~~~~~~~~~~~~~~~~~~
Source de temps injectable.

Toutes les décisions temporelles (expiration, backoff, ordre) passent par
`Clock.now()` : on peut ainsi figer le temps dans les tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Protocol


def as_utc(dt_val: datetime) -> datetime:
    """
    Normalise un datetime en UTC timezone-aware.
    - si naïf: on suppose UTC
    - sinon: conversion UTC
    """
    if dt_val.tzinfo is None:
        return dt_val.replace(tzinfo=timezone.utc)
    return dt_val.astimezone(timezone.utc)


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Horloge réelle (UTC)."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FrozenClock:
    """Horloge figée : n'avance que sur appel explicite à `advance()` / `set()`."""

    def __init__(self, start: datetime):
        self._now = as_utc(start)

    def now(self) -> datetime:
        return self._now

    def advance(self, delta: timedelta | None = None, **kwargs: float) -> datetime:
        self._now = self._now + (delta if delta is not None else timedelta(**kwargs))
        return self._now

    def set(self, value: datetime) -> None:
        self._now = as_utc(value)
