# server/shiftdrop/domain/policies.py

from __future__ import annotations
"""
Règles métier pures (sans ORM ni session).

Fonctions principales :
    validate_shift_window(starts_at, ends_at, spots_needed, now)
        Refuse un créneau mal formé (InvalidInput).
    next_retry_delay(retry_count, schedule)
        Délai avant la prochaine tentative outbox, ou None si la grille est épuisée.
"""

from datetime import datetime, timedelta
from typing import Sequence

from shiftdrop.domain.errors import InvalidInput

# Grille de retry outbox, indexée par numéro de tentative (1 = premier échec)
DEFAULT_RETRY_SCHEDULE: tuple[timedelta, ...] = (
    timedelta(seconds=10),
    timedelta(seconds=30),
    timedelta(minutes=1),
    timedelta(minutes=5),
    timedelta(minutes=15),
)


def validate_shift_window(starts_at: datetime, ends_at: datetime, spots_needed: int, now: datetime) -> None:
    if starts_at <= now:
        raise InvalidInput("Shift must start in the future")
    if ends_at <= starts_at:
        raise InvalidInput("Shift end time must be after start time")
    if spots_needed < 1:
        raise InvalidInput("At least one spot is required")


def next_retry_delay(retry_count: int, schedule: Sequence[timedelta]) -> timedelta | None:
    """
    retry_count = nombre d'échecs déjà comptés (>= 1).
    - retry_count <= len(schedule) -> schedule[retry_count - 1]
    - au-delà -> None (échec terminal)
    """
    if retry_count < 1:
        raise ValueError(f"retry_count must be >= 1, got {retry_count}")
    if retry_count > len(schedule):
        return None
    return schedule[retry_count - 1]


def truncate_error(message: str, max_len: int) -> str:
    """Borne la longueur de last_error (colonne bornée côté DB)."""
    message = message or ""
    if len(message) <= max_len:
        return message
    return message[: max(0, max_len - 3)] + "..."


def describe_shift(starts_at: datetime, ends_at: datetime, pool_name: str | None = None) -> str:
    """Libellé humain d'un créneau, utilisé dans les SMS."""
    when = f"{starts_at:%a %d %b %H:%M}-{ends_at:%H:%M}"
    return f"{pool_name}: shift {when}" if pool_name else f"Shift {when}"
