from __future__ import annotations
"""server/shiftdrop/core/logging.py
~~~~~~~~~~~~~~~~~~~~~~~~
Configuration logs.
"""
import logging


def setup_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    # SQLAlchemy reste silencieux sauf besoin explicite (echo=True)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
