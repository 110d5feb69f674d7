from __future__ import annotations
"""
server/shiftdrop/infrastructure/persistence/database/base.py

Base ORM SQLAlchemy 2.x.

Les tables sont enregistrées dans Base.metadata à l'import du package
`shiftdrop.infrastructure.persistence.database.models` : c'est lui qu'il faut
importer avant un `Base.metadata.create_all(bind=engine)` (tests SQLite, Alembic).
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base declarative pour tous les modèles."""
    pass


__all__ = ["Base"]
