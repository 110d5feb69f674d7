from __future__ import annotations
"""server/shiftdrop/api/v1/dependencies.py
~~~~~~~~~~~~~~~~~~~~~~~~
Fabriques de services injectées dans les endpoints (surchargées dans les tests
via `app.dependency_overrides`).
"""
from shiftdrop.application.services.pool_service import PoolService
from shiftdrop.application.services.shift_service import ShiftService


def get_shift_service() -> ShiftService:
    return ShiftService()


def get_pool_service() -> PoolService:
    return PoolService()
