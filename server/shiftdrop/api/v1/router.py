from __future__ import annotations
"""server/shiftdrop/api/v1/router.py
~~~~~~~~~~~~~~~~~~~~~~~~
Router principal API v1.
"""
from fastapi import APIRouter
from shiftdrop.api.v1.endpoints import health, pools, shifts

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(pools.router, tags=["pools"])
api_router.include_router(shifts.router, tags=["shifts"])
