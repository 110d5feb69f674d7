from __future__ import annotations
"""server/shiftdrop/api/v1/endpoints/pools.py
~~~~~~~~~~~~~~~~~~~~~~~~
Pools : création, ajout de casuals, invitation d'admin, publication et liste des shifts ouverts.
"""
import uuid

from fastapi import APIRouter, Depends, status

from shiftdrop.api.schemas.shift import AdminInviteOut, CasualIn, CasualOut, PoolIn, PoolOut, ShiftIn, ShiftOut
from shiftdrop.api.v1.dependencies import get_pool_service, get_shift_service
from shiftdrop.application.services.pool_service import PoolService
from shiftdrop.application.services.shift_service import ShiftService

router = APIRouter(prefix="/pools")


@router.post("", response_model=PoolOut, status_code=status.HTTP_201_CREATED)
def create_pool(body: PoolIn, svc: PoolService = Depends(get_pool_service)):
    return svc.create_pool(body.name)


@router.post("/{pool_id}/casuals", response_model=CasualOut, status_code=status.HTTP_201_CREATED)
def add_casual(pool_id: uuid.UUID, body: CasualIn, svc: PoolService = Depends(get_pool_service)):
    return svc.add_casual(pool_id, body.name, body.phone_number)


@router.post("/{pool_id}/admins", response_model=AdminInviteOut, status_code=status.HTTP_202_ACCEPTED)
def invite_admin(pool_id: uuid.UUID, body: CasualIn, svc: PoolService = Depends(get_pool_service)):
    return {"admin_id": svc.invite_admin(pool_id, body.name, body.phone_number)}


@router.post("/{pool_id}/shifts", response_model=ShiftOut, status_code=status.HTTP_201_CREATED)
def post_shift(pool_id: uuid.UUID, body: ShiftIn, svc: ShiftService = Depends(get_shift_service)):
    return svc.post_shift(
        pool_id=pool_id,
        starts_at=body.starts_at,
        ends_at=body.ends_at,
        spots_needed=body.spots_needed,
        description=body.description,
    )


@router.get("/{pool_id}/shifts", response_model=list[ShiftOut])
def list_open_shifts(pool_id: uuid.UUID, svc: ShiftService = Depends(get_shift_service)):
    return svc.list_open_shifts(pool_id)
