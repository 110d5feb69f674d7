from __future__ import annotations
"""server/shiftdrop/api/v1/endpoints/shifts.py
~~~~~~~~~~~~~~~~~~~~~~~~
Claim / release / cancel / relance des shifts, et claim par lien SMS.

Les erreurs métier sont traduites en codes HTTP par les handlers de main.py.
"""
import uuid

from fastapi import APIRouter, Depends

from shiftdrop.api.schemas.shift import ClaimIn, ClaimOut, ResendOut, ShiftOut
from shiftdrop.api.v1.dependencies import get_shift_service
from shiftdrop.application.services.shift_service import ShiftService

router = APIRouter()


@router.post("/shifts/{shift_id}/claim", response_model=ClaimOut)
def claim_shift(shift_id: uuid.UUID, body: ClaimIn, svc: ShiftService = Depends(get_shift_service)):
    return svc.claim_shift(shift_id, body.casual_id)


@router.post("/shifts/{shift_id}/release", response_model=ClaimOut)
def release_shift(shift_id: uuid.UUID, body: ClaimIn, svc: ShiftService = Depends(get_shift_service)):
    return svc.release_shift(shift_id, body.casual_id)


@router.post("/shifts/{shift_id}/casuals/{casual_id}/release", response_model=ClaimOut)
def manager_release(shift_id: uuid.UUID, casual_id: uuid.UUID, svc: ShiftService = Depends(get_shift_service)):
    return svc.manager_release(shift_id, casual_id)


@router.post("/shifts/{shift_id}/cancel", response_model=ShiftOut)
def cancel_shift(shift_id: uuid.UUID, svc: ShiftService = Depends(get_shift_service)):
    return svc.cancel_shift(shift_id)


@router.post("/shifts/{shift_id}/resend", response_model=ResendOut)
def resend_notifications(shift_id: uuid.UUID, svc: ShiftService = Depends(get_shift_service)):
    n = svc.resend_notifications(shift_id)
    if n == 0:
        return ResendOut(notified_count=0, message="No casuals to notify")
    return ResendOut(notified_count=n, message=f"Notification sent to {n} casual{'' if n == 1 else 's'}")


@router.post("/claim/{token}", response_model=ClaimOut)
def claim_by_token(token: str, svc: ShiftService = Depends(get_shift_service)):
    return svc.claim_by_token(token)
