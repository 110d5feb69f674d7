from __future__ import annotations
"""
server/shiftdrop/api/schemas/shift.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Pydantic schemas (entrée/sortie) des shifts, claims, pools et casuals.

Validation de forme uniquement : les règles métier (fenêtre horaire,
capacité...) restent dans les agrégats.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from shiftdrop.infrastructure.persistence.database.models.shift import ShiftStatus
from shiftdrop.infrastructure.persistence.database.models.shift_claim import ClaimStatus


class PoolIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)


class PoolOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    created_at: datetime


class CasualIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    phone_number: str = Field(min_length=1, max_length=50)


class CasualOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    pool_id: uuid.UUID
    name: str
    phone_number: str


class AdminInviteOut(BaseModel):
    admin_id: uuid.UUID


class ShiftIn(BaseModel):
    starts_at: datetime
    ends_at: datetime
    spots_needed: int
    description: Optional[str] = Field(default=None, max_length=255)


class ShiftOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    pool_id: uuid.UUID
    description: Optional[str] = None
    starts_at: datetime
    ends_at: datetime
    spots_needed: int
    spots_remaining: int
    status: ShiftStatus
    version: int


class ClaimIn(BaseModel):
    casual_id: uuid.UUID


class ClaimOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    shift_id: uuid.UUID
    casual_id: uuid.UUID
    status: ClaimStatus
    claimed_at: datetime
    released_at: Optional[datetime] = None


class ResendOut(BaseModel):
    notified_count: int
    message: str
