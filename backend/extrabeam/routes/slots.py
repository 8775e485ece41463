"""
ExtraBeam Backend - Slot Routes
===============================

What:  Calendar slots of an entreprise. Reading is public (filtered by
       visibility); writing requires ownership.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from extrabeam.database import get_db_session
from extrabeam.dependencies import get_current_user, get_optional_user
from extrabeam.schemas.auth import AuthUser
from extrabeam.schemas.common import ErrorResponse, MessageResponse
from extrabeam.schemas.slot import SlotCreate, SlotListResponse, SlotResponse, SlotUpdate
from extrabeam.services.slot_service import slot_service

router = APIRouter(prefix="/api/entreprises/{ref}/slots", tags=["Slots"])

_OWNER_ONLY = {
    401: {"description": "Not authenticated", "model": ErrorResponse},
    403: {"description": "Not the owner", "model": ErrorResponse},
    404: {"description": "Entreprise or slot not found", "model": ErrorResponse},
}


@router.get(
    "",
    response_model=SlotListResponse,
    response_model_exclude_unset=True,
    summary="List calendar slots",
    description=(
        "Visitors see free slots and slots of validated, paid or completed missions. "
        "Owners see every slot with status_slot 'pending' or 'active'."
    ),
)
async def list_slots(
    ref: str,
    start_from: Optional[datetime] = Query(default=None, alias="from", description="Slots starting at or after"),
    end_to: Optional[datetime] = Query(default=None, alias="to", description="Slots ending at or before"),
    mission_id: Optional[int] = Query(default=None),
    user: Optional[AuthUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> SlotListResponse:
    return await slot_service.list_slots(db, user, ref, start_from, end_to, mission_id)


@router.post(
    "",
    status_code=201,
    response_model=SlotResponse,
    responses={400: {"description": "Foreign mission", "model": ErrorResponse}, **_OWNER_ONLY},
    summary="Create a slot",
)
async def create_slot(
    ref: str,
    body: SlotCreate,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> SlotResponse:
    return await slot_service.create_slot(db, user, ref, body)


@router.put(
    "/{slot_id}",
    response_model=SlotResponse,
    responses={400: {"description": "Invalid range or mission", "model": ErrorResponse}, **_OWNER_ONLY},
    summary="Update a slot",
)
async def update_slot(
    ref: str,
    slot_id: int,
    body: SlotUpdate,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> SlotResponse:
    return await slot_service.update_slot(db, user, ref, slot_id, body)


@router.delete(
    "/{slot_id}",
    response_model=MessageResponse,
    responses=_OWNER_ONLY,
    summary="Delete a slot",
)
async def delete_slot(
    ref: str,
    slot_id: int,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await slot_service.delete_slot(db, user, ref, slot_id)
