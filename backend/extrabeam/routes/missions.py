"""
ExtraBeam Backend - Mission Routes
==================================

What:  Missions seen from both sides. Entreprise roles work on the missions
       of an entreprise they own; clients on the missions they requested.
Who:   Authenticated callers only. Visitor bookings go through
       POST /api/entreprises/{ref}/missions.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from extrabeam.database import get_db_session
from extrabeam.dependencies import get_current_user
from extrabeam.schemas.auth import AuthUser
from extrabeam.schemas.common import ErrorResponse, SuccessResponse
from extrabeam.schemas.mission import (
    MissionCreate,
    MissionListResponse,
    MissionResponse,
    MissionStatusUpdate,
    MissionUpdate,
)
from extrabeam.services.mission_service import mission_service

router = APIRouter(prefix="/api/missions", tags=["Missions"])

_AUTH = {
    401: {"description": "Not authenticated", "model": ErrorResponse},
    403: {"description": "Role or ownership check failed", "model": ErrorResponse},
}
_MISSION = {**_AUTH, 404: {"description": "Mission not found", "model": ErrorResponse}}


@router.get(
    "",
    response_model=MissionListResponse,
    responses={400: {"description": "Invalid week or status", "model": ErrorResponse}, **_AUTH},
    summary="List missions",
    description=(
        "Entreprise roles get the missions of the resolved entreprise (newest first, "
        "paginated). Clients get the missions they requested. `week` is any date of "
        "the wanted week."
    ),
)
async def list_missions(
    entreprise_ref: Optional[str] = Query(default=None, alias="entrepriseRef"),
    week: Optional[str] = Query(default=None, description="YYYY-MM-DD"),
    status: Optional[str] = Query(default=None),
    page: Optional[int] = Query(default=None),
    size: Optional[int] = Query(default=None),
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MissionListResponse:
    return await mission_service.list_missions(db, user, entreprise_ref, week, status, page, size)


@router.get("/{mission_id}", response_model=MissionResponse, responses=_MISSION)
async def get_mission(
    mission_id: int,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MissionResponse:
    return await mission_service.get_mission(db, user, mission_id)


@router.post(
    "",
    status_code=201,
    response_model=MissionResponse,
    responses={400: {"description": "Invalid mode or slots", "model": ErrorResponse}, **_AUTH},
    summary="Create a mission",
)
async def create_mission(
    body: MissionCreate,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MissionResponse:
    return await mission_service.create_mission(db, user, body)


@router.put(
    "/{mission_id}",
    response_model=MissionResponse,
    responses={400: {"description": "Invalid status, mode or slots", "model": ErrorResponse}, **_MISSION},
    summary="Update a mission",
    description="A `slots` array replaces every slot of the mission.",
)
async def update_mission(
    mission_id: int,
    body: MissionUpdate,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MissionResponse:
    return await mission_service.update_mission(db, user, mission_id, body)


@router.delete("/{mission_id}", response_model=SuccessResponse, responses=_MISSION)
async def delete_mission(
    mission_id: int,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    return await mission_service.delete_mission(db, user, mission_id)


@router.post(
    "/{mission_id}/status",
    response_model=MissionResponse,
    responses={400: {"description": "Invalid status", "model": ErrorResponse}, **_MISSION},
    summary="Change the status of a mission",
    description="The client is notified of the change when an address is known.",
)
async def set_mission_status(
    mission_id: int,
    body: MissionStatusUpdate,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MissionResponse:
    return await mission_service.set_status(db, user, mission_id, body.status)
