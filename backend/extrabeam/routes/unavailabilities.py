"""
ExtraBeam Backend - Unavailability Routes
=========================================

What:  Recurring blocked time of an entreprise. GET expands the rules into
       one entry per day between `start` and `end` (both required).
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from extrabeam.database import get_db_session
from extrabeam.dependencies import get_current_user
from extrabeam.schemas.auth import AuthUser
from extrabeam.schemas.common import ErrorResponse, SuccessResponse
from extrabeam.schemas.unavailability import (
    UnavailabilityCreate,
    UnavailabilityListResponse,
    UnavailabilityResponse,
    UnavailabilityUpdate,
)
from extrabeam.services.unavailability_service import unavailability_service

router = APIRouter(prefix="/api/entreprises/{ref}/unavailabilities", tags=["Unavailabilities"])

_OWNER_ONLY = {
    401: {"description": "Not authenticated", "model": ErrorResponse},
    403: {"description": "Not the owner", "model": ErrorResponse},
    404: {"description": "Entreprise or rule not found", "model": ErrorResponse},
}


@router.get(
    "",
    response_model=UnavailabilityListResponse,
    responses={400: {"description": "start or end missing", "model": ErrorResponse}},
    summary="Expanded unavailabilities within a window",
)
async def list_unavailabilities(
    ref: str,
    start: Optional[str] = Query(default=None, description="First day (YYYY-MM-DD)"),
    end: Optional[str] = Query(default=None, description="Last day, inclusive"),
    db: AsyncSession = Depends(get_db_session),
) -> UnavailabilityListResponse:
    return await unavailability_service.list_occurrences(db, ref, start, end)


@router.post(
    "",
    status_code=201,
    response_model=UnavailabilityResponse,
    responses={400: {"description": "Missing times or date", "model": ErrorResponse}, **_OWNER_ONLY},
    summary="Create an unavailability rule",
)
async def create_unavailability(
    ref: str,
    body: UnavailabilityCreate,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UnavailabilityResponse:
    return await unavailability_service.create(db, user, ref, body)


@router.put(
    "/{rule_id}",
    response_model=UnavailabilityResponse,
    responses=_OWNER_ONLY,
    summary="Update an unavailability rule",
)
async def update_unavailability(
    ref: str,
    rule_id: int,
    body: UnavailabilityUpdate,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UnavailabilityResponse:
    return await unavailability_service.update(db, user, ref, rule_id, body)


@router.delete(
    "/{rule_id}",
    response_model=SuccessResponse,
    responses=_OWNER_ONLY,
    summary="Delete an unavailability rule",
)
async def delete_unavailability(
    ref: str,
    rule_id: int,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    return await unavailability_service.delete(db, user, ref, rule_id)
