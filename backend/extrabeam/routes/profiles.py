"""
ExtraBeam Backend - Profile Routes
==================================

What:  The caller's own profile. Choosing a role through PUT also provisions
       the companion row (entreprise for freelancers, clients row for clients).
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from extrabeam.database import get_db_session
from extrabeam.dependencies import get_current_user
from extrabeam.schemas.auth import AuthUser, ProfileResponse, ProfileUpdate
from extrabeam.schemas.common import ErrorResponse
from extrabeam.services.profile_service import profile_service

router = APIRouter(prefix="/api/profiles", tags=["Profiles"])


@router.get(
    "/me",
    response_model=ProfileResponse,
    responses={401: {"description": "Not authenticated", "model": ErrorResponse}},
    summary="Get my profile",
)
async def get_my_profile(
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    return await profile_service.get_me(db, user)


@router.put(
    "/me",
    response_model=ProfileResponse,
    responses={
        400: {"description": "Role missing", "model": ErrorResponse},
        401: {"description": "Not authenticated", "model": ErrorResponse},
    },
    summary="Update my profile",
)
async def update_my_profile(
    body: ProfileUpdate,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    return await profile_service.update_me(db, user, body)
