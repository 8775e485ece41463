"""
ExtraBeam Backend - Entreprise Routes
=====================================

What:  Public directory and pages, owner-side edition, the dashboard
       overview, Stripe Connect onboarding and the public booking form.

`{ref}` is an entreprise id, its owner's UUID or its slug.

Mixed-audience endpoints (detail, overview) are rendered with
`response_model_exclude_unset`: the service only fills the fields the caller
may see, so owner-only columns are absent, not null, for visitors.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from extrabeam.database import get_db_session
from extrabeam.dependencies import get_current_user, get_optional_user
from extrabeam.schemas.auth import AuthUser
from extrabeam.schemas.common import ErrorResponse, SuccessResponse
from extrabeam.schemas.entreprise import (
    ConnectStripeResponse,
    EntrepriseDetailResponse,
    EntrepriseListResponse,
    EntreprisePrivateResponse,
    EntreprisePublicResponse,
    EntrepriseUpdate,
)
from extrabeam.schemas.mission import MissionCreate, MissionResponse
from extrabeam.schemas.overview import EntrepriseOverviewResponse
from extrabeam.services.entreprise_service import entreprise_service
from extrabeam.services.mission_service import mission_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/entreprises", tags=["Entreprises"])

_NOT_FOUND = {404: {"description": "Entreprise not found", "model": ErrorResponse}}
_OWNER_ONLY = {
    401: {"description": "Not authenticated", "model": ErrorResponse},
    403: {"description": "Not the owner", "model": ErrorResponse},
    **_NOT_FOUND,
}


@router.get(
    "",
    response_model=EntrepriseListResponse,
    summary="Public directory of entreprises",
    description="Public columns only, newest first.",
)
async def list_entreprises(db: AsyncSession = Depends(get_db_session)) -> EntrepriseListResponse:
    return await entreprise_service.list_public(db)


@router.get(
    "/public/{slug}",
    response_model=EntreprisePublicResponse,
    responses=_NOT_FOUND,
    summary="Public page data by slug",
)
async def get_public_entreprise(
    slug: str,
    db: AsyncSession = Depends(get_db_session),
) -> EntreprisePublicResponse:
    return await entreprise_service.get_public_by_slug(db, slug)


@router.get(
    "/{ref}",
    response_model=EntrepriseDetailResponse,
    response_model_exclude_unset=True,
    responses=_NOT_FOUND,
    summary="Entreprise detail",
    description=(
        "Public columns plus stripe_account_id; owners and admins also receive "
        "the legal, banking and billing fields."
    ),
)
async def get_entreprise(
    ref: str,
    user: Optional[AuthUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> Dict[str, Any]:
    return await entreprise_service.get_detail(db, user, ref)


@router.put(
    "/{ref}",
    response_model=EntreprisePrivateResponse,
    responses={**_OWNER_ONLY, 409: {"description": "Slug already taken", "model": ErrorResponse}},
    summary="Update an entreprise",
)
async def update_entreprise(
    ref: str,
    body: EntrepriseUpdate,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> EntreprisePrivateResponse:
    return await entreprise_service.update(db, user, ref, body)


@router.delete(
    "/{ref}",
    response_model=SuccessResponse,
    responses=_OWNER_ONLY,
    summary="Delete an entreprise and everything it owns",
)
async def delete_entreprise(
    ref: str,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    return await entreprise_service.delete(db, user, ref)


@router.get(
    "/{ref}/overview",
    response_model=EntrepriseOverviewResponse,
    response_model_exclude_unset=True,
    responses=_NOT_FOUND,
    summary="Dashboard or public calendar in one request",
    description=(
        "Owners get mode 'owner' with missions, factures, every slot and the "
        "unavailability rules; everyone else gets mode 'public' with the public "
        "slots and the rules."
    ),
)
async def get_overview(
    ref: str,
    user: Optional[AuthUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> EntrepriseOverviewResponse:
    return await entreprise_service.overview(db, user, ref)


@router.get(
    "/{ref}/connect-stripe",
    response_model=ConnectStripeResponse,
    responses={**_OWNER_ONLY, 502: {"description": "Stripe failure", "model": ErrorResponse}},
    summary="Stripe Connect onboarding link",
)
async def connect_stripe(
    ref: str,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ConnectStripeResponse:
    return await entreprise_service.connect_stripe(db, user, ref)


@router.post(
    "/{ref}/missions",
    status_code=201,
    response_model=MissionResponse,
    responses={
        400: {"description": "Invalid mode", "model": ErrorResponse},
        **_NOT_FOUND,
    },
    summary="Request a mission from the public page",
    description=(
        "Open to visitors. The mission is created as 'proposed'; a signed-in "
        "client becomes its client. The entreprise is notified by e-mail."
    ),
)
async def request_mission(
    ref: str,
    body: MissionCreate,
    user: Optional[AuthUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> MissionResponse:
    return await mission_service.create_public_mission(db, user, ref, body)
