"""
ExtraBeam Backend - Facture Routes
==================================
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from extrabeam.database import get_db_session
from extrabeam.dependencies import get_current_user, require_entreprise_role
from extrabeam.schemas.auth import AuthUser
from extrabeam.schemas.common import ErrorResponse, SentResponse
from extrabeam.schemas.facture import (
    FactureCreate,
    FactureListResponse,
    FactureResponse,
    FactureUpdate,
)
from extrabeam.services.facture_service import facture_service

router = APIRouter(prefix="/api/factures", tags=["Factures"])

_AUTH = {
    401: {"description": "Not authenticated", "model": ErrorResponse},
    403: {"description": "Role or ownership check failed", "model": ErrorResponse},
}
_FACTURE = {**_AUTH, 404: {"description": "Facture not found", "model": ErrorResponse}}


@router.get("", response_model=FactureListResponse, responses=_AUTH, summary="Invoices of an entreprise")
async def list_factures(
    entreprise_ref: Optional[str] = Query(default=None, alias="entrepriseRef"),
    user: AuthUser = Depends(require_entreprise_role),
    db: AsyncSession = Depends(get_db_session),
) -> FactureListResponse:
    return await facture_service.list_factures(db, user, entreprise_ref)


@router.get("/{facture_id}", response_model=FactureResponse, responses=_FACTURE)
async def get_facture(
    facture_id: int,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FactureResponse:
    return await facture_service.get_facture(db, user, facture_id)


@router.post(
    "",
    status_code=201,
    response_model=FactureResponse,
    responses={
        400: {"description": "Duplicate numero, invalid status or mission", "model": ErrorResponse},
        502: {"description": "Stripe failure", "model": ErrorResponse},
        **_AUTH,
    },
    summary="Create an invoice",
    description=(
        "With `mission_id`, hours, rate and amounts are computed from the mission's "
        "slots. `generatePaymentLink` also opens a Stripe checkout session."
    ),
)
async def create_facture(
    body: FactureCreate,
    user: AuthUser = Depends(require_entreprise_role),
    db: AsyncSession = Depends(get_db_session),
) -> FactureResponse:
    return await facture_service.create_facture(db, user, body)


@router.put(
    "/{facture_id}",
    response_model=FactureResponse,
    responses={400: {"description": "Duplicate numero or invalid status", "model": ErrorResponse}, **_FACTURE},
    summary="Update an invoice",
)
async def update_facture(
    facture_id: int,
    body: FactureUpdate,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FactureResponse:
    return await facture_service.update_facture(db, user, facture_id, body)


@router.post(
    "/{facture_id}/send",
    response_model=SentResponse,
    responses={503: {"description": "Mail delivery unavailable", "model": ErrorResponse}, **_FACTURE},
    summary="E-mail the invoice to the client",
)
async def send_facture(
    facture_id: int,
    user: AuthUser = Depends(require_entreprise_role),
    db: AsyncSession = Depends(get_db_session),
) -> SentResponse:
    return await facture_service.send_facture(db, user, facture_id)
