"""
ExtraBeam Backend - Client Contact Routes
=========================================

What:  The client/entreprise address book.
           entreprise side   GET ?entrepriseRef, POST /attach, DELETE /{client_id}
           client side       GET/POST /contacts, DELETE /contacts/{id}

The /contacts routes are declared first so "contacts" is never read as a
client id.
"""

import uuid
from typing import Optional, Union

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from extrabeam.database import get_db_session
from extrabeam.dependencies import require_client_role, require_entreprise_role
from extrabeam.schemas.auth import AuthUser
from extrabeam.schemas.client import (
    AttachClientRequest,
    AttachedResponse,
    ContactCreate,
    ContactListResponse,
    ContactResponse,
    DetachedResponse,
)
from extrabeam.schemas.common import ErrorResponse, MessageResponse
from extrabeam.services.client_service import client_service

router = APIRouter(prefix="/api/clients", tags=["Clients"])

_AUTH = {
    401: {"description": "Not authenticated", "model": ErrorResponse},
    403: {"description": "Wrong role or entreprise", "model": ErrorResponse},
}


# ── Client side ───────────────────────────────────────────────────────────


@router.get("/contacts", response_model=ContactListResponse, responses=_AUTH, summary="My companies")
async def my_contacts(
    user: AuthUser = Depends(require_client_role),
    db: AsyncSession = Depends(get_db_session),
) -> ContactListResponse:
    return await client_service.my_contacts(db, user)


@router.post(
    "/contacts",
    status_code=201,
    response_model=Union[ContactResponse, MessageResponse],
    responses={
        200: {"description": "Already in the contacts", "model": MessageResponse},
        400: {"description": "entreprise_id missing", "model": ErrorResponse},
        404: {"description": "Entreprise not found", "model": ErrorResponse},
        **_AUTH,
    },
    summary="Bookmark a company",
)
async def add_contact(
    body: ContactCreate,
    response: Response,
    user: AuthUser = Depends(require_client_role),
    db: AsyncSession = Depends(get_db_session),
) -> Union[ContactResponse, MessageResponse]:
    result = await client_service.add_contact(db, user, body)
    if isinstance(result, MessageResponse):
        response.status_code = 200
    return result


@router.delete(
    "/contacts/{contact_id}",
    response_model=MessageResponse,
    responses={404: {"description": "Contact not found", "model": ErrorResponse}, **_AUTH},
)
async def delete_contact(
    contact_id: int,
    user: AuthUser = Depends(require_client_role),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await client_service.delete_contact(db, user, contact_id)


# ── Entreprise side ───────────────────────────────────────────────────────


@router.get("", response_model=ContactListResponse, responses=_AUTH, summary="Clients of an entreprise")
async def list_clients(
    entreprise_ref: Optional[str] = Query(default=None, alias="entrepriseRef"),
    user: AuthUser = Depends(require_entreprise_role),
    db: AsyncSession = Depends(get_db_session),
) -> ContactListResponse:
    return await client_service.list_contacts(db, user, entreprise_ref)


@router.post(
    "/attach",
    response_model=AttachedResponse,
    responses={
        400: {"description": "client_id missing", "model": ErrorResponse},
        404: {"description": "Client not found", "model": ErrorResponse},
        **_AUTH,
    },
    summary="Attach a client to the entreprise",
)
async def attach_client(
    body: AttachClientRequest,
    entreprise_ref: Optional[str] = Query(default=None, alias="entrepriseRef"),
    user: AuthUser = Depends(require_entreprise_role),
    db: AsyncSession = Depends(get_db_session),
) -> AttachedResponse:
    return await client_service.attach(db, user, entreprise_ref, body)


@router.delete(
    "/{client_id}",
    response_model=DetachedResponse,
    responses={404: {"description": "No such link", "model": ErrorResponse}, **_AUTH},
    summary="Detach a client from the entreprise",
)
async def detach_client(
    client_id: uuid.UUID,
    entreprise_ref: Optional[str] = Query(default=None, alias="entrepriseRef"),
    user: AuthUser = Depends(require_entreprise_role),
    db: AsyncSession = Depends(get_db_session),
) -> DetachedResponse:
    return await client_service.detach(db, user, entreprise_ref, client_id)
