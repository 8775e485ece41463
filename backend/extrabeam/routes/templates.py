"""
ExtraBeam Backend - Mission Template Routes
===========================================

Saved mission forms of the calling client. Restricted to the `client` role.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from extrabeam.database import get_db_session
from extrabeam.dependencies import require_client_role
from extrabeam.schemas.auth import AuthUser
from extrabeam.schemas.common import ErrorResponse, SuccessResponse
from extrabeam.schemas.mission import (
    MissionTemplateCreate,
    MissionTemplateListResponse,
    MissionTemplateResponse,
    MissionTemplateUpdate,
)
from extrabeam.services.template_service import template_service

router = APIRouter(prefix="/api/mission-templates", tags=["Mission templates"])

_AUTH = {
    401: {"description": "Not authenticated", "model": ErrorResponse},
    403: {"description": "Clients only", "model": ErrorResponse},
}
_TEMPLATE = {**_AUTH, 404: {"description": "Template not found", "model": ErrorResponse}}


@router.get("", response_model=MissionTemplateListResponse, responses=_AUTH)
async def list_templates(
    user: AuthUser = Depends(require_client_role),
    db: AsyncSession = Depends(get_db_session),
) -> MissionTemplateListResponse:
    return await template_service.list_templates(db, user)


@router.post(
    "",
    status_code=201,
    response_model=MissionTemplateResponse,
    responses={400: {"description": "nom or etablissement missing", "model": ErrorResponse}, **_AUTH},
)
async def create_template(
    body: MissionTemplateCreate,
    user: AuthUser = Depends(require_client_role),
    db: AsyncSession = Depends(get_db_session),
) -> MissionTemplateResponse:
    return await template_service.create_template(db, user, body)


@router.put("/{template_id}", response_model=MissionTemplateResponse, responses=_TEMPLATE)
async def update_template(
    template_id: int,
    body: MissionTemplateUpdate,
    user: AuthUser = Depends(require_client_role),
    db: AsyncSession = Depends(get_db_session),
) -> MissionTemplateResponse:
    return await template_service.update_template(db, user, template_id, body)


@router.delete("/{template_id}", response_model=SuccessResponse, responses=_TEMPLATE)
async def delete_template(
    template_id: int,
    user: AuthUser = Depends(require_client_role),
    db: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    return await template_service.delete_template(db, user, template_id)
