"""
ExtraBeam Backend - Mission Template Service
============================================

Saved mission forms of a client (place, contact, instructions), reused when
booking a new mission. A template is only visible to the client who owns it.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from extrabeam.exceptions import NotFoundError, ValidationError
from extrabeam.models.mission import MissionTemplate
from extrabeam.schemas.auth import AuthUser
from extrabeam.schemas.common import SuccessResponse
from extrabeam.schemas.mission import (
    MissionTemplateCreate,
    MissionTemplateListResponse,
    MissionTemplateOut,
    MissionTemplateResponse,
    MissionTemplateUpdate,
)
from extrabeam.services.access_service import parse_uuid
from extrabeam.services.mission_service import validate_mode

logger = logging.getLogger(__name__)


class TemplateService:

    async def list_templates(self, db: AsyncSession, user: AuthUser) -> MissionTemplateListResponse:
        result = await db.execute(
            select(MissionTemplate)
            .where(MissionTemplate.client_id == parse_uuid(user.id))
            .order_by(MissionTemplate.created_at.desc(), MissionTemplate.id.desc())
        )
        return MissionTemplateListResponse(
            templates=[MissionTemplateOut.model_validate(t) for t in result.scalars().all()]
        )

    async def create_template(
        self, db: AsyncSession, user: AuthUser, data: MissionTemplateCreate
    ) -> MissionTemplateResponse:
        if not data.nom or not data.etablissement:
            raise ValidationError(message="Les champs nom et etablissement sont requis")
        validate_mode(data.mode)

        template = MissionTemplate(
            **data.model_dump(exclude_none=True, exclude={"mode"}),
            mode=data.mode or "freelance",
            client_id=parse_uuid(user.id),
        )
        db.add(template)
        await db.flush()
        logger.info("Mission template %s created by client %s", template.id, user.id)
        return MissionTemplateResponse(template=MissionTemplateOut.model_validate(template))

    async def _get_owned(self, db: AsyncSession, user: AuthUser, template_id: int) -> MissionTemplate:
        template = await db.get(MissionTemplate, template_id)
        if template is None or str(template.client_id) != user.id:
            raise NotFoundError(
                resource="mission_template",
                resource_id=str(template_id),
                message="Template introuvable",
            )
        return template

    async def update_template(
        self, db: AsyncSession, user: AuthUser, template_id: int, data: MissionTemplateUpdate
    ) -> MissionTemplateResponse:
        template = await self._get_owned(db, user, template_id)
        validate_mode(data.mode)

        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            # nom, etablissement and mode are NOT NULL
            if field in ("nom", "etablissement", "mode") and not value:
                continue
            setattr(template, field, value)
        await db.flush()
        return MissionTemplateResponse(template=MissionTemplateOut.model_validate(template))

    async def delete_template(
        self, db: AsyncSession, user: AuthUser, template_id: int
    ) -> SuccessResponse:
        template = await self._get_owned(db, user, template_id)
        await db.delete(template)
        await db.flush()
        logger.info("Mission template %s deleted", template_id)
        return SuccessResponse()


template_service = TemplateService()
