"""
ExtraBeam Backend - CV Service
==============================

What:  The public CV page of an entreprise: header profile, skills,
       experiences and education.
Who:   /api/entreprises/{ref}/cv/* routes. Reads are public; writes require
       ownership of the entreprise.
"""

import logging
from typing import List, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from extrabeam.database import utcnow
from extrabeam.exceptions import NotFoundError, ValidationError
from extrabeam.models.cv import CvEducation, CvExperience, CvProfile, CvSkill
from extrabeam.models.entreprise import Entreprise
from extrabeam.schemas.auth import AuthUser
from extrabeam.schemas.common import MessageResponse
from extrabeam.schemas.cv import (
    CvProfileIn,
    CvProfileOut,
    CvProfileResponse,
    CvResponse,
    EducationIn,
    EducationListResponse,
    EducationOut,
    ExperienceIn,
    ExperienceListResponse,
    ExperienceOut,
    SkillCreate,
    SkillListResponse,
    SkillOut,
)
from extrabeam.schemas.entreprise import EntreprisePublic
from extrabeam.services.access_service import access_service

logger = logging.getLogger(__name__)


class CvService:

    async def _owned_entreprise(self, db: AsyncSession, user: AuthUser, ref: str) -> Entreprise:
        entreprise = await access_service.find_entreprise(db, ref)
        access_service.ensure_access(user, entreprise)
        return entreprise

    # ── Reads ─────────────────────────────────────────────────────────────

    async def _profile(self, db: AsyncSession, entreprise: Entreprise):
        result = await db.execute(
            select(CvProfile).where(CvProfile.entreprise_id == entreprise.id)
        )
        return result.scalar_one_or_none()

    async def _skills(self, db: AsyncSession, entreprise: Entreprise) -> List[SkillOut]:
        result = await db.execute(
            select(CvSkill).where(CvSkill.entreprise_id == entreprise.id).order_by(CvSkill.id)
        )
        return [SkillOut.model_validate(s) for s in result.scalars().all()]

    async def _experiences(self, db: AsyncSession, entreprise: Entreprise) -> List[ExperienceOut]:
        result = await db.execute(
            select(CvExperience)
            .where(CvExperience.entreprise_id == entreprise.id)
            .order_by(CvExperience.start_date.desc(), CvExperience.id.desc())
        )
        return [ExperienceOut.model_validate(e) for e in result.scalars().all()]

    async def _education(self, db: AsyncSession, entreprise: Entreprise) -> List[EducationOut]:
        result = await db.execute(
            select(CvEducation)
            .where(CvEducation.entreprise_id == entreprise.id)
            .order_by(CvEducation.year.desc(), CvEducation.id.desc())
        )
        return [EducationOut.model_validate(e) for e in result.scalars().all()]

    async def get_cv(self, db: AsyncSession, ref: str) -> CvResponse:
        entreprise = await access_service.find_entreprise(db, ref)
        profile = await self._profile(db, entreprise)
        return CvResponse(
            entreprise=EntreprisePublic.model_validate(entreprise),
            profile=CvProfileOut.model_validate(profile) if profile else None,
            skills=await self._skills(db, entreprise),
            experiences=await self._experiences(db, entreprise),
            education=await self._education(db, entreprise),
        )

    async def get_profile(self, db: AsyncSession, ref: str) -> CvProfileResponse:
        entreprise = await access_service.find_entreprise(db, ref)
        profile = await self._profile(db, entreprise)
        return CvProfileResponse(profile=CvProfileOut.model_validate(profile) if profile else None)

    async def list_skills(self, db: AsyncSession, ref: str) -> SkillListResponse:
        entreprise = await access_service.find_entreprise(db, ref)
        return SkillListResponse(skills=await self._skills(db, entreprise))

    async def list_experiences(self, db: AsyncSession, ref: str) -> ExperienceListResponse:
        entreprise = await access_service.find_entreprise(db, ref)
        return ExperienceListResponse(experiences=await self._experiences(db, entreprise))

    async def list_education(self, db: AsyncSession, ref: str) -> EducationListResponse:
        entreprise = await access_service.find_entreprise(db, ref)
        return EducationListResponse(education=await self._education(db, entreprise))

    # ── Writes ────────────────────────────────────────────────────────────

    async def upsert_profile(
        self, db: AsyncSession, user: AuthUser, ref: str, data: CvProfileIn
    ) -> Tuple[CvProfileResponse, bool]:
        """
        Replace the CV header.

        Returns:
            (response, created) so the route can answer 201 on first write.
        """
        entreprise = await self._owned_entreprise(db, user, ref)
        profile = await self._profile(db, entreprise)
        created = profile is None
        if created:
            profile = CvProfile(entreprise_id=entreprise.id)
            db.add(profile)

        profile.job_title = data.job_title
        profile.location = data.location
        profile.bio = data.bio
        profile.photo_url = data.photo_url
        profile.updated_at = utcnow()
        await db.flush()

        return CvProfileResponse(profile=CvProfileOut.model_validate(profile)), created

    async def add_skills(
        self, db: AsyncSession, user: AuthUser, ref: str, data: SkillCreate
    ) -> SkillListResponse:
        entreprise = await self._owned_entreprise(db, user, ref)

        names = data.names if data.names is not None else ([data.name] if data.name else [])
        # trimmed, blanks dropped, first occurrence wins
        clean = list(dict.fromkeys(n.strip() for n in names if n and n.strip()))
        if not clean:
            raise ValidationError(message="Indiquez 'name' ou 'names[]'", field="names")

        db.add_all(CvSkill(entreprise_id=entreprise.id, name=name) for name in clean)
        await db.flush()
        logger.info("%d skill(s) added to entreprise %s", len(clean), entreprise.id)
        return SkillListResponse(skills=await self._skills(db, entreprise))

    async def delete_skill(
        self, db: AsyncSession, user: AuthUser, ref: str, skill_id: int
    ) -> MessageResponse:
        entreprise = await self._owned_entreprise(db, user, ref)
        skill = await self._get_child(db, CvSkill, entreprise, skill_id, "Compétence introuvable")
        await db.delete(skill)
        await db.flush()
        return MessageResponse(message="Compétence supprimée")

    async def add_experience(
        self, db: AsyncSession, user: AuthUser, ref: str, data: ExperienceIn
    ) -> ExperienceListResponse:
        entreprise = await self._owned_entreprise(db, user, ref)
        if not data.title:
            raise ValidationError(message="Le titre est obligatoire", field="title")

        db.add(
            CvExperience(
                entreprise_id=entreprise.id,
                title=data.title,
                company=data.company,
                start_date=data.start_date,
                end_date=None if data.is_current else data.end_date,
                is_current=bool(data.is_current),
                description=data.description,
            )
        )
        await db.flush()
        return ExperienceListResponse(experiences=await self._experiences(db, entreprise))

    async def update_experience(
        self, db: AsyncSession, user: AuthUser, ref: str, experience_id: int, data: ExperienceIn
    ) -> MessageResponse:
        """Full replacement of the entry; a current position never keeps an end date."""
        entreprise = await self._owned_entreprise(db, user, ref)
        experience = await self._get_child(
            db, CvExperience, entreprise, experience_id, "Expérience introuvable"
        )

        if data.title:
            experience.title = data.title
        experience.company = data.company
        experience.start_date = data.start_date
        experience.is_current = bool(data.is_current)
        experience.end_date = None if data.is_current else data.end_date
        experience.description = data.description
        await db.flush()
        return MessageResponse(message="Expérience mise à jour")

    async def delete_experience(
        self, db: AsyncSession, user: AuthUser, ref: str, experience_id: int
    ) -> MessageResponse:
        entreprise = await self._owned_entreprise(db, user, ref)
        experience = await self._get_child(
            db, CvExperience, entreprise, experience_id, "Expérience introuvable"
        )
        await db.delete(experience)
        await db.flush()
        return MessageResponse(message="Expérience supprimée")

    async def add_education(
        self, db: AsyncSession, user: AuthUser, ref: str, data: EducationIn
    ) -> EducationListResponse:
        entreprise = await self._owned_entreprise(db, user, ref)
        if not data.title:
            raise ValidationError(message="Le titre est obligatoire", field="title")

        db.add(
            CvEducation(
                entreprise_id=entreprise.id,
                title=data.title,
                school=data.school,
                year=data.year,
            )
        )
        await db.flush()
        return EducationListResponse(education=await self._education(db, entreprise))

    async def delete_education(
        self, db: AsyncSession, user: AuthUser, ref: str, education_id: int
    ) -> MessageResponse:
        entreprise = await self._owned_entreprise(db, user, ref)
        education = await self._get_child(
            db, CvEducation, entreprise, education_id, "Formation introuvable"
        )
        await db.delete(education)
        await db.flush()
        return MessageResponse(message="Formation supprimée")

    async def _get_child(self, db: AsyncSession, model, entreprise: Entreprise, item_id: int, message: str):
        result = await db.execute(
            select(model).where(model.id == item_id, model.entreprise_id == entreprise.id)
        )
        item = result.scalar_one_or_none()
        if item is None:
            raise NotFoundError(resource=model.__tablename__, resource_id=str(item_id), message=message)
        return item


cv_service = CvService()
