"""
ExtraBeam Backend - CV Routes
=============================

What:  The freelancer CV attached to an entreprise: header profile,
       skills, experiences and education. Reading is public; writing
       requires ownership of the entreprise.
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from extrabeam.database import get_db_session
from extrabeam.dependencies import get_current_user
from extrabeam.schemas.auth import AuthUser
from extrabeam.schemas.common import ErrorResponse, MessageResponse
from extrabeam.schemas.cv import (
    CvProfileIn,
    CvProfileResponse,
    CvResponse,
    EducationIn,
    EducationListResponse,
    ExperienceIn,
    ExperienceListResponse,
    SkillCreate,
    SkillListResponse,
)
from extrabeam.services.cv_service import cv_service

router = APIRouter(prefix="/api/entreprises/{ref}/cv", tags=["CV"])

_OWNER_ONLY = {
    401: {"description": "Not authenticated", "model": ErrorResponse},
    403: {"description": "Not the owner", "model": ErrorResponse},
    404: {"description": "Entreprise or entry not found", "model": ErrorResponse},
}
_REQUIRED_TITLE = {400: {"description": "Missing title", "model": ErrorResponse}}


@router.get("", response_model=CvResponse, summary="Full CV of an entreprise")
async def get_cv(ref: str, db: AsyncSession = Depends(get_db_session)) -> CvResponse:
    return await cv_service.get_cv(db, ref)


# ── Profile ───────────────────────────────────────────────────────────────


@router.get("/profile", response_model=CvProfileResponse, summary="CV header")
async def get_profile(ref: str, db: AsyncSession = Depends(get_db_session)) -> CvProfileResponse:
    return await cv_service.get_profile(db, ref)


@router.put(
    "/profile",
    response_model=CvProfileResponse,
    responses={201: {"description": "Profile created"}, **_OWNER_ONLY},
    summary="Create or replace the CV header",
)
async def put_profile(
    ref: str,
    body: CvProfileIn,
    response: Response,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CvProfileResponse:
    result, created = await cv_service.upsert_profile(db, user, ref, body)
    if created:
        response.status_code = 201
    return result


# ── Skills ────────────────────────────────────────────────────────────────


@router.get("/skills", response_model=SkillListResponse, summary="Skills")
async def list_skills(ref: str, db: AsyncSession = Depends(get_db_session)) -> SkillListResponse:
    return await cv_service.list_skills(db, ref)


@router.post(
    "/skills",
    status_code=201,
    response_model=SkillListResponse,
    responses={400: {"description": "No usable skill name", "model": ErrorResponse}, **_OWNER_ONLY},
    summary="Add one skill (name) or several (names)",
)
async def add_skills(
    ref: str,
    body: SkillCreate,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> SkillListResponse:
    return await cv_service.add_skills(db, user, ref, body)


@router.delete("/skills/{skill_id}", response_model=MessageResponse, responses=_OWNER_ONLY)
async def delete_skill(
    ref: str,
    skill_id: int,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await cv_service.delete_skill(db, user, ref, skill_id)


# ── Experiences ───────────────────────────────────────────────────────────


@router.get("/experiences", response_model=ExperienceListResponse, summary="Experiences")
async def list_experiences(
    ref: str, db: AsyncSession = Depends(get_db_session)
) -> ExperienceListResponse:
    return await cv_service.list_experiences(db, ref)


@router.post(
    "/experiences",
    status_code=201,
    response_model=ExperienceListResponse,
    responses={**_REQUIRED_TITLE, **_OWNER_ONLY},
)
async def add_experience(
    ref: str,
    body: ExperienceIn,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ExperienceListResponse:
    return await cv_service.add_experience(db, user, ref, body)


@router.put(
    "/experiences/{experience_id}",
    response_model=MessageResponse,
    responses=_OWNER_ONLY,
    description="A current position (is_current) never keeps an end date.",
)
async def update_experience(
    ref: str,
    experience_id: int,
    body: ExperienceIn,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await cv_service.update_experience(db, user, ref, experience_id, body)


@router.delete("/experiences/{experience_id}", response_model=MessageResponse, responses=_OWNER_ONLY)
async def delete_experience(
    ref: str,
    experience_id: int,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await cv_service.delete_experience(db, user, ref, experience_id)


# ── Education ─────────────────────────────────────────────────────────────


@router.get("/education", response_model=EducationListResponse, summary="Education")
async def list_education(
    ref: str, db: AsyncSession = Depends(get_db_session)
) -> EducationListResponse:
    return await cv_service.list_education(db, ref)


@router.post(
    "/education",
    status_code=201,
    response_model=EducationListResponse,
    responses={**_REQUIRED_TITLE, **_OWNER_ONLY},
)
async def add_education(
    ref: str,
    body: EducationIn,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> EducationListResponse:
    return await cv_service.add_education(db, user, ref, body)


@router.delete("/education/{education_id}", response_model=MessageResponse, responses=_OWNER_ONLY)
async def delete_education(
    ref: str,
    education_id: int,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await cv_service.delete_education(db, user, ref, education_id)
