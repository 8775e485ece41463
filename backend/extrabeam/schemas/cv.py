"""
ExtraBeam Backend - CV Schemas
==============================
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel

from extrabeam.schemas.entreprise import EntreprisePublic


class CvProfileIn(BaseModel):
    job_title: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    photo_url: Optional[str] = None


class CvProfileOut(CvProfileIn):
    id: int
    entreprise_id: int
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CvProfileResponse(BaseModel):
    profile: Optional[CvProfileOut] = None


class SkillCreate(BaseModel):
    name: Optional[str] = None
    names: Optional[List[str]] = None


class SkillOut(BaseModel):
    id: int
    entreprise_id: int
    name: str

    model_config = {"from_attributes": True}


class SkillListResponse(BaseModel):
    skills: List[SkillOut]


class ExperienceIn(BaseModel):
    title: Optional[str] = None
    company: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_current: Optional[bool] = None
    description: Optional[str] = None


class ExperienceOut(BaseModel):
    id: int
    entreprise_id: int
    title: str
    company: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_current: bool = False
    description: Optional[str] = None

    model_config = {"from_attributes": True}


class ExperienceListResponse(BaseModel):
    experiences: List[ExperienceOut]


class EducationIn(BaseModel):
    title: Optional[str] = None
    school: Optional[str] = None
    year: Optional[int] = None


class EducationOut(BaseModel):
    id: int
    entreprise_id: int
    title: str
    school: Optional[str] = None
    year: Optional[int] = None

    model_config = {"from_attributes": True}


class EducationListResponse(BaseModel):
    education: List[EducationOut]


class CvResponse(BaseModel):
    entreprise: EntreprisePublic
    profile: Optional[CvProfileOut] = None
    skills: List[SkillOut]
    experiences: List[ExperienceOut]
    education: List[EducationOut]
