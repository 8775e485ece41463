"""
ExtraBeam Backend - Mission Schemas
===================================

What:  API contract for missions and mission templates.
How:   MissionOut embeds the mission's slots, the public view of its
       entreprise and the client's profile, so calendar and dashboard views
       need a single request.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from extrabeam.schemas.entreprise import EntreprisePublic
from extrabeam.schemas.slot import SlotIn, SlotOut


class ClientProfileOut(BaseModel):
    id: uuid.UUID
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None

    model_config = {"from_attributes": True}


class MissionFields(BaseModel):
    """Editable mission fields shared by create and update payloads."""
    contact_email: Optional[str] = None
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    devis_url: Optional[str] = None
    etablissement: Optional[str] = None
    etablissement_adresse_ligne1: Optional[str] = None
    etablissement_adresse_ligne2: Optional[str] = None
    etablissement_code_postal: Optional[str] = None
    etablissement_ville: Optional[str] = None
    etablissement_pays: Optional[str] = None
    instructions: Optional[str] = None
    mode: Optional[str] = Field(default=None, description="freelance | salarié")
    status: Optional[str] = None


class MissionCreate(MissionFields):
    entreprise_ref: Optional[str] = Field(default=None, alias="entrepriseRef")
    entreprise_id: Optional[int] = None
    client_id: Optional[uuid.UUID] = None
    slots: List[SlotIn] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class MissionUpdate(MissionFields):
    # None leaves slots untouched; a list (even empty) replaces them
    slots: Optional[List[SlotIn]] = None


class MissionStatusUpdate(BaseModel):
    status: str


class MissionOut(BaseModel):
    id: int
    client_id: Optional[uuid.UUID] = None
    entreprise_id: Optional[int] = None
    freelance_id: Optional[uuid.UUID] = None
    contact_email: Optional[str] = None
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    devis_url: Optional[str] = None
    etablissement: Optional[str] = None
    etablissement_adresse_ligne1: Optional[str] = None
    etablissement_adresse_ligne2: Optional[str] = None
    etablissement_code_postal: Optional[str] = None
    etablissement_ville: Optional[str] = None
    etablissement_pays: Optional[str] = None
    instructions: Optional[str] = None
    mode: str
    status: str
    created_at: datetime
    slots: List[SlotOut] = Field(default_factory=list)
    entreprise: Optional[EntreprisePublic] = None
    client: Optional[ClientProfileOut] = None

    model_config = {"from_attributes": True}


class MissionResponse(BaseModel):
    mission: MissionOut


class MissionListResponse(BaseModel):
    missions: List[MissionOut]


# ══════════════════════════════════════════════════════════════════════════
# Mission templates
# ══════════════════════════════════════════════════════════════════════════

class MissionTemplateFields(BaseModel):
    etablissement_adresse_ligne1: Optional[str] = None
    etablissement_adresse_ligne2: Optional[str] = None
    etablissement_code_postal: Optional[str] = None
    etablissement_ville: Optional[str] = None
    etablissement_pays: Optional[str] = None
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    instructions: Optional[str] = None
    mode: Optional[str] = None


class MissionTemplateCreate(MissionTemplateFields):
    nom: Optional[str] = None
    etablissement: Optional[str] = None


class MissionTemplateUpdate(MissionTemplateCreate):
    pass


class MissionTemplateOut(MissionTemplateFields):
    id: int
    client_id: uuid.UUID
    nom: str
    etablissement: str
    mode: str
    created_at: datetime

    model_config = {"from_attributes": True}


class MissionTemplateResponse(BaseModel):
    template: MissionTemplateOut


class MissionTemplateListResponse(BaseModel):
    templates: List[MissionTemplateOut]
