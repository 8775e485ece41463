"""
ExtraBeam Backend - Client Contact Schemas
==========================================
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from extrabeam.schemas.entreprise import EntreprisePublic
from extrabeam.schemas.mission import ClientProfileOut


class AttachClientRequest(BaseModel):
    client_id: Optional[uuid.UUID] = None


class ContactCreate(BaseModel):
    entreprise_id: Optional[int] = None


class ContactOut(BaseModel):
    id: int
    client_id: uuid.UUID
    entreprise_id: int
    created_at: datetime
    client: Optional[ClientProfileOut] = None
    entreprise: Optional[EntreprisePublic] = None

    model_config = {"from_attributes": True}


class ContactListResponse(BaseModel):
    contacts: List[ContactOut]


class ContactResponse(BaseModel):
    contact: ContactOut


class AttachedResponse(BaseModel):
    attached: bool = True


class DetachedResponse(BaseModel):
    detached: bool = True
