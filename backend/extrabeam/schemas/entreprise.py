"""
ExtraBeam Backend - Entreprise Schemas
======================================

Two views of the same row:
    EntreprisePublic   what visitors see on the public page and in listings
    EntreprisePrivate  the public view plus legal, banking and billing
                       defaults, returned only to the owner or an admin
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class EntreprisePublic(BaseModel):
    id: int
    slug: str
    nom: str
    prenom: str
    adresse_ligne1: Optional[str] = None
    adresse_ligne2: Optional[str] = None
    ville: Optional[str] = None
    code_postal: Optional[str] = None
    pays: Optional[str] = None
    email: Optional[str] = None
    telephone: Optional[str] = None
    taux_horaire: Optional[float] = None
    devise: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class EntrepriseWithStripe(EntreprisePublic):
    stripe_account_id: Optional[str] = None


class EntreprisePrivate(EntrepriseWithStripe):
    siret: Optional[str] = None
    statut_juridique: Optional[str] = None
    tva_intracom: Optional[str] = None
    mention_tva: Optional[str] = None
    iban: Optional[str] = None
    bic: Optional[str] = None
    conditions_paiement: Optional[str] = None
    penalites_retard: Optional[str] = None
    updated_at: Optional[datetime] = None


class EntrepriseUpdate(BaseModel):
    """Partial update; omitted fields are left untouched."""
    slug: Optional[str] = Field(default=None, min_length=1, max_length=160)
    nom: Optional[str] = None
    prenom: Optional[str] = None
    adresse_ligne1: Optional[str] = None
    adresse_ligne2: Optional[str] = None
    ville: Optional[str] = None
    code_postal: Optional[str] = None
    pays: Optional[str] = None
    email: Optional[str] = None
    telephone: Optional[str] = None
    siret: Optional[str] = None
    statut_juridique: Optional[str] = None
    tva_intracom: Optional[str] = None
    mention_tva: Optional[str] = None
    iban: Optional[str] = None
    bic: Optional[str] = None
    taux_horaire: Optional[float] = Field(default=None, ge=0)
    devise: Optional[str] = Field(default=None, min_length=3, max_length=3)
    conditions_paiement: Optional[str] = None
    penalites_retard: Optional[str] = None


class EntrepriseListResponse(BaseModel):
    entreprises: List[EntreprisePublic]


class EntreprisePublicResponse(BaseModel):
    entreprise: EntreprisePublic


class EntrepriseDetailResponse(BaseModel):
    """Owners receive every EntreprisePrivate field; others only the public ones."""
    entreprise: EntreprisePrivate


class EntreprisePrivateResponse(BaseModel):
    entreprise: EntreprisePrivate


class ConnectStripeResponse(BaseModel):
    url: str = Field(description="Stripe Connect onboarding URL")
