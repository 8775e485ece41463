"""
ExtraBeam Backend - Facture and Payment Schemas
===============================================
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class FactureFields(BaseModel):
    client_name: Optional[str] = None
    client_address_ligne1: Optional[str] = None
    client_address_ligne2: Optional[str] = None
    client_code_postal: Optional[str] = None
    client_ville: Optional[str] = None
    client_pays: Optional[str] = None
    contact_email: Optional[str] = None
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    date_emission: Optional[date] = None
    description: Optional[str] = None
    hours: Optional[float] = Field(default=None, ge=0)
    rate: Optional[float] = Field(default=None, ge=0)
    montant_ht: Optional[float] = Field(default=None, ge=0)
    montant_ttc: Optional[float] = Field(default=None, ge=0)
    tva: Optional[float] = Field(default=None, ge=0)
    mention_tva: Optional[str] = None
    conditions_paiement: Optional[str] = None
    penalites_retard: Optional[str] = None
    url: Optional[str] = None


class FactureCreate(FactureFields):
    """
    When mission_id is given, hours, rate and montant_ht are computed from
    the mission's slots and the entreprise hourly rate, overriding the body.
    """
    numero: str = Field(min_length=1, max_length=64)
    entreprise_id: Optional[int] = None
    entreprise_ref: Optional[str] = Field(default=None, alias="entrepriseRef")
    mission_id: Optional[int] = None
    status: Optional[str] = None
    generate_payment_link: bool = Field(default=False, alias="generatePaymentLink")

    model_config = {"populate_by_name": True}


class FactureUpdate(FactureFields):
    numero: Optional[str] = Field(default=None, min_length=1, max_length=64)
    status: Optional[str] = None
    payment_link: Optional[str] = None


class FactureOut(BaseModel):
    id: int
    numero: str
    entreprise_id: int
    mission_id: Optional[int] = None
    client_name: Optional[str] = None
    client_address_ligne1: Optional[str] = None
    client_address_ligne2: Optional[str] = None
    client_code_postal: Optional[str] = None
    client_ville: Optional[str] = None
    client_pays: Optional[str] = None
    contact_email: Optional[str] = None
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    date_emission: date
    description: Optional[str] = None
    hours: Optional[float] = None
    rate: Optional[float] = None
    montant_ht: float
    montant_ttc: float
    tva: float
    mention_tva: Optional[str] = None
    conditions_paiement: Optional[str] = None
    penalites_retard: Optional[str] = None
    payment_link: Optional[str] = None
    status: str
    stripe_session_id: Optional[str] = None
    stripe_payment_intent: Optional[str] = None
    url: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class FactureResponse(BaseModel):
    facture: FactureOut


class FactureListResponse(BaseModel):
    factures: List[FactureOut]


class CheckoutSessionResponse(BaseModel):
    url: str = Field(description="Stripe-hosted checkout page")
    session_id: str = Field(alias="sessionId")
    payment_intent: Optional[str] = Field(default=None, alias="paymentIntent")

    model_config = {"populate_by_name": True}


class WebhookResponse(BaseModel):
    received: bool = True
