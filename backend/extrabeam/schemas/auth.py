"""
ExtraBeam Backend - Authentication Schemas
==========================================

Request/response bodies for /api/auth/*, /api/login and /api/profiles/me,
plus AuthUser: the caller identity injected into route handlers.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from extrabeam.schemas.entreprise import EntreprisePrivate

ENTREPRISE_ROLES = ("freelance", "entreprise", "admin")
REGISTRABLE_ROLES = ("freelance", "client")


class AuthUser(BaseModel):
    """
    The authenticated caller.

    id is the profile UUID as a string, or "admin" for the back-office
    token. slug is the owned entreprise's slug for freelance accounts.
    """
    id: str
    email: Optional[str] = None
    role: str = "client"
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    slug: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_entreprise(self) -> bool:
        return self.role in ENTREPRISE_ROLES


# ══════════════════════════════════════════════════════════════════════════
# Login / Register
# ══════════════════════════════════════════════════════════════════════════

class LoginRequest(BaseModel):
    # Optional so the service can answer with its own 400 message
    email: Optional[str] = None
    password: Optional[str] = None


class LoginUser(BaseModel):
    id: str
    email: Optional[str] = None
    role: str
    slug: Optional[str] = None
    nom: Optional[str] = None
    prenom: Optional[str] = None


class LoginResponse(BaseModel):
    token: str = Field(description="Bearer token for the Authorization header")
    user: LoginUser


class RegisterEntreprise(BaseModel):
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
    devise: Optional[str] = None
    conditions_paiement: Optional[str] = None
    penalites_retard: Optional[str] = None


class RegisterRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    entreprise: Optional[RegisterEntreprise] = None


class RegisteredUser(BaseModel):
    id: str
    email: str
    role: str
    slug: Optional[str] = None


class RegisteredProfile(BaseModel):
    id: str
    role: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class RegisterResponse(BaseModel):
    user: RegisteredUser
    profile: RegisteredProfile
    entreprise: Optional[EntreprisePrivate] = None


class MeResponse(BaseModel):
    user: AuthUser


class AdminLoginRequest(BaseModel):
    password: Optional[str] = None


class TokenResponse(BaseModel):
    token: str


# ══════════════════════════════════════════════════════════════════════════
# Profiles
# ══════════════════════════════════════════════════════════════════════════

class ProfileOut(BaseModel):
    id: str
    email: Optional[str] = None
    role: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    slug: Optional[str] = None
    created_at: Optional[datetime] = None


class ProfileResponse(BaseModel):
    profile: ProfileOut


class ProfileUpdate(BaseModel):
    role: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
