"""
ExtraBeam Backend - Authentication Service
==========================================

What:  Account registration, password login, admin login and token → user
       resolution.
How:   Credentials live in `users` (bcrypt hash), identity in `profiles`.
       Tokens are stateless HS256 JWTs (see extrabeam.security).
Who:   Called by the /api/auth and /api/login routes and by the auth
       dependencies in extrabeam.dependencies.

Registration by role:
    freelance → users + profiles + entreprise (unique slug, billing defaults)
    client    → users + profiles + clients
"""

import hmac
import logging
import re
import unicodedata
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from extrabeam.config import settings
from extrabeam.exceptions import AuthenticationError, ConflictError, ValidationError
from extrabeam.models.account import Client, Profile, UserAccount
from extrabeam.models.entreprise import Entreprise
from extrabeam.schemas.auth import (
    ENTREPRISE_ROLES,
    REGISTRABLE_ROLES,
    AuthUser,
    LoginResponse,
    LoginUser,
    RegisteredProfile,
    RegisteredUser,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
)
from extrabeam.schemas.entreprise import EntreprisePrivate
from extrabeam.security import create_access_token, decode_token, hash_password, verify_password
from extrabeam.services.access_service import parse_uuid

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def slugify(value: str) -> str:
    """
    "Éloïse Martin-Dupré" → "eloise-martin-dupre".

    Accents are stripped (NFD + drop combining marks), anything that is not
    a-z/0-9 becomes a single dash, and leading/trailing dashes are removed.
    """
    normalized = unicodedata.normalize("NFD", value)
    stripped = "".join(ch for ch in normalized if not unicodedata.combining(ch))
    return re.sub(r"[^a-z0-9]+", "-", stripped.lower()).strip("-")


async def unique_slug(db: AsyncSession, base: str) -> str:
    """First free slug among base, base-1, base-2, ..."""
    base = slugify(base) or "entreprise"
    candidate = base
    suffix = 1
    while True:
        result = await db.execute(select(Entreprise.id).where(Entreprise.slug == candidate))
        if result.scalar_one_or_none() is None:
            return candidate
        candidate = f"{base}-{suffix}"
        suffix += 1


async def find_owned_entreprise(db: AsyncSession, user_id) -> Optional[Entreprise]:
    result = await db.execute(
        select(Entreprise)
        .where(Entreprise.user_id == user_id)
        .order_by(Entreprise.created_at)
        .limit(1)
    )
    return result.scalars().first()


class AuthService:

    async def get_user_from_token(self, db: AsyncSession, token: str) -> AuthUser:
        """
        Resolve a bearer token into the caller.

        The profile (when the subject is a UUID) is authoritative for role
        and names; the token's role claim is the fallback, which is how the
        admin token ({sub: "admin", role: "admin"}) resolves.

        Raises:
            AuthenticationError for invalid or expired tokens.
        """
        payload = decode_token(token)
        subject = payload.get("sub")
        if not subject:
            raise AuthenticationError(message="Token invalide")

        user = AuthUser(
            id=str(subject),
            email=payload.get("email"),
            role=payload.get("role") or "client",
        )
        profile_id = parse_uuid(user.id)
        if profile_id is None:
            return user

        profile = await db.get(Profile, profile_id)
        if profile is not None:
            user.role = profile.role or user.role
            user.email = profile.email or user.email
            user.first_name = profile.first_name
            user.last_name = profile.last_name
            user.phone = profile.phone

        if user.role in ENTREPRISE_ROLES:
            entreprise = await find_owned_entreprise(db, profile_id)
            if entreprise is not None:
                user.slug = entreprise.slug
        return user

    async def login(
        self, db: AsyncSession, email: Optional[str], password: Optional[str]
    ) -> LoginResponse:
        if not email or not password:
            raise ValidationError(message="Email et mot de passe requis")

        result = await db.execute(
            select(UserAccount).where(UserAccount.email == email.strip().lower())
        )
        account = result.scalar_one_or_none()
        if account is None or not verify_password(password, account.password_hash):
            logger.info("Failed login attempt for %s", email)
            raise AuthenticationError(message="Email ou mot de passe incorrect")

        profile = await db.get(Profile, account.id)
        role = (profile.role if profile else None) or "client"

        login_user = LoginUser(id=str(account.id), email=account.email, role=role)
        if role in ENTREPRISE_ROLES:
            entreprise = await find_owned_entreprise(db, account.id)
            if entreprise is not None:
                login_user.slug = entreprise.slug
                login_user.nom = entreprise.nom
                login_user.prenom = entreprise.prenom

        token = create_access_token(str(account.id), role=role, email=account.email)
        logger.info("User %s logged in (role=%s)", account.id, role)
        return LoginResponse(token=token, user=login_user)

    async def register(self, db: AsyncSession, data: RegisterRequest) -> RegisterResponse:
        """
        Create an account and its role-specific rows in one transaction.

        Raises:
            ValidationError: missing fields, unknown role, short password,
                             freelance without nom/prenom
            ConflictError:   e-mail already registered
        """
        if not data.email or not data.password or not data.role:
            raise ValidationError(message="Champs obligatoires manquants")
        if data.role not in REGISTRABLE_ROLES:
            raise ValidationError(message="Rôle invalide", field="role")
        if len(data.password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                message=f"Le mot de passe doit contenir au moins {MIN_PASSWORD_LENGTH} caractères",
                field="password",
            )

        ent_data = data.entreprise
        if data.role == "freelance" and (
            ent_data is None or not ent_data.nom or not ent_data.prenom
        ):
            raise ValidationError(message="Nom et prénom requis", field="entreprise")

        email = data.email.strip().lower()
        existing = await db.execute(select(UserAccount.id).where(UserAccount.email == email))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(message="Un compte existe déjà avec cet email")

        account = UserAccount(email=email, password_hash=hash_password(data.password))
        db.add(account)
        await db.flush()

        first_name = data.first_name or (ent_data.prenom if ent_data else None)
        last_name = data.last_name or (ent_data.nom if ent_data else None)
        profile = Profile(
            id=account.id,
            email=email,
            role=data.role,
            first_name=first_name,
            last_name=last_name,
            phone=data.phone,
        )
        db.add(profile)
        await db.flush()

        entreprise = None
        if data.role == "freelance":
            fields = ent_data.model_dump(exclude_none=True)
            fields.setdefault("email", email)
            entreprise = Entreprise(
                user_id=account.id,
                slug=await unique_slug(db, f"{ent_data.prenom}-{ent_data.nom}"),
                **fields,
            )
            db.add(entreprise)
        else:
            db.add(Client(id=account.id))
        await db.flush()

        logger.info("Registered %s account %s", data.role, account.id)
        return RegisterResponse(
            user=RegisteredUser(
                id=str(account.id),
                email=email,
                role=data.role,
                slug=entreprise.slug if entreprise else None,
            ),
            profile=RegisteredProfile(
                id=str(profile.id),
                role=profile.role,
                first_name=profile.first_name,
                last_name=profile.last_name,
            ),
            entreprise=EntreprisePrivate.model_validate(entreprise) if entreprise else None,
        )

    def admin_login(self, password: Optional[str]) -> TokenResponse:
        """Back-office login: compares against ADMIN_SECRET, issues a 1h admin token."""
        if not password:
            raise ValidationError(message="Password required", field="password")
        if not settings.admin_secret or not hmac.compare_digest(
            password.encode(), settings.admin_secret.encode()
        ):
            logger.warning("Rejected admin login attempt")
            raise AuthenticationError(message="Invalid password")

        token = create_access_token(
            "admin",
            role="admin",
            expires_minutes=settings.admin_token_expire_minutes,
        )
        return TokenResponse(token=token)


auth_service = AuthService()
