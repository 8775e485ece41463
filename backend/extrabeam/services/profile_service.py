"""
ExtraBeam Backend - Profile Service
===================================

What:  Reads and updates the caller's own profile (/api/profiles/me).
How:   Updating the role also provisions the role's companion row: an
       entreprise for freelancers, a `clients` row for clients.
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from extrabeam.exceptions import PermissionDeniedError, ValidationError
from extrabeam.models.account import Client, Profile
from extrabeam.models.entreprise import Entreprise
from extrabeam.schemas.auth import (
    REGISTRABLE_ROLES,
    AuthUser,
    ProfileOut,
    ProfileResponse,
    ProfileUpdate,
)
from extrabeam.services.access_service import parse_uuid
from extrabeam.services.auth_service import find_owned_entreprise, unique_slug

logger = logging.getLogger(__name__)

PLACEHOLDER_ADDRESS = "à compléter"


class ProfileService:

    def _profile_id(self, user: AuthUser) -> uuid.UUID:
        profile_id = parse_uuid(user.id)
        if profile_id is None:
            # The back-office admin token has no profile row
            raise PermissionDeniedError(message="Aucun profil associé à ce compte")
        return profile_id

    async def get_me(self, db: AsyncSession, user: AuthUser) -> ProfileResponse:
        profile_id = self._profile_id(user)
        profile = await db.get(Profile, profile_id)

        slug = None
        entreprise = await find_owned_entreprise(db, profile_id)
        if entreprise is not None:
            slug = entreprise.slug

        if profile is None:
            return ProfileResponse(
                profile=ProfileOut(id=user.id, email=user.email, role=user.role, slug=slug)
            )
        return ProfileResponse(
            profile=ProfileOut(
                id=str(profile.id),
                email=profile.email,
                role=profile.role,
                first_name=profile.first_name,
                last_name=profile.last_name,
                phone=profile.phone,
                slug=slug,
                created_at=profile.created_at,
            )
        )

    async def update_me(
        self, db: AsyncSession, user: AuthUser, data: ProfileUpdate
    ) -> ProfileResponse:
        """
        Upsert the caller's profile and provision the role's companion row.

        Raises:
            ValidationError("Le champ 'role' est obligatoire") when role is missing,
            ValidationError("Rôle invalide") for anything but freelance or client.
        """
        if not data.role:
            raise ValidationError(message="Le champ 'role' est obligatoire", field="role")
        if data.role not in REGISTRABLE_ROLES:
            raise ValidationError(message="Rôle invalide", field="role")

        profile_id = self._profile_id(user)
        profile = await db.get(Profile, profile_id)
        if profile is None:
            profile = Profile(id=profile_id, email=user.email)
            db.add(profile)

        profile.role = data.role
        for field in ("first_name", "last_name", "phone"):
            value = getattr(data, field)
            if value is not None:
                setattr(profile, field, value)
        await db.flush()

        if data.role == "freelance":
            await self._ensure_entreprise(db, profile)
        elif data.role == "client":
            if await db.get(Client, profile_id) is None:
                db.add(Client(id=profile_id))
                await db.flush()
                logger.info("Client row created for %s", profile_id)

        return await self.get_me(db, user)

    async def _ensure_entreprise(self, db: AsyncSession, profile: Profile) -> None:
        existing = await db.execute(select(Entreprise.id).where(Entreprise.user_id == profile.id))
        if existing.first() is not None:
            return

        prenom = profile.first_name or "extra"
        nom = profile.last_name or "user"
        entreprise = Entreprise(
            user_id=profile.id,
            slug=await unique_slug(db, f"{prenom}-{nom}"),
            nom=nom,
            prenom=prenom,
            adresse_ligne1=PLACEHOLDER_ADDRESS,
            email=profile.email,
        )
        db.add(entreprise)
        await db.flush()
        logger.info("Entreprise %s created for freelance profile %s", entreprise.slug, profile.id)


profile_service = ProfileService()
