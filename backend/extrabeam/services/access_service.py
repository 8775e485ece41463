"""
ExtraBeam Backend - Entreprise Access Rules
===========================================

What:  Resolves an "entreprise reference" and decides who may manage it.
Why:   Every entreprise-scoped endpoint (missions, factures, slots, CV,
       clients) accepts the same kind of reference and applies the same
       ownership rule. Keeping both here makes them impossible to drift.

Reference formats accepted everywhere:
    "42"                                     → entreprise.id
    "5f0c...-...-..." (UUID)                 → entreprise.user_id (owner)
    "jeanne-dupont"                          → entreprise.slug
    missing                                  → caller's slug, then caller's id

Ownership: admins may manage every entreprise; anyone else only the ones
whose user_id is their own id.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from extrabeam.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from extrabeam.models.entreprise import Entreprise
from extrabeam.schemas.auth import AuthUser

logger = logging.getLogger(__name__)


def parse_uuid(value: Optional[str]) -> Optional[uuid.UUID]:
    """UUID for a well-formed string, None otherwise."""
    if not value:
        return None
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


class AccessService:

    def resolve_entreprise_ref(
        self, user: Optional[AuthUser], ref: Optional[str]
    ) -> Optional[str]:
        if ref is not None and ref.strip():
            return ref.strip()
        if user is None:
            return None
        return user.slug or user.id

    async def find_entreprise(self, db: AsyncSession, ref: str) -> Entreprise:
        """
        Look up an entreprise by id, owner UUID or slug.

        Raises:
            NotFoundError("Entreprise non trouvée") when nothing matches.
        """
        ref = ref.strip()
        owner_id = parse_uuid(ref)
        if ref.isdigit():
            stmt = select(Entreprise).where(Entreprise.id == int(ref))
        elif owner_id is not None:
            stmt = (
                select(Entreprise)
                .where(Entreprise.user_id == owner_id)
                .order_by(Entreprise.created_at)
                .limit(1)
            )
        else:
            stmt = select(Entreprise).where(Entreprise.slug == ref)

        result = await db.execute(stmt)
        entreprise = result.scalars().first()
        if entreprise is None:
            raise NotFoundError(
                resource="entreprise",
                resource_id=ref,
                message="Entreprise non trouvée",
            )
        return entreprise

    def can_access_entreprise(
        self, user: Optional[AuthUser], entreprise: Optional[Entreprise]
    ) -> bool:
        if user is None or entreprise is None:
            return False
        if user.is_admin:
            return True
        return entreprise.user_id is not None and str(entreprise.user_id) == user.id

    def ensure_access(
        self,
        user: Optional[AuthUser],
        entreprise: Entreprise,
        message: str = "Accès interdit",
    ) -> None:
        if not self.can_access_entreprise(user, entreprise):
            logger.info(
                "Access denied to entreprise %s for user %s",
                entreprise.id,
                user.id if user else "anonymous",
            )
            raise PermissionDeniedError(message=message)

    async def load_entreprise_for_user(
        self,
        db: AsyncSession,
        user: AuthUser,
        ref: Optional[str],
        message: str = "Accès interdit à l'entreprise",
    ) -> Entreprise:
        """Resolve the reference, load the entreprise and require ownership."""
        resolved = self.resolve_entreprise_ref(user, ref)
        if not resolved:
            raise ValidationError(
                message="Référence entreprise manquante",
                field="entrepriseRef",
            )
        entreprise = await self.find_entreprise(db, resolved)
        self.ensure_access(user, entreprise, message=message)
        return entreprise


access_service = AccessService()
