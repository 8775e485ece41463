"""
ExtraBeam Backend - Entreprise Service
======================================

What:  Public directory and pages of entreprises, owner-side edition and
       deletion, the dashboard overview and Stripe Connect onboarding.

Views of an entreprise row:
    public        EntreprisePublic columns (listings, /public/{slug})
    detail        public + stripe_account_id for everyone; owners and admins
                  also get the legal, banking and billing fields
    overview      owner: entreprise, missions, factures, every slot, rules
                  public: entreprise (public), public slots, rules
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from extrabeam.database import utcnow
from extrabeam.exceptions import ConflictError, NotFoundError, ValidationError
from extrabeam.models.contact import ClientContact
from extrabeam.models.cv import CvEducation, CvExperience, CvProfile, CvSkill
from extrabeam.models.entreprise import Entreprise
from extrabeam.models.facture import Facture
from extrabeam.models.mission import Mission, Slot
from extrabeam.models.unavailability import Unavailability
from extrabeam.schemas.auth import AuthUser
from extrabeam.schemas.common import SuccessResponse
from extrabeam.schemas.entreprise import (
    ConnectStripeResponse,
    EntrepriseListResponse,
    EntreprisePrivate,
    EntreprisePrivateResponse,
    EntreprisePublic,
    EntreprisePublicResponse,
    EntrepriseUpdate,
    EntrepriseWithStripe,
)
from extrabeam.schemas.overview import EntrepriseOverviewResponse
from extrabeam.schemas.unavailability import UnavailabilityOut
from extrabeam.services.access_service import access_service
from extrabeam.services.auth_service import slugify
from extrabeam.services.facture_service import facture_service
from extrabeam.services.mission_service import mission_service
from extrabeam.services.payment_service import payment_service
from extrabeam.services.slot_service import slot_service
from extrabeam.services.unavailability_service import unavailability_service

logger = logging.getLogger(__name__)

# Rows owned by an entreprise, deleted child-first
_OWNED_TABLES = (ClientContact, CvSkill, CvExperience, CvEducation, CvProfile, Unavailability)


class EntrepriseService:

    # ── Public directory ──────────────────────────────────────────────────

    async def list_public(self, db: AsyncSession) -> EntrepriseListResponse:
        result = await db.execute(
            select(Entreprise).order_by(Entreprise.created_at.desc(), Entreprise.id.desc())
        )
        return EntrepriseListResponse(
            entreprises=[EntreprisePublic.model_validate(e) for e in result.scalars().all()]
        )

    async def get_public_by_slug(self, db: AsyncSession, slug: str) -> EntreprisePublicResponse:
        result = await db.execute(select(Entreprise).where(Entreprise.slug == slug))
        entreprise = result.scalar_one_or_none()
        if entreprise is None:
            raise NotFoundError(resource="entreprise", resource_id=slug, message="Entreprise non trouvée")
        return EntreprisePublicResponse(entreprise=EntreprisePublic.model_validate(entreprise))

    def serialize(self, entreprise: Entreprise, owner_view: bool) -> Dict[str, Any]:
        """
        Entreprise body for mixed-audience responses.

        Only the keys of the caller's view are present, so routes rendering
        it with `response_model_exclude_unset` never leak private columns.
        """
        view = EntreprisePrivate if owner_view else EntrepriseWithStripe
        return view.model_validate(entreprise).model_dump()

    async def get_detail(
        self, db: AsyncSession, user: Optional[AuthUser], ref: str
    ) -> Dict[str, Any]:
        entreprise = await access_service.find_entreprise(db, ref)
        owner_view = access_service.can_access_entreprise(user, entreprise)
        return {"entreprise": self.serialize(entreprise, owner_view)}

    # ── Owner side ────────────────────────────────────────────────────────

    async def update(
        self, db: AsyncSession, user: AuthUser, ref: str, data: EntrepriseUpdate
    ) -> EntreprisePrivateResponse:
        """
        Partial update of the entreprise.

        Raises:
            ValidationError when the new slug is empty once normalized.
            ConflictError("Slug déjà utilisé") when another entreprise has it.
        """
        entreprise = await access_service.find_entreprise(db, ref)
        access_service.ensure_access(user, entreprise)

        changes = data.model_dump(exclude_unset=True)
        if "slug" in changes:
            slug = slugify(changes["slug"] or "")
            if not slug:
                raise ValidationError(message="Slug invalide", field="slug")
            taken = await db.execute(
                select(Entreprise.id).where(Entreprise.slug == slug, Entreprise.id != entreprise.id)
            )
            if taken.first() is not None:
                raise ConflictError(message="Slug déjà utilisé", context={"slug": slug})
            changes["slug"] = slug

        for field, value in changes.items():
            if value is None and field not in ("adresse_ligne2", "email", "telephone", "tva_intracom"):
                # required columns keep their current value
                continue
            setattr(entreprise, field, value)
        entreprise.updated_at = utcnow()

        await db.flush()
        logger.info("Entreprise %s updated (%s)", entreprise.id, ", ".join(sorted(changes)))
        return EntreprisePrivateResponse(entreprise=EntreprisePrivate.model_validate(entreprise))

    async def delete(self, db: AsyncSession, user: AuthUser, ref: str) -> SuccessResponse:
        """Delete the entreprise together with every row it owns."""
        entreprise = await access_service.find_entreprise(db, ref)
        access_service.ensure_access(user, entreprise)
        entreprise_id = entreprise.id

        mission_ids = select(Mission.id).where(Mission.entreprise_id == entreprise_id)
        statements = [
            delete(Facture).where(Facture.entreprise_id == entreprise_id),
            delete(Slot).where(
                or_(Slot.entreprise_id == entreprise_id, Slot.mission_id.in_(mission_ids))
            ),
            delete(Mission).where(Mission.entreprise_id == entreprise_id),
        ]
        statements.extend(
            delete(model).where(model.entreprise_id == entreprise_id) for model in _OWNED_TABLES
        )
        for statement in statements:
            await db.execute(statement.execution_options(synchronize_session=False))

        await db.delete(entreprise)
        await db.flush()
        logger.info("Entreprise %s deleted with its owned rows", entreprise_id)
        return SuccessResponse()

    async def overview(
        self, db: AsyncSession, user: Optional[AuthUser], ref: str
    ) -> EntrepriseOverviewResponse:
        entreprise = await access_service.find_entreprise(db, ref)
        owner_view = access_service.can_access_entreprise(user, entreprise)

        slots = await slot_service.calendar_slots(db, entreprise, owner_view)
        unavailabilities = [
            UnavailabilityOut.model_validate(rule)
            for rule in await unavailability_service.rules_for(db, entreprise)
        ]

        if not owner_view:
            return EntrepriseOverviewResponse(
                mode="public",
                entreprise=EntreprisePublic.model_validate(entreprise).model_dump(),
                slots=slots,
                unavailabilities=unavailabilities,
            )
        return EntrepriseOverviewResponse(
            mode="owner",
            entreprise=EntreprisePrivate.model_validate(entreprise),
            missions=await mission_service.missions_for_entreprise(db, entreprise),
            factures=await facture_service.factures_for_entreprise(db, entreprise),
            slots=slots,
            unavailabilities=unavailabilities,
        )

    async def connect_stripe(
        self, db: AsyncSession, user: AuthUser, ref: str
    ) -> ConnectStripeResponse:
        entreprise = await access_service.find_entreprise(db, ref)
        access_service.ensure_access(user, entreprise)
        return await payment_service.create_connect_link(db, entreprise)


entreprise_service = EntrepriseService()
