"""
ExtraBeam Backend - Facture (Invoice) Service
=============================================

What:  Listing, creation and updates of invoices, and the explicit "send"
       action.
Who:   /api/factures routes. Entreprise roles manage the invoices of the
       entreprises they own; a client may read the invoices of their own
       missions.

Amounts for an invoice tied to a mission:
    hours        sum of the mission's slot durations (inverted slots count 0)
    rate         entreprise.taux_horaire
    montant_ht   hours × rate
    tva          body value, default 0
    montant_ttc  montant_ht + tva when tva > 0, otherwise body value or HT
"""

import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from extrabeam.exceptions import (
    DatabaseError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from extrabeam.models.entreprise import Entreprise
from extrabeam.models.facture import FACTURE_STATUSES, Facture
from extrabeam.models.mission import Mission, Slot
from extrabeam.schemas.auth import AuthUser
from extrabeam.schemas.common import SentResponse
from extrabeam.schemas.facture import (
    FactureCreate,
    FactureFields,
    FactureListResponse,
    FactureOut,
    FactureResponse,
    FactureUpdate,
)
from extrabeam.services.access_service import access_service
from extrabeam.services.mission_service import mission_service
from extrabeam.services.notification_service import notification_service
from extrabeam.services.payment_service import payment_service

logger = logging.getLogger(__name__)

DUPLICATE_NUMERO_MESSAGE = "Numéro de facture déjà utilisé"

# NOT NULL columns: an explicit null in an update leaves them unchanged
REQUIRED_FIELDS = ("numero", "status", "date_emission", "montant_ht", "montant_ttc", "tva")


def compute_from_slots(slots: Iterable[Slot], rate: Optional[float]) -> Dict[str, float]:
    hours = sum(slot.duration_hours for slot in slots)
    rate = rate or 0.0
    montant_ht = hours * rate
    return {"hours": hours, "rate": rate, "montant_ht": montant_ht, "montant_ttc": montant_ht}


def validate_facture_status(status: Optional[str]) -> None:
    if status and status not in FACTURE_STATUSES:
        raise ValidationError(message="Statut facture invalide", field="status")


class FactureService:

    async def _load(self, db: AsyncSession, facture_id: int) -> Optional[Facture]:
        result = await db.execute(
            select(Facture)
            .where(Facture.id == facture_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _get(self, db: AsyncSession, facture_id: int) -> Facture:
        facture = await self._load(db, facture_id)
        if facture is None:
            raise NotFoundError(
                resource="facture", resource_id=str(facture_id), message="Facture introuvable"
            )
        return facture

    def _assert_entreprise_role(self, user: AuthUser) -> None:
        if not user.is_entreprise:
            raise PermissionDeniedError(message="Accès réservé aux entreprises")

    async def _numero_taken(
        self, db: AsyncSession, numero: str, exclude_id: Optional[int] = None
    ) -> bool:
        stmt = select(Facture.id).where(Facture.numero == numero)
        if exclude_id is not None:
            stmt = stmt.where(Facture.id != exclude_id)
        result = await db.execute(stmt)
        return result.first() is not None

    async def _flush_unique(self, db: AsyncSession) -> None:
        try:
            await db.flush()
        except IntegrityError as e:
            logger.warning("Invoice write rejected by a constraint: %s", e.orig)
            if "numero" in str(e.orig).lower():
                raise ValidationError(message=DUPLICATE_NUMERO_MESSAGE, field="numero")
            raise DatabaseError(context={"constraint": str(e.orig)})

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_factures(
        self, db: AsyncSession, user: AuthUser, entreprise_ref: Optional[str] = None
    ) -> FactureListResponse:
        self._assert_entreprise_role(user)
        entreprise = await access_service.load_entreprise_for_user(db, user, entreprise_ref)
        return FactureListResponse(factures=await self.factures_for_entreprise(db, entreprise))

    async def factures_for_entreprise(
        self, db: AsyncSession, entreprise: Entreprise
    ) -> List[FactureOut]:
        result = await db.execute(
            select(Facture)
            .where(Facture.entreprise_id == entreprise.id)
            .order_by(Facture.date_emission.desc(), Facture.id.desc())
        )
        return [FactureOut.model_validate(f) for f in result.scalars().all()]

    async def get_facture(self, db: AsyncSession, user: AuthUser, facture_id: int) -> FactureResponse:
        facture = await self._get(db, facture_id)

        if user.is_entreprise:
            entreprise = await db.get(Entreprise, facture.entreprise_id)
            access_service.ensure_access(user, entreprise)
        elif user.role == "client":
            mission = facture.mission
            if mission is None or mission.client_id is None or str(mission.client_id) != user.id:
                raise PermissionDeniedError(message="Facture inaccessible")
        else:
            raise PermissionDeniedError(message="Rôle non autorisé")

        return FactureResponse(facture=FactureOut.model_validate(facture))

    # ── Writes ────────────────────────────────────────────────────────────

    async def create_facture(
        self, db: AsyncSession, user: AuthUser, data: FactureCreate
    ) -> FactureResponse:
        """
        Create an invoice for an entreprise the caller owns.

        Raises:
            ValidationError: duplicate numero, unknown status, foreign mission,
                             or TTC <= 0 when a payment link is requested
            PaymentServiceError: Stripe failure while creating the link
        """
        self._assert_entreprise_role(user)
        validate_facture_status(data.status)

        ref = data.entreprise_ref or (
            str(data.entreprise_id) if data.entreprise_id is not None else None
        )
        entreprise = await access_service.load_entreprise_for_user(db, user, ref)

        if await self._numero_taken(db, data.numero):
            raise ValidationError(message=DUPLICATE_NUMERO_MESSAGE, field="numero")

        fields = data.model_dump(include=set(FactureFields.model_fields), exclude_none=True)
        if data.mission_id is not None:
            mission = await db.get(Mission, data.mission_id)
            if mission is None or mission.entreprise_id != entreprise.id:
                raise ValidationError(message="Mission invalide", field="mission_id")

            computed = compute_from_slots(mission.slots, entreprise.taux_horaire)
            fields["hours"] = computed["hours"]
            fields["rate"] = computed["rate"]
            fields["montant_ht"] = computed["montant_ht"]
            fields.setdefault("montant_ttc", computed["montant_ttc"])
            fields.setdefault("tva", 0.0)
            if fields["tva"] > 0:
                fields["montant_ttc"] = computed["montant_ht"] + fields["tva"]

        fields.setdefault("mention_tva", entreprise.mention_tva)
        fields.setdefault("conditions_paiement", entreprise.conditions_paiement)
        fields.setdefault("penalites_retard", entreprise.penalites_retard)

        facture = Facture(
            **fields,
            numero=data.numero,
            entreprise_id=entreprise.id,
            mission_id=data.mission_id,
            status=data.status or "pending_payment",
        )
        db.add(facture)
        await self._flush_unique(db)
        logger.info("Facture %s (%s) created for entreprise %s", facture.id, facture.numero, entreprise.id)

        facture = await self._load(db, facture.id)
        if data.generate_payment_link:
            # The checkout sends the invoice e-mail with its payment link
            await payment_service.start_checkout(db, facture, entreprise)
            facture = await self._load(db, facture.id)
        else:
            await notification_service.facture_created(facture, entreprise)

        return FactureResponse(facture=FactureOut.model_validate(facture))

    async def update_facture(
        self, db: AsyncSession, user: AuthUser, facture_id: int, data: FactureUpdate
    ) -> FactureResponse:
        """Partial update; moving to "paid" also settles the linked mission."""
        facture = await self._get(db, facture_id)
        if not user.is_entreprise:
            raise PermissionDeniedError(message="Accès réservé au propriétaire")
        entreprise = await db.get(Entreprise, facture.entreprise_id)
        access_service.ensure_access(user, entreprise)
        validate_facture_status(data.status)

        changes = data.model_dump(exclude_unset=True)
        if changes.get("numero") and await self._numero_taken(db, changes["numero"], facture.id):
            raise ValidationError(message=DUPLICATE_NUMERO_MESSAGE, field="numero")

        previous_status = facture.status
        for field, value in changes.items():
            if field in REQUIRED_FIELDS and value in (None, ""):
                continue
            setattr(facture, field, value)
        await self._flush_unique(db)

        if facture.status == "paid":
            await mission_service.mark_paid(db, facture.mission_id)

        facture = await self._load(db, facture_id)
        if facture.status != previous_status:
            logger.info("Facture %s status %s → %s", facture_id, previous_status, facture.status)
            await notification_service.billing_status_changed(entreprise, facture)
        return FactureResponse(facture=FactureOut.model_validate(facture))

    async def send_facture(self, db: AsyncSession, user: AuthUser, facture_id: int) -> SentResponse:
        await notification_service.send_facture_sent(db, user, facture_id)
        return SentResponse()


facture_service = FactureService()
