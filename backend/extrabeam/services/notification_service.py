"""
ExtraBeam Backend - Notification Service
========================================

What:  Decides who receives which templated e-mail, and sends it through
       MailerService.
How:   Every method takes the ORM objects already loaded by the caller.
       Missing recipients are skipped silently.

Delivery modes:
    best effort (default)  Used as a side effect of a business operation
                           (mission created, invoice paid, ...). Delivery
                           errors are logged as warnings and never undo the
                           operation that triggered them.
    strict=True            Used by the explicit "send" endpoints, where the
                           e-mail IS the operation: errors propagate to the
                           caller (503).

Client e-mail resolution:
    mission  → mission.client.email, then mission.contact_email
    facture  → its mission's client e-mail, then facture.contact_email
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from extrabeam.exceptions import ExtraBeamError, NotFoundError, PermissionDeniedError
from extrabeam.models.account import Profile
from extrabeam.models.entreprise import Entreprise
from extrabeam.models.facture import Facture
from extrabeam.models.mission import Mission
from extrabeam.schemas.auth import AuthUser
from extrabeam.services import email_templates
from extrabeam.services.access_service import access_service
from extrabeam.services.email_templates import RenderedEmail
from extrabeam.services.mailer_service import mailer_service

logger = logging.getLogger(__name__)


def client_email_for_mission(mission: Optional[Mission]) -> Optional[str]:
    if mission is None:
        return None
    if mission.client is not None and mission.client.email:
        return mission.client.email
    return mission.contact_email or None


def client_email_for_facture(facture: Facture) -> Optional[str]:
    return client_email_for_mission(facture.mission) or facture.contact_email or None


def display_name(profile: Optional[Profile]) -> Optional[str]:
    if profile is None:
        return None
    name = " ".join(part for part in (profile.first_name, profile.last_name) if part)
    return name or profile.email


class NotificationService:

    async def _deliver(
        self,
        to: Optional[str],
        email: RenderedEmail,
        reply_to: Optional[str] = None,
        strict: bool = False,
    ) -> bool:
        if not to:
            logger.debug("Notification '%s' skipped: no recipient", email.subject)
            return False
        try:
            await mailer_service.send_raw_email(to, email.subject, email.html, reply_to=reply_to)
            return True
        except ExtraBeamError as e:
            if strict:
                raise
            logger.warning("Notification '%s' to %s not delivered: %s", email.subject, to, e.message)
            return False

    # ── To the entreprise ─────────────────────────────────────────────────

    async def mission_created(
        self, entreprise: Entreprise, mission: Mission, client: Optional[Profile] = None
    ) -> bool:
        """New mission request: client template when a client account is known, visitor otherwise."""
        if client is not None:
            email = email_templates.mission_created_by_client(
                entreprise, mission, display_name(client)
            )
            return await self._deliver(entreprise.email, email, reply_to=client.email)
        email = email_templates.mission_created_by_visitor(entreprise, mission)
        return await self._deliver(entreprise.email, email, reply_to=mission.contact_email)

    async def company_bookmarked(self, entreprise: Entreprise, client: Optional[Profile]) -> bool:
        email = email_templates.company_bookmarked(entreprise, display_name(client))
        return await self._deliver(entreprise.email, email)

    async def billing_status_changed(self, entreprise: Entreprise, facture: Facture) -> bool:
        email = email_templates.billing_status_changed(entreprise, facture)
        return await self._deliver(entreprise.email, email)

    # ── To the client ─────────────────────────────────────────────────────

    async def mission_ack_to_client(
        self, mission: Mission, entreprise: Optional[Entreprise], strict: bool = False
    ) -> bool:
        email = email_templates.mission_ack_to_client(
            display_name(mission.client) or mission.contact_name, mission, entreprise
        )
        reply_to = entreprise.email if entreprise else None
        return await self._deliver(
            client_email_for_mission(mission), email, reply_to=reply_to, strict=strict
        )

    async def mission_status_changed(
        self, mission: Mission, entreprise: Optional[Entreprise], strict: bool = False
    ) -> bool:
        email = email_templates.mission_status_changed(mission, entreprise)
        return await self._deliver(client_email_for_mission(mission), email, strict=strict)

    async def mission_slots_rescheduled(
        self, mission: Mission, entreprise: Optional[Entreprise]
    ) -> bool:
        email = email_templates.mission_slots_rescheduled(mission, entreprise)
        return await self._deliver(client_email_for_mission(mission), email)

    async def facture_created(
        self, facture: Facture, entreprise: Optional[Entreprise], strict: bool = False
    ) -> bool:
        """Invoice notice, followed by the payment-link e-mail when a link exists."""
        to = client_email_for_facture(facture)
        sent = await self._deliver(
            to, email_templates.invoice_created(facture, entreprise), strict=strict
        )
        if facture.payment_link:
            await self._deliver(to, email_templates.payment_link(facture, entreprise), strict=strict)
        return sent

    async def payment_succeeded(self, facture: Facture, entreprise: Optional[Entreprise]) -> bool:
        email = email_templates.payment_succeeded(facture, entreprise)
        return await self._deliver(client_email_for_facture(facture), email)

    async def payment_failed(self, facture: Facture, entreprise: Optional[Entreprise]) -> bool:
        email = email_templates.payment_failed(facture, entreprise)
        return await self._deliver(client_email_for_facture(facture), email)

    # ── Explicit "send" endpoints ─────────────────────────────────────────

    async def send_mission_sent(self, db: AsyncSession, user: AuthUser, mission_id: int) -> None:
        """
        Tell the client their mission was sent: status update + acknowledgement.

        Raises:
            NotFoundError, PermissionDeniedError, EmailDeliveryError
        """
        mission = await db.get(Mission, mission_id)
        if mission is None:
            raise NotFoundError(resource="mission", resource_id=str(mission_id), message="Mission introuvable")
        if not access_service.can_access_entreprise(user, mission.entreprise):
            raise PermissionDeniedError(message="Accès interdit à cette mission")

        await self.mission_status_changed(mission, mission.entreprise, strict=True)
        await self.mission_ack_to_client(mission, mission.entreprise, strict=True)

    async def send_facture_sent(self, db: AsyncSession, user: AuthUser, facture_id: int) -> None:
        facture = await db.get(Facture, facture_id)
        if facture is None:
            raise NotFoundError(resource="facture", resource_id=str(facture_id), message="Facture introuvable")
        entreprise = await db.get(Entreprise, facture.entreprise_id)
        if not access_service.can_access_entreprise(user, entreprise):
            raise PermissionDeniedError(message="Facture inaccessible")

        await self.facture_created(facture, entreprise, strict=True)


notification_service = NotificationService()
