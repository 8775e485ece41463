"""
ExtraBeam Backend - Client Contact Service
==========================================

What:  The address book linking clients and entreprises, seen from both
       sides:
           entreprise side   list / attach / detach the clients of an
                             entreprise the caller owns
           client side       list / bookmark / remove the companies the
                             client keeps in their contacts
How:   Both sides write the same `client_contacts` rows; the pair
       (client_id, entreprise_id) is unique.
"""

import logging
import uuid
from typing import Optional, Union

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from extrabeam.exceptions import NotFoundError, ValidationError
from extrabeam.models.account import Profile
from extrabeam.models.contact import ClientContact
from extrabeam.models.entreprise import Entreprise
from extrabeam.schemas.auth import AuthUser
from extrabeam.schemas.client import (
    AttachClientRequest,
    AttachedResponse,
    ContactCreate,
    ContactListResponse,
    ContactOut,
    ContactResponse,
    DetachedResponse,
)
from extrabeam.schemas.common import MessageResponse
from extrabeam.services.access_service import access_service, parse_uuid
from extrabeam.services.notification_service import notification_service

logger = logging.getLogger(__name__)


class ClientService:

    async def _find_pair(
        self, db: AsyncSession, client_id: uuid.UUID, entreprise_id: int
    ) -> Optional[ClientContact]:
        result = await db.execute(
            select(ClientContact).where(
                ClientContact.client_id == client_id,
                ClientContact.entreprise_id == entreprise_id,
            )
        )
        return result.scalar_one_or_none()

    async def _load(self, db: AsyncSession, contact_id: int) -> ClientContact:
        result = await db.execute(
            select(ClientContact)
            .where(ClientContact.id == contact_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    # ── Entreprise side ───────────────────────────────────────────────────

    async def list_contacts(
        self, db: AsyncSession, user: AuthUser, entreprise_ref: Optional[str]
    ) -> ContactListResponse:
        entreprise = await access_service.load_entreprise_for_user(
            db, user, entreprise_ref, message="Accès interdit"
        )
        result = await db.execute(
            select(ClientContact)
            .where(ClientContact.entreprise_id == entreprise.id)
            .order_by(ClientContact.created_at.desc(), ClientContact.id.desc())
        )
        return ContactListResponse(
            contacts=[ContactOut.model_validate(c) for c in result.scalars().all()]
        )

    async def attach(
        self,
        db: AsyncSession,
        user: AuthUser,
        entreprise_ref: Optional[str],
        data: AttachClientRequest,
    ) -> AttachedResponse:
        """Link a client to the entreprise; attaching twice is a no-op."""
        if data.client_id is None:
            raise ValidationError(message="client_id requis", field="client_id")
        entreprise = await access_service.load_entreprise_for_user(
            db, user, entreprise_ref, message="Accès interdit"
        )

        if await self._find_pair(db, data.client_id, entreprise.id) is not None:
            return AttachedResponse()
        if await db.get(Profile, data.client_id) is None:
            raise NotFoundError(
                resource="client", resource_id=str(data.client_id), message="Client introuvable"
            )

        db.add(ClientContact(client_id=data.client_id, entreprise_id=entreprise.id))
        await db.flush()
        logger.info("Client %s attached to entreprise %s", data.client_id, entreprise.id)
        return AttachedResponse()

    async def detach(
        self,
        db: AsyncSession,
        user: AuthUser,
        entreprise_ref: Optional[str],
        client_id: uuid.UUID,
    ) -> DetachedResponse:
        entreprise = await access_service.load_entreprise_for_user(
            db, user, entreprise_ref, message="Accès interdit"
        )
        result = await db.execute(
            delete(ClientContact).where(
                ClientContact.entreprise_id == entreprise.id,
                ClientContact.client_id == client_id,
            )
        )
        if result.rowcount == 0:
            raise NotFoundError(
                resource="client_contact",
                resource_id=str(client_id),
                message="Lien client introuvable",
            )
        logger.info("Client %s detached from entreprise %s", client_id, entreprise.id)
        return DetachedResponse()

    # ── Client side ───────────────────────────────────────────────────────

    async def my_contacts(self, db: AsyncSession, user: AuthUser) -> ContactListResponse:
        result = await db.execute(
            select(ClientContact)
            .where(ClientContact.client_id == parse_uuid(user.id))
            .order_by(ClientContact.created_at.desc(), ClientContact.id.desc())
        )
        return ContactListResponse(
            contacts=[ContactOut.model_validate(c) for c in result.scalars().all()]
        )

    async def add_contact(
        self, db: AsyncSession, user: AuthUser, data: ContactCreate
    ) -> Union[ContactResponse, MessageResponse]:
        """
        Bookmark a company.

        Returns:
            ContactResponse for a new contact (201), or
            MessageResponse("Déjà dans vos contacts") when it already exists.
        """
        if data.entreprise_id is None:
            raise ValidationError(message="entreprise_id requis", field="entreprise_id")
        client_id = parse_uuid(user.id)
        entreprise = await db.get(Entreprise, data.entreprise_id)
        if entreprise is None:
            raise NotFoundError(
                resource="entreprise",
                resource_id=str(data.entreprise_id),
                message="Entreprise non trouvée",
            )

        if await self._find_pair(db, client_id, entreprise.id) is not None:
            return MessageResponse(message="Déjà dans vos contacts")

        contact = ClientContact(client_id=client_id, entreprise_id=entreprise.id)
        db.add(contact)
        await db.flush()
        contact = await self._load(db, contact.id)
        logger.info("Client %s bookmarked entreprise %s", client_id, entreprise.id)

        await notification_service.company_bookmarked(entreprise, contact.client)
        return ContactResponse(contact=ContactOut.model_validate(contact))

    async def delete_contact(
        self, db: AsyncSession, user: AuthUser, contact_id: int
    ) -> MessageResponse:
        contact = await db.get(ClientContact, contact_id)
        if contact is None or str(contact.client_id) != user.id:
            raise NotFoundError(
                resource="client_contact",
                resource_id=str(contact_id),
                message="Contact introuvable",
            )
        await db.delete(contact)
        await db.flush()
        return MessageResponse(message="Contact supprimé")


client_service = ClientService()
