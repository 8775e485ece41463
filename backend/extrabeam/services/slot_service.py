"""
ExtraBeam Backend - Slot Service
================================

What:  Calendar slots of an entreprise: free availabilities and the time
       ranges booked by missions.

Visibility:
    owner / admin   every slot, flagged with status_slot:
                        "pending"  slot of a proposed or refused mission
                        "active"   anything else
    everyone else   free slots and slots of validated, paid or completed
                    missions only
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from extrabeam.exceptions import NotFoundError, ValidationError
from extrabeam.models.entreprise import Entreprise
from extrabeam.models.mission import (
    PENDING_MISSION_STATUSES,
    PUBLIC_MISSION_STATUSES,
    Mission,
    Slot,
)
from extrabeam.schemas.auth import AuthUser
from extrabeam.schemas.common import MessageResponse, to_utc
from extrabeam.schemas.slot import (
    CalendarSlotOut,
    SlotCreate,
    SlotListResponse,
    SlotOut,
    SlotResponse,
    SlotUpdate,
)
from extrabeam.services.access_service import access_service

logger = logging.getLogger(__name__)


def slot_status(mission_id: Optional[int], mission_status: Optional[str]) -> str:
    if mission_id is not None and mission_status in PENDING_MISSION_STATUSES:
        return "pending"
    return "active"


def is_public_slot(mission_id: Optional[int], mission_status: Optional[str]) -> bool:
    return mission_id is None or mission_status in PUBLIC_MISSION_STATUSES


class SlotService:

    async def calendar_slots(
        self,
        db: AsyncSession,
        entreprise: Entreprise,
        owner_view: bool,
        start_from: Optional[datetime] = None,
        end_to: Optional[datetime] = None,
        mission_id: Optional[int] = None,
    ) -> List[CalendarSlotOut]:
        """Slots of one entreprise ordered by start, filtered for the viewer."""
        stmt = (
            select(Slot, Mission.status)
            .outerjoin(Mission, Slot.mission_id == Mission.id)
            .where(Slot.entreprise_id == entreprise.id)
            .order_by(Slot.start)
        )
        if mission_id is not None:
            stmt = stmt.where(Slot.mission_id == mission_id)
        if start_from is not None:
            stmt = stmt.where(Slot.start >= to_utc(start_from))
        if end_to is not None:
            stmt = stmt.where(Slot.end <= to_utc(end_to))

        result = await db.execute(stmt)
        slots = []
        for slot, mission_status in result.all():
            if owner_view:
                out = CalendarSlotOut.model_validate(slot)
                out.status_slot = slot_status(slot.mission_id, mission_status)
                slots.append(out)
            elif is_public_slot(slot.mission_id, mission_status):
                slots.append(CalendarSlotOut.model_validate(slot))
        return slots

    async def list_slots(
        self,
        db: AsyncSession,
        user: Optional[AuthUser],
        ref: str,
        start_from: Optional[datetime] = None,
        end_to: Optional[datetime] = None,
        mission_id: Optional[int] = None,
    ) -> SlotListResponse:
        entreprise = await access_service.find_entreprise(db, ref)
        owner_view = access_service.can_access_entreprise(user, entreprise)
        slots = await self.calendar_slots(
            db, entreprise, owner_view, start_from, end_to, mission_id
        )
        return SlotListResponse(slots=slots)

    async def _check_mission(
        self, db: AsyncSession, entreprise: Entreprise, mission_id: Optional[int]
    ) -> Optional[int]:
        if mission_id is None:
            return None
        mission = await db.get(Mission, mission_id)
        if mission is None or mission.entreprise_id != entreprise.id:
            raise ValidationError(message="Mission invalide", field="mission_id")
        return mission.id

    async def _get_owned_slot(self, db: AsyncSession, entreprise: Entreprise, slot_id: int) -> Slot:
        result = await db.execute(
            select(Slot).where(Slot.id == slot_id, Slot.entreprise_id == entreprise.id)
        )
        slot = result.scalar_one_or_none()
        if slot is None:
            raise NotFoundError(resource="slot", resource_id=str(slot_id), message="Slot non trouvé")
        return slot

    async def create_slot(
        self, db: AsyncSession, user: AuthUser, ref: str, data: SlotCreate
    ) -> SlotResponse:
        entreprise = await access_service.find_entreprise(db, ref)
        access_service.ensure_access(user, entreprise)

        slot = Slot(
            start=data.start,
            end=data.end,
            title=data.title or None,
            mission_id=await self._check_mission(db, entreprise, data.mission_id),
            entreprise_id=entreprise.id,
        )
        db.add(slot)
        await db.flush()
        logger.info("Slot %s created for entreprise %s", slot.id, entreprise.id)
        return SlotResponse(slot=SlotOut.model_validate(slot))

    async def update_slot(
        self, db: AsyncSession, user: AuthUser, ref: str, slot_id: int, data: SlotUpdate
    ) -> SlotResponse:
        entreprise = await access_service.find_entreprise(db, ref)
        access_service.ensure_access(user, entreprise)
        slot = await self._get_owned_slot(db, entreprise, slot_id)

        changes = data.model_dump(exclude_unset=True)
        # start and end are not nullable
        for bound in ("start", "end"):
            if changes.get(bound, "") is None:
                del changes[bound]
        if "mission_id" in changes:
            changes["mission_id"] = await self._check_mission(db, entreprise, changes["mission_id"])
        for field, value in changes.items():
            setattr(slot, field, value)

        if to_utc(slot.end) <= to_utc(slot.start):
            raise ValidationError(message="La fin du créneau doit suivre son début", field="end")

        await db.flush()
        return SlotResponse(slot=SlotOut.model_validate(slot))

    async def delete_slot(
        self, db: AsyncSession, user: AuthUser, ref: str, slot_id: int
    ) -> MessageResponse:
        entreprise = await access_service.find_entreprise(db, ref)
        access_service.ensure_access(user, entreprise)
        slot = await self._get_owned_slot(db, entreprise, slot_id)

        await db.delete(slot)
        await db.flush()
        logger.info("Slot %s deleted from entreprise %s", slot_id, entreprise.id)
        return MessageResponse(message="Slot supprimé")


slot_service = SlotService()
