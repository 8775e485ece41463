"""
ExtraBeam Backend - Mission Service
===================================

What:  Creation, listing, update and status changes of missions together
       with their slots.
Who:   /api/missions routes (authenticated) and the public booking form
       POST /api/entreprises/{ref}/missions.

Who sees what:
    entreprise roles (freelance, entreprise, admin)
        missions of an entreprise they manage
    client
        missions whose client_id is their own id
    visitor (no account)
        may only create a mission through the public booking form

Every write reloads the mission with `populate_existing` so the slots,
entreprise and client relationships are fresh when the response is built.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from extrabeam.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from extrabeam.models.entreprise import Entreprise
from extrabeam.models.mission import MISSION_MODES, MISSION_STATUSES, Mission, Slot
from extrabeam.schemas.auth import AuthUser
from extrabeam.schemas.common import SuccessResponse, to_utc
from extrabeam.schemas.mission import (
    MissionCreate,
    MissionFields,
    MissionListResponse,
    MissionOut,
    MissionResponse,
    MissionUpdate,
)
from extrabeam.schemas.slot import SlotIn
from extrabeam.services.access_service import access_service, parse_uuid
from extrabeam.services.notification_service import notification_service

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200

# Plain columns copied from request bodies; status and mode are checked separately
_CONTACT_AND_PLACE_FIELDS = set(MissionFields.model_fields) - {"status", "mode"}


def validate_status(status: Optional[str]) -> None:
    if status and status not in MISSION_STATUSES:
        raise ValidationError(message="Statut mission invalide", field="status")


def validate_mode(mode: Optional[str]) -> None:
    if mode and mode not in MISSION_MODES:
        raise ValidationError(message="Mode mission invalide", field="mode")


def week_range(week: Optional[str]) -> Optional[Tuple[datetime, datetime]]:
    """
    [Monday 00:00 UTC, next Monday 00:00 UTC) of the week containing `week`.

    Accepts a date ("2024-05-08") or an ISO timestamp.

    Raises:
        ValidationError("Paramètre week invalide") for unparsable values.
    """
    if not week:
        return None
    try:
        base = to_utc(datetime.fromisoformat(week.strip()))
    except ValueError:
        raise ValidationError(message="Paramètre week invalide", field="week")

    monday = (base - timedelta(days=base.weekday())).replace(
        hour=0, minute=0, second=0, microsecond=0
    )
    return monday, monday + timedelta(days=7)


def clamp_page(page: Optional[int], size: Optional[int]) -> Tuple[int, int]:
    """(offset, limit) for a 1-based page; size is clamped to 1..200."""
    limit = max(1, min(size or DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE))
    page_index = max(0, (page or 1) - 1)
    return page_index * limit, limit


def build_slots(slots: List[SlotIn], entreprise_id: Optional[int]) -> List[Slot]:
    return [
        Slot(start=s.start, end=s.end, title=s.title or None, entreprise_id=entreprise_id)
        for s in slots
    ]


class MissionService:

    async def _load(self, db: AsyncSession, mission_id: int) -> Optional[Mission]:
        result = await db.execute(
            select(Mission)
            .where(Mission.id == mission_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _response(self, db: AsyncSession, mission_id: int) -> MissionResponse:
        mission = await self._load(db, mission_id)
        return MissionResponse(mission=MissionOut.model_validate(mission))

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_missions(
        self,
        db: AsyncSession,
        user: AuthUser,
        entreprise_ref: Optional[str] = None,
        week: Optional[str] = None,
        status: Optional[str] = None,
        page: Optional[int] = None,
        size: Optional[int] = None,
    ) -> MissionListResponse:
        validate_status(status)
        window = week_range(week)

        if user.is_entreprise:
            entreprise = await access_service.load_entreprise_for_user(db, user, entreprise_ref)
            stmt = select(Mission).where(Mission.entreprise_id == entreprise.id)
            offset, limit = clamp_page(page, size)
        elif user.role == "client":
            stmt = select(Mission).where(Mission.client_id == parse_uuid(user.id))
            offset, limit = 0, None
        else:
            raise PermissionDeniedError(message="Rôle non autorisé")

        if status:
            stmt = stmt.where(Mission.status == status)
        if window:
            stmt = stmt.where(Mission.created_at >= window[0], Mission.created_at < window[1])
        stmt = stmt.order_by(Mission.created_at.desc(), Mission.id.desc()).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await db.execute(stmt)
        missions = result.scalars().all()
        return MissionListResponse(missions=[MissionOut.model_validate(m) for m in missions])

    async def get_accessible(self, db: AsyncSession, user: AuthUser, mission_id: int) -> Mission:
        """
        Load a mission the caller may see.

        Raises:
            NotFoundError("Mission introuvable"), PermissionDeniedError
        """
        mission = await self._load(db, mission_id)
        if mission is None:
            raise NotFoundError(
                resource="mission", resource_id=str(mission_id), message="Mission introuvable"
            )

        if user.is_entreprise:
            if not access_service.can_access_entreprise(user, mission.entreprise):
                raise PermissionDeniedError(message="Accès interdit")
        elif user.role == "client":
            if mission.client_id is None or str(mission.client_id) != user.id:
                raise PermissionDeniedError(message="Accès interdit à cette mission")
        else:
            raise PermissionDeniedError(message="Rôle non autorisé")
        return mission

    async def get_mission(self, db: AsyncSession, user: AuthUser, mission_id: int) -> MissionResponse:
        mission = await self.get_accessible(db, user, mission_id)
        return MissionResponse(mission=MissionOut.model_validate(mission))

    async def _get_managed(self, db: AsyncSession, user: AuthUser, mission_id: int) -> Mission:
        """A mission the caller may modify: entreprise roles owning its entreprise."""
        mission = await self.get_accessible(db, user, mission_id)
        if not user.is_entreprise:
            raise PermissionDeniedError(message="Accès réservé au propriétaire")
        if mission.entreprise_id is None:
            raise ValidationError(message="Mission sans entreprise liée")
        return mission

    # ── Creation ──────────────────────────────────────────────────────────

    async def create_mission(
        self, db: AsyncSession, user: AuthUser, data: MissionCreate
    ) -> MissionResponse:
        validate_mode(data.mode)
        fields = data.model_dump(include=_CONTACT_AND_PLACE_FIELDS, exclude_none=True)

        if user.is_entreprise:
            validate_status(data.status)
            ref = data.entreprise_ref or (
                str(data.entreprise_id) if data.entreprise_id is not None else None
            )
            entreprise = await access_service.load_entreprise_for_user(db, user, ref)
            mission = Mission(
                **fields,
                mode=data.mode or "freelance",
                status=data.status or "proposed",
                client_id=data.client_id,
                entreprise_id=entreprise.id,
                slots=build_slots(data.slots, entreprise.id),
            )
            db.add(mission)
            await db.flush()
            logger.info("Mission %s created by entreprise %s", mission.id, entreprise.id)
            return await self._response(db, mission.id)

        if user.role == "client":
            entreprise = None
            if data.entreprise_ref or data.entreprise_id is not None:
                entreprise = await access_service.find_entreprise(
                    db, data.entreprise_ref or str(data.entreprise_id)
                )
            mission = Mission(
                **fields,
                mode=data.mode or "freelance",
                status="proposed",
                client_id=parse_uuid(user.id),
                entreprise_id=entreprise.id if entreprise else None,
                slots=build_slots(data.slots, entreprise.id) if entreprise else [],
            )
            db.add(mission)
            await db.flush()
            logger.info("Mission %s proposed by client %s", mission.id, user.id)

            mission = await self._load(db, mission.id)
            if entreprise is not None:
                await notification_service.mission_created(entreprise, mission, mission.client)
            return MissionResponse(mission=MissionOut.model_validate(mission))

        raise PermissionDeniedError(message="Rôle non autorisé")

    async def create_public_mission(
        self,
        db: AsyncSession,
        user: Optional[AuthUser],
        ref: str,
        data: MissionCreate,
    ) -> MissionResponse:
        """
        Booking form of the public entreprise page.

        The status is always "proposed". A signed-in client becomes the
        mission's client; anyone else is a visitor known by contact fields.
        Notifications never fail the request.
        """
        validate_mode(data.mode)
        entreprise = await access_service.find_entreprise(db, ref)

        client_id = None
        if user is not None and user.role == "client":
            client_id = parse_uuid(user.id)

        mission = Mission(
            **data.model_dump(include=_CONTACT_AND_PLACE_FIELDS, exclude_none=True),
            mode=data.mode or "freelance",
            status="proposed",
            client_id=client_id,
            entreprise_id=entreprise.id,
            slots=build_slots(data.slots, entreprise.id),
        )
        db.add(mission)
        await db.flush()
        logger.info(
            "Public mission %s requested for entreprise %s (%s)",
            mission.id,
            entreprise.slug,
            "client" if client_id else "visitor",
        )

        mission = await self._load(db, mission.id)
        await notification_service.mission_created(entreprise, mission, mission.client)
        await notification_service.mission_ack_to_client(mission, entreprise)
        return MissionResponse(mission=MissionOut.model_validate(mission))

    # ── Changes ───────────────────────────────────────────────────────────

    async def update_mission(
        self, db: AsyncSession, user: AuthUser, mission_id: int, data: MissionUpdate
    ) -> MissionResponse:
        """Partial update; a `slots` list replaces every slot of the mission."""
        mission = await self._get_managed(db, user, mission_id)
        validate_status(data.status)
        validate_mode(data.mode)

        previous_status = mission.status
        changes = data.model_dump(exclude_unset=True, exclude={"slots"})
        for field, value in changes.items():
            if field in ("status", "mode") and not value:
                continue
            setattr(mission, field, value)

        slots_replaced = data.slots is not None
        if slots_replaced:
            mission.slots = build_slots(data.slots, mission.entreprise_id)

        await db.flush()
        mission = await self._load(db, mission_id)

        if mission.status != previous_status:
            await notification_service.mission_status_changed(mission, mission.entreprise)
        if slots_replaced:
            await notification_service.mission_slots_rescheduled(mission, mission.entreprise)
        return MissionResponse(mission=MissionOut.model_validate(mission))

    async def delete_mission(
        self, db: AsyncSession, user: AuthUser, mission_id: int
    ) -> SuccessResponse:
        mission = await self._get_managed(db, user, mission_id)
        # Slots go with the mission (delete-orphan cascade)
        await db.delete(mission)
        await db.flush()
        logger.info("Mission %s deleted", mission_id)
        return SuccessResponse()

    async def set_status(
        self, db: AsyncSession, user: AuthUser, mission_id: int, status: str
    ) -> MissionResponse:
        if not status:
            raise ValidationError(message="Statut mission invalide", field="status")
        validate_status(status)
        mission = await self._get_managed(db, user, mission_id)

        mission.status = status
        await db.flush()
        mission = await self._load(db, mission_id)
        logger.info("Mission %s status → %s", mission_id, status)

        await notification_service.mission_status_changed(mission, mission.entreprise)
        return MissionResponse(mission=MissionOut.model_validate(mission))

    async def mark_paid(self, db: AsyncSession, mission_id: Optional[int]) -> None:
        """Used by invoicing when the mission's invoice is settled."""
        if mission_id is None:
            return
        mission = await db.get(Mission, mission_id)
        if mission is not None and mission.status != "paid":
            mission.status = "paid"
            await db.flush()
            logger.info("Mission %s marked paid", mission_id)

    async def missions_for_entreprise(
        self, db: AsyncSession, entreprise: Entreprise
    ) -> List[MissionOut]:
        result = await db.execute(
            select(Mission)
            .where(Mission.entreprise_id == entreprise.id)
            .order_by(Mission.created_at.desc(), Mission.id.desc())
        )
        return [MissionOut.model_validate(m) for m in result.scalars().all()]


mission_service = MissionService()
