"""
ExtraBeam Backend - Unavailability Service
==========================================

What:  Stores recurrence rules for blocked time and expands them into the
       concrete days they cover within a requested window.

Expansion (one pass per day of the window, per rule):
    none     the rule's start_date only
    daily    every day in [start_date, recurrence_end]
    weekly   same, when the JS weekday (0 = Sunday) equals rule.weekday
    monthly  same, when the day of month equals start_date's

    recurrence_end defaults to 2100-01-01; days listed in exceptions are
    skipped; an occurrence is the rule with start_date set to that day.
"""

import logging
from datetime import date, timedelta
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from extrabeam.database import utcnow
from extrabeam.exceptions import NotFoundError, ValidationError
from extrabeam.models.entreprise import Entreprise
from extrabeam.models.unavailability import RECURRENCE_TYPES, Unavailability
from extrabeam.schemas.auth import AuthUser
from extrabeam.schemas.common import SuccessResponse
from extrabeam.schemas.unavailability import (
    UnavailabilityCreate,
    UnavailabilityListResponse,
    UnavailabilityOut,
    UnavailabilityResponse,
    UnavailabilityUpdate,
)
from extrabeam.services.access_service import access_service

logger = logging.getLogger(__name__)

OPEN_ENDED_RECURRENCE = date(2100, 1, 1)
MAX_WINDOW_DAYS = 366


def js_weekday(day: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (day.weekday() + 1) % 7


def parse_day(value: Optional[str]) -> Optional[date]:
    """Accepts "2024-05-01" as well as full ISO timestamps."""
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def occurs_on(rule: Unavailability, day: date) -> bool:
    recurrence = rule.recurrence_type or "none"
    if recurrence == "none":
        return day == rule.start_date

    last_day = rule.recurrence_end or OPEN_ENDED_RECURRENCE
    if day < rule.start_date or day > last_day:
        return False
    if recurrence == "daily":
        return True
    if recurrence == "weekly":
        weekday = rule.weekday if rule.weekday is not None else js_weekday(rule.start_date)
        return js_weekday(day) == weekday
    if recurrence == "monthly":
        return day.day == rule.start_date.day
    return False


def expand_occurrences(
    rules: Iterable[Unavailability], window_start: date, window_end: date
) -> List[UnavailabilityOut]:
    occurrences = []
    for rule in rules:
        last_day = rule.recurrence_end or OPEN_ENDED_RECURRENCE
        if last_day < window_start or rule.start_date > window_end:
            continue

        skipped = set(rule.exceptions or [])
        base = UnavailabilityOut.model_validate(rule)
        day = max(window_start, rule.start_date)
        stop = min(window_end, last_day)
        while day <= stop:
            if occurs_on(rule, day) and day.isoformat() not in skipped:
                occurrences.append(base.model_copy(update={"start_date": day}))
            day += timedelta(days=1)
    return occurrences


class UnavailabilityService:

    def parse_window(self, start: Optional[str], end: Optional[str]) -> Tuple[date, date]:
        window_start, window_end = parse_day(start), parse_day(end)
        if window_start is None or window_end is None:
            raise ValidationError(message="Paramètres start et end requis")
        if window_end < window_start:
            raise ValidationError(message="end doit être postérieur à start", field="end")
        if (window_end - window_start).days > MAX_WINDOW_DAYS:
            raise ValidationError(
                message=f"Période trop longue (maximum {MAX_WINDOW_DAYS} jours)",
                field="end",
            )
        return window_start, window_end

    async def rules_for(self, db: AsyncSession, entreprise: Entreprise) -> List[Unavailability]:
        result = await db.execute(
            select(Unavailability)
            .where(Unavailability.entreprise_id == entreprise.id)
            .order_by(Unavailability.start_date, Unavailability.id)
        )
        return list(result.scalars().all())

    async def list_occurrences(
        self, db: AsyncSession, ref: str, start: Optional[str], end: Optional[str]
    ) -> UnavailabilityListResponse:
        window_start, window_end = self.parse_window(start, end)
        entreprise = await access_service.find_entreprise(db, ref)
        rules = await self.rules_for(db, entreprise)

        occurrences = expand_occurrences(rules, window_start, window_end)
        logger.debug(
            "Expanded %d unavailabilities between %s and %s",
            len(occurrences),
            window_start,
            window_end,
        )
        return UnavailabilityListResponse(unavailabilities=occurrences)

    def _check_recurrence(self, recurrence_type: Optional[str]) -> None:
        if recurrence_type is not None and recurrence_type not in RECURRENCE_TYPES:
            raise ValidationError(message="Type de récurrence invalide", field="recurrence_type")

    async def create(
        self, db: AsyncSession, user: AuthUser, ref: str, data: UnavailabilityCreate
    ) -> UnavailabilityResponse:
        entreprise = await access_service.find_entreprise(db, ref)
        access_service.ensure_access(user, entreprise)

        if not data.start_time or not data.end_time or not data.start_date:
            raise ValidationError(message="start_time, end_time et start_date sont requis")
        self._check_recurrence(data.recurrence_type)

        rule = Unavailability(
            entreprise_id=entreprise.id,
            title=data.title or "Unavailability",
            start_date=data.start_date,
            start_time=data.start_time,
            end_time=data.end_time,
            recurrence_type=data.recurrence_type or "none",
            recurrence_end=data.recurrence_end,
            weekday=data.weekday if data.weekday is not None else js_weekday(data.start_date),
            exceptions=[d.isoformat() for d in data.exceptions or []],
        )
        db.add(rule)
        await db.flush()
        logger.info("Unavailability %s created for entreprise %s", rule.id, entreprise.id)
        return UnavailabilityResponse(unavailability=UnavailabilityOut.model_validate(rule))

    async def _get_owned(
        self, db: AsyncSession, user: AuthUser, ref: str, rule_id: int
    ) -> Unavailability:
        entreprise = await access_service.find_entreprise(db, ref)
        access_service.ensure_access(user, entreprise)
        result = await db.execute(
            select(Unavailability).where(
                Unavailability.id == rule_id,
                Unavailability.entreprise_id == entreprise.id,
            )
        )
        rule = result.scalar_one_or_none()
        if rule is None:
            raise NotFoundError(
                resource="unavailability",
                resource_id=str(rule_id),
                message="Indisponibilité introuvable",
            )
        return rule

    async def update(
        self, db: AsyncSession, user: AuthUser, ref: str, rule_id: int, data: UnavailabilityUpdate
    ) -> UnavailabilityResponse:
        """Merge the provided fields into the rule; nulls are ignored."""
        rule = await self._get_owned(db, user, ref, rule_id)
        self._check_recurrence(data.recurrence_type)

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "exceptions" in changes:
            changes["exceptions"] = [d.isoformat() for d in data.exceptions or []]
        for field, value in changes.items():
            setattr(rule, field, value)
        rule.updated_at = utcnow()

        await db.flush()
        return UnavailabilityResponse(unavailability=UnavailabilityOut.model_validate(rule))

    async def delete(
        self, db: AsyncSession, user: AuthUser, ref: str, rule_id: int
    ) -> SuccessResponse:
        rule = await self._get_owned(db, user, ref, rule_id)
        await db.delete(rule)
        await db.flush()
        logger.info("Unavailability %s deleted", rule_id)
        return SuccessResponse()


unavailability_service = UnavailabilityService()
