"""
ExtraBeam Backend - Mission, Slot and Template Models
=====================================================

What:  `missions` (a unit of work between a client and an entreprise), the
       `slots` (time ranges) booked for it, and the clients' reusable
       `mission_templates`.

Mission status lifecycle:
    proposed → validated → pending_payment → paid → completed
         └──→ refused                          └──→ realized

Relationships are loaded with `selectin` so a Mission can be serialized
after the session has done its work without any lazy IO.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from extrabeam.database import Base, utcnow
from extrabeam.models.account import Profile
from extrabeam.models.entreprise import Entreprise

MISSION_STATUSES = (
    "proposed",
    "validated",
    "pending_payment",
    "paid",
    "completed",
    "refused",
    "realized",
)
# Missions whose slots are shown on the public calendar
PUBLIC_MISSION_STATUSES = ("validated", "paid", "completed")
# Missions whose slots are flagged "pending" on the owner's calendar
PENDING_MISSION_STATUSES = ("proposed", "refused")
MISSION_MODES = ("freelance", "salarié")


class Mission(Base):
    __tablename__ = "missions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    client_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    entreprise_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("entreprise.id", ondelete="CASCADE"), nullable=True
    )
    freelance_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)

    # ── Contact on the client side ────────────────────────────────────────
    contact_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    contact_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    contact_phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    devis_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # ── Where the work happens ────────────────────────────────────────────
    etablissement: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    etablissement_adresse_ligne1: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    etablissement_adresse_ligne2: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    etablissement_code_postal: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    etablissement_ville: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    etablissement_pays: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)

    instructions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    mode: Mapped[str] = mapped_column(
        String(20), nullable=False, default="freelance", comment="freelance | salarié"
    )
    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default="proposed", comment="See MISSION_STATUSES"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    slots: Mapped[List["Slot"]] = relationship(
        lazy="selectin",
        order_by="Slot.start",
        cascade="all, delete-orphan",
    )
    entreprise: Mapped[Optional[Entreprise]] = relationship(lazy="selectin")
    client: Mapped[Optional[Profile]] = relationship(lazy="selectin")

    __table_args__ = (
        Index("idx_missions_entreprise_created", "entreprise_id", created_at.desc()),
        Index("idx_missions_client_id", "client_id"),
    )

    def __repr__(self) -> str:
        return f"<Mission(id={self.id}, status='{self.status}')>"


class Slot(Base):
    """
    A booked time range on an entreprise calendar.

    A slot without mission_id is a free availability; otherwise it is part
    of that mission's schedule.
    """

    __tablename__ = "slots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    mission_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("missions.id", ondelete="CASCADE"), nullable=True
    )
    entreprise_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("entreprise.id", ondelete="CASCADE"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        Index("idx_slots_entreprise_start", "entreprise_id", "start"),
        Index("idx_slots_mission_id", "mission_id"),
    )

    @property
    def duration_hours(self) -> float:
        """Length in hours; inverted ranges count as zero."""
        seconds = (self.end - self.start).total_seconds()
        return seconds / 3600 if seconds > 0 else 0.0

    def __repr__(self) -> str:
        return f"<Slot(id={self.id}, start='{self.start}', mission_id={self.mission_id})>"


class MissionTemplate(Base):
    """A client's saved mission form (place, contact, instructions)."""

    __tablename__ = "mission_templates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    nom: Mapped[str] = mapped_column(String(255), nullable=False)
    etablissement: Mapped[str] = mapped_column(String(255), nullable=False)
    etablissement_adresse_ligne1: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    etablissement_adresse_ligne2: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    etablissement_code_postal: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    etablissement_ville: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    etablissement_pays: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    contact_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    contact_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    contact_phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    instructions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    mode: Mapped[str] = mapped_column(String(20), nullable=False, default="freelance")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
