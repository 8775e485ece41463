"""
ExtraBeam Backend - Facture (Invoice) Model
===========================================

What:  Invoices issued by an entreprise, optionally for a mission.
How:   Amounts are stored as floats in the entreprise currency; Stripe
       receives `round(montant_ttc * 100)` minor units at checkout time.

Status: pending_payment → paid, or pending_payment → canceled (failed payment).
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import Date, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from extrabeam.database import Base, utcnow
from extrabeam.models.mission import Mission

FACTURE_STATUSES = ("pending_payment", "paid", "canceled")


def _today() -> date:
    return utcnow().date()


class Facture(Base):
    __tablename__ = "factures"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    numero: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False, comment="Invoice number, globally unique"
    )
    entreprise_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("entreprise.id", ondelete="CASCADE"), nullable=False
    )
    mission_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("missions.id", ondelete="SET NULL"), nullable=True
    )

    # ── Billed party ──────────────────────────────────────────────────────
    client_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    client_address_ligne1: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    client_address_ligne2: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    client_code_postal: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    client_ville: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    client_pays: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    contact_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    contact_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    contact_phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)

    # ── Amounts ───────────────────────────────────────────────────────────
    date_emission: Mapped[date] = mapped_column(Date, nullable=False, default=_today)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    hours: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    rate: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    montant_ht: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    montant_ttc: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    tva: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    mention_tva: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    conditions_paiement: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    penalites_retard: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # ── Payment ───────────────────────────────────────────────────────────
    payment_link: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default="pending_payment", comment="See FACTURE_STATUSES"
    )
    stripe_session_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    stripe_payment_intent: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    url: Mapped[Optional[str]] = mapped_column(Text, nullable=True, comment="Rendered PDF URL")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    mission: Mapped[Optional[Mission]] = relationship(lazy="selectin")

    __table_args__ = (
        Index("idx_factures_entreprise_emission", "entreprise_id", date_emission.desc()),
    )

    def __repr__(self) -> str:
        return f"<Facture(id={self.id}, numero='{self.numero}', status='{self.status}')>"
