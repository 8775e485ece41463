"""
ExtraBeam Backend - Entreprise Model
====================================

What:  The tenant record: a freelancer or company, addressed by slug in public
       URLs and owning missions, invoices, slots, unavailabilities and a CV.
How:   `user_id` links the entreprise to the account that administers it.
       Legal and banking fields are only returned to the owner (see
       EntrepriseService.serialize).
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from extrabeam.database import Base, utcnow

DEFAULT_STATUT_JURIDIQUE = "micro-entreprise"
DEFAULT_MENTION_TVA = "TVA non applicable, art. 293 B du CGI"
DEFAULT_TAUX_HORAIRE = 20.0
DEFAULT_DEVISE = "EUR"
DEFAULT_CONDITIONS_PAIEMENT = "Paiement comptant à réception"
DEFAULT_PENALITES_RETARD = "Taux BCE + 10 pts, indemnité forfaitaire 40 €"


class Entreprise(Base):
    __tablename__ = "entreprise"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        comment="Owning account",
    )
    slug: Mapped[str] = mapped_column(
        String(160),
        unique=True,
        nullable=False,
        comment="Human-readable unique identifier used in public URLs",
    )

    # ── Identity & address ────────────────────────────────────────────────
    nom: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    prenom: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    adresse_ligne1: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    adresse_ligne2: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    ville: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    code_postal: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    pays: Mapped[str] = mapped_column(String(80), nullable=False, default="France")
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    telephone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)

    # ── Legal & banking (owner only) ──────────────────────────────────────
    siret: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    statut_juridique: Mapped[str] = mapped_column(
        String(80), nullable=False, default=DEFAULT_STATUT_JURIDIQUE
    )
    tva_intracom: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    mention_tva: Mapped[str] = mapped_column(Text, nullable=False, default=DEFAULT_MENTION_TVA)
    iban: Mapped[str] = mapped_column(String(40), nullable=False, default="")
    bic: Mapped[str] = mapped_column(String(20), nullable=False, default="")

    # ── Billing ───────────────────────────────────────────────────────────
    taux_horaire: Mapped[float] = mapped_column(
        Float, nullable=False, default=DEFAULT_TAUX_HORAIRE, comment="Hourly rate"
    )
    devise: Mapped[str] = mapped_column(String(3), nullable=False, default=DEFAULT_DEVISE)
    conditions_paiement: Mapped[str] = mapped_column(
        Text, nullable=False, default=DEFAULT_CONDITIONS_PAIEMENT
    )
    penalites_retard: Mapped[str] = mapped_column(
        Text, nullable=False, default=DEFAULT_PENALITES_RETARD
    )
    stripe_account_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, default=utcnow
    )

    __table_args__ = (
        Index("idx_entreprise_user_id", "user_id"),
        Index("idx_entreprise_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Entreprise(id={self.id}, slug='{self.slug}')>"
