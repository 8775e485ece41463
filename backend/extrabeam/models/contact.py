"""
ExtraBeam Backend - Client Contact Model
========================================

Link between a client and an entreprise. Created either by the client
(bookmarking a company) or by the entreprise (attaching a client).
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from extrabeam.database import Base, utcnow
from extrabeam.models.account import Profile
from extrabeam.models.entreprise import Entreprise


class ClientContact(Base):
    __tablename__ = "client_contacts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    entreprise_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("entreprise.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    client: Mapped[Optional[Profile]] = relationship(lazy="selectin")
    entreprise: Mapped[Optional[Entreprise]] = relationship(lazy="selectin")

    __table_args__ = (
        UniqueConstraint("client_id", "entreprise_id", name="uq_client_contacts_pair"),
    )
