"""
ExtraBeam Backend - Unavailability Model
========================================

What:  Blocked time on an entreprise calendar, optionally recurring.
How:   Only the rule is stored (start_date + recurrence_type + bounds).
       Occurrences are expanded on read by UnavailabilityService.

weekday follows the JavaScript convention (0 = Sunday ... 6 = Saturday)
because calendar clients send and expect it that way.
"""

from datetime import date, datetime, time
from typing import List, Optional

from sqlalchemy import JSON, Date, DateTime, ForeignKey, Integer, String, Time
from sqlalchemy.orm import Mapped, mapped_column

from extrabeam.database import Base, utcnow

RECURRENCE_TYPES = ("none", "daily", "weekly", "monthly")


class Unavailability(Base):
    __tablename__ = "unavailabilities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entreprise_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("entreprise.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False, default="Unavailability")
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    recurrence_type: Mapped[str] = mapped_column(String(10), nullable=False, default="none")
    recurrence_end: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    weekday: Mapped[Optional[int]] = mapped_column(
        Integer, nullable=True, comment="0 = Sunday ... 6 = Saturday"
    )
    exceptions: Mapped[List[str]] = mapped_column(
        JSON, nullable=False, default=list, comment="ISO dates skipped by the recurrence"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    def __repr__(self) -> str:
        return (
            f"<Unavailability(id={self.id}, start_date='{self.start_date}', "
            f"recurrence='{self.recurrence_type}')>"
        )
