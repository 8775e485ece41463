"""
ExtraBeam Backend - Slot Schemas
================================
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from extrabeam.schemas.common import UtcDatetime


class SlotIn(BaseModel):
    """A time range attached to a mission at creation/update time."""
    start: UtcDatetime
    end: UtcDatetime
    title: Optional[str] = None

    @model_validator(mode="after")
    def check_range(self) -> "SlotIn":
        if self.end <= self.start:
            raise ValueError("end must be after start")
        return self


class SlotCreate(SlotIn):
    mission_id: Optional[int] = None


class SlotUpdate(BaseModel):
    start: Optional[UtcDatetime] = None
    end: Optional[UtcDatetime] = None
    title: Optional[str] = None
    mission_id: Optional[int] = None


class SlotOut(BaseModel):
    id: int
    start: datetime
    end: datetime
    title: Optional[str] = None
    mission_id: Optional[int] = None
    entreprise_id: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CalendarSlotOut(SlotOut):
    status_slot: Optional[str] = Field(
        default=None,
        description="Owner view only: 'pending' for proposed/refused missions, otherwise 'active'",
    )


class SlotListResponse(BaseModel):
    slots: List[CalendarSlotOut]


class SlotResponse(BaseModel):
    slot: SlotOut
