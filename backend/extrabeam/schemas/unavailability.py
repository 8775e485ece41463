"""
ExtraBeam Backend - Unavailability Schemas
==========================================
"""

from datetime import date, datetime, time
from typing import List, Optional

from pydantic import BaseModel, Field


class UnavailabilityCreate(BaseModel):
    # Required fields are checked by the service to keep its 400 message
    title: Optional[str] = None
    start_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    recurrence_type: Optional[str] = Field(default=None, description="none | daily | weekly | monthly")
    recurrence_end: Optional[date] = None
    weekday: Optional[int] = Field(default=None, ge=0, le=6, description="0 = Sunday")
    exceptions: Optional[List[date]] = None


class UnavailabilityUpdate(UnavailabilityCreate):
    pass


class UnavailabilityOut(BaseModel):
    id: int
    entreprise_id: int
    title: str
    start_date: date
    start_time: time
    end_time: time
    recurrence_type: str
    recurrence_end: Optional[date] = None
    weekday: Optional[int] = None
    exceptions: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class UnavailabilityResponse(BaseModel):
    unavailability: UnavailabilityOut


class UnavailabilityListResponse(BaseModel):
    unavailabilities: List[UnavailabilityOut]
