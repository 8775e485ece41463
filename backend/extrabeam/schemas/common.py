"""
ExtraBeam Backend - Shared Schemas
==================================

Error body, small acknowledgement bodies and the UTC datetime type used by
every request schema that carries a timestamp.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, Optional

from pydantic import AfterValidator, BaseModel, Field


def to_utc(value: datetime) -> datetime:
    # Naive timestamps from clients are taken as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(to_utc)]


class ErrorResponse(BaseModel):
    """
    What:  Consistent error response format for all error cases.
    Who:   Returned by every exception handler registered in main.py.
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Additional context")
    request_id: Optional[str] = Field(default=None, description="Request ID for support")


class MessageResponse(BaseModel):
    message: str


class SuccessResponse(BaseModel):
    success: bool = True


class SentResponse(BaseModel):
    sent: bool = True
