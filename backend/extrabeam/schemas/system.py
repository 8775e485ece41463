"""
ExtraBeam Backend - Health, Mail and Upload Schemas
===================================================
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """
    What:  Service health check response.
    Who:   Returned by GET /health for load balancers and monitoring.

    Status semantics:
        healthy:   database reachable, mail circuit closed
        degraded:  database reachable, mail circuit open
        unhealthy: database unreachable
    """
    status: str = Field(description="Overall status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database status: connected, disconnected")
    mailer: str = Field(description="Mail delivery circuit state: closed, open, half_open")
    uptime_seconds: float = Field(description="Seconds since server start")


class ApiHealthResponse(BaseModel):
    ok: bool = True
    service: str
    method: str
    timestamp: datetime


class MailSendRequest(BaseModel):
    to: Optional[str] = None
    subject: Optional[str] = None
    html: Optional[str] = None


class MailSendResponse(BaseModel):
    message: str
    result: Dict[str, Any] = Field(default_factory=dict)


class UploadTarget(BaseModel):
    bucket: str = Field(min_length=1, max_length=63, pattern=r"^[A-Za-z0-9_-]+$")
    path: str = Field(min_length=1, max_length=512)


class PublicUrlResponse(BaseModel):
    public_url: str = Field(alias="publicUrl")

    model_config = {"populate_by_name": True}


class SignedUploadUrlResponse(BaseModel):
    url: str = Field(description="PUT the raw file body to this URL")
    token: str


class UploadedFileResponse(BaseModel):
    path: str
    public_url: str = Field(alias="publicUrl")

    model_config = {"populate_by_name": True}
