"""
ExtraBeam Backend - Notification & Mail Routes
==============================================

What:  Explicit "send" actions of the dashboard and a raw mail endpoint.
How:   Unlike the notifications fired by other writes, these requests fail
       when the e-mail cannot be delivered (503 with Retry-After).
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from extrabeam.database import get_db_session
from extrabeam.dependencies import get_current_user, require_entreprise_role
from extrabeam.exceptions import ValidationError
from extrabeam.schemas.auth import AuthUser
from extrabeam.schemas.common import ErrorResponse, SentResponse
from extrabeam.schemas.system import MailSendRequest, MailSendResponse
from extrabeam.services.mailer_service import mailer_service
from extrabeam.services.notification_service import notification_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Notifications"])

_SEND = {
    401: {"description": "Not authenticated", "model": ErrorResponse},
    403: {"description": "Not the owner", "model": ErrorResponse},
    404: {"description": "Not found", "model": ErrorResponse},
    503: {"description": "Mail delivery unavailable", "model": ErrorResponse},
}


@router.post(
    "/notifications/mission/{mission_id}/sent",
    response_model=SentResponse,
    responses=_SEND,
    summary="Tell the client their mission was sent",
)
async def mission_sent(
    mission_id: int,
    user: AuthUser = Depends(require_entreprise_role),
    db: AsyncSession = Depends(get_db_session),
) -> SentResponse:
    await notification_service.send_mission_sent(db, user, mission_id)
    return SentResponse()


@router.post(
    "/notifications/facture/{facture_id}/sent",
    response_model=SentResponse,
    responses=_SEND,
    summary="E-mail an invoice to its client",
)
async def facture_sent(
    facture_id: int,
    user: AuthUser = Depends(require_entreprise_role),
    db: AsyncSession = Depends(get_db_session),
) -> SentResponse:
    await notification_service.send_facture_sent(db, user, facture_id)
    return SentResponse()


@router.post(
    "/mail/send",
    response_model=MailSendResponse,
    responses={
        400: {"description": "to, subject or html missing", "model": ErrorResponse},
        401: {"description": "Not authenticated", "model": ErrorResponse},
        503: {"description": "Mail delivery unavailable", "model": ErrorResponse},
    },
    summary="Send a raw HTML e-mail",
)
async def send_mail(
    body: MailSendRequest,
    user: AuthUser = Depends(get_current_user),
) -> MailSendResponse:
    if not body.to or not body.subject or not body.html:
        raise ValidationError(message="Champs requis : to, subject, html")

    result = await mailer_service.send_raw_email(body.to, body.subject, body.html)
    logger.info("Raw mail sent by user %s to %s", user.id, body.to)
    return MailSendResponse(message="Mail envoyé", result=result)
