"""
ExtraBeam Backend - Payment Routes
==================================

What:  Stripe checkout for invoices and the Stripe webhook.

The webhook is unauthenticated: Stripe proves itself with the
`Stripe-Signature` header, checked against STRIPE_WEBHOOK_SECRET over the
raw request body. It is also excluded from rate limiting.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from extrabeam.database import get_db_session
from extrabeam.dependencies import get_current_user
from extrabeam.schemas.auth import AuthUser
from extrabeam.schemas.common import ErrorResponse
from extrabeam.schemas.facture import CheckoutSessionResponse, WebhookResponse
from extrabeam.services.payment_service import payment_service

router = APIRouter(prefix="/api/payments", tags=["Payments"])


@router.post(
    "/factures/{facture_id}/session",
    response_model=CheckoutSessionResponse,
    responses={
        400: {"description": "TTC amount is zero or negative", "model": ErrorResponse},
        401: {"description": "Not authenticated", "model": ErrorResponse},
        403: {"description": "Not the owner of the invoice", "model": ErrorResponse},
        404: {"description": "Facture not found", "model": ErrorResponse},
        502: {"description": "Stripe failure or Stripe not configured", "model": ErrorResponse},
    },
    summary="Open a Stripe checkout session for an invoice",
)
async def create_checkout_session(
    facture_id: int,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CheckoutSessionResponse:
    return await payment_service.create_checkout_for_facture(db, user, facture_id)


@router.post(
    "/webhook",
    response_model=WebhookResponse,
    responses={
        400: {"description": "Missing Stripe-Signature header", "model": ErrorResponse},
        401: {"description": "Signature verification failed", "model": ErrorResponse},
    },
    summary="Stripe webhook",
    description=(
        "checkout.session.completed marks the invoice and its mission paid; "
        "payment_intent.payment_failed cancels the invoice."
    ),
)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(default=None, alias="Stripe-Signature"),
    db: AsyncSession = Depends(get_db_session),
) -> WebhookResponse:
    # the signature covers the exact bytes Stripe sent
    payload = await request.body()
    return await payment_service.handle_webhook(db, payload, stripe_signature)
