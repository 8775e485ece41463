"""
ExtraBeam Backend - Payment Service (Stripe)
============================================

What:  Stripe checkout sessions for invoices, Stripe Connect onboarding for
       entreprises, and the webhook that settles invoices.
How:   The stripe library is synchronous; every API call runs in a worker
       thread (`asyncio.to_thread`) so the event loop is never blocked.
       Stripe failures surface as PaymentServiceError (502).

Webhook events handled:
    checkout.session.completed       facture → paid, mission → paid,
                                     payment-succeeded e-mail to the client
    payment_intent.payment_failed    facture → canceled, payment-failed e-mail
    anything else                    acknowledged and ignored
"""

import asyncio
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional

import stripe
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from extrabeam.config import settings
from extrabeam.exceptions import (
    AuthenticationError,
    NotFoundError,
    PaymentServiceError,
    PermissionDeniedError,
    ValidationError,
)
from extrabeam.models.entreprise import Entreprise
from extrabeam.models.facture import Facture
from extrabeam.schemas.auth import AuthUser
from extrabeam.schemas.entreprise import ConnectStripeResponse
from extrabeam.schemas.facture import CheckoutSessionResponse, WebhookResponse
from extrabeam.services.access_service import access_service
from extrabeam.services.mission_service import mission_service
from extrabeam.services.notification_service import notification_service

logger = logging.getLogger(__name__)

if settings.stripe_secret_key:
    stripe.api_key = settings.stripe_secret_key


def to_minor_units(amount: float) -> int:
    """Cents for an amount in major units, rounding halves up (12.345 → 1235)."""
    return int(Decimal(str(amount)).scaleb(2).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _metadata_id(metadata: Optional[Dict[str, Any]], key: str) -> Optional[int]:
    value = (metadata or {}).get(key)
    if value is None or not str(value).isdigit():
        return None
    return int(value)


class PaymentService:

    def _ensure_configured(self) -> None:
        if not settings.stripe_secret_key:
            raise PaymentServiceError(message="Stripe n'est pas configuré")

    async def _call(self, operation: str, func, **params):
        """Run one Stripe API call off the event loop."""
        self._ensure_configured()
        try:
            return await asyncio.to_thread(func, **params)
        except stripe.StripeError as e:
            logger.error("Stripe %s failed: %s", operation, e)
            raise PaymentServiceError(
                message="Le service de paiement est indisponible",
                context={"operation": operation, "stripe_error": str(e)},
            )

    async def _load_facture(self, db: AsyncSession, facture_id: int) -> Optional[Facture]:
        result = await db.execute(
            select(Facture)
            .where(Facture.id == facture_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    # ── Checkout ──────────────────────────────────────────────────────────

    async def create_checkout_for_facture(
        self, db: AsyncSession, user: AuthUser, facture_id: int
    ) -> CheckoutSessionResponse:
        if not user.is_entreprise:
            raise PermissionDeniedError(message="Accès réservé aux entreprises")
        facture = await self._load_facture(db, facture_id)
        if facture is None:
            raise NotFoundError(
                resource="facture", resource_id=str(facture_id), message="Facture introuvable"
            )
        entreprise = await db.get(Entreprise, facture.entreprise_id)
        access_service.ensure_access(user, entreprise, message="Facture inaccessible")
        return await self.start_checkout(db, facture, entreprise)

    async def start_checkout(
        self, db: AsyncSession, facture: Facture, entreprise: Entreprise
    ) -> CheckoutSessionResponse:
        """
        Create a Checkout Session for the invoice's TTC amount and store it.

        Raises:
            ValidationError("Montant TTC invalide") when TTC <= 0.
            PaymentServiceError when Stripe is unconfigured or fails.
        """
        if not facture.montant_ttc or facture.montant_ttc <= 0:
            raise ValidationError(message="Montant TTC invalide", field="montant_ttc")

        base_url = f"{settings.app_url}/entreprise/{entreprise.slug}/factures/{facture.id}"
        metadata = {
            "facture_id": str(facture.id),
            "entreprise_id": str(entreprise.id),
            "mission_id": str(facture.mission_id) if facture.mission_id else "",
        }
        session = await self._call(
            "checkout.create",
            stripe.checkout.Session.create,
            mode="payment",
            customer_creation="if_required",
            line_items=[
                {
                    "price_data": {
                        "currency": (entreprise.devise or "eur").lower(),
                        "product_data": {
                            "name": f"Facture {facture.numero}",
                            "description": facture.description or "Mission freelance",
                        },
                        "unit_amount": to_minor_units(facture.montant_ttc),
                    },
                    "quantity": 1,
                }
            ],
            success_url=f"{base_url}?paid=1",
            cancel_url=f"{base_url}?canceled=1",
            metadata=metadata,
            payment_intent_data={"metadata": metadata},
        )
        if not session.get("url"):
            raise PaymentServiceError(message="Session Stripe invalide")

        facture.stripe_session_id = session["id"]
        facture.stripe_payment_intent = session.get("payment_intent")
        facture.payment_link = session["url"]
        facture.status = "pending_payment"
        await db.flush()
        logger.info("Checkout session %s created for facture %s", session["id"], facture.id)

        facture = await self._load_facture(db, facture.id)
        await notification_service.facture_created(facture, entreprise)

        return CheckoutSessionResponse(
            url=session["url"],
            session_id=session["id"],
            payment_intent=session.get("payment_intent"),
        )

    # ── Connect onboarding ────────────────────────────────────────────────

    async def create_connect_link(
        self, db: AsyncSession, entreprise: Entreprise
    ) -> ConnectStripeResponse:
        """Onboarding link for the entreprise's Stripe account, created on first use."""
        if not entreprise.stripe_account_id:
            account = await self._call(
                "account.create",
                stripe.Account.create,
                type="standard",
                email=entreprise.email or None,
            )
            entreprise.stripe_account_id = account["id"]
            await db.flush()
            logger.info("Stripe account %s created for entreprise %s", account["id"], entreprise.id)

        dashboard_url = f"{settings.app_url}/dashboard/entreprise/{entreprise.slug}"
        link = await self._call(
            "account_link.create",
            stripe.AccountLink.create,
            account=entreprise.stripe_account_id,
            type="account_onboarding",
            refresh_url=f"{dashboard_url}/stripe-error",
            return_url=f"{dashboard_url}/stripe-success",
        )
        return ConnectStripeResponse(url=link["url"])

    # ── Webhook ───────────────────────────────────────────────────────────

    def construct_event(self, payload: bytes, signature: Optional[str]):
        if not signature:
            raise ValidationError(message="Signature Stripe manquante", field="Stripe-Signature")
        try:
            return stripe.Webhook.construct_event(
                payload, signature, settings.stripe_webhook_secret
            )
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.warning("Stripe webhook rejected: %s", e)
            raise AuthenticationError(message="Signature Stripe invalide")

    async def handle_webhook(
        self, db: AsyncSession, payload: bytes, signature: Optional[str]
    ) -> WebhookResponse:
        event = self.construct_event(payload, signature)
        event_type = event["type"]
        data = event["data"]["object"]
        logger.info("Stripe event %s received", event_type)

        if event_type == "checkout.session.completed":
            await self._checkout_completed(db, data)
        elif event_type == "payment_intent.payment_failed":
            await self._payment_failed(db, data)
        return WebhookResponse()

    async def _checkout_completed(self, db: AsyncSession, session: Dict[str, Any]) -> None:
        facture_id = _metadata_id(session.get("metadata"), "facture_id")
        if facture_id is None:
            logger.error("Checkout session %s has no facture_id metadata", session.get("id"))
            return
        facture = await self._load_facture(db, facture_id)
        if facture is None:
            logger.error("Checkout session %s names unknown facture %s", session.get("id"), facture_id)
            return

        facture.status = "paid"
        facture.stripe_session_id = session.get("id") or facture.stripe_session_id
        facture.stripe_payment_intent = (
            session.get("payment_intent") or facture.stripe_payment_intent
        )
        await db.flush()
        await mission_service.mark_paid(db, facture.mission_id)
        logger.info("Facture %s paid", facture.id)

        facture = await self._load_facture(db, facture.id)
        entreprise = await db.get(Entreprise, facture.entreprise_id)
        await notification_service.payment_succeeded(facture, entreprise)

    async def _payment_failed(self, db: AsyncSession, intent: Dict[str, Any]) -> None:
        facture_id = _metadata_id(intent.get("metadata"), "facture_id")
        if facture_id is None:
            return
        facture = await self._load_facture(db, facture_id)
        if facture is None:
            logger.warning("Payment failure for unknown facture %s", facture_id)
            return

        facture.status = "canceled"
        await db.flush()
        logger.info("Facture %s canceled after failed payment", facture.id)

        entreprise = await db.get(Entreprise, facture.entreprise_id)
        await notification_service.payment_failed(facture, entreprise)


payment_service = PaymentService()
