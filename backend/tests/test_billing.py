"""
ExtraBeam Backend - Billing Unit Tests
======================================

Invoice amounts, Stripe minor units, mission list helpers and the Stripe
webhook dispatch (stripe library mocked).
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest
import stripe
from sqlalchemy.exc import IntegrityError

from extrabeam.config import settings
from extrabeam.exceptions import (
    AuthenticationError,
    DatabaseError,
    PaymentServiceError,
    ValidationError,
)
from extrabeam.models.mission import Slot
from extrabeam.services.facture_service import (
    compute_from_slots,
    facture_service,
    validate_facture_status,
)
from extrabeam.services.mission_service import clamp_page, validate_status, week_range
from extrabeam.services.payment_service import payment_service, to_minor_units


def slot(start_hour: int, end_hour: int) -> Slot:
    day = datetime(2024, 5, 1, tzinfo=timezone.utc)
    return Slot(start=day.replace(hour=start_hour), end=day.replace(hour=end_hour))


class TestInvoiceAmounts:

    def test_hours_times_rate(self):
        computed = compute_from_slots([slot(9, 12), slot(14, 18)], 30.0)
        assert computed == {"hours": 7.0, "rate": 30.0, "montant_ht": 210.0, "montant_ttc": 210.0}

    def test_inverted_slots_count_zero(self):
        assert compute_from_slots([slot(12, 9)], 30.0)["hours"] == 0.0

    def test_missing_rate(self):
        assert compute_from_slots([slot(9, 10)], None)["montant_ht"] == 0.0

    def test_unknown_status(self):
        with pytest.raises(ValidationError, match="Statut facture invalide"):
            validate_facture_status("sent")
        validate_facture_status("paid")
        validate_facture_status(None)


class TestMinorUnits:

    @pytest.mark.parametrize(
        "amount, cents",
        [(120, 12000), (19.99, 1999), (0.1 + 0.2, 30), (12.345, 1235), (0.005, 1)],
    )
    def test_to_minor_units(self, amount, cents):
        assert to_minor_units(amount) == cents


class TestMissionHelpers:

    def test_week_range_starts_on_monday(self):
        start, end = week_range("2024-05-08")
        assert start == datetime(2024, 5, 6, tzinfo=timezone.utc)
        assert end == datetime(2024, 5, 13, tzinfo=timezone.utc)

    def test_week_range_empty(self):
        assert week_range(None) is None

    def test_week_range_invalid(self):
        with pytest.raises(ValidationError, match="Paramètre week invalide"):
            week_range("next week")

    @pytest.mark.parametrize(
        "page, size, expected",
        [(None, None, (0, 50)), (3, 10, (20, 10)), (0, 0, (0, 50)), (1, 1000, (0, 200)), (-2, -5, (0, 1))],
    )
    def test_clamp_page(self, page, size, expected):
        assert clamp_page(page, size) == expected

    def test_validate_status(self):
        validate_status("validated")
        with pytest.raises(ValidationError, match="Statut mission invalide"):
            validate_status("archived")


class TestWebhookVerification:

    def test_missing_signature(self):
        with pytest.raises(ValidationError):
            payment_service.construct_event(b"{}", None)

    def test_bad_signature(self):
        with patch.object(
            stripe.Webhook,
            "construct_event",
            side_effect=stripe.SignatureVerificationError("bad", "sig"),
        ):
            with pytest.raises(AuthenticationError, match="Signature Stripe invalide"):
                payment_service.construct_event(b"{}", "t=1,v1=abc")

    @pytest.mark.asyncio
    async def test_unhandled_event_is_acknowledged(self, mock_db_session):
        event = {"type": "customer.created", "data": {"object": {}}}
        with patch.object(stripe.Webhook, "construct_event", return_value=event):
            result = await payment_service.handle_webhook(mock_db_session, b"{}", "sig")
        assert result.received is True
        mock_db_session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_payment_without_facture_is_ignored(self, mock_db_session):
        event = {"type": "payment_intent.payment_failed", "data": {"object": {"metadata": {}}}}
        with patch.object(stripe.Webhook, "construct_event", return_value=event):
            result = await payment_service.handle_webhook(mock_db_session, b"{}", "sig")
        assert result.received is True

    @pytest.mark.asyncio
    async def test_checkout_without_facture_is_acknowledged(self, mock_db_session):
        event = {"type": "checkout.session.completed", "data": {"object": {"id": "cs_1", "metadata": {}}}}
        with patch.object(stripe.Webhook, "construct_event", return_value=event):
            result = await payment_service.handle_webhook(mock_db_session, b"{}", "sig")
        assert result.received is True
        mock_db_session.flush.assert_not_called()


class TestInvoiceConstraints:

    @pytest.mark.asyncio
    async def test_numero_violation_is_reported_as_duplicate(self, mock_db_session):
        mock_db_session.flush.side_effect = IntegrityError(
            "INSERT", {}, Exception("UNIQUE constraint failed: facture.numero")
        )
        with pytest.raises(ValidationError, match="déjà utilisé"):
            await facture_service._flush_unique(mock_db_session)

    @pytest.mark.asyncio
    async def test_other_violations_are_database_errors(self, mock_db_session):
        mock_db_session.flush.side_effect = IntegrityError(
            "UPDATE", {}, Exception("NOT NULL constraint failed: facture.montant_ht")
        )
        with pytest.raises(DatabaseError):
            await facture_service._flush_unique(mock_db_session)


class TestStripeCalls:

    @pytest.mark.asyncio
    async def test_unconfigured_stripe(self):
        with patch.object(settings, "stripe_secret_key", ""):
            with pytest.raises(PaymentServiceError, match="pas configuré"):
                await payment_service._call("account.create", stripe.Account.create)

    @pytest.mark.asyncio
    async def test_stripe_error_becomes_payment_error(self):
        failing = AsyncMock(side_effect=stripe.APIConnectionError("network down"))
        with patch.object(settings, "stripe_secret_key", "sk_test_123"), \
             patch("extrabeam.services.payment_service.asyncio.to_thread", failing):
            with pytest.raises(PaymentServiceError):
                await payment_service._call("account.create", stripe.Account.create)
