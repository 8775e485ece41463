"""
ExtraBeam Backend - Mail & Notification Unit Tests
==================================================

What:  Circuit breaker state machine, Brevo mailer (retries, rejections,
       breaker), template rendering and notification delivery modes.
How:   httpx.AsyncClient is replaced by a mock; no network access.

Test Strategy:
    ✅ Breaker opens at threshold, half-opens after the timeout, recovers
    ✅ Transient Brevo errors are retried, permanent ones are not
    ✅ Best-effort notifications swallow delivery errors, strict ones raise
    ✅ Interpolated values are HTML-escaped
"""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from extrabeam.config import settings
from extrabeam.exceptions import CircuitBreakerOpenError, EmailDeliveryError
from extrabeam.models.account import Profile
from extrabeam.models.entreprise import Entreprise
from extrabeam.models.facture import Facture
from extrabeam.models.mission import Mission
from extrabeam.services import email_templates
from extrabeam.services.circuit_breaker import CircuitBreaker
from extrabeam.services.mailer_service import mailer_service
from extrabeam.services.notification_service import (
    client_email_for_facture,
    client_email_for_mission,
    display_name,
    notification_service,
)


def fake_http_client(*responses):
    """Patchable stand-in for httpx.AsyncClient answering `responses` in order."""
    client = MagicMock()
    client.post = AsyncMock(side_effect=list(responses))
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=client)
    context.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=context), client


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker
# ══════════════════════════════════════════════════════════════════════════

class TestCircuitBreaker:

    def test_opens_after_threshold(self):
        breaker = CircuitBreaker("test", failure_threshold=3, recovery_timeout=60)
        for _ in range(2):
            breaker.record_failure()
        assert breaker.state == CircuitBreaker.CLOSED
        breaker.record_failure()
        assert breaker.state == CircuitBreaker.OPEN
        with pytest.raises(CircuitBreakerOpenError):
            breaker.can_execute()

    def test_half_open_after_timeout(self):
        breaker = CircuitBreaker("test", failure_threshold=1, recovery_timeout=30)
        with patch("extrabeam.services.circuit_breaker.time.time", return_value=1000.0):
            breaker.record_failure()
        with patch("extrabeam.services.circuit_breaker.time.time", return_value=1031.0):
            assert breaker.can_execute() is True
        assert breaker.state == CircuitBreaker.HALF_OPEN

    def test_half_open_failure_reopens(self):
        breaker = CircuitBreaker("test", failure_threshold=5)
        breaker.state = CircuitBreaker.HALF_OPEN
        breaker.record_failure()
        assert breaker.state == CircuitBreaker.OPEN

    def test_success_resets(self):
        breaker = CircuitBreaker("test", failure_threshold=2)
        breaker.record_failure()
        breaker.record_success()
        assert breaker.failure_count == 0
        assert breaker.state == CircuitBreaker.CLOSED


# ══════════════════════════════════════════════════════════════════════════
# Brevo Mailer
# ══════════════════════════════════════════════════════════════════════════

class TestMailer:

    @pytest.fixture(autouse=True)
    def _configured(self):
        mailer_service.circuit_breaker.record_success()
        with patch.object(settings, "brevo_api_key", "xkeysib-test"):
            yield
        mailer_service.circuit_breaker.record_success()

    def test_build_payload(self):
        payload = mailer_service.build_payload("a@b.c", "Hello", "<p>hi</p>", reply_to="r@b.c")
        assert payload["to"] == [{"email": "a@b.c"}]
        assert payload["htmlContent"] == "<p>hi</p>"
        assert payload["replyTo"] == {"email": "r@b.c"}
        assert "replyTo" not in mailer_service.build_payload("a@b.c", "Hello", "x")

    @pytest.mark.asyncio
    async def test_unconfigured(self):
        with patch.object(settings, "brevo_api_key", ""):
            with pytest.raises(EmailDeliveryError, match="pas configuré"):
                await mailer_service.send_raw_email("a@b.c", "s", "h")

    @pytest.mark.asyncio
    async def test_success_sends_api_key(self):
        client_class, client = fake_http_client(httpx.Response(201, json={"messageId": "<m1>"}))
        with patch("extrabeam.services.mailer_service.httpx.AsyncClient", client_class):
            result = await mailer_service.send_raw_email("a@b.c", "s", "h")

        assert result == {"messageId": "<m1>"}
        headers = client.post.call_args.kwargs["headers"]
        assert headers["api-key"] == "xkeysib-test"

    @pytest.mark.asyncio
    async def test_transient_error_is_retried(self):
        client_class, client = fake_http_client(
            httpx.Response(503, text="busy"),
            httpx.Response(201, json={"messageId": "<m2>"}),
        )
        with patch("extrabeam.services.mailer_service.httpx.AsyncClient", client_class):
            result = await mailer_service.send_raw_email("a@b.c", "s", "h")

        assert result["messageId"] == "<m2>"
        assert client.post.await_count == 2

    @pytest.mark.asyncio
    async def test_exhausted_retries_count_against_breaker(self):
        client_class, client = fake_http_client(
            httpx.Response(500, text="down"),
            httpx.Response(500, text="down"),
        )
        with patch("extrabeam.services.mailer_service.httpx.AsyncClient", client_class):
            with pytest.raises(EmailDeliveryError) as exc_info:
                await mailer_service.send_raw_email("a@b.c", "s", "h")

        assert exc_info.value.retry_after == mailer_service.circuit_breaker.recovery_timeout
        assert mailer_service.circuit_breaker.failure_count == 1

    @pytest.mark.asyncio
    async def test_rejection_is_not_retried(self):
        client_class, client = fake_http_client(httpx.Response(400, text="invalid email"))
        with patch("extrabeam.services.mailer_service.httpx.AsyncClient", client_class):
            with pytest.raises(EmailDeliveryError, match="400"):
                await mailer_service.send_raw_email("not-an-email", "s", "h")

        assert client.post.await_count == 1
        assert mailer_service.circuit_breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_open_breaker_fails_fast(self):
        mailer_service.circuit_breaker.state = CircuitBreaker.OPEN
        mailer_service.circuit_breaker.last_failure_time = 10**12
        client_class, client = fake_http_client()
        with patch("extrabeam.services.mailer_service.httpx.AsyncClient", client_class):
            with pytest.raises(CircuitBreakerOpenError):
                await mailer_service.send_raw_email("a@b.c", "s", "h")
        client.post.assert_not_called()


# ══════════════════════════════════════════════════════════════════════════
# Templates
# ══════════════════════════════════════════════════════════════════════════

class TestTemplates:

    def test_values_are_escaped(self):
        entreprise = Entreprise(nom="<b>Dupont</b>")
        mission = Mission(etablissement="Café <script>", status="proposed", slots=[])
        rendered = email_templates.mission_created_by_visitor(entreprise, mission)
        assert "<script>" not in rendered.html
        assert "&lt;script&gt;" in rendered.html
        assert "&lt;b&gt;Dupont&lt;/b&gt;" in rendered.html

    def test_layout_footer(self):
        assert "Envoyé par <b>ExtraBeam</b>" in email_templates.wrap("Titre", "<p>x</p>")

    def test_billing_link_only_while_pending(self):
        entreprise = Entreprise(nom="Dupont")
        pending = Facture(numero="F-1", status="pending_payment", payment_link="https://pay/1")
        paid = Facture(numero="F-1", status="paid", payment_link="https://pay/1")
        assert "https://pay/1" in email_templates.billing_status_changed(entreprise, pending).html
        assert "https://pay/1" not in email_templates.billing_status_changed(entreprise, paid).html
        assert email_templates.billing_status_changed(entreprise, paid).subject == "💳 Facture F-1 → paid"

    def test_payment_link_without_link(self):
        rendered = email_templates.payment_link(Facture(numero="F-2"), None)
        assert "indisponible" in rendered.html


# ══════════════════════════════════════════════════════════════════════════
# Notifications
# ══════════════════════════════════════════════════════════════════════════

class TestRecipients:

    def test_client_account_wins_over_contact(self):
        mission = Mission(contact_email="contact@x.fr", client=Profile(email="client@x.fr"))
        assert client_email_for_mission(mission) == "client@x.fr"

    def test_contact_email_fallback(self):
        assert client_email_for_mission(Mission(contact_email="contact@x.fr")) == "contact@x.fr"
        assert client_email_for_mission(None) is None

    def test_facture_falls_back_to_its_contact(self):
        facture = Facture(contact_email="billing@x.fr", mission=None)
        assert client_email_for_facture(facture) == "billing@x.fr"

    def test_display_name(self):
        assert display_name(Profile(first_name="Claire", last_name="Client")) == "Claire Client"
        assert display_name(Profile(email="c@x.fr")) == "c@x.fr"
        assert display_name(None) is None


class TestDelivery:

    @pytest.mark.asyncio
    async def test_best_effort_swallows_delivery_errors(self):
        mission = Mission(contact_email="contact@x.fr", status="validated", slots=[])
        with patch.object(
            mailer_service, "send_raw_email", new=AsyncMock(side_effect=EmailDeliveryError())
        ):
            assert await notification_service.mission_status_changed(mission, None) is False

    @pytest.mark.asyncio
    async def test_strict_propagates_delivery_errors(self):
        mission = Mission(contact_email="contact@x.fr", status="validated", slots=[])
        with patch.object(
            mailer_service, "send_raw_email", new=AsyncMock(side_effect=EmailDeliveryError())
        ):
            with pytest.raises(EmailDeliveryError):
                await notification_service.mission_status_changed(mission, None, strict=True)

    @pytest.mark.asyncio
    async def test_no_recipient_skips_sending(self):
        send = AsyncMock()
        with patch.object(mailer_service, "send_raw_email", new=send):
            assert await notification_service.mission_status_changed(Mission(slots=[]), None) is False
        send.assert_not_called()

    @pytest.mark.asyncio
    async def test_facture_created_sends_payment_link_too(self):
        facture = Facture(numero="F-3", contact_email="billing@x.fr", payment_link="https://pay/3", mission=None)
        send = AsyncMock(return_value={})
        with patch.object(mailer_service, "send_raw_email", new=send):
            assert await notification_service.facture_created(facture, Entreprise(nom="Dupont")) is True

        subjects = [call.args[1] for call in send.await_args_list]
        assert subjects == ["🧾 Nouvelle facture F-3", "💳 Paiement en ligne – Facture F-3"]
