"""
ExtraBeam Backend - Transactional Mail Service (Brevo)
======================================================

What:  Sends HTML e-mails through the Brevo transactional API.
How:   POST {sender, to, subject, htmlContent, replyTo?} to settings.brevo_api_url
       with the `api-key` header, over an httpx.AsyncClient.
Who:   NotificationService (templated notifications) and POST /api/mail/send.

Resilience Strategy:
    1. Tenacity retry with exponential backoff + jitter for transient
       failures (network errors, HTTP 429 and 5xx)
    2. Circuit breaker so a Brevo outage fails fast instead of stalling
       every request that sends a notification
    3. Permanent rejections (other 4xx) are not retried and do not count
       against the circuit: they are caused by the message, not the service
"""

import logging
import uuid
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    RetryError,
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from extrabeam.config import settings
from extrabeam.exceptions import CircuitBreakerOpenError, EmailDeliveryError
from extrabeam.services.circuit_breaker import CircuitBreaker

logger = logging.getLogger(__name__)


class TransientMailError(Exception):
    """Brevo answered 429 or 5xx; the same message may succeed later."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Brevo responded {status_code}")


class MailerService:

    def __init__(self):
        self.circuit_breaker = CircuitBreaker(
            name="brevo",
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )

    @property
    def is_configured(self) -> bool:
        return bool(settings.brevo_api_key)

    def build_payload(
        self,
        to: str,
        subject: str,
        html: str,
        reply_to: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "sender": {
                "name": settings.mail_sender_name,
                "email": settings.mail_sender_email,
            },
            "to": [{"email": to}],
            "subject": subject,
            "htmlContent": html,
        }
        if reply_to:
            payload["replyTo"] = {"email": reply_to}
        return payload

    async def send_raw_email(
        self,
        to: str,
        subject: str,
        html: str,
        reply_to: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Send one e-mail.

        Returns:
            Brevo's JSON answer (contains `messageId`).

        Raises:
            EmailDeliveryError: not configured, rejected, or retries exhausted
            CircuitBreakerOpenError: too many recent delivery failures
        """
        if not self.is_configured:
            raise EmailDeliveryError(
                message="Le service e-mail n'est pas configuré",
                context={"reason": "missing BREVO_API_KEY"},
            )

        self.circuit_breaker.can_execute()

        mail_id = str(uuid.uuid4())[:8]
        payload = self.build_payload(to, subject, html, reply_to)
        logger.info("[%s] Sending mail '%s' to %s", mail_id, subject, to)

        try:
            result = await self._post_with_retry(payload, mail_id)
            self.circuit_breaker.record_success()
            return result

        except (CircuitBreakerOpenError, EmailDeliveryError):
            raise
        except (RetryError, TransientMailError, httpx.HTTPError) as e:
            self.circuit_breaker.record_failure()
            logger.error("[%s] Mail delivery failed after retries: %s", mail_id, str(e))
            raise EmailDeliveryError(
                message="L'envoi de l'e-mail a échoué. Réessayez plus tard.",
                retry_after=self.circuit_breaker.recovery_timeout,
                context={"mail_id": mail_id, "attempts": settings.retry_max_attempts},
            )

    @retry(
        retry=retry_if_exception_type((httpx.TransportError, TransientMailError)),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            multiplier=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _post_with_retry(self, payload: Dict[str, Any], mail_id: str) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=settings.mail_timeout_seconds) as client:
            response = await client.post(
                settings.brevo_api_url,
                json=payload,
                headers={
                    "api-key": settings.brevo_api_key,
                    "accept": "application/json",
                },
            )

        if response.status_code == 429 or response.status_code >= 500:
            logger.warning("[%s] Brevo transient error %d", mail_id, response.status_code)
            raise TransientMailError(response.status_code, response.text)

        if response.status_code >= 400:
            logger.error(
                "[%s] Brevo rejected mail (%d): %s",
                mail_id,
                response.status_code,
                response.text[:500],
            )
            raise EmailDeliveryError(
                message=f"E-mail refusé par le fournisseur ({response.status_code})",
                context={"mail_id": mail_id, "status": response.status_code},
            )

        logger.info("[%s] Mail accepted by Brevo", mail_id)
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {"raw": response.text}


mailer_service = MailerService()
