"""
ExtraBeam Backend - Health, Upload & Middleware Route Tests
===========================================================
"""

from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient

from extrabeam.config import settings
from extrabeam.main import create_app
from extrabeam.services.circuit_breaker import CircuitBreaker
from extrabeam.services.mailer_service import mailer_service


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")
        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["mailer"] == "closed"

    @pytest.mark.asyncio
    async def test_open_mail_circuit_degrades(self, test_client):
        mailer_service.circuit_breaker.state = CircuitBreaker.OPEN
        try:
            response = await test_client.get("/health")
        finally:
            mailer_service.circuit_breaker.record_success()
        assert response.json()["status"] == "degraded"

    @pytest.mark.asyncio
    async def test_api_health(self, test_client):
        body = (await test_client.get("/api/health")).json()
        assert body["ok"] is True
        assert body["method"] == "GET"

    @pytest.mark.asyncio
    async def test_request_id_header(self, test_client):
        response = await test_client.get("/api/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["x-request-id"] == "req-123"

    @pytest.mark.asyncio
    async def test_error_body_carries_request_id(self, test_client):
        response = await test_client.get("/api/entreprises/public/nobody", headers={"X-Request-ID": "req-404"})
        assert response.json()["request_id"] == "req-404"


class TestUploads:

    @pytest.mark.asyncio
    async def test_signed_upload_then_download(self, test_client, freelance_account):
        signed = await test_client.post(
            "/api/uploads/put-signed-url",
            json={"bucket": "avatars", "path": "jeanne/photo.png"},
            headers=freelance_account["headers"],
        )
        assert signed.status_code == 200
        token = signed.json()["token"]
        assert signed.json()["url"] == f"http://test/api/uploads/signed/{token}"

        uploaded = await test_client.put(f"/api/uploads/signed/{token}", content=b"\x89PNG fake image")
        assert uploaded.status_code == 200
        assert uploaded.json() == {
            "path": "avatars/jeanne/photo.png",
            "publicUrl": "http://test/api/files/avatars/jeanne/photo.png",
        }

        served = await test_client.get("/api/files/avatars/jeanne/photo.png")
        assert served.status_code == 200
        assert served.content == b"\x89PNG fake image"
        assert served.headers["cache-control"] == "public, max-age=86400"

    @pytest.mark.asyncio
    async def test_public_url(self, test_client, client_account):
        response = await test_client.post(
            "/api/uploads/public-url",
            json={"bucket": "devis", "path": "mission-1/devis.pdf"},
            headers=client_account["headers"],
        )
        assert response.json() == {"publicUrl": "http://test/api/files/devis/mission-1/devis.pdf"}

    @pytest.mark.asyncio
    async def test_traversal_rejected(self, test_client, freelance_account):
        response = await test_client.post(
            "/api/uploads/put-signed-url",
            json={"bucket": "avatars", "path": "../../etc/passwd.png"},
            headers=freelance_account["headers"],
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unsupported_extension(self, test_client, freelance_account):
        response = await test_client.post(
            "/api/uploads/put-signed-url",
            json={"bucket": "avatars", "path": "run.sh"},
            headers=freelance_account["headers"],
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_signed_url_requires_login(self, test_client):
        response = await test_client.post(
            "/api/uploads/put-signed-url", json={"bucket": "avatars", "path": "someone/avatar.png"}
        )
        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"

    @pytest.mark.asyncio
    async def test_public_url_requires_login(self, test_client):
        response = await test_client.post(
            "/api/uploads/public-url", json={"bucket": "devis", "path": "mission-1/devis.pdf"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_forged_token(self, test_client):
        response = await test_client.put("/api/uploads/signed/forged", content=b"data")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_missing_file(self, test_client):
        response = await test_client.get("/api/files/avatars/nobody.png")
        assert response.status_code == 404


class TestRateLimit:

    @pytest.mark.asyncio
    async def test_throttled_body_matches_error_shape(self, database):
        # Fresh app: the limiter keeps its counters on the middleware instance
        transport = ASGITransport(app=create_app())
        with patch.object(settings, "rate_limit_requests", 1):
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                first = await client.get("/api/entreprises")
                second = await client.get("/api/entreprises", headers={"X-Request-ID": "req-429"})

        assert first.status_code == 200
        assert second.status_code == 429
        assert second.headers["retry-after"]
        assert second.headers["x-request-id"] == "req-429"
        body = second.json()
        assert body["error"] == "rate_limit_exceeded"
        assert body["request_id"] == "req-429"

    @pytest.mark.asyncio
    async def test_health_is_never_throttled(self, database):
        transport = ASGITransport(app=create_app())
        with patch.object(settings, "rate_limit_requests", 1):
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                responses = [await client.get("/api/health") for _ in range(3)]
        assert [r.status_code for r in responses] == [200, 200, 200]
