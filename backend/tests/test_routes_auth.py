"""
ExtraBeam Backend - Auth & Profile Route Tests
==============================================

Registration, login, the /me endpoints and the back-office token, through
the full FastAPI stack (middleware, exception handlers, SQLite database).
"""

import pytest

from tests_helpers import FREELANCE_PAYLOAD


class TestRegister:

    @pytest.mark.asyncio
    async def test_freelance_gets_an_entreprise(self, test_client):
        response = await test_client.post("/api/auth/register", json=FREELANCE_PAYLOAD)

        assert response.status_code == 201
        body = response.json()
        assert body["user"]["role"] == "freelance"
        assert body["user"]["slug"] == "jeanne-dupont"
        assert body["entreprise"]["taux_horaire"] == 30
        assert body["entreprise"]["mention_tva"] == "TVA non applicable, art. 293 B du CGI"
        assert body["profile"]["first_name"] == "Jeanne"

    @pytest.mark.asyncio
    async def test_homonyms_get_suffixed_slugs(self, test_client, freelance_account):
        payload = dict(FREELANCE_PAYLOAD, email="jeanne2@example.com")
        response = await test_client.post("/api/auth/register", json=payload)
        assert response.json()["user"]["slug"] == "jeanne-dupont-1"

    @pytest.mark.asyncio
    async def test_client_has_no_entreprise(self, client_account):
        assert client_account["entreprise"] is None
        assert client_account["slug"] is None

    @pytest.mark.asyncio
    async def test_duplicate_email(self, test_client, freelance_account):
        payload = dict(FREELANCE_PAYLOAD, email="JEANNE@example.com")
        response = await test_client.post("/api/auth/register", json=payload)
        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides",
        [
            {"password": "123"},
            {"role": "admin"},
            {"entreprise": {"nom": "Dupont"}},
            {"email": None},
        ],
    )
    async def test_invalid_payloads(self, test_client, overrides):
        response = await test_client.post("/api/auth/register", json=dict(FREELANCE_PAYLOAD, **overrides))
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_returns_entreprise_identity(self, test_client, freelance_account):
        response = await test_client.post(
            "/api/auth/login", json={"email": "jeanne@example.com", "password": "secret123"}
        )
        assert response.status_code == 200
        user = response.json()["user"]
        assert user["slug"] == "jeanne-dupont"
        assert (user["nom"], user["prenom"]) == ("Dupont", "Jeanne")

    @pytest.mark.asyncio
    async def test_wrong_password(self, test_client, freelance_account):
        response = await test_client.post(
            "/api/auth/login", json={"email": "jeanne@example.com", "password": "wrong-one"}
        )
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_missing_fields(self, test_client):
        response = await test_client.post("/api/auth/login", json={"email": "a@b.c"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_me(self, test_client, freelance_account):
        response = await test_client.get("/api/auth/me", headers=freelance_account["headers"])
        assert response.status_code == 200
        user = response.json()["user"]
        assert user["id"] == freelance_account["id"]
        assert user["slug"] == "jeanne-dupont"

    @pytest.mark.asyncio
    async def test_me_requires_token(self, test_client):
        response = await test_client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json()["message"] == "Authentification requise"

    @pytest.mark.asyncio
    async def test_garbage_token(self, test_client):
        response = await test_client.get("/api/auth/me", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_logout(self, test_client):
        response = await test_client.post("/api/auth/logout")
        assert response.json() == {"message": "Déconnecté avec succès"}


class TestAdminLogin:

    @pytest.mark.asyncio
    async def test_admin_token_is_admin(self, test_client, admin_headers):
        response = await test_client.get("/api/auth/me", headers=admin_headers)
        assert response.json()["user"]["role"] == "admin"

    @pytest.mark.asyncio
    async def test_wrong_admin_password(self, test_client):
        response = await test_client.post("/api/login", json={"password": "guess"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_missing_admin_password(self, test_client):
        response = await test_client.post("/api/login", json={})
        assert response.status_code == 400


class TestProfiles:

    @pytest.mark.asyncio
    async def test_get_my_profile(self, test_client, client_account):
        response = await test_client.get("/api/profiles/me", headers=client_account["headers"])
        assert response.status_code == 200
        profile = response.json()["profile"]
        assert profile["role"] == "client"
        assert profile["first_name"] == "Claire"

    @pytest.mark.asyncio
    async def test_update_requires_role(self, test_client, client_account):
        response = await test_client.put(
            "/api/profiles/me", json={"phone": "0600000000"}, headers=client_account["headers"]
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_cannot_self_promote_to_admin(self, test_client, client_account, freelance_account):
        response = await test_client.put(
            "/api/profiles/me", json={"role": "admin"}, headers=client_account["headers"]
        )
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "role"

        me = await test_client.get("/api/profiles/me", headers=client_account["headers"])
        assert me.json()["profile"]["role"] == "client"

        response = await test_client.put(
            f"/api/entreprises/{freelance_account['slug']}",
            json={"taux_horaire": 1},
            headers=client_account["headers"],
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_becoming_freelance_creates_an_entreprise(self, test_client, client_account):
        response = await test_client.put(
            "/api/profiles/me", json={"role": "freelance"}, headers=client_account["headers"]
        )
        assert response.status_code == 200
        assert response.json()["profile"]["slug"] == "claire-client"

        listing = await test_client.get("/api/entreprises")
        assert [e["slug"] for e in listing.json()["entreprises"]] == ["claire-client"]
