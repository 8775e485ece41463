"""
ExtraBeam Backend - Entreprise Route Tests
==========================================

Directory, public page, owner/public detail views, edition, deletion, the
overview dashboard and Stripe Connect onboarding (Stripe mocked).
"""

from unittest.mock import patch

import pytest
import stripe

from extrabeam.config import settings
from tests_helpers import SLOT_AFTERNOON, SLOT_MORNING


class TestDirectory:

    @pytest.mark.asyncio
    async def test_list_is_public(self, test_client, freelance_account, other_freelance_account):
        response = await test_client.get("/api/entreprises")
        assert response.status_code == 200
        slugs = [e["slug"] for e in response.json()["entreprises"]]
        assert set(slugs) == {"jeanne-dupont", "marc-martin"}
        assert "iban" not in response.json()["entreprises"][0]

    @pytest.mark.asyncio
    async def test_public_page_by_slug(self, test_client, freelance_account):
        response = await test_client.get("/api/entreprises/public/jeanne-dupont")
        assert response.status_code == 200
        assert response.json()["entreprise"]["nom"] == "Dupont"

    @pytest.mark.asyncio
    async def test_unknown_slug(self, test_client):
        response = await test_client.get("/api/entreprises/public/nobody")
        assert response.status_code == 404
        assert response.json()["message"] == "Entreprise non trouvée"


class TestDetail:

    @pytest.mark.asyncio
    async def test_owner_sees_private_fields(self, test_client, freelance_account):
        response = await test_client.get(
            "/api/entreprises/jeanne-dupont", headers=freelance_account["headers"]
        )
        entreprise = response.json()["entreprise"]
        assert "iban" in entreprise
        assert entreprise["statut_juridique"] == "micro-entreprise"

    @pytest.mark.asyncio
    async def test_visitor_sees_public_fields_and_stripe_account(self, test_client, freelance_account):
        response = await test_client.get("/api/entreprises/jeanne-dupont")
        entreprise = response.json()["entreprise"]
        assert "stripe_account_id" in entreprise
        assert "iban" not in entreprise
        assert "siret" not in entreprise

    @pytest.mark.asyncio
    async def test_other_freelance_is_a_visitor(self, test_client, freelance_account, other_freelance_account):
        response = await test_client.get(
            "/api/entreprises/jeanne-dupont", headers=other_freelance_account["headers"]
        )
        assert "iban" not in response.json()["entreprise"]

    @pytest.mark.asyncio
    async def test_lookup_by_id_and_owner_uuid(self, test_client, freelance_account):
        entreprise_id = freelance_account["entreprise"]["id"]
        by_id = await test_client.get(f"/api/entreprises/{entreprise_id}")
        by_owner = await test_client.get(f"/api/entreprises/{freelance_account['id']}")
        assert by_id.json()["entreprise"]["slug"] == "jeanne-dupont"
        assert by_owner.json()["entreprise"]["slug"] == "jeanne-dupont"


class TestEdition:

    @pytest.mark.asyncio
    async def test_update_normalizes_slug(self, test_client, freelance_account):
        response = await test_client.put(
            "/api/entreprises/jeanne-dupont",
            json={"slug": "Jeanne Dupont Conseil", "ville": "Lyon"},
            headers=freelance_account["headers"],
        )
        assert response.status_code == 200
        entreprise = response.json()["entreprise"]
        assert entreprise["slug"] == "jeanne-dupont-conseil"
        assert entreprise["ville"] == "Lyon"

    @pytest.mark.asyncio
    async def test_slug_conflict(self, test_client, freelance_account, other_freelance_account):
        response = await test_client.put(
            "/api/entreprises/jeanne-dupont",
            json={"slug": "marc-martin"},
            headers=freelance_account["headers"],
        )
        assert response.status_code == 409
        assert response.json()["message"] == "Slug déjà utilisé"

    @pytest.mark.asyncio
    async def test_stranger_cannot_update(self, test_client, freelance_account, other_freelance_account):
        response = await test_client.put(
            "/api/entreprises/jeanne-dupont",
            json={"ville": "Paris"},
            headers=other_freelance_account["headers"],
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_can_update(self, test_client, freelance_account, admin_headers):
        response = await test_client.put(
            "/api/entreprises/jeanne-dupont", json={"taux_horaire": 45}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["entreprise"]["taux_horaire"] == 45

    @pytest.mark.asyncio
    async def test_delete_removes_owned_rows(self, test_client, freelance_account):
        headers = freelance_account["headers"]
        await test_client.post("/api/entreprises/jeanne-dupont/slots", json=SLOT_MORNING, headers=headers)
        await test_client.post(
            "/api/entreprises/jeanne-dupont/cv/skills", json={"name": "Python"}, headers=headers
        )

        response = await test_client.delete("/api/entreprises/jeanne-dupont", headers=headers)
        assert response.status_code == 200
        assert response.json() == {"success": True}

        gone = await test_client.get("/api/entreprises/jeanne-dupont")
        assert gone.status_code == 404


class TestOverview:

    @pytest.mark.asyncio
    async def test_owner_overview(self, test_client, freelance_account):
        headers = freelance_account["headers"]
        await test_client.post(
            "/api/missions",
            json={"etablissement": "Clinique", "slots": [SLOT_MORNING]},
            headers=headers,
        )

        response = await test_client.get("/api/entreprises/jeanne-dupont/overview", headers=headers)
        body = response.json()
        assert body["mode"] == "owner"
        assert len(body["missions"]) == 1
        assert body["factures"] == []
        assert [s["status_slot"] for s in body["slots"]] == ["pending"]
        assert "iban" in body["entreprise"]

    @pytest.mark.asyncio
    async def test_public_overview_hides_pending_missions(self, test_client, freelance_account):
        headers = freelance_account["headers"]
        await test_client.post(
            "/api/missions",
            json={"etablissement": "Clinique", "slots": [SLOT_MORNING]},
            headers=headers,
        )
        await test_client.post(
            "/api/missions",
            json={"etablissement": "Hôpital", "status": "validated", "slots": [SLOT_AFTERNOON]},
            headers=headers,
        )

        response = await test_client.get("/api/entreprises/jeanne-dupont/overview")
        body = response.json()
        assert body["mode"] == "public"
        assert "missions" not in body
        assert "factures" not in body
        assert [s["start"][:16] for s in body["slots"]] == ["2030-05-06T14:00"]
        assert "status_slot" not in body["slots"][0]
        assert "iban" not in body["entreprise"]


class TestConnectStripe:

    @pytest.mark.asyncio
    async def test_creates_account_once(self, test_client, freelance_account):
        headers = freelance_account["headers"]
        with patch.object(settings, "stripe_secret_key", "sk_test_123"), \
             patch.object(stripe.Account, "create", return_value={"id": "acct_123"}) as create, \
             patch.object(stripe.AccountLink, "create", return_value={"url": "https://connect.stripe/x"}):
            first = await test_client.get("/api/entreprises/jeanne-dupont/connect-stripe", headers=headers)
            second = await test_client.get("/api/entreprises/jeanne-dupont/connect-stripe", headers=headers)

        assert first.status_code == 200
        assert first.json()["url"] == "https://connect.stripe/x"
        assert second.status_code == 200
        create.assert_called_once()

        detail = await test_client.get("/api/entreprises/jeanne-dupont")
        assert detail.json()["entreprise"]["stripe_account_id"] == "acct_123"

    @pytest.mark.asyncio
    async def test_without_stripe_key(self, test_client, freelance_account):
        response = await test_client.get(
            "/api/entreprises/jeanne-dupont/connect-stripe", headers=freelance_account["headers"]
        )
        assert response.status_code == 502
