"""
ExtraBeam Backend - Mission Route Tests
=======================================

Mission creation by each kind of caller, listing filters, access rules,
slot replacement and status changes.
"""

from unittest.mock import AsyncMock, patch

import pytest

from extrabeam.services.mailer_service import mailer_service
from tests_helpers import SLOT_AFTERNOON, SLOT_MORNING


async def create_mission(client, account, **fields):
    payload = {"etablissement": "Clinique du Parc", "slots": [SLOT_MORNING]}
    payload.update(fields)
    response = await client.post("/api/missions", json=payload, headers=account["headers"])
    assert response.status_code == 201, response.text
    return response.json()["mission"]


class TestCreate:

    @pytest.mark.asyncio
    async def test_freelance_creates_for_own_entreprise(self, test_client, freelance_account):
        mission = await create_mission(test_client, freelance_account, mode="salarié")
        assert mission["status"] == "proposed"
        assert mission["mode"] == "salarié"
        assert mission["entreprise"]["slug"] == "jeanne-dupont"
        assert len(mission["slots"]) == 1
        assert mission["slots"][0]["entreprise_id"] == freelance_account["entreprise"]["id"]

    @pytest.mark.asyncio
    async def test_freelance_cannot_target_another_entreprise(
        self, test_client, freelance_account, other_freelance_account
    ):
        response = await test_client.post(
            "/api/missions",
            json={"entrepriseRef": "marc-martin", "etablissement": "X"},
            headers=freelance_account["headers"],
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_invalid_mode(self, test_client, freelance_account):
        response = await test_client.post(
            "/api/missions", json={"mode": "bénévole"}, headers=freelance_account["headers"]
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_client_proposal_is_forced_to_proposed(self, test_client, freelance_account, client_account):
        mission = await create_mission(
            test_client, client_account, entrepriseRef="jeanne-dupont", status="validated"
        )
        assert mission["status"] == "proposed"
        assert mission["client_id"] == client_account["id"]
        assert mission["client"]["email"] == "client@example.com"

    @pytest.mark.asyncio
    async def test_client_proposal_notifies_the_entreprise(self, test_client, freelance_account, client_account):
        send = AsyncMock(return_value={})
        with patch.object(mailer_service, "send_raw_email", new=send):
            await create_mission(test_client, client_account, entrepriseRef="jeanne-dupont")

        to, subject = send.await_args.args[:2]
        assert to == "jeanne@example.com"
        assert subject == "📢 Nouvelle mission proposée par Claire Client"
        assert send.await_args.kwargs["reply_to"] == "client@example.com"

    @pytest.mark.asyncio
    async def test_visitor_request_from_public_page(self, test_client, freelance_account):
        send = AsyncMock(return_value={})
        with patch.object(mailer_service, "send_raw_email", new=send):
            response = await test_client.post(
                "/api/entreprises/jeanne-dupont/missions",
                json={
                    "contact_name": "Paul",
                    "contact_email": "paul@example.com",
                    "status": "paid",
                    "slots": [SLOT_MORNING],
                },
            )

        assert response.status_code == 201
        mission = response.json()["mission"]
        assert mission["status"] == "proposed"
        assert mission["client_id"] is None

        recipients = [call.args[0] for call in send.await_args_list]
        assert recipients == ["jeanne@example.com", "paul@example.com"]

    @pytest.mark.asyncio
    async def test_public_request_survives_mail_outage(self, test_client, freelance_account):
        response = await test_client.post(
            "/api/entreprises/jeanne-dupont/missions",
            json={"contact_email": "paul@example.com", "slots": [SLOT_MORNING]},
        )
        # BREVO_API_KEY is unset in the test environment
        assert response.status_code == 201


class TestList:

    @pytest.mark.asyncio
    async def test_entreprise_listing_with_status_filter(self, test_client, freelance_account):
        await create_mission(test_client, freelance_account)
        await create_mission(test_client, freelance_account, status="validated")

        response = await test_client.get(
            "/api/missions", params={"status": "validated"}, headers=freelance_account["headers"]
        )
        missions = response.json()["missions"]
        assert [m["status"] for m in missions] == ["validated"]

    @pytest.mark.asyncio
    async def test_pagination(self, test_client, freelance_account):
        for _ in range(3):
            await create_mission(test_client, freelance_account)

        response = await test_client.get(
            "/api/missions", params={"page": 2, "size": 2}, headers=freelance_account["headers"]
        )
        assert len(response.json()["missions"]) == 1

    @pytest.mark.asyncio
    async def test_client_sees_own_missions_only(
        self, test_client, freelance_account, client_account
    ):
        await create_mission(test_client, freelance_account)
        await create_mission(test_client, client_account, entrepriseRef="jeanne-dupont")

        response = await test_client.get("/api/missions", headers=client_account["headers"])
        missions = response.json()["missions"]
        assert len(missions) == 1
        assert missions[0]["client_id"] == client_account["id"]

    @pytest.mark.asyncio
    async def test_invalid_week(self, test_client, freelance_account):
        response = await test_client.get(
            "/api/missions", params={"week": "soon"}, headers=freelance_account["headers"]
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Paramètre week invalide"

    @pytest.mark.asyncio
    async def test_invalid_status(self, test_client, freelance_account):
        response = await test_client.get(
            "/api/missions", params={"status": "archived"}, headers=freelance_account["headers"]
        )
        assert response.status_code == 400


class TestAccess:

    @pytest.mark.asyncio
    async def test_owner_reads(self, test_client, freelance_account):
        mission = await create_mission(test_client, freelance_account)
        response = await test_client.get(f"/api/missions/{mission['id']}", headers=freelance_account["headers"])
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_other_entreprise_forbidden(self, test_client, freelance_account, other_freelance_account):
        mission = await create_mission(test_client, freelance_account)
        response = await test_client.get(
            f"/api/missions/{mission['id']}", headers=other_freelance_account["headers"]
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_foreign_client_forbidden(self, test_client, freelance_account, client_account):
        mission = await create_mission(test_client, freelance_account)
        response = await test_client.get(f"/api/missions/{mission['id']}", headers=client_account["headers"])
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_mission(self, test_client, freelance_account):
        response = await test_client.get("/api/missions/9999", headers=freelance_account["headers"])
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_client_cannot_change_status(self, test_client, freelance_account, client_account):
        mission = await create_mission(test_client, client_account, entrepriseRef="jeanne-dupont")
        response = await test_client.post(
            f"/api/missions/{mission['id']}/status",
            json={"status": "validated"},
            headers=client_account["headers"],
        )
        assert response.status_code == 403


class TestChanges:

    @pytest.mark.asyncio
    async def test_slots_are_replaced(self, test_client, freelance_account):
        mission = await create_mission(test_client, freelance_account)
        response = await test_client.put(
            f"/api/missions/{mission['id']}",
            json={"instructions": "Badge à l'accueil", "slots": [SLOT_AFTERNOON, SLOT_MORNING]},
            headers=freelance_account["headers"],
        )
        body = response.json()["mission"]
        assert body["instructions"] == "Badge à l'accueil"
        assert len(body["slots"]) == 2

    @pytest.mark.asyncio
    async def test_omitted_slots_are_kept(self, test_client, freelance_account):
        mission = await create_mission(test_client, freelance_account)
        response = await test_client.put(
            f"/api/missions/{mission['id']}",
            json={"contact_name": "Paul"},
            headers=freelance_account["headers"],
        )
        assert len(response.json()["mission"]["slots"]) == 1

    @pytest.mark.asyncio
    async def test_status_change_notifies_client(self, test_client, freelance_account, client_account):
        mission = await create_mission(test_client, client_account, entrepriseRef="jeanne-dupont")
        send = AsyncMock(return_value={})
        with patch.object(mailer_service, "send_raw_email", new=send):
            response = await test_client.post(
                f"/api/missions/{mission['id']}/status",
                json={"status": "validated"},
                headers=freelance_account["headers"],
            )

        assert response.json()["mission"]["status"] == "validated"
        assert send.await_args.args[0] == "client@example.com"

    @pytest.mark.asyncio
    async def test_unknown_status(self, test_client, freelance_account):
        mission = await create_mission(test_client, freelance_account)
        response = await test_client.post(
            f"/api/missions/{mission['id']}/status",
            json={"status": "done"},
            headers=freelance_account["headers"],
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_delete_removes_slots(self, test_client, freelance_account):
        mission = await create_mission(test_client, freelance_account)
        headers = freelance_account["headers"]

        response = await test_client.delete(f"/api/missions/{mission['id']}", headers=headers)
        assert response.json() == {"success": True}

        slots = await test_client.get("/api/entreprises/jeanne-dupont/slots", headers=headers)
        assert slots.json()["slots"] == []
