"""
ExtraBeam Backend - Calendar Route Tests
========================================

Slots and unavailability rules of an entreprise: owner writes, visitor
reads, window filters and recurrence expansion over HTTP.
"""

import pytest

from tests_helpers import SLOT_AFTERNOON, SLOT_MORNING

SLOTS = "/api/entreprises/jeanne-dupont/slots"
RULES = "/api/entreprises/jeanne-dupont/unavailabilities"


class TestSlots:

    @pytest.mark.asyncio
    async def test_owner_creates_free_slot(self, test_client, freelance_account):
        response = await test_client.post(SLOTS, json=SLOT_MORNING, headers=freelance_account["headers"])
        assert response.status_code == 201
        slot = response.json()["slot"]
        assert slot["title"] == "Matin"
        assert slot["mission_id"] is None

    @pytest.mark.asyncio
    async def test_visitor_cannot_create(self, test_client, freelance_account):
        response = await test_client.post(SLOTS, json=SLOT_MORNING)
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_stranger_cannot_create(self, test_client, freelance_account, other_freelance_account):
        response = await test_client.post(SLOTS, json=SLOT_MORNING, headers=other_freelance_account["headers"])
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_inverted_range_rejected(self, test_client, freelance_account):
        response = await test_client.post(
            SLOTS,
            json={"start": SLOT_MORNING["end"], "end": SLOT_MORNING["start"]},
            headers=freelance_account["headers"],
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_foreign_mission_rejected(self, test_client, freelance_account):
        response = await test_client.post(
            SLOTS, json=dict(SLOT_MORNING, mission_id=9999), headers=freelance_account["headers"]
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Mission invalide"

    @pytest.mark.asyncio
    async def test_window_filter(self, test_client, freelance_account):
        headers = freelance_account["headers"]
        await test_client.post(SLOTS, json=SLOT_MORNING, headers=headers)
        await test_client.post(SLOTS, json=SLOT_AFTERNOON, headers=headers)

        response = await test_client.get(SLOTS, params={"from": "2030-05-06T13:00:00Z"})
        assert [s["start"][:16] for s in response.json()["slots"]] == ["2030-05-06T14:00"]

    @pytest.mark.asyncio
    async def test_visitor_sees_free_slots_without_status(self, test_client, freelance_account):
        await test_client.post(SLOTS, json=SLOT_MORNING, headers=freelance_account["headers"])
        response = await test_client.get(SLOTS)
        slots = response.json()["slots"]
        assert len(slots) == 1
        assert "status_slot" not in slots[0]

    @pytest.mark.asyncio
    async def test_owner_sees_status(self, test_client, freelance_account):
        await test_client.post(SLOTS, json=SLOT_MORNING, headers=freelance_account["headers"])
        response = await test_client.get(SLOTS, headers=freelance_account["headers"])
        assert response.json()["slots"][0]["status_slot"] == "active"

    @pytest.mark.asyncio
    async def test_update_and_delete(self, test_client, freelance_account):
        headers = freelance_account["headers"]
        created = await test_client.post(SLOTS, json=SLOT_MORNING, headers=headers)
        slot_id = created.json()["slot"]["id"]

        updated = await test_client.put(f"{SLOTS}/{slot_id}", json={"title": "Garde"}, headers=headers)
        assert updated.json()["slot"]["title"] == "Garde"

        deleted = await test_client.delete(f"{SLOTS}/{slot_id}", headers=headers)
        assert deleted.json() == {"message": "Slot supprimé"}

        missing = await test_client.delete(f"{SLOTS}/{slot_id}", headers=headers)
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_update_cannot_invert_range(self, test_client, freelance_account):
        headers = freelance_account["headers"]
        created = await test_client.post(SLOTS, json=SLOT_MORNING, headers=headers)
        slot_id = created.json()["slot"]["id"]

        response = await test_client.put(
            f"{SLOTS}/{slot_id}", json={"end": "2030-05-06T08:00:00Z"}, headers=headers
        )
        assert response.status_code == 400


class TestUnavailabilities:

    WEEKLY_RULE = {
        "title": "Cours du mercredi",
        "start_date": "2030-05-01",
        "start_time": "09:00",
        "end_time": "12:00",
        "recurrence_type": "weekly",
        "recurrence_end": "2030-05-31",
        "exceptions": ["2030-05-15"],
    }

    @pytest.mark.asyncio
    async def test_weekly_rule_expansion(self, test_client, freelance_account):
        created = await test_client.post(RULES, json=self.WEEKLY_RULE, headers=freelance_account["headers"])
        assert created.status_code == 201
        # 2030-05-01 is a Wednesday
        assert created.json()["unavailability"]["weekday"] == 3

        response = await test_client.get(RULES, params={"start": "2030-05-01", "end": "2030-05-31"})
        days = [u["start_date"] for u in response.json()["unavailabilities"]]
        assert days == ["2030-05-01", "2030-05-08", "2030-05-22", "2030-05-29"]

    @pytest.mark.asyncio
    async def test_window_is_required(self, test_client, freelance_account):
        response = await test_client.get(RULES, params={"start": "2030-05-01"})
        assert response.status_code == 400
        assert response.json()["message"] == "Paramètres start et end requis"

    @pytest.mark.asyncio
    async def test_missing_times(self, test_client, freelance_account):
        response = await test_client.post(
            RULES, json={"start_date": "2030-05-01"}, headers=freelance_account["headers"]
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_recurrence(self, test_client, freelance_account):
        response = await test_client.post(
            RULES, json=dict(self.WEEKLY_RULE, recurrence_type="yearly"), headers=freelance_account["headers"]
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_update_merges_and_delete(self, test_client, freelance_account):
        headers = freelance_account["headers"]
        created = await test_client.post(RULES, json=self.WEEKLY_RULE, headers=headers)
        rule_id = created.json()["unavailability"]["id"]

        updated = await test_client.put(
            f"{RULES}/{rule_id}", json={"title": "Formation", "exceptions": []}, headers=headers
        )
        rule = updated.json()["unavailability"]
        assert rule["title"] == "Formation"
        assert rule["recurrence_type"] == "weekly"
        assert rule["exceptions"] == []

        deleted = await test_client.delete(f"{RULES}/{rule_id}", headers=headers)
        assert deleted.status_code == 200

        again = await test_client.delete(f"{RULES}/{rule_id}", headers=headers)
        assert again.status_code == 404

    @pytest.mark.asyncio
    async def test_rules_appear_in_overview(self, test_client, freelance_account):
        await test_client.post(RULES, json=self.WEEKLY_RULE, headers=freelance_account["headers"])
        response = await test_client.get("/api/entreprises/jeanne-dupont/overview")
        assert [u["title"] for u in response.json()["unavailabilities"]] == ["Cours du mercredi"]
