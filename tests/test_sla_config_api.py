"""
Tenant SLA configuration and holiday API tests
"""
from datetime import datetime, timedelta
from httpx import AsyncClient


class TestSlaConfig:

    async def test_defaults_without_stored_config(self, client: AsyncClient, headers):
        response = await client.get("/api/v1/sla-config", headers=headers)
        assert response.status_code == 200
        config = response.json()
        assert config["is_default"] is True
        assert config["initial_deadline_days"] == 30
        assert config["due_soon_threshold_days"] == 7
        assert config["extension_max_days"] == 60
        assert config["use_business_days"] is False
        assert [config[f"milestone_{name}_days"] for name in ("idv", "collection", "draft", "legal")] == [7, 14, 21, 25]

    async def test_partial_update(self, client: AsyncClient, headers):
        response = await client.put("/api/v1/sla-config", json={"due_soon_threshold_days": 10}, headers=headers)
        assert response.status_code == 200
        config = response.json()
        assert config["is_default"] is False
        assert config["due_soon_threshold_days"] == 10
        assert config["initial_deadline_days"] == 30

        stored = (await client.get("/api/v1/sla-config", headers=headers)).json()
        assert stored["due_soon_threshold_days"] == 10
        assert stored["is_default"] is False

    async def test_invalid_values_rejected(self, client: AsyncClient, headers):
        response = await client.put("/api/v1/sla-config", json={"initial_deadline_days": 0}, headers=headers)
        assert response.status_code == 422

    async def test_new_sla_applies_only_to_new_cases(self, client: AsyncClient, headers, created_case):
        await client.put("/api/v1/sla-config", json={"initial_deadline_days": 45}, headers=headers)

        response = await client.post("/api/v1/cases", json={"type": "RECTIFICATION"}, headers=headers)
        assert response.json()["deadline"]["base_sla_days"] == 45

        old = (await client.get(f"/api/v1/cases/{created_case['id']}", headers=headers)).json()
        assert old["deadline"]["base_sla_days"] == 30
        assert old["deadline"]["effective_due_at"] == created_case["deadline"]["effective_due_at"]

    async def test_threshold_change_reclassifies_on_read(self, client: AsyncClient, headers, created_case):
        await client.put("/api/v1/sla-config", json={"due_soon_threshold_days": 30}, headers=headers)
        case = (await client.get(f"/api/v1/cases/{created_case['id']}", headers=headers)).json()
        assert case["deadline"]["current_risk"] == "YELLOW"

    async def test_business_day_mode(self, client: AsyncClient, headers):
        await client.put("/api/v1/sla-config", json={"use_business_days": True}, headers=headers)
        response = await client.post("/api/v1/cases", json={"type": "PORTABILITY"}, headers=headers)
        assert response.json()["deadline"]["calendar_policy"] == "BUSINESS_DAYS"

    async def test_milestone_offsets_apply_to_new_cases(self, client: AsyncClient, headers, created_case):
        response = await client.put("/api/v1/sla-config", json={"milestone_idv_days": 3}, headers=headers)
        assert response.json()["milestone_idv_days"] == 3

        response = await client.post(
            "/api/v1/cases", json={"type": "ACCESS", "received_at": "2026-03-02T09:00:00Z"}, headers=headers
        )
        detail = (await client.get(f"/api/v1/cases/{response.json()['id']}/deadline", headers=headers)).json()
        assert detail["milestones"][0]["planned_due_at"] == "2026-03-05T09:00:00Z"

        old = (await client.get(f"/api/v1/cases/{created_case['id']}/deadline", headers=headers)).json()
        idv = datetime.fromisoformat(old["milestones"][0]["planned_due_at"])
        assert idv - datetime.fromisoformat(created_case["received_at"]) == timedelta(days=7)

    async def test_config_is_per_tenant(self, client: AsyncClient, headers):
        await client.put("/api/v1/sla-config", json={"initial_deadline_days": 20}, headers=headers)
        other = (await client.get("/api/v1/sla-config", headers={"X-Tenant-Id": "tenant-b"})).json()
        assert other["initial_deadline_days"] == 30


class TestHolidays:

    async def test_add_list_delete(self, client: AsyncClient, headers):
        response = await client.post(
            "/api/v1/holidays", json={"date": "2026-12-25", "name": "Christmas Day"}, headers=headers
        )
        assert response.status_code == 201
        assert response.json()["locale"] == "DE"

        await client.post(
            "/api/v1/holidays", json={"date": "2027-01-01", "name": "New Year", "locale": "AT"}, headers=headers
        )

        all_days = (await client.get("/api/v1/holidays", headers=headers)).json()
        assert [h["date"] for h in all_days] == ["2026-12-25", "2027-01-01"]

        only_2027 = (await client.get("/api/v1/holidays", params={"year": 2027}, headers=headers)).json()
        assert [h["name"] for h in only_2027] == ["New Year"]

        response = await client.delete("/api/v1/holidays/2026-12-25", headers=headers)
        assert response.status_code == 204
        response = await client.delete("/api/v1/holidays/2026-12-25", headers=headers)
        assert response.status_code == 404

    async def test_duplicate_date_rejected(self, client: AsyncClient, headers):
        body = {"date": "2026-10-03", "name": "Tag der Deutschen Einheit"}
        assert (await client.post("/api/v1/holidays", json=body, headers=headers)).status_code == 201
        response = await client.post("/api/v1/holidays", json=body, headers=headers)
        assert response.status_code == 400

    async def test_holidays_are_per_tenant(self, client: AsyncClient, headers):
        await client.post("/api/v1/holidays", json={"date": "2026-05-01", "name": "Labour Day"}, headers=headers)
        other = (await client.get("/api/v1/holidays", headers={"X-Tenant-Id": "tenant-b"})).json()
        assert other == []

    async def test_holiday_edits_do_not_move_existing_deadlines(self, client: AsyncClient, headers):
        await client.put("/api/v1/sla-config", json={"use_business_days": True}, headers=headers)
        await client.post("/api/v1/holidays", json={"date": "2026-03-04", "name": "Works outing"}, headers=headers)

        response = await client.post(
            "/api/v1/cases", json={"type": "ACCESS", "received_at": "2026-03-02T09:00:00Z"}, headers=headers
        )
        assert response.status_code == 201
        case = response.json()
        # Mon 2 Mar + 30 business days with Wed 4 Mar off
        assert case["deadline"]["effective_due_at"] == "2026-04-14T09:00:00Z"
        assert case["deadline"]["holidays"] == ["2026-03-04"]

        assert (await client.delete("/api/v1/holidays/2026-03-04", headers=headers)).status_code == 204
        await client.post("/api/v1/holidays", json={"date": "2026-03-10", "name": "Strike day"}, headers=headers)

        stored = (await client.get(f"/api/v1/cases/{case['id']}", headers=headers)).json()
        assert stored["deadline"]["effective_due_at"] == "2026-04-14T09:00:00Z"
        detail = (await client.get(f"/api/v1/cases/{case['id']}/deadline", headers=headers)).json()
        assert detail["effective_due_at"] == "2026-04-14T09:00:00Z"
        assert detail["holidays"] == ["2026-03-04"]

        extended = await client.post(
            f"/api/v1/cases/{case['id']}/deadline/extend", json={"extension_days": 1}, headers=headers
        )
        assert extended.json()["case"]["deadline"]["effective_due_at"] == "2026-04-15T09:00:00Z"

        row = (await client.get("/api/v1/reports/sla", headers=headers)).json()["rows"][0]
        assert row["effective_due_at"] == "2026-04-15"

        # a new case picks up the edited calendar
        response = await client.post(
            "/api/v1/cases", json={"type": "ACCESS", "received_at": "2026-03-02T09:00:00Z"}, headers=headers
        )
        assert response.json()["deadline"]["holidays"] == ["2026-03-10"]
