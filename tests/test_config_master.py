"""Configuration master tests: per-type lookups and case-insensitive names."""

from __future__ import annotations

import uuid


async def _create(client, headers, config_type="revenue-type", **body):
    body.setdefault("name", "Subscription")
    return await client.post(f"/api/config/{config_type}", json=body, headers=headers)


class TestConfigMaster:
    async def test_create_and_list(self, client, rmg_headers, auth_headers):
        resp = await _create(client, rmg_headers, name="  Subscription  ", description="Recurring")
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["name"] == "Subscription"
        assert data["status"] == "Active"
        assert data["created_by"] is not None

        resp = await client.get("/api/config/revenue-type", headers=auth_headers)
        assert [c["name"] for c in resp.json()["data"]] == ["Subscription"]

    async def test_name_unique_per_type_ignoring_case(self, client, rmg_headers):
        await _create(client, rmg_headers)
        resp = await _create(client, rmg_headers, name="SUBSCRIPTION")
        assert resp.status_code == 400
        assert resp.json()["message"] == "A revenue-type with this name already exists"

        resp = await _create(client, rmg_headers, config_type="client-type", name="subscription")
        assert resp.status_code == 201

    async def test_blank_name_rejected(self, client, rmg_headers):
        resp = await _create(client, rmg_headers, name="   ")
        assert resp.status_code == 400
        assert resp.json()["message"] == "Name is required"

    async def test_unknown_type_rejected(self, client, auth_headers):
        resp = await client.get("/api/config/favourite-colour", headers=auth_headers)
        assert resp.status_code == 400
        assert resp.json()["message"] == "Invalid configuration type"

    async def test_rename_into_existing_name_rejected(self, client, rmg_headers):
        await _create(client, rmg_headers, name="Services")
        other = (await _create(client, rmg_headers, name="Licences")).json()["data"]

        resp = await client.put(
            f"/api/config/revenue-type/{other['id']}",
            json={"name": "services"},
            headers=rmg_headers,
        )
        assert resp.status_code == 400

        resp = await client.put(
            f"/api/config/revenue-type/{other['id']}",
            json={"name": "Licenses", "status": "Inactive"},
            headers=rmg_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["name"] == "Licenses"
        assert resp.json()["data"]["status"] == "Inactive"

    async def test_bulk_status_and_active_only(self, client, rmg_headers):
        first = (await _create(client, rmg_headers, name="Alpha")).json()["data"]
        second = (await _create(client, rmg_headers, name="Beta")).json()["data"]
        await _create(client, rmg_headers, name="Gamma")

        resp = await client.patch(
            "/api/config/revenue-type/bulk-status",
            json={"ids": [first["id"], second["id"]], "status": "Inactive"},
            headers=rmg_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["modified_count"] == 2

        resp = await client.get("/api/config/revenue-type?active_only=true", headers=rmg_headers)
        assert [c["name"] for c in resp.json()["data"]] == ["Gamma"]

    async def test_bulk_status_ignores_other_types(self, client, rmg_headers):
        lead = (await _create(client, rmg_headers, config_type="lead-source", name="Referral")).json()
        resp = await client.patch(
            "/api/config/revenue-type/bulk-status",
            json={"ids": [lead["data"]["id"]], "status": "Inactive"},
            headers=rmg_headers,
        )
        assert resp.json()["data"]["modified_count"] == 0

    async def test_get_from_wrong_type_is_404(self, client, rmg_headers):
        created = (await _create(client, rmg_headers)).json()["data"]
        resp = await client.get(f"/api/config/client-type/{created['id']}", headers=rmg_headers)
        assert resp.status_code == 404

    async def test_delete(self, client, rmg_headers):
        created = (await _create(client, rmg_headers)).json()["data"]
        resp = await client.delete(
            f"/api/config/revenue-type/{created['id']}", headers=rmg_headers,
        )
        assert resp.status_code == 200
        resp = await client.delete(
            f"/api/config/revenue-type/{uuid.uuid4()}", headers=rmg_headers,
        )
        assert resp.status_code == 404

    async def test_employee_cannot_write(self, client, auth_headers):
        resp = await _create(client, auth_headers)
        assert resp.status_code == 403
