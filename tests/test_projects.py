"""Project module tests: CRUD, code generation, status cascade, delete guards."""

from __future__ import annotations

import uuid

from sqlalchemy import select

from rmg_portal.common.constants import FLResourceStatus, FLStatus
from rmg_portal.financial_lines.models import FinancialLine
from rmg_portal.fl_resources.models import FLResource
from tests.conftest import (
    add_customer_po,
    add_employee,
    add_financial_line,
    add_project,
    add_resource,
)


def _payload(**overrides) -> dict:
    data = {
        "project_code": "P001",
        "name": "Orion Migration",
        "client": "Globex",
        "billing_type": "Fixed Bid",
        "start_date": "2026-01-01",
        "end_date": "2026-12-31",
        "project_manager": {"employee_code": "EMP007", "name": "Nina Kapoor"},
        "required_skills": ["Java", "AWS"],
    }
    data.update(overrides)
    return data


# ═════════════════════════════════════════════════════════════════════
# Create / read
# ═════════════════════════════════════════════════════════════════════


class TestCreateProject:
    async def test_create_project(self, client, rmg_headers):
        resp = await client.post("/api/projects", json=_payload(), headers=rmg_headers)
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["project_code"] == "P001"
        assert data["status"] == "active"
        assert data["billing_type"] == "Fixed Bid"
        assert data["project_manager"]["name"] == "Nina Kapoor"

    async def test_duplicate_code_rejected(self, client, rmg_headers):
        await client.post("/api/projects", json=_payload(), headers=rmg_headers)
        resp = await client.post("/api/projects", json=_payload(), headers=rmg_headers)
        assert resp.status_code == 400
        assert resp.json()["message"] == "Project with code P001 already exists"

    async def test_end_before_start_rejected(self, client, rmg_headers):
        resp = await client.post(
            "/api/projects",
            json=_payload(start_date="2026-06-01", end_date="2026-05-31"),
            headers=rmg_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "End date must be on or after start date"

    async def test_employee_cannot_create(self, client, auth_headers):
        resp = await client.post("/api/projects", json=_payload(), headers=auth_headers)
        assert resp.status_code == 403

    async def test_requires_authentication(self, client):
        resp = await client.get("/api/projects")
        assert resp.status_code == 401
        assert resp.json()["success"] is False


class TestReadProjects:
    async def test_next_id_follows_latest_code(self, client, rmg_headers):
        resp = await client.get("/api/projects/next-id", headers=rmg_headers)
        assert resp.json()["data"] == "P001"

        await client.post("/api/projects", json=_payload(project_code="P041"), headers=rmg_headers)
        resp = await client.get("/api/projects/next-id", headers=rmg_headers)
        assert resp.json()["data"] == "P042"

    async def test_by_code(self, client, db, auth_headers):
        project = await add_project(db, project_code="P777", name="Lookup")
        resp = await client.get("/api/projects/by-code/P777", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["id"] == str(project.id)

    async def test_by_unknown_code_is_404(self, client, auth_headers):
        resp = await client.get("/api/projects/by-code/NOPE", headers=auth_headers)
        assert resp.status_code == 404

    async def test_active_lists_only_active(self, client, db, auth_headers):
        await add_project(db, name="Running")
        await add_project(db, name="Paused", status="on-hold")
        resp = await client.get("/api/projects/active", headers=auth_headers)
        assert [p["name"] for p in resp.json()["data"]] == ["Running"]

    async def test_search_by_manager(self, client, rmg_headers):
        await client.post("/api/projects", json=_payload(), headers=rmg_headers)
        await client.post(
            "/api/projects",
            json=_payload(project_code="P002", name="Other", project_manager=None),
            headers=rmg_headers,
        )
        resp = await client.get(
            "/api/projects?search=nina&search_scope=manager", headers=rmg_headers,
        )
        body = resp.json()
        assert body["meta"]["total"] == 1
        assert body["data"][0]["project_code"] == "P001"

    async def test_filter_by_status(self, client, db, auth_headers):
        await add_project(db, name="Done", status="completed")
        await add_project(db, name="Live")
        resp = await client.get("/api/projects?status=completed", headers=auth_headers)
        assert [p["name"] for p in resp.json()["data"]] == ["Done"]


# ═════════════════════════════════════════════════════════════════════
# Status changes / delete
# ═════════════════════════════════════════════════════════════════════


class TestProjectLifecycle:
    async def test_cancel_cascades_to_lines_and_resources(self, client, db, rmg_headers):
        project = await add_project(db)
        employee = await add_employee(db)
        active_fl = await add_financial_line(db, project)
        done_fl = await add_financial_line(db, project, status="Completed")
        await add_resource(db, active_fl, employee)
        await add_resource(db, done_fl, employee)

        resp = await client.patch(
            f"/api/projects/{project.id}/status",
            json={"status": "cancelled"},
            headers=rmg_headers,
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["project"]["status"] == "cancelled"
        assert data["cancelled_financial_lines"] == 1
        assert data["released_resources"] == 1

        fl_status = (
            await db.execute(select(FinancialLine.status).where(FinancialLine.id == active_fl.id))
        ).scalar_one()
        assert fl_status == FLStatus.cancelled
        res_statuses = (
            await db.execute(
                select(FLResource.status).where(FLResource.financial_line_id == done_fl.id)
            )
        ).scalars().all()
        assert res_statuses == [FLResourceStatus.active]

    async def test_on_hold_does_not_cascade(self, client, db, rmg_headers):
        project = await add_project(db)
        await add_financial_line(db, project)
        resp = await client.patch(
            f"/api/projects/{project.id}/status",
            json={"status": "on-hold"},
            headers=rmg_headers,
        )
        assert resp.json()["data"]["cancelled_financial_lines"] == 0

    async def test_update_project(self, client, db, rmg_headers):
        project = await add_project(db)
        resp = await client.put(
            f"/api/projects/{project.id}",
            json={"name": "Renamed", "team_size": 8},
            headers=rmg_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["name"] == "Renamed"
        assert resp.json()["data"]["team_size"] == 8

    async def test_update_rejects_null_required_fields(self, client, db, rmg_headers):
        project = await add_project(db)
        resp = await client.put(
            f"/api/projects/{project.id}",
            json={"name": None, "start_date": None},
            headers=rmg_headers,
        )
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert set(body["errors"]) == {"name", "start_date"}

    async def test_delete_blocked_by_financial_lines(self, client, db, rmg_headers):
        project = await add_project(db)
        await add_financial_line(db, project)
        resp = await client.delete(f"/api/projects/{project.id}", headers=rmg_headers)
        assert resp.status_code == 400
        assert "financial line" in resp.json()["message"]

    async def test_delete_blocked_by_customer_pos(self, client, db, rmg_headers):
        project = await add_project(db)
        await add_customer_po(db, project)
        resp = await client.delete(f"/api/projects/{project.id}", headers=rmg_headers)
        assert resp.status_code == 400
        assert "customer PO" in resp.json()["message"]

    async def test_delete_unreferenced_project(self, client, db, rmg_headers):
        project = await add_project(db)
        resp = await client.delete(f"/api/projects/{project.id}", headers=rmg_headers)
        assert resp.status_code == 200

        resp = await client.get(f"/api/projects/{project.id}", headers=rmg_headers)
        assert resp.status_code == 404

    async def test_delete_unknown_project_is_404(self, client, rmg_headers):
        resp = await client.delete(f"/api/projects/{uuid.uuid4()}", headers=rmg_headers)
        assert resp.status_code == 404
