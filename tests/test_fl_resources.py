"""FL resource tests: allocation rules, employee defaults, allocation notices."""

from __future__ import annotations

import uuid

from sqlalchemy import select

from rmg_portal.notifications.models import Notification
from tests.conftest import add_employee, add_financial_line, add_project, add_resource


def _payload(fl_id, **overrides) -> dict:
    data = {
        "job_role": "Backend Developer",
        "utilization_percentage": 75,
        "requested_from_date": "2026-02-01",
        "requested_to_date": "2026-04-30",
        "billable": True,
        "financial_line_id": str(fl_id),
        "monthly_allocations": [
            {"month": "2026-02", "allocation": 75},
            {"month": "2026-03", "allocation": 75},
        ],
    }
    data.update(overrides)
    return data


class TestCreateResource:
    async def test_copies_line_and_employee_details(self, client, db, test_project, rmg_headers):
        fl = await add_financial_line(db, test_project)
        employee = await add_employee(
            db, name="Dev One", department="Digital", skills=["Go", "Kafka"],
        )
        resp = await client.post(
            "/api/fl-resources",
            json=_payload(fl.id, employee_id=str(employee.id)),
            headers=rmg_headers,
        )
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["fl_no"] == fl.fl_no
        assert data["fl_name"] == fl.fl_name
        assert data["project_id"] == str(test_project.id)
        assert data["resource_name"] == "Dev One"
        assert data["department"] == "Digital"
        assert data["skills"] == ["Go", "Kafka"]
        assert data["status"] == "Active"

    async def test_allocated_employee_is_notified(self, client, db, test_project, rmg_headers):
        fl = await add_financial_line(db, test_project)
        employee = await add_employee(db, name="Notified")
        await client.post(
            "/api/fl-resources",
            json=_payload(fl.id, employee_id=str(employee.id)),
            headers=rmg_headers,
        )

        notes = (
            await db.execute(
                select(Notification).where(Notification.recipient_id == employee.id)
            )
        ).scalars().all()
        assert len(notes) == 1
        assert notes[0].title == "New Project Allocation"
        assert fl.fl_no in notes[0].message
        assert "75%" in notes[0].message

    async def test_open_demand_without_employee(self, client, db, test_project, rmg_headers):
        fl = await add_financial_line(db, test_project)
        resp = await client.post(
            "/api/fl-resources", json=_payload(fl.id), headers=rmg_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["data"]["employee_id"] is None

        notes = (await db.execute(select(Notification))).scalars().all()
        assert notes == []

    async def test_dates_must_be_ordered(self, client, db, test_project, rmg_headers):
        fl = await add_financial_line(db, test_project)
        resp = await client.post(
            "/api/fl-resources",
            json=_payload(fl.id, requested_to_date="2026-01-15"),
            headers=rmg_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Requested To Date must be after From Date"

    async def test_billable_needs_utilization(self, client, db, test_project, rmg_headers):
        fl = await add_financial_line(db, test_project)
        resp = await client.post(
            "/api/fl-resources",
            json=_payload(fl.id, utilization_percentage=0),
            headers=rmg_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Utilization is mandatory when billable"

    async def test_utilization_over_100_rejected(self, client, db, test_project, rmg_headers):
        fl = await add_financial_line(db, test_project)
        resp = await client.post(
            "/api/fl-resources",
            json=_payload(fl.id, utilization_percentage=120),
            headers=rmg_headers,
        )
        assert resp.status_code == 400
        assert "utilization_percentage" in resp.json()["errors"]

    async def test_unknown_financial_line(self, client, rmg_headers):
        resp = await client.post(
            "/api/fl-resources", json=_payload(uuid.uuid4()), headers=rmg_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Financial line not found"

    async def test_unknown_employee(self, client, db, test_project, rmg_headers):
        fl = await add_financial_line(db, test_project)
        resp = await client.post(
            "/api/fl-resources",
            json=_payload(fl.id, employee_id=str(uuid.uuid4())),
            headers=rmg_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Employee not found"


class TestResourceLookups:
    async def test_by_project_and_line(self, client, db, auth_headers):
        first = await add_project(db, name="First")
        second = await add_project(db, name="Second")
        fl_a = await add_financial_line(db, first)
        fl_b = await add_financial_line(db, second)
        await add_resource(db, fl_a, job_role="Tester")
        await add_resource(db, fl_b, job_role="Architect")

        resp = await client.get(f"/api/fl-resources/by-project/{first.id}", headers=auth_headers)
        assert [r["job_role"] for r in resp.json()["data"]] == ["Tester"]

        resp = await client.get(f"/api/fl-resources/by-fl/{fl_b.id}", headers=auth_headers)
        assert [r["job_role"] for r in resp.json()["data"]] == ["Architect"]

    async def test_by_employee_returns_active_only(self, client, db, test_project, auth_headers):
        fl = await add_financial_line(db, test_project)
        employee = await add_employee(db)
        await add_resource(db, fl, employee, job_role="Current")
        await add_resource(db, fl, employee, job_role="Past", status="Inactive")

        resp = await client.get(
            f"/api/fl-resources/by-employee/{employee.id}", headers=auth_headers,
        )
        assert [r["job_role"] for r in resp.json()["data"]] == ["Current"]

    async def test_list_search(self, client, db, test_project, auth_headers):
        fl = await add_financial_line(db, test_project)
        await add_resource(db, fl, job_role="Data Engineer")
        await add_resource(db, fl, job_role="QA Analyst")

        resp = await client.get("/api/fl-resources?search=data", headers=auth_headers)
        body = resp.json()
        assert body["meta"]["total"] == 1
        assert body["data"][0]["job_role"] == "Data Engineer"


class TestUpdateResource:
    async def test_reassignment_notifies_new_employee(self, client, db, test_project, rmg_headers):
        fl = await add_financial_line(db, test_project)
        resource = await add_resource(db, fl)
        employee = await add_employee(db, name="New Owner")

        resp = await client.put(
            f"/api/fl-resources/{resource.id}",
            json={"employee_id": str(employee.id)},
            headers=rmg_headers,
        )
        assert resp.status_code == 200

        notes = (
            await db.execute(
                select(Notification).where(Notification.recipient_id == employee.id)
            )
        ).scalars().all()
        assert len(notes) == 1

    async def test_update_checks_merged_dates(self, client, db, test_project, rmg_headers):
        fl = await add_financial_line(db, test_project)
        resource = await add_resource(db, fl)
        resp = await client.put(
            f"/api/fl-resources/{resource.id}",
            json={"requested_from_date": "2026-08-01"},
            headers=rmg_headers,
        )
        assert resp.status_code == 400

    async def test_update_rejects_null_dates(self, client, db, test_project, rmg_headers):
        fl = await add_financial_line(db, test_project)
        resource = await add_resource(db, fl)
        resp = await client.put(
            f"/api/fl-resources/{resource.id}",
            json={"requested_to_date": None},
            headers=rmg_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["errors"] == {"requested_to_date": ["This field cannot be null"]}

    async def test_delete(self, client, db, test_project, rmg_headers):
        fl = await add_financial_line(db, test_project)
        resource = await add_resource(db, fl)
        resp = await client.delete(f"/api/fl-resources/{resource.id}", headers=rmg_headers)
        assert resp.status_code == 200

        resp = await client.get(f"/api/fl-resources/{resource.id}", headers=rmg_headers)
        assert resp.status_code == 404

    async def test_employee_cannot_update(self, client, db, test_project, auth_headers):
        fl = await add_financial_line(db, test_project)
        resource = await add_resource(db, fl)
        resp = await client.put(
            f"/api/fl-resources/{resource.id}",
            json={"utilization_percentage": 10},
            headers=auth_headers,
        )
        assert resp.status_code == 403
