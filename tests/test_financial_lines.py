"""Financial line tests: numbering, inherited defaults, funding rules, cascade delete."""

from __future__ import annotations

import uuid
from datetime import date
from types import SimpleNamespace

import pytest
from sqlalchemy import func, select

from rmg_portal.common.audit import AuditTrail
from rmg_portal.common.exceptions import ValidationException
from rmg_portal.financial_lines.service import derive_amounts, validate_financial_line
from rmg_portal.fl_resources.models import FLResource
from tests.conftest import (
    add_customer_po,
    add_employee,
    add_financial_line,
    add_project,
    add_resource,
)


def _payload(project_id, **overrides) -> dict:
    data = {
        "fl_name": "Platform build",
        "project_id": str(project_id),
        "location_type": "Offshore",
        "execution_entity": "Acme India Pvt Ltd",
        "timesheet_approver": "Jane Manager",
        "schedule_start": "2026-02-01",
        "schedule_finish": "2026-05-31",
        "billing_rate": 40,
        "rate_uom": "Hr",
        "effort": 200,
        "effort_uom": "Hr",
        "funding": [{"po_no": "PO-1", "unit_rate": 40, "funding_units": 200}],
    }
    data.update(overrides)
    return data


# ═════════════════════════════════════════════════════════════════════
# Funding maths
# ═════════════════════════════════════════════════════════════════════


class TestDeriveAmounts:
    def test_funding_value_and_totals(self):
        values = {
            "billing_rate": 25,
            "effort": 10,
            "funding": [
                {"unit_rate": 25, "funding_units": 10},
                {"unit_rate": 30, "funding_units": 5, "funding_value_project": 100},
            ],
            "revenue_planning": [
                {"month": "2026-02", "planned_revenue": 120},
                {"month": "2026-03", "planned_revenue": 80.5},
            ],
        }
        derive_amounts(values, recompute_total=True)
        assert values["funding"][0]["funding_value_project"] == 250
        assert values["funding"][0]["funding_amount_po_currency"] == 250
        assert values["total_funding"] == 350
        assert values["total_planned_revenue"] == 200.5
        assert values["revenue_amount"] == 250
        assert values["expected_revenue"] == 250

    def test_explicit_total_kept(self):
        values = {"billing_rate": 10, "total_funding": 999, "funding": []}
        derive_amounts(values, recompute_total=False)
        assert values["total_funding"] == 999


class TestValidateFinancialLine:
    @pytest.fixture
    def project(self):
        return SimpleNamespace(start_date=date(2026, 1, 1), end_date=date(2026, 12, 31))

    def _values(self, **overrides):
        values = {
            "schedule_start": date(2026, 2, 1),
            "schedule_finish": date(2026, 3, 1),
            "total_funding": 1000,
        }
        values.update(overrides)
        return values

    def test_valid_values_pass(self, project):
        validate_financial_line(self._values(), project)

    def test_same_day_schedule_rejected(self, project):
        with pytest.raises(ValidationException) as exc:
            validate_financial_line(
                self._values(schedule_finish=date(2026, 2, 1)), project,
            )
        assert "schedule_finish" in exc.value.errors

    def test_milestones_within_tolerance(self, project):
        milestones = [{"amount": 500}, {"amount": 500.005}]
        validate_financial_line(self._values(payment_milestones=milestones), project)

    def test_open_ended_project_allows_any_finish(self, project):
        project.end_date = None
        validate_financial_line(
            self._values(schedule_finish=date(2030, 1, 1)), project,
        )


# ═════════════════════════════════════════════════════════════════════
# API
# ═════════════════════════════════════════════════════════════════════


class TestCreateFinancialLine:
    async def test_create_generates_number_and_inherits(self, client, test_project, rmg_headers):
        resp = await client.post(
            "/api/financial-lines", json=_payload(test_project.id), headers=rmg_headers,
        )
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["fl_no"].startswith("FL-")
        assert data["fl_no"].endswith("-0001")
        assert data["contract_type"] == "T&M"
        assert data["currency"] == "USD"
        assert data["status"] == "Draft"
        assert data["total_funding"] == 8000
        assert data["revenue_amount"] == 8000
        assert data["project"]["project_code"] == test_project.project_code

    async def test_numbers_increase(self, client, test_project, rmg_headers):
        first = await client.post(
            "/api/financial-lines", json=_payload(test_project.id), headers=rmg_headers,
        )
        second = await client.post(
            "/api/financial-lines", json=_payload(test_project.id), headers=rmg_headers,
        )
        assert first.json()["data"]["fl_no"].endswith("-0001")
        assert second.json()["data"]["fl_no"].endswith("-0002")

    async def test_contract_type_required_without_project_billing_type(
        self, client, db, rmg_headers,
    ):
        project = await add_project(db, billing_type=None)
        resp = await client.post(
            "/api/financial-lines", json=_payload(project.id), headers=rmg_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Contract type is required"

    async def test_duplicate_number_rejected(self, client, db, test_project, rmg_headers):
        await add_financial_line(db, test_project, fl_no="FL-2026-0500")
        resp = await client.post(
            "/api/financial-lines",
            json=_payload(test_project.id, fl_no="FL-2026-0500"),
            headers=rmg_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Financial line FL-2026-0500 already exists"

    async def test_schedule_order(self, client, test_project, rmg_headers):
        resp = await client.post(
            "/api/financial-lines",
            json=_payload(test_project.id, schedule_finish="2026-01-15"),
            headers=rmg_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == (
            "Schedule start date must be before schedule finish date"
        )

    async def test_schedule_outside_project(self, client, test_project, rmg_headers):
        resp = await client.post(
            "/api/financial-lines",
            json=_payload(test_project.id, schedule_finish="2027-02-01"),
            headers=rmg_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Schedule finish date must be within project dates"

    async def test_milestone_sum_must_match_funding(self, client, test_project, rmg_headers):
        milestones = [
            {"milestone_name": "Kickoff", "amount": 3000, "due_date": "2026-02-15"},
            {"milestone_name": "UAT", "amount": 1000, "due_date": "2026-05-15"},
        ]
        resp = await client.post(
            "/api/financial-lines",
            json=_payload(test_project.id, payment_milestones=milestones),
            headers=rmg_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == (
            "Sum of milestone amounts (4000.00) must equal total funding (8000.00)"
        )

    async def test_planned_revenue_cannot_exceed_funding(self, client, test_project, rmg_headers):
        plan = [
            {"month": "2026-02", "planned_revenue": 5000},
            {"month": "2026-03", "planned_revenue": 5000},
        ]
        resp = await client.post(
            "/api/financial-lines",
            json=_payload(test_project.id, revenue_planning=plan),
            headers=rmg_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Total planned revenue cannot exceed total funding"

    async def test_bad_month_format_is_400(self, client, test_project, rmg_headers):
        resp = await client.post(
            "/api/financial-lines",
            json=_payload(test_project.id, revenue_planning=[{"month": "2026-13"}]),
            headers=rmg_headers,
        )
        assert resp.status_code == 400

    async def test_customer_po_from_other_project_rejected(
        self, client, db, test_project, rmg_headers,
    ):
        other = await add_project(db, name="Other")
        po = await add_customer_po(db, other)
        resp = await client.post(
            "/api/financial-lines",
            json=_payload(test_project.id, customer_po_id=str(po.id)),
            headers=rmg_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Customer PO belongs to a different project"

    async def test_unknown_project_rejected(self, client, rmg_headers):
        resp = await client.post(
            "/api/financial-lines", json=_payload(uuid.uuid4()), headers=rmg_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Project not found"

    async def test_employee_cannot_create(self, client, test_project, auth_headers):
        resp = await client.post(
            "/api/financial-lines", json=_payload(test_project.id), headers=auth_headers,
        )
        assert resp.status_code == 403


class TestFinancialLineReads:
    async def test_stats(self, client, db, test_project, auth_headers):
        await add_financial_line(db, test_project, total_funding=1000)
        await add_financial_line(db, test_project, total_funding=2500.5)
        await add_financial_line(db, test_project, status="Draft", total_funding=9999)
        await add_financial_line(db, test_project, status="Cancelled")

        resp = await client.get("/api/financial-lines/stats", headers=auth_headers)
        data = resp.json()["data"]
        assert data["total"] == 4
        assert data["active"] == 2
        assert data["draft"] == 1
        assert data["cancelled"] == 1
        assert data["completed"] == 0
        assert data["total_active_funding"] == 3500.5

    async def test_list_filters_by_project(self, client, db, test_project, auth_headers):
        other = await add_project(db, name="Other")
        await add_financial_line(db, test_project, fl_name="Mine")
        await add_financial_line(db, other, fl_name="Theirs")

        resp = await client.get(
            f"/api/financial-lines?project_id={test_project.id}", headers=auth_headers,
        )
        assert [fl["fl_name"] for fl in resp.json()["data"]] == ["Mine"]

    async def test_active_list(self, client, db, test_project, auth_headers):
        await add_financial_line(db, test_project, fl_name="Live")
        await add_financial_line(db, test_project, fl_name="Planned", status="Draft")
        resp = await client.get("/api/financial-lines/active", headers=auth_headers)
        assert [fl["fl_name"] for fl in resp.json()["data"]] == ["Live"]


class TestUpdateDeleteFinancialLine:
    async def test_update_revalidates_merged_record(self, client, db, test_project, rmg_headers):
        fl = await add_financial_line(db, test_project)
        resp = await client.put(
            f"/api/financial-lines/{fl.id}",
            json={"schedule_start": "2026-07-01"},
            headers=rmg_headers,
        )
        assert resp.status_code == 400

        resp = await client.put(
            f"/api/financial-lines/{fl.id}",
            json={"fl_name": "Renamed", "status": "Completed"},
            headers=rmg_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["fl_name"] == "Renamed"
        assert resp.json()["data"]["status"] == "Completed"

    async def test_moving_line_carries_its_resources(
        self, client, db, test_project, rmg_headers, auth_headers,
    ):
        target = await add_project(db, name="Hermes")
        fl = await add_financial_line(db, test_project)
        await add_resource(db, fl, await add_employee(db, name="Staffed"))

        resp = await client.put(
            f"/api/financial-lines/{fl.id}",
            json={"project_id": str(target.id), "fl_name": "Hermes rollout"},
            headers=rmg_headers,
        )
        assert resp.status_code == 200

        resp = await client.get(
            f"/api/fl-resources/by-project/{target.id}", headers=auth_headers,
        )
        rows = resp.json()["data"]
        assert len(rows) == 1
        assert rows[0]["fl_name"] == "Hermes rollout"

        resp = await client.get(
            f"/api/fl-resources/by-project/{test_project.id}", headers=auth_headers,
        )
        assert resp.json()["data"] == []

    async def test_delete_removes_resources(self, client, db, test_project, rmg_headers):
        fl = await add_financial_line(db, test_project)
        employee = await add_employee(db)
        await add_resource(db, fl, employee)
        await add_resource(db, fl)

        resp = await client.delete(f"/api/financial-lines/{fl.id}", headers=rmg_headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["removed_resources"] == 2

        remaining = (
            await db.execute(select(func.count()).select_from(FLResource))
        ).scalar_one()
        assert remaining == 0

        actions = (
            await db.execute(
                select(AuditTrail.action).where(AuditTrail.entity_id == fl.id)
            )
        ).scalars().all()
        assert actions == ["delete"]

    async def test_get_unknown_is_404(self, client, auth_headers):
        resp = await client.get(f"/api/financial-lines/{uuid.uuid4()}", headers=auth_headers)
        assert resp.status_code == 404
