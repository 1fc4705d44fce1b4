"""Helpdesk tests: ticket numbering, transitions, assignment and access rules.

Service-layer tests run against the shared ``db`` session; API tests go
through the router with bearer headers.
"""

from __future__ import annotations

import uuid

import pytest
from sqlalchemy import select

from rmg_portal.common.constants import TicketPriority, TicketStatus, UserRole
from rmg_portal.common.exceptions import ValidationException
from rmg_portal.helpdesk.service import HelpdeskService
from rmg_portal.notifications.models import Notification
from tests.conftest import add_employee, auth_header


@pytest.fixture
async def agent(db):
    return await add_employee(db, name="IT Agent", role=UserRole.it_admin, department="IT")


# ═════════════════════════════════════════════════════════════════════
# 1. Service layer
# ═════════════════════════════════════════════════════════════════════


async def test_ticket_numbers_are_sequential(db, test_employee):
    first = await HelpdeskService.create_ticket(db, test_employee, title="VPN down")
    second = await HelpdeskService.create_ticket(db, test_employee, title="Laptop slow")
    assert first.ticket_number == "HD-00001"
    assert second.ticket_number == "HD-00002"
    assert first.status == TicketStatus.open
    assert first.raised_by_name == test_employee.name


async def test_description_becomes_first_response(db, test_employee):
    ticket = await HelpdeskService.create_ticket(
        db,
        test_employee,
        title="Cannot access VPN",
        priority=TicketPriority.high,
        description="Token rejected since this morning",
    )
    assert len(ticket.responses) == 1
    assert ticket.responses[0].body == "Token rejected since this morning"
    assert ticket.responses[0].is_internal is False


async def test_invalid_transition_rejected(db, test_employee):
    ticket = await HelpdeskService.create_ticket(db, test_employee, title="Mouse broken")
    with pytest.raises(ValidationException) as exc:
        await HelpdeskService.update_ticket(db, ticket.id, status=TicketStatus.resolved)
    assert "Cannot transition from 'open' to 'resolved'." in exc.value.detail


async def test_resolve_then_reopen_clears_resolved_at(db, test_employee):
    ticket = await HelpdeskService.create_ticket(db, test_employee, title="Email sync")
    await HelpdeskService.update_ticket(db, ticket.id, status=TicketStatus.in_progress)
    resolved = await HelpdeskService.update_ticket(db, ticket.id, status=TicketStatus.resolved)
    assert resolved.resolved_at is not None

    reopened = await HelpdeskService.update_ticket(db, ticket.id, status=TicketStatus.open)
    assert reopened.status == TicketStatus.open
    assert reopened.resolved_at is None


async def test_closed_is_terminal(db, test_employee):
    ticket = await HelpdeskService.create_ticket(db, test_employee, title="Old request")
    await HelpdeskService.update_ticket(db, ticket.id, status=TicketStatus.closed)
    with pytest.raises(ValidationException):
        await HelpdeskService.update_ticket(db, ticket.id, status=TicketStatus.open)


async def test_assignment_notifies_assignee(db, test_employee, agent):
    ticket = await HelpdeskService.create_ticket(db, test_employee, title="Need access")
    updated = await HelpdeskService.update_ticket(db, ticket.id, assigned_to_id=agent.id)
    assert updated.assigned_to_name == "IT Agent"

    notes = (
        await db.execute(select(Notification).where(Notification.recipient_id == agent.id))
    ).scalars().all()
    assert len(notes) == 1
    assert ticket.ticket_number in notes[0].message


async def test_unknown_assignee_rejected(db, test_employee):
    ticket = await HelpdeskService.create_ticket(db, test_employee, title="Nobody home")
    with pytest.raises(ValidationException):
        await HelpdeskService.update_ticket(db, ticket.id, assigned_to_id=uuid.uuid4())


async def test_summary_counts(db, test_employee):
    first = await HelpdeskService.create_ticket(db, test_employee, title="One")
    await HelpdeskService.create_ticket(db, test_employee, title="Two")
    await HelpdeskService.update_ticket(db, first.id, status=TicketStatus.in_progress)

    summary = await HelpdeskService.summary(db)
    assert summary.total_tickets == 2
    assert summary.open_count == 1
    assert summary.in_progress_count == 1


# ═════════════════════════════════════════════════════════════════════
# 2. API
# ═════════════════════════════════════════════════════════════════════


async def _raise(client, headers, **body):
    body.setdefault("title", "Keyboard missing keys")
    resp = await client.post("/api/helpdesk", json=body, headers=headers)
    assert resp.status_code == 201
    return resp.json()["data"]


async def test_api_create_and_my_tickets(client, auth_headers):
    created = await _raise(client, auth_headers, category="Hardware", description="F5 gone")
    assert created["ticket_number"] == "HD-00001"
    assert created["responses"][0]["body"] == "F5 gone"

    resp = await client.get("/api/helpdesk/my-tickets", headers=auth_headers)
    body = resp.json()
    assert body["meta"]["total"] == 1
    assert body["data"][0]["category"] == "Hardware"


async def test_employee_list_defaults_to_own_tickets(client, db, auth_headers):
    other = await add_employee(db, name="Someone Else")
    await _raise(client, auth_headers, title="Mine")
    await _raise(client, auth_header(other), title="Theirs")

    resp = await client.get("/api/helpdesk", headers=auth_headers)
    assert [t["title"] for t in resp.json()["data"]] == ["Mine"]

    resp = await client.get(f"/api/helpdesk?raised_by_id={other.id}", headers=auth_headers)
    assert resp.status_code == 403


async def test_agent_sees_all_tickets(client, db, auth_headers, agent):
    other = await add_employee(db, name="Someone Else")
    await _raise(client, auth_headers, title="Mine")
    await _raise(client, auth_header(other), title="Theirs")

    resp = await client.get("/api/helpdesk", headers=auth_header(agent))
    assert resp.json()["meta"]["total"] == 2

    resp = await client.get("/api/helpdesk/summary", headers=auth_header(agent))
    assert resp.json()["data"]["total_tickets"] == 2


async def test_other_employee_cannot_open_ticket(client, db, auth_headers):
    ticket = await _raise(client, auth_headers)
    outsider = await add_employee(db, name="Outsider")
    resp = await client.get(f"/api/helpdesk/{ticket['id']}", headers=auth_header(outsider))
    assert resp.status_code == 403
    assert resp.json()["message"] == "You don't have access to this ticket."


async def test_only_agents_assign(client, auth_headers, agent, test_employee):
    ticket = await _raise(client, auth_headers)
    resp = await client.patch(
        f"/api/helpdesk/{ticket['id']}",
        json={"assigned_to_id": str(test_employee.id)},
        headers=auth_headers,
    )
    assert resp.status_code == 403

    resp = await client.patch(
        f"/api/helpdesk/{ticket['id']}",
        json={"assigned_to_id": str(agent.id), "status": "in_progress"},
        headers=auth_header(agent),
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["assigned_to_id"] == str(agent.id)
    assert data["status"] == "in_progress"


async def test_api_bad_transition_is_400(client, auth_headers):
    ticket = await _raise(client, auth_headers)
    resp = await client.patch(
        f"/api/helpdesk/{ticket['id']}", json={"status": "resolved"}, headers=auth_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["success"] is False


async def test_internal_notes_hidden_from_raiser(client, auth_headers, agent):
    ticket = await _raise(client, auth_headers)
    agent_headers = auth_header(agent)

    resp = await client.post(
        f"/api/helpdesk/{ticket['id']}/responses",
        json={"body": "Checking AD group", "is_internal": True},
        headers=agent_headers,
    )
    assert resp.status_code == 201
    assert resp.json()["data"]["is_internal"] is True

    await client.post(
        f"/api/helpdesk/{ticket['id']}/responses",
        json={"body": "Fixed, please retry"},
        headers=agent_headers,
    )

    resp = await client.get(f"/api/helpdesk/{ticket['id']}/responses", headers=auth_headers)
    assert [r["body"] for r in resp.json()["data"]] == ["Fixed, please retry"]

    resp = await client.get(f"/api/helpdesk/{ticket['id']}", headers=auth_headers)
    assert [r["body"] for r in resp.json()["data"]["responses"]] == ["Fixed, please retry"]

    resp = await client.get(f"/api/helpdesk/{ticket['id']}/responses", headers=agent_headers)
    assert len(resp.json()["data"]) == 2


async def test_raiser_cannot_post_internal_note(client, auth_headers):
    ticket = await _raise(client, auth_headers)
    resp = await client.post(
        f"/api/helpdesk/{ticket['id']}/responses",
        json={"body": "Secret?", "is_internal": True},
        headers=auth_headers,
    )
    assert resp.json()["data"]["is_internal"] is False


async def test_delete_requires_agent(client, auth_headers, agent):
    ticket = await _raise(client, auth_headers)
    resp = await client.delete(f"/api/helpdesk/{ticket['id']}", headers=auth_headers)
    assert resp.status_code == 403

    resp = await client.delete(f"/api/helpdesk/{ticket['id']}", headers=auth_header(agent))
    assert resp.status_code == 200
    assert resp.json()["message"] == "Ticket deleted successfully"

    resp = await client.get(f"/api/helpdesk/{ticket['id']}", headers=auth_header(agent))
    assert resp.status_code == 404
