"""Helpdesk router: tickets, responses, status updates.

All endpoints require authentication. Helpdesk agents (hr, it_admin) see
every ticket; everyone else sees what they raised or were assigned.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from rmg_portal.auth.dependencies import get_current_user, has_any_role, require_role
from rmg_portal.common.constants import HELPDESK_AGENT_ROLES, TicketPriority, TicketStatus
from rmg_portal.common.exceptions import ForbiddenException
from rmg_portal.common.pagination import build_meta
from rmg_portal.database import get_db
from rmg_portal.employees.models import Employee
from rmg_portal.helpdesk.schemas import (
    ResponseCreate,
    ResponseOut,
    TicketCreate,
    TicketOut,
    TicketUpdate,
)
from rmg_portal.helpdesk.service import HelpdeskService

router = APIRouter(prefix="", tags=["helpdesk"])


def _is_agent(request: Request) -> bool:
    return has_any_role(request, *HELPDESK_AGENT_ROLES)


def _ensure_access(request: Request, ticket, employee: Employee) -> None:
    if ticket.raised_by_id != employee.id and ticket.assigned_to_id != employee.id:
        if not _is_agent(request):
            raise ForbiddenException("You don't have access to this ticket.")


def _page(tickets, total: int, page: int, page_size: int) -> dict:
    return {
        "success": True,
        "data": [TicketOut.model_validate(t).model_dump(mode="json") for t in tickets],
        "meta": build_meta(total, page, page_size).model_dump(),
    }


# ── POST / ───────────────────────────────────────────────────────────

@router.post("", status_code=201)
async def create_ticket(
    body: TicketCreate,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a new helpdesk ticket."""
    ticket = await HelpdeskService.create_ticket(
        db,
        employee,
        title=body.title,
        category=body.category,
        priority=body.priority,
        description=body.description,
    )
    return {"success": True, "data": TicketOut.model_validate(ticket).model_dump(mode="json")}


# ── GET / ────────────────────────────────────────────────────────────

@router.get("")
async def list_tickets(
    request: Request,
    status: Optional[TicketStatus] = Query(None),
    priority: Optional[TicketPriority] = Query(None),
    raised_by_id: Optional[uuid.UUID] = Query(None),
    assigned_to_id: Optional[uuid.UUID] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List helpdesk tickets with optional filters."""
    if not _is_agent(request):
        if raised_by_id and raised_by_id != employee.id:
            raise ForbiddenException("Cannot view another employee's tickets.")
        if assigned_to_id and assigned_to_id != employee.id:
            raise ForbiddenException("Cannot view another employee's tickets.")
        if not raised_by_id and not assigned_to_id:
            raised_by_id = employee.id
    tickets, total = await HelpdeskService.list_tickets(
        db,
        status=status,
        priority=priority,
        raised_by_id=raised_by_id,
        assigned_to_id=assigned_to_id,
        page=page,
        page_size=page_size,
    )
    return _page(tickets, total, page, page_size)


# ── GET /my-tickets ──────────────────────────────────────────────────

@router.get("/my-tickets")
async def my_tickets(
    status: Optional[TicketStatus] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List tickets raised by the current user."""
    tickets, total = await HelpdeskService.list_tickets(
        db,
        status=status,
        raised_by_id=employee.id,
        page=page,
        page_size=page_size,
    )
    return _page(tickets, total, page, page_size)


# ── GET /summary ──────────────────────────────────────────────────────

@router.get("/summary")
async def helpdesk_summary(
    request: Request,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Status counts for tickets visible to the current user."""
    raised_by_id = None if _is_agent(request) else employee.id
    summary = await HelpdeskService.summary(db, raised_by_id=raised_by_id)
    return {"success": True, "data": summary.model_dump()}


# ── GET /{ticket_id} ─────────────────────────────────────────────────

@router.get("/{ticket_id}")
async def get_ticket(
    ticket_id: uuid.UUID,
    request: Request,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get a specific ticket with all responses."""
    ticket = await HelpdeskService.get_ticket(db, ticket_id)
    _ensure_access(request, ticket, employee)
    out = TicketOut.model_validate(ticket)
    if not _is_agent(request):
        out.responses = [r for r in out.responses if not r.is_internal]
    return {"success": True, "data": out.model_dump(mode="json")}


# ── PATCH /{ticket_id} ───────────────────────────────────────────────

@router.patch("/{ticket_id}")
async def update_ticket(
    ticket_id: uuid.UUID,
    body: TicketUpdate,
    request: Request,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update a ticket (title, category, status, priority, assignee)."""
    ticket = await HelpdeskService.get_ticket(db, ticket_id)
    _ensure_access(request, ticket, employee)

    update_data = body.model_dump(exclude_unset=True)
    if "assigned_to_id" in update_data and not _is_agent(request):
        raise ForbiddenException("Only helpdesk agents can assign tickets.")

    ticket = await HelpdeskService.update_ticket(db, ticket_id, **update_data)
    return {"success": True, "data": TicketOut.model_validate(ticket).model_dump(mode="json")}


# ── DELETE /{ticket_id} ──────────────────────────────────────────────

@router.delete("/{ticket_id}")
async def delete_ticket(
    ticket_id: uuid.UUID,
    employee: Employee = Depends(require_role(*HELPDESK_AGENT_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    """Delete a ticket (hr / it_admin only)."""
    await HelpdeskService.delete_ticket(db, ticket_id)
    return {"success": True, "message": "Ticket deleted successfully"}


# ── POST /{ticket_id}/responses ───────────────────────────────────────

@router.post("/{ticket_id}/responses", status_code=201)
async def add_response(
    ticket_id: uuid.UUID,
    body: ResponseCreate,
    request: Request,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Add a response/comment to a ticket."""
    ticket = await HelpdeskService.get_ticket(db, ticket_id)
    _ensure_access(request, ticket, employee)
    response = await HelpdeskService.add_response(
        db,
        ticket_id=ticket_id,
        author=employee,
        body=body.body,
        is_internal=body.is_internal and _is_agent(request),
    )
    return {"success": True, "data": ResponseOut.model_validate(response).model_dump(mode="json")}


# ── GET /{ticket_id}/responses ────────────────────────────────────────

@router.get("/{ticket_id}/responses")
async def list_responses(
    ticket_id: uuid.UUID,
    request: Request,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List responses for a ticket; internal notes are for agents only."""
    ticket = await HelpdeskService.get_ticket(db, ticket_id)
    _ensure_access(request, ticket, employee)
    responses = await HelpdeskService.list_responses(
        db, ticket_id, include_internal=_is_agent(request),
    )
    return {
        "success": True,
        "data": [ResponseOut.model_validate(r).model_dump(mode="json") for r in responses],
    }
