"""Helpdesk service layer: tickets, status transitions and responses."""

from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from rmg_portal.common.constants import TICKET_TRANSITIONS, TicketPriority, TicketStatus
from rmg_portal.common.exceptions import NotFoundException, ValidationException
from rmg_portal.employees.models import Employee
from rmg_portal.helpdesk.models import HelpdeskResponse, HelpdeskTicket
from rmg_portal.helpdesk.schemas import TicketSummary
from rmg_portal.notifications.service import notify_ticket_assigned

logger = logging.getLogger(__name__)


class HelpdeskService:
    """Business logic for helpdesk operations."""

    # ── Tickets ───────────────────────────────────────────────────────

    @staticmethod
    async def _next_ticket_number(db: AsyncSession) -> str:
        numbers = (await db.execute(select(HelpdeskTicket.ticket_number))).scalars().all()
        highest = max(
            (int(m.group(1)) for m in (re.match(r"^HD-(\d+)$", n) for n in numbers) if m),
            default=0,
        )
        return f"HD-{highest + 1:05d}"

    @staticmethod
    async def create_ticket(
        db: AsyncSession,
        employee: Employee,
        title: str,
        category: Optional[str] = None,
        priority: TicketPriority = TicketPriority.medium,
        description: Optional[str] = None,
    ) -> HelpdeskTicket:
        """Create a ticket; a description becomes its first response."""
        ticket = HelpdeskTicket(
            ticket_number=await HelpdeskService._next_ticket_number(db),
            title=title,
            category=category,
            status=TicketStatus.open,
            priority=priority,
            raised_by_id=employee.id,
            raised_by_name=employee.name,
        )
        db.add(ticket)
        await db.flush()

        if description:
            db.add(
                HelpdeskResponse(
                    ticket_id=ticket.id,
                    author_id=employee.id,
                    author_name=employee.name,
                    body=description,
                    is_internal=False,
                )
            )
            await db.flush()

        await db.refresh(ticket, ["responses"])
        logger.info("Ticket %s raised by %s", ticket.ticket_number, employee.employee_code)
        return ticket

    @staticmethod
    async def get_ticket(
        db: AsyncSession,
        ticket_id: uuid.UUID,
    ) -> HelpdeskTicket:
        """Get a ticket by ID with responses."""
        result = await db.execute(select(HelpdeskTicket).where(HelpdeskTicket.id == ticket_id))
        ticket = result.scalar_one_or_none()
        if not ticket:
            raise NotFoundException("Ticket", ticket_id)
        return ticket

    @staticmethod
    async def list_tickets(
        db: AsyncSession,
        status: Optional[TicketStatus] = None,
        priority: Optional[TicketPriority] = None,
        raised_by_id: Optional[uuid.UUID] = None,
        assigned_to_id: Optional[uuid.UUID] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> tuple[list[HelpdeskTicket], int]:
        """List tickets with optional filters, newest first."""
        stmt = select(HelpdeskTicket)
        if status:
            stmt = stmt.where(HelpdeskTicket.status == status)
        if priority:
            stmt = stmt.where(HelpdeskTicket.priority == priority)
        if raised_by_id:
            stmt = stmt.where(HelpdeskTicket.raised_by_id == raised_by_id)
        if assigned_to_id:
            stmt = stmt.where(HelpdeskTicket.assigned_to_id == assigned_to_id)

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await db.execute(count_stmt)).scalar() or 0

        stmt = (
            stmt.order_by(HelpdeskTicket.created_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await db.execute(stmt)
        return list(result.scalars().unique().all()), total

    @staticmethod
    async def summary(
        db: AsyncSession,
        raised_by_id: Optional[uuid.UUID] = None,
    ) -> TicketSummary:
        """Ticket counts per status, optionally restricted to one raiser."""
        stmt = select(HelpdeskTicket.status, func.count()).group_by(HelpdeskTicket.status)
        if raised_by_id:
            stmt = stmt.where(HelpdeskTicket.raised_by_id == raised_by_id)
        counts = {status: count for status, count in (await db.execute(stmt)).all()}
        return TicketSummary(
            total_tickets=sum(counts.values()),
            open_count=counts.get(TicketStatus.open, 0),
            in_progress_count=counts.get(TicketStatus.in_progress, 0),
            waiting_count=counts.get(TicketStatus.waiting, 0),
            resolved_count=counts.get(TicketStatus.resolved, 0),
            closed_count=counts.get(TicketStatus.closed, 0),
        )

    @staticmethod
    async def update_ticket(
        db: AsyncSession,
        ticket_id: uuid.UUID,
        **kwargs,
    ) -> HelpdeskTicket:
        """Update a ticket, enforcing the status transition table."""
        ticket = await HelpdeskService.get_ticket(db, ticket_id)

        new_status = kwargs.get("status")
        if new_status is not None and new_status != ticket.status:
            if new_status not in TICKET_TRANSITIONS.get(ticket.status, []):
                raise ValidationException(
                    {"status": [
                        f"Cannot transition from '{ticket.status.value}' "
                        f"to '{new_status.value}'."
                    ]}
                )

        newly_assigned = False
        assignee_id = kwargs.pop("assigned_to_id", None)
        if assignee_id is not None and assignee_id != ticket.assigned_to_id:
            assignee = (
                await db.execute(select(Employee).where(Employee.id == assignee_id))
            ).scalars().first()
            if assignee is None:
                raise ValidationException({"assigned_to_id": ["Assignee not found"]})
            ticket.assigned_to_id = assignee.id
            ticket.assigned_to_name = assignee.name
            newly_assigned = True

        for field, value in kwargs.items():
            if value is not None and hasattr(ticket, field):
                setattr(ticket, field, value)

        if new_status == TicketStatus.resolved and not ticket.resolved_at:
            ticket.resolved_at = datetime.now(timezone.utc)
        elif new_status == TicketStatus.open:
            ticket.resolved_at = None

        await db.flush()
        await db.refresh(ticket, ["responses"])

        if newly_assigned:
            await notify_ticket_assigned(db, ticket)
        return ticket

    @staticmethod
    async def delete_ticket(
        db: AsyncSession,
        ticket_id: uuid.UUID,
    ) -> None:
        """Delete a ticket and its responses."""
        ticket = await HelpdeskService.get_ticket(db, ticket_id)
        await db.delete(ticket)
        await db.flush()
        logger.info("Ticket %s deleted", ticket.ticket_number)

    # ── Responses ─────────────────────────────────────────────────────

    @staticmethod
    async def add_response(
        db: AsyncSession,
        ticket_id: uuid.UUID,
        author: Employee,
        body: str,
        is_internal: bool = False,
    ) -> HelpdeskResponse:
        """Add a response to a ticket."""
        await HelpdeskService.get_ticket(db, ticket_id)

        response = HelpdeskResponse(
            ticket_id=ticket_id,
            author_id=author.id,
            author_name=author.name,
            body=body,
            is_internal=is_internal,
        )
        db.add(response)
        await db.flush()
        return response

    @staticmethod
    async def list_responses(
        db: AsyncSession,
        ticket_id: uuid.UUID,
        include_internal: bool = True,
    ) -> list[HelpdeskResponse]:
        """List responses for a ticket, oldest first."""
        await HelpdeskService.get_ticket(db, ticket_id)
        stmt = (
            select(HelpdeskResponse)
            .where(HelpdeskResponse.ticket_id == ticket_id)
            .order_by(HelpdeskResponse.created_at)
        )
        if not include_internal:
            stmt = stmt.where(HelpdeskResponse.is_internal.is_(False))
        result = await db.execute(stmt)
        return list(result.scalars().all())
