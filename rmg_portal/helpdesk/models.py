"""Helpdesk ORM models: HelpdeskTicket, HelpdeskResponse."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rmg_portal.common.audit import TimestampMixin, _utcnow
from rmg_portal.common.constants import TicketPriority, TicketStatus
from rmg_portal.database import Base, value_enum


class HelpdeskTicket(Base, TimestampMixin):
    """Helpdesk support ticket."""

    __tablename__ = "helpdesk_tickets"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    ticket_number: Mapped[str] = mapped_column(sa.String(20), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(sa.String(500), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(sa.String(200))
    status: Mapped[TicketStatus] = mapped_column(
        value_enum(TicketStatus, "ticket_status"),
        nullable=False,
        default=TicketStatus.open,
    )
    priority: Mapped[TicketPriority] = mapped_column(
        value_enum(TicketPriority, "ticket_priority"),
        nullable=False,
        default=TicketPriority.medium,
    )
    raised_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"), nullable=True,
    )
    raised_by_name: Mapped[Optional[str]] = mapped_column(sa.String(200))
    assigned_to_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"), nullable=True,
    )
    assigned_to_name: Mapped[Optional[str]] = mapped_column(sa.String(200))
    resolved_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True),
    )

    # Relationships
    responses: Mapped[list[HelpdeskResponse]] = relationship(
        back_populates="ticket",
        cascade="all, delete-orphan",
        order_by="HelpdeskResponse.created_at",
        lazy="selectin",
    )

    __table_args__ = (
        sa.Index("ix_helpdesk_tickets_raised_by_id", "raised_by_id"),
        sa.Index("ix_helpdesk_tickets_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<HelpdeskTicket #{self.ticket_number} '{self.title[:30]}'>"


class HelpdeskResponse(Base):
    """Response/comment on a helpdesk ticket."""

    __tablename__ = "helpdesk_responses"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    ticket_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("helpdesk_tickets.id", ondelete="CASCADE"),
        nullable=False,
    )
    author_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"), nullable=True,
    )
    author_name: Mapped[Optional[str]] = mapped_column(sa.String(200))
    body: Mapped[str] = mapped_column(sa.Text, nullable=False)
    is_internal: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow,
    )

    # Relationships
    ticket: Mapped[HelpdeskTicket] = relationship(back_populates="responses")

    def __repr__(self) -> str:
        return f"<HelpdeskResponse ticket={self.ticket_id}>"
