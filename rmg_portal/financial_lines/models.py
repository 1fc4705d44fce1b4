"""Financial line ORM model.

Funding rows, revenue planning months and payment milestones are embedded
JSONB arrays; their shape is enforced by the Pydantic schemas on the way in.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rmg_portal.common.audit import TimestampMixin
from rmg_portal.common.constants import (
    BillingType,
    FLStatus,
    LocationType,
    UnitOfMeasure,
)
from rmg_portal.database import Base, value_enum


class FinancialLine(Base, TimestampMixin):
    """A billing / funding line item under a project."""

    __tablename__ = "financial_lines"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    fl_no: Mapped[str] = mapped_column(sa.String(30), unique=True, nullable=False)
    fl_name: Mapped[str] = mapped_column(sa.String(150), nullable=False)
    project_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("projects.id", ondelete="RESTRICT"),
        nullable=False,
    )
    customer_po_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("customer_pos.id", ondelete="SET NULL"),
    )

    # ── Basic details ───────────────────────────────────────────────
    contract_type: Mapped[BillingType] = mapped_column(
        value_enum(BillingType, "billing_type"), nullable=False,
    )
    location_type: Mapped[LocationType] = mapped_column(
        value_enum(LocationType, "location_type"), nullable=False,
    )
    execution_entity: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    timesheet_approver: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    schedule_start: Mapped[date] = mapped_column(sa.Date, nullable=False)
    schedule_finish: Mapped[date] = mapped_column(sa.Date, nullable=False)
    currency: Mapped[str] = mapped_column(sa.String(10), nullable=False, default="USD")

    # ── Revenue details ─────────────────────────────────────────────
    billing_rate: Mapped[float] = mapped_column(
        sa.Numeric(14, 2, asdecimal=False), nullable=False,
    )
    rate_uom: Mapped[UnitOfMeasure] = mapped_column(
        value_enum(UnitOfMeasure, "unit_of_measure"), nullable=False,
    )
    effort: Mapped[float] = mapped_column(sa.Float, nullable=False, default=0)
    effort_uom: Mapped[UnitOfMeasure] = mapped_column(
        value_enum(UnitOfMeasure, "unit_of_measure"), nullable=False,
    )
    revenue_amount: Mapped[float] = mapped_column(
        sa.Numeric(16, 2, asdecimal=False), nullable=False, default=0,
    )
    expected_revenue: Mapped[float] = mapped_column(
        sa.Numeric(16, 2, asdecimal=False), nullable=False, default=0,
    )

    # ── Funding / planning / milestones ─────────────────────────────
    funding: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    total_funding: Mapped[float] = mapped_column(
        sa.Numeric(16, 2, asdecimal=False), nullable=False, default=0,
    )
    revenue_planning: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    total_planned_revenue: Mapped[float] = mapped_column(
        sa.Numeric(16, 2, asdecimal=False), nullable=False, default=0,
    )
    payment_milestones: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)

    status: Mapped[FLStatus] = mapped_column(
        value_enum(FLStatus, "fl_status"), nullable=False, default=FLStatus.draft,
    )
    notes: Mapped[Optional[str]] = mapped_column(sa.Text)

    # Relationships
    project = relationship("Project", lazy="selectin")

    __table_args__ = (
        sa.Index("ix_financial_lines_project_id", "project_id"),
        sa.Index("ix_financial_lines_status", "status"),
        sa.CheckConstraint(
            "schedule_start < schedule_finish",
            name="ck_financial_lines_schedule_order",
        ),
        sa.CheckConstraint("billing_rate > 0", name="ck_financial_lines_rate_positive"),
    )

    def __repr__(self) -> str:
        return f"<FinancialLine {self.fl_no} {self.fl_name!r}>"
