"""FL resource ORM model: one person (or an unnamed demand row) on a financial line."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rmg_portal.common.audit import TimestampMixin
from rmg_portal.common.constants import FLResourceStatus
from rmg_portal.database import Base, value_enum


class FLResource(Base, TimestampMixin):
    """Allocation of a resource to a financial line."""

    __tablename__ = "fl_resources"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    employee_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("employees.id", ondelete="SET NULL"),
    )
    resource_name: Mapped[Optional[str]] = mapped_column(sa.String(200))
    job_role: Mapped[str] = mapped_column(sa.String(150), nullable=False)
    department: Mapped[Optional[str]] = mapped_column(sa.String(150))
    skills: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)

    # ── Allocation ──────────────────────────────────────────────────
    utilization_percentage: Mapped[float] = mapped_column(
        sa.Float, nullable=False, default=0,
    )
    requested_from_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    requested_to_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    billable: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)
    percentage_basis: Mapped[Optional[str]] = mapped_column(sa.String(50))
    monthly_allocations: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    total_allocation: Mapped[Optional[str]] = mapped_column(sa.String(50))

    # ── Financial line (denormalised copy) ──────────────────────────
    financial_line_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("financial_lines.id", ondelete="CASCADE"),
        nullable=False,
    )
    fl_no: Mapped[str] = mapped_column(sa.String(30), nullable=False)
    fl_name: Mapped[str] = mapped_column(sa.String(150), nullable=False)
    project_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )

    status: Mapped[FLResourceStatus] = mapped_column(
        value_enum(FLResourceStatus, "fl_resource_status"),
        nullable=False,
        default=FLResourceStatus.active,
    )

    # Relationships
    employee = relationship("Employee", foreign_keys=[employee_id], lazy="selectin")

    __table_args__ = (
        sa.Index("ix_fl_resources_financial_line_id", "financial_line_id"),
        sa.Index("ix_fl_resources_project_id", "project_id"),
        sa.Index("ix_fl_resources_employee_id", "employee_id"),
        sa.Index("ix_fl_resources_status", "status"),
        sa.CheckConstraint(
            "utilization_percentage >= 0 AND utilization_percentage <= 100",
            name="ck_fl_resources_utilization_range",
        ),
        sa.CheckConstraint(
            "requested_from_date <= requested_to_date",
            name="ck_fl_resources_date_order",
        ),
    )

    def __repr__(self) -> str:
        return f"<FLResource {self.job_role} on {self.fl_no}>"
