"""Project ORM model."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from rmg_portal.common.audit import TimestampMixin
from rmg_portal.common.constants import BillingType, ProjectStatus
from rmg_portal.database import Base, value_enum


class Project(Base, TimestampMixin):
    """Client project; parent of financial lines and customer POs."""

    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    project_code: Mapped[str] = mapped_column(
        sa.String(30), unique=True, nullable=False,
    )
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    client: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    account_name: Mapped[Optional[str]] = mapped_column(sa.String(200))
    legal_entity: Mapped[Optional[str]] = mapped_column(sa.String(200))

    # ── Commercials ─────────────────────────────────────────────────
    billing_type: Mapped[Optional[BillingType]] = mapped_column(
        value_enum(BillingType, "billing_type"),
    )
    region: Mapped[Optional[str]] = mapped_column(sa.String(50))
    practice_unit: Mapped[Optional[str]] = mapped_column(sa.String(100))
    project_currency: Mapped[str] = mapped_column(
        sa.String(10), nullable=False, default="USD",
    )
    budget: Mapped[Optional[float]] = mapped_column(sa.Numeric(16, 2, asdecimal=False))
    estimated_value: Mapped[Optional[float]] = mapped_column(
        sa.Numeric(16, 2, asdecimal=False),
    )

    # ── Lifecycle ───────────────────────────────────────────────────
    status: Mapped[ProjectStatus] = mapped_column(
        value_enum(ProjectStatus, "project_status"),
        nullable=False,
        default=ProjectStatus.active,
    )
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)

    # ── People ({"employee_code": ..., "name": ...}) ───────────────
    project_manager: Mapped[Optional[dict]] = mapped_column(JSONB)
    delivery_manager: Mapped[Optional[dict]] = mapped_column(JSONB)

    # ── Staffing ────────────────────────────────────────────────────
    utilization: Mapped[float] = mapped_column(sa.Float, nullable=False, default=0)
    required_skills: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    team_size: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)

    __table_args__ = (
        sa.Index("ix_projects_status", "status"),
        sa.CheckConstraint(
            "utilization >= 0 AND utilization <= 100",
            name="ck_projects_utilization_range",
        ),
    )

    def __repr__(self) -> str:
        return f"<Project {self.project_code} {self.name!r}>"
