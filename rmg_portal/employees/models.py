"""Employee ORM model, the person record that allocations and analytics join on."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from rmg_portal.common.audit import TimestampMixin
from rmg_portal.common.constants import EmployeeStatus, UserRole
from rmg_portal.database import Base, value_enum


class Employee(Base, TimestampMixin):
    """Core employee record."""

    __tablename__ = "employees"

    # ── Primary key ─────────────────────────────────────────────────
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # ── Identifiers ─────────────────────────────────────────────────
    employee_code: Mapped[str] = mapped_column(
        sa.String(20), unique=True, nullable=False,
    )
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    email: Mapped[str] = mapped_column(
        sa.String(255), unique=True, nullable=False,
    )
    phone: Mapped[Optional[str]] = mapped_column(sa.String(30))

    # ── Organisation ────────────────────────────────────────────────
    role: Mapped[UserRole] = mapped_column(
        value_enum(UserRole, "user_role"), nullable=False, default=UserRole.employee,
    )
    department: Mapped[Optional[str]] = mapped_column(sa.String(150))
    designation: Mapped[Optional[str]] = mapped_column(sa.String(150))
    location: Mapped[Optional[str]] = mapped_column(sa.String(100))
    skills: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)

    # ── Employment ──────────────────────────────────────────────────
    status: Mapped[EmployeeStatus] = mapped_column(
        value_enum(EmployeeStatus, "employee_status"),
        nullable=False,
        default=EmployeeStatus.active,
    )
    is_active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)
    date_of_joining: Mapped[Optional[date]] = mapped_column(sa.Date)
    monthly_salary: Mapped[float] = mapped_column(
        sa.Numeric(14, 2, asdecimal=False), nullable=False, default=0,
    )

    __table_args__ = (
        sa.Index("ix_employees_department", "department"),
        sa.Index("ix_employees_status", "status"),
        sa.CheckConstraint("monthly_salary >= 0", name="ck_employees_salary_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Employee {self.employee_code} {self.name!r}>"
