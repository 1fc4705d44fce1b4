"""Employee service layer: CRUD, soft delete and allocation lookup."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Optional, Sequence

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rmg_portal.common.audit import create_audit_entry, snapshot
from rmg_portal.common.constants import EmployeeStatus, FLResourceStatus
from rmg_portal.common.exceptions import (
    DuplicateException,
    NotFoundException,
    reject_null_columns,
)
from rmg_portal.common.filters import apply_filters, apply_search
from rmg_portal.common.pagination import PaginatedResponse, PaginationParams, paginate
from rmg_portal.employees.models import Employee
from rmg_portal.employees.schemas import EmployeeCreate, EmployeeResponse, EmployeeUpdate
from rmg_portal.fl_resources.models import FLResource

logger = logging.getLogger(__name__)

_AUDIT_FIELDS = ["employee_code", "name", "email", "role", "department", "status", "is_active"]


class EmployeeService:
    """Async employee operations."""

    @staticmethod
    async def list_employees(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        search: Optional[str] = None,
        department: Optional[str] = None,
        designation: Optional[str] = None,
        status: Optional[EmployeeStatus] = None,
        is_active: Optional[bool] = None,
    ) -> PaginatedResponse:
        """Return a paginated, filtered, searchable employee list."""
        query = select(Employee).order_by(Employee.name)

        filters: dict[str, Any] = {
            "department": department,
            "designation": designation,
            "status": status,
            "is_active": is_active,
        }
        query = apply_filters(query, Employee, filters)
        query = apply_search(query, Employee, search, ["name", "email", "employee_code"])

        return await paginate(db, query, pagination, model=Employee, schema=EmployeeResponse)

    @staticmethod
    async def get_employee(db: AsyncSession, employee_id: uuid.UUID) -> Employee:
        result = await db.execute(select(Employee).where(Employee.id == employee_id))
        employee = result.scalars().first()
        if employee is None:
            raise NotFoundException("Employee", str(employee_id))
        return employee

    @staticmethod
    async def _ensure_unique(
        db: AsyncSession,
        *,
        employee_code: Optional[str] = None,
        email: Optional[str] = None,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        conditions = []
        if employee_code:
            conditions.append(Employee.employee_code == employee_code)
        if email:
            conditions.append(Employee.email == email)
        if not conditions:
            return

        query = select(Employee).where(or_(*conditions))
        if exclude_id is not None:
            query = query.where(Employee.id != exclude_id)
        existing = (await db.execute(query)).scalars().first()
        if existing is None:
            return
        if employee_code and existing.employee_code == employee_code:
            raise DuplicateException(
                "employee_code", employee_code,
                detail=f"Employee with code {employee_code} already exists",
            )
        raise DuplicateException(
            "email", email, detail=f"Employee with email {email} already exists",
        )

    @staticmethod
    async def create_employee(
        db: AsyncSession,
        data: EmployeeCreate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Employee:
        """Create a new employee record."""
        payload = data.model_dump()
        payload["email"] = payload["email"].lower()
        await EmployeeService._ensure_unique(
            db, employee_code=payload["employee_code"], email=payload["email"],
        )

        employee = Employee(**payload)
        employee.is_active = employee.status != EmployeeStatus.inactive
        db.add(employee)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="employee",
            entity_id=employee.id,
            actor_id=actor_id,
            new_values=snapshot(employee, _AUDIT_FIELDS),
        )
        logger.info("Employee %s created", employee.employee_code)
        return employee

    @staticmethod
    async def update_employee(
        db: AsyncSession,
        employee_id: uuid.UUID,
        data: EmployeeUpdate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Employee:
        """Partial-update an existing employee."""
        employee = await EmployeeService.get_employee(db, employee_id)

        changes = data.model_dump(exclude_unset=True)
        reject_null_columns(Employee, changes)
        if not changes:
            return employee
        if changes.get("email"):
            changes["email"] = changes["email"].lower()
            await EmployeeService._ensure_unique(
                db, email=changes["email"], exclude_id=employee.id,
            )

        old_values = snapshot(employee, list(changes))
        for field, value in changes.items():
            setattr(employee, field, value)
        if "status" in changes and changes["status"] is not None:
            employee.is_active = employee.status != EmployeeStatus.inactive

        await db.flush()
        await create_audit_entry(
            db,
            action="update",
            entity_type="employee",
            entity_id=employee.id,
            actor_id=actor_id,
            old_values=old_values,
            new_values=snapshot(employee, list(changes)),
        )
        return employee

    @staticmethod
    async def deactivate_employee(
        db: AsyncSession,
        employee_id: uuid.UUID,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> int:
        """Soft delete: mark the employee inactive and release their allocations.

        Returns the number of FL resources moved to ``Inactive``.
        """
        employee = await EmployeeService.get_employee(db, employee_id)
        old_values = snapshot(employee, ["status", "is_active"])

        employee.status = EmployeeStatus.inactive
        employee.is_active = False

        result = await db.execute(
            update(FLResource)
            .where(
                FLResource.employee_id == employee.id,
                FLResource.status == FLResourceStatus.active,
            )
            .values(status=FLResourceStatus.inactive)
            .execution_options(synchronize_session="fetch")
        )
        released = result.rowcount or 0
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="employee",
            entity_id=employee.id,
            actor_id=actor_id,
            old_values=old_values,
            new_values={**snapshot(employee, ["status", "is_active"]), "released": released},
        )
        logger.info(
            "Employee %s deactivated; %d allocation(s) set Inactive",
            employee.employee_code, released,
        )
        return released

    @staticmethod
    async def get_active_allocations(
        db: AsyncSession,
        employee_id: uuid.UUID,
    ) -> Sequence[FLResource]:
        """Active FL resources for an employee, latest start date first."""
        await EmployeeService.get_employee(db, employee_id)
        result = await db.execute(
            select(FLResource)
            .where(
                FLResource.employee_id == employee_id,
                FLResource.status == FLResourceStatus.active,
            )
            .order_by(FLResource.requested_from_date.desc())
        )
        return result.scalars().all()
