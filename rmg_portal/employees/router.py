"""Employee router: list, detail, allocations and people-admin writes.

Routes:
    /employees                   List, create
    /employees/{id}              Get, update, soft delete
    /employees/{id}/allocations  Active FL resources
"""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from rmg_portal.auth.dependencies import get_current_user, require_role
from rmg_portal.common.constants import PEOPLE_ADMIN_ROLES, EmployeeStatus
from rmg_portal.common.pagination import PaginationParams
from rmg_portal.database import get_db
from rmg_portal.employees.models import Employee
from rmg_portal.employees.schemas import EmployeeCreate, EmployeeResponse, EmployeeUpdate
from rmg_portal.employees.service import EmployeeService
from rmg_portal.fl_resources.schemas import FLResourceResponse

router = APIRouter(prefix="", tags=["employees"])


# ── GET /employees ──────────────────────────────────────────────────

@router.get("")
async def list_employees(
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
    pagination: PaginationParams = Depends(),
    search: Optional[str] = Query(None, description="Search by name, email, or employee code"),
    department: Optional[str] = Query(None),
    designation: Optional[str] = Query(None),
    status: Optional[EmployeeStatus] = Query(None),
    is_active: Optional[bool] = Query(None),
):
    """List employees with pagination, search, and filtering."""
    result = await EmployeeService.list_employees(
        db,
        pagination,
        search=search,
        department=department,
        designation=designation,
        status=status,
        is_active=is_active,
    )
    return result.model_dump(mode="json")


# ── POST /employees ─────────────────────────────────────────────────

@router.post("", status_code=201)
async def create_employee(
    body: EmployeeCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(require_role(*PEOPLE_ADMIN_ROLES)),
):
    employee = await EmployeeService.create_employee(db, body, actor_id=current_user.id)
    return {
        "success": True,
        "message": "Employee created successfully",
        "data": EmployeeResponse.model_validate(employee).model_dump(mode="json"),
    }


# ── GET /employees/{id} ─────────────────────────────────────────────

@router.get("/{employee_id}")
async def get_employee(
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    employee = await EmployeeService.get_employee(db, employee_id)
    return {
        "success": True,
        "data": EmployeeResponse.model_validate(employee).model_dump(mode="json"),
    }


# ── GET /employees/{id}/allocations ─────────────────────────────────

@router.get("/{employee_id}/allocations")
async def get_employee_allocations(
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """Active FL resources held by the employee, latest start first."""
    resources = await EmployeeService.get_active_allocations(db, employee_id)
    return {
        "success": True,
        "data": [FLResourceResponse.model_validate(r).model_dump(mode="json") for r in resources],
    }


# ── PUT /employees/{id} ─────────────────────────────────────────────

@router.put("/{employee_id}")
async def update_employee(
    employee_id: uuid.UUID,
    body: EmployeeUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(require_role(*PEOPLE_ADMIN_ROLES)),
):
    employee = await EmployeeService.update_employee(
        db, employee_id, body, actor_id=current_user.id,
    )
    return {
        "success": True,
        "message": "Employee updated successfully",
        "data": EmployeeResponse.model_validate(employee).model_dump(mode="json"),
    }


# ── DELETE /employees/{id} (soft) ───────────────────────────────────

@router.delete("/{employee_id}")
async def delete_employee(
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(require_role(*PEOPLE_ADMIN_ROLES)),
):
    """Deactivate the employee and set their active allocations Inactive."""
    released = await EmployeeService.deactivate_employee(
        db, employee_id, actor_id=current_user.id,
    )
    return {
        "success": True,
        "message": "Employee deactivated successfully",
        "data": {"released_allocations": released},
    }
