"""FL resource router.

Routes:
    /fl-resources                            List, create
    /fl-resources/by-fl/{fl_id}              Resources on one FL
    /fl-resources/by-project/{project_id}    Resources on one project
    /fl-resources/by-employee/{employee_id}  Active allocations of one employee
    /fl-resources/{id}                       Get, update, delete
"""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from rmg_portal.auth.dependencies import get_current_user, require_role
from rmg_portal.common.constants import RMG_ROLES, FLResourceStatus
from rmg_portal.common.pagination import PaginationParams
from rmg_portal.database import get_db
from rmg_portal.employees.models import Employee
from rmg_portal.fl_resources.schemas import (
    FLResourceCreate,
    FLResourceResponse,
    FLResourceUpdate,
)
from rmg_portal.fl_resources.service import FLResourceService

router = APIRouter(prefix="", tags=["fl-resources"])


def _out(resource) -> dict:
    return FLResourceResponse.model_validate(resource).model_dump(mode="json")


def _many(resources) -> dict:
    return {"success": True, "data": [_out(r) for r in resources]}


# ── GET /fl-resources ───────────────────────────────────────────────

@router.get("")
async def list_resources(
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
    pagination: PaginationParams = Depends(),
    project_id: Optional[uuid.UUID] = Query(None),
    financial_line_id: Optional[uuid.UUID] = Query(None),
    status: Optional[FLResourceStatus] = Query(None),
    search: Optional[str] = Query(None, description="Search name, job role or department"),
):
    result = await FLResourceService.list_resources(
        db,
        pagination,
        project_id=project_id,
        financial_line_id=financial_line_id,
        status=status,
        search=search,
    )
    return result.model_dump(mode="json")


# ── GET /fl-resources/by-* ──────────────────────────────────────────

@router.get("/by-fl/{fl_id}")
async def resources_by_financial_line(
    fl_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    return _many(await FLResourceService.by_financial_line(db, fl_id))


@router.get("/by-project/{project_id}")
async def resources_by_project(
    project_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    return _many(await FLResourceService.by_project(db, project_id))


@router.get("/by-employee/{employee_id}")
async def resources_by_employee(
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    return _many(await FLResourceService.by_employee(db, employee_id))


# ── POST /fl-resources ──────────────────────────────────────────────

@router.post("", status_code=201)
async def create_resource(
    body: FLResourceCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(require_role(*RMG_ROLES)),
):
    """Allocate a resource to a financial line; the employee is notified."""
    resource = await FLResourceService.create_resource(db, body)
    return {"success": True, "message": "Resource added successfully", "data": _out(resource)}


# ── GET /fl-resources/{id} ──────────────────────────────────────────

@router.get("/{resource_id}")
async def get_resource(
    resource_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    resource = await FLResourceService.get_resource(db, resource_id)
    return {"success": True, "data": _out(resource)}


# ── PUT /fl-resources/{id} ──────────────────────────────────────────

@router.put("/{resource_id}")
async def update_resource(
    resource_id: uuid.UUID,
    body: FLResourceUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(require_role(*RMG_ROLES)),
):
    resource = await FLResourceService.update_resource(db, resource_id, body)
    return {"success": True, "message": "Resource updated successfully", "data": _out(resource)}


# ── DELETE /fl-resources/{id} ───────────────────────────────────────

@router.delete("/{resource_id}")
async def delete_resource(
    resource_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(require_role(*RMG_ROLES)),
):
    await FLResourceService.delete_resource(db, resource_id)
    return {"success": True, "message": "Resource deleted successfully"}
