"""Project router.

Routes:
    /projects                 List, create
    /projects/next-id         Next suggested project code
    /projects/active          Active projects by name
    /projects/by-code/{code}  Lookup by project code
    /projects/{id}            Get, update, delete
    /projects/{id}/status     Status change (cancellation cascades)
"""


import uuid
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from rmg_portal.auth.dependencies import get_current_user, require_role
from rmg_portal.common.constants import RMG_ROLES, BillingType, ProjectStatus
from rmg_portal.common.pagination import PaginationParams
from rmg_portal.database import get_db
from rmg_portal.employees.models import Employee
from rmg_portal.projects.schemas import (
    ProjectCreate,
    ProjectResponse,
    ProjectStatusChange,
    ProjectStatusUpdate,
    ProjectUpdate,
)
from rmg_portal.projects.service import ProjectService

router = APIRouter(prefix="", tags=["projects"])


def _out(project) -> dict:
    return ProjectResponse.model_validate(project).model_dump(mode="json")


# ── GET /projects/next-id ───────────────────────────────────────────
# NOTE: Fixed paths MUST be registered before /{project_id}.

@router.get("/next-id")
async def next_project_id(
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    return {"success": True, "data": await ProjectService.next_project_code(db)}


# ── GET /projects/active ────────────────────────────────────────────

@router.get("/active")
async def list_active_projects(
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    projects = await ProjectService.list_active(db)
    return {"success": True, "data": [_out(p) for p in projects]}


# ── GET /projects/by-code/{project_code} ────────────────────────────

@router.get("/by-code/{project_code}")
async def get_project_by_code(
    project_code: str,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    project = await ProjectService.get_by_code(db, project_code)
    return {"success": True, "data": _out(project)}


# ── GET /projects ───────────────────────────────────────────────────

@router.get("")
async def list_projects(
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
    pagination: PaginationParams = Depends(),
    status: Optional[ProjectStatus] = Query(None),
    region: Optional[str] = Query(None),
    billing_type: Optional[BillingType] = Query(None),
    search: Optional[str] = Query(None),
    search_scope: Literal["all", "name", "id", "manager"] = Query("all"),
):
    """List projects, newest first."""
    result = await ProjectService.list_projects(
        db,
        pagination,
        status=status,
        region=region,
        billing_type=billing_type,
        search=search,
        search_scope=search_scope,
    )
    return result.model_dump(mode="json")


# ── POST /projects ──────────────────────────────────────────────────

@router.post("", status_code=201)
async def create_project(
    body: ProjectCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(require_role(*RMG_ROLES)),
):
    project = await ProjectService.create_project(db, body, actor_id=current_user.id)
    return {"success": True, "message": "Project created successfully", "data": _out(project)}


# ── GET /projects/{id} ──────────────────────────────────────────────

@router.get("/{project_id}")
async def get_project(
    project_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    project = await ProjectService.get_project(db, project_id)
    return {"success": True, "data": _out(project)}


# ── PUT /projects/{id} ──────────────────────────────────────────────

@router.put("/{project_id}")
async def update_project(
    project_id: uuid.UUID,
    body: ProjectUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(require_role(*RMG_ROLES)),
):
    project = await ProjectService.update_project(
        db, project_id, body, actor_id=current_user.id,
    )
    return {"success": True, "message": "Project updated successfully", "data": _out(project)}


# ── PATCH /projects/{id}/status ─────────────────────────────────────

@router.patch("/{project_id}/status")
async def change_project_status(
    project_id: uuid.UUID,
    body: ProjectStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(require_role(*RMG_ROLES)),
):
    """Change status; ``cancelled`` cancels open FLs and releases their resources."""
    project, cancelled_fls, released = await ProjectService.change_status(
        db, project_id, body.status, actor_id=current_user.id,
    )
    change = ProjectStatusChange(
        project=ProjectResponse.model_validate(project),
        cancelled_financial_lines=cancelled_fls,
        released_resources=released,
    )
    return {
        "success": True,
        "message": f"Project status updated to {body.status.value}",
        "data": change.model_dump(mode="json"),
    }


# ── DELETE /projects/{id} ───────────────────────────────────────────

@router.delete("/{project_id}")
async def delete_project(
    project_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(require_role(*RMG_ROLES)),
):
    await ProjectService.delete_project(db, project_id, actor_id=current_user.id)
    return {"success": True, "message": "Project deleted successfully"}
