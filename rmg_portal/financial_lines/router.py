"""Financial line router.

Routes:
    /financial-lines         List, create
    /financial-lines/active  Active FLs by number
    /financial-lines/stats   Status counts and active funding
    /financial-lines/{id}    Get, update, delete
"""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from rmg_portal.auth.dependencies import get_current_user, require_role
from rmg_portal.common.constants import RMG_ROLES, BillingType, FLStatus, LocationType
from rmg_portal.common.pagination import PaginationParams
from rmg_portal.database import get_db
from rmg_portal.employees.models import Employee
from rmg_portal.financial_lines.schemas import (
    FinancialLineCreate,
    FinancialLineResponse,
    FinancialLineUpdate,
)
from rmg_portal.financial_lines.service import FinancialLineService

router = APIRouter(prefix="", tags=["financial-lines"])


def _out(fl) -> dict:
    return FinancialLineResponse.model_validate(fl).model_dump(mode="json")


# ── GET /financial-lines ────────────────────────────────────────────

@router.get("")
async def list_financial_lines(
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
    pagination: PaginationParams = Depends(),
    status: Optional[FLStatus] = Query(None),
    location_type: Optional[LocationType] = Query(None),
    contract_type: Optional[BillingType] = Query(None),
    project_id: Optional[uuid.UUID] = Query(None),
    search: Optional[str] = Query(None, description="Search FL number or name"),
):
    result = await FinancialLineService.list_financial_lines(
        db,
        pagination,
        status=status,
        location_type=location_type,
        contract_type=contract_type,
        project_id=project_id,
        search=search,
    )
    return result.model_dump(mode="json")


# ── GET /financial-lines/active ─────────────────────────────────────
# NOTE: Fixed paths MUST be registered before /{fl_id}.

@router.get("/active")
async def list_active_financial_lines(
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    lines = await FinancialLineService.list_active(db)
    return {"success": True, "data": [_out(fl) for fl in lines]}


# ── GET /financial-lines/stats ──────────────────────────────────────

@router.get("/stats")
async def financial_line_stats(
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    stats = await FinancialLineService.get_stats(db)
    return {"success": True, "data": stats.model_dump()}


# ── POST /financial-lines ───────────────────────────────────────────

@router.post("", status_code=201)
async def create_financial_line(
    body: FinancialLineCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(require_role(*RMG_ROLES)),
):
    fl = await FinancialLineService.create_financial_line(db, body, actor_id=current_user.id)
    return {"success": True, "message": "Financial line created successfully", "data": _out(fl)}


# ── GET /financial-lines/{id} ───────────────────────────────────────

@router.get("/{fl_id}")
async def get_financial_line(
    fl_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    fl = await FinancialLineService.get_financial_line(db, fl_id)
    return {"success": True, "data": _out(fl)}


# ── PUT /financial-lines/{id} ───────────────────────────────────────

@router.put("/{fl_id}")
async def update_financial_line(
    fl_id: uuid.UUID,
    body: FinancialLineUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(require_role(*RMG_ROLES)),
):
    fl = await FinancialLineService.update_financial_line(
        db, fl_id, body, actor_id=current_user.id,
    )
    return {"success": True, "message": "Financial line updated successfully", "data": _out(fl)}


# ── DELETE /financial-lines/{id} ────────────────────────────────────

@router.delete("/{fl_id}")
async def delete_financial_line(
    fl_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(require_role(*RMG_ROLES)),
):
    removed = await FinancialLineService.delete_financial_line(
        db, fl_id, actor_id=current_user.id,
    )
    return {
        "success": True,
        "message": "Financial line deleted successfully",
        "data": {"removed_resources": removed},
    }
