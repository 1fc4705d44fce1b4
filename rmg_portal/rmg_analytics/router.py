"""RMG analytics router: read-only dashboards for the resource management group.

Every endpoint requires the rmg role (super_admin passes implicitly). Dates
are ISO ``YYYY-MM-DD``; when omitted the period is the current month to date.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from rmg_portal.auth.dependencies import require_role
from rmg_portal.common.constants import DEFAULT_SKILLS_HORIZON_MONTHS, RMG_ROLES
from rmg_portal.database import get_db
from rmg_portal.employees.models import Employee
from rmg_portal.rmg_analytics.service import RMGAnalyticsService

router = APIRouter()


# ── GET /resource-utilization ───────────────────────────────────────

@router.get("/resource-utilization")
async def resource_utilization(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    department: Optional[str] = Query(None),
    role: Optional[str] = Query(None, description="FL resource job role"),
    billable: Optional[bool] = Query(None),
    employee: Employee = Depends(require_role(*RMG_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    """Utilization summary, department breakdown, daily trend and bench."""
    report = await RMGAnalyticsService.resource_utilization(
        db,
        start_date=start_date,
        end_date=end_date,
        department=department,
        role=role,
        billable=billable,
    )
    return {"success": True, "data": report.model_dump(mode="json")}


# ── GET /allocation-efficiency ──────────────────────────────────────

@router.get("/allocation-efficiency")
async def allocation_efficiency(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    project_id: Optional[uuid.UUID] = Query(None),
    department: Optional[str] = Query(None),
    employee: Employee = Depends(require_role(*RMG_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    """Over / under / optimal allocation and per-project staffing."""
    report = await RMGAnalyticsService.allocation_efficiency(
        db,
        start_date=start_date,
        end_date=end_date,
        project_id=project_id,
        department=department,
    )
    return {"success": True, "data": report.model_dump(mode="json")}


# ── GET /cost-summary ───────────────────────────────────────────────

@router.get("/cost-summary")
async def cost_summary(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    project_id: Optional[uuid.UUID] = Query(None),
    department: Optional[str] = Query(None),
    employee: Employee = Depends(require_role(*RMG_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    """Salary cost split by billable share, project ROI and trend."""
    report = await RMGAnalyticsService.cost_summary(
        db,
        start_date=start_date,
        end_date=end_date,
        project_id=project_id,
        department=department,
    )
    return {"success": True, "data": report.model_dump(mode="json")}


# ── GET /skills-gap ─────────────────────────────────────────────────

@router.get("/skills-gap")
async def skills_gap(
    project_id: Optional[uuid.UUID] = Query(None),
    future_months: int = Query(DEFAULT_SKILLS_HORIZON_MONTHS, ge=0, le=36),
    employee: Employee = Depends(require_role(*RMG_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    """Skills required by upcoming projects against skills on hand."""
    report = await RMGAnalyticsService.skills_gap(
        db, project_id=project_id, future_months=future_months,
    )
    return {"success": True, "data": report.model_dump(mode="json")}


# ── GET /demand-forecast ────────────────────────────────────────────

@router.get("/demand-forecast")
async def demand_forecast(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    department: Optional[str] = Query(None),
    role: Optional[str] = Query(None, description="Employee designation"),
    employee: Employee = Depends(require_role(*RMG_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    """Six-month skill demand, free capacity and hiring timeline."""
    report = await RMGAnalyticsService.demand_forecast(
        db,
        start_date=start_date,
        end_date=end_date,
        department=department,
        role=role,
    )
    return {"success": True, "data": report.model_dump(mode="json")}
