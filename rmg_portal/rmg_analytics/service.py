"""RMG analytics service: loads rows and hands them to the reductions.

All methods are static async, following the project convention. Queries
only narrow by status; the filtering and arithmetic happen in
``calculations`` so the same code path is exercised by the unit tests.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rmg_portal.common.constants import (
    DEFAULT_SKILLS_HORIZON_MONTHS,
    EmployeeStatus,
    FLResourceStatus,
)
from rmg_portal.employees.models import Employee
from rmg_portal.fl_resources.models import FLResource
from rmg_portal.projects.models import Project
from rmg_portal.rmg_analytics import calculations
from rmg_portal.rmg_analytics.schemas import (
    AllocationEfficiencyReport,
    CostSummaryReport,
    DemandForecastReport,
    ResourceUtilizationReport,
    SkillsGapReport,
)

logger = logging.getLogger(__name__)


def _today() -> date:
    """Current date in IST (Asia/Kolkata)."""
    return datetime.now(ZoneInfo("Asia/Kolkata")).date()


async def _employees(db: AsyncSession) -> list[Employee]:
    result = await db.execute(
        select(Employee).where(Employee.status == EmployeeStatus.active)
    )
    return list(result.scalars().all())


async def _active_resources(db: AsyncSession) -> list[FLResource]:
    result = await db.execute(
        select(FLResource).where(FLResource.status == FLResourceStatus.active)
    )
    return list(result.scalars().all())


async def _projects(db: AsyncSession) -> list[Project]:
    result = await db.execute(select(Project))
    return list(result.scalars().all())


class RMGAnalyticsService:
    """Async RMG dashboard reports."""

    @staticmethod
    async def resource_utilization(
        db: AsyncSession,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        department: Optional[str] = None,
        role: Optional[str] = None,
        billable: Optional[bool] = None,
    ) -> ResourceUtilizationReport:
        period_start, period_end = calculations.resolve_period(start_date, end_date, _today())
        employees = await _employees(db)
        resources = await _active_resources(db)
        projects = await _projects(db)
        logger.debug(
            "Utilization over %d employees, %d allocations", len(employees), len(resources),
        )
        return calculations.resource_utilization(
            employees,
            resources,
            projects,
            period_start=period_start,
            period_end=period_end,
            query_start=start_date,
            query_end=end_date,
            department=department,
            role=role,
            billable=billable,
        )

    @staticmethod
    async def allocation_efficiency(
        db: AsyncSession,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        project_id: Optional[uuid.UUID] = None,
        department: Optional[str] = None,
    ) -> AllocationEfficiencyReport:
        start, end = calculations.resolve_period(start_date, end_date, _today())
        return calculations.allocation_efficiency(
            await _employees(db),
            await _active_resources(db),
            await _projects(db),
            start=start,
            end=end,
            project_id=project_id,
            department=department,
        )

    @staticmethod
    async def cost_summary(
        db: AsyncSession,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        project_id: Optional[uuid.UUID] = None,
        department: Optional[str] = None,
    ) -> CostSummaryReport:
        start, end = calculations.resolve_period(start_date, end_date, _today())
        return calculations.cost_summary(
            await _employees(db),
            await _active_resources(db),
            await _projects(db),
            start=start,
            end=end,
            project_id=project_id,
            department=department,
        )

    @staticmethod
    async def skills_gap(
        db: AsyncSession,
        project_id: Optional[uuid.UUID] = None,
        future_months: int = DEFAULT_SKILLS_HORIZON_MONTHS,
    ) -> SkillsGapReport:
        return calculations.skills_gap(
            await _employees(db),
            await _projects(db),
            today=_today(),
            future_months=future_months,
            project_id=project_id,
        )

    @staticmethod
    async def demand_forecast(
        db: AsyncSession,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        department: Optional[str] = None,
        role: Optional[str] = None,
    ) -> DemandForecastReport:
        return calculations.demand_forecast(
            await _employees(db),
            await _active_resources(db),
            await _projects(db),
            today=_today(),
            start_date=start_date,
            end_date=end_date,
            department=department,
            role=role,
        )
