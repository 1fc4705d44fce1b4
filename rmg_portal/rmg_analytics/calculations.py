"""Pure RMG analytics reductions.

Every function here takes already-loaded Employee / Project / FLResource
rows (or any objects exposing the same attributes) and reduces them in
memory. Nothing in this module touches the database, so the maths can be
unit-tested with plain namespaces.
"""

from __future__ import annotations

import calendar
import math
import uuid
from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable, Optional, Sequence

from rmg_portal.common.constants import (
    AVAILABILITY_THRESHOLD,
    DAYS_PER_MONTH,
    DEFAULT_FORECAST_MONTHS,
    DEFAULT_TEAM_SIZE,
    EmployeeStatus,
    FLResourceStatus,
    FULL_ALLOCATION,
    MAX_TREND_POINTS,
    OVER_ALLOCATION_THRESHOLD,
    ProjectStatus,
    TOP_COST_EMPLOYEES,
    UNASSIGNED_DEPARTMENT,
    UNDER_ALLOCATION_THRESHOLD,
)
from rmg_portal.common.exceptions import ValidationException
from rmg_portal.rmg_analytics.schemas import (
    ActiveAllocation,
    AllocationEfficiencyReport,
    BenchResource,
    CostPeriod,
    CostSummary,
    CostSummaryReport,
    CostTrend,
    DemandForecastReport,
    DepartmentCost,
    DepartmentUtilization,
    EfficiencySummary,
    EmployeeCost,
    ForecastSummary,
    HiringRecommendation,
    HiringTimelineItem,
    OverAllocated,
    Period,
    ProjectAllocation,
    ProjectCost,
    ResourceUtilizationReport,
    SkillDemand,
    SkillGap,
    SkillHolder,
    SkillsGapPeriod,
    SkillsGapReport,
    SkillsGapSummary,
    TrainingNeed,
    UnderAllocated,
    UpcomingProject,
    UtilizationSummary,
    UtilizationTrendPoint,
)


# ── Helpers ──────────────────────────────────────────────────────────

def _round(value: float) -> float:
    return round(value, 2)


def _pct(part: float, whole: float) -> float:
    return _round(part / whole * 100) if whole else 0.0


def _add_months(day: date, months: int) -> date:
    """Shift ``day`` by whole months, clamping to the target month's last day."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def _department(value: Optional[str]) -> str:
    return value or UNASSIGNED_DEPARTMENT


def _status_value(status) -> str:
    return getattr(status, "value", status)


def resolve_period(
    start_date: Optional[date],
    end_date: Optional[date],
    today: date,
) -> tuple[date, date]:
    """Default ``end`` to today and ``start`` to the first of end's month."""
    end = end_date or today
    start = start_date or end.replace(day=1)
    if start > end:
        raise ValidationException({"start_date": ["Start date must be on or before end date"]})
    return start, end


def is_active_employee(employee) -> bool:
    return employee.status == EmployeeStatus.active and bool(employee.is_active)


def select_resources(
    resources: Iterable,
    *,
    start: Optional[date] = None,
    end: Optional[date] = None,
    department: Optional[str] = None,
    job_role: Optional[str] = None,
    billable: Optional[bool] = None,
    project_id: Optional[uuid.UUID] = None,
) -> list:
    """Active FL resources matching the filters.

    The date overlap check only applies when ``start`` or ``end`` is given;
    a missing bound is treated as open.
    """
    selected = []
    for res in resources:
        if res.status != FLResourceStatus.active:
            continue
        if (start or end) and not (
            res.requested_from_date <= (end or date.max)
            and res.requested_to_date >= (start or date.min)
        ):
            continue
        if department and res.department != department:
            continue
        if job_role and res.job_role != job_role:
            continue
        if billable is not None and bool(res.billable) != billable:
            continue
        if project_id and res.project_id != project_id:
            continue
        selected.append(res)
    return selected


def _group_by_employee(resources: Iterable, employee_ids: set) -> dict:
    grouped: dict = defaultdict(list)
    for res in resources:
        if res.employee_id in employee_ids:
            grouped[res.employee_id].append(res)
    return grouped


def _split_allocation(allocations: Sequence) -> tuple[float, float]:
    billable = sum(a.utilization_percentage or 0 for a in allocations if a.billable)
    non_billable = sum(a.utilization_percentage or 0 for a in allocations if not a.billable)
    return billable, non_billable


def _utilization_totals(resources: Iterable, employee_ids: set) -> tuple[float, float, float]:
    """Summed (capped total, billable, non-billable) allocation over employees."""
    total = billable = non_billable = 0.0
    for allocations in _group_by_employee(resources, employee_ids).values():
        b, nb = _split_allocation(allocations)
        total += min(b + nb, FULL_ALLOCATION)
        billable += b
        non_billable += nb
    return total, billable, non_billable


# ═════════════════════════════════════════════════════════════════════
# Resource utilization
# ═════════════════════════════════════════════════════════════════════


def resource_utilization(
    employees: Sequence,
    resources: Sequence,
    projects: Sequence,
    *,
    period_start: date,
    period_end: date,
    query_start: Optional[date] = None,
    query_end: Optional[date] = None,
    department: Optional[str] = None,
    role: Optional[str] = None,
    billable: Optional[bool] = None,
) -> ResourceUtilizationReport:
    """Utilization of active employees from their active allocations."""
    active = [e for e in employees if is_active_employee(e)]
    employee_by_id = {e.id: e for e in active}
    project_by_id = {p.id: p for p in projects}

    allocations = select_resources(
        resources,
        start=query_start,
        end=query_end,
        department=department,
        job_role=role,
        billable=billable,
    )
    by_employee = _group_by_employee(allocations, set(employee_by_id))

    headcount = len(active)
    capacity = headcount * FULL_ALLOCATION
    total, billable_sum, non_billable_sum = _utilization_totals(allocations, set(employee_by_id))

    summary = UtilizationSummary(
        total_resources=headcount,
        utilized_resources=len(by_employee),
        overall_utilization=_pct(total, capacity),
        billable_utilization=_pct(billable_sum, capacity),
        non_billable_utilization=_pct(non_billable_sum, capacity),
        bench_strength=headcount - len(by_employee),
    )

    departments: dict[str, dict] = {}
    for emp in active:
        stats = departments.setdefault(
            _department(emp.department),
            {"total": 0, "allocated": 0, "utilization": 0.0, "billable": 0.0, "non_billable": 0.0},
        )
        stats["total"] += 1
        emp_allocations = by_employee.get(emp.id)
        if emp_allocations:
            b, nb = _split_allocation(emp_allocations)
            stats["allocated"] += 1
            stats["utilization"] += min(b + nb, FULL_ALLOCATION)
            stats["billable"] += b
            stats["non_billable"] += nb

    department_breakdown = sorted(
        (
            DepartmentUtilization(
                department=name,
                total_resources=stats["total"],
                utilization=_pct(stats["utilization"], stats["total"] * FULL_ALLOCATION),
                billable_hours=_round(stats["billable"]),
                non_billable_hours=_round(stats["non_billable"]),
                bench_count=stats["total"] - stats["allocated"],
            )
            for name, stats in departments.items()
        ),
        key=lambda d: d.utilization,
        reverse=True,
    )

    trend_data = []
    span = (period_end - period_start).days
    for offset in range(min(span, MAX_TREND_POINTS - 1) + 1):
        day = period_start + timedelta(days=offset)
        covering = [
            a for a in allocations
            if a.requested_from_date <= day <= a.requested_to_date
        ]
        day_total, day_billable, day_non_billable = _utilization_totals(
            covering, set(employee_by_id),
        )
        trend_data.append(
            UtilizationTrendPoint(
                date=day,
                utilization=_pct(day_total, capacity),
                billable=_pct(day_billable, capacity),
                non_billable=_pct(day_non_billable, capacity),
            )
        )

    active_allocations = []
    for res in allocations:
        emp = employee_by_id.get(res.employee_id)
        project = project_by_id.get(res.project_id)
        active_allocations.append(
            ActiveAllocation(
                resource_id=res.id,
                employee_id=res.employee_id,
                employee_code=emp.employee_code if emp else None,
                name=emp.name if emp else res.resource_name,
                department=emp.department if emp else res.department,
                designation=emp.designation if emp else res.job_role,
                start_date=res.requested_from_date,
                end_date=res.requested_to_date,
                utilization=res.utilization_percentage or 0,
                project_code=project.project_code if project else None,
                project_name=project.name if project else res.fl_name,
                billable_percentage=100 if res.billable else 0,
            )
        )

    bench_resources = [
        BenchResource(
            employee_id=emp.id,
            employee_code=emp.employee_code,
            name=emp.name,
            department=emp.department,
            designation=emp.designation,
            skills=list(emp.skills or []),
            available_since=emp.date_of_joining,
        )
        for emp in active
        if emp.id not in by_employee
    ]

    return ResourceUtilizationReport(
        period=Period(start=period_start, end=period_end),
        summary=summary,
        department_breakdown=department_breakdown,
        trend_data=trend_data,
        active_allocations=active_allocations,
        bench_resources=bench_resources,
    )


# ═════════════════════════════════════════════════════════════════════
# Allocation efficiency
# ═════════════════════════════════════════════════════════════════════


def allocation_efficiency(
    employees: Sequence,
    resources: Sequence,
    projects: Sequence,
    *,
    start: date,
    end: date,
    project_id: Optional[uuid.UUID] = None,
    department: Optional[str] = None,
) -> AllocationEfficiencyReport:
    """Classify allocated employees as over, under or optimally allocated."""
    allocations = select_resources(resources, start=start, end=end, project_id=project_id)
    allocated_ids = {a.employee_id for a in allocations if a.employee_id}
    staff = [
        e for e in employees
        if e.id in allocated_ids
        and e.status == EmployeeStatus.active
        and (not department or e.department == department)
    ]
    by_employee = _group_by_employee(allocations, {e.id for e in staff})

    over_allocated, under_allocated = [], []
    optimal_count = 0
    total_allocated = 0.0
    for emp in staff:
        emp_allocations = by_employee[emp.id]
        allocation = sum(a.utilization_percentage or 0 for a in emp_allocations)
        total_allocated += allocation
        if allocation > OVER_ALLOCATION_THRESHOLD:
            over_allocated.append(
                OverAllocated(
                    employee_id=emp.id,
                    employee_code=emp.employee_code,
                    name=emp.name,
                    department=emp.department,
                    allocation=_round(allocation),
                    excess=_round(allocation - FULL_ALLOCATION),
                    project_count=len(emp_allocations),
                )
            )
        elif allocation < UNDER_ALLOCATION_THRESHOLD:
            under_allocated.append(
                UnderAllocated(
                    employee_id=emp.id,
                    employee_code=emp.employee_code,
                    name=emp.name,
                    department=emp.department,
                    allocation=_round(allocation),
                    available=_round(FULL_ALLOCATION - allocation),
                    project_count=len(emp_allocations),
                )
            )
        else:
            optimal_count += 1

    project_summary = []
    for project in projects:
        if project.status != ProjectStatus.active:
            continue
        project_allocations = [a for a in allocations if a.project_id == project.id]
        resource_count = len({a.employee_id for a in project_allocations if a.employee_id})
        if not resource_count:
            continue
        total = sum(a.utilization_percentage or 0 for a in project_allocations)
        project_summary.append(
            ProjectAllocation(
                project_id=project.id,
                project_code=project.project_code,
                project_name=project.name,
                resource_count=resource_count,
                total_allocation=_round(total),
                avg_allocation=_round(total / resource_count),
                status=_status_value(project.status),
            )
        )

    capacity = len(staff) * FULL_ALLOCATION
    return AllocationEfficiencyReport(
        period=Period(start=start, end=end),
        summary=EfficiencySummary(
            total_resources=len(staff),
            over_allocated_count=len(over_allocated),
            under_allocated_count=len(under_allocated),
            optimal_count=optimal_count,
            optimal_rate=_pct(optimal_count, len(staff)),
            total_capacity=capacity,
            total_allocated=_round(total_allocated),
            utilization_rate=_pct(total_allocated, capacity),
        ),
        over_allocated=over_allocated,
        under_allocated=under_allocated,
        project_summary=project_summary,
    )


# ═════════════════════════════════════════════════════════════════════
# Cost summary
# ═════════════════════════════════════════════════════════════════════


_COSTED_PROJECT_STATUSES = (ProjectStatus.active, ProjectStatus.on_hold, ProjectStatus.completed)


def _allocated_cost(staff: Sequence, resources: Sequence, start: date, end: date) -> float:
    """Salary cost of the allocated share of ``staff`` between start and end."""
    months = ((end - start).days + 1) / DAYS_PER_MONTH
    allocations = select_resources(resources, start=start, end=end)
    by_employee = _group_by_employee(allocations, {e.id for e in staff})
    cost = 0.0
    for emp in staff:
        allocation = sum(a.utilization_percentage or 0 for a in by_employee.get(emp.id, []))
        cost += (emp.monthly_salary or 0) * months * allocation / 100
    return cost


def cost_summary(
    employees: Sequence,
    resources: Sequence,
    projects: Sequence,
    *,
    start: date,
    end: date,
    project_id: Optional[uuid.UUID] = None,
    department: Optional[str] = None,
) -> CostSummaryReport:
    """Salary cost of active staff split by billable share, with project ROI."""
    days = (end - start).days + 1
    months = days / DAYS_PER_MONTH

    staff = [
        e for e in employees
        if is_active_employee(e) and (not department or e.department == department)
    ]
    allocations = select_resources(resources, start=start, end=end)
    by_employee = _group_by_employee(allocations, {e.id for e in staff})

    costs: dict = {}
    for emp in staff:
        billable, non_billable = _split_allocation(by_employee.get(emp.id, []))
        salary = emp.monthly_salary or 0
        period_cost = salary * months
        costs[emp.id] = {
            "employee": emp,
            "salary": salary,
            "period_cost": period_cost,
            "billable_allocation": billable,
            "non_billable_allocation": non_billable,
            "billable_cost": period_cost * billable / 100,
            "non_billable_cost": period_cost * non_billable / 100,
            "is_bench": billable + non_billable == 0,
        }

    rows = list(costs.values())
    total_cost = sum(r["period_cost"] for r in rows)
    billable_cost = sum(r["billable_cost"] for r in rows)
    non_billable_cost = sum(r["non_billable_cost"] for r in rows)
    bench_rows = [r for r in rows if r["is_bench"]]
    bench_cost = sum(r["period_cost"] for r in bench_rows)

    departments: dict[str, dict] = {}
    for row in rows:
        dept = departments.setdefault(
            _department(row["employee"].department),
            {"count": 0, "total": 0.0, "billable": 0.0, "non_billable": 0.0,
             "bench": 0.0, "bench_count": 0},
        )
        dept["count"] += 1
        dept["total"] += row["period_cost"]
        dept["billable"] += row["billable_cost"]
        dept["non_billable"] += row["non_billable_cost"]
        if row["is_bench"]:
            dept["bench"] += row["period_cost"]
            dept["bench_count"] += 1

    department_costs = sorted(
        (
            DepartmentCost(
                department=name,
                resource_count=d["count"],
                total_cost=_round(d["total"]),
                billable_cost=_round(d["billable"]),
                non_billable_cost=_round(d["non_billable"]),
                bench_cost=_round(d["bench"]),
                bench_count=d["bench_count"],
                avg_cost_per_resource=_round(d["total"] / d["count"]),
            )
            for name, d in departments.items()
        ),
        key=lambda d: d.total_cost,
        reverse=True,
    )

    costed_projects = [
        p for p in projects
        if p.status in _COSTED_PROJECT_STATUSES and (not project_id or p.id == project_id)
    ]
    project_costs = []
    for project in costed_projects:
        project_allocations = [
            a for a in allocations
            if a.project_id == project.id and a.billable and a.employee_id in costs
        ]
        if not project_allocations:
            continue
        actual = sum(
            costs[a.employee_id]["salary"] * months * (a.utilization_percentage or 0) / 100
            for a in project_allocations
        )
        budget = project.budget or 0
        variance = budget - actual
        project_costs.append(
            ProjectCost(
                project_id=project.id,
                project_code=project.project_code,
                project_name=project.name,
                budget=budget,
                actual_cost=_round(actual),
                resource_count=len({a.employee_id for a in project_allocations}),
                variance=_round(variance),
                variance_percent=_pct(variance, budget),
                roi=_pct(variance, actual),
            )
        )
    project_costs.sort(key=lambda p: p.actual_cost, reverse=True)

    top_cost_employees = [
        EmployeeCost(
            employee_id=r["employee"].id,
            employee_code=r["employee"].employee_code,
            name=r["employee"].name,
            department=r["employee"].department,
            monthly_salary=r["salary"],
            period_cost=_round(r["period_cost"]),
            billable_cost=_round(r["billable_cost"]),
            utilization=_round(r["billable_allocation"] + r["non_billable_allocation"]),
            is_bench=r["is_bench"],
        )
        for r in sorted(
            (r for r in rows if r["period_cost"] > 0),
            key=lambda r: r["period_cost"],
            reverse=True,
        )[:TOP_COST_EMPLOYEES]
    ]

    total_budget = sum(p.budget or 0 for p in costed_projects)

    current = billable_cost + non_billable_cost
    previous_end = start - timedelta(days=1)
    previous_start = previous_end - timedelta(days=days - 1)
    previous = _allocated_cost(staff, resources, previous_start, previous_end)

    return CostSummaryReport(
        period=CostPeriod(start=start, end=end, days=days, months=_round(months)),
        summary=CostSummary(
            total_resource_cost=_round(total_cost),
            billable_resource_cost=_round(billable_cost),
            non_billable_resource_cost=_round(non_billable_cost),
            bench_cost=_round(bench_cost),
            total_budget=_round(total_budget),
            budget_utilization=_pct(billable_cost, total_budget),
            cost_per_project=_round(billable_cost / len(project_costs)) if project_costs else 0,
            resource_count=len(staff),
            bench_count=len(bench_rows),
        ),
        department_costs=department_costs,
        project_costs=project_costs,
        top_cost_employees=top_cost_employees,
        trends=CostTrend(
            current_period=_round(current),
            previous_period=_round(previous),
            change=_round(current - previous),
            change_percent=_pct(current - previous, previous),
        ),
    )


# ═════════════════════════════════════════════════════════════════════
# Skills gap
# ═════════════════════════════════════════════════════════════════════


_PIPELINE_STATUSES = (ProjectStatus.active, ProjectStatus.on_hold)


def _required_skills(projects: Iterable) -> dict[str, int]:
    """Number of projects requiring each skill, in first-seen order."""
    required: dict[str, int] = {}
    for project in projects:
        for skill in dict.fromkeys(project.required_skills or []):
            required[skill] = required.get(skill, 0) + 1
    return required


def _priority(gap: int) -> str:
    if gap >= 3:
        return "high"
    if gap >= 2:
        return "medium"
    return "low"


def skills_gap(
    employees: Sequence,
    projects: Sequence,
    *,
    today: date,
    future_months: int = 3,
    project_id: Optional[uuid.UUID] = None,
) -> SkillsGapReport:
    """Skills demanded by pipeline projects against skills held by active staff."""
    horizon = _add_months(today, future_months)
    upcoming = [
        p for p in projects
        if p.status in _PIPELINE_STATUSES
        and p.start_date <= horizon
        and (not project_id or p.id == project_id)
    ]
    required = _required_skills(upcoming)

    holders: dict[str, list[SkillHolder]] = defaultdict(list)
    for emp in employees:
        if not is_active_employee(emp):
            continue
        for skill in dict.fromkeys(emp.skills or []):
            holders[skill].append(
                SkillHolder(
                    employee_id=emp.id,
                    employee_code=emp.employee_code,
                    name=emp.name,
                    department=emp.department,
                )
            )

    gaps = []
    for skill, count in required.items():
        available = len(holders.get(skill, []))
        gap = max(0, count - available)
        gaps.append(
            SkillGap(
                skill=skill,
                required=count,
                available=available,
                gap=gap,
                status="shortage" if gap > 0 else "sufficient",
                employees=holders.get(skill, []),
            )
        )
    gaps.sort(key=lambda g: g.gap, reverse=True)

    hiring = [
        HiringRecommendation(
            skill=g.skill,
            required_count=g.gap,
            priority=_priority(g.gap),
            suggested_role=g.skill,
        )
        for g in gaps
        if g.gap > 0
    ]

    training = []
    for skill, count in required.items():
        available = len(holders.get(skill, []))
        needed = max(0, math.ceil(count * 0.5) - available)
        if needed > 0:
            training.append(
                TrainingNeed(skill=skill, current_employees=available, additional_needed=needed)
            )
    training.sort(key=lambda t: t.additional_needed, reverse=True)

    return SkillsGapReport(
        period=SkillsGapPeriod(future_months=future_months, upcoming_projects_count=len(upcoming)),
        summary=SkillsGapSummary(
            total_skills_required=len(required),
            total_skills_available=len(holders),
            critical_gaps=sum(1 for g in gaps if g.gap >= 3),
            moderate_gaps=sum(1 for g in gaps if 1 <= g.gap < 3),
        ),
        skills_gap=gaps,
        hiring_recommendations=hiring,
        training_needs=training,
    )


# ═════════════════════════════════════════════════════════════════════
# Demand forecast
# ═════════════════════════════════════════════════════════════════════


def _urgency(gap: int) -> str:
    if gap >= 3:
        return "immediate"
    if gap >= 2:
        return "within-month"
    return "within-quarter"


def demand_forecast(
    employees: Sequence,
    resources: Sequence,
    projects: Sequence,
    *,
    today: date,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    department: Optional[str] = None,
    role: Optional[str] = None,
) -> DemandForecastReport:
    """Skill demand of projects starting in the window against free capacity."""
    window_start = start_date or today
    window_end = _add_months(end_date or today, DEFAULT_FORECAST_MONTHS)
    if window_start > window_end:
        raise ValidationException({"start_date": ["Start date must be on or before end date"]})

    upcoming = sorted(
        (
            p for p in projects
            if p.status in _PIPELINE_STATUSES and window_start <= p.start_date <= window_end
        ),
        key=lambda p: p.start_date,
    )
    staff = [
        e for e in employees
        if is_active_employee(e)
        and (not department or e.department == department)
        and (not role or e.designation == role)
    ]

    current = select_resources(resources, start=today, end=today)
    by_employee = _group_by_employee(current, {e.id for e in staff})
    utilization = {
        e.id: sum(a.utilization_percentage or 0 for a in by_employee.get(e.id, []))
        for e in staff
    }
    free = [e for e in staff if utilization[e.id] < AVAILABILITY_THRESHOLD]

    demand = _required_skills(upcoming)
    demand_by_role = []
    for skill, count in demand.items():
        available = sum(1 for e in free if skill in (e.skills or []))
        demand_by_role.append(
            SkillDemand(role=skill, demand=count, available=available, gap=max(0, count - available))
        )
    demand_by_role.sort(key=lambda d: d.gap, reverse=True)

    return DemandForecastReport(
        period=Period(start=window_start, end=window_end),
        summary=ForecastSummary(
            upcoming_projects_count=len(upcoming),
            total_demand=sum(demand.values()),
            available_resources=len(free),
            total_gap=sum(d.gap for d in demand_by_role),
            utilization_rate=_pct(sum(utilization.values()), len(staff) * FULL_ALLOCATION),
        ),
        demand_by_role=demand_by_role,
        upcoming_projects=[
            UpcomingProject(
                project_id=p.id,
                project_code=p.project_code,
                project_name=p.name,
                start_date=p.start_date,
                estimated_team_size=p.team_size or DEFAULT_TEAM_SIZE,
                required_skills=list(p.required_skills or []),
                status=_status_value(p.status),
            )
            for p in upcoming
        ],
        hiring_timeline=[
            HiringTimelineItem(
                role=d.role,
                hires_needed=d.gap,
                urgency=_urgency(d.gap),
                suggested_start_date=today,
            )
            for d in demand_by_role
            if d.gap > 0
        ],
    )
