"""RMG analytics Pydantic v2 schemas: response models for the dashboards."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field


class Period(BaseModel):
    start: date
    end: date


# ═════════════════════════════════════════════════════════════════════
# GET /resource-utilization
# ═════════════════════════════════════════════════════════════════════


class UtilizationSummary(BaseModel):
    """Headline utilization figures over all active employees."""

    total_resources: int = 0
    utilized_resources: int = 0
    overall_utilization: float = 0
    billable_utilization: float = 0
    non_billable_utilization: float = 0
    bench_strength: int = 0


class DepartmentUtilization(BaseModel):
    department: str
    total_resources: int = 0
    utilization: float = 0
    billable_hours: float = 0
    non_billable_hours: float = 0
    bench_count: int = 0


class UtilizationTrendPoint(BaseModel):
    date: date
    utilization: float = 0
    billable: float = 0
    non_billable: float = 0


class ActiveAllocation(BaseModel):
    """One active FL resource row with employee and project context."""

    resource_id: uuid.UUID
    employee_id: Optional[uuid.UUID] = None
    employee_code: Optional[str] = None
    name: Optional[str] = None
    department: Optional[str] = None
    designation: Optional[str] = None
    start_date: date
    end_date: date
    utilization: float = 0
    project_code: Optional[str] = None
    project_name: Optional[str] = None
    billable_percentage: int = 0


class BenchResource(BaseModel):
    employee_id: uuid.UUID
    employee_code: str
    name: str
    department: Optional[str] = None
    designation: Optional[str] = None
    utilization: float = 0
    skills: list[str] = Field(default_factory=list)
    available_since: Optional[date] = None


class ResourceUtilizationReport(BaseModel):
    period: Period
    summary: UtilizationSummary
    department_breakdown: list[DepartmentUtilization] = Field(default_factory=list)
    trend_data: list[UtilizationTrendPoint] = Field(default_factory=list)
    active_allocations: list[ActiveAllocation] = Field(default_factory=list)
    bench_resources: list[BenchResource] = Field(default_factory=list)


# ═════════════════════════════════════════════════════════════════════
# GET /allocation-efficiency
# ═════════════════════════════════════════════════════════════════════


class OverAllocated(BaseModel):
    employee_id: uuid.UUID
    employee_code: str
    name: str
    department: Optional[str] = None
    allocation: float
    excess: float
    project_count: int


class UnderAllocated(BaseModel):
    employee_id: uuid.UUID
    employee_code: str
    name: str
    department: Optional[str] = None
    allocation: float
    available: float
    project_count: int


class ProjectAllocation(BaseModel):
    project_id: uuid.UUID
    project_code: str
    project_name: str
    resource_count: int
    total_allocation: float
    avg_allocation: float
    status: str


class EfficiencySummary(BaseModel):
    total_resources: int = 0
    over_allocated_count: int = 0
    under_allocated_count: int = 0
    optimal_count: int = 0
    optimal_rate: float = 0
    total_capacity: float = 0
    total_allocated: float = 0
    utilization_rate: float = 0


class AllocationEfficiencyReport(BaseModel):
    period: Period
    summary: EfficiencySummary
    over_allocated: list[OverAllocated] = Field(default_factory=list)
    under_allocated: list[UnderAllocated] = Field(default_factory=list)
    project_summary: list[ProjectAllocation] = Field(default_factory=list)


# ═════════════════════════════════════════════════════════════════════
# GET /cost-summary
# ═════════════════════════════════════════════════════════════════════


class CostPeriod(Period):
    days: int
    months: float


class CostSummary(BaseModel):
    total_resource_cost: float = 0
    billable_resource_cost: float = 0
    non_billable_resource_cost: float = 0
    bench_cost: float = 0
    total_budget: float = 0
    budget_utilization: float = 0
    cost_per_project: float = 0
    resource_count: int = 0
    bench_count: int = 0


class DepartmentCost(BaseModel):
    department: str
    resource_count: int = 0
    total_cost: float = 0
    billable_cost: float = 0
    non_billable_cost: float = 0
    bench_cost: float = 0
    bench_count: int = 0
    avg_cost_per_resource: float = 0


class ProjectCost(BaseModel):
    project_id: uuid.UUID
    project_code: str
    project_name: str
    budget: float = 0
    actual_cost: float = 0
    resource_count: int = 0
    variance: float = 0
    variance_percent: float = 0
    roi: float = 0


class EmployeeCost(BaseModel):
    employee_id: uuid.UUID
    employee_code: str
    name: str
    department: Optional[str] = None
    monthly_salary: float = 0
    period_cost: float = 0
    billable_cost: float = 0
    utilization: float = 0
    is_bench: bool = False


class CostTrend(BaseModel):
    """Allocated cost of this period against the preceding period."""

    current_period: float = 0
    previous_period: float = 0
    change: float = 0
    change_percent: float = 0


class CostSummaryReport(BaseModel):
    period: CostPeriod
    summary: CostSummary
    department_costs: list[DepartmentCost] = Field(default_factory=list)
    project_costs: list[ProjectCost] = Field(default_factory=list)
    top_cost_employees: list[EmployeeCost] = Field(default_factory=list)
    trends: CostTrend


# ═════════════════════════════════════════════════════════════════════
# GET /skills-gap
# ═════════════════════════════════════════════════════════════════════


class SkillHolder(BaseModel):
    employee_id: uuid.UUID
    employee_code: str
    name: str
    department: Optional[str] = None


class SkillGap(BaseModel):
    skill: str
    required: int
    available: int
    gap: int
    status: str
    employees: list[SkillHolder] = Field(default_factory=list)


class HiringRecommendation(BaseModel):
    skill: str
    required_count: int
    priority: str
    suggested_role: str


class TrainingNeed(BaseModel):
    skill: str
    current_employees: int
    additional_needed: int


class SkillsGapPeriod(BaseModel):
    future_months: int
    upcoming_projects_count: int


class SkillsGapSummary(BaseModel):
    total_skills_required: int = 0
    total_skills_available: int = 0
    critical_gaps: int = 0
    moderate_gaps: int = 0


class SkillsGapReport(BaseModel):
    period: SkillsGapPeriod
    summary: SkillsGapSummary
    skills_gap: list[SkillGap] = Field(default_factory=list)
    hiring_recommendations: list[HiringRecommendation] = Field(default_factory=list)
    training_needs: list[TrainingNeed] = Field(default_factory=list)


# ═════════════════════════════════════════════════════════════════════
# GET /demand-forecast
# ═════════════════════════════════════════════════════════════════════


class SkillDemand(BaseModel):
    role: str
    demand: int
    available: int
    gap: int


class UpcomingProject(BaseModel):
    project_id: uuid.UUID
    project_code: str
    project_name: str
    start_date: date
    estimated_team_size: int
    required_skills: list[str] = Field(default_factory=list)
    status: str


class HiringTimelineItem(BaseModel):
    role: str
    hires_needed: int
    urgency: str
    suggested_start_date: date


class ForecastSummary(BaseModel):
    upcoming_projects_count: int = 0
    total_demand: int = 0
    available_resources: int = 0
    total_gap: int = 0
    utilization_rate: float = 0


class DemandForecastReport(BaseModel):
    period: Period
    summary: ForecastSummary
    demand_by_role: list[SkillDemand] = Field(default_factory=list)
    upcoming_projects: list[UpcomingProject] = Field(default_factory=list)
    hiring_timeline: list[HiringTimelineItem] = Field(default_factory=list)
