"""Financial line Pydantic v2 schemas.

The embedded funding / revenue-planning / milestone rows are validated here
and stored as JSONB on the ``financial_lines`` row.
"""


import re
import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rmg_portal.common.constants import (
    BillingType,
    FLStatus,
    LocationType,
    MilestoneStatus,
    UnitOfMeasure,
)
from rmg_portal.projects.schemas import ProjectBrief

_MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


# ═════════════════════════════════════════════════════════════════════
# Embedded rows
# ═════════════════════════════════════════════════════════════════════


class FundingRow(BaseModel):
    """One PO line funding the FL."""

    po_no: Optional[str] = None
    contract_no: Optional[str] = None
    project_currency: Optional[str] = None
    po_currency: Optional[str] = None
    unit_rate: float = Field(..., ge=0)
    funding_units: float = Field(..., ge=0)
    uom: Optional[UnitOfMeasure] = None
    funding_value_project: Optional[float] = Field(None, ge=0)
    funding_amount_po_currency: Optional[float] = Field(None, ge=0)
    available_po_line_in_po: Optional[float] = None
    available_po_line_in_project: Optional[float] = None


class RevenuePlanRow(BaseModel):
    month: str
    planned_units: float = Field(0, ge=0)
    planned_revenue: float = Field(0, ge=0)
    actual_units: float = Field(0, ge=0)
    forecasted_units: float = Field(0, ge=0)
    forecasted_revenue: float = Field(0, ge=0)

    @field_validator("month")
    @classmethod
    def _month_format(cls, v: str) -> str:
        if not _MONTH_RE.match(v):
            raise ValueError("month must be formatted YYYY-MM")
        return v


class PaymentMilestone(BaseModel):
    milestone_name: str = Field(..., min_length=1, max_length=200)
    amount: float = Field(..., gt=0)
    due_date: date
    notes: Optional[str] = None
    status: MilestoneStatus = MilestoneStatus.pending


# ═════════════════════════════════════════════════════════════════════
# Financial lines
# ═════════════════════════════════════════════════════════════════════


class FinancialLineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    fl_no: str
    fl_name: str
    project_id: uuid.UUID
    project: Optional[ProjectBrief] = None
    customer_po_id: Optional[uuid.UUID] = None
    contract_type: BillingType
    location_type: LocationType
    execution_entity: str
    timesheet_approver: str
    schedule_start: date
    schedule_finish: date
    currency: str
    billing_rate: float
    rate_uom: UnitOfMeasure
    effort: float
    effort_uom: UnitOfMeasure
    revenue_amount: float
    expected_revenue: float
    funding: List[FundingRow] = []
    total_funding: float
    revenue_planning: List[RevenuePlanRow] = []
    total_planned_revenue: float
    payment_milestones: List[PaymentMilestone] = []
    status: FLStatus
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class FinancialLineCreate(BaseModel):
    """``fl_no``, ``contract_type`` and ``currency`` are filled in when omitted."""

    fl_no: Optional[str] = Field(None, max_length=30)
    fl_name: str = Field(..., min_length=1, max_length=150)
    project_id: uuid.UUID
    customer_po_id: Optional[uuid.UUID] = None
    contract_type: Optional[BillingType] = None
    location_type: LocationType
    execution_entity: str = Field(..., min_length=1, max_length=200)
    timesheet_approver: str = Field(..., min_length=1, max_length=200)
    schedule_start: date
    schedule_finish: date
    currency: Optional[str] = Field(None, max_length=10)
    billing_rate: float = Field(..., gt=0)
    rate_uom: UnitOfMeasure
    effort: float = Field(0, ge=0)
    effort_uom: UnitOfMeasure
    revenue_amount: Optional[float] = Field(None, ge=0)
    expected_revenue: Optional[float] = Field(None, ge=0)
    funding: List[FundingRow] = []
    total_funding: Optional[float] = Field(None, ge=0)
    revenue_planning: List[RevenuePlanRow] = []
    payment_milestones: List[PaymentMilestone] = []
    status: FLStatus = FLStatus.draft
    notes: Optional[str] = None

    @field_validator("fl_name", "execution_entity", "timesheet_approver")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class FinancialLineUpdate(BaseModel):
    """Partial update; validations run against the merged record."""

    fl_name: Optional[str] = Field(None, min_length=1, max_length=150)
    project_id: Optional[uuid.UUID] = None
    customer_po_id: Optional[uuid.UUID] = None
    contract_type: Optional[BillingType] = None
    location_type: Optional[LocationType] = None
    execution_entity: Optional[str] = Field(None, min_length=1, max_length=200)
    timesheet_approver: Optional[str] = Field(None, min_length=1, max_length=200)
    schedule_start: Optional[date] = None
    schedule_finish: Optional[date] = None
    currency: Optional[str] = Field(None, max_length=10)
    billing_rate: Optional[float] = Field(None, gt=0)
    rate_uom: Optional[UnitOfMeasure] = None
    effort: Optional[float] = Field(None, ge=0)
    effort_uom: Optional[UnitOfMeasure] = None
    revenue_amount: Optional[float] = Field(None, ge=0)
    expected_revenue: Optional[float] = Field(None, ge=0)
    funding: Optional[List[FundingRow]] = None
    total_funding: Optional[float] = Field(None, ge=0)
    revenue_planning: Optional[List[RevenuePlanRow]] = None
    payment_milestones: Optional[List[PaymentMilestone]] = None
    status: Optional[FLStatus] = None
    notes: Optional[str] = None


class FinancialLineStats(BaseModel):
    total: int
    active: int
    draft: int
    completed: int
    cancelled: int
    total_active_funding: float
