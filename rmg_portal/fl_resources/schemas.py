"""FL resource Pydantic v2 schemas."""


import re
import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rmg_portal.common.constants import FLResourceStatus

_MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


class MonthAllocation(BaseModel):
    """One ``{month: "YYYY-MM", allocation: 0..100}`` entry."""

    month: str
    allocation: float = Field(..., ge=0, le=100)

    @field_validator("month")
    @classmethod
    def _month_format(cls, v: str) -> str:
        if not _MONTH_RE.match(v):
            raise ValueError("month must be formatted YYYY-MM")
        return v


class FLResourceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: Optional[uuid.UUID] = None
    resource_name: Optional[str] = None
    job_role: str
    department: Optional[str] = None
    skills: List[str] = []
    utilization_percentage: float
    requested_from_date: date
    requested_to_date: date
    billable: bool
    percentage_basis: Optional[str] = None
    monthly_allocations: List[MonthAllocation] = []
    total_allocation: Optional[str] = None
    financial_line_id: uuid.UUID
    fl_no: str
    fl_name: str
    project_id: uuid.UUID
    status: FLResourceStatus
    created_at: datetime
    updated_at: datetime


class FLResourceCreate(BaseModel):
    employee_id: Optional[uuid.UUID] = None
    resource_name: Optional[str] = Field(None, max_length=200)
    job_role: str = Field(..., min_length=1, max_length=150)
    department: Optional[str] = Field(None, max_length=150)
    skills: List[str] = []
    utilization_percentage: float = Field(0, ge=0, le=100)
    requested_from_date: date
    requested_to_date: date
    billable: bool = True
    percentage_basis: str = Field("Billable", max_length=50)
    monthly_allocations: List[MonthAllocation] = []
    total_allocation: str = Field("0:0 Hrs", max_length=50)
    financial_line_id: uuid.UUID
    status: FLResourceStatus = FLResourceStatus.active

    @field_validator("job_role")
    @classmethod
    def _job_role(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Job Role is required")
        return v


class FLResourceUpdate(BaseModel):
    """Partial update; the owning financial line cannot change."""

    employee_id: Optional[uuid.UUID] = None
    resource_name: Optional[str] = Field(None, max_length=200)
    job_role: Optional[str] = Field(None, min_length=1, max_length=150)
    department: Optional[str] = Field(None, max_length=150)
    skills: Optional[List[str]] = None
    utilization_percentage: Optional[float] = Field(None, ge=0, le=100)
    requested_from_date: Optional[date] = None
    requested_to_date: Optional[date] = None
    billable: Optional[bool] = None
    percentage_basis: Optional[str] = Field(None, max_length=50)
    monthly_allocations: Optional[List[MonthAllocation]] = None
    total_allocation: Optional[str] = Field(None, max_length=50)
    status: Optional[FLResourceStatus] = None
