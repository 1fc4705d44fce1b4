"""Project Pydantic v2 schemas."""


import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rmg_portal.common.constants import BillingType, ProjectStatus


class ManagerRef(BaseModel):
    """``{employee_code, name}`` block stored as JSONB."""

    employee_code: Optional[str] = None
    name: str


class ProjectBrief(BaseModel):
    """Minimal project info embedded in other responses."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    project_code: str
    name: str
    client: str
    start_date: date
    end_date: Optional[date] = None
    status: ProjectStatus


class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    project_code: str
    name: str
    client: str
    account_name: Optional[str] = None
    legal_entity: Optional[str] = None
    billing_type: Optional[BillingType] = None
    region: Optional[str] = None
    practice_unit: Optional[str] = None
    project_currency: str
    budget: Optional[float] = None
    estimated_value: Optional[float] = None
    status: ProjectStatus
    start_date: date
    end_date: Optional[date] = None
    description: Optional[str] = None
    project_manager: Optional[ManagerRef] = None
    delivery_manager: Optional[ManagerRef] = None
    utilization: float = 0
    required_skills: List[str] = []
    team_size: int = 0
    created_at: datetime
    updated_at: datetime


class ProjectCreate(BaseModel):
    project_code: str = Field(..., min_length=1, max_length=30)
    name: str = Field(..., min_length=1, max_length=200)
    client: str = Field(..., min_length=1, max_length=200)
    account_name: Optional[str] = Field(None, max_length=200)
    legal_entity: Optional[str] = Field(None, max_length=200)
    billing_type: Optional[BillingType] = None
    region: Optional[str] = Field(None, max_length=50)
    practice_unit: Optional[str] = Field(None, max_length=100)
    project_currency: str = Field("USD", min_length=3, max_length=10)
    budget: Optional[float] = Field(None, ge=0)
    estimated_value: Optional[float] = Field(None, ge=0)
    status: ProjectStatus = ProjectStatus.active
    start_date: date
    end_date: Optional[date] = None
    description: Optional[str] = None
    project_manager: Optional[ManagerRef] = None
    delivery_manager: Optional[ManagerRef] = None
    utilization: float = Field(0, ge=0, le=100)
    required_skills: List[str] = []
    team_size: int = Field(0, ge=0)

    @field_validator("project_code", "name", "client")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("project_currency")
    @classmethod
    def _upper_currency(cls, v: str) -> str:
        return v.strip().upper()


class ProjectUpdate(BaseModel):
    """Partial update; date ordering is checked against the merged record."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    client: Optional[str] = Field(None, min_length=1, max_length=200)
    account_name: Optional[str] = Field(None, max_length=200)
    legal_entity: Optional[str] = Field(None, max_length=200)
    billing_type: Optional[BillingType] = None
    region: Optional[str] = Field(None, max_length=50)
    practice_unit: Optional[str] = Field(None, max_length=100)
    project_currency: Optional[str] = Field(None, min_length=3, max_length=10)
    budget: Optional[float] = Field(None, ge=0)
    estimated_value: Optional[float] = Field(None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    description: Optional[str] = None
    project_manager: Optional[ManagerRef] = None
    delivery_manager: Optional[ManagerRef] = None
    utilization: Optional[float] = Field(None, ge=0, le=100)
    required_skills: Optional[List[str]] = None
    team_size: Optional[int] = Field(None, ge=0)


class ProjectStatusUpdate(BaseModel):
    status: ProjectStatus


class ProjectStatusChange(BaseModel):
    """Result of ``PATCH /{id}/status`` including any cascade counts."""

    project: ProjectResponse
    cancelled_financial_lines: int = 0
    released_resources: int = 0
