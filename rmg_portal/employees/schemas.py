"""Employee Pydantic v2 schemas.

Naming conventions:
  - *Create / *Update  -> request bodies (write)
  - *Response          -> response bodies (read)
  - *Brief             -> compact read representation embedded elsewhere
"""


import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from rmg_portal.common.constants import EmployeeStatus, UserRole


def _clean_skills(value: Optional[List[str]]) -> Optional[List[str]]:
    if value is None:
        return None
    seen: list[str] = []
    for skill in value:
        skill = skill.strip()
        if skill and skill not in seen:
            seen.append(skill)
    return seen


class EmployeeBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_code: str
    name: str
    department: Optional[str] = None
    designation: Optional[str] = None


class EmployeeResponse(BaseModel):
    """Full employee representation."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_code: str
    name: str
    email: str
    phone: Optional[str] = None
    role: UserRole
    department: Optional[str] = None
    designation: Optional[str] = None
    location: Optional[str] = None
    skills: List[str] = []
    status: EmployeeStatus
    is_active: bool
    date_of_joining: Optional[date] = None
    monthly_salary: float = 0
    created_at: datetime
    updated_at: datetime


class EmployeeCreate(BaseModel):
    employee_code: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=30)
    role: UserRole = UserRole.employee
    department: Optional[str] = Field(None, max_length=150)
    designation: Optional[str] = Field(None, max_length=150)
    location: Optional[str] = Field(None, max_length=100)
    skills: List[str] = []
    status: EmployeeStatus = EmployeeStatus.active
    date_of_joining: Optional[date] = None
    monthly_salary: float = Field(0, ge=0)

    @field_validator("employee_code", "name")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("skills")
    @classmethod
    def _skills(cls, v: List[str]) -> List[str]:
        return _clean_skills(v) or []


class EmployeeUpdate(BaseModel):
    """Partial update; ``employee_code`` is immutable."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    role: Optional[UserRole] = None
    department: Optional[str] = Field(None, max_length=150)
    designation: Optional[str] = Field(None, max_length=150)
    location: Optional[str] = Field(None, max_length=100)
    skills: Optional[List[str]] = None
    status: Optional[EmployeeStatus] = None
    date_of_joining: Optional[date] = None
    monthly_salary: Optional[float] = Field(None, ge=0)

    @field_validator("skills")
    @classmethod
    def _skills(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_skills(v)
