"""Customer PO Pydantic v2 schemas."""


import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rmg_portal.common.constants import PaymentTerms, POStatus
from rmg_portal.projects.schemas import ProjectBrief


class CustomerPOResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    po_no: str
    contract_no: str
    title: Optional[str] = None
    customer_name: Optional[str] = None
    project_id: uuid.UUID
    project: Optional[ProjectBrief] = None
    booking_entity: str
    po_amount: float
    po_currency: str
    payment_terms: PaymentTerms
    auto_release: bool
    po_creation_date: date
    po_start_date: date
    po_validity_date: date
    status: POStatus
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CustomerPOCreate(BaseModel):
    po_no: str = Field(..., min_length=1, max_length=100)
    contract_no: str = Field(..., min_length=1, max_length=100)
    title: Optional[str] = Field(None, max_length=200)
    customer_name: Optional[str] = Field(None, max_length=200)
    project_id: uuid.UUID
    booking_entity: str = Field(..., min_length=1, max_length=200)
    po_amount: float = Field(..., gt=0)
    po_currency: str = Field("USD", min_length=3, max_length=10)
    payment_terms: PaymentTerms = PaymentTerms.net_30
    auto_release: bool = True
    po_creation_date: date
    po_start_date: date
    po_validity_date: date
    status: POStatus = POStatus.active
    notes: Optional[str] = None

    @field_validator("po_no", "contract_no", "booking_entity")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class CustomerPOUpdate(BaseModel):
    """Partial update; ``po_no`` and ``project_id`` are fixed once issued."""

    contract_no: Optional[str] = Field(None, min_length=1, max_length=100)
    title: Optional[str] = Field(None, max_length=200)
    customer_name: Optional[str] = Field(None, max_length=200)
    booking_entity: Optional[str] = Field(None, min_length=1, max_length=200)
    po_amount: Optional[float] = Field(None, gt=0)
    po_currency: Optional[str] = Field(None, min_length=3, max_length=10)
    payment_terms: Optional[PaymentTerms] = None
    auto_release: Optional[bool] = None
    po_creation_date: Optional[date] = None
    po_start_date: Optional[date] = None
    po_validity_date: Optional[date] = None
    status: Optional[POStatus] = None
    notes: Optional[str] = None
