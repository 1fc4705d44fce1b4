"""Helpdesk Pydantic v2 schemas: request/response validation."""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from rmg_portal.common.constants import TicketPriority, TicketStatus


# ═════════════════════════════════════════════════════════════════════
# Responses
# ═════════════════════════════════════════════════════════════════════


class ResponseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    ticket_id: uuid.UUID
    author_id: Optional[uuid.UUID] = None
    author_name: Optional[str] = None
    body: str
    is_internal: bool = False
    created_at: Optional[datetime] = None


class ResponseCreate(BaseModel):
    body: str = Field(..., min_length=1, max_length=5000)
    is_internal: bool = False


# ═════════════════════════════════════════════════════════════════════
# Tickets
# ═════════════════════════════════════════════════════════════════════


class TicketOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    ticket_number: str
    title: str
    category: Optional[str] = None
    status: TicketStatus
    priority: TicketPriority
    raised_by_id: Optional[uuid.UUID] = None
    raised_by_name: Optional[str] = None
    assigned_to_id: Optional[uuid.UUID] = None
    assigned_to_name: Optional[str] = None
    resolved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    responses: List[ResponseOut] = []


class TicketCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    category: Optional[str] = Field(None, max_length=200)
    priority: TicketPriority = TicketPriority.medium
    description: Optional[str] = Field(None, max_length=5000)


class TicketUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    category: Optional[str] = None
    status: Optional[TicketStatus] = None
    priority: Optional[TicketPriority] = None
    assigned_to_id: Optional[uuid.UUID] = None


class TicketSummary(BaseModel):
    total_tickets: int = 0
    open_count: int = 0
    in_progress_count: int = 0
    waiting_count: int = 0
    resolved_count: int = 0
    closed_count: int = 0
