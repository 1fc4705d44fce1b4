"""Notification Pydantic schemas for request / response validation."""


import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator

from rmg_portal.common.constants import NotificationType
from rmg_portal.common.pagination import PaginationMeta


# ── Requests ────────────────────────────────────────────────────────

class NotificationCreate(BaseModel):
    """Body of ``POST /notifications``; a recipient or a role is required."""

    recipient_id: Optional[uuid.UUID] = None
    role: Optional[str] = Field(None, max_length=50)
    type: NotificationType = NotificationType.info
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    action_url: Optional[str] = Field(None, max_length=500)
    entity_type: Optional[str] = Field(None, max_length=50)
    entity_id: Optional[uuid.UUID] = None
    meta: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _needs_audience(self) -> "NotificationCreate":
        if self.recipient_id is None and not self.role:
            raise ValueError("Either recipient_id or role is required")
        return self


# ── Responses ───────────────────────────────────────────────────────

class NotificationResponse(BaseModel):
    """Single notification in API responses."""

    id: uuid.UUID
    recipient_id: Optional[uuid.UUID] = None
    role: Optional[str] = None
    type: NotificationType
    title: str
    message: str
    action_url: Optional[str] = None
    entity_type: Optional[str] = None
    entity_id: Optional[uuid.UUID] = None
    meta: dict[str, Any] = {}
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationListMeta(PaginationMeta):
    """Extends standard pagination meta with unread count."""

    unread: int


class NotificationListResponse(BaseModel):
    """Paginated list of notifications with unread count in meta."""

    success: bool = True
    data: list[NotificationResponse]
    meta: NotificationListMeta
