"""Notification endpoints: list, create, mark read, unread count, delete."""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from rmg_portal.auth.dependencies import get_current_user
from rmg_portal.common.constants import NotificationType
from rmg_portal.common.pagination import PaginationParams
from rmg_portal.database import get_db
from rmg_portal.employees.models import Employee
from rmg_portal.notifications.schemas import (
    NotificationCreate,
    NotificationListResponse,
    NotificationResponse,
)
from rmg_portal.notifications.service import NotificationService

router = APIRouter(prefix="", tags=["notifications"])


# ── GET /: notifications visible to the current user ───────────────

@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    request: Request,
    is_read: Optional[bool] = Query(default=None, description="Filter by read status"),
    type: Optional[NotificationType] = Query(
        default=None, alias="type", description="Filter by notification type"
    ),
    pagination: PaginationParams = Depends(),
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List personal, role-targeted and broadcast notifications (paginated)."""
    return await NotificationService.get_notifications(
        db,
        employee_id=employee.id,
        role=request.state.user_role,
        pagination=pagination,
        is_read=is_read,
        notification_type=type,
    )


# ── POST /: create ─────────────────────────────────────────────────

@router.post("", status_code=201)
async def create_notification(
    body: NotificationCreate,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a notification for a recipient, a role, or everyone (``role="all"``)."""
    notification = await NotificationService.create_from_schema(db, body)
    return {
        "success": True,
        "data": NotificationResponse.model_validate(notification).model_dump(mode="json"),
    }


# ── GET /unread-count: badge count ─────────────────────────────────
# NOTE: The fixed paths below MUST be registered before /{notification_id}.

@router.get("/unread-count")
async def unread_count(
    request: Request,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Return the number of unread notifications (for header badge)."""
    count = await NotificationService.get_unread_count(
        db, employee.id, request.state.user_role,
    )
    return {"success": True, "data": {"count": count}}


# ── PATCH /read-all: bulk mark all as read ─────────────────────────

@router.patch("/read-all")
async def mark_all_read(
    request: Request,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Mark all unread notifications as read for the authenticated user."""
    count = await NotificationService.mark_all_read(
        db, employee.id, request.state.user_role,
    )
    return {
        "success": True,
        "message": "All notifications marked as read",
        "data": {"count": count},
    }


# ── DELETE /clear-all: remove personal notifications ───────────────

@router.delete("/clear-all")
async def clear_all(
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete every notification addressed to the authenticated user."""
    count = await NotificationService.clear_all(db, employee.id)
    return {
        "success": True,
        "message": "All notifications cleared",
        "data": {"count": count},
    }


# ── PATCH /{notification_id}/read: mark single as read ─────────────

@router.patch("/{notification_id}/read")
async def mark_read(
    notification_id: uuid.UUID,
    request: Request,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Mark a single notification as read."""
    notification = await NotificationService.mark_read(
        db, notification_id, employee.id, request.state.user_role,
    )
    return {
        "success": True,
        "data": NotificationResponse.model_validate(notification).model_dump(mode="json"),
    }


# ── DELETE /{notification_id} ───────────────────────────────────────

@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: uuid.UUID,
    request: Request,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete one personal notification."""
    await NotificationService.delete_notification(
        db, notification_id, employee.id, request.state.user_role,
    )
    return {"success": True, "message": "Notification deleted"}
