"""Notification service: audience-aware CRUD and cross-module dispatchers."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import and_, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rmg_portal.common.constants import BROADCAST_ROLE, NotificationType, UserRole
from rmg_portal.common.exceptions import ForbiddenException, NotFoundException
from rmg_portal.common.pagination import PaginationParams, build_meta
from rmg_portal.notifications.models import Notification
from rmg_portal.notifications.schemas import (
    NotificationCreate,
    NotificationListMeta,
    NotificationListResponse,
    NotificationResponse,
)

logger = logging.getLogger(__name__)


def _audience(employee_id: uuid.UUID, role: Optional[UserRole]):
    """WHERE clause: addressed to the user, to their role, or broadcast."""
    conditions = [
        Notification.recipient_id == employee_id,
        Notification.role == BROADCAST_ROLE,
    ]
    if role is not None:
        # Role-targeted rows with no explicit recipient
        conditions.append(
            and_(Notification.role == role.value, Notification.recipient_id.is_(None))
        )
    return or_(*conditions)


# ── Core service ────────────────────────────────────────────────────


class NotificationService:
    """Async notification operations."""

    @staticmethod
    async def create_notification(
        db: AsyncSession,
        *,
        recipient_id: Optional[uuid.UUID] = None,
        role: Optional[str] = None,
        type: NotificationType = NotificationType.info,
        title: str,
        message: str,
        action_url: Optional[str] = None,
        entity_type: Optional[str] = None,
        entity_id: Optional[uuid.UUID] = None,
        meta: Optional[dict[str, Any]] = None,
    ) -> Notification:
        """Create a new notification and flush to DB."""
        notification = Notification(
            recipient_id=recipient_id,
            role=role,
            type=type,
            title=title,
            message=message,
            action_url=action_url,
            entity_type=entity_type,
            entity_id=entity_id,
            meta=meta or {},
        )
        db.add(notification)
        await db.flush()
        logger.info(
            "Notification %s queued for %s",
            notification.id, recipient_id or f"role:{role}",
        )
        return notification

    @staticmethod
    async def create_from_schema(db: AsyncSession, data: NotificationCreate) -> Notification:
        return await NotificationService.create_notification(db, **data.model_dump())

    @staticmethod
    async def get_notifications(
        db: AsyncSession,
        employee_id: uuid.UUID,
        role: Optional[UserRole],
        pagination: PaginationParams,
        *,
        is_read: Optional[bool] = None,
        notification_type: Optional[NotificationType] = None,
    ) -> NotificationListResponse:
        """Return paginated notifications visible to an employee, newest first."""
        query = (
            select(Notification)
            .where(_audience(employee_id, role))
            .order_by(Notification.created_at.desc())
        )

        if is_read is not None:
            query = query.where(Notification.is_read == is_read)
        if notification_type is not None:
            query = query.where(Notification.type == notification_type)

        count_q = select(func.count()).select_from(query.order_by(None).subquery())
        total: int = (await db.execute(count_q)).scalar_one()

        rows = (
            await db.execute(
                query.offset(pagination.offset).limit(pagination.page_size)
            )
        ).scalars().all()

        # Unread count (always unfiltered, for the badge)
        unread = await NotificationService.get_unread_count(db, employee_id, role)
        meta = build_meta(total, pagination.page, pagination.page_size)

        return NotificationListResponse(
            data=[NotificationResponse.model_validate(n) for n in rows],
            meta=NotificationListMeta(**meta.model_dump(), unread=unread),
        )

    @staticmethod
    async def _get_visible(
        db: AsyncSession,
        notification_id: uuid.UUID,
        employee_id: uuid.UUID,
        role: Optional[UserRole],
    ) -> Notification:
        result = await db.execute(
            select(Notification).where(Notification.id == notification_id)
        )
        notification = result.scalars().first()
        if notification is None:
            raise NotFoundException("Notification", notification_id)

        visible = (
            notification.recipient_id == employee_id
            or notification.role == BROADCAST_ROLE
            or (
                role is not None
                and notification.recipient_id is None
                and notification.role == role.value
            )
        )
        if not visible:
            raise ForbiddenException("You can only access your own notifications.")
        return notification

    @staticmethod
    async def mark_read(
        db: AsyncSession,
        notification_id: uuid.UUID,
        employee_id: uuid.UUID,
        role: Optional[UserRole],
    ) -> Notification:
        """Mark a single visible notification as read."""
        notification = await NotificationService._get_visible(
            db, notification_id, employee_id, role,
        )
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = datetime.now(timezone.utc)
            await db.flush()
        return notification

    @staticmethod
    async def mark_all_read(
        db: AsyncSession,
        employee_id: uuid.UUID,
        role: Optional[UserRole],
    ) -> int:
        """Bulk-mark every visible unread notification as read. Returns count updated."""
        now = datetime.now(timezone.utc)
        result = await db.execute(
            update(Notification)
            .where(_audience(employee_id, role), Notification.is_read.is_(False))
            .values(is_read=True, read_at=now)
            .execution_options(synchronize_session=False)
        )
        await db.flush()
        return result.rowcount  # type: ignore[return-value]

    @staticmethod
    async def get_unread_count(
        db: AsyncSession,
        employee_id: uuid.UUID,
        role: Optional[UserRole],
    ) -> int:
        """Return the number of unread notifications visible to an employee."""
        result = await db.execute(
            select(func.count())
            .select_from(Notification)
            .where(_audience(employee_id, role), Notification.is_read.is_(False))
        )
        return result.scalar_one()

    @staticmethod
    async def delete_notification(
        db: AsyncSession,
        notification_id: uuid.UUID,
        employee_id: uuid.UUID,
        role: Optional[UserRole],
    ) -> None:
        """Delete a notification addressed to the caller personally."""
        notification = await NotificationService._get_visible(
            db, notification_id, employee_id, role,
        )
        if notification.recipient_id != employee_id:
            raise ForbiddenException("Shared notifications cannot be deleted.")
        await db.delete(notification)
        await db.flush()

    @staticmethod
    async def clear_all(db: AsyncSession, employee_id: uuid.UUID) -> int:
        """Delete every notification addressed to the caller personally."""
        result = await db.execute(
            delete(Notification)
            .where(Notification.recipient_id == employee_id)
            .execution_options(synchronize_session=False)
        )
        await db.flush()
        logger.info("Cleared %s notifications for %s", result.rowcount, employee_id)
        return result.rowcount  # type: ignore[return-value]


# ── Cross-module helper dispatchers ─────────────────────────────────
# They accept the ORM object directly to avoid tight schema coupling.


async def notify_resource_allocated(
    db: AsyncSession,
    resource,  # rmg_portal.fl_resources.models.FLResource
) -> Optional[Notification]:
    """Tell an employee they were allocated to a financial line."""
    if resource.employee_id is None:
        return None
    return await NotificationService.create_notification(
        db,
        recipient_id=resource.employee_id,
        type=NotificationType.info,
        title="New Project Allocation",
        message=(
            f"You have been allocated to {resource.fl_name} ({resource.fl_no}) "
            f"as {resource.job_role} at {resource.utilization_percentage:g}% "
            f"from {resource.requested_from_date} to {resource.requested_to_date}."
        ),
        action_url=f"/rmg/financial-lines/{resource.financial_line_id}",
        entity_type="fl_resource",
        entity_id=resource.id,
        meta={"project_id": str(resource.project_id), "fl_no": resource.fl_no},
    )


async def notify_ticket_assigned(
    db: AsyncSession,
    ticket,  # rmg_portal.helpdesk.models.HelpdeskTicket
) -> Optional[Notification]:
    """Tell the assignee a helpdesk ticket is now theirs."""
    if ticket.assigned_to_id is None:
        return None
    return await NotificationService.create_notification(
        db,
        recipient_id=ticket.assigned_to_id,
        type=NotificationType.action_required,
        title="Ticket Assigned",
        message=f"Ticket {ticket.ticket_number} '{ticket.title}' has been assigned to you.",
        action_url=f"/helpdesk/{ticket.id}",
        entity_type="helpdesk_ticket",
        entity_id=ticket.id,
    )
