"""Notifications ORM model.

A row is addressed to one employee (``recipient_id``), to every holder of a
role (``role``), or to everyone (``role == "all"``).
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from rmg_portal.common.audit import _utcnow
from rmg_portal.common.constants import NotificationType
from rmg_portal.database import Base, value_enum


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    recipient_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("employees.id", ondelete="CASCADE"),
    )
    role: Mapped[Optional[str]] = mapped_column(sa.String(50))
    type: Mapped[NotificationType] = mapped_column(
        value_enum(NotificationType, "notification_type"),
        nullable=False,
        default=NotificationType.info,
    )
    title: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    message: Mapped[str] = mapped_column(sa.Text, nullable=False)
    action_url: Mapped[Optional[str]] = mapped_column(sa.String(500))
    entity_type: Mapped[Optional[str]] = mapped_column(sa.String(50))
    entity_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True))
    meta: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    is_read: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    read_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow,
    )

    __table_args__ = (
        sa.Index("ix_notifications_recipient_id", "recipient_id"),
        sa.Index("ix_notifications_role", "role"),
        sa.CheckConstraint(
            "recipient_id IS NOT NULL OR role IS NOT NULL",
            name="ck_notifications_has_audience",
        ),
    )
