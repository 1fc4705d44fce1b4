"""Configuration master ORM model (lookup values grouped by type)."""

from __future__ import annotations

import uuid
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from rmg_portal.common.audit import TimestampMixin
from rmg_portal.common.constants import ConfigStatus, ConfigType
from rmg_portal.database import Base, value_enum


class ConfigMaster(Base, TimestampMixin):
    __tablename__ = "config_master"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    type: Mapped[ConfigType] = mapped_column(
        value_enum(ConfigType, "config_type"), nullable=False,
    )
    name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.String(500))
    status: Mapped[ConfigStatus] = mapped_column(
        value_enum(ConfigStatus, "config_status"),
        nullable=False,
        default=ConfigStatus.active,
    )
    created_by: Mapped[Optional[str]] = mapped_column(sa.String(200))
    updated_by: Mapped[Optional[str]] = mapped_column(sa.String(200))

    __table_args__ = (
        sa.Index(
            "uq_config_master_type_name_ci",
            "type",
            sa.func.lower(sa.text("name")),
            unique=True,
        ),
        sa.Index("ix_config_master_type_status", "type", "status"),
    )

    def __repr__(self) -> str:
        return f"<ConfigMaster {self.type.value}:{self.name}>"
