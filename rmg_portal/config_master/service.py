"""Configuration master service: typed lookup values with per-type unique names."""

from __future__ import annotations

import logging
import uuid
from typing import Optional, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rmg_portal.common.audit import create_audit_entry, snapshot
from rmg_portal.common.constants import ConfigStatus, ConfigType
from rmg_portal.common.exceptions import (
    DuplicateException,
    NotFoundException,
    ValidationException,
)
from rmg_portal.config_master.models import ConfigMaster
from rmg_portal.config_master.schemas import ConfigWrite
from rmg_portal.employees.models import Employee

logger = logging.getLogger(__name__)

_AUDIT_FIELDS = ["type", "name", "description", "status"]


def parse_config_type(raw: str) -> ConfigType:
    try:
        return ConfigType(raw)
    except ValueError:
        raise ValidationException({"type": ["Invalid configuration type"]}) from None


def _clean_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationException({"name": ["Name is required"]})
    return name


class ConfigMasterService:
    """Async configuration master operations."""

    @staticmethod
    async def name_exists(
        db: AsyncSession,
        config_type: ConfigType,
        name: str,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> bool:
        """Case-insensitive name lookup within one type."""
        query = select(ConfigMaster.id).where(
            ConfigMaster.type == config_type,
            func.lower(ConfigMaster.name) == name.lower(),
        )
        if exclude_id is not None:
            query = query.where(ConfigMaster.id != exclude_id)
        return (await db.execute(query)).first() is not None

    @staticmethod
    async def list_configs(
        db: AsyncSession,
        config_type: ConfigType,
        *,
        status: Optional[ConfigStatus] = None,
        active_only: bool = False,
    ) -> Sequence[ConfigMaster]:
        query = select(ConfigMaster).where(ConfigMaster.type == config_type)
        if status is not None:
            query = query.where(ConfigMaster.status == status)
        elif active_only:
            query = query.where(ConfigMaster.status == ConfigStatus.active)
        result = await db.execute(query.order_by(ConfigMaster.name))
        return result.scalars().all()

    @staticmethod
    async def get_config(
        db: AsyncSession,
        config_type: ConfigType,
        config_id: uuid.UUID,
    ) -> ConfigMaster:
        config = (
            await db.execute(
                select(ConfigMaster).where(
                    ConfigMaster.id == config_id,
                    ConfigMaster.type == config_type,
                )
            )
        ).scalars().first()
        if config is None:
            raise NotFoundException("Configuration")
        return config

    @staticmethod
    async def create_config(
        db: AsyncSession,
        config_type: ConfigType,
        data: ConfigWrite,
        actor: Employee,
    ) -> ConfigMaster:
        name = _clean_name(data.name)
        if await ConfigMasterService.name_exists(db, config_type, name):
            raise DuplicateException(
                "name", name, detail=f"A {config_type.value} with this name already exists",
            )

        config = ConfigMaster(
            type=config_type,
            name=name,
            description=(data.description or "").strip(),
            status=data.status or ConfigStatus.active,
            created_by=actor.employee_code,
            updated_by=actor.employee_code,
        )
        db.add(config)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="config_master",
            entity_id=config.id,
            actor_id=actor.id,
            new_values=snapshot(config, _AUDIT_FIELDS),
        )
        logger.info("Config %s '%s' created", config_type.value, name)
        return config

    @staticmethod
    async def update_config(
        db: AsyncSession,
        config_type: ConfigType,
        config_id: uuid.UUID,
        data: ConfigWrite,
        actor: Employee,
    ) -> ConfigMaster:
        config = await ConfigMasterService.get_config(db, config_type, config_id)
        name = _clean_name(data.name)
        if await ConfigMasterService.name_exists(db, config_type, name, exclude_id=config.id):
            raise DuplicateException(
                "name", name, detail=f"A {config_type.value} with this name already exists",
            )

        old_values = snapshot(config, _AUDIT_FIELDS)
        config.name = name
        config.description = (data.description or "").strip()
        config.status = data.status or config.status
        config.updated_by = actor.employee_code
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="config_master",
            entity_id=config.id,
            actor_id=actor.id,
            old_values=old_values,
            new_values=snapshot(config, _AUDIT_FIELDS),
        )
        return config

    @staticmethod
    async def delete_config(
        db: AsyncSession,
        config_type: ConfigType,
        config_id: uuid.UUID,
        actor: Employee,
    ) -> None:
        config = await ConfigMasterService.get_config(db, config_type, config_id)
        old_values = snapshot(config, _AUDIT_FIELDS)
        await db.delete(config)
        await db.flush()
        await create_audit_entry(
            db,
            action="delete",
            entity_type="config_master",
            entity_id=config_id,
            actor_id=actor.id,
            old_values=old_values,
        )

    @staticmethod
    async def bulk_update_status(
        db: AsyncSession,
        config_type: ConfigType,
        ids: list[uuid.UUID],
        status: ConfigStatus,
        actor: Employee,
    ) -> int:
        """Set *status* on every listed config of *config_type*; returns rows changed."""
        result = await db.execute(
            update(ConfigMaster)
            .where(ConfigMaster.id.in_(ids), ConfigMaster.type == config_type)
            .values(status=status, updated_by=actor.employee_code)
            .execution_options(synchronize_session="fetch")
        )
        count = result.rowcount or 0
        await db.flush()
        logger.info("Bulk status %s applied to %d %s config(s)", status.value, count, config_type.value)
        return count
