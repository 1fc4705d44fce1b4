"""Configuration master router, one lookup list per ``{config_type}``.

Reads are open to any authenticated user; writes need the rmg role.
"""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from rmg_portal.auth.dependencies import get_current_user, require_role
from rmg_portal.common.constants import RMG_ROLES, ConfigStatus
from rmg_portal.config_master.schemas import ConfigBulkStatus, ConfigResponse, ConfigWrite
from rmg_portal.config_master.service import ConfigMasterService, parse_config_type
from rmg_portal.database import get_db
from rmg_portal.employees.models import Employee

router = APIRouter(prefix="", tags=["config"])


def _out(config) -> dict:
    return ConfigResponse.model_validate(config).model_dump(mode="json")


# ── GET /config/{type} ──────────────────────────────────────────────

@router.get("/{config_type}")
async def list_configs(
    config_type: str,
    status: Optional[ConfigStatus] = Query(None),
    active_only: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    configs = await ConfigMasterService.list_configs(
        db, parse_config_type(config_type), status=status, active_only=active_only,
    )
    return {"success": True, "data": [_out(c) for c in configs]}


# ── PATCH /config/{type}/bulk-status ────────────────────────────────
# NOTE: Registered before /{config_type}/{config_id}.

@router.patch("/{config_type}/bulk-status")
async def bulk_update_status(
    config_type: str,
    body: ConfigBulkStatus,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(require_role(*RMG_ROLES)),
):
    count = await ConfigMasterService.bulk_update_status(
        db, parse_config_type(config_type), body.ids, body.status, current_user,
    )
    return {
        "success": True,
        "message": f"{count} configuration(s) updated successfully",
        "data": {"modified_count": count},
    }


# ── GET /config/{type}/{id} ─────────────────────────────────────────

@router.get("/{config_type}/{config_id}")
async def get_config(
    config_type: str,
    config_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    config = await ConfigMasterService.get_config(db, parse_config_type(config_type), config_id)
    return {"success": True, "data": _out(config)}


# ── POST /config/{type} ─────────────────────────────────────────────

@router.post("/{config_type}", status_code=201)
async def create_config(
    config_type: str,
    body: ConfigWrite,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(require_role(*RMG_ROLES)),
):
    config = await ConfigMasterService.create_config(
        db, parse_config_type(config_type), body, current_user,
    )
    return {"success": True, "message": "Configuration created successfully", "data": _out(config)}


# ── PUT /config/{type}/{id} ─────────────────────────────────────────

@router.put("/{config_type}/{config_id}")
async def update_config(
    config_type: str,
    config_id: uuid.UUID,
    body: ConfigWrite,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(require_role(*RMG_ROLES)),
):
    config = await ConfigMasterService.update_config(
        db, parse_config_type(config_type), config_id, body, current_user,
    )
    return {"success": True, "message": "Configuration updated successfully", "data": _out(config)}


# ── DELETE /config/{type}/{id} ──────────────────────────────────────

@router.delete("/{config_type}/{config_id}")
async def delete_config(
    config_type: str,
    config_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(require_role(*RMG_ROLES)),
):
    await ConfigMasterService.delete_config(
        db, parse_config_type(config_type), config_id, current_user,
    )
    return {"success": True, "message": "Configuration deleted successfully"}
