"""Customer PO router."""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from rmg_portal.auth.dependencies import get_current_user, require_role
from rmg_portal.common.constants import RMG_ROLES, POStatus
from rmg_portal.common.pagination import PaginationParams
from rmg_portal.customer_pos.schemas import (
    CustomerPOCreate,
    CustomerPOResponse,
    CustomerPOUpdate,
)
from rmg_portal.customer_pos.service import CustomerPOService
from rmg_portal.database import get_db
from rmg_portal.employees.models import Employee

router = APIRouter(prefix="", tags=["customer-pos"])


def _out(po) -> dict:
    return CustomerPOResponse.model_validate(po).model_dump(mode="json")


@router.get("")
async def list_customer_pos(
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
    pagination: PaginationParams = Depends(),
    search: Optional[str] = Query(None, description="Search PO no, contract no or customer"),
    status: Optional[POStatus] = Query(None),
    booking_entity: Optional[str] = Query(None),
    project_id: Optional[uuid.UUID] = Query(None),
):
    result = await CustomerPOService.list_pos(
        db,
        pagination,
        search=search,
        status=status,
        booking_entity=booking_entity,
        project_id=project_id,
    )
    return result.model_dump(mode="json")


@router.post("", status_code=201)
async def create_customer_po(
    body: CustomerPOCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(require_role(*RMG_ROLES)),
):
    po = await CustomerPOService.create_po(db, body)
    return {"success": True, "message": "Customer PO created successfully", "data": _out(po)}


@router.get("/{po_id}")
async def get_customer_po(
    po_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    po = await CustomerPOService.get_po(db, po_id)
    return {"success": True, "data": _out(po)}


@router.put("/{po_id}")
async def update_customer_po(
    po_id: uuid.UUID,
    body: CustomerPOUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(require_role(*RMG_ROLES)),
):
    po = await CustomerPOService.update_po(db, po_id, body)
    return {"success": True, "message": "Customer PO updated successfully", "data": _out(po)}


@router.delete("/{po_id}")
async def delete_customer_po(
    po_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(require_role(*RMG_ROLES)),
):
    await CustomerPOService.delete_po(db, po_id)
    return {"success": True, "message": "Customer PO deleted successfully"}
