"""Customer PO service layer."""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from rmg_portal.common.constants import POStatus
from rmg_portal.common.exceptions import (
    DuplicateException,
    NotFoundException,
    ValidationException,
)
from rmg_portal.common.filters import apply_filters, apply_search
from rmg_portal.common.pagination import PaginatedResponse, PaginationParams, paginate
from rmg_portal.customer_pos.models import CustomerPO
from rmg_portal.customer_pos.schemas import (
    CustomerPOCreate,
    CustomerPOResponse,
    CustomerPOUpdate,
)
from rmg_portal.financial_lines.models import FinancialLine
from rmg_portal.projects.models import Project

logger = logging.getLogger(__name__)


def validate_po_dates(start: date, validity: date, project: Project) -> None:
    if validity < start:
        raise ValidationException(
            {"po_validity_date": ["PO validity date must be on or after the PO start date"]},
        )
    if start < project.start_date or (project.end_date is not None and start > project.end_date):
        raise ValidationException(
            {"po_start_date": ["PO start date must be within project dates"]},
        )
    if project.end_date is not None and validity > project.end_date:
        raise ValidationException(
            {"po_validity_date": ["PO validity date cannot be after the project end date"]},
        )


class CustomerPOService:
    """Async customer PO operations."""

    @staticmethod
    async def list_pos(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        search: Optional[str] = None,
        status: Optional[POStatus] = None,
        booking_entity: Optional[str] = None,
        project_id: Optional[uuid.UUID] = None,
    ) -> PaginatedResponse:
        query = select(CustomerPO).order_by(CustomerPO.created_at.desc())
        filters: dict[str, Any] = {
            "status": status,
            "booking_entity": booking_entity,
            "project_id": project_id,
        }
        query = apply_filters(query, CustomerPO, filters)
        query = apply_search(query, CustomerPO, search, ["po_no", "contract_no", "customer_name"])
        return await paginate(db, query, pagination, model=CustomerPO, schema=CustomerPOResponse)

    @staticmethod
    async def get_po(db: AsyncSession, po_id: uuid.UUID) -> CustomerPO:
        po = (
            await db.execute(select(CustomerPO).where(CustomerPO.id == po_id))
        ).scalars().first()
        if po is None:
            raise NotFoundException("Customer PO", str(po_id))
        return po

    @staticmethod
    async def create_po(db: AsyncSession, data: CustomerPOCreate) -> CustomerPO:
        project = (
            await db.execute(select(Project).where(Project.id == data.project_id))
        ).scalars().first()
        if project is None:
            raise ValidationException({"project_id": ["Project not found"]})
        validate_po_dates(data.po_start_date, data.po_validity_date, project)

        taken = await db.execute(select(CustomerPO.id).where(CustomerPO.po_no == data.po_no))
        if taken.first() is not None:
            raise DuplicateException(
                "po_no", data.po_no, detail=f"Customer PO {data.po_no} already exists",
            )

        values = data.model_dump()
        values["po_currency"] = values["po_currency"].upper()
        if not values.get("customer_name"):
            values["customer_name"] = project.client

        po = CustomerPO(**values)
        db.add(po)
        await db.flush()
        await db.refresh(po, ["project"])
        logger.info("Customer PO %s created for %s", po.po_no, project.project_code)
        return po

    @staticmethod
    async def update_po(
        db: AsyncSession,
        po_id: uuid.UUID,
        data: CustomerPOUpdate,
    ) -> CustomerPO:
        po = await CustomerPOService.get_po(db, po_id)
        changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
        if not changes:
            return po

        if {"po_start_date", "po_validity_date"} & set(changes):
            validate_po_dates(
                changes.get("po_start_date", po.po_start_date),
                changes.get("po_validity_date", po.po_validity_date),
                po.project,
            )
        if "po_currency" in changes:
            changes["po_currency"] = changes["po_currency"].upper()

        for field, value in changes.items():
            setattr(po, field, value)
        await db.flush()
        return po

    @staticmethod
    async def delete_po(db: AsyncSession, po_id: uuid.UUID) -> None:
        po = await CustomerPOService.get_po(db, po_id)
        linked = (
            await db.execute(
                select(func.count())
                .select_from(FinancialLine)
                .where(FinancialLine.customer_po_id == po.id)
            )
        ).scalar_one()
        if linked:
            raise ValidationException(
                {"po": [f"Cannot delete PO {po.po_no}: {linked} financial line(s) reference it"]},
            )
        await db.delete(po)
        await db.flush()
        logger.info("Customer PO %s deleted", po.po_no)
