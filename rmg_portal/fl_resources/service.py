"""FL resource service: allocation CRUD and lookups by FL / project / employee."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rmg_portal.common.constants import FLResourceStatus
from rmg_portal.common.exceptions import (
    NotFoundException,
    ValidationException,
    reject_null_columns,
)
from rmg_portal.common.filters import apply_filters, apply_search
from rmg_portal.common.pagination import PaginatedResponse, PaginationParams, paginate
from rmg_portal.employees.models import Employee
from rmg_portal.financial_lines.models import FinancialLine
from rmg_portal.fl_resources.models import FLResource
from rmg_portal.fl_resources.schemas import (
    FLResourceCreate,
    FLResourceResponse,
    FLResourceUpdate,
)
from rmg_portal.notifications.service import notify_resource_allocated

logger = logging.getLogger(__name__)


def validate_allocation(values: dict[str, Any]) -> None:
    """Date ordering and the billable-needs-utilization rule."""
    if values["requested_from_date"] > values["requested_to_date"]:
        raise ValidationException(
            {"requested_to_date": ["Requested To Date must be after From Date"]},
        )
    if values.get("billable") and not values.get("utilization_percentage"):
        raise ValidationException(
            {"utilization_percentage": ["Utilization is mandatory when billable"]},
        )


class FLResourceService:
    """Async FL resource operations."""

    @staticmethod
    async def list_resources(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        project_id: Optional[uuid.UUID] = None,
        financial_line_id: Optional[uuid.UUID] = None,
        status: Optional[FLResourceStatus] = None,
        search: Optional[str] = None,
    ) -> PaginatedResponse:
        query = select(FLResource).order_by(FLResource.created_at.desc())
        filters: dict[str, Any] = {
            "project_id": project_id,
            "financial_line_id": financial_line_id,
            "status": status,
        }
        query = apply_filters(query, FLResource, filters)
        query = apply_search(
            query, FLResource, search, ["resource_name", "job_role", "department"],
        )
        return await paginate(db, query, pagination, model=FLResource, schema=FLResourceResponse)

    @staticmethod
    async def get_resource(db: AsyncSession, resource_id: uuid.UUID) -> FLResource:
        resource = (
            await db.execute(select(FLResource).where(FLResource.id == resource_id))
        ).scalars().first()
        if resource is None:
            raise NotFoundException("Resource", str(resource_id))
        return resource

    @staticmethod
    async def by_financial_line(db: AsyncSession, fl_id: uuid.UUID) -> Sequence[FLResource]:
        result = await db.execute(
            select(FLResource)
            .where(FLResource.financial_line_id == fl_id)
            .order_by(FLResource.created_at.desc())
        )
        return result.scalars().all()

    @staticmethod
    async def by_project(db: AsyncSession, project_id: uuid.UUID) -> Sequence[FLResource]:
        result = await db.execute(
            select(FLResource)
            .where(FLResource.project_id == project_id)
            .order_by(FLResource.created_at.desc())
        )
        return result.scalars().all()

    @staticmethod
    async def by_employee(db: AsyncSession, employee_id: uuid.UUID) -> Sequence[FLResource]:
        """Active allocations only, latest start first."""
        result = await db.execute(
            select(FLResource)
            .where(
                FLResource.employee_id == employee_id,
                FLResource.status == FLResourceStatus.active,
            )
            .order_by(FLResource.requested_from_date.desc())
        )
        return result.scalars().all()

    @staticmethod
    async def _check_employee(db: AsyncSession, employee_id: Optional[uuid.UUID]) -> Optional[Employee]:
        if employee_id is None:
            return None
        employee = (
            await db.execute(select(Employee).where(Employee.id == employee_id))
        ).scalars().first()
        if employee is None:
            raise ValidationException({"employee_id": ["Employee not found"]})
        return employee

    @staticmethod
    async def create_resource(db: AsyncSession, data: FLResourceCreate) -> FLResource:
        values = data.model_dump(exclude={"monthly_allocations"})
        values["monthly_allocations"] = [
            m.model_dump(mode="json") for m in data.monthly_allocations
        ]
        validate_allocation(values)

        fl = (
            await db.execute(
                select(FinancialLine).where(FinancialLine.id == data.financial_line_id)
            )
        ).scalars().first()
        if fl is None:
            raise ValidationException({"financial_line_id": ["Financial line not found"]})

        employee = await FLResourceService._check_employee(db, data.employee_id)
        if employee is not None:
            values["resource_name"] = values.get("resource_name") or employee.name
            values["department"] = values.get("department") or employee.department
            if not values.get("skills"):
                values["skills"] = list(employee.skills or [])

        resource = FLResource(
            **values,
            fl_no=fl.fl_no,
            fl_name=fl.fl_name,
            project_id=fl.project_id,
        )
        db.add(resource)
        await db.flush()
        await db.refresh(resource, ["employee"])

        await notify_resource_allocated(db, resource)
        logger.info(
            "Resource %s allocated to %s at %s%%",
            resource.resource_name or resource.job_role, fl.fl_no,
            resource.utilization_percentage,
        )
        return resource

    @staticmethod
    async def update_resource(
        db: AsyncSession,
        resource_id: uuid.UUID,
        data: FLResourceUpdate,
    ) -> FLResource:
        resource = await FLResourceService.get_resource(db, resource_id)
        changes = data.model_dump(exclude_unset=True, exclude={"monthly_allocations"})
        if data.monthly_allocations is not None:
            changes["monthly_allocations"] = [
                m.model_dump(mode="json") for m in data.monthly_allocations
            ]
        reject_null_columns(FLResource, changes)
        if not changes:
            return resource

        merged = {
            "requested_from_date": resource.requested_from_date,
            "requested_to_date": resource.requested_to_date,
            "billable": resource.billable,
            "utilization_percentage": resource.utilization_percentage,
        }
        merged.update({k: v for k, v in changes.items() if v is not None})
        validate_allocation(merged)

        newly_assigned = (
            changes.get("employee_id") is not None
            and changes["employee_id"] != resource.employee_id
        )
        if newly_assigned:
            await FLResourceService._check_employee(db, changes["employee_id"])

        for field, value in changes.items():
            setattr(resource, field, value)
        await db.flush()
        await db.refresh(resource, ["employee"])

        if newly_assigned:
            await notify_resource_allocated(db, resource)
        return resource

    @staticmethod
    async def delete_resource(db: AsyncSession, resource_id: uuid.UUID) -> None:
        resource = await FLResourceService.get_resource(db, resource_id)
        await db.delete(resource)
        await db.flush()
        logger.info("Resource %s removed from %s", resource_id, resource.fl_no)
