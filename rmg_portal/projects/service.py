"""Project service layer: CRUD, code generation, status cascade."""

from __future__ import annotations

import logging
import re
import uuid
from typing import Any, Optional, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rmg_portal.common.audit import create_audit_entry, snapshot
from rmg_portal.common.constants import FLResourceStatus, FLStatus, ProjectStatus
from rmg_portal.common.exceptions import (
    DuplicateException,
    NotFoundException,
    ValidationException,
    reject_null_columns,
)
from rmg_portal.common.filters import apply_filters, apply_search
from rmg_portal.common.pagination import PaginatedResponse, PaginationParams, paginate
from rmg_portal.customer_pos.models import CustomerPO
from rmg_portal.financial_lines.models import FinancialLine
from rmg_portal.fl_resources.models import FLResource
from rmg_portal.projects.models import Project
from rmg_portal.projects.schemas import ProjectCreate, ProjectResponse, ProjectUpdate

logger = logging.getLogger(__name__)

# search_scope -> searched columns
SEARCH_SCOPES: dict[str, list[str]] = {
    "all": ["name", "project_code", "account_name", "project_manager", "delivery_manager"],
    "name": ["name"],
    "id": ["project_code"],
    "manager": ["project_manager", "delivery_manager"],
}


def _check_dates(start, end) -> None:
    if end is not None and start is not None and end < start:
        raise ValidationException(
            {"end_date": ["End date must be on or after start date"]},
        )


class ProjectService:
    """Async project operations."""

    @staticmethod
    async def next_project_code(db: AsyncSession) -> str:
        """``P`` + (numeric part of the newest project code + 1), zero-padded to 3."""
        result = await db.execute(
            select(Project.project_code)
            .order_by(Project.created_at.desc())
            .limit(1)
        )
        latest = result.scalar_one_or_none()
        number = 0
        if latest:
            digits = re.sub(r"\D", "", latest)
            number = int(digits) if digits else 0
        return f"P{number + 1:03d}"

    @staticmethod
    async def list_projects(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        status: Optional[ProjectStatus] = None,
        region: Optional[str] = None,
        billing_type: Optional[str] = None,
        search: Optional[str] = None,
        search_scope: str = "all",
    ) -> PaginatedResponse:
        query = select(Project).order_by(Project.created_at.desc())
        filters: dict[str, Any] = {
            "status": status,
            "region": region,
            "billing_type": billing_type,
        }
        query = apply_filters(query, Project, filters)
        columns = SEARCH_SCOPES.get(search_scope, SEARCH_SCOPES["all"])
        query = apply_search(query, Project, search, columns)
        return await paginate(db, query, pagination, model=Project, schema=ProjectResponse)

    @staticmethod
    async def list_active(db: AsyncSession) -> Sequence[Project]:
        result = await db.execute(
            select(Project)
            .where(Project.status == ProjectStatus.active)
            .order_by(Project.name)
        )
        return result.scalars().all()

    @staticmethod
    async def get_project(db: AsyncSession, project_id: uuid.UUID) -> Project:
        result = await db.execute(select(Project).where(Project.id == project_id))
        project = result.scalars().first()
        if project is None:
            raise NotFoundException("Project", str(project_id))
        return project

    @staticmethod
    async def get_by_code(db: AsyncSession, project_code: str) -> Project:
        result = await db.execute(
            select(Project).where(Project.project_code == project_code)
        )
        project = result.scalars().first()
        if project is None:
            raise NotFoundException("Project", project_code)
        return project

    @staticmethod
    async def create_project(
        db: AsyncSession,
        data: ProjectCreate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Project:
        _check_dates(data.start_date, data.end_date)

        existing = await db.execute(
            select(Project.id).where(Project.project_code == data.project_code)
        )
        if existing.first() is not None:
            raise DuplicateException(
                "project_code", data.project_code,
                detail=f"Project with code {data.project_code} already exists",
            )

        project = Project(**data.model_dump())
        db.add(project)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="project",
            entity_id=project.id,
            actor_id=actor_id,
            new_values=snapshot(project, ["project_code", "name", "client", "status"]),
        )
        logger.info("Project %s created", project.project_code)
        return project

    @staticmethod
    async def update_project(
        db: AsyncSession,
        project_id: uuid.UUID,
        data: ProjectUpdate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Project:
        project = await ProjectService.get_project(db, project_id)
        changes = data.model_dump(exclude_unset=True)
        reject_null_columns(Project, changes)
        if not changes:
            return project

        _check_dates(
            changes.get("start_date", project.start_date),
            changes.get("end_date", project.end_date),
        )

        old_values = snapshot(project, list(changes))
        for field, value in changes.items():
            setattr(project, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="project",
            entity_id=project.id,
            actor_id=actor_id,
            old_values=old_values,
            new_values=snapshot(project, list(changes)),
        )
        return project

    @staticmethod
    async def change_status(
        db: AsyncSession,
        project_id: uuid.UUID,
        status: ProjectStatus,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> tuple[Project, int, int]:
        """Set the project status; cancelling it cascades to FLs and resources.

        Returns ``(project, cancelled_fl_count, released_resource_count)``.
        """
        project = await ProjectService.get_project(db, project_id)
        old_status = project.status
        project.status = status

        cancelled_fls = 0
        released = 0
        if status == ProjectStatus.cancelled and old_status != ProjectStatus.cancelled:
            fl_ids = (
                await db.execute(
                    select(FinancialLine.id).where(
                        FinancialLine.project_id == project.id,
                        FinancialLine.status.in_([FLStatus.draft, FLStatus.active]),
                    )
                )
            ).scalars().all()

            if fl_ids:
                fl_result = await db.execute(
                    update(FinancialLine)
                    .where(FinancialLine.id.in_(fl_ids))
                    .values(status=FLStatus.cancelled)
                    .execution_options(synchronize_session="fetch")
                )
                cancelled_fls = fl_result.rowcount or 0

                res_result = await db.execute(
                    update(FLResource)
                    .where(
                        FLResource.financial_line_id.in_(fl_ids),
                        FLResource.status == FLResourceStatus.active,
                    )
                    .values(status=FLResourceStatus.inactive)
                    .execution_options(synchronize_session="fetch")
                )
                released = res_result.rowcount or 0

        await db.flush()
        await create_audit_entry(
            db,
            action="status_change",
            entity_type="project",
            entity_id=project.id,
            actor_id=actor_id,
            old_values={"status": old_status},
            new_values={
                "status": status,
                "cancelled_financial_lines": cancelled_fls,
                "released_resources": released,
            },
        )
        if cancelled_fls or released:
            logger.info(
                "Project %s cancelled: %d FL(s) cancelled, %d resource(s) released",
                project.project_code, cancelled_fls, released,
            )
        return project, cancelled_fls, released

    @staticmethod
    async def delete_project(
        db: AsyncSession,
        project_id: uuid.UUID,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> None:
        """Delete a project that no financial line or customer PO references."""
        project = await ProjectService.get_project(db, project_id)

        fl_count = (
            await db.execute(
                select(func.count())
                .select_from(FinancialLine)
                .where(FinancialLine.project_id == project.id)
            )
        ).scalar_one()
        if fl_count:
            logger.warning(
                "Refused to delete project %s: %d financial line(s) attached",
                project.project_code, fl_count,
            )
            raise ValidationException(
                {"project": [
                    f"Cannot delete project with {fl_count} financial line(s); "
                    "delete or reassign them first"
                ]},
            )

        po_count = (
            await db.execute(
                select(func.count())
                .select_from(CustomerPO)
                .where(CustomerPO.project_id == project.id)
            )
        ).scalar_one()
        if po_count:
            raise ValidationException(
                {"project": [f"Cannot delete project with {po_count} customer PO(s)"]},
            )

        old_values = snapshot(project, ["project_code", "name", "status"])
        await db.delete(project)
        await db.flush()
        await create_audit_entry(
            db,
            action="delete",
            entity_type="project",
            entity_id=project_id,
            actor_id=actor_id,
            old_values=old_values,
        )
        logger.info("Project %s deleted", old_values["project_code"])
