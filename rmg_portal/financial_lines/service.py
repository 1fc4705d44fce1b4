"""Financial line service: number generation, funding maths, validation, CRUD."""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Any, Optional, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rmg_portal.common.audit import create_audit_entry, snapshot
from rmg_portal.common.constants import AMOUNT_TOLERANCE, FLStatus
from rmg_portal.common.exceptions import (
    DuplicateException,
    NotFoundException,
    ValidationException,
)
from rmg_portal.common.filters import apply_filters, apply_search
from rmg_portal.common.pagination import PaginatedResponse, PaginationParams, paginate
from rmg_portal.customer_pos.models import CustomerPO
from rmg_portal.financial_lines.models import FinancialLine
from rmg_portal.financial_lines.schemas import (
    FinancialLineCreate,
    FinancialLineResponse,
    FinancialLineStats,
    FinancialLineUpdate,
)
from rmg_portal.fl_resources.models import FLResource
from rmg_portal.projects.models import Project

logger = logging.getLogger(__name__)

_JSON_FIELDS = {"funding", "revenue_planning", "payment_milestones"}
_AUDIT_FIELDS = [
    "fl_no", "fl_name", "project_id", "contract_type", "schedule_start",
    "schedule_finish", "billing_rate", "total_funding", "status",
]


# ── Derived values ──────────────────────────────────────────────────

def derive_amounts(values: dict[str, Any], *, recompute_total: bool) -> dict[str, Any]:
    """Fill funding values, totals and revenue defaults in-place.

    ``funding_value_project`` defaults to ``unit_rate * funding_units``;
    ``total_funding`` (when *recompute_total*) is the sum of funding values;
    ``total_planned_revenue`` is always the sum of planned revenue.
    """
    funding = []
    for row in values.get("funding") or []:
        row = dict(row)
        if row.get("funding_value_project") is None:
            row["funding_value_project"] = round(row["unit_rate"] * row["funding_units"], 2)
        if row.get("funding_amount_po_currency") is None:
            row["funding_amount_po_currency"] = row["funding_value_project"]
        funding.append(row)
    values["funding"] = funding

    if recompute_total or values.get("total_funding") is None:
        values["total_funding"] = round(
            sum(r["funding_value_project"] for r in funding), 2,
        )

    values["total_planned_revenue"] = round(
        sum(r.get("planned_revenue") or 0 for r in values.get("revenue_planning") or []), 2,
    )

    if values.get("revenue_amount") is None:
        values["revenue_amount"] = round(values["billing_rate"] * (values.get("effort") or 0), 2)
    if values.get("expected_revenue") is None:
        values["expected_revenue"] = values["revenue_amount"]
    return values


def validate_financial_line(values: dict[str, Any], project: Project) -> None:
    """Raise ``ValidationException`` for the first business rule *values* break."""
    start: date = values["schedule_start"]
    finish: date = values["schedule_finish"]

    if start >= finish:
        raise ValidationException(
            {"schedule_finish": ["Schedule start date must be before schedule finish date"]},
        )

    def _outside(day: date) -> bool:
        if day < project.start_date:
            return True
        return project.end_date is not None and day > project.end_date

    if _outside(start):
        raise ValidationException(
            {"schedule_start": ["Schedule start date must be within project dates"]},
        )
    if _outside(finish):
        raise ValidationException(
            {"schedule_finish": ["Schedule finish date must be within project dates"]},
        )

    total_funding = float(values.get("total_funding") or 0)
    milestones = values.get("payment_milestones") or []
    if milestones:
        milestone_total = round(sum(float(m["amount"]) for m in milestones), 2)
        if abs(milestone_total - total_funding) > AMOUNT_TOLERANCE:
            raise ValidationException(
                {"payment_milestones": [
                    f"Sum of milestone amounts ({milestone_total:.2f}) must equal "
                    f"total funding ({total_funding:.2f})"
                ]},
            )

    if values.get("revenue_planning"):
        planned = float(values.get("total_planned_revenue") or 0)
        if planned - total_funding > AMOUNT_TOLERANCE:
            raise ValidationException(
                {"revenue_planning": ["Total planned revenue cannot exceed total funding"]},
            )


async def generate_fl_number(db: AsyncSession, *, year: Optional[int] = None) -> str:
    """``FL-<year>-<seq4>``, one past the highest sequence used this year."""
    year = year or datetime.now(timezone.utc).year
    prefix = f"FL-{year}-"
    existing = (
        await db.execute(
            select(FinancialLine.fl_no).where(FinancialLine.fl_no.like(f"{prefix}%"))
        )
    ).scalars().all()
    highest = max(
        (int(no[len(prefix):]) for no in existing if no[len(prefix):].isdigit()),
        default=0,
    )
    return f"{prefix}{highest + 1:04d}"


# ── Service ─────────────────────────────────────────────────────────


class FinancialLineService:
    """Async financial line operations."""

    @staticmethod
    async def _load_project(db: AsyncSession, project_id: uuid.UUID) -> Project:
        project = (
            await db.execute(select(Project).where(Project.id == project_id))
        ).scalars().first()
        if project is None:
            raise ValidationException({"project_id": ["Project not found"]})
        return project

    @staticmethod
    async def _check_customer_po(
        db: AsyncSession,
        customer_po_id: Optional[uuid.UUID],
        project_id: uuid.UUID,
    ) -> None:
        if customer_po_id is None:
            return
        po = (
            await db.execute(select(CustomerPO).where(CustomerPO.id == customer_po_id))
        ).scalars().first()
        if po is None:
            raise ValidationException({"customer_po_id": ["Customer PO not found"]})
        if po.project_id != project_id:
            raise ValidationException(
                {"customer_po_id": ["Customer PO belongs to a different project"]},
            )

    @staticmethod
    async def list_financial_lines(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        status: Optional[FLStatus] = None,
        location_type: Optional[str] = None,
        contract_type: Optional[str] = None,
        project_id: Optional[uuid.UUID] = None,
        search: Optional[str] = None,
    ) -> PaginatedResponse:
        query = select(FinancialLine).order_by(FinancialLine.created_at.desc())
        filters: dict[str, Any] = {
            "status": status,
            "location_type": location_type,
            "contract_type": contract_type,
            "project_id": project_id,
        }
        query = apply_filters(query, FinancialLine, filters)
        query = apply_search(query, FinancialLine, search, ["fl_no", "fl_name"])
        return await paginate(
            db, query, pagination, model=FinancialLine, schema=FinancialLineResponse,
        )

    @staticmethod
    async def list_active(db: AsyncSession) -> Sequence[FinancialLine]:
        result = await db.execute(
            select(FinancialLine)
            .where(FinancialLine.status == FLStatus.active)
            .order_by(FinancialLine.fl_no)
        )
        return result.scalars().all()

    @staticmethod
    async def get_stats(db: AsyncSession) -> FinancialLineStats:
        rows = (
            await db.execute(
                select(FinancialLine.status, func.count()).group_by(FinancialLine.status)
            )
        ).all()
        counts = {status: count for status, count in rows}
        funding = (
            await db.execute(
                select(func.coalesce(func.sum(FinancialLine.total_funding), 0))
                .where(FinancialLine.status == FLStatus.active)
            )
        ).scalar_one()
        return FinancialLineStats(
            total=sum(counts.values()),
            active=counts.get(FLStatus.active, 0),
            draft=counts.get(FLStatus.draft, 0),
            completed=counts.get(FLStatus.completed, 0),
            cancelled=counts.get(FLStatus.cancelled, 0),
            total_active_funding=round(float(funding or 0), 2),
        )

    @staticmethod
    async def get_financial_line(db: AsyncSession, fl_id: uuid.UUID) -> FinancialLine:
        fl = (
            await db.execute(select(FinancialLine).where(FinancialLine.id == fl_id))
        ).scalars().first()
        if fl is None:
            raise NotFoundException("Financial line", str(fl_id))
        return fl

    @staticmethod
    async def create_financial_line(
        db: AsyncSession,
        data: FinancialLineCreate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> FinancialLine:
        values = data.model_dump(exclude=_JSON_FIELDS)
        values.update(data.model_dump(mode="json", include=_JSON_FIELDS))

        project = await FinancialLineService._load_project(db, data.project_id)
        await FinancialLineService._check_customer_po(db, data.customer_po_id, project.id)

        if not values.get("contract_type"):
            if project.billing_type is None:
                raise ValidationException(
                    {"contract_type": ["Contract type is required"]},
                )
            values["contract_type"] = project.billing_type
        if not values.get("currency"):
            values["currency"] = project.project_currency

        derive_amounts(values, recompute_total=data.total_funding is None)
        try:
            validate_financial_line(values, project)
        except ValidationException as exc:
            logger.warning("Rejected financial line for %s: %s", project.project_code, exc.detail)
            raise

        if values.get("fl_no"):
            taken = await db.execute(
                select(FinancialLine.id).where(FinancialLine.fl_no == values["fl_no"])
            )
            if taken.first() is not None:
                raise DuplicateException(
                    "fl_no", values["fl_no"],
                    detail=f"Financial line {values['fl_no']} already exists",
                )
        else:
            values["fl_no"] = await generate_fl_number(db)

        fl = FinancialLine(**values)
        db.add(fl)
        await db.flush()
        await db.refresh(fl, ["project"])

        await create_audit_entry(
            db,
            action="create",
            entity_type="financial_line",
            entity_id=fl.id,
            actor_id=actor_id,
            new_values=snapshot(fl, _AUDIT_FIELDS),
        )
        logger.info("Financial line %s created under %s", fl.fl_no, project.project_code)
        return fl

    @staticmethod
    async def update_financial_line(
        db: AsyncSession,
        fl_id: uuid.UUID,
        data: FinancialLineUpdate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> FinancialLine:
        fl = await FinancialLineService.get_financial_line(db, fl_id)
        changes = data.model_dump(exclude_unset=True, exclude=_JSON_FIELDS)
        changes.update(data.model_dump(mode="json", exclude_unset=True, include=_JSON_FIELDS))
        changes = {k: v for k, v in changes.items() if v is not None or k == "customer_po_id"}
        if not changes:
            return fl

        merged = {col: getattr(fl, col) for col in FinancialLine.__table__.columns.keys()}
        merged.update(changes)

        project = await FinancialLineService._load_project(db, merged["project_id"])
        if "customer_po_id" in changes or "project_id" in changes:
            await FinancialLineService._check_customer_po(
                db, merged["customer_po_id"], project.id,
            )

        derive_amounts(
            merged,
            recompute_total="funding" in changes and "total_funding" not in changes,
        )
        try:
            validate_financial_line(merged, project)
        except ValidationException as exc:
            logger.warning("Rejected update of %s: %s", fl.fl_no, exc.detail)
            raise

        old_values = snapshot(fl, _AUDIT_FIELDS)
        derived = {
            "funding", "total_funding", "total_planned_revenue",
            "revenue_amount", "expected_revenue",
        }
        for field in set(changes) | derived:
            setattr(fl, field, merged[field])

        await db.flush()

        # Resource rows carry copies of these FL fields
        copied = {k: getattr(fl, k) for k in ("project_id", "fl_no", "fl_name") if k in changes}
        if copied:
            result = await db.execute(
                update(FLResource)
                .where(FLResource.financial_line_id == fl.id)
                .values(**copied)
            )
            logger.info("Synced %d resource(s) of %s", result.rowcount, fl.fl_no)
        await db.refresh(fl, ["project"])
        await create_audit_entry(
            db,
            action="update",
            entity_type="financial_line",
            entity_id=fl.id,
            actor_id=actor_id,
            old_values=old_values,
            new_values=snapshot(fl, _AUDIT_FIELDS),
        )
        return fl

    @staticmethod
    async def delete_financial_line(
        db: AsyncSession,
        fl_id: uuid.UUID,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> int:
        """Delete the FL together with its resource rows; returns resources removed."""
        fl = await FinancialLineService.get_financial_line(db, fl_id)
        old_values = snapshot(fl, _AUDIT_FIELDS)

        result = await db.execute(
            delete(FLResource)
            .where(FLResource.financial_line_id == fl.id)
            .execution_options(synchronize_session="fetch")
        )
        removed = result.rowcount or 0
        await db.delete(fl)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="financial_line",
            entity_id=fl_id,
            actor_id=actor_id,
            old_values={**old_values, "removed_resources": removed},
        )
        logger.info("Financial line %s deleted with %d resource(s)", old_values["fl_no"], removed)
        return removed
