"""Customer purchase-order ORM model."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rmg_portal.common.audit import TimestampMixin
from rmg_portal.common.constants import PaymentTerms, POStatus
from rmg_portal.database import Base, value_enum


class CustomerPO(Base, TimestampMixin):
    """Purchase order received from a customer against a project."""

    __tablename__ = "customer_pos"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    po_no: Mapped[str] = mapped_column(sa.String(100), unique=True, nullable=False)
    contract_no: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    title: Mapped[Optional[str]] = mapped_column(sa.String(200))
    customer_name: Mapped[Optional[str]] = mapped_column(sa.String(200))
    project_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("projects.id", ondelete="RESTRICT"),
        nullable=False,
    )
    booking_entity: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    po_amount: Mapped[float] = mapped_column(
        sa.Numeric(16, 2, asdecimal=False), nullable=False,
    )
    po_currency: Mapped[str] = mapped_column(sa.String(10), nullable=False, default="USD")
    payment_terms: Mapped[PaymentTerms] = mapped_column(
        value_enum(PaymentTerms, "payment_terms"),
        nullable=False,
        default=PaymentTerms.net_30,
    )
    auto_release: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)
    po_creation_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    po_start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    po_validity_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    status: Mapped[POStatus] = mapped_column(
        value_enum(POStatus, "po_status"), nullable=False, default=POStatus.active,
    )
    notes: Mapped[Optional[str]] = mapped_column(sa.Text)

    # Relationships
    project = relationship("Project", lazy="selectin")

    __table_args__ = (
        sa.Index("ix_customer_pos_project_id", "project_id"),
        sa.CheckConstraint("po_amount > 0", name="ck_customer_pos_amount_positive"),
    )

    def __repr__(self) -> str:
        return f"<CustomerPO {self.po_no}>"
