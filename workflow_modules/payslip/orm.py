"""Payslip ORM Model (``workflow_modules.payslip.orm``)."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from workflow_kernel.db.base import Base, WorkflowEntityMixin
from workflow_kernel.domain.workflow import EntityType
from workflow_modules.payslip.workflows import PAYSLIP_MACHINE


class Payslip(WorkflowEntityMixin, Base):
    __tablename__ = "payslips"

    ENTITY_TYPE = EntityType.PAYSLIP.value
    INITIAL_STATE = PAYSLIP_MACHINE.initial_state

    worker_id: Mapped[str] = mapped_column(String(36), nullable=False)
    period_month: Mapped[int] = mapped_column(Integer, nullable=False)
    period_year: Mapped[int] = mapped_column(Integer, nullable=False)
    gross_amount: Mapped[Decimal | None] = mapped_column(nullable=True)
    net_amount: Mapped[Decimal | None] = mapped_column(nullable=True)

    # Stamped by transitions
    validated_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    validated_at: Mapped[datetime | None] = mapped_column(nullable=True)
    sent_date: Mapped[datetime | None] = mapped_column(nullable=True)
    sent_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    paid_date: Mapped[datetime | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return (
            f"<Payslip {self.worker_id} {self.period_year}-{self.period_month:02d} "
            f"[{self.workflow_state}]>"
        )
