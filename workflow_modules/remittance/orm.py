"""Remittance ORM Model (``workflow_modules.remittance.orm``)."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from workflow_kernel.db.base import Base, WorkflowEntityMixin
from workflow_kernel.domain.workflow import EntityType
from workflow_modules.remittance.workflows import REMITTANCE_MACHINE


class Remittance(WorkflowEntityMixin, Base):
    __tablename__ = "remittances"

    ENTITY_TYPE = EntityType.REMITTANCE.value
    INITIAL_STATE = REMITTANCE_MACHINE.initial_state

    worker_id: Mapped[str] = mapped_column(String(36), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Stamped by transitions
    validated_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    validated_at: Mapped[datetime | None] = mapped_column(nullable=True)
    sent_date: Mapped[datetime | None] = mapped_column(nullable=True)
    sent_by: Mapped[str | None] = mapped_column(String(36), nullable=True)

    def __repr__(self) -> str:
        return f"<Remittance {self.id} {self.amount} {self.currency} [{self.workflow_state}]>"
