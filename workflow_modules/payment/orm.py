"""Payment ORM Model (``workflow_modules.payment.orm``)."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from workflow_kernel.db.base import Base, WorkflowEntityMixin
from workflow_kernel.domain.workflow import EntityType
from workflow_modules.payment.workflows import PAYMENT_MACHINE


class Payment(WorkflowEntityMixin, Base):
    __tablename__ = "payments"

    ENTITY_TYPE = EntityType.PAYMENT.value
    INITIAL_STATE = PAYMENT_MACHINE.initial_state

    invoice_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    amount_received: Mapped[Decimal | None] = mapped_column(nullable=True)

    # Stamped by transitions
    received_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    received_at: Mapped[datetime | None] = mapped_column(nullable=True)
    confirmed_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    confirmed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<Payment {self.id} {self.amount} {self.currency} [{self.workflow_state}]>"
