"""
Invoice ORM Model (``workflow_modules.invoice.orm``).

Architecture position
---------------------
**Modules layer** -- persistence.  Imports from ``workflow_kernel.db.base``.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from workflow_kernel.db.base import Base, WorkflowEntityMixin
from workflow_kernel.domain.workflow import EntityType
from workflow_modules.invoice.workflows import INVOICE_MACHINE


class Invoice(WorkflowEntityMixin, Base):
    """
    A contractor or agency invoice.

    Guarantees:
        - ``invoice_number`` is unique within a tenant.
        - Audit rows name the invoice by its number.
    """

    __tablename__ = "invoices"

    ENTITY_TYPE = EntityType.INVOICE.value
    INITIAL_STATE = INVOICE_MACHINE.initial_state

    @declared_attr.directive
    def __table_args__(cls) -> tuple:
        return (
            UniqueConstraint("tenant_id", "invoice_number", name="uq_invoices_tenant_number"),
            Index("idx_invoices_tenant", "tenant_id", "id"),
            Index("idx_invoices_state", "tenant_id", "workflow_state"),
        )

    invoice_number: Mapped[str] = mapped_column(String(50), nullable=False)
    amount: Mapped[Decimal | None] = mapped_column(nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    amount_received: Mapped[Decimal | None] = mapped_column(nullable=True)

    # Stamped by transitions
    submitted_at: Mapped[datetime | None] = mapped_column(nullable=True)
    reviewed_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    approved_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    rejected_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    changes_requested: Mapped[str | None] = mapped_column(Text, nullable=True)
    sent_date: Mapped[datetime | None] = mapped_column(nullable=True)
    paid_date: Mapped[datetime | None] = mapped_column(nullable=True)

    @property
    def display_name(self) -> str:
        return self.invoice_number or super().display_name

    def __repr__(self) -> str:
        return f"<Invoice {self.invoice_number} [{self.workflow_state}]>"
