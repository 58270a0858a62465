"""
Timesheet ORM Models (``workflow_modules.timesheet.orm``).

Responsibility
--------------
Persistence for timesheets and their entries.  The workflow engine reads
``workflow_state`` and the derived ``entry_count``/``total_hours`` snapshot
fields, and writes only ``workflow_state``, ``updated_at`` and the stamp
columns below.

Architecture position
---------------------
**Modules layer** -- persistence.  Imports from ``workflow_kernel.db.base``.
MUST NOT be imported by ``workflow_kernel``.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import Date, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workflow_kernel.db.base import Base, WorkflowEntityMixin
from workflow_kernel.domain.workflow import EntityType
from workflow_modules.timesheet.workflows import TIMESHEET_MACHINE


class Timesheet(WorkflowEntityMixin, Base):
    """
    A contractor's timesheet for one period.

    Guarantees:
        - ``workflow_state`` starts at ``draft``.
        - ``entries`` are loaded with the sheet so guards can count them.
    """

    __tablename__ = "timesheets"

    ENTITY_TYPE = EntityType.TIMESHEET.value
    INITIAL_STATE = TIMESHEET_MACHINE.initial_state

    contractor_id: Mapped[str] = mapped_column(String(36), nullable=False)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    total_hours: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)

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

    entries: Mapped[list[TimesheetEntry]] = relationship(
        back_populates="timesheet",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="TimesheetEntry.work_date",
    )

    def to_snapshot(self) -> dict[str, Any]:
        snapshot = super().to_snapshot()
        snapshot["entry_count"] = len(self.entries)
        snapshot["entry_hours"] = sum((e.hours for e in self.entries), Decimal("0"))
        return snapshot

    def __repr__(self) -> str:
        return f"<Timesheet {self.id} {self.period_start}..{self.period_end} [{self.workflow_state}]>"


class TimesheetEntry(Base):
    """One day's work on a timesheet.  Not workflow-managed."""

    __tablename__ = "timesheet_entries"

    timesheet_id: Mapped[str] = mapped_column(ForeignKey("timesheets.id"), nullable=False, index=True)
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    hours: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    timesheet: Mapped[Timesheet] = relationship(back_populates="entries")
