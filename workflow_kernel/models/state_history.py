"""
Module: workflow_kernel.models.state_history
Responsibility: ORM persistence for the per-entity state history.

Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Append-only: UPDATE and DELETE raise ImmutabilityViolationError
      (db/immutability.py).
    - Ordered: ``sequence`` counts transitions per entity from 1 and is
      UNIQUE per (entity_type, entity_id).  Two writers that read the same
      last sequence cannot both insert.

Failure modes:
    - IntegrityError on a duplicate (entity_type, entity_id, sequence).

Audit relevance:
    One row per executed transition, written in the same transaction as the
    entity update.  Reading the rows in sequence order replays the entity's
    path through its machine.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from workflow_kernel.db.base import Base


class EntityStateHistory(Base):
    """One executed transition."""

    __tablename__ = "entity_state_history"

    __table_args__ = (
        UniqueConstraint(
            "entity_type",
            "entity_id",
            "sequence",
            name="uq_entity_state_history_sequence",
        ),
        Index("idx_entity_state_history_tenant", "tenant_id", "entity_type", "entity_id"),
    )

    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(36), nullable=False)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)

    from_state: Mapped[str] = mapped_column(String(50), nullable=False)
    to_state: Mapped[str] = mapped_column(String(50), nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False)

    actor_id: Mapped[str] = mapped_column(String(36), nullable=False)
    actor_name: Mapped[str] = mapped_column(String(255), nullable=False)
    actor_role: Mapped[str | None] = mapped_column(String(100), nullable=True)

    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    # "metadata" is reserved on declarative classes
    details: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON, nullable=True)

    transitioned_at: Mapped[datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return (
            f"<EntityStateHistory {self.entity_type}:{self.entity_id} "
            f"#{self.sequence} {self.from_state}->{self.to_state}>"
        )
