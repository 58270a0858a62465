"""
Module: workflow_kernel.models.audit_log
Responsibility: ORM persistence for the tenant-visible audit log.

Architecture position: Kernel > Models.  May import from db/base.py and
    the domain audit vocabulary.

Invariants enforced:
    - Append-only: UPDATE and DELETE raise ImmutabilityViolationError
      (db/immutability.py).
    - ``action`` is an AuditAction value.

Audit relevance:
    Every executed transition writes exactly one row here, in the same
    transaction as the entity update and the history row.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from workflow_kernel.db.base import Base
from workflow_kernel.domain.audit import AuditAction


class AuditLog(Base):
    """One audited user action."""

    __tablename__ = "audit_logs"

    __table_args__ = (
        Index("idx_audit_logs_entity", "tenant_id", "entity_type", "entity_id"),
        Index("idx_audit_logs_user", "tenant_id", "user_id"),
    )

    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    user_name: Mapped[str] = mapped_column(String(255), nullable=False)
    user_role: Mapped[str | None] = mapped_column(String(100), nullable=True)

    action: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(36), nullable=False)
    entity_name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False)
    details: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)

    timestamp: Mapped[datetime] = mapped_column(nullable=False)

    @property
    def audit_action(self) -> AuditAction:
        return AuditAction(self.action)

    def __repr__(self) -> str:
        return f"<AuditLog {self.action} {self.entity_type}:{self.entity_id}>"
