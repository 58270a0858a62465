"""
Module: workflow_kernel.db.base
Responsibility: Declarative base classes for all SQLAlchemy ORM models.  Provides
    the string primary key convention, the type annotation map for consistent
    column types, and the WorkflowEntityMixin shared by every entity that moves
    through a state machine.
Architecture position: Kernel > DB.  This is the lowest-level import target
    within the kernel.  ALL model files import from here.  This module MUST NOT
    import from models/, services/, domain/, or outer layers.

Invariants enforced:
    - String primary keys: identifiers are uuid4 strings, so callers pass the
      same opaque ``entity_id`` strings the engine stores.
    - Decimal precision: Decimal maps to Numeric(18, 2); never float for money.
    - Single state column: ``workflow_state`` is authoritative and NOT NULL;
      ``status`` is a synonym of it, so the two can never drift.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar
from uuid import uuid4

from sqlalchemy import DateTime, Index, Numeric, String, func
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    declared_attr,
    mapped_column,
    synonym,
)


def new_id() -> str:
    """Generate a new primary key value."""
    return str(uuid4())


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Contract:
        Every ORM model in the system inherits from Base.  Base provides a
        string primary key and a type_annotation_map that keeps column types
        consistent across the schema.

    Guarantees:
        - id is a uuid4 string stored as String(36).
        - Decimal maps to Numeric(18, 2).
        - datetime maps to DateTime(timezone=True).
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(18, 2),
        datetime: DateTime(timezone=True),
        str: String(255),
    }

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=new_id,
    )


class WorkflowEntityMixin:
    """
    Columns shared by every workflow-managed entity.

    Contract:
        The engine reads ``workflow_state`` and writes only ``workflow_state``,
        ``updated_at`` and the action-stamped columns the subclass declares.
        Creation and deletion belong to the owning domain module.

    Guarantees:
        - ``tenant_id`` is NOT NULL and indexed with ``id`` for scoped lookup.
        - ``workflow_state`` is NOT NULL; subclasses set ``INITIAL_STATE`` as
          its insert default and ``ENTITY_TYPE`` to their EntityType value.
        - ``status`` reads and writes ``workflow_state``.
    """

    ENTITY_TYPE: ClassVar[str]
    INITIAL_STATE: ClassVar[str]

    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False)

    @declared_attr
    def workflow_state(cls) -> Mapped[str]:
        return mapped_column(
            String(50),
            nullable=False,
            default=cls.INITIAL_STATE,
        )

    @declared_attr
    def status(cls) -> Mapped[str]:
        return synonym("workflow_state")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    @declared_attr.directive
    def __table_args__(cls) -> tuple:
        return (
            Index(f"idx_{cls.__tablename__}_tenant", "tenant_id", "id"),
            Index(f"idx_{cls.__tablename__}_state", "tenant_id", "workflow_state"),
        )

    def to_snapshot(self) -> dict[str, Any]:
        """Return every mapped column plus ``status`` as a plain dict."""
        snapshot = {
            column.key: getattr(self, column.key)
            for column in self.__table__.columns  # type: ignore[attr-defined]
        }
        snapshot["status"] = self.workflow_state
        return snapshot

    @property
    def display_name(self) -> str:
        """Short human label used in audit descriptions."""
        return f"#{self.id[:8]}"  # type: ignore[attr-defined]
