"""
State history writer and reader.

Responsibility:
    Append one EntityStateHistory row per executed transition with the next
    per-entity sequence number, and list an entity's rows in order.

Architecture position:
    Kernel > Services.  Runs inside the caller's session; flushes, never
    commits.

Invariants enforced:
    - Sequence numbers start at 1 and increase by one per entity.  The
      UNIQUE (entity_type, entity_id, sequence) constraint rejects a second
      writer that computed the same number.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from workflow_kernel.domain.dtos import Actor, StateHistoryEntry
from workflow_kernel.logging_config import get_logger
from workflow_kernel.models.state_history import EntityStateHistory
from workflow_kernel.utils.serialization import to_json_safe

logger = get_logger("services.state_history")


class StateHistoryService:
    """Append-only access to ``entity_state_history``."""

    def next_sequence(self, session: Session, entity_type: str, entity_id: str) -> int:
        current = session.scalar(
            select(func.max(EntityStateHistory.sequence)).where(
                EntityStateHistory.entity_type == entity_type,
                EntityStateHistory.entity_id == entity_id,
            )
        )
        return (current or 0) + 1

    def append(
        self,
        session: Session,
        *,
        tenant_id: str,
        entity_type: str,
        entity_id: str,
        from_state: str,
        to_state: str,
        action: str,
        actor: Actor,
        transitioned_at: datetime,
        reason: str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> EntityStateHistory:
        """
        Insert the next history row for the entity and flush it.

        Raises:
            IntegrityError: another transaction took the same sequence number.
        """
        row = EntityStateHistory(
            tenant_id=tenant_id,
            entity_type=entity_type,
            entity_id=entity_id,
            sequence=self.next_sequence(session, entity_type, entity_id),
            from_state=from_state,
            to_state=to_state,
            action=action,
            actor_id=actor.id,
            actor_name=actor.name,
            actor_role=actor.role,
            reason=reason,
            details=to_json_safe(metadata),
            transitioned_at=transitioned_at,
        )
        session.add(row)
        session.flush()
        logger.debug(
            "state_history_appended",
            extra={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "sequence": row.sequence,
                "to_state": to_state,
            },
        )
        return row

    def list_for_entity(
        self, session: Session, entity_type: str, entity_id: str, tenant_id: str
    ) -> list[StateHistoryEntry]:
        """All history rows for the entity, oldest first."""
        rows = session.scalars(
            select(EntityStateHistory)
            .where(
                EntityStateHistory.entity_type == entity_type,
                EntityStateHistory.entity_id == entity_id,
                EntityStateHistory.tenant_id == tenant_id,
            )
            .order_by(EntityStateHistory.sequence.asc())
        )
        return [StateHistoryEntry.from_model(row) for row in rows]
