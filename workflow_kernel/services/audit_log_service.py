"""
Audit log sink.

``create_audit_log`` runs in the caller's session and flushes, so the audit
row commits or rolls back together with the change it describes.  Unlike a
fire-and-forget logger, a failure here aborts the transition.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from workflow_kernel.domain.audit import describe
from workflow_kernel.domain.clock import Clock, SystemClock
from workflow_kernel.domain.dtos import AuditLogEntry, AuditLogRecord
from workflow_kernel.logging_config import get_logger
from workflow_kernel.models.audit_log import AuditLog
from workflow_kernel.utils.serialization import to_json_safe

logger = get_logger("services.audit_log")


class AuditLogService:
    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or SystemClock()

    def create_audit_log(self, session: Session, entry: AuditLogEntry) -> AuditLog:
        description = entry.description or describe(
            entry.user_name, entry.action, entry.entity_type, entry.entity_name
        )
        row = AuditLog(
            user_id=entry.user_id,
            user_name=entry.user_name,
            user_role=entry.user_role,
            action=entry.action.value,
            entity_type=entry.entity_type,
            entity_id=entry.entity_id,
            entity_name=entry.entity_name,
            description=description,
            tenant_id=entry.tenant_id,
            details=to_json_safe(entry.metadata),
            ip_address=entry.ip_address,
            user_agent=entry.user_agent,
            timestamp=self._clock.now(),
        )
        session.add(row)
        session.flush()
        logger.info(
            "audit_log_created",
            extra={
                "audit_action": entry.action.value,
                "entity_type": entry.entity_type,
                "entity_id": entry.entity_id,
            },
        )
        return row

    def list_for_entity(
        self, session: Session, entity_type: str, entity_id: str, tenant_id: str
    ) -> list[AuditLogRecord]:
        """Audit rows for the entity, oldest first."""
        rows = session.scalars(
            select(AuditLog)
            .where(
                AuditLog.entity_type == entity_type,
                AuditLog.entity_id == entity_id,
                AuditLog.tenant_id == tenant_id,
            )
            .order_by(AuditLog.timestamp.asc(), AuditLog.id.asc())
        )
        return [AuditLogRecord.from_model(row) for row in rows]
