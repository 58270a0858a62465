"""
ORM-Level Immutability Enforcement for the workflow trail.

===============================================================================
WHY THIS EXISTS
===============================================================================

State history and audit rows are the record of who moved which entity where.
Once written they are never edited or removed; a correction is a new
transition, which leaves its own rows.

SQLAlchemy fires mapper events before UPDATE/DELETE statements for ORM
objects reach the database:

    session.flush()
         |
         v
    [before_update] --> _reject_update() --> ImmutabilityViolationError
         |
    [before_delete] --> _reject_delete() --> ImmutabilityViolationError
         |
         v
    SQL sent to database (only for inserts)

The exception aborts the flush and the enclosing session_scope() rolls the
transaction back.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity                | When Immutable          | Table
----------------------|-------------------------|------------------------
EntityStateHistory    | ALWAYS (from creation)  | entity_state_history
AuditLog              | ALWAYS (from creation)  | audit_logs

Bulk ``update()``/``delete()`` statements bypass mapper events.  No code in
this package issues them against these tables.
"""

from sqlalchemy import event

from workflow_kernel.exceptions import ImmutabilityViolationError
from workflow_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _reject(operation: str, target) -> None:
    entity_type = type(target).__name__
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
        },
    )
    verb = "modified" if operation == "UPDATE" else "deleted"
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=f"{entity_type} records are append-only and cannot be {verb}",
    )


def _reject_update(mapper, connection, target):
    """Prevent any updates to append-only records."""
    _reject("UPDATE", target)


def _reject_delete(mapper, connection, target):
    """Prevent deletion of append-only records."""
    _reject("DELETE", target)


def _protected_models() -> tuple:
    from workflow_kernel.models.audit_log import AuditLog
    from workflow_kernel.models.state_history import EntityStateHistory

    return (EntityStateHistory, AuditLog)


def register_immutability_listeners() -> None:
    """
    Register the append-only listeners.  Safe to call more than once.

    Call this during application initialization, before any transition
    runs.  ``build_state_transition_service`` does it for you.
    """
    for model in _protected_models():
        if not event.contains(model, "before_update", _reject_update):
            event.listen(model, "before_update", _reject_update)
        if not event.contains(model, "before_delete", _reject_delete):
            event.listen(model, "before_delete", _reject_delete)


def unregister_immutability_listeners() -> None:
    """
    Remove the append-only listeners.

    WARNING: Only use this in tests that need to prove the listeners are
    what blocks the write.
    """
    for model in _protected_models():
        if event.contains(model, "before_update", _reject_update):
            event.remove(model, "before_update", _reject_update)
        if event.contains(model, "before_delete", _reject_delete):
            event.remove(model, "before_delete", _reject_delete)
