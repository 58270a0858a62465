"""
workflow_services.transition_executor -- Atomic execution of a validated transition.

Responsibility:
    Given a request and the TransitionValidation computed for it in the same
    call, apply the transition in ONE database transaction: entity update,
    state history row, audit row.  Either all three commit or none do.

Architecture position:
    Services layer.  Coordinates the kernel repository, history and audit
    services; owns the session_scope() for the write.

Invariants enforced:
    - Atomicity: any exception inside the scope rolls back every write.
    - Race safety: the entity is re-read and must still be in the validated
      state; the UPDATE repeats that check in its WHERE clause; the history
      sequence is UNIQUE per entity.
    - Guards run against the row that is about to be updated, never against
      a copy loaded earlier.
    - Stamped fields follow one fixed action vocabulary (``stamped_fields``).

Failure modes:
    - Validation or guard failure -> TransitionResult(success=False), no writes.
    - UserNotFoundError when the actor has no directory record.
    - EntityNotFoundError when the row vanished after validation.
    - OptimisticLockError when another transaction moved the entity first
      (including a lost race on the history sequence).
    - UnknownStampFieldError when the model lacks a stamped column.
"""

from __future__ import annotations

import time
from datetime import datetime
from types import MappingProxyType
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from workflow_kernel.db.engine import session_scope
from workflow_kernel.domain.audit import AuditAction
from workflow_kernel.domain.clock import Clock, SystemClock
from workflow_kernel.domain.dtos import (
    Actor,
    AuditLogEntry,
    StateHistoryEntry,
    TransitionContext,
    TransitionRequest,
    TransitionResult,
    TransitionValidation,
)
from workflow_kernel.domain.registry import StateMachineRegistry
from workflow_kernel.domain.workflow import EntityType, WorkflowAction
from workflow_kernel.exceptions import (
    EntityNotFoundError,
    OptimisticLockError,
    UserNotFoundError,
)
from workflow_kernel.logging_config import LogContext, get_logger
from workflow_kernel.services.audit_log_service import AuditLogService
from workflow_kernel.services.entity_repository import RepositoryRegistry
from workflow_kernel.services.state_history_service import StateHistoryService
from workflow_kernel.services.user_directory import UserDirectory
from workflow_services.transition_validator import (
    ENTITY_NOT_FOUND,
    TRANSITION_NOT_ALLOWED,
)

logger = get_logger("services.transition_executor")

# Outcome codes for the workflow_transition trace record
OUTCOME_SUCCESS = "success"
OUTCOME_DENIED = "denied"
OUTCOME_GUARD_FAILED = "guard_failed"
OUTCOME_NOT_FOUND = "not_found"
OUTCOME_CONFLICT = "conflict"
OUTCOME_ERROR = "error"


def _emit_workflow_trace(
    request: TransitionRequest,
    from_state: str,
    outcome: str,
    reason: str,
    duration_ms: float,
    to_state: str | None = None,
) -> None:
    """Emit one structured record per execution attempt."""
    record: dict[str, Any] = {
        "action": request.action_value,
        "entity_type": request.entity_type_value,
        "entity_id": request.entity_id,
        "from_state": from_state,
        "outcome": outcome,
        "reason": reason,
        "duration_ms": round(duration_ms, 3),
    }
    if to_state is not None:
        record["to_state"] = to_state
    record.update(LogContext.get_all())
    logger.info("workflow_transition", extra=record)


# ---------------------------------------------------------------------------
# Action vocabulary
# ---------------------------------------------------------------------------

_ACTOR_STAMPS: dict[WorkflowAction, tuple[str, str]] = {
    WorkflowAction.APPROVE: ("approved_by", "approved_at"),
    WorkflowAction.REJECT: ("rejected_by", "rejected_at"),
    WorkflowAction.REVIEW: ("reviewed_by", "reviewed_at"),
    WorkflowAction.VALIDATE: ("validated_by", "validated_at"),
    WorkflowAction.MARK_RECEIVED: ("received_by", "received_at"),
    WorkflowAction.CONFIRM: ("confirmed_by", "confirmed_at"),
}

# sent_by exists only where a person dispatches the document
_SENT_BY_ENTITIES = frozenset({EntityType.PAYSLIP, EntityType.REMITTANCE})

ACTION_TO_AUDIT: dict[WorkflowAction, AuditAction] = {
    WorkflowAction.APPROVE: AuditAction.APPROVE,
    WorkflowAction.REJECT: AuditAction.REJECT,
    WorkflowAction.SEND: AuditAction.SEND,
}


def stamped_fields(
    action: WorkflowAction,
    entity_type: EntityType,
    actor_id: str,
    reason: str | None,
    now: datetime,
) -> dict[str, Any]:
    """
    Columns an action writes besides ``workflow_state`` and ``updated_at``.

    Actions outside the vocabulary stamp nothing.
    """
    fields: dict[str, Any] = {}
    if action in _ACTOR_STAMPS:
        by_field, at_field = _ACTOR_STAMPS[action]
        fields[by_field] = actor_id
        fields[at_field] = now
    if action is WorkflowAction.REJECT:
        fields["rejection_reason"] = reason
    elif action is WorkflowAction.SUBMIT:
        fields["submitted_at"] = now
    elif action is WorkflowAction.SEND:
        fields["sent_date"] = now
        if entity_type in _SENT_BY_ENTITIES:
            fields["sent_by"] = actor_id
    elif action is WorkflowAction.REQUEST_CHANGES:
        fields["changes_requested"] = reason
    elif action is WorkflowAction.MARK_PAID:
        fields["paid_date"] = now
    return fields


def audit_action_for(action: WorkflowAction) -> AuditAction:
    return ACTION_TO_AUDIT.get(action, AuditAction.UPDATE)


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------


class TransitionExecutor:
    """Applies an admitted transition atomically."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        registry: StateMachineRegistry,
        repositories: RepositoryRegistry,
        user_directory: UserDirectory,
        history_service: StateHistoryService | None = None,
        audit_service: AuditLogService | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._registry = registry
        self._repositories = repositories
        self._users = user_directory
        self._clock = clock or SystemClock()
        self._history = history_service or StateHistoryService()
        self._audit = audit_service or AuditLogService(self._clock)

    def execute(
        self,
        request: TransitionRequest,
        validation: TransitionValidation,
        actor: Actor | None = None,
    ) -> TransitionResult:
        """
        Preconditions: ``validation`` was computed for ``request`` in the
            same call.  ``actor`` defaults to the directory record for
            ``request.user_id``.

        Raises:
            UserNotFoundError, EntityNotFoundError, OptimisticLockError, or
            any storage error.  Nothing is written in any of those cases.
        """
        t0 = time.monotonic()
        from_state = validation.current_state

        def trace(outcome: str, reason: str, to_state: str | None = None) -> None:
            _emit_workflow_trace(
                request, from_state, outcome, reason,
                (time.monotonic() - t0) * 1000, to_state,
            )

        transition = validation.transition_for(request.action) if validation.can_transition else None
        if transition is None:
            errors = validation.errors or (TRANSITION_NOT_ALLOWED,)
            outcome = OUTCOME_NOT_FOUND if errors == (ENTITY_NOT_FOUND,) else OUTCOME_DENIED
            trace(outcome, errors[0])
            return TransitionResult.failed(*errors)

        machine = self._registry.get_state_machine(request.entity_type)
        repository = self._repositories.get(request.entity_type)
        entity_type = machine.entity_type
        action = transition.action

        if actor is None:
            actor = self._users.get_user(request.user_id)
            if actor is None:
                trace(OUTCOME_ERROR, "user not found")
                raise UserNotFoundError(request.user_id)

        now = self._clock.now()
        try:
            with session_scope(self._session_factory) as session:
                entity = repository.find_unique(session, request.entity_id, request.tenant_id)
                if entity is None:
                    raise EntityNotFoundError(entity_type.value, request.entity_id)
                if entity.workflow_state != from_state:
                    raise OptimisticLockError(entity_type.value, request.entity_id, from_state)

                context = TransitionContext(
                    entity_type=entity_type,
                    entity_id=request.entity_id,
                    entity=MappingProxyType(entity.to_snapshot()),
                    user_id=actor.id,
                    user_role=actor.role,
                    tenant_id=request.tenant_id,
                    action=action,
                    from_state=from_state,
                    to_state=transition.to_state,
                    reason=request.reason,
                    metadata=MappingProxyType(dict(request.metadata or {})),
                )
                guard_result = machine.validate_transition(context)
                if not guard_result.is_valid:
                    trace(OUTCOME_GUARD_FAILED, "; ".join(guard_result.errors))
                    return TransitionResult.failed(*guard_result.errors)

                fields = stamped_fields(action, entity_type, actor.id, request.reason, now)
                fields["updated_at"] = now
                updated = repository.update_state(
                    session,
                    request.entity_id,
                    request.tenant_id,
                    expected_state=from_state,
                    new_state=transition.to_state,
                    fields=fields,
                )

                history = self._history.append(
                    session,
                    tenant_id=request.tenant_id,
                    entity_type=entity_type.value,
                    entity_id=request.entity_id,
                    from_state=from_state,
                    to_state=transition.to_state,
                    action=action.value,
                    actor=actor,
                    transitioned_at=now,
                    reason=request.reason,
                    metadata=request.metadata,
                )

                self._audit.create_audit_log(
                    session,
                    AuditLogEntry(
                        user_id=actor.id,
                        user_name=actor.name,
                        user_role=actor.role,
                        action=audit_action_for(action),
                        entity_type=entity_type.value,
                        entity_id=request.entity_id,
                        entity_name=updated.display_name,
                        tenant_id=request.tenant_id,
                        metadata={
                            "workflow_action": action.value,
                            "from_state": from_state,
                            "to_state": transition.to_state,
                            "reason": request.reason,
                        },
                    ),
                )

                snapshot = updated.to_snapshot()
                history_entry = StateHistoryEntry.from_model(history)
        except EntityNotFoundError:
            trace(OUTCOME_NOT_FOUND, "entity not found")
            raise
        except OptimisticLockError:
            trace(OUTCOME_CONFLICT, "state changed since validation")
            raise
        except IntegrityError as exc:
            trace(OUTCOME_CONFLICT, "history sequence taken")
            raise OptimisticLockError(entity_type.value, request.entity_id, from_state) from exc
        except Exception as exc:
            trace(OUTCOME_ERROR, type(exc).__name__)
            raise

        trace(OUTCOME_SUCCESS, "transition applied", transition.to_state)
        return TransitionResult(
            success=True,
            entity=snapshot,
            state_history=history_entry,
        )
