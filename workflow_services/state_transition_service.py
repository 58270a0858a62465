"""
workflow_services.state_transition_service -- Public facade of the engine.

Responsibility:
    The one entry point callers use: validate, execute, list available
    actions, read history and audit trail, and run batches.  Converts every
    failure into the uniform ``success=False, errors=[...]`` shape so no
    storage detail reaches the caller.

Architecture position:
    Services layer.  Thin coordinator over TransitionValidator and
    TransitionExecutor; built by ``workflow_services.bootstrap``.

Invariants enforced:
    - ``execute_transition`` always re-validates first; a validation from an
      earlier call is never trusted.
    - Batch items run one after another and independently; an earlier
      success is never rolled back by a later failure.
"""

from __future__ import annotations

from collections.abc import Iterable
from uuid import uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from workflow_kernel.db.engine import session_scope
from workflow_kernel.domain.dtos import (
    AuditLogRecord,
    AvailableActions,
    BatchItemResult,
    BatchTransitionResult,
    StateHistoryEntry,
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
from workflow_kernel.services.state_history_service import StateHistoryService
from workflow_services.transition_executor import TransitionExecutor
from workflow_services.transition_validator import (
    ENTITY_NOT_FOUND,
    TransitionValidator,
)

logger = get_logger("services.state_transition")

CONFLICT_MESSAGE = "The entity was modified by another request. Reload it and try again."
USER_NOT_FOUND = "User not found"
VALIDATION_FAILED = "An error occurred while validating the transition"
EXECUTION_FAILED = "An error occurred while executing the transition"


def _value(member: EntityType | WorkflowAction | str) -> str:
    return getattr(member, "value", member)


class StateTransitionService:
    """Facade over validation, execution and the workflow read models."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        registry: StateMachineRegistry,
        validator: TransitionValidator,
        executor: TransitionExecutor,
        history_service: StateHistoryService | None = None,
        audit_service: AuditLogService | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._registry = registry
        self._validator = validator
        self._executor = executor
        self._history = history_service or StateHistoryService()
        self._audit = audit_service or AuditLogService()

    @property
    def registry(self) -> StateMachineRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Validation and execution
    # ------------------------------------------------------------------

    def validate_transition(self, request: TransitionRequest) -> TransitionValidation:
        """Never raises; unexpected failures come back as a generic error."""
        with self._bind(request):
            try:
                return self._validator.validate(request)
            except Exception:
                logger.exception(
                    "transition_validation_error",
                    extra={"action": request.action_value},
                )
                return TransitionValidation(can_transition=False, errors=(VALIDATION_FAILED,))

    def execute_transition(self, request: TransitionRequest) -> TransitionResult:
        """
        Validate, then execute in one transaction.

        Never raises.  Conflicts, missing users and storage failures are
        reported through ``errors``.
        """
        with self._bind(request):
            validation = self.validate_transition(request)
            try:
                return self._executor.execute(request, validation)
            except (OptimisticLockError, IntegrityError):
                return TransitionResult.failed(CONFLICT_MESSAGE)
            except UserNotFoundError:
                return TransitionResult.failed(USER_NOT_FOUND)
            except EntityNotFoundError:
                return TransitionResult.failed(ENTITY_NOT_FOUND)
            except Exception:
                logger.exception(
                    "transition_execution_error",
                    extra={"action": request.action_value},
                )
                return TransitionResult.failed(EXECUTION_FAILED)

    def batch_transition(self, requests: Iterable[TransitionRequest]) -> BatchTransitionResult:
        """
        Execute each request on its own, in order.

        There is no cross-entity rollback: ``success`` is True only when every
        item succeeded, and successful items stay committed either way.
        """
        results = []
        for request in requests:
            outcome = self.execute_transition(request)
            results.append(
                BatchItemResult(
                    entity_id=request.entity_id,
                    entity_type=request.entity_type_value,
                    success=outcome.success,
                    errors=outcome.errors,
                )
            )
        success = all(r.success for r in results)
        logger.info(
            "batch_transition_completed",
            extra={
                "item_count": len(results),
                "failed_count": sum(1 for r in results if not r.success),
                "success": success,
            },
        )
        return BatchTransitionResult(success=success, results=tuple(results))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_available_actions(
        self,
        entity_type: EntityType | str,
        entity_id: str,
        user_id: str,
        tenant_id: str,
    ) -> AvailableActions:
        """
        Actions the user may trigger now, deduplicated in definition order.

        Never raises and writes no denial record.  A missing entity yields
        an empty result with ``current_state == ""``.
        """
        lookup = TransitionRequest(
            entity_type=entity_type,
            entity_id=entity_id,
            action="",
            user_id=user_id,
            tenant_id=tenant_id,
        )
        with self._bind(lookup):
            try:
                current_state, allowed = self._validator.allowed_for(lookup)
            except Exception:
                logger.exception("available_actions_error")
                return AvailableActions(actions=(), transitions=(), current_state="")
        actions: list[WorkflowAction] = []
        for transition in allowed:
            if transition.action not in actions:
                actions.append(transition.action)
        return AvailableActions(
            actions=tuple(actions),
            transitions=allowed,
            current_state=current_state or "",
        )

    def can_perform_action(
        self,
        entity_type: EntityType | str,
        entity_id: str,
        action: WorkflowAction | str,
        user_id: str,
        tenant_id: str,
    ) -> bool:
        validation = self.validate_transition(
            TransitionRequest(
                entity_type=entity_type,
                entity_id=entity_id,
                action=action,
                user_id=user_id,
                tenant_id=tenant_id,
            )
        )
        return validation.can_transition

    def get_state_history(
        self, entity_type: EntityType | str, entity_id: str, tenant_id: str
    ) -> list[StateHistoryEntry]:
        """History rows oldest first; empty when the entity has none."""
        with session_scope(self._session_factory) as session:
            return self._history.list_for_entity(
                session, _value(entity_type), entity_id, tenant_id
            )

    def get_audit_trail(
        self, entity_type: EntityType | str, entity_id: str, tenant_id: str
    ) -> list[AuditLogRecord]:
        """Audit rows oldest first."""
        with session_scope(self._session_factory) as session:
            return self._audit.list_for_entity(
                session, _value(entity_type), entity_id, tenant_id
            )

    # ------------------------------------------------------------------

    @staticmethod
    def _bind(request: TransitionRequest):
        return LogContext.bind(
            correlation_id=LogContext.get_all().get("correlation_id") or str(uuid4()),
            tenant_id=request.tenant_id,
            actor_id=request.user_id,
            entity_type=request.entity_type_value,
            entity_id=request.entity_id,
        )
