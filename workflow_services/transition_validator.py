"""
workflow_services.transition_validator -- Admissibility check for a transition.

Responsibility:
    Decide whether the caller may trigger ``request.action`` on the entity
    as it stands now: load the entity under its tenant, read its state, and
    intersect the machine's outgoing transitions with the caller's
    permissions.

Architecture position:
    Services layer.  Reads through its own short-lived session; writes
    nothing.  Business guards are NOT evaluated here -- the executor runs
    them against the row it is about to update.

Invariants enforced:
    - ``workflow_state`` is the only source of the current state.
    - A missing entity and an entity in another tenant look identical.
    - "No permission" and "not allowed from this state" share one message.
"""

from __future__ import annotations

from sqlalchemy.orm import Session, sessionmaker

from workflow_kernel.db.engine import session_scope
from workflow_kernel.domain.dtos import TransitionRequest, TransitionValidation
from workflow_kernel.domain.workflow import TransitionDefinition
from workflow_kernel.domain.registry import StateMachineRegistry
from workflow_kernel.logging_config import get_logger
from workflow_kernel.services.entity_repository import RepositoryRegistry
from workflow_kernel.services.permission_oracle import PermissionOracle

logger = get_logger("services.transition_validator")

ENTITY_NOT_FOUND = "Entity not found"
TRANSITION_NOT_ALLOWED = (
    "You do not have permission to perform this action "
    "or the transition is not allowed from the current state"
)


class TransitionValidator:
    """Permission and state check for one TransitionRequest."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        registry: StateMachineRegistry,
        repositories: RepositoryRegistry,
        permission_oracle: PermissionOracle,
    ) -> None:
        self._session_factory = session_factory
        self._registry = registry
        self._repositories = repositories
        self._permissions = permission_oracle

    def validate(self, request: TransitionRequest) -> TransitionValidation:
        """
        Preconditions: ``request.entity_type`` names a registered machine,
            else UnknownEntityTypeError propagates to the caller.
        Postconditions: no rows are written.
        """
        current_state, allowed = self.allowed_for(request)

        if current_state is None:
            logger.info(
                "transition_entity_not_found",
                extra={
                    "entity_type": request.entity_type_value,
                    "entity_id": request.entity_id,
                },
            )
            return TransitionValidation(can_transition=False, errors=(ENTITY_NOT_FOUND,))

        if not any(t.action == request.action for t in allowed):
            logger.info(
                "transition_denied",
                extra={
                    "entity_type": request.entity_type_value,
                    "entity_id": request.entity_id,
                    "action": request.action_value,
                    "current_state": current_state,
                    "allowed_actions": [t.action.value for t in allowed],
                },
            )
            return TransitionValidation(
                can_transition=False,
                errors=(TRANSITION_NOT_ALLOWED,),
                allowed_transitions=allowed,
                current_state=current_state,
            )

        return TransitionValidation(
            can_transition=True,
            allowed_transitions=allowed,
            current_state=current_state,
        )

    def allowed_for(
        self, request: TransitionRequest
    ) -> tuple[str | None, tuple[TransitionDefinition, ...]]:
        """
        Current state and the transitions the user may trigger from it.

        ``request.action`` is ignored and nothing is logged.  The state is
        None when the entity is not visible under ``request.tenant_id``.
        """
        machine = self._registry.get_state_machine(request.entity_type)
        repository = self._repositories.get(request.entity_type)
        permissions = self._permissions.get_user_permissions(request.user_id)

        with session_scope(self._session_factory) as session:
            entity = repository.find_unique(session, request.entity_id, request.tenant_id)
            current_state = entity.workflow_state if entity is not None else None

        if current_state is None:
            return None, ()
        return current_state, tuple(machine.get_allowed_transitions(current_state, permissions))
