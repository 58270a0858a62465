"""
StateMachine -- evaluation over one StateMachineDefinition.

Responsibility:
    Answers "which transitions may this caller take from this state" and
    "do the business guards admit this transition".  Checks the definition
    once at construction so a broken table fails at startup, not mid-request.

Architecture position:
    Kernel > Domain.  Pure: permissions arrive as a list of keys, the entity
    arrives as a snapshot inside TransitionContext.  No ORM, no session.

Invariants enforced:
    - ``initial_state`` and every transition endpoint are declared states.
    - At most one transition per ``(from_state, action)`` pair.
    - Final states have no outgoing transitions.

Failure modes:
    - UnknownStateError / AmbiguousTransitionError / ConfigurationError at
      construction.
    - Query methods never raise: an unknown state has no transitions.
"""

from __future__ import annotations

from collections.abc import Iterable

from workflow_kernel.domain.dtos import TransitionContext, ValidationResult
from workflow_kernel.domain.guards import GuardExecutor
from workflow_kernel.domain.workflow import (
    EntityType,
    StateDefinition,
    StateMachineDefinition,
    TransitionDefinition,
    WorkflowAction,
)
from workflow_kernel.exceptions import (
    AmbiguousTransitionError,
    ConfigurationError,
    UnknownStateError,
)
from workflow_kernel.logging_config import get_logger

logger = get_logger("domain.state_machine")

INVALID_TRANSITION = "Invalid transition"


class StateMachine:
    """
    One entity type's machine plus the guard evaluators it runs.

    Contract:
        Immutable after construction.  Safe to share between threads.
    """

    def __init__(
        self,
        definition: StateMachineDefinition,
        guard_executor: GuardExecutor | None = None,
    ) -> None:
        self._definition = definition
        self._guards = guard_executor or GuardExecutor()
        self._states: dict[str, StateDefinition] = {s.name: s for s in definition.states}
        self._by_key: dict[tuple[str, str], TransitionDefinition] = {}
        self._check_definition()

    def _check_definition(self) -> None:
        entity = self.entity_type.value
        if self._definition.initial_state not in self._states:
            raise UnknownStateError(entity, self._definition.initial_state)

        for t in self._definition.transitions:
            for state in (t.from_state, t.to_state):
                if state not in self._states:
                    raise UnknownStateError(entity, state)
            key = (t.from_state, t.action.value)
            if key in self._by_key:
                raise AmbiguousTransitionError(entity, t.from_state, t.action.value)
            if self._states[t.from_state].is_final:
                raise ConfigurationError(
                    f"Final state '{t.from_state}' in the {entity} machine "
                    f"has an outgoing '{t.action.value}' transition"
                )
            self._by_key[key] = t

    # -- introspection ------------------------------------------------------

    @property
    def definition(self) -> StateMachineDefinition:
        return self._definition

    @property
    def entity_type(self) -> EntityType:
        return self._definition.entity_type

    @property
    def initial_state(self) -> str:
        return self._definition.initial_state

    @property
    def transitions(self) -> tuple[TransitionDefinition, ...]:
        return self._definition.transitions

    @property
    def terminal_states(self) -> frozenset[str]:
        return frozenset(s.name for s in self._definition.states if s.is_final)

    def get_state(self, name: str) -> StateDefinition | None:
        return self._states.get(name)

    def is_terminal(self, state: str) -> bool:
        definition = self._states.get(state)
        return definition is not None and definition.is_final

    def find_transition(
        self, from_state: str, action: WorkflowAction | str
    ) -> TransitionDefinition | None:
        """The transition leaving ``from_state`` via ``action``, ignoring permissions."""
        return self._by_key.get((from_state, getattr(action, "value", action)))

    # -- queries ------------------------------------------------------------

    def get_allowed_transitions(
        self, current_state: str, caller_permissions: Iterable[str]
    ) -> list[TransitionDefinition]:
        """
        Transitions leaving ``current_state`` whose permission predicate the
        caller satisfies, in definition order.
        """
        permissions = frozenset(caller_permissions)
        return [
            t
            for t in self._definition.transitions
            if t.from_state == current_state
            and t.required_permission.is_satisfied_by(permissions)
        ]

    def can_transition(
        self,
        from_state: str,
        to_state: str,
        action: WorkflowAction | str,
        caller_permissions: Iterable[str],
    ) -> bool:
        t = self.find_transition(from_state, action)
        return (
            t is not None
            and t.to_state == to_state
            and t.required_permission.is_satisfied_by(frozenset(caller_permissions))
        )

    def validate_transition(self, context: TransitionContext) -> ValidationResult:
        """
        Evaluate the business guards of the ``(from, to, action)`` transition.

        Every guard runs; failures accumulate in declaration order.
        Permissions are not re-checked here.
        """
        t = self.find_transition(context.from_state, context.action)
        if t is None or t.to_state != context.to_state:
            return ValidationResult.failure(INVALID_TRANSITION)

        failed = [g for g in t.guards if not self._guards.evaluate(g, context)]
        if failed:
            logger.info(
                "transition_guards_failed",
                extra={
                    "entity_type": self.entity_type.value,
                    "action": t.action.value,
                    "from_state": t.from_state,
                    "failed_guards": [g.name for g in failed],
                },
            )
            return ValidationResult.failure(*(g.error_message for g in failed))
        return ValidationResult.success()
