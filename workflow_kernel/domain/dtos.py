"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures that cross the engine boundary:
    TransitionRequest (input), TransitionContext (guard input),
    ValidationResult / TransitionValidation (validation output),
    TransitionResult and the batch/available-action results (service output),
    and the StateHistoryEntry / AuditLogRecord read models.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Free of ORM dependencies.  ``from_model()`` class methods are boundary
    converters invoked only from the service layer.

Failure modes:
    None at construction.  Unknown entity-type or action strings are kept
    as given; the registry and the state machine reject them downstream.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Mapping

from workflow_kernel.domain.audit import AuditAction
from workflow_kernel.domain.workflow import (
    EntityType,
    TransitionDefinition,
    WorkflowAction,
)

_EMPTY: Mapping[str, Any] = MappingProxyType({})


def _coerce(enum_cls, value):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return value


def _value(member) -> str:
    return member.value if hasattr(member, "value") else str(member)


@dataclass(frozen=True)
class Actor:
    """The user performing a transition, as recorded on history and audit rows."""
    id: str
    name: str
    role: str | None = None
    email: str | None = None


@dataclass(frozen=True)
class TransitionRequest:
    """
    A caller's request to move one entity through one action.

    Contract:
        ``entity_type`` and ``action`` accept enum members or their string
        values; valid strings are coerced to the enum on construction.
    """

    entity_type: EntityType | str
    entity_id: str
    action: WorkflowAction | str
    user_id: str
    tenant_id: str
    reason: str | None = None
    metadata: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "entity_type", _coerce(EntityType, self.entity_type))
        object.__setattr__(self, "action", _coerce(WorkflowAction, self.action))

    @property
    def entity_type_value(self) -> str:
        return _value(self.entity_type)

    @property
    def action_value(self) -> str:
        return _value(self.action)


@dataclass(frozen=True)
class TransitionContext:
    """Everything a guard may read.  Built per request, never persisted."""

    entity_type: EntityType
    entity_id: str
    entity: Mapping[str, Any]
    user_id: str
    user_role: str | None
    tenant_id: str
    action: WorkflowAction
    from_state: str
    to_state: str
    reason: str | None = None
    metadata: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)


@dataclass(frozen=True)
class ValidationResult:
    """
    Result of guard evaluation.

    Guarantees:
        - ``errors`` is always a tuple, in guard declaration order.
        - bool(result) == result.is_valid
    """

    is_valid: bool
    errors: tuple[str, ...] = ()

    @classmethod
    def success(cls) -> ValidationResult:
        return cls(is_valid=True, errors=())

    @classmethod
    def failure(cls, *errors: str) -> ValidationResult:
        return cls(is_valid=False, errors=tuple(errors))

    def __bool__(self) -> bool:
        return self.is_valid


@dataclass(frozen=True)
class TransitionValidation:
    """
    Outcome of TransitionValidator.validate().

    ``current_state`` is ``""`` when the entity could not be loaded.
    """

    can_transition: bool
    errors: tuple[str, ...] = ()
    allowed_transitions: tuple[TransitionDefinition, ...] = ()
    current_state: str = ""

    def transition_for(self, action: WorkflowAction | str) -> TransitionDefinition | None:
        """The allowed transition triggered by ``action``, if any."""
        for transition in self.allowed_transitions:
            if transition.action == action:
                return transition
        return None


@dataclass(frozen=True)
class StateHistoryEntry:
    """Read model for one ``entity_state_history`` row."""

    id: str
    tenant_id: str
    entity_type: str
    entity_id: str
    sequence: int
    from_state: str
    to_state: str
    action: str
    actor_id: str
    actor_name: str
    actor_role: str | None
    reason: str | None
    metadata: Mapping[str, Any]
    transitioned_at: datetime

    @classmethod
    def from_model(cls, model: Any) -> StateHistoryEntry:
        return cls(
            id=model.id,
            tenant_id=model.tenant_id,
            entity_type=model.entity_type,
            entity_id=model.entity_id,
            sequence=model.sequence,
            from_state=model.from_state,
            to_state=model.to_state,
            action=model.action,
            actor_id=model.actor_id,
            actor_name=model.actor_name,
            actor_role=model.actor_role,
            reason=model.reason,
            metadata=MappingProxyType(dict(model.details or {})),
            transitioned_at=model.transitioned_at,
        )


@dataclass(frozen=True)
class TransitionResult:
    """
    Outcome of executing a transition.

    On success ``entity`` is the post-transition snapshot and
    ``state_history`` the row that was appended.  On failure both are None
    and nothing was written.
    """

    success: bool
    errors: tuple[str, ...] = ()
    entity: Mapping[str, Any] | None = None
    state_history: StateHistoryEntry | None = None

    @classmethod
    def failed(cls, *errors: str) -> TransitionResult:
        return cls(success=False, errors=tuple(errors))


@dataclass(frozen=True)
class AvailableActions:
    """Actions the caller may trigger from the entity's current state."""

    actions: tuple[WorkflowAction, ...]
    transitions: tuple[TransitionDefinition, ...]
    current_state: str


@dataclass(frozen=True)
class BatchItemResult:
    entity_id: str
    entity_type: str
    success: bool
    errors: tuple[str, ...] = ()


@dataclass(frozen=True)
class BatchTransitionResult:
    """``success`` is True only when every item succeeded."""

    success: bool
    results: tuple[BatchItemResult, ...]


@dataclass(frozen=True)
class AuditLogEntry:
    """Input for AuditLogService.create_audit_log().

    When ``description`` is None the service derives it from the action verb.
    """

    user_id: str
    user_name: str
    action: AuditAction
    entity_type: str
    entity_id: str
    entity_name: str
    tenant_id: str
    user_role: str | None = None
    description: str | None = None
    metadata: Mapping[str, Any] | None = None
    ip_address: str | None = None
    user_agent: str | None = None


@dataclass(frozen=True)
class AuditLogRecord:
    """Read model for one ``audit_logs`` row."""

    id: str
    user_id: str
    user_name: str
    user_role: str | None
    action: AuditAction
    entity_type: str
    entity_id: str
    entity_name: str
    description: str
    tenant_id: str
    metadata: Mapping[str, Any]
    ip_address: str | None
    user_agent: str | None
    timestamp: datetime

    @classmethod
    def from_model(cls, model: Any) -> AuditLogRecord:
        return cls(
            id=model.id,
            user_id=model.user_id,
            user_name=model.user_name,
            user_role=model.user_role,
            action=AuditAction(model.action),
            entity_type=model.entity_type,
            entity_id=model.entity_id,
            entity_name=model.entity_name,
            description=model.description,
            tenant_id=model.tenant_id,
            metadata=MappingProxyType(dict(model.details or {})),
            ip_address=model.ip_address,
            user_agent=model.user_agent,
            timestamp=model.timestamp,
        )
