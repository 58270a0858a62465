"""
Pure domain layer.

Value objects, state machines and guard evaluation with NO dependencies on
the ORM, the database, wall-clock time, or I/O.
"""

from workflow_kernel.domain.audit import AUDIT_VERBS, AuditAction, describe
from workflow_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from workflow_kernel.domain.dtos import (
    Actor,
    AuditLogEntry,
    AuditLogRecord,
    AvailableActions,
    BatchItemResult,
    BatchTransitionResult,
    StateHistoryEntry,
    TransitionContext,
    TransitionRequest,
    TransitionResult,
    TransitionValidation,
    ValidationResult,
)
from workflow_kernel.domain.guards import Guard, GuardExecutor
from workflow_kernel.domain.registry import StateMachineRegistry
from workflow_kernel.domain.state_machine import StateMachine
from workflow_kernel.domain.workflow import (
    EntityType,
    PermissionPredicate,
    StateDefinition,
    StateMachineDefinition,
    TransitionDefinition,
    WorkflowAction,
    requires,
)

__all__ = [
    "AUDIT_VERBS",
    "Actor",
    "AuditAction",
    "AuditLogEntry",
    "AuditLogRecord",
    "AvailableActions",
    "BatchItemResult",
    "BatchTransitionResult",
    "Clock",
    "DeterministicClock",
    "EntityType",
    "Guard",
    "GuardExecutor",
    "PermissionPredicate",
    "StateDefinition",
    "StateHistoryEntry",
    "StateMachine",
    "StateMachineDefinition",
    "StateMachineRegistry",
    "SystemClock",
    "TransitionContext",
    "TransitionDefinition",
    "TransitionRequest",
    "TransitionResult",
    "TransitionValidation",
    "ValidationResult",
    "WorkflowAction",
    "describe",
]
