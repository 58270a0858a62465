"""
Canonical workflow types (``workflow_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for the entity state machines.  Every entity module
(timesheet, invoice, payment, payslip, remittance) declares its table with
these types so that states, transitions and permission predicates are
defined once.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``models/``, ``services/`` or outer layers.

Invariants enforced
-------------------
* A ``PermissionPredicate`` holds at least one permission key.
* Definitions are frozen; nothing mutates them after module import.
* Structural checks over a whole definition (declared states, no
  ambiguous ``(from_state, action)`` pairs) run in ``StateMachine``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from workflow_kernel.domain.guards import Guard


class EntityType(str, Enum):
    """Business entities that move through a state machine."""

    TIMESHEET = "timesheet"
    INVOICE = "invoice"
    PAYMENT = "payment"
    PAYSLIP = "payslip"
    REMITTANCE = "remittance"


class WorkflowAction(str, Enum):
    """Closed vocabulary of transition triggers."""

    SUBMIT = "submit"
    REVIEW = "review"
    APPROVE = "approve"
    REJECT = "reject"
    REQUEST_CHANGES = "request_changes"
    SEND = "send"
    CONFIRM_MARGIN = "confirm_margin"
    MARK_PAID_BY_AGENCY = "mark_paid_by_agency"
    MARK_PAYMENT_RECEIVED = "mark_payment_received"
    MARK_PAID = "mark_paid"
    MARK_RECEIVED = "mark_received"
    MARK_PARTIALLY_RECEIVED = "mark_partially_received"
    CONFIRM = "confirm"
    VALIDATE = "validate"
    GENERATE = "generate"
    CANCEL = "cancel"


@dataclass(frozen=True)
class PermissionPredicate:
    """Satisfied when the caller holds ANY of ``any_of``.

    Permission keys are opaque strings such as ``invoice.approve.global``.
    """
    any_of: frozenset[str]

    def __post_init__(self) -> None:
        if not self.any_of:
            raise ValueError("PermissionPredicate requires at least one permission key")

    def is_satisfied_by(self, permissions: Iterable[str]) -> bool:
        return not self.any_of.isdisjoint(permissions)


def requires(*keys: str) -> PermissionPredicate:
    """Shorthand for ``PermissionPredicate(frozenset(keys))``."""
    return PermissionPredicate(frozenset(keys))


@dataclass(frozen=True)
class StateDefinition:
    """A named state with its human label.

    ``metadata`` carries presentation hints (colour, auto-transition target)
    and is never read by the engine.
    """
    name: str
    display_name: str
    description: str = ""
    is_initial: bool = False
    is_final: bool = False
    metadata: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True)
class TransitionDefinition:
    """A permitted edge ``from_state --action--> to_state``.

    Contract: frozen.  ``guards`` are evaluated in declaration order after the
    permission predicate is satisfied.
    """
    from_state: str
    to_state: str
    action: WorkflowAction
    required_permission: PermissionPredicate
    guards: tuple[Guard, ...] = ()


@dataclass(frozen=True)
class StateMachineDefinition:
    """The static transition table for one entity type.

    Contract: frozen.  Terminal states are the states declared with
    ``is_final=True``.
    """
    entity_type: EntityType
    initial_state: str
    states: tuple[StateDefinition, ...]
    transitions: tuple[TransitionDefinition, ...]

    @property
    def state_names(self) -> tuple[str, ...]:
        return tuple(s.name for s in self.states)
