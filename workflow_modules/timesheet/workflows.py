"""
Timesheet Workflow (``workflow_modules.timesheet.workflows``).

Responsibility
--------------
Declares the timesheet state machine: draft -> submitted -> under_review ->
approved / rejected, with changes_requested looping back to submitted.

Architecture position
---------------------
**Modules layer** -- declarative workflow definition.  Imports the canonical
value types from ``workflow_kernel.domain.workflow``.  Consumed through
``workflow_modules.catalog``.

Invariants enforced
-------------------
* Every definition here is frozen.
* Submission requires at least one entry and positive total hours.
* Reject and request-changes require a reason.

Audit relevance
---------------
The machine is logged at import time with its state and transition counts.
"""

from enum import Enum

from workflow_kernel.domain.dtos import TransitionContext
from workflow_kernel.domain.guards import Guard
from workflow_kernel.domain.workflow import (
    EntityType,
    StateDefinition,
    StateMachineDefinition,
    TransitionDefinition,
    WorkflowAction,
    requires,
)
from workflow_kernel.logging_config import get_logger
from workflow_modules._guards import CHANGES_NOTE_PROVIDED, REASON_PROVIDED, positive

logger = get_logger("modules.timesheet.workflows")


class TimesheetState(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    CHANGES_REQUESTED = "changes_requested"


class TimesheetPermissions:
    SUBMIT_OWN = "timesheet.submit.own"
    REVIEW_ALL = "timesheet.review.global"
    APPROVE_ALL = "timesheet.approve.global"
    REJECT_ALL = "timesheet.reject.global"


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

HAS_ENTRIES = Guard(
    name="timesheet_has_entries",
    description="Timesheet has at least one entry",
    error_message="Timesheet must have at least one entry",
)

TOTAL_HOURS_SPECIFIED = Guard(
    name="timesheet_total_hours_specified",
    description="Timesheet total hours are greater than zero",
    error_message="Total hours must be specified",
)


def _has_entries(ctx: TransitionContext) -> bool:
    return (ctx.entity.get("entry_count") or 0) > 0


def _total_hours_specified(ctx: TransitionContext) -> bool:
    return positive(ctx.entity.get("total_hours"))


GUARD_EVALUATORS = {
    HAS_ENTRIES.name: _has_entries,
    TOTAL_HOURS_SPECIFIED.name: _total_hours_specified,
}


# -----------------------------------------------------------------------------
# Machine
# -----------------------------------------------------------------------------

_S = TimesheetState
_P = TimesheetPermissions
_A = WorkflowAction

TIMESHEET_MACHINE = StateMachineDefinition(
    entity_type=EntityType.TIMESHEET,
    initial_state=_S.DRAFT.value,
    states=(
        StateDefinition(_S.DRAFT.value, "Draft", "Timesheet is being filled in", is_initial=True),
        StateDefinition(_S.SUBMITTED.value, "Submitted", "Timesheet has been submitted for review"),
        StateDefinition(_S.UNDER_REVIEW.value, "Under Review", "Timesheet is being reviewed"),
        StateDefinition(_S.APPROVED.value, "Approved", "Timesheet has been approved", is_final=True),
        StateDefinition(_S.REJECTED.value, "Rejected", "Timesheet has been rejected", is_final=True),
        StateDefinition(
            _S.CHANGES_REQUESTED.value,
            "Changes Requested",
            "Reviewer asked the contractor to amend the timesheet",
        ),
    ),
    transitions=(
        TransitionDefinition(
            _S.DRAFT.value, _S.SUBMITTED.value, _A.SUBMIT,
            requires(_P.SUBMIT_OWN),
            guards=(HAS_ENTRIES, TOTAL_HOURS_SPECIFIED),
        ),
        TransitionDefinition(
            _S.SUBMITTED.value, _S.UNDER_REVIEW.value, _A.REVIEW, requires(_P.REVIEW_ALL),
        ),
        TransitionDefinition(
            _S.SUBMITTED.value, _S.APPROVED.value, _A.APPROVE, requires(_P.APPROVE_ALL),
        ),
        TransitionDefinition(
            _S.SUBMITTED.value, _S.REJECTED.value, _A.REJECT,
            requires(_P.REJECT_ALL), guards=(REASON_PROVIDED,),
        ),
        TransitionDefinition(
            _S.SUBMITTED.value, _S.CHANGES_REQUESTED.value, _A.REQUEST_CHANGES,
            requires(_P.REVIEW_ALL), guards=(CHANGES_NOTE_PROVIDED,),
        ),
        TransitionDefinition(
            _S.UNDER_REVIEW.value, _S.APPROVED.value, _A.APPROVE, requires(_P.APPROVE_ALL),
        ),
        TransitionDefinition(
            _S.UNDER_REVIEW.value, _S.REJECTED.value, _A.REJECT,
            requires(_P.REJECT_ALL), guards=(REASON_PROVIDED,),
        ),
        TransitionDefinition(
            _S.UNDER_REVIEW.value, _S.CHANGES_REQUESTED.value, _A.REQUEST_CHANGES,
            requires(_P.REVIEW_ALL), guards=(CHANGES_NOTE_PROVIDED,),
        ),
        TransitionDefinition(
            _S.CHANGES_REQUESTED.value, _S.SUBMITTED.value, _A.SUBMIT,
            requires(_P.SUBMIT_OWN),
            guards=(HAS_ENTRIES, TOTAL_HOURS_SPECIFIED),
        ),
    ),
)

logger.info(
    "timesheet_workflow_registered",
    extra={
        "entity_type": TIMESHEET_MACHINE.entity_type.value,
        "state_count": len(TIMESHEET_MACHINE.states),
        "transition_count": len(TIMESHEET_MACHINE.transitions),
        "initial_state": TIMESHEET_MACHINE.initial_state,
    },
)
