"""
Invoice Workflow (``workflow_modules.invoice.workflows``).

Responsibility
--------------
Declares the invoice state machine:

    draft -> submitted -> under_review -> approved -> sent
          -> marked_paid_by_agency -> payment_received
    sent / overdue -> paid

Invoices generated from approved timesheets are created directly in
``pending_margin_confirmation`` and leave it once the agency confirms the
margin.  ``for_approval`` holds invoices awaiting a decision.

Architecture position
---------------------
**Modules layer** -- declarative workflow definition.

Invariants enforced
-------------------
* ``review`` from ``submitted`` has exactly one target (``under_review``).
* Submission requires an amount; approval requires a positive total.
* Reject and request-changes require a reason.
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
from workflow_modules._guards import (
    AMOUNT_RECEIVED_SPECIFIED,
    CHANGES_NOTE_PROVIDED,
    REASON_PROVIDED,
    positive,
)

logger = get_logger("modules.invoice.workflows")


class InvoiceState(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    PENDING_MARGIN_CONFIRMATION = "pending_margin_confirmation"
    UNDER_REVIEW = "under_review"
    FOR_APPROVAL = "for_approval"
    APPROVED = "approved"
    REJECTED = "rejected"
    SENT = "sent"
    MARKED_PAID_BY_AGENCY = "marked_paid_by_agency"
    PAYMENT_RECEIVED = "payment_received"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"
    CHANGES_REQUESTED = "changes_requested"


class InvoicePermissions:
    SUBMIT_OWN = "invoice.submit.own"
    DELETE_OWN = "invoice.delete.own"
    CONFIRM_MARGIN_OWN = "invoice.confirmMargin.own"
    PAY_OWN = "invoice.pay.own"

    REVIEW_ALL = "invoice.review.global"
    MODIFY_ALL = "invoice.modify.global"
    APPROVE_ALL = "invoice.approve.global"
    REJECT_ALL = "invoice.reject.global"
    SEND_ALL = "invoice.send.global"
    PAY_ALL = "invoice.pay.global"
    CONFIRM_ALL = "invoice.confirm.global"


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

AMOUNT_SPECIFIED = Guard(
    name="invoice_amount_specified",
    description="Invoice carries an amount before submission",
    error_message="Invoice amount must be specified",
)

POSITIVE_TOTAL = Guard(
    name="invoice_positive_total",
    description="Invoice total is greater than zero",
    error_message="Invoice total must be greater than zero",
)


def _amount_specified(ctx: TransitionContext) -> bool:
    return ctx.entity.get("amount") is not None


def _positive_total(ctx: TransitionContext) -> bool:
    return positive(ctx.entity.get("amount"))


GUARD_EVALUATORS = {
    AMOUNT_SPECIFIED.name: _amount_specified,
    POSITIVE_TOTAL.name: _positive_total,
}


# -----------------------------------------------------------------------------
# Machine
# -----------------------------------------------------------------------------

_S = InvoiceState
_P = InvoicePermissions
_A = WorkflowAction


def _decision_transitions(from_state: InvoiceState) -> tuple[TransitionDefinition, ...]:
    """approve / reject / request_changes out of a state awaiting a decision."""
    return (
        TransitionDefinition(
            from_state.value, _S.APPROVED.value, _A.APPROVE,
            requires(_P.APPROVE_ALL), guards=(POSITIVE_TOTAL,),
        ),
        TransitionDefinition(
            from_state.value, _S.REJECTED.value, _A.REJECT,
            requires(_P.REJECT_ALL), guards=(REASON_PROVIDED,),
        ),
        TransitionDefinition(
            from_state.value, _S.CHANGES_REQUESTED.value, _A.REQUEST_CHANGES,
            requires(_P.REVIEW_ALL), guards=(CHANGES_NOTE_PROVIDED,),
        ),
    )


INVOICE_MACHINE = StateMachineDefinition(
    entity_type=EntityType.INVOICE,
    initial_state=_S.DRAFT.value,
    states=(
        StateDefinition(_S.DRAFT.value, "Draft", "Invoice is being prepared", is_initial=True),
        StateDefinition(_S.SUBMITTED.value, "Submitted", "Invoice has been submitted for review"),
        StateDefinition(
            _S.PENDING_MARGIN_CONFIRMATION.value,
            "Pending Margin Confirmation",
            "Generated invoice waits for the agency to confirm the margin",
        ),
        StateDefinition(_S.UNDER_REVIEW.value, "Under Review", "Invoice is being reviewed"),
        StateDefinition(_S.FOR_APPROVAL.value, "For Approval", "Invoice is awaiting an approval decision"),
        StateDefinition(_S.APPROVED.value, "Approved", "Invoice has been approved"),
        StateDefinition(_S.REJECTED.value, "Rejected", "Invoice has been rejected", is_final=True),
        StateDefinition(_S.SENT.value, "Sent", "Invoice has been sent to the client"),
        StateDefinition(
            _S.MARKED_PAID_BY_AGENCY.value,
            "Marked Paid by Agency",
            "Agency reports that it has paid the invoice",
        ),
        StateDefinition(
            _S.PAYMENT_RECEIVED.value,
            "Payment Received",
            "Payment has been received and confirmed",
        ),
        StateDefinition(_S.PAID.value, "Paid", "Invoice has been paid", is_final=True),
        StateDefinition(_S.OVERDUE.value, "Overdue", "Invoice is past its due date"),
        StateDefinition(_S.CANCELLED.value, "Cancelled", "Invoice has been cancelled", is_final=True),
        StateDefinition(
            _S.CHANGES_REQUESTED.value,
            "Changes Requested",
            "Reviewer asked for the invoice to be amended",
        ),
    ),
    transitions=(
        TransitionDefinition(
            _S.DRAFT.value, _S.SUBMITTED.value, _A.SUBMIT,
            requires(_P.SUBMIT_OWN), guards=(AMOUNT_SPECIFIED,),
        ),
        TransitionDefinition(
            _S.DRAFT.value, _S.CANCELLED.value, _A.CANCEL,
            requires(_P.DELETE_OWN, _P.MODIFY_ALL),
        ),
        TransitionDefinition(
            _S.SUBMITTED.value, _S.UNDER_REVIEW.value, _A.REVIEW, requires(_P.REVIEW_ALL),
        ),
        *_decision_transitions(_S.SUBMITTED),
        TransitionDefinition(
            _S.PENDING_MARGIN_CONFIRMATION.value, _S.UNDER_REVIEW.value, _A.CONFIRM_MARGIN,
            requires(_P.CONFIRM_MARGIN_OWN, _P.MODIFY_ALL),
        ),
        TransitionDefinition(
            _S.PENDING_MARGIN_CONFIRMATION.value, _S.CHANGES_REQUESTED.value, _A.REQUEST_CHANGES,
            requires(_P.REVIEW_ALL), guards=(CHANGES_NOTE_PROVIDED,),
        ),
        *_decision_transitions(_S.UNDER_REVIEW),
        TransitionDefinition(
            _S.FOR_APPROVAL.value, _S.UNDER_REVIEW.value, _A.REVIEW, requires(_P.REVIEW_ALL),
        ),
        *_decision_transitions(_S.FOR_APPROVAL),
        TransitionDefinition(
            _S.CHANGES_REQUESTED.value, _S.SUBMITTED.value, _A.SUBMIT,
            requires(_P.SUBMIT_OWN), guards=(AMOUNT_SPECIFIED,),
        ),
        TransitionDefinition(
            _S.APPROVED.value, _S.SENT.value, _A.SEND, requires(_P.SEND_ALL),
        ),
        TransitionDefinition(
            _S.SENT.value, _S.MARKED_PAID_BY_AGENCY.value, _A.MARK_PAID_BY_AGENCY,
            requires(_P.PAY_OWN, _P.PAY_ALL),
        ),
        TransitionDefinition(
            _S.SENT.value, _S.PAID.value, _A.MARK_PAID, requires(_P.PAY_ALL),
        ),
        TransitionDefinition(
            _S.OVERDUE.value, _S.MARKED_PAID_BY_AGENCY.value, _A.MARK_PAID_BY_AGENCY,
            requires(_P.PAY_OWN, _P.PAY_ALL),
        ),
        TransitionDefinition(
            _S.OVERDUE.value, _S.PAID.value, _A.MARK_PAID, requires(_P.PAY_ALL),
        ),
        TransitionDefinition(
            _S.MARKED_PAID_BY_AGENCY.value, _S.PAYMENT_RECEIVED.value, _A.MARK_PAYMENT_RECEIVED,
            requires(_P.CONFIRM_ALL), guards=(AMOUNT_RECEIVED_SPECIFIED,),
        ),
    ),
)

logger.info(
    "invoice_workflow_registered",
    extra={
        "entity_type": INVOICE_MACHINE.entity_type.value,
        "state_count": len(INVOICE_MACHINE.states),
        "transition_count": len(INVOICE_MACHINE.transitions),
        "initial_state": INVOICE_MACHINE.initial_state,
    },
)
