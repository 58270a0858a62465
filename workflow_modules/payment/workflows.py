"""
Payment Workflow (``workflow_modules.payment.workflows``).

    pending -> received -> confirmed
    pending -> partially_received -> received | confirmed

``processing``, ``completed``, ``failed`` and ``refunded`` are set by the
payment processor integration and have no user-triggered transitions.
"""

from enum import Enum

from workflow_kernel.domain.workflow import (
    EntityType,
    StateDefinition,
    StateMachineDefinition,
    TransitionDefinition,
    WorkflowAction,
    requires,
)
from workflow_kernel.logging_config import get_logger
from workflow_modules._guards import AMOUNT_RECEIVED_SPECIFIED

logger = get_logger("modules.payment.workflows")


class PaymentState(str, Enum):
    PENDING = "pending"
    RECEIVED = "received"
    PARTIALLY_RECEIVED = "partially_received"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentPermissions:
    MARK_RECEIVED_ALL = "payment.mark_received.global"
    CONFIRM_ALL = "payment.confirm.global"


_S = PaymentState
_P = PaymentPermissions
_A = WorkflowAction

PAYMENT_MACHINE = StateMachineDefinition(
    entity_type=EntityType.PAYMENT,
    initial_state=_S.PENDING.value,
    states=(
        StateDefinition(_S.PENDING.value, "Pending", "Payment is expected", is_initial=True),
        StateDefinition(_S.RECEIVED.value, "Received", "Payment has been received in full"),
        StateDefinition(
            _S.PARTIALLY_RECEIVED.value,
            "Partially Received",
            "Part of the payment has been received",
        ),
        StateDefinition(_S.CONFIRMED.value, "Confirmed", "Payment has been confirmed", is_final=True),
        StateDefinition(_S.PROCESSING.value, "Processing", "Payment is being processed"),
        StateDefinition(_S.COMPLETED.value, "Completed", "Payment has completed", is_final=True),
        StateDefinition(_S.FAILED.value, "Failed", "Payment failed", is_final=True),
        StateDefinition(_S.REFUNDED.value, "Refunded", "Payment was refunded", is_final=True),
    ),
    transitions=(
        TransitionDefinition(
            _S.PENDING.value, _S.RECEIVED.value, _A.MARK_RECEIVED,
            requires(_P.MARK_RECEIVED_ALL),
        ),
        TransitionDefinition(
            _S.PENDING.value, _S.PARTIALLY_RECEIVED.value, _A.MARK_PARTIALLY_RECEIVED,
            requires(_P.MARK_RECEIVED_ALL), guards=(AMOUNT_RECEIVED_SPECIFIED,),
        ),
        TransitionDefinition(
            _S.PARTIALLY_RECEIVED.value, _S.RECEIVED.value, _A.MARK_RECEIVED,
            requires(_P.MARK_RECEIVED_ALL),
        ),
        TransitionDefinition(
            _S.RECEIVED.value, _S.CONFIRMED.value, _A.CONFIRM, requires(_P.CONFIRM_ALL),
        ),
        TransitionDefinition(
            _S.PARTIALLY_RECEIVED.value, _S.CONFIRMED.value, _A.CONFIRM, requires(_P.CONFIRM_ALL),
        ),
    ),
)

logger.info(
    "payment_workflow_registered",
    extra={
        "entity_type": PAYMENT_MACHINE.entity_type.value,
        "state_count": len(PAYMENT_MACHINE.states),
        "transition_count": len(PAYMENT_MACHINE.transitions),
        "initial_state": PAYMENT_MACHINE.initial_state,
    },
)
