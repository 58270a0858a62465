"""
Payslip Workflow (``workflow_modules.payslip.workflows``).

    generated -> validated -> sent -> paid
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

logger = get_logger("modules.payslip.workflows")


class PayslipState(str, Enum):
    GENERATED = "generated"
    VALIDATED = "validated"
    SENT = "sent"
    PAID = "paid"


class PayslipPermissions:
    VALIDATE_ALL = "payslip.validate.global"
    SEND_ALL = "payslip.send.global"
    MARK_PAID_ALL = "payslip.mark_paid.global"


_S = PayslipState
_P = PayslipPermissions
_A = WorkflowAction

PAYSLIP_MACHINE = StateMachineDefinition(
    entity_type=EntityType.PAYSLIP,
    initial_state=_S.GENERATED.value,
    states=(
        StateDefinition(_S.GENERATED.value, "Generated", "Payslip has been generated", is_initial=True),
        StateDefinition(_S.VALIDATED.value, "Validated", "Payslip has been validated"),
        StateDefinition(_S.SENT.value, "Sent", "Payslip has been sent to the worker"),
        StateDefinition(_S.PAID.value, "Paid", "Payslip has been paid", is_final=True),
    ),
    transitions=(
        TransitionDefinition(
            _S.GENERATED.value, _S.VALIDATED.value, _A.VALIDATE, requires(_P.VALIDATE_ALL),
        ),
        TransitionDefinition(
            _S.VALIDATED.value, _S.SENT.value, _A.SEND, requires(_P.SEND_ALL),
        ),
        TransitionDefinition(
            _S.SENT.value, _S.PAID.value, _A.MARK_PAID, requires(_P.MARK_PAID_ALL),
        ),
    ),
)

logger.info(
    "payslip_workflow_registered",
    extra={
        "entity_type": PAYSLIP_MACHINE.entity_type.value,
        "state_count": len(PAYSLIP_MACHINE.states),
        "transition_count": len(PAYSLIP_MACHINE.transitions),
        "initial_state": PAYSLIP_MACHINE.initial_state,
    },
)
