"""
Remittance Workflow (``workflow_modules.remittance.workflows``).

    generated -> validated -> sent

After ``sent`` the payroll provider moves the remittance through
``pending``/``processing`` to ``completed`` or ``failed``.  Those states
have no user-triggered transitions; the ``sent`` state records the
provider's automatic hand-off in its metadata.
"""

from enum import Enum
from types import MappingProxyType

from workflow_kernel.domain.workflow import (
    EntityType,
    StateDefinition,
    StateMachineDefinition,
    TransitionDefinition,
    WorkflowAction,
    requires,
)
from workflow_kernel.logging_config import get_logger

logger = get_logger("modules.remittance.workflows")


class RemittanceState(str, Enum):
    GENERATED = "generated"
    VALIDATED = "validated"
    SENT = "sent"
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class RemittancePermissions:
    VALIDATE_ALL = "remittance.validate.global"
    SEND_ALL = "remittance.send.global"


_S = RemittanceState
_P = RemittancePermissions
_A = WorkflowAction

REMITTANCE_MACHINE = StateMachineDefinition(
    entity_type=EntityType.REMITTANCE,
    initial_state=_S.GENERATED.value,
    states=(
        StateDefinition(_S.GENERATED.value, "Generated", "Remittance has been generated", is_initial=True),
        StateDefinition(_S.VALIDATED.value, "Validated", "Remittance has been validated"),
        StateDefinition(
            _S.SENT.value,
            "Sent",
            "Remittance has been sent to the payroll provider",
            metadata=MappingProxyType({"auto_transition": _S.PROCESSING.value}),
        ),
        StateDefinition(_S.PENDING.value, "Pending", "Remittance is pending processing"),
        StateDefinition(_S.PROCESSING.value, "Processing", "Remittance is being processed"),
        StateDefinition(_S.COMPLETED.value, "Completed", "Remittance has been completed", is_final=True),
        StateDefinition(_S.FAILED.value, "Failed", "Remittance processing failed", is_final=True),
    ),
    transitions=(
        TransitionDefinition(
            _S.GENERATED.value, _S.VALIDATED.value, _A.VALIDATE, requires(_P.VALIDATE_ALL),
        ),
        TransitionDefinition(
            _S.VALIDATED.value, _S.SENT.value, _A.SEND, requires(_P.SEND_ALL),
        ),
    ),
)

logger.info(
    "remittance_workflow_registered",
    extra={
        "entity_type": REMITTANCE_MACHINE.entity_type.value,
        "state_count": len(REMITTANCE_MACHINE.states),
        "transition_count": len(REMITTANCE_MACHINE.transitions),
        "initial_state": REMITTANCE_MACHINE.initial_state,
    },
)
