"""
workflow_services -- Orchestration over the workflow kernel.

Validation, atomic execution and the public StateTransitionService facade.
This is the only layer that opens write transactions.

Dependency direction:
    workflow_services/ -> workflow_modules/, workflow_kernel/  (allowed)
    workflow_kernel/   -> workflow_services/                   (FORBIDDEN)
"""

from workflow_services.bootstrap import (
    build_state_transition_service,
    service_from_settings,
)
from workflow_services.state_transition_service import StateTransitionService
from workflow_services.transition_executor import TransitionExecutor
from workflow_services.transition_validator import TransitionValidator

__all__ = [
    "StateTransitionService",
    "TransitionExecutor",
    "TransitionValidator",
    "build_state_transition_service",
    "service_from_settings",
]
