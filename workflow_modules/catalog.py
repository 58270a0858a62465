"""
Default wiring of the five entity modules (``workflow_modules.catalog``).

Responsibility
--------------
Builds the GuardExecutor, StateMachineRegistry and RepositoryRegistry the
services consume from the per-module tables and models.  Callers that need
substitute machines build their own registries instead.
"""

from workflow_kernel.domain.guards import GuardExecutor
from workflow_kernel.domain.registry import StateMachineRegistry
from workflow_kernel.domain.state_machine import StateMachine
from workflow_kernel.domain.workflow import StateMachineDefinition
from workflow_kernel.services.entity_repository import RepositoryRegistry
from workflow_modules._guards import SHARED_GUARD_EVALUATORS
from workflow_modules.invoice import workflows as invoice_workflows
from workflow_modules.invoice.orm import Invoice
from workflow_modules.payment.orm import Payment
from workflow_modules.payment.workflows import PAYMENT_MACHINE
from workflow_modules.payslip.orm import Payslip
from workflow_modules.payslip.workflows import PAYSLIP_MACHINE
from workflow_modules.remittance.orm import Remittance
from workflow_modules.remittance.workflows import REMITTANCE_MACHINE
from workflow_modules.timesheet import workflows as timesheet_workflows
from workflow_modules.timesheet.orm import Timesheet

MACHINE_DEFINITIONS: tuple[StateMachineDefinition, ...] = (
    timesheet_workflows.TIMESHEET_MACHINE,
    invoice_workflows.INVOICE_MACHINE,
    PAYMENT_MACHINE,
    PAYSLIP_MACHINE,
    REMITTANCE_MACHINE,
)

ENTITY_MODELS = (Timesheet, Invoice, Payment, Payslip, Remittance)


def default_guard_executor() -> GuardExecutor:
    """Return a GuardExecutor with every module evaluator registered."""
    ex = GuardExecutor()
    ex.register_all(SHARED_GUARD_EVALUATORS)
    ex.register_all(timesheet_workflows.GUARD_EVALUATORS)
    ex.register_all(invoice_workflows.GUARD_EVALUATORS)
    return ex


def build_default_registry(
    guard_executor: GuardExecutor | None = None,
) -> StateMachineRegistry:
    guards = guard_executor or default_guard_executor()
    return StateMachineRegistry(
        {d.entity_type: StateMachine(d, guards) for d in MACHINE_DEFINITIONS}
    )


def build_default_repositories() -> RepositoryRegistry:
    return RepositoryRegistry.for_models(*ENTITY_MODELS)
