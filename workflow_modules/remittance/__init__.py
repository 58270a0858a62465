"""Remittance Module (``workflow_modules.remittance``): remittances to payroll."""

from workflow_modules.remittance.workflows import (
    REMITTANCE_MACHINE,
    RemittancePermissions,
    RemittanceState,
)

__all__ = ["REMITTANCE_MACHINE", "RemittancePermissions", "RemittanceState"]
