"""Payslip Module (``workflow_modules.payslip``): generated, validated, sent, paid."""

from workflow_modules.payslip.workflows import (
    PAYSLIP_MACHINE,
    PayslipPermissions,
    PayslipState,
)

__all__ = ["PAYSLIP_MACHINE", "PayslipPermissions", "PayslipState"]
