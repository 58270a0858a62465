"""
Payment Module (``workflow_modules.payment``).

Incoming payments against invoices: received in full or in part, then
confirmed.
"""

from workflow_modules.payment.workflows import (
    PAYMENT_MACHINE,
    PaymentPermissions,
    PaymentState,
)

__all__ = ["PAYMENT_MACHINE", "PaymentPermissions", "PaymentState"]
