"""
Invoice Module (``workflow_modules.invoice``).

Contractor and agency invoices from draft through approval, sending and
payment.
"""

from workflow_modules.invoice.workflows import (
    INVOICE_MACHINE,
    InvoicePermissions,
    InvoiceState,
)

__all__ = ["INVOICE_MACHINE", "InvoicePermissions", "InvoiceState"]
