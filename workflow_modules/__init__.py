"""
Entity workflow modules.

One package per business entity (timesheet, invoice, payment, payslip,
remittance), each declaring its state machine table in ``workflows.py`` and
its persistence model in ``orm.py``.  ``catalog`` wires them into the
registries the services consume.
"""
