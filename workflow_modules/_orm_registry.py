"""
Module ORM Registry (``workflow_modules._orm_registry``).

Responsibility
--------------
Ensure every ORM model is imported so that ``Base.metadata`` contains its
table before ``create_tables()`` runs.  ``workflow_kernel.db.engine`` calls
this lazily; scripts and ``tests/conftest.py`` go through the same path.
"""


def import_all_orm_models() -> None:
    """Import kernel models and every ``workflow_modules.*.orm`` module.

    Idempotent -- repeated calls are harmless.
    """
    import workflow_kernel.models  # noqa: F401
    # fmt: off
    import workflow_modules.invoice.orm  # noqa: F401
    import workflow_modules.payment.orm  # noqa: F401
    import workflow_modules.payslip.orm  # noqa: F401
    import workflow_modules.remittance.orm  # noqa: F401
    import workflow_modules.timesheet.orm  # noqa: F401
    # fmt: on
