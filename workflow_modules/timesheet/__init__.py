"""
Timesheet Module (``workflow_modules.timesheet``).

A contractor fills in timesheet entries, submits the sheet, and an agency
reviewer approves it, rejects it, or sends it back for changes.
"""

from workflow_modules.timesheet.workflows import (
    TIMESHEET_MACHINE,
    TimesheetPermissions,
    TimesheetState,
)

__all__ = ["TIMESHEET_MACHINE", "TimesheetPermissions", "TimesheetState"]
