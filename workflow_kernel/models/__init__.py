"""Kernel ORM models: state history, audit log, users and roles."""

from workflow_kernel.models.audit_log import AuditLog
from workflow_kernel.models.state_history import EntityStateHistory
from workflow_kernel.models.user import Permission, Role, RolePermission, User

__all__ = [
    "AuditLog",
    "EntityStateHistory",
    "Permission",
    "Role",
    "RolePermission",
    "User",
]
