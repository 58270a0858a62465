"""Kernel services: storage, history, audit, permission and user lookup."""

from workflow_kernel.services.audit_log_service import AuditLogService
from workflow_kernel.services.entity_repository import (
    EntityRepository,
    RepositoryRegistry,
)
from workflow_kernel.services.permission_oracle import (
    PermissionOracle,
    RolePermissionOracle,
    StaticPermissionOracle,
)
from workflow_kernel.services.state_history_service import StateHistoryService
from workflow_kernel.services.user_directory import (
    OrmUserDirectory,
    StaticUserDirectory,
    UserDirectory,
)

__all__ = [
    "AuditLogService",
    "EntityRepository",
    "OrmUserDirectory",
    "PermissionOracle",
    "RepositoryRegistry",
    "RolePermissionOracle",
    "StateHistoryService",
    "StaticPermissionOracle",
    "StaticUserDirectory",
    "UserDirectory",
]
