"""
Audit vocabulary: actions and the past-tense verbs used in descriptions.

Descriptions read ``"<user_name> <verb> <entity type> '<entity name>'"``,
e.g. ``"Dana Reyes approved invoice 'INV-0042'"``.
"""

from enum import Enum


class AuditAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    VIEW = "view"
    EXPORT = "export"
    IMPORT = "import"
    GENERATE = "generate"
    SEND = "send"
    APPROVE = "approve"
    REJECT = "reject"
    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"
    LOGIN = "login"
    LOGOUT = "logout"
    PASSWORD_CHANGE = "password_change"


AUDIT_VERBS: dict[AuditAction, str] = {
    AuditAction.CREATE: "created",
    AuditAction.UPDATE: "updated",
    AuditAction.DELETE: "deleted",
    AuditAction.VIEW: "viewed",
    AuditAction.EXPORT: "exported",
    AuditAction.IMPORT: "imported",
    AuditAction.GENERATE: "generated",
    AuditAction.SEND: "sent",
    AuditAction.APPROVE: "approved",
    AuditAction.REJECT: "rejected",
    AuditAction.ACTIVATE: "activated",
    AuditAction.DEACTIVATE: "deactivated",
    AuditAction.LOGIN: "logged in to",
    AuditAction.LOGOUT: "logged out from",
    AuditAction.PASSWORD_CHANGE: "changed password for",
}


def describe(user_name: str, action: AuditAction, entity_type: str, entity_name: str) -> str:
    """Human-readable audit description."""
    verb = AUDIT_VERBS.get(action, action.value)
    return f"{user_name} {verb} {entity_type} '{entity_name}'"
