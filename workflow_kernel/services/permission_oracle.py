"""
Permission oracles -- who holds which permission keys.

Responsibility:
    Resolve a user id to the list of permission keys the user holds.  The
    engine only ever asks this one question; how permissions are granted
    is the oracle's business.

Architecture position:
    Kernel > Services.  ``RolePermissionOracle`` reads models/user.py
    through its own short-lived session; ``StaticPermissionOracle`` is an
    in-memory mapping for tests and embedded use.

Failure modes:
    An unknown user resolves to ``[]``; every permission predicate then
    fails and the caller sees the undifferentiated denial.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Protocol, runtime_checkable

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from workflow_kernel.logging_config import get_logger
from workflow_kernel.models.user import Permission, RolePermission, User

logger = get_logger("services.permission_oracle")


@runtime_checkable
class PermissionOracle(Protocol):
    def get_user_permissions(self, user_id: str) -> list[str]:
        """Permission keys held by ``user_id``; empty for unknown users."""
        ...


class StaticPermissionOracle:
    """Fixed user id -> permission keys mapping."""

    def __init__(self, grants: Mapping[str, Iterable[str]] | None = None) -> None:
        self._grants: dict[str, list[str]] = {
            user_id: sorted(set(keys)) for user_id, keys in (grants or {}).items()
        }

    def grant(self, user_id: str, *keys: str) -> None:
        self._grants[user_id] = sorted(set(self._grants.get(user_id, [])) | set(keys))

    def get_user_permissions(self, user_id: str) -> list[str]:
        return list(self._grants.get(user_id, []))


class RolePermissionOracle:
    """
    user -> role -> role_permissions -> permission.key

    Contract:
        Opens and closes its own session per lookup; never writes.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def get_user_permissions(self, user_id: str) -> list[str]:
        stmt = (
            select(Permission.key)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .join(User, User.role_id == RolePermission.role_id)
            .where(User.id == user_id)
            .order_by(Permission.key)
        )
        with self._session_factory() as session:
            keys = list(session.scalars(stmt))
        if not keys:
            logger.debug("no_permissions_for_user", extra={"user_id": user_id})
        return keys
