"""Database layer - engine, declarative base, and append-only enforcement."""

from workflow_kernel.db.base import Base, WorkflowEntityMixin, new_id
from workflow_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session_factory,
    init_engine_from_url,
    session_scope,
)
from workflow_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)

__all__ = [
    "Base",
    "WorkflowEntityMixin",
    "new_id",
    "init_engine_from_url",
    "get_engine",
    "get_session_factory",
    "session_scope",
    "create_tables",
    "drop_tables",
    "register_immutability_listeners",
    "unregister_immutability_listeners",
]
