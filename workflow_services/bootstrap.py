"""
workflow_services.bootstrap -- Composition root.

Responsibility:
    Wire registries, repositories, oracles, directory, clock and services
    into one StateTransitionService.  Every collaborator can be injected;
    the defaults read users and roles from the same database.
"""

from __future__ import annotations

from sqlalchemy.orm import Session, sessionmaker

from workflow_config.settings import EngineSettings
from workflow_kernel.db.engine import build_session_factory, init_engine_from_url
from workflow_kernel.db.immutability import register_immutability_listeners
from workflow_kernel.domain.clock import Clock, SystemClock
from workflow_kernel.domain.registry import StateMachineRegistry
from workflow_kernel.logging_config import configure_logging, get_logger
from workflow_kernel.services.audit_log_service import AuditLogService
from workflow_kernel.services.entity_repository import RepositoryRegistry
from workflow_kernel.services.permission_oracle import (
    PermissionOracle,
    RolePermissionOracle,
)
from workflow_kernel.services.state_history_service import StateHistoryService
from workflow_kernel.services.user_directory import OrmUserDirectory, UserDirectory
from workflow_modules.catalog import build_default_registry, build_default_repositories
from workflow_services.state_transition_service import StateTransitionService
from workflow_services.transition_executor import TransitionExecutor
from workflow_services.transition_validator import TransitionValidator

logger = get_logger("services.bootstrap")


def build_state_transition_service(
    session_factory: sessionmaker[Session],
    permission_oracle: PermissionOracle | None = None,
    user_directory: UserDirectory | None = None,
    clock: Clock | None = None,
    registry: StateMachineRegistry | None = None,
    repositories: RepositoryRegistry | None = None,
    audit_service: AuditLogService | None = None,
) -> StateTransitionService:
    """Assemble the facade.  Registers the append-only listeners as a side effect."""
    register_immutability_listeners()

    clock = clock or SystemClock()
    registry = registry or build_default_registry()
    repositories = repositories or build_default_repositories()
    permission_oracle = permission_oracle or RolePermissionOracle(session_factory)
    user_directory = user_directory or OrmUserDirectory(session_factory)
    history_service = StateHistoryService()
    audit_service = audit_service or AuditLogService(clock)

    validator = TransitionValidator(
        session_factory, registry, repositories, permission_oracle
    )
    executor = TransitionExecutor(
        session_factory,
        registry,
        repositories,
        user_directory,
        history_service=history_service,
        audit_service=audit_service,
        clock=clock,
    )
    service = StateTransitionService(
        session_factory,
        registry,
        validator,
        executor,
        history_service=history_service,
        audit_service=audit_service,
    )
    logger.info(
        "state_transition_service_built",
        extra={"entity_types": [t.value for t in registry.entity_types()]},
    )
    return service


def service_from_settings(settings: EngineSettings) -> StateTransitionService:
    """Configure logging, initialize the engine and build the default service."""
    configure_logging(level=settings.logging.level_number)
    db = settings.database
    engine = init_engine_from_url(
        db.url,
        echo=db.echo,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_timeout=db.pool_timeout,
        pool_recycle=db.pool_recycle,
    )
    return build_state_transition_service(build_session_factory(engine))
