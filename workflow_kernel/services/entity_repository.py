"""
Entity storage for workflow-managed models.

Responsibility:
    One generic repository per entity ORM model.  Loads an entity under its
    tenant scope and moves it to a new state with a compare-and-set UPDATE.

Architecture position:
    Kernel > Services.  Works on any model built on WorkflowEntityMixin.
    Runs inside the caller's session and never commits.

Invariants enforced:
    - Tenant isolation: every read and write filters on (id, tenant_id).
    - Race safety: the UPDATE carries ``workflow_state = expected_state`` in
      its WHERE clause; a concurrent writer that got there first leaves zero
      matching rows.
    - Only declared columns are written.

Failure modes:
    - OptimisticLockError when the guarded UPDATE matches no row.
    - UnknownStampFieldError when a field has no column on the model.
    - UnknownEntityTypeError from RepositoryRegistry for unregistered types.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Generic, TypeVar

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from workflow_kernel.db.base import Base
from workflow_kernel.domain.workflow import EntityType
from workflow_kernel.exceptions import (
    EntityNotFoundError,
    OptimisticLockError,
    UnknownEntityTypeError,
    UnknownStampFieldError,
)
from workflow_kernel.logging_config import get_logger

logger = get_logger("services.entity_repository")

EntityModel = TypeVar("EntityModel", bound=Base)


class EntityRepository(Generic[EntityModel]):
    """Tenant-scoped access to one workflow entity model."""

    def __init__(self, model: type[EntityModel]) -> None:
        self._model = model
        self._entity_type = EntityType(model.ENTITY_TYPE)
        self._columns = frozenset(c.key for c in model.__table__.columns)

    @property
    def model(self) -> type[EntityModel]:
        return self._model

    @property
    def entity_type(self) -> EntityType:
        return self._entity_type

    def has_column(self, name: str) -> bool:
        return name in self._columns

    def find_unique(
        self, session: Session, entity_id: str, tenant_id: str
    ) -> EntityModel | None:
        """The entity with this id in this tenant, or None."""
        model = self._model
        return session.scalars(
            select(model)
            .where(model.id == entity_id, model.tenant_id == tenant_id)
            .execution_options(populate_existing=True)
        ).one_or_none()

    def update_state(
        self,
        session: Session,
        entity_id: str,
        tenant_id: str,
        expected_state: str,
        new_state: str,
        fields: Mapping[str, Any] = MappingProxyType({}),
    ) -> EntityModel:
        """
        Move the entity from ``expected_state`` to ``new_state`` and write
        ``fields`` in the same statement.

        Postconditions: returns the reloaded entity.
        Raises:
            UnknownStampFieldError: a field is not a column of the model.
            OptimisticLockError: the row is missing or no longer in
                ``expected_state``.
            EntityNotFoundError: the updated row cannot be reloaded.
        """
        unknown = sorted(f for f in fields if f not in self._columns)
        if unknown:
            raise UnknownStampFieldError(self._model.__name__, unknown)

        model = self._model
        values = dict(fields)
        values["workflow_state"] = new_state
        result = session.execute(
            update(model)
            .where(
                model.id == entity_id,
                model.tenant_id == tenant_id,
                model.workflow_state == expected_state,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.info(
                "entity_state_conflict",
                extra={
                    "entity_type": self._entity_type.value,
                    "entity_id": entity_id,
                    "expected_state": expected_state,
                },
            )
            raise OptimisticLockError(self._entity_type.value, entity_id, expected_state)

        entity = self.find_unique(session, entity_id, tenant_id)
        if entity is None:
            raise EntityNotFoundError(self._entity_type.value, entity_id)
        return entity


class RepositoryRegistry:
    """EntityType -> EntityRepository.  Read-only after construction."""

    def __init__(self, repositories: Mapping[EntityType, EntityRepository]) -> None:
        self._repositories = MappingProxyType(dict(repositories))

    @classmethod
    def for_models(cls, *models: type[Base]) -> RepositoryRegistry:
        repos = [EntityRepository(model) for model in models]
        return cls({repo.entity_type: repo for repo in repos})

    def get(self, entity_type: EntityType | str) -> EntityRepository:
        try:
            key = EntityType(entity_type)
        except ValueError:
            raise UnknownEntityTypeError(str(entity_type)) from None
        repo = self._repositories.get(key)
        if repo is None:
            raise UnknownEntityTypeError(key.value)
        return repo

    def entity_types(self) -> list[EntityType]:
        return list(self._repositories)
