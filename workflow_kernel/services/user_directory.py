"""
User directories -- resolve the acting user for history and audit rows.

``OrmUserDirectory`` reads models/user.py; ``StaticUserDirectory`` holds
Actor records in memory.  Both return None for an unknown user.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload, sessionmaker

from workflow_kernel.domain.dtos import Actor
from workflow_kernel.models.user import User


@runtime_checkable
class UserDirectory(Protocol):
    def get_user(self, user_id: str) -> Actor | None:
        ...


class StaticUserDirectory:
    def __init__(self, actors: Iterable[Actor] = ()) -> None:
        self._actors = {actor.id: actor for actor in actors}

    def add(self, actor: Actor) -> None:
        self._actors[actor.id] = actor

    def get_user(self, user_id: str) -> Actor | None:
        return self._actors.get(user_id)


class OrmUserDirectory:
    """Display name falls back to the email when the user has no name."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def get_user(self, user_id: str) -> Actor | None:
        with self._session_factory() as session:
            user = session.scalars(
                select(User).options(joinedload(User.role)).where(User.id == user_id)
            ).one_or_none()
            if user is None:
                return None
            return Actor(
                id=user.id,
                name=user.display_name,
                role=user.role.name if user.role is not None else None,
                email=user.email,
            )
