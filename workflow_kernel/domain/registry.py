"""
StateMachineRegistry -- entity type to StateMachine lookup.

Built once by the composition root and injected into the validator and
executor.  There is no module-level singleton and no mutation API, so
tests build their own registries with substitute machines.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from workflow_kernel.domain.state_machine import StateMachine
from workflow_kernel.domain.workflow import EntityType
from workflow_kernel.exceptions import ConfigurationError, UnknownEntityTypeError


class StateMachineRegistry:
    """Read-only mapping of EntityType -> StateMachine."""

    def __init__(self, machines: Mapping[EntityType, StateMachine]) -> None:
        for entity_type, machine in machines.items():
            if machine.entity_type != entity_type:
                raise ConfigurationError(
                    f"Machine for {machine.entity_type.value} registered "
                    f"under {EntityType(entity_type).value}"
                )
        self._machines: Mapping[EntityType, StateMachine] = MappingProxyType(dict(machines))

    def get_state_machine(self, entity_type: EntityType | str) -> StateMachine:
        """
        Raises:
            UnknownEntityTypeError: no machine for the type, including
                strings that are not EntityType values.
        """
        try:
            key = EntityType(entity_type)
        except ValueError:
            raise UnknownEntityTypeError(str(entity_type)) from None
        machine = self._machines.get(key)
        if machine is None:
            raise UnknownEntityTypeError(key.value)
        return machine

    def entity_types(self) -> list[EntityType]:
        return list(self._machines)

    def __contains__(self, entity_type: object) -> bool:
        try:
            return EntityType(entity_type) in self._machines
        except ValueError:
            return False
