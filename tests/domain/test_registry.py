"""StateMachineRegistry lookup tests."""

import pytest

from workflow_kernel.domain.registry import StateMachineRegistry
from workflow_kernel.domain.state_machine import StateMachine
from workflow_kernel.domain.workflow import EntityType
from workflow_kernel.exceptions import ConfigurationError, UnknownEntityTypeError
from workflow_modules.catalog import MACHINE_DEFINITIONS, build_default_registry
from workflow_modules.payslip.workflows import PAYSLIP_MACHINE
from workflow_modules.timesheet.workflows import TIMESHEET_MACHINE


def test_every_entity_type_is_registered():
    registry = build_default_registry()
    assert set(registry.entity_types()) == set(EntityType)


def test_lookup_by_enum_and_string():
    registry = build_default_registry()
    assert registry.get_state_machine(EntityType.PAYMENT) is registry.get_state_machine("payment")


def test_unknown_string_raises():
    registry = build_default_registry()
    with pytest.raises(UnknownEntityTypeError) as exc:
        registry.get_state_machine("purchase_order")
    assert exc.value.code == "UNKNOWN_ENTITY_TYPE"


def test_unregistered_member_raises():
    registry = StateMachineRegistry({EntityType.PAYSLIP: StateMachine(PAYSLIP_MACHINE)})
    assert EntityType.PAYSLIP in registry
    with pytest.raises(UnknownEntityTypeError):
        registry.get_state_machine(EntityType.INVOICE)


def test_key_must_match_machine_type():
    with pytest.raises(ConfigurationError):
        StateMachineRegistry({EntityType.PAYSLIP: StateMachine(TIMESHEET_MACHINE)})


def test_initial_states():
    registry = build_default_registry()
    initial = {d.entity_type: registry.get_state_machine(d.entity_type).initial_state for d in MACHINE_DEFINITIONS}
    assert initial == {
        EntityType.TIMESHEET: "draft",
        EntityType.INVOICE: "draft",
        EntityType.PAYMENT: "pending",
        EntityType.PAYSLIP: "generated",
        EntityType.REMITTANCE: "generated",
    }
