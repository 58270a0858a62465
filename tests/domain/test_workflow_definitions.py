"""
Static checks over the five entity machines.

Verifies:
- No (from_state, action) pair has two targets
- Every column an action stamps exists on the entity model
- sent_by is stamped only for payslips and remittances
- Audit actions follow the fixed vocabulary
"""

from datetime import datetime, timezone

import pytest

from workflow_kernel.domain.audit import AuditAction
from workflow_kernel.domain.workflow import EntityType, WorkflowAction
from workflow_modules.catalog import MACHINE_DEFINITIONS, build_default_repositories
from workflow_services.transition_executor import audit_action_for, stamped_fields

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("definition", MACHINE_DEFINITIONS, ids=lambda d: d.entity_type.value)
def test_from_action_pairs_are_unique(definition):
    keys = [(t.from_state, t.action) for t in definition.transitions]
    assert len(keys) == len(set(keys))


@pytest.mark.parametrize("definition", MACHINE_DEFINITIONS, ids=lambda d: d.entity_type.value)
def test_exactly_one_initial_state(definition):
    initial = [s.name for s in definition.states if s.is_initial]
    assert initial == [definition.initial_state]


@pytest.mark.parametrize("definition", MACHINE_DEFINITIONS, ids=lambda d: d.entity_type.value)
def test_stamped_columns_exist(definition):
    repository = build_default_repositories().get(definition.entity_type)
    for transition in definition.transitions:
        fields = stamped_fields(transition.action, definition.entity_type, "u-1", "why", NOW)
        missing = [f for f in fields if not repository.has_column(f)]
        assert missing == [], (transition.action.value, missing)


def test_approve_stamps_actor_and_time():
    assert stamped_fields(WorkflowAction.APPROVE, EntityType.INVOICE, "u-1", None, NOW) == {
        "approved_by": "u-1",
        "approved_at": NOW,
    }


def test_reject_stamps_reason():
    fields = stamped_fields(WorkflowAction.REJECT, EntityType.TIMESHEET, "u-1", "Wrong week", NOW)
    assert fields["rejection_reason"] == "Wrong week"
    assert fields["rejected_by"] == "u-1"


def test_send_stamps_sent_by_only_for_payroll_documents():
    for entity_type in (EntityType.PAYSLIP, EntityType.REMITTANCE):
        assert stamped_fields(WorkflowAction.SEND, entity_type, "u-1", None, NOW)["sent_by"] == "u-1"
    invoice = stamped_fields(WorkflowAction.SEND, EntityType.INVOICE, "u-1", None, NOW)
    assert invoice == {"sent_date": NOW}


def test_unlisted_actions_stamp_nothing():
    assert stamped_fields(WorkflowAction.CANCEL, EntityType.INVOICE, "u-1", None, NOW) == {}
    assert stamped_fields(WorkflowAction.MARK_PAID_BY_AGENCY, EntityType.INVOICE, "u-1", None, NOW) == {}


@pytest.mark.parametrize(
    "action, expected",
    [
        (WorkflowAction.APPROVE, AuditAction.APPROVE),
        (WorkflowAction.REJECT, AuditAction.REJECT),
        (WorkflowAction.SEND, AuditAction.SEND),
        (WorkflowAction.SUBMIT, AuditAction.UPDATE),
        (WorkflowAction.MARK_PAID, AuditAction.UPDATE),
    ],
)
def test_audit_action_vocabulary(action, expected):
    assert audit_action_for(action) is expected


def test_remittance_sent_state_hints_processing():
    remittance = next(d for d in MACHINE_DEFINITIONS if d.entity_type is EntityType.REMITTANCE)
    sent = next(s for s in remittance.states if s.name == "sent")
    assert sent.metadata["auto_transition"] == "processing"
