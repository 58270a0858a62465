"""
StateTransitionService end-to-end tests.

Verifies:
- Successful transitions update the entity, append one history row and
  one audit row in the same commit
- Permission and state denials share one message and write nothing
- Guard failures write nothing
- Action stamps (approved_by, rejection_reason, sent_by, ...)
- Batch items are independent
- Storage failures roll every write back
"""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import func, select

from tests.conftest import OTHER_TENANT_ID, TENANT_ID
from workflow_kernel.db.engine import session_scope
from workflow_kernel.domain.audit import AuditAction
from workflow_kernel.domain.dtos import TransitionRequest
from workflow_kernel.domain.workflow import EntityType, WorkflowAction
from workflow_kernel.models.audit_log import AuditLog
from workflow_kernel.models.state_history import EntityStateHistory
from workflow_kernel.services.audit_log_service import AuditLogService
from workflow_kernel.services.permission_oracle import StaticPermissionOracle
from workflow_modules.invoice.orm import Invoice
from workflow_modules.payment.orm import Payment
from workflow_modules.payslip.orm import Payslip
from workflow_modules.remittance.orm import Remittance
from workflow_modules.timesheet.orm import Timesheet
from workflow_services.bootstrap import build_state_transition_service
from workflow_services.state_transition_service import (
    EXECUTION_FAILED,
    USER_NOT_FOUND,
    VALIDATION_FAILED,
)
from workflow_services.transition_validator import ENTITY_NOT_FOUND, TRANSITION_NOT_ALLOWED


def request(entity_type, entity_id, action, user_id, tenant_id=TENANT_ID, **kwargs):
    return TransitionRequest(
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        user_id=user_id,
        tenant_id=tenant_id,
        **kwargs,
    )


def count_rows(session_factory, model, entity_id):
    with session_scope(session_factory) as session:
        return session.scalar(
            select(func.count()).select_from(model).where(model.entity_id == entity_id)
        )


# =============================================================================
# Approve from for_approval
# =============================================================================


class TestApproveInvoice:
    def test_approver_moves_invoice_to_approved(self, service, users, entities, load):
        invoice_id = entities.invoice(state="for_approval", invoice_number="INV-0042")

        result = service.execute_transition(
            request("invoice", invoice_id, "approve", users.approver_id)
        )

        assert result.success, result.errors
        assert result.errors == ()
        assert result.entity["workflow_state"] == "approved"
        assert result.entity["status"] == "approved"

        stored = load(Invoice, invoice_id)
        assert stored["workflow_state"] == "approved"
        assert stored["approved_by"] == users.approver_id
        assert stored["approved_at"] is not None

    def test_history_row_records_actor_and_states(self, service, users, entities):
        invoice_id = entities.invoice(state="for_approval")
        result = service.execute_transition(
            request(EntityType.INVOICE, invoice_id, WorkflowAction.APPROVE, users.approver_id)
        )

        history = service.get_state_history("invoice", invoice_id, TENANT_ID)
        assert len(history) == 1
        row = history[0]
        assert (row.from_state, row.to_state, row.action) == ("for_approval", "approved", "approve")
        assert row.actor_id == users.approver_id
        assert row.actor_name == "Lee Park"
        assert row.actor_role == "approver"
        assert row.sequence == 1
        assert result.state_history.id == row.id

    def test_audit_row_describes_the_approval(self, service, users, entities):
        invoice_id = entities.invoice(state="for_approval", invoice_number="INV-0042")
        service.execute_transition(request("invoice", invoice_id, "approve", users.approver_id))

        trail = service.get_audit_trail("invoice", invoice_id, TENANT_ID)
        assert len(trail) == 1
        entry = trail[0]
        assert entry.action is AuditAction.APPROVE
        assert entry.description == "Lee Park approved invoice 'INV-0042'"
        assert entry.entity_name == "INV-0042"
        assert entry.user_role == "approver"
        assert entry.metadata["workflow_action"] == "approve"
        assert entry.metadata["from_state"] == "for_approval"
        assert entry.metadata["to_state"] == "approved"

    def test_audit_timestamp_comes_from_clock(self, service, users, entities, deterministic_clock):
        invoice_id = entities.invoice(state="for_approval")
        service.execute_transition(request("invoice", invoice_id, "approve", users.approver_id))
        entry = service.get_audit_trail("invoice", invoice_id, TENANT_ID)[0]
        stamp = entry.timestamp
        if stamp.tzinfo is None:
            stamp = stamp.replace(tzinfo=timezone.utc)
        assert stamp == deterministic_clock.now()

    def test_user_without_permission_is_denied(self, service, users, entities, load, session_factory):
        invoice_id = entities.invoice(state="for_approval")

        result = service.execute_transition(request("invoice", invoice_id, "approve", users.viewer_id))

        assert not result.success
        assert result.errors == (TRANSITION_NOT_ALLOWED,)
        assert result.entity is None
        assert load(Invoice, invoice_id)["workflow_state"] == "for_approval"
        assert count_rows(session_factory, EntityStateHistory, invoice_id) == 0
        assert count_rows(session_factory, AuditLog, invoice_id) == 0

    def test_wrong_state_uses_the_same_message(self, service, users, entities):
        invoice_id = entities.invoice(state="draft")
        result = service.execute_transition(request("invoice", invoice_id, "approve", users.admin_id))
        assert result.errors == (TRANSITION_NOT_ALLOWED,)

    def test_display_name_falls_back_to_email(self, service, users, entities):
        invoice_id = entities.invoice(state="for_approval")
        service.execute_transition(request("invoice", invoice_id, "approve", users.unnamed_id))
        history = service.get_state_history("invoice", invoice_id, TENANT_ID)
        assert history[0].actor_name == "ops@agency.test"


# =============================================================================
# Lookup failures
# =============================================================================


class TestNotFound:
    def test_missing_entity(self, service, users):
        result = service.execute_transition(request("invoice", str(uuid4()), "approve", users.admin_id))
        assert result.errors == (ENTITY_NOT_FOUND,)

    def test_entity_in_other_tenant_looks_missing(self, service, users, entities, load):
        invoice_id = entities.invoice(state="for_approval", tenant_id=OTHER_TENANT_ID)
        result = service.execute_transition(request("invoice", invoice_id, "approve", users.admin_id))
        assert result.errors == (ENTITY_NOT_FOUND,)
        assert load(Invoice, invoice_id)["workflow_state"] == "for_approval"

    def test_unknown_entity_type_is_reported_not_raised(self, service, users):
        result = service.execute_transition(request("purchase_order", "po-1", "approve", users.admin_id))
        assert not result.success
        assert result.errors == (VALIDATION_FAILED,)

    def test_unknown_user_with_permissions(self, session_factory, users, entities, deterministic_clock):
        oracle = StaticPermissionOracle({"ghost": ["invoice.approve.global"]})
        service = build_state_transition_service(
            session_factory, permission_oracle=oracle, clock=deterministic_clock
        )
        invoice_id = entities.invoice(state="for_approval")
        result = service.execute_transition(request("invoice", invoice_id, "approve", "ghost"))
        assert result.errors == (USER_NOT_FOUND,)
        assert count_rows(session_factory, EntityStateHistory, invoice_id) == 0


# =============================================================================
# Guards
# =============================================================================


class TestGuards:
    def test_zero_total_blocks_approval(self, service, users, entities, load, session_factory):
        invoice_id = entities.invoice(state="for_approval", amount=Decimal("0.00"))
        result = service.execute_transition(request("invoice", invoice_id, "approve", users.approver_id))

        assert result.errors == ("Invoice total must be greater than zero",)
        assert load(Invoice, invoice_id)["workflow_state"] == "for_approval"
        assert count_rows(session_factory, EntityStateHistory, invoice_id) == 0
        assert count_rows(session_factory, AuditLog, invoice_id) == 0

    def test_submit_needs_an_amount(self, service, users, entities):
        invoice_id = entities.invoice(state="draft", amount=None)
        result = service.execute_transition(request("invoice", invoice_id, "submit", users.contractor_id))
        assert result.errors == ("Invoice amount must be specified",)

    def test_empty_timesheet_reports_every_failed_guard(self, service, users, entities):
        timesheet_id = entities.timesheet(entry_hours=())
        result = service.execute_transition(
            request("timesheet", timesheet_id, "submit", users.contractor_id)
        )
        assert result.errors == (
            "Timesheet must have at least one entry",
            "Total hours must be specified",
        )

    def test_reject_without_reason(self, service, users, entities):
        invoice_id = entities.invoice(state="under_review")
        result = service.execute_transition(request("invoice", invoice_id, "reject", users.admin_id))
        assert result.errors == ("A reason is required to reject",)

    def test_reject_with_reason_stamps_it(self, service, users, entities, load):
        invoice_id = entities.invoice(state="under_review", invoice_number="INV-0007")
        result = service.execute_transition(
            request("invoice", invoice_id, "reject", users.admin_id, reason="Rate does not match contract")
        )
        assert result.success
        stored = load(Invoice, invoice_id)
        assert stored["workflow_state"] == "rejected"
        assert stored["rejection_reason"] == "Rate does not match contract"
        assert stored["rejected_by"] == users.admin_id

        history = service.get_state_history("invoice", invoice_id, TENANT_ID)
        assert history[0].reason == "Rate does not match contract"
        trail = service.get_audit_trail("invoice", invoice_id, TENANT_ID)
        assert trail[0].description == "Dana Reyes rejected invoice 'INV-0007'"

    def test_request_changes_records_note(self, service, users, entities, load):
        timesheet_id = entities.timesheet(state="submitted")
        result = service.execute_transition(
            request("timesheet", timesheet_id, "request_changes", users.admin_id, reason="Split Friday")
        )
        assert result.success
        assert load(Timesheet, timesheet_id)["changes_requested"] == "Split Friday"

    def test_partial_receipt_reads_request_metadata(self, service, users, entities):
        payment_id = entities.payment()
        result = service.execute_transition(
            request(
                "payment", payment_id, "mark_partially_received", users.admin_id,
                metadata={"amount_received": "500.00"},
            )
        )
        assert result.success, result.errors
        assert result.state_history.metadata["amount_received"] == "500.00"

    def test_partial_receipt_without_amount(self, service, users, entities):
        payment_id = entities.payment()
        result = service.execute_transition(
            request("payment", payment_id, "mark_partially_received", users.admin_id)
        )
        assert result.errors == ("Amount received must be specified",)

    def test_decimal_metadata_is_stored_as_text(self, service, users, entities):
        payment_id = entities.payment()
        result = service.execute_transition(
            request(
                "payment", payment_id, "mark_partially_received", users.admin_id,
                metadata={"amount_received": Decimal("500.00")},
            )
        )
        assert result.success, result.errors
        assert result.state_history.metadata["amount_received"] == "500.00"

        (stored,) = service.get_state_history("payment", payment_id, TENANT_ID)
        assert stored.metadata == {"amount_received": "500.00"}

    def test_datetime_metadata_is_stored_as_iso_text(
        self, service, users, entities, session_factory
    ):
        invoice_id = entities.invoice(state="for_approval")
        approved_on = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)
        result = service.execute_transition(
            request(
                "invoice", invoice_id, "approve", users.approver_id,
                metadata={"approved_on": approved_on, "batch": uuid4()},
            )
        )
        assert result.success, result.errors

        (stored,) = service.get_state_history("invoice", invoice_id, TENANT_ID)
        assert stored.metadata["approved_on"] == "2024-03-01T09:30:00+00:00"
        assert isinstance(stored.metadata["batch"], str)
        assert count_rows(session_factory, AuditLog, invoice_id) == 1


# =============================================================================
# Stamps per entity
# =============================================================================


class TestStamps:
    def test_send_payslip_stamps_sender(self, service, users, entities, load):
        payslip_id = entities.payslip(state="validated")
        result = service.execute_transition(request("payslip", payslip_id, "send", users.admin_id))
        assert result.success
        stored = load(Payslip, payslip_id)
        assert stored["sent_by"] == users.admin_id
        assert stored["sent_date"] is not None

    def test_send_remittance_stamps_sender(self, service, users, entities, load):
        remittance_id = entities.remittance(state="validated")
        service.execute_transition(request("remittance", remittance_id, "send", users.admin_id))
        stored = load(Remittance, remittance_id)
        assert stored["workflow_state"] == "sent"
        assert stored["sent_by"] == users.admin_id

    def test_send_invoice_stamps_date_only(self, service, users, entities, load):
        invoice_id = entities.invoice(state="approved")
        result = service.execute_transition(request("invoice", invoice_id, "send", users.admin_id))
        assert result.success
        stored = load(Invoice, invoice_id)
        assert stored["sent_date"] is not None
        assert "sent_by" not in stored
        trail = service.get_audit_trail("invoice", invoice_id, TENANT_ID)
        assert trail[0].action is AuditAction.SEND

    def test_validate_payslip(self, service, users, entities, load):
        payslip_id = entities.payslip()
        service.execute_transition(request("payslip", payslip_id, "validate", users.admin_id))
        stored = load(Payslip, payslip_id)
        assert stored["validated_by"] == users.admin_id
        trail = service.get_audit_trail("payslip", payslip_id, TENANT_ID)
        assert trail[0].action is AuditAction.UPDATE

    def test_payment_receive_then_confirm(self, service, users, entities, load):
        payment_id = entities.payment()
        service.execute_transition(request("payment", payment_id, "mark_received", users.admin_id))
        service.execute_transition(request("payment", payment_id, "confirm", users.admin_id))
        stored = load(Payment, payment_id)
        assert stored["workflow_state"] == "confirmed"
        assert stored["received_by"] == users.admin_id
        assert stored["confirmed_by"] == users.admin_id


# =============================================================================
# History ordering
# =============================================================================


def test_history_is_oldest_first(service, users, entities, deterministic_clock):
    timesheet_id = entities.timesheet()
    for action, user in (
        ("submit", users.contractor_id),
        ("review", users.admin_id),
        ("approve", users.admin_id),
    ):
        result = service.execute_transition(request("timesheet", timesheet_id, action, user))
        assert result.success, (action, result.errors)
        deterministic_clock.advance(60)

    history = service.get_state_history(EntityType.TIMESHEET, timesheet_id, TENANT_ID)
    assert [h.sequence for h in history] == [1, 2, 3]
    assert [(h.from_state, h.to_state) for h in history] == [
        ("draft", "submitted"),
        ("submitted", "under_review"),
        ("under_review", "approved"),
    ]
    assert history[0].transitioned_at < history[2].transitioned_at


def test_history_is_empty_for_untouched_entity(service, entities):
    assert service.get_state_history("invoice", entities.invoice(), TENANT_ID) == []


# =============================================================================
# Available actions
# =============================================================================


class TestAvailableActions:
    def test_admin_on_submitted_invoice(self, service, users, entities):
        invoice_id = entities.invoice(state="submitted")
        available = service.get_available_actions("invoice", invoice_id, users.admin_id, TENANT_ID)
        assert available.current_state == "submitted"
        assert available.actions == (
            WorkflowAction.REVIEW,
            WorkflowAction.APPROVE,
            WorkflowAction.REJECT,
            WorkflowAction.REQUEST_CHANGES,
        )

    def test_contractor_on_draft_invoice(self, service, users, entities):
        invoice_id = entities.invoice()
        available = service.get_available_actions("invoice", invoice_id, users.contractor_id, TENANT_ID)
        assert available.actions == (WorkflowAction.SUBMIT, WorkflowAction.CANCEL)

    def test_viewer_gets_nothing(self, service, users, entities):
        invoice_id = entities.invoice(state="submitted")
        available = service.get_available_actions("invoice", invoice_id, users.viewer_id, TENANT_ID)
        assert available.actions == ()
        assert available.current_state == "submitted"

    def test_missing_entity(self, service, users):
        available = service.get_available_actions("invoice", str(uuid4()), users.admin_id, TENANT_ID)
        assert available.actions == ()
        assert available.current_state == ""

    def test_listing_actions_writes_no_denial_record(
        self, service, users, entities, captured_logs
    ):
        invoice_id = entities.invoice(state="for_approval")
        available = service.get_available_actions("invoice", invoice_id, users.approver_id, TENANT_ID)
        assert available.current_state == "for_approval"
        assert WorkflowAction.APPROVE in available.actions

        messages = [r["message"] for r in captured_logs()]
        assert "transition_denied" not in messages
        assert "transition_validation_error" not in messages

    def test_unknown_entity_type_yields_nothing(self, service, users):
        available = service.get_available_actions("widget", str(uuid4()), users.admin_id, TENANT_ID)
        assert available.actions == ()
        assert available.current_state == ""

    def test_actions_are_unique(self, service, users, entities):
        invoice_id = entities.invoice(state="sent")
        available = service.get_available_actions("invoice", invoice_id, users.admin_id, TENANT_ID)
        assert len(available.actions) == len(set(available.actions))

    def test_can_perform_action(self, service, users, entities):
        invoice_id = entities.invoice(state="for_approval")
        assert service.can_perform_action("invoice", invoice_id, "approve", users.approver_id, TENANT_ID)
        assert not service.can_perform_action("invoice", invoice_id, "reject", users.approver_id, TENANT_ID)


# =============================================================================
# Batch
# =============================================================================


def test_batch_items_are_independent(service, users, entities, load):
    first = entities.invoice(state="for_approval")
    third = entities.invoice(state="for_approval")
    missing = str(uuid4())

    result = service.batch_transition(
        [
            request("invoice", first, "approve", users.approver_id),
            request("invoice", missing, "approve", users.approver_id),
            request("invoice", third, "approve", users.approver_id),
        ]
    )

    assert result.success is False
    assert [r.success for r in result.results] == [True, False, True]
    assert result.results[1].entity_id == missing
    assert result.results[1].errors == (ENTITY_NOT_FOUND,)
    assert load(Invoice, first)["workflow_state"] == "approved"
    assert load(Invoice, third)["workflow_state"] == "approved"


def test_batch_all_succeed(service, users, entities):
    ids = [entities.payslip() for _ in range(3)]
    result = service.batch_transition(
        request("payslip", payslip_id, "validate", users.admin_id) for payslip_id in ids
    )
    assert result.success is True
    assert all(r.entity_type == "payslip" for r in result.results)


def test_empty_batch_succeeds(service):
    result = service.batch_transition([])
    assert result.success is True
    assert result.results == ()


# =============================================================================
# Atomicity
# =============================================================================


class ExplodingAuditService(AuditLogService):
    """Writes the audit row, then fails before the commit."""

    def create_audit_log(self, session, entry):
        super().create_audit_log(session, entry)
        raise RuntimeError("audit store unavailable")


def test_failure_after_writes_rolls_everything_back(
    session_factory, users, entities, load, deterministic_clock
):
    service = build_state_transition_service(
        session_factory,
        clock=deterministic_clock,
        audit_service=ExplodingAuditService(deterministic_clock),
    )
    invoice_id = entities.invoice(state="for_approval")
    before = load(Invoice, invoice_id)

    result = service.execute_transition(request("invoice", invoice_id, "approve", users.approver_id))

    assert result.errors == (EXECUTION_FAILED,)
    assert load(Invoice, invoice_id) == before
    assert count_rows(session_factory, EntityStateHistory, invoice_id) == 0
    assert count_rows(session_factory, AuditLog, invoice_id) == 0


def test_execution_failure_is_logged_with_traceback(
    session_factory, users, entities, deterministic_clock, captured_logs
):
    service = build_state_transition_service(
        session_factory,
        clock=deterministic_clock,
        audit_service=ExplodingAuditService(deterministic_clock),
    )
    invoice_id = entities.invoice(state="for_approval")
    service.execute_transition(request("invoice", invoice_id, "approve", users.approver_id))

    errors = [r for r in captured_logs() if r["message"] == "transition_execution_error"]
    assert len(errors) == 1
    assert errors[0]["exc_type"] == "RuntimeError"
    assert errors[0]["entity_id"] == invoice_id
