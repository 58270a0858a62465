"""
Guards shared by more than one entity module (``workflow_modules._guards``).

Evaluators read only the TransitionContext: the entity snapshot, the
request reason and the request metadata.  They never touch the database.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

from workflow_kernel.domain.dtos import TransitionContext
from workflow_kernel.domain.guards import Guard


def _decimal(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def positive(value: Any) -> bool:
    amount = _decimal(value)
    return amount is not None and amount > 0


def _non_blank(text: str | None) -> bool:
    return bool(text and text.strip())


REASON_PROVIDED = Guard(
    name="reason_provided",
    description="Rejection carries a reason",
    error_message="A reason is required to reject",
)

CHANGES_NOTE_PROVIDED = Guard(
    name="changes_note_provided",
    description="Change request says what to change",
    error_message="Describe the changes requested",
)

AMOUNT_RECEIVED_SPECIFIED = Guard(
    name="amount_received_specified",
    description="Received amount is recorded on the request or the entity",
    error_message="Amount received must be specified",
)


def _reason_provided(ctx: TransitionContext) -> bool:
    return _non_blank(ctx.reason)


def _amount_received_specified(ctx: TransitionContext) -> bool:
    amount = ctx.metadata.get("amount_received")
    if amount is None:
        amount = ctx.entity.get("amount_received")
    return positive(amount)


SHARED_GUARD_EVALUATORS = {
    REASON_PROVIDED.name: _reason_provided,
    CHANGES_NOTE_PROVIDED.name: _reason_provided,
    AMOUNT_RECEIVED_SPECIFIED.name: _amount_received_specified,
}
