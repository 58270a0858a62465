"""
Typed Exception Hierarchy for the Workflow Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the transition engine must be able to tell a configuration bug
from a lost race from a missing row without parsing message strings.

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example - WRONG way to handle errors:
    try:
        executor.execute(request, validation, actor)
    except Exception as e:
        if "modified" in str(e):  # FRAGILE - message might change
            retry()

Example - RIGHT way:
    try:
        executor.execute(request, validation, actor)
    except OptimisticLockError as e:
        log.info(f"{e.entity_type} {e.entity_id} moved on; reloading")

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    WorkflowKernelError (base)
    |
    +-- ConfigurationError
    |   +-- UnknownEntityTypeError
    |   +-- AmbiguousTransitionError
    |   +-- UnknownStateError
    |   +-- UnknownStampFieldError
    |
    +-- LookupFailedError
    |   +-- EntityNotFoundError
    |   +-- UserNotFoundError
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Configuration   | UNKNOWN_ENTITY_TYPE         | Registry has no machine for the type
                | AMBIGUOUS_TRANSITION        | Two transitions share (from_state, action)
                | UNKNOWN_STATE               | Transition or initial state not declared
                | UNKNOWN_STAMP_FIELD         | Stamped field has no column on the model
----------------|-----------------------------|-----------------------------------------
Lookup          | ENTITY_NOT_FOUND            | No entity for (id, tenant_id)
                | USER_NOT_FOUND              | Acting user has no directory record
----------------|-----------------------------|-----------------------------------------
Concurrency     | OPTIMISTIC_LOCK_CONFLICT    | workflow_state changed under the caller
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | UPDATE/DELETE of history or audit rows

===============================================================================
PROPAGATION
===============================================================================

Validation, permission and guard failures are never raised; they are
returned as data by the services.  The exceptions below cross the
executor boundary and are converted by StateTransitionService into the
uniform ``{success: False, errors: [...]}`` shape.
"""


class WorkflowKernelError(Exception):
    """
    Base exception for all workflow kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "WORKFLOW_KERNEL_ERROR"


# Configuration exceptions (programming errors, never retried)


class ConfigurationError(WorkflowKernelError):
    """Static workflow configuration is invalid or incomplete."""

    code: str = "CONFIGURATION_ERROR"


class UnknownEntityTypeError(ConfigurationError):
    """No state machine is registered for the entity type."""

    code: str = "UNKNOWN_ENTITY_TYPE"

    def __init__(self, entity_type: str):
        self.entity_type = entity_type
        super().__init__(f"No state machine registered for entity type: {entity_type}")


class AmbiguousTransitionError(ConfigurationError):
    """Two transitions leave the same state via the same action."""

    code: str = "AMBIGUOUS_TRANSITION"

    def __init__(self, entity_type: str, from_state: str, action: str):
        self.entity_type = entity_type
        self.from_state = from_state
        self.action = action
        super().__init__(
            f"Ambiguous transition in {entity_type} machine: "
            f"more than one transition from '{from_state}' via '{action}'"
        )


class UnknownStateError(ConfigurationError):
    """A state referenced by the machine is not declared."""

    code: str = "UNKNOWN_STATE"

    def __init__(self, entity_type: str, state: str):
        self.entity_type = entity_type
        self.state = state
        super().__init__(f"State '{state}' is not declared in the {entity_type} machine")


class UnknownStampFieldError(ConfigurationError):
    """A stamped field has no column on the entity model."""

    code: str = "UNKNOWN_STAMP_FIELD"

    def __init__(self, model_name: str, fields: list[str]):
        self.model_name = model_name
        self.fields = fields
        super().__init__(
            f"{model_name} has no column(s) for stamped field(s): {', '.join(fields)}"
        )


# Lookup exceptions


class LookupFailedError(WorkflowKernelError):
    """Base exception for missing records."""

    code: str = "LOOKUP_FAILED"


class EntityNotFoundError(LookupFailedError):
    """
    Entity does not exist for the given (id, tenant_id).

    The message never says whether the id exists under another tenant.
    """

    code: str = "ENTITY_NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} not found: {entity_id}")


class UserNotFoundError(LookupFailedError):
    """Acting user could not be resolved for audit attribution."""

    code: str = "USER_NOT_FOUND"

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


# Concurrency exceptions


class ConcurrencyError(WorkflowKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Entity state changed between validation and the guarded update."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str, expected_state: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected_state = expected_state
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            f"expected state '{expected_state}' but entity was modified "
            "by another transaction"
        )


# Immutability exceptions


class ImmutabilityError(WorkflowKernelError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempted to modify or delete an append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify immutable {entity_type} {entity_id}: {reason}"
        )
