"""
Business-rule guards on workflow transitions.

Responsibility:
    ``Guard`` names a rule declared on a transition.  ``GuardExecutor`` holds
    the evaluation logic per guard name and is called by ``StateMachine``
    after the permission check has already passed.

Architecture position:
    Kernel > Domain.  Evaluators are pure callables over a
    ``TransitionContext``; they perform no I/O.

Failure modes:
    A guard with no registered evaluator fails closed.  An evaluator that
    raises fails closed and is logged as ``guard_evaluation_error``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from workflow_kernel.logging_config import get_logger

if TYPE_CHECKING:
    from workflow_kernel.domain.dtos import TransitionContext

logger = get_logger("domain.guards")

GuardEvaluator = Callable[["TransitionContext"], bool]


@dataclass(frozen=True)
class Guard:
    """A condition that must hold before a transition fires.

    Contract: frozen, descriptive only.  ``error_message`` is what the caller
    sees when the guard fails.
    Non-goals: does not evaluate the condition -- GuardExecutor does.
    """
    name: str
    description: str
    error_message: str


class GuardExecutor:
    """Evaluates transition guards against a TransitionContext."""

    def __init__(self, evaluators: dict[str, GuardEvaluator] | None = None) -> None:
        self._evaluators: dict[str, GuardEvaluator] = dict(evaluators or {})

    def register(self, guard_name: str, evaluator: GuardEvaluator) -> None:
        """Register an evaluator for a guard by name."""
        self._evaluators[guard_name] = evaluator

    def register_all(self, evaluators: dict[str, GuardEvaluator]) -> None:
        for name, evaluator in evaluators.items():
            self.register(name, evaluator)

    def has_evaluator(self, guard_name: str) -> bool:
        return guard_name in self._evaluators

    def evaluate(self, guard: Guard, context: TransitionContext) -> bool:
        """Evaluate a guard against context. Returns True if guard passes."""
        fn = self._evaluators.get(guard.name)
        if fn is None:
            logger.warning(
                "guard_no_evaluator",
                extra={"guard_name": guard.name},
            )
            return False
        try:
            return bool(fn(context))
        except Exception as e:  # noqa: BLE001
            logger.warning(
                "guard_evaluation_error",
                extra={"guard_name": guard.name, "error": str(e)},
            )
            return False
