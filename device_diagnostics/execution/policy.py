"""
Failure Policy Resolver.

Decides what happens after a failed verdict: stay on the step, move on,
start over, jump elsewhere or give up. The decision is driven by the step's
authored failure actions, with a capped retry as the fallback.
"""

import logging
from typing import Any, Optional

from ..domain.models import FailureAction, Step
from ..state.models import DiagnosticSession
from .conditions import evaluate_condition
from .exceptions import MaxRetriesExceeded
from .predicates import PredicateRegistry
from .schemas.verdicts import ControlAction, ControlKind, Verdict

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3


class FailurePolicyResolver:
    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        registry: Optional[PredicateRegistry] = None,
    ):
        self.max_attempts = max_attempts
        self.registry = registry or PredicateRegistry()

    def resolve(
        self,
        step: Step,
        verdict: Verdict,
        session: DiagnosticSession,
        submitted_action: Optional[str] = None,
        submitted_value: Any = None,
    ) -> ControlAction:
        """
        Picks the control action for a failed submission.

        `session` is the state before this failure is recorded, so the
        attempt count seen by conditions includes the current failure.
        The first failure action whose condition matches wins; without a
        match the step is retried. Retries are capped at max_attempts and
        abort once the budget is spent, authored or not.
        """
        attempts = session.failures_on(step.id) + 1
        context = {
            "reason": verdict.reason,
            "attempts": attempts,
            "step": step.id,
            "action": submitted_action,
            "value": submitted_value,
            "rule": verdict.failed_rule.type if verdict.failed_rule else None,
        }

        matched = self._match(step.failure_actions, context)
        if matched is None:
            control = ControlAction(kind=ControlKind.RETRY)
        else:
            control = ControlAction(
                kind=ControlKind(matched.action),
                target_step_id=matched.target,
                message=matched.message,
            )

        if control.kind == ControlKind.RETRY:
            try:
                self._check_retry_budget(step, attempts)
            except MaxRetriesExceeded as e:
                logger.info(str(e))
                return ControlAction(
                    kind=ControlKind.ABORT,
                    message=control.message,
                    error=type(e).__name__,
                )

        return control

    def _match(self, actions, context) -> Optional[FailureAction]:
        for failure_action in actions:
            if evaluate_condition(failure_action.condition, context, self.registry):
                return failure_action
        return None

    def _check_retry_budget(self, step: Step, attempts: int):
        if attempts > self.max_attempts:
            raise MaxRetriesExceeded(step.id, attempts)
