"""
Engine - Session State Machine

The DiagnosticEngine is the deterministic state machine that owns the
DiagnosticSession aggregate. It delegates the decisions to three
small components and only applies their results:
-----------------------------------------------

1. RuleEvaluator: did the submission satisfy the current step?
2. StepTransitionSelector: on a pass, which step comes next?
3. FailurePolicyResolver: on a fail, retry, skip, restart, branch or abort?

States: ACTIVE -> COMPLETED (success=True) | FAILED (success=False).
Terminal states accept no transitions.

Every submission is one logical transaction: the engine works on a copy of
the session and either returns the fully updated copy or raises, leaving
the caller's session untouched.
"""

import logging
import random
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from ..domain.models import Step
from ..repositories.catalog import StepCatalog
from ..state.models import DiagnosticSession, StepAttempt, utcnow
from .exceptions import InvalidBranchTarget, SessionTerminated, StepNotFound
from .policy import DEFAULT_MAX_ATTEMPTS, FailurePolicyResolver
from .predicates import PredicateRegistry
from .rules import RuleEvaluator
from .schemas.state_machine import StateMachineTransition, StepOutcome
from .schemas.verdicts import ControlAction, ControlKind, Verdict
from .transitions import StepTransitionSelector

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class DiagnosticEngine:
    def __init__(
        self,
        catalog: StepCatalog,
        registry: Optional[PredicateRegistry] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        rng: Optional[random.Random] = None,
        clock: Clock = utcnow,
    ):
        self.catalog = catalog
        self.registry = registry or PredicateRegistry()
        self.clock = clock
        self.evaluator = RuleEvaluator(self.registry)
        self.policy = FailurePolicyResolver(max_attempts, self.registry)
        self.selector = StepTransitionSelector(catalog, rng, self.registry)

    def start_session(
        self,
        device_id: str,
        problem_id: str,
        session_id: str,
        user_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> DiagnosticSession:
        """
        Creates a session positioned on the problem's first step.
        Raises StepNotFound for a problem without steps.
        """
        first_step = self.catalog.get_first_step(device_id, problem_id)
        if first_step is None:
            raise StepNotFound(problem_id)

        now = self.clock()
        session = DiagnosticSession(
            session_id=session_id,
            device_id=device_id,
            problem_id=problem_id,
            user_id=user_id,
            current_step_id=first_step.id,
            total_steps=self.catalog.count_steps(device_id, problem_id),
            start_time=now,
            step_started_at=now,
            metadata=metadata or {},
        )
        logger.info(
            f"Session {session_id} started on {device_id}/{problem_id} "
            f"({session.total_steps} steps)"
        )
        return session

    def submit_action(
        self,
        session: DiagnosticSession,
        submitted_action: Optional[str],
        submitted_value: Any = None,
    ) -> StepOutcome:
        """
        Validates a submission against the current step and advances the session.

        Raises:
            SessionTerminated: the session already reached COMPLETED or FAILED.
            StepNotFound: the catalog does not know the current (or next) step.
        """
        # 1. Guard
        if session.is_terminal:
            raise SessionTerminated(session.session_id)

        # 2. Load Context
        step = self._get_step(session, session.current_step_id)
        working = session.model_copy(deep=True)
        now = self.clock()

        # 3. Evaluate
        verdict = self.evaluator.evaluate(step, submitted_action, submitted_value)
        if verdict.unresolved_rule:
            logger.warning(
                f"Step {step.id} uses unregistered custom rule "
                f"'{verdict.unresolved_rule}', failing closed"
            )

        # 4. Apply
        control = None
        error = None
        if verdict.passed:
            transition = self._advance(working, step, submitted_action, submitted_value, now)
        else:
            control = self.policy.resolve(
                step, verdict, working, submitted_action, submitted_value
            )
            transition, error = self._apply_control(
                working, step, control, submitted_action, submitted_value, now
            )
            error = error or control.error

        # 5. Record
        self._record_attempt(
            working, step, submitted_action, submitted_value, verdict, control, error, now
        )
        if transition != StateMachineTransition.RETRY:
            working.step_started_at = None if working.is_terminal else now

        logger.debug(
            f"Session {working.session_id}: step {step.id} "
            f"{'passed' if verdict.passed else 'failed'} -> {transition.value}"
        )
        return StepOutcome(
            session=working, transition=transition, verdict=verdict, control=control
        )

    # ==========================================================================
    # State Mutation (The Core Logic)
    # ==========================================================================

    def _advance(
        self,
        session: DiagnosticSession,
        step: Step,
        submitted_action: Optional[str],
        submitted_value: Any,
        now: datetime,
    ) -> StateMachineTransition:
        """
        Counts the step as done and moves to the selected next step.
        Returns ADVANCE, or COMPLETE when there is nothing left.
        """
        session.completed_steps = min(session.completed_steps + 1, session.total_steps)

        context = {
            "action": submitted_action,
            "value": submitted_value,
            "step": step.id,
            "step_number": step.step_number,
            "passed": True,
        }
        next_step_id = self.selector.select_next(step, context)

        if next_step_id is None:
            self._terminate(session, success=True, now=now)
            return StateMachineTransition.COMPLETE

        session.current_step_id = next_step_id
        return StateMachineTransition.ADVANCE

    def _apply_control(
        self,
        session: DiagnosticSession,
        step: Step,
        control: ControlAction,
        submitted_action: Optional[str],
        submitted_value: Any,
        now: datetime,
    ):
        """
        Applies a failure control action. Every failure is recorded in
        error_steps, whatever the action.
        Returns (transition, error kind or None).
        """
        session.error_steps.append(step.id)

        if control.kind == ControlKind.RETRY:
            return StateMachineTransition.RETRY, None

        if control.kind == ControlKind.SKIP:
            transition = self._advance(session, step, submitted_action, submitted_value, now)
            if transition == StateMachineTransition.COMPLETE:
                return transition, None
            return StateMachineTransition.SKIP, None

        if control.kind == ControlKind.RESTART:
            first_step = self.catalog.get_first_step(session.device_id, session.problem_id)
            if first_step is None:
                raise StepNotFound(session.problem_id)
            session.current_step_id = first_step.id
            session.completed_steps = 0
            return StateMachineTransition.RESTART, None

        if control.kind == ControlKind.BRANCH:
            target = control.target_step_id
            if target and self.catalog.get_step(session.device_id, session.problem_id, target):
                session.current_step_id = target
                return StateMachineTransition.BRANCH, None

            error = InvalidBranchTarget(step.id, target or "")
            logger.warning(f"{error} Aborting session {session.session_id}")
            self._terminate(session, success=False, now=now)
            return StateMachineTransition.ABORT, type(error).__name__

        self._terminate(session, success=False, now=now)
        return StateMachineTransition.ABORT, None

    def _terminate(self, session: DiagnosticSession, success: bool, now: datetime):
        session.success = success
        session.current_step_id = None
        session.end_time = max(now, session.start_time)
        session.duration = (session.end_time - session.start_time).total_seconds()
        logger.info(
            f"Session {session.session_id} {'completed' if success else 'failed'} "
            f"after {session.duration:.0f}s "
            f"({session.completed_steps}/{session.total_steps} steps)"
        )

    # ==========================================================================
    # Standard Helpers
    # ==========================================================================

    def _get_step(self, session: DiagnosticSession, step_id: Optional[str]) -> Step:
        step = None
        if step_id:
            step = self.catalog.get_step(session.device_id, session.problem_id, step_id)
        if step is None:
            raise StepNotFound(session.problem_id, step_id)
        return step

    def _record_attempt(
        self,
        session: DiagnosticSession,
        step: Step,
        submitted_action: Optional[str],
        submitted_value: Any,
        verdict: Verdict,
        control: Optional[ControlAction],
        error: Optional[str],
        now: datetime,
    ):
        started = session.step_started_at or now
        session.history.append(
            StepAttempt(
                step_id=step.id,
                step_number=step.step_number,
                action=submitted_action,
                value=submitted_value,
                passed=verdict.passed,
                reason=verdict.reason,
                control=control.kind.value if control else None,
                error=error,
                submitted_at=now,
                time_spent=max((now - started).total_seconds(), 0.0),
            )
        )
