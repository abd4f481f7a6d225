"""
Verdicts and Control Actions

Results produced by the RuleEvaluator and the FailurePolicyResolver.
Both are immutable values; neither component touches the session.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ...domain.models import ValidationRule


@dataclass(frozen=True)
class Verdict:
    """
    Pass/fail result of validating a submission against a step.

    failed_rule is only set when a ValidationRule failed (not when the
    success condition or the permissive default rejected the submission).
    unresolved_rule is set when a custom rule named an unknown predicate.
    """
    passed: bool
    reason: str
    failed_rule: Optional[ValidationRule] = None
    unresolved_rule: Optional[str] = None


class ControlKind(str, Enum):
    """The decision taken after a failed verdict."""
    RETRY = "retry"
    SKIP = "skip"
    RESTART = "restart"
    BRANCH = "branch"
    ABORT = "abort"


@dataclass(frozen=True)
class ControlAction:
    kind: ControlKind
    target_step_id: Optional[str] = None
    message: Optional[str] = None
    # Error kind that forced this action (e.g. MaxRetriesExceeded)
    error: Optional[str] = None
