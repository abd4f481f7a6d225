"""
Device Diagnostics

Guided troubleshooting for hardware devices: authored multi-step problems,
step validation, failure handling and branching, with a durable session
record for resumption and analytics.
"""

from device_diagnostics.domain import (
    FailureAction,
    NextStepCondition,
    Problem,
    Step,
    StepActionType,
    ValidationRule,
)
from device_diagnostics.state import (
    DiagnosticSession,
    SessionStatus,
    StepAttempt,
    UserFeedback,
)
from device_diagnostics.execution.schemas import (
    ControlAction,
    ControlKind,
    StateMachineTransition,
    StepOutcome,
    Verdict,
)
from device_diagnostics.execution import (
    DiagnosticEngine,
    FailurePolicyResolver,
    PredicateRegistry,
    RuleEvaluator,
    StepTransitionSelector,
)

__all__ = [
    # Domain Layer
    "FailureAction",
    "NextStepCondition",
    "Problem",
    "Step",
    "StepActionType",
    "ValidationRule",
    # State Layer
    "DiagnosticSession",
    "SessionStatus",
    "StepAttempt",
    "UserFeedback",
    # Schemas
    "ControlAction",
    "ControlKind",
    "StateMachineTransition",
    "StepOutcome",
    "Verdict",
    # Execution Layer
    "DiagnosticEngine",
    "FailurePolicyResolver",
    "PredicateRegistry",
    "RuleEvaluator",
    "StepTransitionSelector",
]
