"""
Domain Layer - Authored Content Models

Defines the static structure of troubleshooting content: Problems and their
ordered Steps, together with the declarative rule lists (validation,
failure handling, branching) attached to each Step.
"""

from device_diagnostics.domain.models import (
    FailureAction,
    NextStepCondition,
    Problem,
    Step,
    StepActionType,
    ValidationRule,
)

__all__ = [
    "FailureAction",
    "NextStepCondition",
    "Problem",
    "Step",
    "StepActionType",
    "ValidationRule",
]
