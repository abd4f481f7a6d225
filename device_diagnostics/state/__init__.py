"""
State Layer - Runtime Data Models

Defines the runtime record of a user's run through a problem: the
DiagnosticSession aggregate, its attempt history and the user's feedback.
"""

from device_diagnostics.state.models import (
    DiagnosticSession,
    SessionStatus,
    StepAttempt,
    UserFeedback,
)

__all__ = [
    "DiagnosticSession",
    "SessionStatus",
    "StepAttempt",
    "UserFeedback",
]
