"""
State Layer - Runtime Data Models

This module defines the DiagnosticSession, the mutable aggregate advanced by
the DiagnosticEngine. It is the durable record of a user's progress through a
problem and must capture enough to resume a session and to analyse it later.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionStatus(str, Enum):
    """
    Derived from the session fields, never stored on its own.

    ACTIVE: A current step is set and the outcome is unresolved.
    COMPLETED: The last step was passed (success=True).
    FAILED: The session was aborted (success=False).
    """
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class StepAttempt(BaseModel):
    """
    One submission against one step, kept for analytics and auditing.
    """
    step_id: str
    step_number: int
    action: Optional[str] = None
    value: Any = None
    passed: bool
    reason: str = ""
    control: Optional[str] = None  # retry/skip/restart/branch/abort on failure
    error: Optional[str] = None
    submitted_at: datetime
    time_spent: float = 0.0  # seconds since the step was entered


class UserFeedback(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None
    helpful_steps: List[str] = Field(default_factory=list)
    difficult_steps: List[str] = Field(default_factory=list)
    suggestions: Optional[str] = None


class DiagnosticSession(BaseModel):
    """
    A single user's run through a Problem.

    Invariants:
        - completed_steps <= total_steps
        - success is None while current_step_id is set
        - once success is set the session accepts no further transitions
    """
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    session_id: str
    device_id: str
    problem_id: str
    user_id: Optional[str] = None

    current_step_id: Optional[str] = None
    completed_steps: int = 0
    total_steps: int = 0
    # Every failed attempt is recorded, duplicates included
    error_steps: List[str] = Field(default_factory=list)
    success: Optional[bool] = None

    start_time: datetime = Field(default_factory=utcnow)
    end_time: Optional[datetime] = None
    duration: Optional[float] = None  # seconds, set on termination
    step_started_at: Optional[datetime] = None

    history: List[StepAttempt] = Field(default_factory=list)
    feedback: Optional[UserFeedback] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    updated_at: Optional[datetime] = None

    @property
    def status(self) -> SessionStatus:
        if self.success is None:
            return SessionStatus.ACTIVE
        return SessionStatus.COMPLETED if self.success else SessionStatus.FAILED

    @property
    def is_terminal(self) -> bool:
        return self.success is not None

    def failures_on(self, step_id: str) -> int:
        return self.error_steps.count(step_id)
