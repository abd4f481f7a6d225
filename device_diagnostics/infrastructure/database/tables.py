"""
Tables for authored steps and session state.

Rows hold the Step or DiagnosticSession as a JSON document plus a few
indexed columns for lookups. The DBModel suffix keeps them apart from
the domain classes.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests and local dev)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StepDBModel(SQLModel, table=True):
    """
    Persistence model for authored Steps.
    Maps 1-to-1 with the 'diagnostic_steps' table.
    """

    __tablename__ = "diagnostic_steps"

    step_id: str = Field(primary_key=True)
    problem_id: str = Field(index=True)
    device_id: str = Field(index=True)
    step_number: int
    is_active: bool = Field(default=True)

    # The entire Step definition (rules, failure actions, branching) as JSON.
    step_data: Dict[str, Any] = Field(sa_column=Column(JSONType, nullable=False))

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class SessionDBModel(SQLModel, table=True):
    """
    Persistence model for Diagnostic Sessions.
    Maps 1-to-1 with the 'diagnostic_sessions' table.
    """

    __tablename__ = "diagnostic_sessions"

    session_id: str = Field(primary_key=True, index=True)
    device_id: str = Field(index=True)
    problem_id: str = Field(index=True)

    # Denormalized from the state for analytics queries
    success: Optional[bool] = Field(default=None)

    # The entire DiagnosticSession (progress, history, feedback) as JSON.
    state: Dict[str, Any] = Field(sa_column=Column(JSONType, nullable=False))

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
