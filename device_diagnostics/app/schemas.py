"""
API Layer - Request/Response Schemas

Pydantic models for API request and response validation.
The wire format is camelCase; Python attributes stay snake_case.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateSessionRequest(APIModel):
    device_id: str = Field(..., min_length=1)
    problem_id: str = Field(..., min_length=1)
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ActionRequest(APIModel):
    action: Optional[str] = None
    value: Any = None


class FeedbackRequest(APIModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None
    helpful_steps: List[str] = Field(default_factory=list)
    difficult_steps: List[str] = Field(default_factory=list)
    suggestions: Optional[str] = None


class StepRead(APIModel):
    id: str
    step_number: int
    title: Optional[str] = None
    instruction: str
    action_type: str
    hint: Optional[str] = None
    warning_text: Optional[str] = None
    estimated_time: int


class LastActionRead(APIModel):
    """What the last submission did."""
    transition: str
    passed: bool
    reason: str
    control: Optional[str] = None
    message: Optional[str] = None


class SessionRead(APIModel):
    id: str
    session_id: str
    device_id: str
    problem_id: str
    user_id: Optional[str] = None
    status: str
    current_step_id: Optional[str] = None
    current_step: Optional[StepRead] = None
    completed_steps: int
    total_steps: int
    error_steps: List[str]
    success: Optional[bool] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: Optional[float] = None
    last_action: Optional[LastActionRead] = None


class ErrorResponse(APIModel):
    error: str
    error_type: str
