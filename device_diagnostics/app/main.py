import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Depends, Request, status
from fastapi.responses import JSONResponse

from ..config import settings
from ..infrastructure.database.connection import init_db
from ..execution.exceptions import DiagnosticError, SessionTerminated, StepNotFound
from ..services.diagnostics import DiagnosticService, SessionView
from ..services.exceptions import SessionAlreadyExists, SessionNotFound, SessionStillActive
from ..state.models import UserFeedback
from .dependencies import get_diagnostic_service
from .schemas import (
    ActionRequest,
    CreateSessionRequest,
    ErrorResponse,
    FeedbackRequest,
    LastActionRead,
    SessionRead,
    StepRead,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.STORAGE_BACKEND == "database":
        init_db()
    yield


app = FastAPI(title="Device Diagnostics", lifespan=lifespan)

# --- Error Mapping ---

_STATUS_BY_ERROR = {
    SessionNotFound: status.HTTP_404_NOT_FOUND,
    SessionAlreadyExists: status.HTTP_409_CONFLICT,
    SessionTerminated: status.HTTP_409_CONFLICT,
    SessionStillActive: status.HTTP_409_CONFLICT,
    StepNotFound: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _error_response(error: Exception) -> JSONResponse:
    status_code = next(
        (code for kind, code in _STATUS_BY_ERROR.items() if isinstance(error, kind)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    body = ErrorResponse(error=str(error), error_type=type(error).__name__)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))


@app.exception_handler(DiagnosticError)
async def diagnostic_error_handler(request: Request, error: DiagnosticError):
    if isinstance(error, StepNotFound):
        logger.error(f"Catalog inconsistency on {request.method} {request.url.path}: {error}")
    return _error_response(error)


@app.exception_handler(SessionNotFound)
@app.exception_handler(SessionAlreadyExists)
@app.exception_handler(SessionStillActive)
async def session_error_handler(request: Request, error: Exception):
    return _error_response(error)


# --- Endpoints ---

@app.post(
    "/sessions",
    response_model=SessionRead,
    status_code=status.HTTP_201_CREATED
)
def create_session(
    request: CreateSessionRequest,
    service: DiagnosticService = Depends(get_diagnostic_service)
):
    """Starts a session on the problem's first step."""
    try:
        view = service.start_session(
            device_id=request.device_id,
            problem_id=request.problem_id,
            user_id=request.user_id,
            session_id=request.session_id,
            metadata=request.metadata,
        )
    except StepNotFound:
        raise HTTPException(status_code=404, detail="Problem not found")
    return _to_session_read(view)


@app.get("/sessions/{session_id}", response_model=SessionRead)
def get_session(
    session_id: str,
    service: DiagnosticService = Depends(get_diagnostic_service)
):
    """Retrieves the session resource (for resuming)."""
    view = service.get_session(session_id)
    if not view:
        raise HTTPException(status_code=404, detail="Session not found")
    return _to_session_read(view)


@app.post("/sessions/{session_id}/actions", response_model=SessionRead)
def submit_action(
    session_id: str,
    request: ActionRequest,
    service: DiagnosticService = Depends(get_diagnostic_service)
):
    view = service.submit_action(session_id, request.action, request.value)
    return _to_session_read(view)


@app.post("/sessions/{session_id}/feedback", response_model=SessionRead)
def submit_feedback(
    session_id: str,
    request: FeedbackRequest,
    service: DiagnosticService = Depends(get_diagnostic_service)
):
    feedback = UserFeedback(**request.model_dump())
    view = service.submit_feedback(session_id, feedback)
    return _to_session_read(view)


# --- Mapping: SessionView (Service) -> SessionRead (API) ---

def _to_session_read(view: SessionView) -> SessionRead:
    session = view.session
    step = view.current_step

    last_action = None
    if view.transition is not None and view.verdict is not None:
        last_action = LastActionRead(
            transition=view.transition.value,
            passed=view.verdict.passed,
            reason=view.verdict.reason,
            control=view.control.kind.value if view.control else None,
            message=view.control.message if view.control else None,
        )

    return SessionRead(
        id=session.id,
        session_id=session.session_id,
        device_id=session.device_id,
        problem_id=session.problem_id,
        user_id=session.user_id,
        status=session.status.value,
        current_step_id=session.current_step_id,
        current_step=StepRead(
            id=step.id,
            step_number=step.step_number,
            title=step.title,
            instruction=step.instruction,
            action_type=step.action_type,
            hint=step.hint,
            warning_text=step.warning_text,
            estimated_time=step.estimated_time,
        ) if step else None,
        completed_steps=session.completed_steps,
        total_steps=session.total_steps,
        error_steps=session.error_steps,
        success=session.success,
        start_time=session.start_time,
        end_time=session.end_time,
        duration=session.duration,
        last_action=last_action,
    )
