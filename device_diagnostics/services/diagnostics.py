"""
Diagnostic Service

Use cases behind the HTTP layer: start a session, resume it, submit an
action, leave feedback. Each submission loads the session, runs the engine
and saves the result, one submission at a time per session.
"""

import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional

from ..domain.models import Step
from ..state.models import DiagnosticSession, UserFeedback
from ..repositories.catalog import StepCatalog
from ..repositories.session import SessionRepository
from ..execution.engine import DiagnosticEngine
from ..execution.schemas.state_machine import StateMachineTransition
from ..execution.schemas.verdicts import ControlAction, Verdict
from .exceptions import SessionAlreadyExists, SessionNotFound, SessionStillActive

logger = logging.getLogger(__name__)


@dataclass
class SessionView:
    """
    What callers get back: the session, the step it now points at and,
    after a submission, what happened.
    """
    session: DiagnosticSession
    current_step: Optional[Step] = None
    transition: Optional[StateMachineTransition] = None
    verdict: Optional[Verdict] = None
    control: Optional[ControlAction] = None


@dataclass
class _SessionLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


class DiagnosticService:
    def __init__(
        self,
        session_repository: SessionRepository,
        step_catalog: StepCatalog,
        engine: DiagnosticEngine,
    ):
        self.session_repo = session_repository
        self.catalog = step_catalog
        self.engine = engine

        # One writer per session; entries live only while someone holds or waits
        self._locks: Dict[str, _SessionLock] = {}
        self._locks_guard = threading.Lock()

    def start_session(
        self,
        device_id: str,
        problem_id: str,
        user_id: Optional[str] = None,
        session_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> SessionView:
        """Creates a session on the problem's first step and persists it."""
        session_id = session_id or str(uuid.uuid4())
        with self._lock_for(session_id):
            if self.session_repo.load(session_id) is not None:
                raise SessionAlreadyExists(session_id)

            session = self.engine.start_session(
                device_id=device_id,
                problem_id=problem_id,
                session_id=session_id,
                user_id=user_id,
                metadata=metadata,
            )
            self.session_repo.save(session)
        return self._view(session)

    def get_session(self, session_id: str) -> Optional[SessionView]:
        """Retrieves a session (for resuming)."""
        session = self.session_repo.load(session_id)
        if not session:
            return None
        return self._view(session)

    def submit_action(
        self, session_id: str, action: Optional[str], value: Any = None
    ) -> SessionView:
        """
        The Core Loop:
        1. Load Session
        2. Run the Engine (pure, works on a copy)
        3. Save Session
        4. Return the updated view

        Engine errors propagate before anything is saved.
        """
        with self._lock_for(session_id):
            session = self._load(session_id)

            outcome = self.engine.submit_action(session, action, value)

            self.session_repo.save(outcome.session)

        return self._view(
            outcome.session,
            transition=outcome.transition,
            verdict=outcome.verdict,
            control=outcome.control,
        )

    def submit_feedback(self, session_id: str, feedback: UserFeedback) -> SessionView:
        """Attaches user feedback to a finished session."""
        with self._lock_for(session_id):
            session = self._load(session_id)
            if not session.is_terminal:
                raise SessionStillActive(session_id)

            session.feedback = feedback
            self.session_repo.save(session)

        return self._view(session)

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def _load(self, session_id: str) -> DiagnosticSession:
        session = self.session_repo.load(session_id)
        if not session:
            raise SessionNotFound(session_id)
        return session

    @contextmanager
    def _lock_for(self, session_id: str) -> Iterator[None]:
        with self._locks_guard:
            entry = self._locks.setdefault(session_id, _SessionLock())
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._locks[session_id]

    def _view(self, session: DiagnosticSession, **kwargs) -> SessionView:
        current_step = None
        if session.current_step_id:
            current_step = self.catalog.get_step(
                session.device_id, session.problem_id, session.current_step_id
            )
        return SessionView(session=session, current_step=current_step, **kwargs)
