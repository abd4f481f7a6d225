from abc import ABC, abstractmethod
from typing import Dict, Optional
from datetime import datetime, timezone

from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from ..state.models import DiagnosticSession
from ..infrastructure.database.tables import SessionDBModel
from ..infrastructure.database.connection import engine as default_engine


class SessionRepository(ABC):
    """
    Storage contract for DiagnosticSession aggregates, keyed by session_id.
    The service talks to this interface only.

    Sessions are never deleted here: finished sessions are kept for analytics.
    """

    @abstractmethod
    def load(self, session_id: str) -> Optional[DiagnosticSession]:
        """Retrieves a session by its client-facing session_id."""
        pass

    @abstractmethod
    def save(self, session: DiagnosticSession):
        """Persists the whole session atomically (insert or update)."""
        pass


class InMemorySessionRepository(SessionRepository):
    """
    Dict-backed store for local runs and tests.
    Holds copies, so a caller mutating its session does not change what is stored.
    """

    def __init__(self):
        self._store: Dict[str, DiagnosticSession] = {}

    def load(self, session_id: str) -> Optional[DiagnosticSession]:
        session = self._store.get(session_id)
        return session.model_copy(deep=True) if session else None

    def save(self, session: DiagnosticSession):
        stored = session.model_copy(deep=True)
        stored.updated_at = datetime.now(timezone.utc)
        self._store[session.session_id] = stored
        session.updated_at = stored.updated_at

    def __len__(self) -> int:
        return len(self._store)


class SQLSessionRepository(SessionRepository):
    """
    SQL + JSON(B) storage for session state.
    """

    def __init__(self, engine: Engine = default_engine):
        self.engine = engine

    def load(self, session_id: str) -> Optional[DiagnosticSession]:
        with Session(self.engine) as db:
            statement = select(SessionDBModel).where(
                SessionDBModel.session_id == session_id
            )
            result = db.exec(statement).first()

            if not result:
                return None

            # Deserialize JSON back into Pydantic State Model
            session = DiagnosticSession.model_validate(result.state)

            # updated_at lives in its own column, not in the JSON state
            session.updated_at = result.updated_at

            return session

    def save(self, session: DiagnosticSession):
        now = datetime.now(timezone.utc)
        state = session.model_dump(mode="json", exclude={"updated_at"})

        with Session(self.engine) as db:
            statement = select(SessionDBModel).where(
                SessionDBModel.session_id == session.session_id
            )
            result = db.exec(statement).first()

            if result:
                result.state = state
                result.success = session.success
                result.updated_at = now
                db.add(result)
            else:
                db.add(
                    SessionDBModel(
                        session_id=session.session_id,
                        device_id=session.device_id,
                        problem_id=session.problem_id,
                        success=session.success,
                        state=state,
                        created_at=now,
                        updated_at=now,
                    )
                )
            db.commit()

        session.updated_at = now
