"""
Service Layer Exceptions

Custom exceptions for the DiagnosticService and related orchestration logic.
"""


class SessionNotFound(Exception):
    """Raised when no session exists for the given session_id."""

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} not found")
        self.session_id = session_id


class SessionStillActive(Exception):
    """Raised when feedback is submitted before the session has finished."""

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} is still in progress")
        self.session_id = session_id


class SessionAlreadyExists(Exception):
    """Raised when a client starts a session under a session_id already in use."""

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} already exists")
        self.session_id = session_id
