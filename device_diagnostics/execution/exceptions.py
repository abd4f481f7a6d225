"""
Execution Layer Exceptions

Error kinds raised by the DiagnosticEngine. Data-integrity errors propagate
to the caller with the session left unmodified. Policy outcomes (retry, skip,
restart, abort) are normal control flow and never raised.
"""


class DiagnosticError(Exception):
    """Base class for all engine errors."""
    pass


class SessionTerminated(DiagnosticError):
    """Raised when an action is submitted to a completed or failed session."""

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} has already terminated.")
        self.session_id = session_id


class StepNotFound(DiagnosticError):
    """Raised when the Step Catalog has no step the session refers to."""

    def __init__(self, problem_id: str, step_id: str = None):
        if step_id:
            message = f"Step '{step_id}' not found in problem '{problem_id}'."
        else:
            message = f"Problem '{problem_id}' has no steps."
        super().__init__(message)
        self.problem_id = problem_id
        self.step_id = step_id


class InvalidBranchTarget(DiagnosticError):
    """
    An authored failure action branches to a step that does not exist.
    Recorded on the session and converted into an abort.
    """

    def __init__(self, step_id: str, target: str):
        super().__init__(f"Step '{step_id}' branches to unknown step '{target}'.")
        self.step_id = step_id
        self.target = target


class UnresolvedCustomRule(DiagnosticError):
    """
    A custom rule names a predicate missing from the registry.
    Never raised out of the evaluator: the rule fails closed instead.
    """

    def __init__(self, name: str):
        super().__init__(f"No predicate registered under '{name}'.")
        self.name = name


class MaxRetriesExceeded(DiagnosticError):
    """Internal signal: the retry budget of a step is spent. Becomes an abort."""

    def __init__(self, step_id: str, attempts: int):
        super().__init__(
            f"Step '{step_id}' failed {attempts} times, retry budget exhausted."
        )
        self.step_id = step_id
        self.attempts = attempts
