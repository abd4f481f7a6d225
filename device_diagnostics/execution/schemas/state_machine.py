"""
Transition Types - FSM State Transition Definitions

Describes what happened to the session pointer after a submission.
Used by the engine to classify transitions and by callers to render them.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ...state.models import DiagnosticSession
from .verdicts import ControlAction, Verdict


class StateMachineTransition(str, Enum):
    """
    Strict State Machine terminology describing what happened to the pointer.
    Decouples callers from the verdict/control details.
    """

    ADVANCE = "ADVANCE"  # Passed, pointer moved to the next linear or branched step
    COMPLETE = "COMPLETE"  # Passed the last step, session succeeded
    RETRY = "RETRY"  # Failed, pointer remains on the current step
    SKIP = "SKIP"  # Failed, pointer moved on as if the step had passed
    RESTART = "RESTART"  # Failed, pointer reset to the first step
    BRANCH = "BRANCH"  # Failed, pointer moved to the failure action target
    ABORT = "ABORT"  # Failed, session terminated unsuccessfully


@dataclass
class StepOutcome:
    """
    Result of DiagnosticEngine.submit_action.

    session is a new object; the session passed in is never modified.
    """

    session: DiagnosticSession
    transition: StateMachineTransition
    verdict: Verdict
    control: Optional[ControlAction] = None

    @property
    def terminal(self) -> bool:
        return self.session.is_terminal
