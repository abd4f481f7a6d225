"""
Execution Schemas - Value Types Exchanged Between Engine Components

Verdicts (rule evaluation), control actions (failure policy) and the
state machine transitions reported back to callers.
"""

from device_diagnostics.execution.schemas.verdicts import (
    ControlAction,
    ControlKind,
    Verdict,
)
from device_diagnostics.execution.schemas.state_machine import (
    StateMachineTransition,
    StepOutcome,
)

__all__ = [
    "ControlAction",
    "ControlKind",
    "Verdict",
    "StateMachineTransition",
    "StepOutcome",
]
