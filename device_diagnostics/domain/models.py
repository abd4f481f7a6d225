"""
Domain Layer - Authored Content Models

This module defines the static structure of a device troubleshooting
procedure. Steps are authored by administrators and are immutable from the
engine's point of view: the engine reads them, it never mutates them.

Branching and failure handling are expressed as data (ordered rule lists),
interpreted by the execution layer rather than executed as code.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, get_args

"""
StepActionType classifies what the user is asked to do:
- button_press: Press a button on the remote or device
- navigation: Move through an on-screen menu
- wait: Wait for the device to reach some state
- check: Observe something and report back
- input: Type a value (code, PIN, network name)
- selection: Pick one of several options
- confirmation: Acknowledge an instruction
- custom: Anything else
"""
StepActionType = Literal[
    "button_press",
    "navigation",
    "wait",
    "check",
    "input",
    "selection",
    "confirmation",
    "custom",
]

ValidationRuleType = Literal["required", "pattern", "custom"]
FailureActionType = Literal["retry", "skip", "restart", "branch", "abort"]


@dataclass
class ValidationRule:
    """
    A single check applied to the value submitted for a step.

    Attributes:
        type: required | pattern | custom
        value: Regular expression (pattern) or predicate name (custom).
            Ignored for required.
        message: Reason reported to the user when the rule fails.
    """
    type: ValidationRuleType
    message: str = ""
    value: Optional[str] = None


@dataclass
class FailureAction:
    """
    What to do when a submission fails validation.

    Attributes:
        condition: Expression matched against the failure context
            (reason, attempts, step, action, value, rule).
        action: retry | skip | restart | branch | abort
        target: Step ID to jump to. Required for branch, ignored otherwise.
        message: Optional text shown to the user.
    """
    condition: str
    action: FailureActionType
    target: Optional[str] = None
    message: Optional[str] = None

    def __post_init__(self):
        if self.action == "branch" and not self.target:
            raise ValueError("FailureAction 'branch' requires a target step id.")
        if self.action != "branch":
            self.target = None


@dataclass
class NextStepCondition:
    """
    Conditional transition out of a step once it has passed.

    Entries without a probability are deterministic and win over
    probabilistic ones. Probabilities are weights, normalized across the
    matching candidates at evaluation time.
    """
    condition: str
    next_step_id: str
    probability: Optional[float] = None

    def __post_init__(self):
        if self.probability is not None and not 0.0 <= self.probability <= 1.0:
            raise ValueError(
                f"Probability must be within [0, 1], got {self.probability}."
            )

    @property
    def is_probabilistic(self) -> bool:
        return self.probability is not None


@dataclass
class Step:
    """
    One instruction/action unit within a Problem.

    Attributes:
        id: Unique identifier within the problem.
        problem_id: Owning problem.
        device_id: Device the problem belongs to.
        step_number: Positive integer defining the default sequential order.
        instruction: What the user is asked to do. Must not be empty.
        action_type: StepActionType
        required_action: Expected action token (e.g. the remote button).
            Available to conditions as `required_action`.
        validation_rules: Checked in order, first failure wins.
        success_condition: Expression evaluated after all rules pass.
        failure_actions: Ordered failure handling policy.
        next_step_conditions: Ordered branching policy. Empty means
            "the next step by step_number".
        estimated_time: Expected duration in seconds.
    """
    id: str
    problem_id: str
    device_id: str
    step_number: int
    instruction: str
    action_type: StepActionType
    required_action: Optional[str] = None
    validation_rules: List[ValidationRule] = field(default_factory=list)
    success_condition: Optional[str] = None
    failure_actions: List[FailureAction] = field(default_factory=list)
    next_step_conditions: List[NextStepCondition] = field(default_factory=list)
    estimated_time: int = 30

    # Presentation content, passed through untouched
    title: Optional[str] = None
    description: Optional[str] = None
    hint: Optional[str] = None
    warning_text: Optional[str] = None
    success_text: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.instruction or not self.instruction.strip():
            raise ValueError(f"Step '{self.id}' must have an instruction.")
        if self.action_type not in get_args(StepActionType):
            raise ValueError(
                f"Step '{self.id}' has unknown action_type '{self.action_type}'."
            )
        if self.step_number < 1:
            raise ValueError(f"Step '{self.id}' must have a positive step_number.")
        if self.estimated_time < 0:
            raise ValueError(f"Step '{self.id}' has a negative estimated_time.")


@dataclass
class Problem:
    """
    An authored troubleshooting procedure for a device.

    Attributes:
        id: Unique identifier.
        device_id: Device the procedure applies to.
        title: Human-readable title (e.g., "No picture, sound works").
        steps: Steps of the procedure. Kept sorted by step_number.
    """
    id: str
    device_id: str
    title: str
    steps: List[Step] = field(default_factory=list)

    def __post_init__(self):
        self.steps = sorted(self.steps, key=lambda s: s.step_number)
        numbers = [s.step_number for s in self.steps]
        if len(set(numbers)) != len(numbers):
            raise ValueError(
                f"Problem '{self.id}' has duplicate step numbers: {numbers}"
            )
        ids = [s.id for s in self.steps]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Problem '{self.id}' has duplicate step ids.")
