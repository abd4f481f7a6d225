"""
Execution Layer - Diagnostic Step Execution Model

Defines the DiagnosticEngine (session state machine) and the components it
delegates to: RuleEvaluator, FailurePolicyResolver and StepTransitionSelector.
"""

from device_diagnostics.execution.engine import DiagnosticEngine
from device_diagnostics.execution.policy import FailurePolicyResolver
from device_diagnostics.execution.predicates import PredicateRegistry
from device_diagnostics.execution.rules import RuleEvaluator
from device_diagnostics.execution.transitions import StepTransitionSelector


__all__ = [
    "DiagnosticEngine",
    "FailurePolicyResolver",
    "PredicateRegistry",
    "RuleEvaluator",
    "StepTransitionSelector",
]
