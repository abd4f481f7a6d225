"""
Rule Evaluator.

Checks a submitted action/value against a step's validation rules and
success condition. Pure: the only outside input is the predicate registry.
"""

import logging
import re
from typing import Any, Optional

from ..domain.models import Step, ValidationRule
from .conditions import evaluate_condition
from .exceptions import UnresolvedCustomRule
from .predicates import PredicateRegistry
from .schemas.verdicts import Verdict

logger = logging.getLogger(__name__)

SUCCESS_CONDITION_NOT_MET = "success condition not met"
NO_ACTION_SUBMITTED = "no action submitted"
PASSED = "passed"


class RuleEvaluator:
    def __init__(self, registry: Optional[PredicateRegistry] = None):
        self.registry = registry or PredicateRegistry()

    def evaluate(
        self, step: Step, submitted_action: Optional[str], submitted_value: Any = None
    ) -> Verdict:
        """
        Validates a submission. Rules run in list order and the first
        failing rule is reported. If all rules pass, the success condition
        (when present) decides.

        A step with neither rules nor a success condition accepts any
        non-empty action.
        """
        context = {
            "action": submitted_action,
            "value": submitted_value,
            "step": step.id,
            "required_action": step.required_action,
        }

        if not step.validation_rules and not step.success_condition:
            if _is_empty(submitted_action):
                return Verdict(passed=False, reason=NO_ACTION_SUBMITTED)
            return Verdict(passed=True, reason=PASSED)

        for rule in step.validation_rules:
            verdict = self._check_rule(rule, context)
            if verdict is not None:
                logger.debug(f"Step {step.id} failed {rule.type} rule: {verdict.reason}")
                return verdict

        if step.success_condition:
            if not evaluate_condition(step.success_condition, context, self.registry):
                return Verdict(passed=False, reason=SUCCESS_CONDITION_NOT_MET)

        return Verdict(passed=True, reason=PASSED)

    def _check_rule(self, rule: ValidationRule, context: dict) -> Optional[Verdict]:
        """Returns a failing Verdict, or None when the rule passes."""
        value = context["value"]

        if rule.type == "required":
            if _is_empty(value):
                return Verdict(False, rule.message or "a value is required", rule)
            return None

        if rule.type == "pattern":
            if value is None or not rule.value:
                return Verdict(False, rule.message or "value does not match", rule)
            try:
                matched = re.search(rule.value, str(value)) is not None
            except re.error as e:
                logger.warning(f"Invalid validation pattern '{rule.value}': {e}")
                matched = False
            if not matched:
                return Verdict(False, rule.message or "value does not match", rule)
            return None

        if rule.type == "custom":
            name = rule.value or ""
            result = self.registry.call(name, context)
            if result is None:
                # Fail closed
                error = UnresolvedCustomRule(name)
                return Verdict(False, rule.message or str(error), rule, unresolved_rule=name)
            if not result:
                return Verdict(False, rule.message or f"custom check '{name}' failed", rule)
            return None

        # Unknown rule types never pass
        return Verdict(False, rule.message or f"unknown rule type '{rule.type}'", rule)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False
