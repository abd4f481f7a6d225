"""
Step Transition Selector.

Picks the step that follows a passed (or skipped) step. Authored
next-step conditions are matched in order: deterministic entries first,
then a weighted draw among matching probabilistic entries, and finally the
next step by step_number.
"""

import logging
import random
from typing import Any, List, Mapping, Optional

from ..domain.models import NextStepCondition, Step
from ..repositories.catalog import StepCatalog
from .conditions import evaluate_condition
from .exceptions import StepNotFound
from .predicates import PredicateRegistry

logger = logging.getLogger(__name__)


class StepTransitionSelector:
    def __init__(
        self,
        catalog: StepCatalog,
        rng: Optional[random.Random] = None,
        registry: Optional[PredicateRegistry] = None,
    ):
        self.catalog = catalog
        self.rng = rng or random.Random()
        self.registry = registry or PredicateRegistry()

    def select_next(self, step: Step, context: Mapping[str, Any]) -> Optional[str]:
        """
        Returns the next step id, or None when the problem is finished.

        Raises StepNotFound when an authored condition points at a step
        that is not part of the problem.
        """
        next_step_id = self._match_conditions(step.next_step_conditions, context)

        if next_step_id is not None:
            if self.catalog.get_step(step.device_id, step.problem_id, next_step_id) is None:
                raise StepNotFound(step.problem_id, next_step_id)
            return next_step_id

        following = self.catalog.get_next_step(
            step.device_id, step.problem_id, step.step_number
        )
        return following.id if following else None

    def _match_conditions(
        self, conditions: List[NextStepCondition], context: Mapping[str, Any]
    ) -> Optional[str]:
        weighted: List[NextStepCondition] = []

        for candidate in conditions:
            if not evaluate_condition(candidate.condition, context, self.registry):
                continue
            if not candidate.is_probabilistic:
                # First deterministic match wins outright
                return candidate.next_step_id
            weighted.append(candidate)

        if weighted:
            return self._draw(weighted)
        return None

    def _draw(self, candidates: List[NextStepCondition]) -> Optional[str]:
        """Weighted choice, weights normalized across the candidates."""
        total = sum(c.probability for c in candidates)
        if total <= 0:
            logger.debug("All matching branches have zero weight, falling back")
            return None

        threshold = self.rng.random() * total
        cumulative = 0.0
        for candidate in candidates:
            cumulative += candidate.probability
            if threshold < cumulative:
                return candidate.next_step_id
        # Float rounding can leave the threshold on the upper edge
        return candidates[-1].next_step_id
