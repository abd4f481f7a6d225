"""
Predicate Registry.

Custom validation rules and custom conditions refer to predicates by name.
The registry maps those names to callables so authored content never carries
executable code.
"""

import logging
from typing import Any, Callable, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

Predicate = Callable[[Mapping[str, Any]], bool]


class PredicateRegistry:
    def __init__(self, predicates: Optional[Dict[str, Predicate]] = None):
        self._predicates: Dict[str, Predicate] = dict(predicates or {})

    def register(self, name: str, predicate: Optional[Predicate] = None):
        """
        Registers a predicate. Usable directly or as a decorator:

            @registry.register("is_hdmi_input")
            def _(ctx): ...
        """
        if predicate is None:
            def decorator(fn: Predicate) -> Predicate:
                self._predicates[name] = fn
                return fn
            return decorator

        self._predicates[name] = predicate
        return predicate

    def lookup(self, name: str) -> Optional[Predicate]:
        return self._predicates.get(name)

    def call(self, name: str, context: Mapping[str, Any]) -> Optional[bool]:
        """
        Runs the named predicate. Returns None when the name is unknown.
        A predicate that raises counts as False.
        """
        predicate = self.lookup(name)
        if predicate is None:
            return None
        try:
            return bool(predicate(context))
        except Exception as e:
            logger.error(f"Predicate '{name}' raised: {e}")
            return False

    def __contains__(self, name: str) -> bool:
        return name in self._predicates

    def __len__(self) -> int:
        return len(self._predicates)
