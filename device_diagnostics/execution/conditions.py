"""
Condition Expressions.

A small interpreter for the condition strings authored on steps
(success conditions, failure actions, next-step conditions). Expressions are
parsed, never executed, so authored content stays safe to store and share.

Grammar (loosest binding first):
    expr       := term ("or" term)*
    term       := factor ("and" factor)*
    factor     := "not" factor | atom
    atom       := keyword | "custom:" NAME | comparison | TOKEN
    comparison := FIELD OP OPERAND
    OP         := == | != | >= | <= | > | < | contains | matches | in

Keywords `always`, `true`, `default`, `*` and the empty string are true;
`never` and `false` are false. A bare TOKEN names a registered predicate
if one exists, otherwise it is compared (case-insensitively) with the
submitted action.
"""

import logging
import re
from typing import Any, List, Mapping, Optional, Set

from .predicates import PredicateRegistry

logger = logging.getLogger(__name__)

TRUE_KEYWORDS = {"", "always", "true", "default", "*"}
FALSE_KEYWORDS = {"never", "false"}
CUSTOM_PREFIX = "custom:"

_OR = re.compile(r"\s+or\s+", re.IGNORECASE)
_AND = re.compile(r"\s+and\s+", re.IGNORECASE)
_COMMA = re.compile(r",")
_NOT = re.compile(r"^not\s+", re.IGNORECASE)
_COMPARISON = re.compile(
    r"^(?P<field>[A-Za-z_][A-Za-z0-9_]*)\s*"
    r"(?P<op>==|!=|>=|<=|>|<|\s(?:contains|matches|in)\s)\s*"
    r"(?P<operand>.*)$",
    re.IGNORECASE,
)


def evaluate_condition(
    expression: Optional[str],
    context: Mapping[str, Any],
    registry: Optional[PredicateRegistry] = None,
) -> bool:
    """
    Evaluates an authored condition against a context mapping.

    Anything that cannot be resolved (unknown field, unknown predicate,
    invalid regex) evaluates to False.
    """
    registry = registry or PredicateRegistry()
    return _eval_or((expression or "").strip(), context, registry)


def _eval_or(expression: str, context, registry) -> bool:
    return any(_eval_and(part.strip(), context, registry) for part in _split(_OR, expression))


def _eval_and(expression: str, context, registry) -> bool:
    return all(_eval_not(part.strip(), context, registry) for part in _split(_AND, expression))


def _eval_not(expression: str, context, registry) -> bool:
    if _NOT.match(expression):
        return not _eval_not(_NOT.sub("", expression, count=1).strip(), context, registry)
    return _eval_atom(expression, context, registry)


def _eval_atom(expression: str, context, registry) -> bool:
    lowered = expression.lower()
    if lowered in TRUE_KEYWORDS:
        return True
    if lowered in FALSE_KEYWORDS:
        return False

    if lowered.startswith(CUSTOM_PREFIX):
        name = expression[len(CUSTOM_PREFIX):].strip()
        result = registry.call(name, context)
        if result is None:
            logger.warning(f"Condition refers to unknown predicate '{name}'")
            return False
        return result

    match = _COMPARISON.match(expression)
    if match:
        return _compare(
            match.group("field"),
            match.group("op").strip().lower(),
            match.group("operand").strip(),
            context,
        )

    # Bare token
    if expression in registry:
        return registry.call(expression, context)
    action = context.get("action")
    if action is None:
        return False
    return str(action).strip().lower() == lowered


def _compare(field: str, op: str, operand: str, context) -> bool:
    if field not in context:
        logger.debug(f"Condition field '{field}' not in context")
        return False
    actual = context[field]

    if op == "in":
        if operand.startswith("[") and operand.endswith("]"):
            operand = operand[1:-1]
        options = [_unquote(o.strip()) for o in _split(_COMMA, operand)]
        return _as_text(actual) in options

    operand = _unquote(operand)

    if op == "contains":
        if isinstance(actual, (list, tuple, set)):
            return operand in [_as_text(a) for a in actual]
        return operand.lower() in _as_text(actual).lower()

    if op == "matches":
        try:
            return re.search(operand, _as_text(actual)) is not None
        except re.error as e:
            logger.warning(f"Invalid pattern '{operand}' in condition: {e}")
            return False

    left, right = _as_number(actual), _as_number(operand)
    if left is not None and right is not None:
        return {
            "==": left == right,
            "!=": left != right,
            ">": left > right,
            ">=": left >= right,
            "<": left < right,
            "<=": left <= right,
        }[op]

    text = _as_text(actual)
    if op == "==":
        return text == operand
    if op == "!=":
        return text != operand
    # Ordering on non-numeric values does not match
    return False


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"":
        return text[1:-1]
    return text


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _split(separator: re.Pattern, text: str) -> List[str]:
    """Splits on separator matches that fall outside quoted operands."""
    quoted = _quoted_positions(text)
    parts, start = [], 0
    for match in separator.finditer(text):
        if match.start() in quoted:
            continue
        parts.append(text[start:match.start()])
        start = match.end()
    parts.append(text[start:])
    return parts


def _quoted_positions(text: str) -> Set[int]:
    positions: Set[int] = set()
    quote = None
    for i, char in enumerate(text):
        if quote:
            positions.add(i)
            if char == quote:
                quote = None
        elif char in "'\"":
            quote = char
            positions.add(i)
    return positions
