"""Evaluation of a single risk-rule condition against a CRM record.

CRM data is sparse and loosely typed (numbers often arrive as strings),
so every operator here is total: a condition that cannot be evaluated
is simply ``False``.  Nothing in this module raises for data-quality
problems.
"""

import logging
import math
import operator as op
from decimal import Decimal
from typing import Any, Callable, Dict, Mapping, Optional

from crm_overlay.schemas.common import Operator
from crm_overlay.schemas.risk_rule import Condition

logger = logging.getLogger(__name__)

_LIST_TYPES = (list, tuple)


def to_number(value: Any) -> Optional[float]:
    """Coerce *value* to a finite float, or return ``None``.

    Ints, floats, decimals and numeric strings are numbers; booleans are
    not, even though Python treats them as ints.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def loose_equals(left: Any, right: Any) -> bool:
    """Equality with numeric coercion, so ``"50"`` equals ``50``."""
    if left is None or right is None:
        return left is None and right is None

    left_num, right_num = to_number(left), to_number(right)
    if left_num is not None and right_num is not None:
        return left_num == right_num

    if isinstance(left, _LIST_TYPES) or isinstance(right, _LIST_TYPES):
        if isinstance(left, _LIST_TYPES) and isinstance(right, _LIST_TYPES):
            return len(left) == len(right) and all(
                loose_equals(a, b) for a, b in zip(left, right)
            )
        return False

    return _as_text(left) == _as_text(right)


def _numeric(compare: Callable[[float, float], bool]) -> Callable[[Any, Any], bool]:
    def _apply(actual: Any, expected: Any) -> bool:
        left, right = to_number(actual), to_number(expected)
        if left is None or right is None:
            return False
        return compare(left, right)

    return _apply


def _is_in(actual: Any, expected: Any) -> bool:
    if not isinstance(expected, _LIST_TYPES):
        return False
    return any(loose_equals(actual, item) for item in expected)


def _not_in(actual: Any, expected: Any) -> bool:
    if not isinstance(expected, _LIST_TYPES):
        return False
    return not any(loose_equals(actual, item) for item in expected)


def _contains(actual: Any, expected: Any) -> bool:
    if expected is None:
        return False
    if isinstance(actual, str):
        if isinstance(expected, _LIST_TYPES):
            return False
        return _as_text(expected).lower() in actual.lower()
    if isinstance(actual, _LIST_TYPES):
        return any(loose_equals(item, expected) for item in actual)
    return False


_OPERATORS: Dict[Operator, Callable[[Any, Any], bool]] = {
    Operator.eq: loose_equals,
    Operator.ne: lambda actual, expected: not loose_equals(actual, expected),
    Operator.lt: _numeric(op.lt),
    Operator.gt: _numeric(op.gt),
    Operator.le: _numeric(op.le),
    Operator.ge: _numeric(op.ge),
    Operator.in_: _is_in,
    Operator.not_in: _not_in,
    Operator.contains: _contains,
}


def evaluate(condition: Condition, record: Mapping[str, Any]) -> bool:
    """Return whether *record* satisfies *condition*.

    ``condition.field`` is a flat key of *record*.  A key that is absent
    or ``None`` counts as missing: every operator is then ``False``
    except ``!=``, which holds whenever the condition value is not
    ``None``.
    """
    field = (condition.field or "").strip()
    if not field:
        return False

    try:
        operator = Operator(condition.operator)
    except ValueError:
        logger.debug("Unknown operator %r on field %s", condition.operator, field)
        return False

    actual = record.get(field) if isinstance(record, Mapping) else None
    if actual is None:
        return operator is Operator.ne and condition.value is not None

    try:
        return bool(_OPERATORS[operator](actual, condition.value))
    except (TypeError, ValueError):
        logger.debug(
            "Condition %s %s %r could not be evaluated", field, operator.value,
            condition.value,
        )
        return False
