from __future__ import annotations

import operator
import re
from collections.abc import Mapping
from typing import Any, Callable

from .document import MISSING, contains_strict, field_value, is_number, strict_equal
from .errors import InvalidArgumentError

FilterExpression = Mapping[str, Any]

_NUMERIC = {
    "$gt": operator.gt,
    "$gte": operator.ge,
    "$lt": operator.lt,
    "$lte": operator.le,
}


def _op_ne(value: Any, operand: Any) -> bool:
    return not strict_equal(value, operand)


def _op_in(value: Any, operand: Any) -> bool:
    return isinstance(operand, (list, tuple)) and contains_strict(operand, value)


def _op_nin(value: Any, operand: Any) -> bool:
    return isinstance(operand, (list, tuple)) and not contains_strict(operand, value)


def _op_like(value: Any, operand: Any) -> bool:
    return isinstance(value, str) and isinstance(operand, str) and operand in value


def _op_regex(value: Any, operand: Any) -> bool:
    if not isinstance(value, str) or not isinstance(operand, str):
        return False
    try:
        return re.search(operand, value) is not None
    except re.error as e:
        raise InvalidArgumentError(f"Invalid $regex pattern {operand!r}: {e}") from e


def _op_exists(value: Any, operand: Any) -> bool:
    if not isinstance(operand, bool):
        return False
    return (value is not MISSING) is operand


_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "$ne": _op_ne,
    "$in": _op_in,
    "$nin": _op_nin,
    "$like": _op_like,
    "$regex": _op_regex,
    "$exists": _op_exists,
}


def _eval_operator(value: Any, op: str, operand: Any) -> bool:
    compare = _NUMERIC.get(op)
    if compare is not None:
        return is_number(value) and is_number(operand) and compare(value, operand)
    handler = _OPERATORS.get(op)
    if handler is None:
        # Unknown operators never match.
        return False
    return handler(value, operand)


def _eval_field(document: Mapping[str, Any], field: str, condition: Any) -> bool:
    value = field_value(document, field)
    if isinstance(condition, Mapping):
        return all(_eval_operator(value, op, operand) for op, operand in condition.items())
    return strict_equal(value, condition)


def matches(document: Mapping[str, Any], expression: FilterExpression) -> bool:
    """
    Return True when ``document`` satisfies every entry of ``expression``.

    Entries are either ``field: literal`` (strict equality), ``field:
    {"$op": operand, ...}`` or one of the combinators ``$and`` / ``$or`` whose
    operand is a list of sub-expressions. An empty expression matches
    everything.
    """
    for key, condition in expression.items():
        if key == "$or":
            if not isinstance(condition, (list, tuple)):
                return False
            if not any(matches(document, sub) for sub in condition if isinstance(sub, Mapping)):
                return False
        elif key == "$and":
            if not isinstance(condition, (list, tuple)):
                return False
            if not all(isinstance(sub, Mapping) and matches(document, sub) for sub in condition):
                return False
        elif not _eval_field(document, key, condition):
            return False
    return True
