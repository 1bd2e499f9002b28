from __future__ import annotations

import copy
import uuid
from collections.abc import Mapping
from typing import Any, Callable

from pydantic import ConfigDict, JsonValue, TypeAdapter, ValidationError

from .errors import InvalidDocumentError

Document = dict[str, Any]
IdFactory = Callable[[], str]

ID_FIELD = "_id"

# Infinity/NaN would not survive a strict JSON save.
_DOCUMENT_ADAPTER = TypeAdapter(dict[str, JsonValue], config=ConfigDict(allow_inf_nan=False))


class _Missing:
    """Marker for a field that is absent from a document."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def default_id_factory() -> str:
    return uuid.uuid4().hex


def is_number(value: Any) -> bool:
    # bool is an int subclass but is not a number for query purposes
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def field_value(doc: Mapping[str, Any], field: str) -> Any:
    return doc.get(field, MISSING)


def strict_equal(a: Any, b: Any) -> bool:
    """
    Equality without coercion: values of different kinds are never equal.

    Numbers compare by value (``1 == 1.0``) but never equal booleans, and a
    missing field equals nothing, not even ``None``. Lists and mappings compare
    element-wise with the same rules.
    """
    if a is MISSING or b is MISSING:
        return False
    if is_number(a) and is_number(b):
        return a == b
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if a is None or b is None:
        return a is b
    if isinstance(a, str) or isinstance(b, str):
        return isinstance(a, str) and isinstance(b, str) and a == b
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        return len(a) == len(b) and all(strict_equal(x, y) for x, y in zip(a, b))
    if isinstance(a, Mapping) and isinstance(b, Mapping):
        if a.keys() != b.keys():
            return False
        return all(strict_equal(a[k], b[k]) for k in a)
    return False


def contains_strict(values: Any, needle: Any) -> bool:
    return any(strict_equal(v, needle) for v in values)


def ensure_document(payload: Any, *, what: str = "Document") -> dict[str, Any]:
    """
    Validate an insert/update payload and return an owned deep copy of it.

    Keys must be strings and every value, at any depth, must be JSON: None,
    bool, int, float, str, list or a str-keyed dict. Tuples, datetimes and
    other Python objects are rejected rather than converted on save.
    """
    if not isinstance(payload, Mapping):
        raise InvalidDocumentError(f"{what} must be a mapping, got {type(payload).__name__}")
    try:
        doc = _DOCUMENT_ADAPTER.validate_python(dict(payload), strict=True)
    except ValidationError as e:
        raise InvalidDocumentError(f"{what} is not a JSON object: {e}") from e
    return copy.deepcopy(doc)


def new_document_id(existing: set[str], factory: IdFactory) -> str:
    doc_id = factory()
    while doc_id in existing:
        doc_id = factory()
    return doc_id
