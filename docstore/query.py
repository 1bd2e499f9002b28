from __future__ import annotations

import functools
import math
from collections.abc import Mapping, MutableMapping
from typing import TYPE_CHECKING, Any, Literal

from .document import ID_FIELD, MISSING, Document, ensure_document, field_value, is_number, strict_equal
from .errors import InvalidArgumentError, InvalidDocumentError
from .matcher import FilterExpression, matches
from .references import resolve_references

if TYPE_CHECKING:
    from .store import Store

SortDirection = Literal["asc", "desc"]


def _compare(a: Any, b: Any) -> int:
    # Only numbers with numbers and strings with strings are ordered;
    # everything else (missing, None, mixed kinds) compares equal.
    if (is_number(a) and is_number(b)) or (isinstance(a, str) and isinstance(b, str)):
        return (a > b) - (a < b)
    return 0


def _check_count(name: str, n: Any) -> int:
    if not isinstance(n, int) or isinstance(n, bool):
        raise InvalidArgumentError(f"{name}() expects an integer, got {type(n).__name__}")
    if n < 0:
        raise InvalidArgumentError(f"{name}() expects n >= 0, got {n}")
    return n


class Query:
    """
    Chainable view over one collection.

    The working view is a list of the collection's own document objects, taken
    when the query is created. ``where``/``sort``/``limit``/``skip`` only narrow
    or reorder the view. ``update``/``delete`` act on the live collection,
    touching exactly the documents that are (by identity) in the view;
    ``insert`` appends to the live collection. A query is meant for one call
    chain: after a write its view may be stale.
    """

    def __init__(self, store: "Store", name: str, collection: list[Document]):
        self._store = store
        self._name = name
        self._collection = collection
        self._view: list[Document] = list(collection)

    @property
    def collection_name(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"Query({self._name!r}, {len(self._view)} docs)"

    def __len__(self) -> int:
        return len(self._view)

    def __iter__(self):
        return iter(list(self._view))

    # --- read ---

    def where(self, expression: FilterExpression) -> "Query":
        if not isinstance(expression, Mapping):
            raise InvalidArgumentError(f"where() expects a mapping, got {type(expression).__name__}")
        self._view = [d for d in self._view if matches(d, expression)]
        return self

    def sort(self, field: str, direction: SortDirection = "asc") -> "Query":
        if direction not in ("asc", "desc"):
            raise InvalidArgumentError(f"sort direction must be 'asc' or 'desc', got {direction!r}")
        sign = 1 if direction == "asc" else -1

        def cmp(a: Document, b: Document) -> int:
            return sign * _compare(field_value(a, field), field_value(b, field))

        # list.sort is stable and we flip the comparison, not the result, so
        # ties keep their order in both directions.
        self._view.sort(key=functools.cmp_to_key(cmp))
        return self

    def limit(self, n: int) -> "Query":
        self._view = self._view[: _check_count("limit", n)]
        return self

    def skip(self, n: int) -> "Query":
        self._view = self._view[_check_count("skip", n) :]
        return self

    def all(self) -> list[Document]:
        return list(self._view)

    def first(self) -> Document | None:
        return self._view[0] if self._view else None

    def count(self) -> int:
        return len(self._view)

    def exists(self) -> bool:
        return bool(self._view)

    def ids(self) -> list[str]:
        return [d[ID_FIELD] for d in self._view]

    def distinct(self, field: str) -> list[Any]:
        seen: list[Any] = []
        for d in self._view:
            value = field_value(d, field)
            if value is MISSING:
                continue
            if not any(strict_equal(value, s) for s in seen):
                seen.append(value)
        return seen

    # --- aggregates ---

    def sum(self, field: str) -> float:
        total = 0
        for d in self._view:
            value = field_value(d, field)
            if is_number(value):
                total += value
        return total

    def avg(self, field: str) -> float:
        if not self._view:
            return 0
        return self.sum(field) / len(self._view)

    def min(self, field: str) -> float:
        """Smallest numeric value, or ``math.inf`` when there is none."""
        return min(self._numbers(field), default=math.inf)

    def max(self, field: str) -> float:
        """Largest numeric value, or ``-math.inf`` when there is none."""
        return max(self._numbers(field), default=-math.inf)

    def _numbers(self, field: str):
        for d in self._view:
            value = field_value(d, field)
            if is_number(value):
                yield value

    # --- write ---

    def insert(self, document: dict[str, Any]) -> "Query":
        doc = ensure_document(document)
        with self._store.lock:
            existing = {d[ID_FIELD] for d in self._collection}
            doc[ID_FIELD] = self._store.new_id(existing)
            self._collection.append(doc)
        if isinstance(document, MutableMapping):
            # The caller learns the new id; the stored copy stays separate.
            document[ID_FIELD] = doc[ID_FIELD]
        self._store.autosave()
        return self

    def update(self, fields: dict[str, Any]) -> "Query":
        changes = ensure_document(fields, what="Update")
        if ID_FIELD in changes:
            raise InvalidDocumentError(f"{ID_FIELD} cannot be updated")
        selected = {id(d) for d in self._view}
        with self._store.lock:
            for d in self._collection:
                if id(d) in selected:
                    # Top-level overwrite only; every document gets its own copy.
                    d.update(ensure_document(changes, what="Update"))
        self._store.autosave()
        return self

    def delete(self) -> "Query":
        selected = {id(d) for d in self._view}
        with self._store.lock:
            self._collection[:] = [d for d in self._collection if id(d) not in selected]
        self._store.autosave()
        return self

    # --- references ---

    def resolve_references(self) -> list[Document]:
        """
        Copies of the view's documents with every top-level ``"[collection:id]"``
        field replaced by a copy of that document. References to a missing
        collection or id stay as the original string.
        """
        return resolve_references(self._view, self._store.documents_or_none)
