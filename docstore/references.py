from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any, Callable

from .document import ID_FIELD, Document

# "[<collection>:<id>]"; collection names may not contain ":", "[" or "]".
REFERENCE_RE = re.compile(r"^\[(?P<collection>[^:\[\]]+):(?P<id>[^\[\]]+)\]$")

CollectionLookup = Callable[[str], "Iterable[Document] | None"]


def make_reference(collection: str, doc_id: str) -> str:
    return f"[{collection}:{doc_id}]"


def parse_reference(value: Any) -> tuple[str, str] | None:
    """Return ``(collection, id)`` if ``value`` is a reference string, else None."""
    if not isinstance(value, str):
        return None
    m = REFERENCE_RE.match(value)
    if m is None:
        return None
    return m.group("collection"), m.group("id")


class ReferenceResolver:
    """
    Replaces reference strings in top-level fields with the referenced document.

    ``lookup(name)`` returns the documents of a collection, or None when the
    collection does not exist. Each referenced collection is scanned at most
    once per resolver. Unresolvable references are left as the original string.
    """

    def __init__(self, lookup: CollectionLookup) -> None:
        self._lookup = lookup
        self._by_id: dict[str, dict[str, Document] | None] = {}

    def _index(self, collection: str) -> dict[str, Document] | None:
        if collection not in self._by_id:
            docs = self._lookup(collection)
            if docs is None:
                self._by_id[collection] = None
            else:
                self._by_id[collection] = {
                    d[ID_FIELD]: d for d in docs if isinstance(d.get(ID_FIELD), str)
                }
        return self._by_id[collection]

    def target(self, value: Any) -> Document | None:
        ref = parse_reference(value)
        if ref is None:
            return None
        collection, doc_id = ref
        index = self._index(collection)
        if index is None:
            return None
        return index.get(doc_id)

    def resolve(self, document: Mapping[str, Any]) -> Document:
        out: Document = {}
        for field, value in document.items():
            found = self.target(value)
            # Resolved documents are copied, never resolved again.
            out[field] = dict(found) if found is not None else value
        return out


def resolve_references(documents: Iterable[Mapping[str, Any]], lookup: CollectionLookup) -> list[Document]:
    resolver = ReferenceResolver(lookup)
    return [resolver.resolve(d) for d in documents]
