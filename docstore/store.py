from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Any

from .disk_store import DiskJsonDocumentStore
from .document import ID_FIELD, Document, IdFactory, default_id_factory, new_document_id
from .errors import (
    DuplicateCollectionError,
    InvalidArgumentError,
    PersistenceError,
    UnknownCollectionError,
)
from .interfaces import SnapshotStore
from .query import Query
from .scheduler import SaveScheduler
from .settings import Settings
from .snapshot import StoreSnapshot

logger = logging.getLogger(__name__)

_RESERVED_NAME_CHARS = (":", "[", "]")


def _check_collection_name(name: Any) -> str:
    if not isinstance(name, str) or not name:
        raise InvalidArgumentError(f"Collection name must be a non-empty string, got {name!r}")
    if any(c in name for c in _RESERVED_NAME_CHARS):
        raise InvalidArgumentError(f"Collection name may not contain ':', '[' or ']': {name!r}")
    return name


class Store:
    """
    Embedded document store: named collections of schema-less documents.

    With a ``path`` the whole store is kept in one JSON file. The file is
    loaded once at construction; a missing or corrupt file is logged and the
    store starts empty. Writes through a Query request a debounced save when
    autosave is on; ``flush()`` saves synchronously and raises on failure.
    Call ``flush()`` or ``close()`` before exit if durability matters.
    """

    def __init__(
        self,
        path: str | os.PathLike[str] | None = None,
        autosave: bool | None = None,
        *,
        settings: Settings | None = None,
        id_factory: IdFactory | None = None,
        backend: SnapshotStore | None = None,
    ):
        if path is not None and not isinstance(path, (str, os.PathLike)):
            raise InvalidArgumentError(f"Store path must be a string or path, got {type(path).__name__}")
        if path is not None and backend is not None:
            raise InvalidArgumentError("Pass either a path or a backend, not both")

        self.settings = settings or Settings()
        self.autosave_enabled = self.settings.autosave if autosave is None else bool(autosave)
        self._id_factory = id_factory or default_id_factory

        self.lock = threading.RLock()
        self._collections: dict[str, list[Document]] = {}

        self._backend: SnapshotStore | None = backend
        if path is not None:
            self._backend = DiskJsonDocumentStore(
                Path(path),
                indent=self.settings.json_indent,
                sort_keys=self.settings.sort_keys,
            )

        self._scheduler: SaveScheduler | None = None
        if self._backend is not None:
            self._scheduler = SaveScheduler(self._persist, delay=self.settings.debounce_seconds)
            self._load()

    @property
    def path(self) -> Path | None:
        return getattr(self._backend, "path", None)

    @property
    def last_save_error(self) -> Exception | None:
        return self._scheduler.last_error if self._scheduler is not None else None

    # --- collections ---

    def make_collection(self, name: str) -> None:
        _check_collection_name(name)
        with self.lock:
            if name in self._collections:
                raise DuplicateCollectionError(f"Collection already exists: {name!r}")
            self._collections[name] = []
        self.autosave()

    def drop_collection(self, name: str) -> None:
        with self.lock:
            if name not in self._collections:
                raise UnknownCollectionError(f"Unknown collection: {name!r}")
            del self._collections[name]
        self.autosave()

    def collection_names(self) -> list[str]:
        with self.lock:
            return list(self._collections)

    def __contains__(self, name: object) -> bool:
        return name in self._collections

    def get(self, name: str) -> Query:
        with self.lock:
            collection = self._collections.get(name)
            if collection is None:
                raise UnknownCollectionError(f"Unknown collection: {name!r}")
            return Query(self, name, collection)

    def documents_or_none(self, name: str) -> list[Document] | None:
        with self.lock:
            collection = self._collections.get(name)
            return list(collection) if collection is not None else None

    def new_id(self, existing: set[str]) -> str:
        return new_document_id(existing, self._id_factory)

    # --- persistence ---

    def autosave(self) -> None:
        if self.autosave_enabled:
            self.save()

    def save(self) -> None:
        """Request a debounced save. No-op for in-memory stores."""
        if self._scheduler is not None:
            self._scheduler.request()

    def flush(self) -> None:
        """Save now, cancelling any pending debounced save. Raises PersistenceError."""
        if self._scheduler is not None:
            self._scheduler.flush()

    def close(self) -> None:
        if self._scheduler is not None:
            self._scheduler.close()

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _snapshot(self) -> dict[str, Any]:
        with self.lock:
            return StoreSnapshot.from_collections(self._collections).to_disk_doc()

    def _persist(self) -> None:
        if self._backend is None:
            return
        try:
            doc = self._snapshot()
        except ValueError as e:
            raise PersistenceError(f"Cannot serialize store: {e}") from e
        self._backend.save(doc)
        logger.debug("Saved %d collection(s) to %s", len(self._collections), self.path or self._backend)

    def _load(self) -> None:
        if self._backend is None:
            return
        try:
            raw = self._backend.load()
            if raw is None:
                logger.info("No saved state at %s; starting empty", self.path or self._backend)
                return
            snapshot = StoreSnapshot.from_disk_doc(raw)
        except (OSError, ValueError) as e:
            logger.warning("Could not load %s (%s); starting empty", self.path or self._backend, e)
            return

        for name, docs in snapshot.collections.items():
            self._collections[name] = self._with_unique_ids(name, docs)

    def _with_unique_ids(self, name: str, docs: list[Document]) -> list[Document]:
        seen: set[str] = set()
        for doc in docs:
            doc_id = doc.get(ID_FIELD)
            if not isinstance(doc_id, str) or doc_id in seen:
                new = self.new_id(seen | {d[ID_FIELD] for d in docs if isinstance(d.get(ID_FIELD), str)})
                logger.warning("Collection %r: document _id %r missing or duplicate; assigned %r", name, doc_id, new)
                doc[ID_FIELD] = new
                doc_id = new
            seen.add(doc_id)
        return docs
