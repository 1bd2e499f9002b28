from __future__ import annotations

from pathlib import Path
from typing import Any

from .errors import PersistenceError
from .interfaces import SnapshotStore
from .json_store import atomic_write_text, dump_json, read_json
from .locks import GLOBAL_PATH_LOCKS


class DiskJsonDocumentStore(SnapshotStore):
    """
    Stores a single JSON document on disk at a fixed path.

    - ``load`` returns None for a missing/empty file and raises on bad content.
    - ``save`` writes atomically; any failure is raised as PersistenceError.
    """

    def __init__(self, path: Path, *, indent: int | None = 2, sort_keys: bool = False):
        self._path = path
        self._indent = indent
        self._sort_keys = sort_keys

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[str, Any] | None:
        with GLOBAL_PATH_LOCKS.locked(self._path):
            raw = read_json(self._path)
        if raw is not None and not isinstance(raw, dict):
            raise ValueError(f"expected a JSON object at top level, got {type(raw).__name__}")
        return raw

    def save(self, doc: dict[str, Any]) -> None:
        try:
            text = dump_json(doc, indent=self._indent, sort_keys=self._sort_keys)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Cannot serialize store to {self._path}: {e}") from e
        with GLOBAL_PATH_LOCKS.locked(self._path):
            try:
                atomic_write_text(self._path, text)
            except OSError as e:
                raise PersistenceError(f"Cannot write {self._path}: {e}") from e
