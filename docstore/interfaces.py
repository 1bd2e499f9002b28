from __future__ import annotations

from typing import Any, Protocol


class SnapshotStore(Protocol):
    """
    Where a Store's full state lives between processes: one JSON document
    mapping collection names to document lists.
    """

    def load(self) -> dict[str, Any] | None:
        """Return the stored document, or None if nothing has been saved yet."""
        ...

    def save(self, doc: dict[str, Any]) -> None:
        """Persist the full document atomically."""
        ...
