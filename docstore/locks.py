from __future__ import annotations

import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


class PathLockRegistry:
    """
    One lock per backing file, keyed by resolved path, so every Store in the
    process that points at the same file takes turns reading and replacing it.
    """

    def __init__(self) -> None:
        self._registry_lock = threading.Lock()
        self._by_path: dict[Path, threading.Lock] = {}

    def lock_for(self, path: Path) -> threading.Lock:
        key = path.resolve()
        with self._registry_lock:
            return self._by_path.setdefault(key, threading.Lock())

    @contextmanager
    def locked(self, path: Path) -> Iterator[Path]:
        """Hold the file's lock for the body of a ``with`` block."""
        with self.lock_for(path):
            yield path

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._by_path)


GLOBAL_PATH_LOCKS = PathLockRegistry()
