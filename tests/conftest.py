from __future__ import annotations

from pathlib import Path
import sys
from typing import Iterator

import pytest


# Ensure the repository root (parent of ./tests) is importable during pytest collection.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """
    Backing file inside a per-test temp directory so tests never touch real data.
    """
    return tmp_path / "db.json"


@pytest.fixture
def make_store(db_path: Path) -> Iterator:
    """
    Factory for stores that are closed (background writer stopped) after the test.
    """
    from docstore import Store

    created: list[Store] = []

    def _make(*args, **kwargs) -> Store:
        store = Store(*args, **kwargs)
        created.append(store)
        return store

    yield _make

    for store in created:
        store.close()


@pytest.fixture
def counter_ids():
    """Deterministic id factory: "id-1", "id-2", ..."""
    state = {"n": 0}

    def _next() -> str:
        state["n"] += 1
        return f"id-{state['n']}"

    return _next
