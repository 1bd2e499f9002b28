from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any


def read_json(path: Path) -> Any | None:
    """
    Read JSON from disk.

    Returns None for missing or empty files. Unreadable files raise OSError and
    invalid JSON raises ValueError; the caller decides how to recover.
    """
    if not path.exists():
        return None
    raw = path.read_text(encoding="utf-8")
    if not raw.strip():
        return None
    return json.loads(raw)


def dump_json(payload: Any, *, indent: int | None = 2, sort_keys: bool = False) -> str:
    # allow_nan=False: Infinity/NaN would not load back as strict JSON.
    return json.dumps(payload, indent=indent, sort_keys=sort_keys, ensure_ascii=False, allow_nan=False) + "\n"


def tmp_path_for(path: Path) -> Path:
    return path.with_name(path.name + ".tmp")


def atomic_write_text(path: Path, text: str) -> None:
    """
    Atomically replace ``path`` by writing ``<path>.tmp`` in the same directory,
    fsyncing it, then renaming it over the target.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = tmp_path_for(path)
    with tmp_path.open("w", encoding="utf-8") as f:
        f.write(text)
        f.flush()
        os.fsync(f.fileno())
    tmp_path.replace(path)
