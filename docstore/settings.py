from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    # Debounce window for autosave writes
    debounce_seconds: float = 0.01

    # Save after every insert/update/delete
    autosave: bool = True

    # On-disk JSON layout
    json_indent: int | None = 2
    sort_keys: bool = False


def get_settings() -> Settings:
    """
    Build Settings from DOCSTORE_* environment variables.

    Stores never call this themselves; hosts that want environment
    configuration pass the result in explicitly.
    """
    defaults = Settings()

    debounce_ms = _env_int("DOCSTORE_DEBOUNCE_MS", int(defaults.debounce_seconds * 1000))
    autosave = _env_bool("DOCSTORE_AUTOSAVE", defaults.autosave)

    # 0 or a negative value means compact single-line output
    indent = _env_int("DOCSTORE_JSON_INDENT", defaults.json_indent or 0)
    sort_keys = _env_bool("DOCSTORE_SORT_KEYS", defaults.sort_keys)

    return Settings(
        debounce_seconds=max(debounce_ms, 0) / 1000,
        autosave=autosave,
        json_indent=indent if indent > 0 else None,
        sort_keys=sort_keys,
    )
