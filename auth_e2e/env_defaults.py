"""Read defaults from a `.env.defaults` (or `.env`) file at the repository root.

Environment variables always win; these values are only consulted when a
variable is unset. The file uses plain `KEY=value` lines, optionally quoted.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Dict

DEFAULTS_FILES = (".env.defaults", ".env")


def _parse(path: Path) -> Dict[str, str]:
    values: Dict[str, str] = {}
    for raw in path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        if key.startswith("export "):
            key = key[len("export "):]
        value = value.strip()
        if len(value) >= 2 and value[0] in ('"', "'") and value[-1] == value[0]:
            value = value[1:-1]
        values[key.strip()] = value
    return values


@lru_cache(maxsize=1)
def _load_env_defaults() -> Dict[str, str]:
    repo_root = Path(os.getenv("AUTH_E2E_ROOT") or Path(__file__).resolve().parents[1])
    defaults: Dict[str, str] = {}
    # Earlier files take precedence.
    for name in reversed(DEFAULTS_FILES):
        candidate = repo_root / name
        if candidate.exists():
            defaults.update(_parse(candidate))
    return defaults


def get_env_default(key: str) -> str | None:
    return _load_env_defaults().get(key)


def getenv(key: str, default: str | None = None) -> str | None:
    """Environment variable, then defaults file, then `default`."""
    value = os.getenv(key)
    if value:
        return value
    value = get_env_default(key)
    if value:
        return value
    return default


def clear_cache() -> None:
    _load_env_defaults.cache_clear()
