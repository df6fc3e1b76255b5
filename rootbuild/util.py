from __future__ import annotations

import os
from pathlib import Path


def xdg_config_home() -> Path:
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


def xdg_cache_home() -> Path:
    return Path(os.environ.get("XDG_CACHE_HOME", Path.home() / ".cache"))


def expand_path(s: str) -> Path:
    # Expand ~ and $VARS
    return Path(os.path.expandvars(os.path.expanduser(s)))


def can_modify_dir(p: Path) -> bool:
    """True if entries inside directory `p` can be created, renamed or removed."""
    try:
        return os.access(p, os.W_OK | os.X_OK)
    except OSError:
        return False


def normalize_project_path(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("project path must be a non-empty string")
    if not value.startswith(":"):
        value = ":" + value
    if value == ":" or "::" in value or value.endswith(":"):
        raise ValueError(f"Invalid project path: {value!r}")
    return value
