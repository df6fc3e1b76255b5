from __future__ import annotations

import importlib.util
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any, Iterator, Sequence

from rootbuild.plugins.api import RepositoryPlugin
from rootbuild.plugins.builtin import builtin_plugins
from rootbuild.util import xdg_config_home

PLUGINS_DIRS_ENV = "ROOTBUILD_PLUGINS_DIRS"

_PLUGIN_METHODS = ("handlers", "is_available", "from_spec")


@dataclass(frozen=True)
class PluginLoadResult:
    plugins: list[RepositoryPlugin]
    errors: list[str]


def _import_file(py_file: Path) -> ModuleType:
    module_name = f"rootbuild_repo_plugin_{py_file.stem}_{abs(hash(str(py_file)))}"
    spec = importlib.util.spec_from_file_location(module_name, py_file)
    if spec is None or spec.loader is None:
        raise ImportError(f"cannot create an import spec for {py_file}")
    mod = importlib.util.module_from_spec(spec)
    # dataclasses may look up sys.modules[__module__] while the module body runs.
    sys.modules[module_name] = mod
    try:
        spec.loader.exec_module(mod)
    except BaseException:
        sys.modules.pop(module_name, None)
        raise
    return mod


def check_repository_plugin(obj: Any) -> RepositoryPlugin:
    """Raise ValueError unless `obj` has the RepositoryPlugin surface."""
    name = getattr(obj, "name", None)
    if not isinstance(name, str) or not name:
        raise ValueError(f"{type(obj).__name__} has no 'name' string attribute")
    missing = [m for m in _PLUGIN_METHODS if not callable(getattr(obj, m, None))]
    if missing:
        raise ValueError(f"repository plugin {name!r} is missing {', '.join(missing)}()")
    return obj


def _plugin_from_module(mod: ModuleType) -> RepositoryPlugin:
    if getattr(mod, "PLUGIN", None) is not None:
        candidate = mod.PLUGIN
    elif callable(getattr(mod, "get_plugin", None)):
        candidate = mod.get_plugin()
    else:
        raise ValueError("module must define PLUGIN or get_plugin()")
    return check_repository_plugin(candidate)


def plugin_search_dirs(plugin_dirs: Sequence[Path] | None = None) -> list[Path]:
    """
    Directories to scan, in priority order and without duplicates:
    --plugins-dir values, then $ROOTBUILD_PLUGINS_DIRS, then ~/.config/rootbuild/plugins if present.
    """
    candidates = list(plugin_dirs or [])
    candidates.extend(Path(p.strip()) for p in os.environ.get(PLUGINS_DIRS_ENV, "").split(os.pathsep) if p.strip())
    user_dir = xdg_config_home() / "rootbuild" / "plugins"
    if user_dir.is_dir():
        candidates.append(user_dir)

    out: list[Path] = []
    for d in candidates:
        d = d.expanduser()
        try:
            d = d.resolve()
        except OSError:
            pass
        if d not in out:
            out.append(d)
    return out


def _plugin_files(d: Path, errors: list[str]) -> Iterator[Path]:
    if not d.exists():
        errors.append(f"Plugins dir does not exist: {d}")
        return
    if not d.is_dir():
        errors.append(f"Plugins path is not a directory: {d}")
        return
    # _private.py files are helpers shared by plugins, not plugins themselves.
    yield from (f for f in sorted(d.glob("*.py")) if not f.name.startswith("_"))


def load_plugins(
    *,
    include_builtin: bool = True,
    plugin_dirs: Sequence[Path] | None = None,
) -> PluginLoadResult:
    """
    Loads the builtin repository plugins plus every plugin file found in the search dirs.

    A plugin file is a plain .py module exposing PLUGIN or get_plugin(). Files that fail
    to import or do not expose a usable plugin are reported in `errors` and skipped.
    """
    plugins: list[RepositoryPlugin] = builtin_plugins() if include_builtin else []
    errors: list[str] = []

    for d in plugin_search_dirs(plugin_dirs):
        for py_file in _plugin_files(d, errors):
            try:
                plugins.append(_plugin_from_module(_import_file(py_file)))
            except Exception as e:
                errors.append(f"Failed to load plugin {py_file}: {e}")

    return PluginLoadResult(plugins=plugins, errors=errors)
