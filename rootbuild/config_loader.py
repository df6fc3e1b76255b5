from __future__ import annotations

import json
from dataclasses import dataclass, field
from json import JSONDecodeError
from pathlib import Path
from typing import Any

BUILD_FILE_NAMES = ("rootbuild.toml", "rootbuild.json", "rootbuild.yaml", "rootbuild.yml")

_TOP_LEVEL_KEYS = {
    "version",
    "description",
    "build_dir",
    "ext",
    "buildscript",
    "allprojects",
    "subprojects",
    "project",
    "projects",
}


@dataclass(frozen=True)
class LoadedBuild:
    path: Path | None
    version: int | None
    description: str | None
    build_dir: str | None = None
    extras: dict[str, Any] = field(default_factory=dict)
    buildscript_repositories: list[Any] = field(default_factory=list)
    classpath: list[Any] = field(default_factory=list)
    project_repositories: list[Any] = field(default_factory=list)
    projects: list[Any] = field(default_factory=list)
    subproject_evaluation_depends_on: list[Any] = field(default_factory=list)


def _require_int(value: Any, *, what: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"'{what}' must be an integer if present")
    return value


def _require_str(value: Any, *, what: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValueError(f"'{what}' must be a non-empty string")
    return value


def _require_table(value: Any, *, what: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"'{what}' must be a table")
    return value


def _as_list(value: Any, *, what: str) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (str, dict)):
        return [value]
    if isinstance(value, list):
        return value
    raise ValueError(f"'{what}' must be a string, a table or an array")


def _check_keys(table: dict[str, Any], allowed: set[str], *, what: str) -> None:
    extra_keys = set(table.keys()) - allowed
    if extra_keys:
        extra = ", ".join(sorted(extra_keys))
        raise ValueError(f"Unknown keys in '{what}': {extra}")


def _normalize_top_level(obj: Any, path: Path | None) -> LoadedBuild:
    if not isinstance(obj, dict):
        raise ValueError("Build file must be a table with buildscript/allprojects/project sections.")
    _check_keys(obj, _TOP_LEVEL_KEYS, what="<top level>")

    version = obj.get("version")
    if version is not None:
        _require_int(version, what="version")
    description = obj.get("description")
    if description is not None and not isinstance(description, str):
        raise ValueError("'description' must be a string if present")
    build_dir = obj.get("build_dir")
    if build_dir is not None:
        _require_str(build_dir, what="build_dir")

    extras = _require_table(obj.get("ext"), what="ext")

    buildscript = _require_table(obj.get("buildscript"), what="buildscript")
    _check_keys(buildscript, {"repositories", "classpath"}, what="buildscript")

    allprojects = _require_table(obj.get("allprojects"), what="allprojects")
    _check_keys(allprojects, {"repositories"}, what="allprojects")

    subprojects = _require_table(obj.get("subprojects"), what="subprojects")
    _check_keys(subprojects, {"evaluation_depends_on"}, what="subprojects")

    if "project" in obj and "projects" in obj:
        raise ValueError("Use either [[project]] or [[projects]], not both")
    projects = obj.get("project", obj.get("projects"))

    return LoadedBuild(
        path=path,
        version=version,
        description=description,
        build_dir=build_dir,
        extras=dict(extras),
        buildscript_repositories=_as_list(buildscript.get("repositories"), what="buildscript.repositories"),
        classpath=_as_list(buildscript.get("classpath"), what="buildscript.classpath"),
        project_repositories=_as_list(allprojects.get("repositories"), what="allprojects.repositories"),
        projects=_as_list(projects, what="project"),
        subproject_evaluation_depends_on=_as_list(
            subprojects.get("evaluation_depends_on"),
            what="subprojects.evaluation_depends_on",
        ),
    )


def _load_json(text: str, path: Path) -> Any:
    try:
        return json.loads(text)
    except JSONDecodeError as e:
        raise ValueError(
            f"Invalid JSON in {path} at line {e.lineno}, column {e.colno}: {e.msg}"
        ) from e


def _load_toml(text: str, path: Path) -> Any:
    import tomllib

    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in {path}: {e}") from e


def _load_yaml(text: str, path: Path) -> Any:
    try:
        import yaml  # type: ignore
    except ImportError as e:
        raise ValueError(
            "YAML build file support requires PyYAML. Install it (e.g. 'python -m pip install pyyaml') "
            f"and retry loading {path}."
        ) from e
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        if mark is not None and hasattr(mark, "line") and hasattr(mark, "column"):
            line = int(mark.line) + 1
            col = int(mark.column) + 1
            raise ValueError(f"Invalid YAML in {path} at line {line}, column {col}: {e}") from e
        raise ValueError(f"Invalid YAML in {path}: {e}") from e


def discover_build_file(project_dir: Path) -> Path | None:
    for name in BUILD_FILE_NAMES:
        candidate = project_dir / name
        if candidate.is_file():
            return candidate
    return None


def load_build_data(obj: Any, *, path: Path | None = None) -> LoadedBuild:
    return _normalize_top_level(obj, path)


def load_build_file(path: Path) -> LoadedBuild:
    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()

    if suffix == ".json":
        raw = _load_json(text, path)
    elif suffix == ".toml":
        raw = _load_toml(text, path)
    elif suffix in (".yaml", ".yml"):
        raw = _load_yaml(text, path)
    else:
        raise ValueError(
            f"Unsupported build file format for {path} (expected .json, .toml, .yaml, .yml)."
        )
    return _normalize_top_level(raw, path)
