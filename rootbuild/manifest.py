"""
Declarative model of a root build: repositories, buildscript classpath,
shared build directory and subprojects.

Everything here is validated when the manifest is parsed, so later stages
never see an unresolved `$ref` or a malformed coordinate.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from rootbuild.config_loader import LoadedBuild
from rootbuild.util import normalize_project_path

DEFAULT_BUILD_DIR = "../build"

_REF_RE = re.compile(r"\$(?:\{([A-Za-z_][A-Za-z0-9_]*)\}|([A-Za-z_][A-Za-z0-9_]*))")


@dataclass(frozen=True)
class Coordinate:
    group: str
    name: str
    version: str

    def __str__(self) -> str:
        return f"{self.group}:{self.name}:{self.version}"

    @property
    def module(self) -> str:
        return f"{self.group}:{self.name}"

    def pom_path(self) -> str:
        """Relative path of the POM in a Maven-layout repository."""
        group_path = self.group.replace(".", "/")
        return f"{group_path}/{self.name}/{self.version}/{self.name}-{self.version}.pom"


@dataclass(frozen=True)
class RepositorySpec:
    kind: str
    url: str | None = None
    name: str = ""

    @property
    def label(self) -> str:
        if self.name:
            return self.name
        if self.url:
            return f"{self.kind}({self.url})"
        return self.kind


@dataclass(frozen=True)
class ClasspathEntry:
    coordinate: Coordinate
    declared: str

    @property
    def references(self) -> tuple[str, ...]:
        return tuple(a or b for a, b in _REF_RE.findall(self.declared))


@dataclass(frozen=True)
class ProjectSpec:
    path: str
    evaluation_depends_on: tuple[str, ...] = ()

    @property
    def name(self) -> str:
        return self.path.rsplit(":", 1)[-1]


@dataclass(frozen=True)
class BuildManifest:
    version: int | None
    description: str | None
    build_dir: str
    extras: Mapping[str, str]
    buildscript_repositories: tuple[RepositorySpec, ...]
    classpath: tuple[ClasspathEntry, ...]
    project_repositories: tuple[RepositorySpec, ...]
    projects: tuple[ProjectSpec, ...]
    subproject_evaluation_depends_on: tuple[str, ...] = field(default=())

    def project(self, path: str) -> ProjectSpec | None:
        for p in self.projects:
            if p.path == path:
                return p
        return None


def interpolate(text: str, extras: Mapping[str, str]) -> str:
    def repl(m: re.Match[str]) -> str:
        key = m.group(1) or m.group(2)
        if key not in extras:
            known = ", ".join(sorted(extras)) or "(none)"
            raise ValueError(f"Undefined reference ${key} in {text!r} (defined: {known})")
        return extras[key]

    return _REF_RE.sub(repl, text)


def _parse_extras(raw: Mapping[str, Any]) -> dict[str, str]:
    out: dict[str, str] = {}
    for key, value in raw.items():
        if not re.fullmatch(r"[A-Za-z_][A-Za-z0-9_]*", key):
            raise ValueError(f"Invalid ext name: {key!r}")
        if not isinstance(value, str) or not value:
            raise ValueError(f"ext.{key} must be a non-empty string (quote versions like \"2.1.0\")")
        if _REF_RE.search(value):
            raise ValueError(f"ext.{key} must not reference other extras")
        out[key] = value
    return out


def _parse_coordinate(raw: Any, extras: Mapping[str, str], *, where: str) -> ClasspathEntry:
    if isinstance(raw, str):
        declared = raw
    elif isinstance(raw, dict):
        if "id" in raw:
            declared = raw["id"]
            if not isinstance(declared, str):
                raise ValueError(f"{where}: 'id' must be a string")
        else:
            parts = [raw.get("group"), raw.get("name"), raw.get("version")]
            if not all(isinstance(p, str) and p for p in parts):
                raise ValueError(f"{where}: requires 'id' or 'group', 'name' and 'version'")
            declared = ":".join(parts)  # type: ignore[arg-type]
    else:
        raise ValueError(f"{where}: must be a string or a table, got {type(raw).__name__}")

    parts = declared.split(":")
    if len(parts) != 3 or not all(p.strip() for p in parts):
        raise ValueError(f"{where}: expected 'group:name:version', got {declared!r}")
    group, name, version = (p.strip() for p in parts)
    if _REF_RE.search(group) or _REF_RE.search(name):
        raise ValueError(f"{where}: only the version may reference extras ({declared!r})")
    version = interpolate(version, extras)
    return ClasspathEntry(coordinate=Coordinate(group=group, name=name, version=version), declared=declared)


def _parse_repository(raw: Any, *, where: str) -> RepositorySpec:
    if isinstance(raw, str) and raw:
        return RepositorySpec(kind=raw)
    if not isinstance(raw, dict):
        raise ValueError(f"{where}: must be a repository kind or a table with 'kind'")
    kind = raw.get("kind")
    if not isinstance(kind, str) or not kind:
        raise ValueError(f"{where}: requires 'kind'")
    url = raw.get("url")
    if url is not None and (not isinstance(url, str) or not url):
        raise ValueError(f"{where}: 'url' must be a non-empty string if present")
    name = raw.get("name", "")
    if not isinstance(name, str):
        raise ValueError(f"{where}: 'name' must be a string if present")
    return RepositorySpec(kind=kind, url=url, name=name)


def _parse_depends(raw: Any, *, where: str) -> tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list) or not all(isinstance(x, str) for x in raw):
        raise ValueError(f"{where}: must be a project path or a list of project paths")
    out: list[str] = []
    for value in raw:
        path = normalize_project_path(value)
        if path not in out:
            out.append(path)
    return tuple(out)


def _parse_project(raw: Any, *, where: str) -> ProjectSpec:
    if isinstance(raw, str):
        return ProjectSpec(path=normalize_project_path(raw))
    if not isinstance(raw, dict):
        raise ValueError(f"{where}: must be a project path or a table")
    path = raw.get("path") or raw.get("name")
    if not isinstance(path, str) or not path:
        raise ValueError(f"{where}: requires 'name' or 'path'")
    depends = _parse_depends(raw.get("evaluation_depends_on"), where=f"{where}.evaluation_depends_on")
    return ProjectSpec(path=normalize_project_path(path), evaluation_depends_on=depends)


def parse_manifest(loaded: LoadedBuild) -> BuildManifest:
    extras = _parse_extras(loaded.extras)

    buildscript_repos = tuple(
        _parse_repository(r, where=f"buildscript.repositories[{i}]")
        for i, r in enumerate(loaded.buildscript_repositories, start=1)
    )
    classpath = tuple(
        _parse_coordinate(c, extras, where=f"buildscript.classpath[{i}]")
        for i, c in enumerate(loaded.classpath, start=1)
    )
    seen_modules: set[str] = set()
    for entry in classpath:
        if entry.coordinate.module in seen_modules:
            raise ValueError(f"Duplicate classpath entry for {entry.coordinate.module}")
        seen_modules.add(entry.coordinate.module)

    project_repos = tuple(
        _parse_repository(r, where=f"allprojects.repositories[{i}]")
        for i, r in enumerate(loaded.project_repositories, start=1)
    )

    projects = tuple(
        _parse_project(p, where=f"project[{i}]") for i, p in enumerate(loaded.projects, start=1)
    )
    seen_paths: set[str] = set()
    for p in projects:
        if p.path in seen_paths:
            raise ValueError(f"Duplicate project: {p.path}")
        seen_paths.add(p.path)

    return BuildManifest(
        version=loaded.version,
        description=loaded.description,
        build_dir=loaded.build_dir or DEFAULT_BUILD_DIR,
        extras=MappingProxyType(extras),
        buildscript_repositories=buildscript_repos,
        classpath=classpath,
        project_repositories=project_repos,
        projects=projects,
        subproject_evaluation_depends_on=_parse_depends(
            loaded.subproject_evaluation_depends_on,
            where="subprojects.evaluation_depends_on",
        ),
    )


def default_manifest() -> BuildManifest:
    """The stock Android root build: Google + Maven Central, AGP, GMS, Kotlin."""
    return parse_manifest(
        LoadedBuild(
            path=None,
            version=1,
            description="Android root project",
            build_dir=DEFAULT_BUILD_DIR,
            extras={"kotlin_version": "2.1.0"},
            buildscript_repositories=["google", "mavenCentral"],
            classpath=[
                "com.android.tools.build:gradle:8.3.0",
                "com.google.gms:google-services:4.4.0",
                "org.jetbrains.kotlin:kotlin-gradle-plugin:$kotlin_version",
            ],
            project_repositories=["google", "mavenCentral"],
            projects=[":app"],
            subproject_evaluation_depends_on=[":app"],
        )
    )
