from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from rootbuild.cache import ResolutionCache
from rootbuild.manifest import BuildManifest, ProjectSpec


class Task(Protocol):
    name: str
    description: str

    def apply(self, ctx: "Context") -> str: ...


@dataclass(frozen=True)
class Options:
    dry_run: bool = False
    offline: bool = False


@dataclass(frozen=True)
class BuildLayout:
    """
    Shared output directory for the root project and all subprojects.

    Computed once from the manifest and handed to whoever needs it; subprojects
    never compute their own root.
    """

    project_dir: Path
    root_build_dir: Path

    @classmethod
    def from_manifest(cls, project_dir: Path, manifest: BuildManifest) -> "BuildLayout":
        project_dir = Path(os.path.abspath(project_dir))
        build_dir = Path(manifest.build_dir).expanduser()
        if not build_dir.is_absolute():
            build_dir = project_dir / build_dir
        # Normalize ".." but do not resolve symlinks; clean must act on the path as declared.
        return cls(project_dir=project_dir, root_build_dir=Path(os.path.abspath(build_dir)))

    def subproject_build_dir(self, project: ProjectSpec | str) -> Path:
        name = project.name if isinstance(project, ProjectSpec) else project.rsplit(":", 1)[-1]
        if not name or name in {".", ".."} or "/" in name or os.sep in name:
            raise ValueError(f"Invalid subproject name for build dir: {name!r}")
        return self.root_build_dir / name


@dataclass(frozen=True)
class Context:
    project_dir: Path
    manifest: BuildManifest
    layout: BuildLayout
    logger: logging.Logger
    options: Options
    cache: ResolutionCache


def build_context(
    *,
    project_dir: Path,
    manifest: BuildManifest,
    options: Options,
    logger: logging.Logger,
    cache_path: Path | None = None,
) -> Context:
    layout = BuildLayout.from_manifest(project_dir, manifest)
    cache = ResolutionCache(cache_path, logger)

    return Context(
        project_dir=layout.project_dir,
        manifest=manifest,
        layout=layout,
        logger=logger,
        options=options,
        cache=cache,
    )
