from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from rootbuild.core import Context
from rootbuild.manifest import BuildManifest, ProjectSpec, RepositorySpec


@dataclass(frozen=True)
class ProjectConfiguration:
    path: str
    name: str
    build_dir: Path
    repositories: tuple[RepositorySpec, ...]


def project_dependencies(manifest: BuildManifest, project: ProjectSpec) -> tuple[str, ...]:
    deps: list[str] = []
    for d in (*project.evaluation_depends_on, *manifest.subproject_evaluation_depends_on):
        # evaluationDependsOn on itself is a no-op.
        if d == project.path or d in deps:
            continue
        deps.append(d)
    return tuple(deps)


def _find_cycle(pending: dict[str, tuple[str, ...]]) -> list[str]:
    # Every pending project has at least one pending dependency, so walking
    # first-pending-dependency edges must revisit a node.
    start = next(iter(pending))
    trail: list[str] = []
    cur = start
    while cur not in trail:
        trail.append(cur)
        cur = next(d for d in pending[cur] if d in pending)
    return trail[trail.index(cur):] + [cur]


def evaluation_order(manifest: BuildManifest) -> list[ProjectSpec]:
    """
    Order projects so each one comes after everything it evaluation-depends on.

    Ties keep declaration order.
    """
    known = {p.path for p in manifest.projects}
    pending: dict[str, tuple[str, ...]] = {}
    by_path: dict[str, ProjectSpec] = {}
    for p in manifest.projects:
        deps = project_dependencies(manifest, p)
        for d in deps:
            if d not in known:
                raise ValueError(f"Project {p.path} depends on unknown project {d}")
        pending[p.path] = deps
        by_path[p.path] = p

    ordered: list[ProjectSpec] = []
    done: set[str] = set()
    while pending:
        ready = next((path for path, deps in pending.items() if all(d in done for d in deps)), None)
        if ready is None:
            cycle = " -> ".join(_find_cycle(pending))
            raise ValueError(f"Evaluation dependency cycle: {cycle}")
        del pending[ready]
        done.add(ready)
        ordered.append(by_path[ready])
    return ordered


def configure_subprojects(ctx: Context) -> list[ProjectConfiguration]:
    out: list[ProjectConfiguration] = []
    for project in evaluation_order(ctx.manifest):
        out.append(
            ProjectConfiguration(
                path=project.path,
                name=project.name,
                build_dir=ctx.layout.subproject_build_dir(project),
                repositories=ctx.manifest.project_repositories,
            )
        )
    return out
