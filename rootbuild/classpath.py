from __future__ import annotations

from dataclasses import dataclass

from rootbuild.core import Context
from rootbuild.manifest import ClasspathEntry, RepositorySpec
from rootbuild.plugins.api import (
    Artifact,
    ArtifactNotFound,
    RepositoryUnavailable,
    ResolutionError,
    Resolver,
)
from rootbuild.plugins.factory import ResolverFactory


@dataclass(frozen=True)
class _Repository:
    spec: RepositorySpec
    resolver: Resolver | None
    skipped: str | None = None


def repository_key(spec: RepositorySpec) -> str:
    return f"{spec.kind}:{spec.url or ''}"


def _open_repositories(ctx: Context, factory: ResolverFactory) -> list[_Repository]:
    repos: list[_Repository] = []
    for spec in ctx.manifest.buildscript_repositories:
        try:
            resolver = factory.from_spec(spec, ctx)
        except RepositoryUnavailable as e:
            ctx.logger.debug("%s", e)
            repos.append(_Repository(spec=spec, resolver=None, skipped=str(e)))
            continue
        repos.append(_Repository(spec=spec, resolver=resolver))
    return repos


def _describe(entry: ClasspathEntry) -> str:
    resolved = str(entry.coordinate)
    if entry.declared == resolved:
        return resolved
    return f"{entry.declared} (= {resolved})"


def resolve_entry(ctx: Context, entry: ClasspathEntry, repos: list[_Repository]) -> Artifact:
    coordinate = entry.coordinate
    key = str(coordinate)

    tried: list[str] = []
    for repo in repos:
        # A cached hit only stands in for this repository's own lookup, so an
        # earlier repository is still consulted first.
        repo_key = repository_key(repo.spec)
        cached = ctx.cache.get(coordinate=key, repository_location=repo_key)
        if cached is not None:
            ctx.logger.debug("%s resolved from cache (%s)", key, cached.repository)
            return Artifact(coordinate=coordinate, repository=cached.repository, location=cached.location)

        if repo.resolver is None:
            tried.append(f"{repo.spec.label} (skipped)")
            continue
        try:
            artifact = repo.resolver.resolve(coordinate)
        except ArtifactNotFound:
            tried.append(f"{repo.spec.label} (not found)")
            continue
        except ResolutionError as e:
            ctx.logger.debug("Lookup of %s in %s failed: %s", key, repo.spec.label, e)
            tried.append(f"{repo.spec.label} ({e})")
            continue
        ctx.cache.put(
            coordinate=key,
            repository_location=repo_key,
            repository=artifact.repository,
            location=artifact.location,
        )
        return artifact

    searched = "; ".join(tried) if tried else "no repositories declared"
    raise ResolutionError(f"Could not resolve {_describe(entry)}. Searched: {searched}")


def resolve_classpath(ctx: Context, factory: ResolverFactory) -> list[Artifact]:
    """
    Resolve every buildscript classpath entry, in declaration order.

    Repositories are consulted in declaration order and the first one that has
    the artifact wins. The first unresolvable entry aborts with ResolutionError.
    """
    repos = _open_repositories(ctx, factory)
    return [resolve_entry(ctx, entry, repos) for entry in ctx.manifest.classpath]
