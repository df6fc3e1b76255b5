from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence
from urllib.parse import unquote, urlparse

import httpx

from rootbuild.core import Context
from rootbuild.manifest import Coordinate, RepositorySpec
from rootbuild.plugins.api import (
    Artifact,
    ArtifactNotFound,
    RepositoryHandler,
    RepositoryPlugin,
    RepositoryUnavailable,
    ResolutionError,
    Resolver,
)
from rootbuild.plugins.builtin_backends.maven_http import HttpMavenBackend, MavenLookupError
from rootbuild.plugins.builtin_backends.maven_local import LocalMavenBackend
from rootbuild.util import expand_path

GOOGLE_MAVEN_URL = "https://dl.google.com/dl/android/maven2/"
MAVEN_CENTRAL_URL = "https://repo.maven.apache.org/maven2/"


def _is_remote(url: str) -> bool:
    return urlparse(url).scheme in {"http", "https"}


def _local_root(url: str, ctx: Context) -> Path:
    parsed = urlparse(url)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    root = expand_path(url)
    if not root.is_absolute():
        root = ctx.project_dir / root
    return root


class HttpMavenResolver:
    def __init__(self, name: str, backend: HttpMavenBackend) -> None:
        self.name = name
        self.backend = backend
        self.location = backend.base_url

    def resolve(self, coordinate: Coordinate) -> Artifact:
        try:
            found = self.backend.exists(coordinate)
        except MavenLookupError as e:
            raise ResolutionError(f"{self.name}: {e}") from e
        if not found:
            raise ArtifactNotFound(f"{coordinate} not found in {self.name}")
        return Artifact(coordinate=coordinate, repository=self.name, location=self.backend.pom_url(coordinate))


class LocalMavenResolver:
    def __init__(self, name: str, backend: LocalMavenBackend) -> None:
        self.name = name
        self.backend = backend
        self.location = str(backend.root)

    def resolve(self, coordinate: Coordinate) -> Artifact:
        if not self.backend.exists(coordinate):
            raise ArtifactNotFound(f"{coordinate} not found in {self.name}")
        return Artifact(
            coordinate=coordinate,
            repository=self.name,
            location=str(self.backend.pom_file(coordinate)),
        )


@dataclass(frozen=True)
class RemoteMavenPlugin:
    """A well-known remote Maven repository (google(), mavenCentral())."""

    name: str
    kind: str
    default_url: str
    transport: httpx.BaseTransport | None = None

    def handlers(self) -> Sequence[RepositoryHandler]:
        return (RepositoryHandler(kind=self.kind),)

    def is_available(self, ctx: Context) -> tuple[bool, str | None]:
        if ctx.options.offline:
            return False, "remote repositories are disabled in offline mode"
        return True, None

    def from_spec(self, spec: RepositorySpec, ctx: Context) -> Resolver:
        url = spec.url or self.default_url
        if not _is_remote(url):
            raise ValueError(f"{self.kind} repository 'url' must be http(s), got {url!r}")
        backend = HttpMavenBackend(base_url=url, logger=ctx.logger, transport=self.transport)
        return HttpMavenResolver(spec.name or self.kind, backend)


@dataclass(frozen=True)
class MavenUrlPlugin:
    """maven { url = ... } with either a remote or a local (file:/path) url."""

    name: str = "builtin.repository.maven"
    transport: httpx.BaseTransport | None = None

    def handlers(self) -> Sequence[RepositoryHandler]:
        return (RepositoryHandler(kind="maven"),)

    def is_available(self, ctx: Context) -> tuple[bool, str | None]:
        return True, None

    def from_spec(self, spec: RepositorySpec, ctx: Context) -> Resolver:
        if not spec.url:
            raise ValueError("maven repository requires 'url'")
        if _is_remote(spec.url):
            if ctx.options.offline:
                raise RepositoryUnavailable(
                    f"Repository {spec.label} is unavailable: remote repositories are disabled in offline mode"
                )
            backend = HttpMavenBackend(base_url=spec.url, logger=ctx.logger, transport=self.transport)
            return HttpMavenResolver(spec.label, backend)
        return LocalMavenResolver(spec.label, LocalMavenBackend(root=_local_root(spec.url, ctx), logger=ctx.logger))


@dataclass(frozen=True)
class MavenLocalPlugin:
    name: str = "builtin.repository.maven-local"

    def handlers(self) -> Sequence[RepositoryHandler]:
        return (RepositoryHandler(kind="mavenLocal"),)

    def is_available(self, ctx: Context) -> tuple[bool, str | None]:
        return True, None

    def from_spec(self, spec: RepositorySpec, ctx: Context) -> Resolver:
        if spec.url is not None and _is_remote(spec.url):
            raise ValueError("mavenLocal repository 'url' must be a local path")
        root = _local_root(spec.url, ctx) if spec.url else Path.home() / ".m2" / "repository"
        return LocalMavenResolver(spec.name or "mavenLocal", LocalMavenBackend(root=root, logger=ctx.logger))


def builtin_plugins(*, transport: httpx.BaseTransport | None = None) -> list[RepositoryPlugin]:
    # Keep ordering stable for predictable behavior and logging.
    return [
        RemoteMavenPlugin(
            name="builtin.repository.google",
            kind="google",
            default_url=GOOGLE_MAVEN_URL,
            transport=transport,
        ),
        RemoteMavenPlugin(
            name="builtin.repository.maven-central",
            kind="mavenCentral",
            default_url=MAVEN_CENTRAL_URL,
            transport=transport,
        ),
        MavenUrlPlugin(transport=transport),
        MavenLocalPlugin(),
    ]
