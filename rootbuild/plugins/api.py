from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from rootbuild.core import Context
from rootbuild.manifest import Coordinate, RepositorySpec


class ResolutionError(RuntimeError):
    """A coordinate could not be resolved from a repository (or from any of them)."""


class ArtifactNotFound(ResolutionError):
    """The repository answered, and it does not have the coordinate."""


@dataclass(frozen=True)
class Artifact:
    coordinate: Coordinate
    repository: str
    location: str


@dataclass(frozen=True)
class RepositoryHandler:
    kind: str


class Resolver(Protocol):
    """
    Looks coordinates up in one repository.

    `resolve` returns the Artifact or raises:
    - ArtifactNotFound when the repository does not have it
    - ResolutionError for anything else (transport errors, unexpected status, ...)
    """

    name: str
    location: str

    def resolve(self, coordinate: Coordinate) -> Artifact: ...


class RepositoryPlugin(Protocol):
    """
    A repository plugin turns a declared repository into a Resolver.

    A plugin must:
    - declare which repository kinds it handles
    - validate the repository declaration (url etc.)
    - report whether it can work in the current environment (e.g. offline)
    """

    name: str

    def handlers(self) -> Sequence[RepositoryHandler]: ...

    def is_available(self, ctx: Context) -> tuple[bool, str | None]: ...

    def from_spec(self, spec: RepositorySpec, ctx: Context) -> Resolver: ...


class RepositoryUnavailable(RuntimeError):
    """The repository cannot be consulted in this environment (e.g. remote repository while offline)."""
