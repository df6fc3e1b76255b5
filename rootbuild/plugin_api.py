"""
Stable SDK for external repository plugins.

Goal: plugin authors should only depend on this module and avoid importing
internal implementation details from the core codebase.
"""

from __future__ import annotations

from rootbuild.core import Context, Options
from rootbuild.manifest import Coordinate, RepositorySpec
from rootbuild.plugins.api import (
    Artifact,
    ArtifactNotFound,
    RepositoryHandler,
    RepositoryUnavailable,
    ResolutionError,
    Resolver,
)
from rootbuild.plugins.builtin_backends.maven_http import build_client
from rootbuild.util import expand_path, xdg_cache_home, xdg_config_home

__all__ = [
    "Artifact",
    "ArtifactNotFound",
    "Context",
    "Coordinate",
    "Options",
    "RepositoryHandler",
    "RepositorySpec",
    "RepositoryUnavailable",
    "ResolutionError",
    "Resolver",
    "build_client",
    "expand_path",
    "xdg_cache_home",
    "xdg_config_home",
]
