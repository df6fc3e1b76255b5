"""
Repository plugin system for rootbuild.

Plugins are loaded at runtime and registered by the CLI.
"""

from rootbuild.plugins.api import Artifact, RepositoryPlugin, ResolutionError, Resolver
from rootbuild.plugins.factory import ResolverFactory
from rootbuild.plugins.loader import PluginLoadResult, load_plugins

__all__ = [
    "Artifact",
    "RepositoryPlugin",
    "ResolutionError",
    "Resolver",
    "ResolverFactory",
    "PluginLoadResult",
    "load_plugins",
]
