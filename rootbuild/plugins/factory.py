from __future__ import annotations

from typing import Iterable

from rootbuild.core import Context
from rootbuild.manifest import RepositorySpec
from rootbuild.plugins.api import RepositoryHandler, RepositoryPlugin, RepositoryUnavailable, Resolver


class ResolverFactory:
    """
    Registry-backed factory. Core code does not know about concrete repository kinds.
    """

    def __init__(self, plugins: Iterable[RepositoryPlugin]) -> None:
        by_kind: dict[str, RepositoryPlugin] = {}
        for plugin in plugins:
            if not getattr(plugin, "name", None):
                raise ValueError("Plugin is missing required attribute 'name'")
            try:
                handlers = tuple(plugin.handlers())
            except (AttributeError, TypeError) as e:
                raise ValueError(f"Plugin {plugin.name} has no usable handlers(): {e}") from e
            if not handlers:
                raise ValueError(f"Plugin {plugin.name} must handle at least one repository kind")
            for h in handlers:
                if not isinstance(h, RepositoryHandler):
                    raise ValueError(f"Plugin {plugin.name} returned invalid handler: {h!r}")
                if not isinstance(h.kind, str) or not h.kind:
                    raise ValueError(f"Plugin {plugin.name} returned invalid kind: {h.kind!r}")
                if h.kind in by_kind:
                    other = by_kind[h.kind]
                    raise ValueError(
                        f"Duplicate handler for repository kind {h.kind}: {other.name} and {plugin.name}"
                    )
                by_kind[h.kind] = plugin
        self._by_kind = by_kind

    @property
    def registered_kinds(self) -> list[str]:
        return sorted(self._by_kind.keys())

    def plugin_for(self, kind: str) -> RepositoryPlugin:
        plugin = self._by_kind.get(kind)
        if plugin is None:
            known = ", ".join(self.registered_kinds) if self._by_kind else "(none)"
            raise ValueError(f"Unknown repository kind: {kind} (known: {known})")
        return plugin

    def from_spec(self, spec: RepositorySpec, ctx: Context) -> Resolver:
        plugin = self.plugin_for(spec.kind)

        ok, reason = plugin.is_available(ctx)
        if not ok:
            msg = reason or "plugin is not available in this environment"
            raise RepositoryUnavailable(f"Repository {spec.label} is unavailable: {msg}")

        return plugin.from_spec(spec, ctx)
