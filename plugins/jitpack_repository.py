from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import httpx

from rootbuild.plugin_api import (
    Artifact,
    ArtifactNotFound,
    Context,
    Coordinate,
    RepositoryHandler,
    RepositorySpec,
    ResolutionError,
    build_client,
)

JITPACK_URL = "https://jitpack.io"


class JitPackResolver:
    def __init__(self, *, name: str, base_url: str, transport: httpx.BaseTransport | None) -> None:
        self.name = name
        self.location = base_url
        self.transport = transport

    def resolve(self, coordinate: Coordinate) -> Artifact:
        # JitPack builds on first request; a GET of the POM triggers the build and waits for it.
        url = self.location.rstrip("/") + "/" + coordinate.pom_path()
        try:
            with build_client(timeout=60.0, transport=self.transport) as client:
                resp = client.get(url)
        except httpx.HTTPError as e:
            raise ResolutionError(f"{self.name}: {type(e).__name__} for {url}: {e}") from e

        if resp.status_code == 200:
            return Artifact(coordinate=coordinate, repository=self.name, location=url)
        if resp.status_code in (401, 404):
            # JitPack answers 401 for repositories it cannot see.
            raise ArtifactNotFound(f"{coordinate} not found in {self.name}")
        raise ResolutionError(f"{self.name}: unexpected HTTP {resp.status_code} for {url}")


@dataclass(frozen=True)
class JitPackRepositoryPlugin:
    name: str = "rootbuild.repository.jitpack"
    transport: httpx.BaseTransport | None = None

    def handlers(self) -> Sequence[RepositoryHandler]:
        return (RepositoryHandler(kind="jitpack"),)

    def is_available(self, ctx: Context) -> tuple[bool, str | None]:
        if ctx.options.offline:
            return False, "remote repositories are disabled in offline mode"
        return True, None

    def from_spec(self, spec: RepositorySpec, ctx: Context) -> JitPackResolver:
        base_url = spec.url or JITPACK_URL
        if not base_url.startswith(("http://", "https://")):
            raise ValueError("jitpack repository 'url' must be http(s) if present")
        return JitPackResolver(name=spec.name or "jitpack", base_url=base_url, transport=self.transport)


PLUGIN = JitPackRepositoryPlugin()
