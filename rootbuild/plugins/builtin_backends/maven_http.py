from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from rootbuild.manifest import Coordinate

USER_AGENT = "rootbuild/0.1 (+https://maven.apache.org/repository/layout.html)"
DEFAULT_TIMEOUT_SECONDS = 15.0


def build_client(
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    return httpx.Client(
        timeout=httpx.Timeout(timeout),
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT},
        transport=transport,
    )


class MavenLookupError(Exception):
    pass


@dataclass(frozen=True)
class HttpMavenBackend:
    base_url: str
    logger: logging.Logger
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    transport: httpx.BaseTransport | None = None

    def pom_url(self, coordinate: Coordinate) -> str:
        return self.base_url.rstrip("/") + "/" + coordinate.pom_path()

    def exists(self, coordinate: Coordinate) -> bool:
        url = self.pom_url(coordinate)
        self.logger.debug("HEAD %s", url)
        try:
            with build_client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.head(url)
                if resp.status_code == 405:
                    # Some mirrors reject HEAD; a GET of a POM is small.
                    resp = client.get(url)
        except httpx.HTTPError as e:
            raise MavenLookupError(f"{type(e).__name__} for {url}: {e}") from e

        if resp.status_code == 200:
            return True
        if resp.status_code == 404:
            return False
        raise MavenLookupError(f"Unexpected HTTP {resp.status_code} for {url}")
