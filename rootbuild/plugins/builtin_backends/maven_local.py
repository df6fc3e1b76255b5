from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from rootbuild.manifest import Coordinate


@dataclass(frozen=True)
class LocalMavenBackend:
    root: Path
    logger: logging.Logger

    def pom_file(self, coordinate: Coordinate) -> Path:
        return self.root / coordinate.pom_path()

    def exists(self, coordinate: Coordinate) -> bool:
        pom = self.pom_file(coordinate)
        self.logger.debug("CHECK %s", pom)
        return pom.is_file()
