from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class CachedResolution:
    repository: str
    location: str


class ResolutionCache:
    """
    Remembers where a coordinate was last found, keyed by coordinate and repository location.

    Only hits are stored; a miss is always re-checked on the next run.
    """

    def __init__(self, path: Path | None, logger) -> None:
        self._path = path
        self._logger: logging.Logger = logger
        self._data: dict[str, dict] = {}
        self._loaded = False

    @staticmethod
    def _key(coordinate: str, repository_location: str) -> str:
        return f"{coordinate}@{repository_location}"

    def load(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        if self._path is None or not self._path.exists():
            self._data = {}
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8")) or {}
        except (OSError, ValueError) as e:
            self._logger.warning("Failed to read resolution cache %s: %s", self._path, e)
            data = {}
        self._data = data if isinstance(data, dict) else {}

    def get(self, *, coordinate: str, repository_location: str) -> CachedResolution | None:
        self.load()
        raw = self._data.get("resolved", {}).get(self._key(coordinate, repository_location))
        if not isinstance(raw, dict):
            return None
        repository = raw.get("repository")
        location = raw.get("location")
        if isinstance(repository, str) and isinstance(location, str):
            return CachedResolution(repository=repository, location=location)
        return None

    def put(self, *, coordinate: str, repository_location: str, repository: str, location: str) -> None:
        self.load()
        self._data.setdefault("resolved", {})[self._key(coordinate, repository_location)] = {
            "repository": repository,
            "location": location,
        }
        if self._path is None:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(self._data, indent=2, sort_keys=True) + "\n", encoding="utf-8")
        except OSError as e:
            self._logger.warning("Failed to write resolution cache %s: %s", self._path, e)
            return
        self._logger.debug("Cached resolution: %s in %s", coordinate, repository)
