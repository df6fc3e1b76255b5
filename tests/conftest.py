import logging
from pathlib import Path

import pytest

from rootbuild.config_loader import load_build_data
from rootbuild.core import Options, build_context
from rootbuild.manifest import Coordinate, default_manifest, parse_manifest

ROOT = Path(__file__).resolve().parents[1]


def manifest_from(data):
    return parse_manifest(load_build_data(data))


def publish(repo_root: Path, coordinate: str) -> Path:
    """Drop a POM into a Maven-layout directory."""
    group, name, version = coordinate.split(":")
    pom = repo_root / Coordinate(group, name, version).pom_path()
    pom.parent.mkdir(parents=True, exist_ok=True)
    pom.write_text("<project/>\n", encoding="utf-8")
    return pom


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "xdg-cache"))
    monkeypatch.delenv("ROOTBUILD_PLUGINS_DIRS", raising=False)


@pytest.fixture
def logger():
    return logging.getLogger("tests.rootbuild")


@pytest.fixture
def project_dir(tmp_path):
    d = tmp_path / "android"
    d.mkdir()
    return d


@pytest.fixture
def make_ctx(project_dir, logger):
    def _make(manifest=None, *, dry_run=False, offline=False, cache_path=None):
        return build_context(
            project_dir=project_dir,
            manifest=manifest if manifest is not None else default_manifest(),
            options=Options(dry_run=dry_run, offline=offline),
            logger=logger,
            cache_path=cache_path,
        )

    return _make
