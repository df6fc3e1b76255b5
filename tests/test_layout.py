import pytest

from conftest import manifest_from
from rootbuild.core import BuildLayout
from rootbuild.manifest import default_manifest
from rootbuild.ordering import configure_subprojects


def test_default_build_dir_is_sibling_of_project_dir(tmp_path, project_dir):
    layout = BuildLayout.from_manifest(project_dir, default_manifest())

    assert layout.project_dir == project_dir
    assert layout.root_build_dir == tmp_path / "build"


def test_subproject_dirs_live_under_the_shared_root(tmp_path, make_ctx):
    manifest = manifest_from(
        {
            "project": ["app", "feature", ":core:data"],
            "subprojects": {"evaluation_depends_on": [":app"]},
        }
    )
    ctx = make_ctx(manifest)

    configs = configure_subprojects(ctx)

    assert {c.build_dir.parent for c in configs} == {ctx.layout.root_build_dir}
    assert ctx.layout.root_build_dir == tmp_path / "build"
    assert [c.build_dir.name for c in configs] == ["app", "feature", "data"]
    assert all(c.repositories == manifest.project_repositories for c in configs)


def test_absolute_build_dir(tmp_path, project_dir):
    manifest = manifest_from({"build_dir": str(tmp_path / "out")})

    layout = BuildLayout.from_manifest(project_dir, manifest)

    assert layout.root_build_dir == tmp_path / "out"
    assert layout.subproject_build_dir(":app") == tmp_path / "out" / "app"


def test_subproject_name_cannot_escape_root(project_dir):
    layout = BuildLayout.from_manifest(project_dir, default_manifest())

    with pytest.raises(ValueError, match="Invalid subproject name"):
        layout.subproject_build_dir("..")
