import os

import pytest

from conftest import publish
from rootbuild.cli import main

needs_permissions = pytest.mark.skipif(
    hasattr(os, "geteuid") and os.geteuid() == 0,
    reason="root ignores directory permissions",
)

LOCAL_BUILD = """
description = "Offline sample"

[ext]
kotlin_version = "2.1.0"

[buildscript]
repositories = [{ kind = "maven", url = "../m2", name = "local" }]
classpath = [
  "com.android.tools.build:gradle:8.3.0",
  "org.jetbrains.kotlin:kotlin-gradle-plugin:$kotlin_version",
]

[subprojects]
evaluation_depends_on = ":app"

[[project]]
name = "feature"

[[project]]
name = "app"
"""


def _write_local_build(tmp_path, project_dir):
    (project_dir / "rootbuild.toml").write_text(LOCAL_BUILD, encoding="utf-8")
    publish(tmp_path / "m2", "com.android.tools.build:gradle:8.3.0")
    publish(tmp_path / "m2", "org.jetbrains.kotlin:kotlin-gradle-plugin:2.1.0")


def test_clean_fresh_checkout_exits_zero(tmp_path, project_dir):
    assert main(["clean", "--project-dir", str(project_dir)]) == 0
    assert main(["clean", "--project-dir", str(project_dir)]) == 0
    assert not (tmp_path / "build").exists()


def test_clean_removes_build_dir(tmp_path, project_dir, capsys):
    nested = tmp_path / "build" / "app" / "outputs" / "app.apk"
    nested.parent.mkdir(parents=True)
    nested.write_text("x", encoding="utf-8")

    assert main(["clean", "--project-dir", str(project_dir)]) == 0

    assert not (tmp_path / "build").exists()
    assert "Deleted build directory" in capsys.readouterr().err


@needs_permissions
def test_clean_permission_denied_exits_nonzero(tmp_path, project_dir, capsys):
    locked = tmp_path / "build" / "app"
    (locked / "outputs").mkdir(parents=True)
    (locked / "outputs" / "app.apk").write_text("x", encoding="utf-8")
    locked.chmod(0o555)
    try:
        code = main(["clean", "--project-dir", str(project_dir)])
    finally:
        locked.chmod(0o755)

    assert code == 1
    assert (locked / "outputs" / "app.apk").exists()
    assert "[ERROR] Cannot delete" in capsys.readouterr().err


def test_configure_offline_with_local_repository(tmp_path, project_dir, capsys):
    _write_local_build(tmp_path, project_dir)

    code = main(["configure", "--project-dir", str(project_dir), "--offline", "--no-cache"])

    err = capsys.readouterr().err
    assert code == 0
    assert "- org.jetbrains.kotlin:kotlin-gradle-plugin:2.1.0 from local" in err
    assert err.index(f"- :app -> {tmp_path / 'build' / 'app'}") < err.index(
        f"- :feature -> {tmp_path / 'build' / 'feature'}"
    )
    assert "Resolved 2 classpath artifact(s); configured 2 subproject(s)." in err


def test_configure_resolution_failure_exits_one(project_dir, capsys):
    code = main(["configure", "--project-dir", str(project_dir), "--offline", "--no-cache"])

    assert code == 1
    assert "Could not resolve com.android.tools.build:gradle:8.3.0" in capsys.readouterr().err


def test_configure_cycle_is_a_config_error(tmp_path, project_dir):
    path = tmp_path / "cyclic.json"
    path.write_text(
        '{"project": [{"name": "a", "evaluation_depends_on": ":b"},'
        ' {"name": "b", "evaluation_depends_on": ":a"}]}',
        encoding="utf-8",
    )

    code = main(["configure", "--project-dir", str(project_dir), "--build-file", str(path), "--offline"])

    assert code == 2


def test_invalid_build_file_exits_two(project_dir, capsys):
    (project_dir / "rootbuild.toml").write_text("[buildscript]\nclasspath = ['nope']\n", encoding="utf-8")

    assert main(["clean", "--project-dir", str(project_dir)]) == 2
    assert "Failed to load build file" in capsys.readouterr().err


def test_missing_project_dir_exits_two(tmp_path):
    assert main(["clean", "--project-dir", str(tmp_path / "missing")]) == 2


def test_missing_build_file_exits_two(project_dir, tmp_path):
    assert main(["clean", "--project-dir", str(project_dir), "--build-file", str(tmp_path / "nope.toml")]) == 2


def test_tasks_lists_available_tasks(project_dir, capsys):
    assert main(["tasks", "--project-dir", str(project_dir)]) == 0

    err = capsys.readouterr().err
    assert "clean - Deletes the shared build directory." in err
    assert "configure - " in err


def test_clean_honors_custom_build_dir(project_dir):
    (project_dir / "rootbuild.toml").write_text('build_dir = "out"\n', encoding="utf-8")
    (project_dir / "out" / "app").mkdir(parents=True)

    assert main(["clean", "--project-dir", str(project_dir), "--dry-run"]) == 0
    assert (project_dir / "out" / "app").exists()

    assert main(["clean", "--project-dir", str(project_dir)]) == 0
    assert not (project_dir / "out").exists()


@needs_permissions
def test_clean_unsearchable_build_parent_exits_nonzero(project_dir, capsys):
    (project_dir / "rootbuild.toml").write_text('build_dir = "locked/build"\n', encoding="utf-8")
    locked = project_dir / "locked"
    (locked / "build" / "app").mkdir(parents=True)
    locked.chmod(0o644)
    try:
        code = main(["clean", "--project-dir", str(project_dir)])
    finally:
        locked.chmod(0o755)

    assert code == 1
    assert (locked / "build" / "app").exists()
    assert "[ERROR] Cannot inspect" in capsys.readouterr().err


def test_malformed_plugin_is_a_warning_not_a_crash(tmp_path, project_dir, capsys):
    plugins_dir = tmp_path / "plugins"
    plugins_dir.mkdir()
    (plugins_dir / "half_done.py").write_text("class P:\n    name = 'x'\n\nPLUGIN = P()\n", encoding="utf-8")

    code = main(["tasks", "--project-dir", str(project_dir), "--plugins-dir", str(plugins_dir)])

    err = capsys.readouterr().err
    assert code == 0
    assert "[WARNING] Failed to load plugin" in err
    assert "clean - " in err
