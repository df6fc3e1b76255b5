import pytest

from conftest import manifest_from
from rootbuild.manifest import default_manifest, interpolate


def test_default_manifest_matches_android_root_build():
    manifest = default_manifest()

    assert [r.kind for r in manifest.buildscript_repositories] == ["google", "mavenCentral"]
    assert [r.kind for r in manifest.project_repositories] == ["google", "mavenCentral"]
    assert [str(e.coordinate) for e in manifest.classpath] == [
        "com.android.tools.build:gradle:8.3.0",
        "com.google.gms:google-services:4.4.0",
        "org.jetbrains.kotlin:kotlin-gradle-plugin:2.1.0",
    ]
    assert manifest.build_dir == "../build"
    assert [p.path for p in manifest.projects] == [":app"]
    assert manifest.subproject_evaluation_depends_on == (":app",)


def test_kotlin_entry_keeps_reference_to_version_constant():
    kotlin = default_manifest().classpath[2]

    assert kotlin.declared == "org.jetbrains.kotlin:kotlin-gradle-plugin:$kotlin_version"
    assert kotlin.references == ("kotlin_version",)


def test_entries_sharing_a_constant_resolve_to_the_same_version():
    manifest = manifest_from(
        {
            "ext": {"kotlin_version": "2.1.0"},
            "buildscript": {
                "classpath": [
                    "org.jetbrains.kotlin:kotlin-gradle-plugin:$kotlin_version",
                    "org.jetbrains.kotlin:kotlin-serialization:${kotlin_version}",
                    "com.google.gms:google-services:4.4.0",
                ]
            },
        }
    )

    sharing = [e for e in manifest.classpath if "kotlin_version" in e.references]
    assert len(sharing) == 2
    assert {e.coordinate.version for e in sharing} == {manifest.extras["kotlin_version"]}


def test_undefined_reference_is_rejected():
    with pytest.raises(ValueError, match=r"Undefined reference \$agp_version"):
        manifest_from({"buildscript": {"classpath": ["com.android.tools.build:gradle:$agp_version"]}})


def test_only_version_may_reference_extras():
    with pytest.raises(ValueError, match="only the version"):
        manifest_from(
            {
                "ext": {"g": "com.example"},
                "buildscript": {"classpath": ["$g:thing:1.0"]},
            }
        )


@pytest.mark.parametrize("bad", ["com.example:thing", "com.example::1.0", "a:b:c:d"])
def test_malformed_coordinates(bad):
    with pytest.raises(ValueError, match="group:name:version"):
        manifest_from({"buildscript": {"classpath": [bad]}})


def test_table_coordinate():
    manifest = manifest_from(
        {
            "ext": {"v": "4.4.0"},
            "buildscript": {
                "classpath": [{"group": "com.google.gms", "name": "google-services", "version": "$v"}]
            },
        }
    )

    entry = manifest.classpath[0]
    assert str(entry.coordinate) == "com.google.gms:google-services:4.4.0"
    assert entry.coordinate.pom_path() == "com/google/gms/google-services/4.4.0/google-services-4.4.0.pom"


def test_duplicate_classpath_module_is_rejected():
    with pytest.raises(ValueError, match="Duplicate classpath entry"):
        manifest_from(
            {
                "buildscript": {
                    "classpath": [
                        "com.android.tools.build:gradle:8.3.0",
                        "com.android.tools.build:gradle:8.4.0",
                    ]
                }
            }
        )


def test_extras_must_be_strings():
    with pytest.raises(ValueError, match="ext.kotlin_version must be a non-empty string"):
        manifest_from({"ext": {"kotlin_version": 2.1}})


def test_repository_declarations():
    manifest = manifest_from(
        {
            "buildscript": {
                "repositories": [
                    "google",
                    {"kind": "maven", "url": "https://jitpack.io"},
                    {"kind": "mavenLocal", "name": "m2"},
                ]
            }
        }
    )

    assert [r.label for r in manifest.buildscript_repositories] == [
        "google",
        "maven(https://jitpack.io)",
        "m2",
    ]

    with pytest.raises(ValueError, match="requires 'kind'"):
        manifest_from({"buildscript": {"repositories": [{"url": "https://jitpack.io"}]}})


def test_projects_are_normalized_and_unique():
    manifest = manifest_from(
        {"project": ["app", {"path": ":core:ui", "evaluation_depends_on": "app"}]}
    )

    assert [p.path for p in manifest.projects] == [":app", ":core:ui"]
    assert manifest.projects[1].name == "ui"
    assert manifest.projects[1].evaluation_depends_on == (":app",)
    assert manifest.project(":core:ui") is manifest.projects[1]
    assert manifest.project(":missing") is None

    with pytest.raises(ValueError, match="Duplicate project: :app"):
        manifest_from({"project": ["app", ":app"]})


def test_interpolate_both_forms():
    extras = {"a": "1", "b": "2"}

    assert interpolate("$a.${b}", extras) == "1.2"
    assert interpolate("plain", extras) == "plain"
