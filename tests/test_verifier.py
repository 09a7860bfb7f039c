from __future__ import annotations

from pathlib import Path

import pytest

from sysdeps_resolver.models import MavenCoordinate
from sysdeps_resolver.verifier import FileSystemArtifactVerifier, looks_like_version, matches_jar_name


def _coord(artifact_id: str = "foo", version: str | None = "1.2.3", packaging: str = "jar") -> MavenCoordinate:
    return MavenCoordinate(group_id="org.example", artifact_id=artifact_id, version=version, packaging=packaging)


def _touch(directory: Path, name: str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_bytes(b"")
    return path


def test_versioned_jar_is_found(tmp_path: Path) -> None:
    _touch(tmp_path, "foo-1.2.3.jar")

    assert FileSystemArtifactVerifier([tmp_path]).exists(_coord())


def test_non_version_suffix_is_not_a_match(tmp_path: Path) -> None:
    _touch(tmp_path, "foo-bar.jar")

    assert not FileSystemArtifactVerifier([tmp_path]).exists(_coord())


def test_plain_jar_is_found(tmp_path: Path) -> None:
    _touch(tmp_path, "foo.jar")

    assert FileSystemArtifactVerifier([tmp_path]).exists(_coord(version="9.9"))


def test_other_installed_version_is_accepted(tmp_path: Path) -> None:
    _touch(tmp_path / "sub", "foo-2.0.jar")

    assert FileSystemArtifactVerifier([tmp_path]).exists(_coord())


def test_scan_depth_is_bounded(tmp_path: Path) -> None:
    _touch(tmp_path / "a" / "b" / "c", "foo-1.2.3.jar")

    assert not FileSystemArtifactVerifier([tmp_path], max_depth=3).exists(_coord())
    assert FileSystemArtifactVerifier([tmp_path], max_depth=4).exists(_coord())


def test_pom_packaging_is_always_present(tmp_path: Path) -> None:
    assert FileSystemArtifactVerifier([tmp_path]).exists(_coord(packaging="pom"))


def test_invalid_coordinate_is_never_present(tmp_path: Path) -> None:
    _touch(tmp_path, "foo.jar")
    verifier = FileSystemArtifactVerifier([tmp_path])

    assert not verifier.exists(None)
    assert not verifier.exists(_coord(version=None))


def test_missing_root_is_tolerated(tmp_path: Path) -> None:
    _touch(tmp_path / "jars", "foo.jar")

    assert FileSystemArtifactVerifier([tmp_path / "missing", tmp_path / "jars"]).exists(_coord())


@pytest.mark.parametrize(
    ("file_name", "expected"),
    [
        ("foo.jar", True),
        ("foo-1.2.3.jar", True),
        ("foo-jdk8.jar", True),
        ("foo-bar.jar", False),
        ("foobar-1.0.jar", False),
        ("foo-1.2.3.pom", False),
    ],
)
def test_matches_jar_name(file_name: str, expected: bool) -> None:
    assert matches_jar_name(file_name, "foo", "1.2.3") is expected


def test_looks_like_version_is_loose() -> None:
    assert looks_like_version("2")
    assert looks_like_version("jdk8")
    assert not looks_like_version("api")
