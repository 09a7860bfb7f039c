"""Pytest configuration and fixtures for sysdeps-resolver tests."""
from __future__ import annotations

from pathlib import Path

import pytest

from sysdeps_resolver.config import ResolverConfig


def _xml_dependency(dep: tuple) -> str:
    group_id, artifact_id, *rest = dep
    version, scope, type_ = (list(rest) + [None, None, None])[:3]
    parts = [f"<groupId>{group_id}</groupId>", f"<artifactId>{artifact_id}</artifactId>"]
    if version is not None:
        parts.append(f"<version>{version}</version>")
    if scope is not None:
        parts.append(f"<scope>{scope}</scope>")
    if type_ is not None:
        parts.append(f"<type>{type_}</type>")
    return "<dependency>" + "".join(parts) + "</dependency>"


def pom_xml(
    group_id: str | None,
    artifact_id: str,
    version: str | None,
    *,
    packaging: str | None = None,
    parent: tuple[str, str, str] | None = None,
    properties: dict[str, str] | None = None,
    dependencies: tuple = (),
    managed: tuple = (),
) -> str:
    """Render a small POM; dependencies are `(g, a[, version[, scope[, type]]])` tuples."""
    lines = ['<?xml version="1.0" encoding="UTF-8"?>', '<project xmlns="http://maven.apache.org/POM/4.0.0">']
    lines.append("  <modelVersion>4.0.0</modelVersion>")
    if parent is not None:
        pg, pa, pv = parent
        lines.append(f"  <parent><groupId>{pg}</groupId><artifactId>{pa}</artifactId><version>{pv}</version></parent>")
    if group_id is not None:
        lines.append(f"  <groupId>{group_id}</groupId>")
    lines.append(f"  <artifactId>{artifact_id}</artifactId>")
    if version is not None:
        lines.append(f"  <version>{version}</version>")
    if packaging is not None:
        lines.append(f"  <packaging>{packaging}</packaging>")
    if properties:
        lines.append("  <properties>")
        for key, value in properties.items():
            lines.append(f"    <{key}>{value}</{key}>")
        lines.append("  </properties>")
    if managed:
        lines.append("  <dependencyManagement><dependencies>")
        lines.extend("    " + _xml_dependency(d) for d in managed)
        lines.append("  </dependencies></dependencyManagement>")
    if dependencies:
        lines.append("  <dependencies>")
        lines.extend("    " + _xml_dependency(d) for d in dependencies)
        lines.append("  </dependencies>")
    lines.append("</project>")
    return "\n".join(lines) + "\n"


class LocalRepo:
    """A fake system layout: `poms/` with installed POMs and `jars/` with jars."""

    def __init__(self, root: Path) -> None:
        self.poms = root / "poms"
        self.jars = root / "jars"
        self.poms.mkdir()
        self.jars.mkdir()

    def pom(self, file_name: str, *args, subdir: str | None = None, **kwargs) -> Path:
        directory = self.poms / subdir if subdir else self.poms
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / file_name
        path.write_text(pom_xml(*args, **kwargs), encoding="utf-8")
        return path

    def jar(self, file_name: str, subdir: str | None = None) -> Path:
        directory = self.jars / subdir if subdir else self.jars
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / file_name
        path.write_bytes(b"PK\x03\x04")
        return path

    def library(self, group_id: str, artifact_id: str, version: str, **kwargs) -> Path:
        """Install `artifactId.pom` plus `artifactId.jar`."""
        self.jar(f"{artifact_id}.jar")
        return self.pom(f"{artifact_id}.pom", group_id, artifact_id, version, **kwargs)

    def config(self, **overrides) -> ResolverConfig:
        values = {"poms_dirs": [self.poms], "jars_dirs": [self.jars], "workers": 1}
        values.update(overrides)
        return ResolverConfig(**values)


@pytest.fixture
def repo(tmp_path: Path) -> LocalRepo:
    return LocalRepo(tmp_path)


@pytest.fixture
def write_pom():
    """Expose the POM renderer to tests that lay out files themselves."""
    return pom_xml
