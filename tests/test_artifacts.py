from __future__ import annotations

from sysdeps_resolver.artifacts import SystemArtifactResolver, filter_runtime
from sysdeps_resolver.finder import DirectoryPomFinder
from sysdeps_resolver.models import MavenCoordinate, SkipReason
from sysdeps_resolver.pom import PomParser
from sysdeps_resolver.verifier import FileSystemArtifactVerifier


def _resolver(repo) -> SystemArtifactResolver:
    parser = PomParser()
    finder = DirectoryPomFinder([repo.poms], parser)
    return SystemArtifactResolver(finder, FileSystemArtifactVerifier([repo.jars]), parser)


def test_declared_keys_are_resolved(repo) -> None:
    repo.library("org.slf4j", "slf4j-api", "2.0.12")

    result = _resolver(repo).resolve(["org.slf4j:slf4j-api", "org.example:missing"])

    assert result.artifacts["org.slf4j:slf4j-api"].version == "2.0.12"
    assert result.not_found == {"org.example:missing"}
    assert result.skipped == {"org.example:missing": SkipReason.NOT_FOUND}


def test_pom_without_jar_is_not_an_artifact(repo) -> None:
    repo.pom("nojar.pom", "g", "nojar", "1")

    result = _resolver(repo).resolve(["g:nojar"])

    assert result.artifacts == {}
    assert result.skipped == {"g:nojar": SkipReason.ARTIFACT_MISSING}


def test_placeholder_keys_are_skipped(repo) -> None:
    result = _resolver(repo).resolve(["${group}:lib"])

    assert result.artifacts == {}
    assert result.skipped == {"${group}:lib": SkipReason.PLACEHOLDER}
    assert result.not_found == set()


def test_provided_and_runtime_dependencies_are_followed(repo) -> None:
    repo.library(
        "g",
        "app",
        "1",
        dependencies=(("g", "servlet", "4", "provided"), ("g", "driver", "2", "runtime"), ("g", "compile-dep", "1")),
    )
    repo.library("g", "servlet", "4")
    repo.library("g", "driver", "2")
    repo.library("g", "compile-dep", "1")

    result = _resolver(repo).resolve(["g:app"])

    assert set(result.artifacts) == {"g:app", "g:servlet", "g:driver"}


def test_plugin_marker_key_uses_plugin_matcher(repo) -> None:
    repo.pom("gradle-shadow-plugin.pom", "com.example.shadow", "gradle-shadow-plugin", "8.1")
    repo.jar("gradle-shadow-plugin-8.1.jar")

    key = "com.example.shadow:com.example.shadow.gradle.plugin"
    result = _resolver(repo).resolve([key])

    assert result.artifacts[key].artifact_id == "gradle-shadow-plugin"


def test_filter_runtime_drops_test_and_pom_entries() -> None:
    artifacts = {
        "g:lib": MavenCoordinate(group_id="g", artifact_id="lib", version="1"),
        "g:junit": MavenCoordinate(group_id="g", artifact_id="junit", version="1", scope="test"),
        "g:bom": MavenCoordinate(group_id="g", artifact_id="bom", version="1", packaging="pom"),
    }

    assert set(filter_runtime(artifacts)) == {"g:lib"}
