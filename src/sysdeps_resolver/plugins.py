"""Map Gradle plugin ids to installed plugin artifacts by naming convention."""

from __future__ import annotations

import logging

from sysdeps_resolver.finder import PomFinder
from sysdeps_resolver.models import MavenCoordinate
from sysdeps_resolver.pom import PomParser
from sysdeps_resolver.verifier import FileSystemArtifactVerifier


logger = logging.getLogger(__name__)

PLUGIN_MARKER_SUFFIX = ".gradle.plugin"
CORE_PLUGIN_PREFIX = "org.gradle."


def _conventional_names(base: str) -> list[str]:
    return [
        f"{base}-plugin",
        f"gradle-{base}",
        f"gradle-{base}-plugin",
        f"{base}-gradle-plugin",
        f"gradle-plugin-{base}",
        f"{base}-gradle",
    ]


def plugin_artifact_candidates(plugin_id: str) -> list[str]:
    """Return artifactIds worth trying for `plugin_id`, most likely first.

    For `com.example.shadow` the list starts with the id itself and the
    marker name `com.example.shadow.gradle.plugin`, continues with names
    built from `shadow` (`shadow-plugin`, `gradle-shadow`, ...) and ends
    with the same names built from the domain-stripped `example-shadow`.
    """
    last_segment = plugin_id.rsplit(".", 1)[-1]
    candidates = [plugin_id, plugin_id + PLUGIN_MARKER_SUFFIX]
    candidates.extend(_conventional_names(last_segment))

    if "." in plugin_id:
        remainder = plugin_id.split(".", 1)[1].replace(".", "-")
        candidates.append(remainder)
        candidates.extend(_conventional_names(remainder))

    return list(dict.fromkeys(candidates))


def is_core_plugin(plugin_id: str) -> bool:
    """Built-in plugins (`java`, `org.gradle.*`) are never looked up on disk."""
    return plugin_id.startswith(CORE_PLUGIN_PREFIX) or "." not in plugin_id


class PluginArtifactMatcher:
    """Find the installed artifact implementing a plugin id.

    Candidates from `plugin_artifact_candidates` are looked up under
    `groupId = plugin_id`; the first one whose POM is found and whose jar is
    installed wins. Failing that, the first POM of the group whose artifactId
    mentions "gradle" or "plugin" is used.
    """

    def __init__(
        self,
        finder: PomFinder,
        verifier: FileSystemArtifactVerifier,
        parser: PomParser,
    ) -> None:
        self.finder = finder
        self.verifier = verifier
        self.parser = parser

    def find(self, plugin_id: str) -> MavenCoordinate | None:
        for artifact_id in plugin_artifact_candidates(plugin_id):
            coordinate = self.finder.find(plugin_id, artifact_id)
            if coordinate is not None and self.verifier.exists(coordinate):
                logger.debug("Plugin %s matched %s", plugin_id, coordinate.compact())
                return coordinate

        for coordinate in self.finder.find_all_for_group(plugin_id):
            artifact_id = coordinate.artifact_id or ""
            if "gradle" in artifact_id or "plugin" in artifact_id:
                logger.debug("Plugin %s matched by group scan: %s", plugin_id, coordinate.compact())
                return coordinate

        return None

    def expand(self, coordinate: MavenCoordinate) -> MavenCoordinate | None:
        """Follow a plugin marker POM to the artifact it points at.

        Markers are POM-packaged and depend on the real implementation,
        sometimes through another marker. Each marker is followed once.
        """
        seen: set[str] = set()
        current: MavenCoordinate | None = coordinate

        while current is not None and current.is_bom():
            if current.compact() in seen or current.pom_path is None:
                return None
            seen.add(current.compact())

            target: MavenCoordinate | None = None
            for dependency in self.parser.parse_dependencies(current.pom_path):
                if not dependency.is_bom():
                    return dependency
                if target is None:
                    target = self.finder.find(dependency.group_id, dependency.artifact_id)
            current = target

        return current

    def resolve(self, plugin_id: str) -> MavenCoordinate | None:
        """Return the implementation artifact for `plugin_id`, or None."""
        if is_core_plugin(plugin_id):
            logger.info("Skipping core plugin: %s", plugin_id)
            return None

        coordinate = self.find(plugin_id)
        if coordinate is None or not coordinate.is_valid():
            logger.warning("Plugin not resolved: %s", plugin_id)
            return None

        if coordinate.is_bom():
            expanded = self.expand(coordinate)
            if expanded is None:
                logger.warning("Plugin marker %s leads to no artifact", coordinate.compact())
            return expanded

        logger.info("Resolved plugin: %s -> %s", plugin_id, coordinate.compact())
        return coordinate
