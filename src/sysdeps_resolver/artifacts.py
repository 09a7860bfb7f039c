"""Resolve a build's declared `groupId:artifactId` keys to installed artifacts."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable, Mapping

from pydantic import BaseModel, Field

from sysdeps_resolver.bom import split_identity
from sysdeps_resolver.finder import PomFinder
from sysdeps_resolver.models import MavenCoordinate, MavenScope, SkipReason
from sysdeps_resolver.plugins import PLUGIN_MARKER_SUFFIX, PluginArtifactMatcher
from sysdeps_resolver.pom import PomParser
from sysdeps_resolver.properties import has_placeholder
from sysdeps_resolver.state import ResolutionState
from sysdeps_resolver.verifier import FileSystemArtifactVerifier


logger = logging.getLogger(__name__)

# Dependencies of a found artifact that are pulled in alongside it.
_FOLLOWED_SCOPES = (MavenScope.PROVIDED, MavenScope.RUNTIME)


class ArtifactResolution(BaseModel):
    """Installed artifacts for the requested keys.

    `artifacts` is keyed by the requested key, which for plugin markers is
    the `<pluginId>:<pluginId>.gradle.plugin` key rather than the identity of
    the artifact found.
    """

    artifacts: dict[str, MavenCoordinate] = Field(default_factory=dict)
    not_found: set[str] = Field(default_factory=set)
    skipped: dict[str, SkipReason] = Field(default_factory=dict)


def is_plugin_marker_key(key: str) -> bool:
    return key.endswith(PLUGIN_MARKER_SUFFIX)


def filter_runtime(artifacts: Mapping[str, MavenCoordinate]) -> dict[str, MavenCoordinate]:
    """Drop test-scoped and POM-packaged entries."""
    return {
        key: coordinate
        for key, coordinate in artifacts.items()
        if coordinate.maven_scope() is not MavenScope.TEST and not coordinate.is_bom()
    }


class SystemArtifactResolver:
    """Breadth-first lookup of requested keys in the local POM and jar roots.

    Keys ending in `.gradle.plugin` go through the plugin matcher; keys with a
    `${...}` placeholder are skipped. For every artifact found, its provided
    and runtime dependencies are queued as well, so they resolve against the
    system even though the build never names them.
    """

    def __init__(
        self,
        finder: PomFinder,
        verifier: FileSystemArtifactVerifier,
        parser: PomParser,
        plugin_matcher: PluginArtifactMatcher | None = None,
    ) -> None:
        self.finder = finder
        self.verifier = verifier
        self.parser = parser
        self.plugin_matcher = plugin_matcher or PluginArtifactMatcher(finder, verifier, parser)

    def resolve(self, identities: Iterable[str]) -> ArtifactResolution:
        state = ResolutionState()
        pending: deque[str] = deque(dict.fromkeys(identities))
        queued = set(pending)

        while pending:
            key = pending.popleft()
            if key in state.processed:
                continue
            state.processed.add(key)

            coordinate = self._resolve_key(key, state)
            if coordinate is None:
                continue
            state.resolved[key] = coordinate
            logger.info("Found system artifact %s", coordinate.compact())

            if coordinate.pom_path is None:
                continue
            for dependency in self.parser.parse_dependencies(coordinate.pom_path):
                if dependency.maven_scope() not in _FOLLOWED_SCOPES:
                    continue
                dep_key = dependency.key()
                if dep_key in state.resolved or dep_key in queued:
                    continue
                logger.debug("Queueing %s dependency %s of %s", dependency.scope, dep_key, key)
                queued.add(dep_key)
                pending.append(dep_key)

        return ArtifactResolution(
            artifacts=state.resolved,
            not_found=state.not_found,
            skipped=state.skipped,
        )

    def _resolve_key(self, key: str, state: ResolutionState) -> MavenCoordinate | None:
        parts = split_identity(key)
        if parts is None:
            logger.debug("Ignoring malformed dependency key %r", key)
            return None
        group_id, artifact_id = parts

        if is_plugin_marker_key(key):
            coordinate = self.plugin_matcher.find(group_id)
            if coordinate is None or not self.verifier.exists(coordinate):
                logger.warning("Plugin artifact not found for %s", key)
                state.mark_not_found(key)
                return None
            return coordinate

        if has_placeholder(group_id) or has_placeholder(artifact_id):
            state.skip(key, SkipReason.PLACEHOLDER)
            return None

        coordinate = self.finder.find(group_id, artifact_id)
        if coordinate is None:
            logger.warning("No system POM for %s", key)
            state.mark_not_found(key)
            return None
        if not self.verifier.exists(coordinate):
            logger.warning("POM found but artifact missing for %s", key)
            state.not_found.add(key)
            state.skip(key, SkipReason.ARTIFACT_MISSING)
            return None
        return coordinate
