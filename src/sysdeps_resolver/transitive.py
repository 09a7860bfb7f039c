"""Breadth-first transitive closure over installed POMs."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from pydantic import BaseModel, Field

from sysdeps_resolver.finder import PomFinder
from sysdeps_resolver.models import MavenCoordinate, MavenScope, SkipReason
from sysdeps_resolver.pom import PomParser
from sysdeps_resolver.properties import has_placeholder
from sysdeps_resolver.state import ResolutionState
from sysdeps_resolver.verifier import FileSystemArtifactVerifier


logger = logging.getLogger(__name__)


def merge_coordinate(existing: MavenCoordinate | None, incoming: MavenCoordinate) -> MavenCoordinate:
    """Reconcile two appearances of the same identity.

    The stronger scope wins (compile > runtime > provided > test). The
    result stays test-only if either appearance is reachable from main code.
    """
    if existing is None:
        return incoming
    stronger = existing
    if incoming.maven_scope().priority < existing.maven_scope().priority:
        stronger = incoming
    test_context = existing.test_context and incoming.test_context
    if stronger.test_context == test_context:
        return stronger
    return stronger.model_copy(update={"test_context": test_context})


def has_unresolved_placeholder(coordinate: MavenCoordinate) -> bool:
    return (
        has_placeholder(coordinate.group_id)
        or has_placeholder(coordinate.artifact_id)
        or has_placeholder(coordinate.version)
    )


class TransitiveResult(BaseModel):
    """Outcome of a transitive walk.

    Attributes:
        resolved: Accepted transitive dependencies by `groupId:artifactId`,
            carrying the scope they were declared with.
        provided: Provided-scope dependencies that are already known system
            artifacts; recorded for compile visibility, never traversed.
        true_transitive: Identities that are neither roots nor BOM-managed.
        skipped: Identity -> reason it was not accepted.
        not_found: Identities whose POM could not be located.
        edges: `(requester, dependency)` identity pairs for every accepted edge.
        processed: Every identity expanded during the walk.
    """

    resolved: dict[str, MavenCoordinate] = Field(default_factory=dict)
    provided: dict[str, MavenCoordinate] = Field(default_factory=dict)
    true_transitive: set[str] = Field(default_factory=set)
    skipped: dict[str, SkipReason] = Field(default_factory=dict)
    not_found: set[str] = Field(default_factory=set)
    edges: list[tuple[str, str]] = Field(default_factory=list)
    processed: set[str] = Field(default_factory=set)


class TransitiveResolver:
    """Walk dependencies of resolved roots, applying Maven scope rules.

    Per declared dependency, in order:

    - `test` scope: skipped ("Test").
    - `${...}` left in groupId, artifactId or version: skipped ("Placeholder"),
      unless the only placeholder is in the version and a BOM manages the
      identity, in which case the managed version is used.
    - `pom` packaging: skipped ("BOM").
    - `provided` scope: recorded when already a known artifact, otherwise
      skipped ("Provided"); never traversed.
    - otherwise the POM is located and the jar verified ("Not found",
      "Artifact missing"); a located BOM is skipped ("BOM"). Accepted records
      carry the declared scope and the requester's test context.
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

    def resolve(
        self,
        roots: Mapping[str, MavenCoordinate],
        managed_versions: Mapping[str, str] | None = None,
        bom_managed: Iterable[str] | None = None,
    ) -> TransitiveResult:
        """Compute the transitive closure of `roots`.

        Args:
            roots: Already resolved artifacts keyed by identity. Roots without a
                POM path are kept as known artifacts but not expanded.
            managed_versions: BOM-managed `groupId:artifactId -> version`.
            bom_managed: Identities managed by a BOM; they never count as true
                transitives. Defaults to the keys of `managed_versions`.
        """
        managed_versions = managed_versions or {}
        bom_identities = set(bom_managed) if bom_managed is not None else set(managed_versions)
        root_keys = set(roots)

        state = ResolutionState()
        result = TransitiveResult()

        for key, root in roots.items():
            if root.pom_path is None:
                state.processed.add(key)
                continue
            if state.enqueue(root):
                logger.debug("Queued root %s", key)

        logger.info("Processing transitive dependencies of %d root(s)", len(state.queue))

        while state.queue:
            current = state.queue.popleft()
            if current.pom_path is None:
                continue
            logger.debug("Expanding %s", current.compact())

            for dependency in self.parser.parse_dependencies(current.pom_path):
                self._visit(current, dependency, roots, managed_versions, bom_identities, root_keys, state, result)

        result.resolved = state.resolved
        result.skipped = state.skipped
        result.not_found = state.not_found
        result.processed = state.processed
        logger.info(
            "Transitive walk done: %d resolved, %d new, %d skipped",
            len(result.resolved),
            len(result.true_transitive),
            len(result.skipped),
        )
        return result

    def _visit(
        self,
        current: MavenCoordinate,
        dependency: MavenCoordinate,
        roots: Mapping[str, MavenCoordinate],
        managed_versions: Mapping[str, str],
        bom_identities: set[str],
        root_keys: set[str],
        state: ResolutionState,
        result: TransitiveResult,
    ) -> None:
        key = dependency.key()
        scope = dependency.maven_scope()

        if scope is MavenScope.TEST:
            logger.debug("Skipping test dependency %s of %s", key, current.key())
            state.skip(key, SkipReason.TEST)
            return

        if has_unresolved_placeholder(dependency):
            dependency = self._from_managed(dependency, managed_versions)
            if dependency is None:
                logger.warning("Skipping %s: unresolved placeholder", key)
                state.skip(key, SkipReason.PLACEHOLDER)
                return

        if dependency.is_bom():
            state.skip(key, SkipReason.BOM)
            return

        if scope is MavenScope.PROVIDED:
            known = state.resolved.get(key) or roots.get(key)
            if known is None:
                logger.debug("Provided dependency %s is not a known system artifact", key)
                state.skip(key, SkipReason.PROVIDED)
                return
            result.provided[key] = known.model_copy(
                update={"scope": MavenScope.PROVIDED.value, "test_context": current.test_context}
            )
            result.edges.append((current.key(), key))
            return

        located = self.finder.find(dependency.group_id, dependency.artifact_id)
        if located is None:
            logger.warning("Dependency not found: %s (required by %s)", key, current.key())
            state.mark_not_found(key)
            return

        if not self.verifier.exists(located):
            logger.warning("Artifact missing for %s", located.compact())
            state.skip(key, SkipReason.ARTIFACT_MISSING)
            return

        if located.is_bom():
            state.skip(key, SkipReason.BOM)
            return

        accepted = located.model_copy(
            update={
                "scope": dependency.scope,
                "packaging": dependency.packaging,
                "test_context": current.test_context,
            }
        )
        state.resolved[key] = merge_coordinate(state.resolved.get(key), accepted)
        result.edges.append((current.key(), key))

        if key not in root_keys and key not in bom_identities:
            if key not in result.true_transitive:
                logger.info("New transitive dependency %s", accepted.compact())
            result.true_transitive.add(key)

        state.enqueue(accepted)

    def _from_managed(
        self,
        dependency: MavenCoordinate,
        managed_versions: Mapping[str, str],
    ) -> MavenCoordinate | None:
        if has_placeholder(dependency.group_id) or has_placeholder(dependency.artifact_id):
            return None
        version = managed_versions.get(dependency.key())
        if not version or has_placeholder(version):
            return None
        return dependency.model_copy(update={"version": version})
