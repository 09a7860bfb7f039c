"""Resolution session: wire the resolvers together and run the full pipeline.

A `ResolutionSession` owns every cache used while resolving, so two sessions
never share state. The pipeline is:

1. expand BOMs among the declared dependencies,
2. look up the remaining declarations as installed system artifacts,
3. drop test-scoped and POM-packaged results,
4. mark artifacts only reachable from test declarations,
5. walk transitive dependencies,
6. plan version substitutions for the host build.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Protocol

from pydantic import BaseModel, Field

from sysdeps_resolver.artifacts import SystemArtifactResolver, filter_runtime
from sysdeps_resolver.bom import BomProcessor, BomResult, split_identity
from sysdeps_resolver.cache import PomDataCache
from sysdeps_resolver.config import ResolverConfig
from sysdeps_resolver.finder import DirectoryPomFinder, IndexedPomFinder, PomFinder, PomIndex
from sysdeps_resolver.hierarchy import PomHierarchyLoader
from sysdeps_resolver.models import MavenCoordinate, SkipReason, dependency_key
from sysdeps_resolver.naming import version_sort_key
from sysdeps_resolver.plugins import PluginArtifactMatcher
from sysdeps_resolver.pom import PomParser
from sysdeps_resolver.transitive import TransitiveResolver, merge_coordinate
from sysdeps_resolver.verifier import FileSystemArtifactVerifier


logger = logging.getLogger(__name__)

UNSPECIFIED_VERSION = "(unspecified)"


class SubstitutionReason(str, Enum):
    SYSTEM_OVERRIDE = "System dependency override"
    BOM_MANAGED = "BOM managed version"
    BOM_REMOVAL = "BOM removed from declarations"


class Substitution(BaseModel):
    """Instruction for the host build: replace `key:requested` with `key:target`.

    `target` is None when the declaration should be dropped (processed BOMs).
    """

    key: str
    requested: str | None = None
    target: str | None = None
    reason: SubstitutionReason

    def module(self) -> str | None:
        if self.target is None:
            return None
        return f"{self.key}:{self.target}"

    def describe(self) -> str:
        if self.reason is SubstitutionReason.SYSTEM_OVERRIDE:
            return f"Override version: {self.key}:{self.requested} -> {self.target}"
        if self.reason is SubstitutionReason.BOM_MANAGED:
            return f"Apply BOM version: {self.key}:{self.target}"
        return f"Remove BOM declaration: {self.key}"


class DeclaredDependency(BaseModel):
    """A dependency as the host build declares it."""

    key: str
    version: str | None = None
    test: bool = False

    @classmethod
    def parse(cls, notation: str, test: bool = False) -> "DeclaredDependency":
        """Parse `group:artifact[:version]`.

        Raises:
            ValueError: If groupId or artifactId is missing.
        """
        parts = split_identity(notation)
        if parts is None:
            raise ValueError(f"Invalid dependency notation: {notation!r} (expected group:artifact[:version])")
        pieces = notation.split(":")
        version = pieces[2] if len(pieces) > 2 and pieces[2] else None
        return cls(key=dependency_key(*parts), version=version, test=test)


class ResolutionConsumer(Protocol):
    """What the resolver needs from the build it resolves for."""

    def declared_dependencies(self) -> Iterable[DeclaredDependency]: ...

    def accept_resolved(self, artifacts: Mapping[str, MavenCoordinate]) -> None: ...

    def accept_substitution(self, substitution: Substitution) -> None: ...


class ResolutionResult(BaseModel):
    """Everything a resolution run produced.

    Attributes:
        artifacts: `groupId:artifactId -> coordinate` of every resolved artifact,
            declared and transitive.
        managed_versions: BOM-managed `groupId:artifactId -> version`.
        skipped: Identities not resolved, with the reason.
        not_found: Identities with no installed POM or jar.
        bom_managed_deps: BOM `g:a:v` -> its managed entries, for reporting.
        processed_boms: BOM identities removed from the declarations.
        transitive: Identities pulled in only transitively.
        edges: `(requester, dependency)` pairs found by the transitive walk.
        substitutions: Version changes the host build should apply.
    """

    artifacts: dict[str, MavenCoordinate] = Field(default_factory=dict)
    managed_versions: dict[str, str] = Field(default_factory=dict)
    skipped: dict[str, SkipReason] = Field(default_factory=dict)
    not_found: set[str] = Field(default_factory=set)
    bom_managed_deps: dict[str, list[str]] = Field(default_factory=dict)
    processed_boms: set[str] = Field(default_factory=set)
    transitive: set[str] = Field(default_factory=set)
    edges: list[tuple[str, str]] = Field(default_factory=list)
    substitutions: list[Substitution] = Field(default_factory=list)

    def main_dependencies(self) -> dict[str, MavenCoordinate]:
        return {key: c for key, c in self.artifacts.items() if not c.test_context}

    def test_dependencies(self) -> dict[str, MavenCoordinate]:
        return {key: c for key, c in self.artifacts.items() if c.test_context}


def _highest_requested(versions: Iterable[str | None]) -> str | None:
    present = [v for v in versions if v]
    if not present:
        return None
    return max(present, key=version_sort_key)


def plan_substitutions(
    requested_versions: Mapping[str, Iterable[str | None]],
    artifacts: Mapping[str, MavenCoordinate],
    managed_versions: Mapping[str, str],
    processed_boms: Iterable[str] = (),
) -> list[Substitution]:
    """Decide how each requested dependency should be rewritten.

    - a processed BOM is dropped,
    - an installed artifact replaces the requested version when they differ,
    - otherwise a BOM-managed version is applied when it differs.

    When a key is requested at several versions the highest one is compared.
    """
    boms = set(processed_boms)
    substitutions: list[Substitution] = []

    for key in sorted(requested_versions):
        requested = _highest_requested(requested_versions[key])
        if key in boms:
            substitutions.append(Substitution(key=key, requested=requested, reason=SubstitutionReason.BOM_REMOVAL))
            continue

        system = artifacts.get(key)
        if system is not None:
            if system.version and system.version != requested:
                substitutions.append(
                    Substitution(
                        key=key,
                        requested=requested or UNSPECIFIED_VERSION,
                        target=system.version,
                        reason=SubstitutionReason.SYSTEM_OVERRIDE,
                    )
                )
            continue

        managed = managed_versions.get(key)
        if managed and managed != requested:
            substitutions.append(
                Substitution(
                    key=key,
                    requested=requested or UNSPECIFIED_VERSION,
                    target=managed,
                    reason=SubstitutionReason.BOM_MANAGED,
                )
            )

    return substitutions


def _keys(notations: Iterable[str]) -> list[str]:
    keys: dict[str, None] = {}
    for notation in notations:
        parts = split_identity(notation)
        if parts is None:
            logger.warning("Ignoring invalid dependency notation %r", notation)
            continue
        keys.setdefault(dependency_key(*parts), None)
    return list(keys)


class ResolutionSession:
    """All collaborators of one resolution run, built from a `ResolverConfig`.

    Args:
        config: Directories, depths and finder strategy.
        cache: Session cache; a fresh one is created when omitted.
    """

    def __init__(self, config: ResolverConfig, cache: PomDataCache | None = None) -> None:
        self.config = config
        self.cache = cache if cache is not None else PomDataCache()
        self.hierarchy_loader = PomHierarchyLoader(self.cache)
        self.parser = PomParser(self.cache, self.hierarchy_loader, import_resolver=self._find_import)
        self.finder: PomFinder = self._create_finder()
        self.verifier = FileSystemArtifactVerifier(config.jars_dirs, config.scan_depth)
        self.plugin_matcher = PluginArtifactMatcher(self.finder, self.verifier, self.parser)
        self.bom_processor = BomProcessor(self.finder, self.parser)
        self.artifact_resolver = SystemArtifactResolver(self.finder, self.verifier, self.parser, self.plugin_matcher)
        self.transitive_resolver = TransitiveResolver(self.finder, self.verifier, self.parser)

    def _create_finder(self) -> PomFinder:
        if self.config.use_index:
            index = PomIndex(self.parser).build(self.config.poms_dirs, self.config.pom_search_depth)
            return IndexedPomFinder(index)
        return DirectoryPomFinder(self.config.poms_dirs, self.parser, self.config.pom_search_depth)

    def _find_import(self, group_id: str, artifact_id: str) -> MavenCoordinate | None:
        return self.finder.find(group_id, artifact_id)

    def resolve(
        self,
        declared: Iterable[str],
        test_dependencies: Iterable[str] = (),
        requested_versions: Mapping[str, Iterable[str | None]] | None = None,
    ) -> ResolutionResult:
        """Resolve declared `group:artifact[:version]` notations against the system.

        Args:
            declared: Main (non-test) declarations.
            test_dependencies: Declarations that only test code uses.
            requested_versions: `groupId:artifactId -> versions` the build asked
                for, used to plan substitutions. Declared keys missing from it
                count as requested without a version.
        """
        main_keys = _keys(declared)
        test_keys = [key for key in _keys(test_dependencies) if key not in main_keys]
        logger.info("Resolving %d main and %d test declaration(s)", len(main_keys), len(test_keys))

        main_boms = self.bom_processor.process(main_keys)
        test_boms = self.bom_processor.process(test_keys) if test_keys else BomResult.empty()
        boms = _merge_bom_results(main_boms, test_boms)
        test_only_managed = test_boms.managed_dependencies - main_boms.managed_dependencies

        to_resolve = [key for key in main_keys + test_keys if key not in boms.processed_boms]
        lookup = self.artifact_resolver.resolve(to_resolve)
        artifacts = filter_runtime(lookup.artifacts)

        test_only = set(test_keys) | (test_only_managed - set(main_keys))
        roots: dict[str, MavenCoordinate] = {}
        for key in sorted(artifacts, key=lambda k: k in test_only):
            coordinate = artifacts[key]
            if key in test_only:
                coordinate = coordinate.model_copy(update={"test_context": True})
            roots[key] = coordinate

        transitive = self.transitive_resolver.resolve(
            roots,
            managed_versions=boms.managed_versions,
            bom_managed=boms.managed_dependencies,
        )

        resolved = dict(roots)
        for key, coordinate in transitive.resolved.items():
            resolved[key] = merge_coordinate(resolved.get(key), coordinate)

        skipped = {**transitive.skipped, **lookup.skipped}
        skipped = {key: reason for key, reason in skipped.items() if key not in resolved}
        not_found = (lookup.not_found | transitive.not_found) - set(resolved)

        requested: dict[str, list[str | None]] = {key: [] for key in main_keys + test_keys}
        for key, versions in (requested_versions or {}).items():
            if isinstance(versions, str):
                versions = [versions]
            requested.setdefault(key, []).extend(versions)

        result = ResolutionResult(
            artifacts=resolved,
            managed_versions=boms.managed_versions,
            skipped=skipped,
            not_found=not_found,
            bom_managed_deps=boms.bom_managed_deps,
            processed_boms=boms.processed_boms,
            transitive=transitive.true_transitive,
            edges=transitive.edges,
            substitutions=plan_substitutions(requested, resolved, boms.managed_versions, boms.processed_boms),
        )
        logger.info(
            "Resolved %d artifact(s) (%d transitive), %d skipped, %d not found",
            len(result.artifacts),
            len(result.transitive),
            len(result.skipped),
            len(result.not_found),
        )
        return result

    def run(self, consumer: ResolutionConsumer) -> ResolutionResult:
        """Resolve what `consumer` declares and hand the outcome back to it."""
        main: list[str] = []
        test: list[str] = []
        requested: dict[str, list[str | None]] = {}
        for declaration in consumer.declared_dependencies():
            (test if declaration.test else main).append(declaration.key)
            requested.setdefault(declaration.key, []).append(declaration.version)

        result = self.resolve(main, test, requested)
        consumer.accept_resolved(result.artifacts)
        for substitution in result.substitutions:
            consumer.accept_substitution(substitution)
        return result


def _merge_bom_results(main: BomResult, test: BomResult) -> BomResult:
    """Combine main and test BOM expansion; main declarations win on conflicts."""
    return BomResult(
        managed_versions={**test.managed_versions, **main.managed_versions},
        processed_boms=main.processed_boms | test.processed_boms,
        bom_managed_deps={**test.bom_managed_deps, **main.bom_managed_deps},
        managed_dependencies=main.managed_dependencies | test.managed_dependencies,
    )
