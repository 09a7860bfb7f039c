"""Effective-POM pipeline: hierarchy -> properties -> dependency management -> dependencies.

Every public method of `PomParser` is memoized per POM path in the session's
`PomDataCache`, so a POM shared by many artifacts (a common parent, a BOM) is
only read and resolved once per session.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path

from sysdeps_resolver.cache import (
    COORDINATE,
    DEPENDENCIES,
    DEPENDENCY_MANAGEMENT,
    PROPERTIES,
    PomDataCache,
    cache_key,
)
from sysdeps_resolver.hierarchy import PomHierarchyLoader
from sysdeps_resolver.models import (
    DEFAULT_PACKAGING,
    MavenCoordinate,
    MavenScope,
    PomDependency,
    PomModel,
)
from sysdeps_resolver.properties import collect_properties, has_placeholder, resolve_placeholders


logger = logging.getLogger(__name__)

ImportResolver = Callable[[str, str], MavenCoordinate | None]


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def convert_dependency(dependency: PomDependency) -> MavenCoordinate:
    """Turn a raw declaration into a coordinate with scope/packaging defaults applied."""
    return MavenCoordinate(
        group_id=dependency.group_id,
        artifact_id=dependency.artifact_id,
        version=dependency.version,
        scope=dependency.scope if dependency.scope is not None else MavenScope.COMPILE.value,
        packaging=dependency.type if dependency.type is not None else DEFAULT_PACKAGING,
    )


def substitute_properties(coordinate: MavenCoordinate, properties: Mapping[str, str]) -> MavenCoordinate:
    return coordinate.model_copy(
        update={
            "group_id": resolve_placeholders(coordinate.group_id, properties),
            "artifact_id": resolve_placeholders(coordinate.artifact_id, properties),
            "version": resolve_placeholders(coordinate.version, properties),
            "scope": resolve_placeholders(coordinate.scope, properties),
            "packaging": resolve_placeholders(coordinate.packaging, properties),
        }
    )


def apply_dependency_management(
    coordinate: MavenCoordinate,
    managed: Mapping[str, MavenCoordinate],
) -> MavenCoordinate:
    """Fill gaps in `coordinate` from its managed entry; explicit values are kept.

    A version that still carries an unresolved `${...}` after substitution
    counts as a gap.
    """
    entry = managed.get(coordinate.key())
    if entry is None:
        return coordinate

    update: dict[str, str | None] = {}
    if (_blank(coordinate.version) or has_placeholder(coordinate.version)) and not _blank(entry.version):
        update["version"] = entry.version
    if _blank(coordinate.scope):
        update["scope"] = entry.scope
    if _blank(coordinate.packaging):
        update["packaging"] = entry.packaging
    return coordinate.model_copy(update=update) if update else coordinate


def collect_dependency_management(
    hierarchy: Iterable[PomModel],
    properties: Mapping[str, str],
    imported: Callable[[MavenCoordinate], Mapping[str, MavenCoordinate]] | None = None,
) -> dict[str, MavenCoordinate]:
    """Replay dependencyManagement sections ancestor-first; later entries win.

    BOM imports (`scope=import`, `type=pom`) are expanded through `imported`.
    Imported entries rank below every entry declared in the hierarchy itself.
    """
    declared: dict[str, MavenCoordinate] = {}
    from_imports: dict[str, MavenCoordinate] = {}

    for model in hierarchy:
        if model is None:
            continue
        for dependency in model.dependency_management:
            coordinate = substitute_properties(convert_dependency(dependency), properties)
            if _blank(coordinate.group_id) or _blank(coordinate.artifact_id):
                continue
            declared[coordinate.key()] = coordinate

            if imported is not None and dependency.is_import():
                for key, entry in imported(coordinate).items():
                    from_imports.setdefault(key, entry)

    merged = dict(from_imports)
    merged.update(declared)
    return merged


def collect_dependencies(
    hierarchy: Iterable[PomModel],
    properties: Mapping[str, str],
    managed: Mapping[str, MavenCoordinate],
) -> dict[str, MavenCoordinate]:
    """Collect declared dependencies ancestor-first; a descendant's declaration replaces its parent's."""
    resolved: dict[str, MavenCoordinate] = {}

    for model in hierarchy:
        if model is None:
            continue
        for dependency in model.dependencies:
            coordinate = substitute_properties(convert_dependency(dependency), properties)
            coordinate = apply_dependency_management(coordinate, managed)
            if not coordinate.is_valid():
                continue
            resolved[coordinate.key()] = coordinate
    return resolved


class PomParser:
    """Resolve a POM path into its effective coordinate, properties and dependencies.

    Args:
        cache: Session cache shared with the hierarchy loader.
        hierarchy_loader: Loader for parent chains; built on `cache` when omitted.
        import_resolver: Locates BOMs named by `scope=import` management entries,
            typically a finder's `find`. Without it imports are kept as plain
            managed entries and not expanded.
    """

    def __init__(
        self,
        cache: PomDataCache | None = None,
        hierarchy_loader: PomHierarchyLoader | None = None,
        import_resolver: ImportResolver | None = None,
    ) -> None:
        self.cache = cache if cache is not None else PomDataCache()
        self.hierarchy_loader = hierarchy_loader or PomHierarchyLoader(self.cache)
        self.import_resolver = import_resolver
        self._imports = threading.local()

    def load_hierarchy(self, pom_path: str | Path) -> list[PomModel]:
        return self.hierarchy_loader.load_hierarchy(pom_path)

    def parse_pom(self, pom_path: str | Path) -> MavenCoordinate | None:
        """Return the coordinate a POM file publishes, or None if it cannot be read."""
        path = Path(pom_path)
        return self.cache.get_or_compute(COORDINATE, path, lambda: self._coordinate(path))

    def _coordinate(self, path: Path) -> MavenCoordinate | None:
        hierarchy = self.load_hierarchy(path)
        if not hierarchy:
            return None
        effective = hierarchy[-1]
        properties = self.parse_properties(path)
        return MavenCoordinate(
            group_id=resolve_placeholders(effective.effective_group_id, properties),
            artifact_id=resolve_placeholders(effective.artifact_id, properties),
            version=resolve_placeholders(effective.effective_version, properties),
            packaging=resolve_placeholders(effective.effective_packaging, properties),
            pom_path=path,
        )

    def parse_properties(self, pom_path: str | Path) -> dict[str, str]:
        path = Path(pom_path)
        return self.cache.get_or_compute(
            PROPERTIES, path, lambda: collect_properties(self.load_hierarchy(path))
        )

    def managed_map(self, pom_path: str | Path) -> dict[str, MavenCoordinate]:
        """Return `groupId:artifactId -> managed coordinate` for a POM and its ancestors.

        A map cut short by a cyclic BOM import is returned but not cached, so
        the cached map of a BOM never depends on which member of the cycle
        was asked for first.
        """
        path = Path(pom_path)
        if self.cache.contains(DEPENDENCY_MANAGEMENT, path):
            return self.cache.get_or_compute(DEPENDENCY_MANAGEMENT, path, dict)
        managed, complete = self._managed(path)
        if not complete:
            return managed
        return self.cache.get_or_compute(DEPENDENCY_MANAGEMENT, path, lambda: managed)

    def _import_state(self) -> tuple[list[str], set[str]]:
        if not hasattr(self._imports, "stack"):
            self._imports.stack = []
            self._imports.truncated = set()
        return self._imports.stack, self._imports.truncated

    def _managed(self, path: Path) -> tuple[dict[str, MavenCoordinate], bool]:
        hierarchy = self.load_hierarchy(path)
        if not hierarchy:
            return {}, True
        stack, truncated = self._import_state()
        key = cache_key(path)
        stack.append(key)
        try:
            managed = collect_dependency_management(
                hierarchy,
                self.parse_properties(path),
                self._imported if self.import_resolver is not None else None,
            )
        finally:
            stack.pop()
        if key in truncated:
            truncated.discard(key)
            return managed, False
        return managed, True

    def _imported(self, bom: MavenCoordinate) -> Mapping[str, MavenCoordinate]:
        located = self.import_resolver(bom.group_id, bom.artifact_id) if self.import_resolver else None
        if located is None or located.pom_path is None:
            logger.debug("Imported BOM %s not found", bom.key())
            return {}
        stack, truncated = self._import_state()
        target = cache_key(located.pom_path)
        if target in stack:
            logger.debug("Skipping cyclic BOM import %s", bom.key())
            # Everything above the cycle's entry point is missing the cut entries.
            truncated.update(stack[stack.index(target) + 1:])
            return {}
        return self.managed_map(located.pom_path)

    def parse_dependency_management(self, pom_path: str | Path) -> list[MavenCoordinate]:
        return list(self.managed_map(pom_path).values())

    def parse_dependencies(self, pom_path: str | Path) -> list[MavenCoordinate]:
        """Return the effective direct dependencies of a POM (inherited ones included)."""
        path = Path(pom_path)
        return self.cache.get_or_compute(DEPENDENCIES, path, lambda: self._dependencies(path))

    def _dependencies(self, path: Path) -> list[MavenCoordinate]:
        hierarchy = self.load_hierarchy(path)
        if not hierarchy:
            return []
        resolved = collect_dependencies(hierarchy, self.parse_properties(path), self.managed_map(path))
        return list(resolved.values())

    def is_bom(self, pom_path: str | Path) -> bool:
        """A BOM is a POM-packaged file with a non-empty dependencyManagement."""
        coordinate = self.parse_pom(pom_path)
        return coordinate is not None and coordinate.is_bom() and bool(self.managed_map(pom_path))
