"""Expand BOMs declared by a build into a flat map of managed versions."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable

from pydantic import BaseModel, Field

from sysdeps_resolver.finder import PomFinder
from sysdeps_resolver.models import MavenCoordinate
from sysdeps_resolver.pom import PomParser


logger = logging.getLogger(__name__)

UNKNOWN_BOM_VERSION = "unknown"


class BomResult(BaseModel):
    """Outcome of BOM expansion.

    Attributes:
        managed_versions: `groupId:artifactId -> version` across every processed BOM.
        processed_boms: Identities of the BOMs that were expanded.
        bom_managed_deps: `groupId:artifactId:version` of a BOM -> its managed
            entries as `g:a:v` (or `g:a` when unversioned), for reporting.
        managed_dependencies: Every identity named by a processed BOM.
    """

    managed_versions: dict[str, str] = Field(default_factory=dict)
    processed_boms: set[str] = Field(default_factory=set)
    bom_managed_deps: dict[str, list[str]] = Field(default_factory=dict)
    managed_dependencies: set[str] = Field(default_factory=set)

    @classmethod
    def empty(cls) -> "BomResult":
        return cls()


def split_identity(value: str) -> tuple[str, str] | None:
    """Split `group:artifact[:...]` into its first two parts."""
    parts = (value or "").split(":")
    if len(parts) < 2 or not parts[0] or not parts[1]:
        return None
    return parts[0], parts[1]


class BomProcessor:
    """Breadth-first expansion of BOMs and the BOMs they manage in turn.

    Removing processed BOMs from the build's own dependency declarations is
    left to the caller; this class only reports which ones they are.
    """

    def __init__(self, finder: PomFinder, parser: PomParser) -> None:
        self.finder = finder
        self.parser = parser

    def _locate_bom(self, group_id: str, artifact_id: str) -> MavenCoordinate | None:
        coordinate = self.finder.find(group_id, artifact_id)
        if coordinate is None or coordinate.pom_path is None:
            return None
        if not self.parser.is_bom(coordinate.pom_path):
            return None
        return coordinate

    def process(self, dependencies: Iterable[str]) -> BomResult:
        result = BomResult()
        queue: deque[MavenCoordinate] = deque()
        seen: set[str] = set()

        for dependency in dependencies:
            parts = split_identity(dependency)
            if parts is None:
                continue
            key = ":".join(parts)
            if key in seen:
                continue
            seen.add(key)
            bom = self._locate_bom(*parts)
            if bom is not None:
                queue.append(bom)

        while queue:
            bom = queue.popleft()
            result.processed_boms.add(bom.key())
            bom_version = bom.version or UNKNOWN_BOM_VERSION
            bom_key = f"{bom.key()}:{bom_version}"
            logger.info("Processing BOM %s", bom_key)

            managed_deps: list[str] = []
            for entry in self.parser.parse_dependency_management(bom.pom_path):
                entry_key = entry.key()
                result.managed_dependencies.add(entry_key)

                if entry.version and entry.version.strip():
                    result.managed_versions[entry_key] = entry.version
                    managed_deps.append(f"{entry_key}:{entry.version}")
                else:
                    managed_deps.append(entry_key)

                if entry.is_bom() and entry_key not in seen:
                    seen.add(entry_key)
                    nested = self._locate_bom(entry.group_id, entry.artifact_id)
                    if nested is not None:
                        queue.append(nested)
                    else:
                        logger.debug("Nested BOM %s not installed", entry_key)

            result.bom_managed_deps[bom_key] = managed_deps

        logger.info(
            "Processed %d BOM(s) managing %d version(s)",
            len(result.processed_boms),
            len(result.managed_versions),
        )
        return result
