"""Load the parent chain of a POM file from sibling files on disk."""

from __future__ import annotations

import logging
from pathlib import Path

from sysdeps_resolver.cache import HIERARCHY, MODEL, PomDataCache
from sysdeps_resolver.models import PomModel, PomParent
from sysdeps_resolver.naming import generate_name_variants
from sysdeps_resolver.parser import read_model


logger = logging.getLogger(__name__)

MAX_HIERARCHY_DEPTH = 10


class PomHierarchyLoader:
    """Build the ancestor-first chain of models for a POM path.

    A parent is looked up next to the child: `<parentArtifactId>.pom` first,
    then the file-name variants installed packages tend to use for the parent
    coordinates. The walk stops at the first POM without a parent, at an
    unreadable parent, or after `MAX_HIERARCHY_DEPTH` models. Hitting the
    depth bound truncates the chain silently.
    """

    def __init__(self, cache: PomDataCache | None = None, max_depth: int = MAX_HIERARCHY_DEPTH) -> None:
        self.cache = cache if cache is not None else PomDataCache()
        self.max_depth = max_depth

    def load_model(self, path: Path) -> PomModel | None:
        return self.cache.get_or_compute(MODEL, path, lambda: read_model(path))

    def load_hierarchy(self, path: str | Path) -> list[PomModel]:
        """Return models ordered ancestor-most first; empty if `path` is unreadable."""
        pom_path = Path(path)
        return self.cache.get_or_compute(HIERARCHY, pom_path, lambda: self._load(pom_path))

    def _load(self, pom_path: Path) -> list[PomModel]:
        chain: list[PomModel] = []
        current: Path | None = pom_path
        depth = 0

        while current is not None and depth < self.max_depth:
            model = self.load_model(current)
            if model is None:
                break
            chain.append(model)
            if model.parent is None:
                break
            current = self._resolve_parent_path(current, model.parent)
            depth += 1

        if len(chain) == self.max_depth and chain[-1].parent is not None:
            logger.debug("Parent chain of %s truncated at depth %d", pom_path, self.max_depth)

        chain.reverse()
        return chain

    def _resolve_parent_path(self, child_path: Path, parent: PomParent) -> Path | None:
        if not parent.artifact_id:
            return None
        directory = child_path.parent
        sibling = directory / f"{parent.artifact_id}.pom"
        if sibling.is_file():
            return sibling
        if parent.group_id:
            for variant in generate_name_variants(parent.group_id, parent.artifact_id):
                candidate = directory / f"{variant}.pom"
                if candidate.is_file():
                    return candidate
        logger.debug("Parent %s:%s of %s not found", parent.group_id, parent.artifact_id, child_path)
        return None
