"""Locate the installed POM for a `groupId:artifactId` under configured directories."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Protocol

from sysdeps_resolver.models import MavenCoordinate, dependency_key
from sysdeps_resolver.naming import generate_name_variants, matches_filename
from sysdeps_resolver.pom import PomParser
from sysdeps_resolver.scanner import find_pom_files


logger = logging.getLogger(__name__)

MAX_SEARCH_DEPTH = 3


class PomFinder(Protocol):
    """What resolution needs from a POM lookup strategy."""

    def find(self, group_id: str, artifact_id: str) -> MavenCoordinate | None: ...

    def find_all_for_group(self, group_id: str) -> list[MavenCoordinate]: ...


def _matches(coordinate: MavenCoordinate | None, group_id: str, artifact_id: str | None = None) -> bool:
    if coordinate is None or not coordinate.is_valid():
        return False
    if coordinate.group_id != group_id:
        return False
    return artifact_id is None or coordinate.artifact_id == artifact_id


class DirectoryPomFinder:
    """Finder that searches POM roots by file-name heuristics on every lookup.

    The file listing of each root is taken once and reused; candidates are
    parsed (through the session cache) and the first one whose coordinates
    match the request wins. No attempt is made to pick the best version.
    """

    def __init__(self, roots: Sequence[Path], parser: PomParser, max_depth: int = MAX_SEARCH_DEPTH) -> None:
        self.roots = [Path(r) for r in roots]
        self.parser = parser
        self.max_depth = max_depth
        self._listings: dict[Path, list[Path]] = {}
        self._lock = threading.Lock()

    def _list(self, root: Path) -> list[Path]:
        with self._lock:
            cached = self._listings.get(root)
        if cached is not None:
            return cached
        files = find_pom_files(root, self.max_depth)
        with self._lock:
            return self._listings.setdefault(root, files)

    def find(self, group_id: str, artifact_id: str) -> MavenCoordinate | None:
        variants = generate_name_variants(group_id, artifact_id)
        for root in self.roots:
            if not root.is_dir():
                continue
            files = self._list(root)
            for variant in variants:
                for path in files:
                    if not matches_filename(path, variant, artifact_id):
                        continue
                    coordinate = self.parser.parse_pom(path)
                    if _matches(coordinate, group_id, artifact_id):
                        return coordinate
                    if coordinate is not None:
                        logger.debug(
                            "POM %s does not match %s (found %s)",
                            path,
                            dependency_key(group_id, artifact_id),
                            coordinate.compact(),
                        )
        return None

    def find_all_for_group(self, group_id: str) -> list[MavenCoordinate]:
        candidates: list[MavenCoordinate] = []
        for root in self.roots:
            if not root.is_dir():
                continue
            for path in self._list(root):
                coordinate = self.parser.parse_pom(path)
                if _matches(coordinate, group_id):
                    candidates.append(coordinate)
        return candidates


class PomIndex:
    """One-time listing of every POM under the configured roots, parsed up front.

    `build` walks and parses each root once. Lookups then apply the same
    file-name rules in the same order as `DirectoryPomFinder`, only against
    the prebuilt `(path, coordinate)` listings, so both finders give the same
    answer for every query. Results of `find` are memoized.
    """

    def __init__(self, parser: PomParser) -> None:
        self.parser = parser
        self._listings: list[list[tuple[Path, MavenCoordinate | None]]] = []
        self._by_group: dict[str, list[MavenCoordinate]] = {}
        self._found: dict[str, MavenCoordinate | None] = {}
        self._lock = threading.Lock()

    def build(self, roots: Iterable[Path], max_depth: int = MAX_SEARCH_DEPTH) -> "PomIndex":
        directories = [Path(r) for r in roots if Path(r).is_dir()]
        return self._build([find_pom_files(root, max_depth) for root in directories])

    def build_from_files(self, pom_files: Iterable[Path]) -> "PomIndex":
        """Index an explicit file list, treated as a single root in the given order."""
        return self._build([list(pom_files)])

    def _build(self, file_lists: Iterable[list[Path]]) -> "PomIndex":
        listings: list[list[tuple[Path, MavenCoordinate | None]]] = []
        by_group: dict[str, list[MavenCoordinate]] = {}

        for files in file_lists:
            listing: list[tuple[Path, MavenCoordinate | None]] = []
            for path in files:
                coordinate = self.parser.parse_pom(path)
                listing.append((path, coordinate))
                if coordinate is not None and coordinate.is_valid():
                    by_group.setdefault(coordinate.group_id, []).append(coordinate)
            listings.append(listing)

        with self._lock:
            self._listings = listings
            self._by_group = by_group
            self._found = {}

        logger.info(
            "POM index built: %d files in %d root(s), %d groups",
            sum(len(listing) for listing in listings),
            len(listings),
            len(by_group),
        )
        return self

    def find(self, group_id: str, artifact_id: str) -> MavenCoordinate | None:
        key = dependency_key(group_id, artifact_id)
        with self._lock:
            if key in self._found:
                return self._found[key]
            listings = self._listings

        coordinate = self._lookup(listings, group_id, artifact_id)
        with self._lock:
            return self._found.setdefault(key, coordinate)

    @staticmethod
    def _lookup(
        listings: list[list[tuple[Path, MavenCoordinate | None]]],
        group_id: str,
        artifact_id: str,
    ) -> MavenCoordinate | None:
        variants = generate_name_variants(group_id, artifact_id)
        for listing in listings:
            for variant in variants:
                for path, coordinate in listing:
                    if matches_filename(path, variant, artifact_id) and _matches(coordinate, group_id, artifact_id):
                        return coordinate
        return None

    def find_all_for_group(self, group_id: str) -> list[MavenCoordinate]:
        with self._lock:
            return list(self._by_group.get(group_id, []))

    def __len__(self) -> int:
        """Number of indexed files that carry valid coordinates."""
        with self._lock:
            return sum(1 for listing in self._listings for _, c in listing if c is not None and c.is_valid())


class IndexedPomFinder:
    """Finder backed by a prebuilt `PomIndex`."""

    def __init__(self, index: PomIndex) -> None:
        self.index = index

    def find(self, group_id: str, artifact_id: str) -> MavenCoordinate | None:
        return self.index.find(group_id, artifact_id)

    def find_all_for_group(self, group_id: str) -> list[MavenCoordinate]:
        return self.index.find_all_for_group(group_id)
