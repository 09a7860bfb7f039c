"""Bulk classification of POM trees, optionally on a thread pool.

Each worker takes one POM end-to-end (read, classify, insert-if-new). The
only state shared between workers is the output collection and the
`ArtifactCache`, both lock-guarded; the session cache used by the parser is
thread-safe as well. Results are read only after every task has finished.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import TypeVar

from sysdeps_resolver.models import MavenCoordinate
from sysdeps_resolver.pom import PomParser


logger = logging.getLogger(__name__)

T = TypeVar("T")


def default_workers() -> int:
    return os.cpu_count() or 1


class ArtifactCache:
    """Thread-safe registry of artifacts seen so far, keyed by `g:a:v`."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, MavenCoordinate] = {}

    def add(self, coordinate: MavenCoordinate) -> bool:
        """Register `coordinate`; False if the same `g:a:v` is already present."""
        with self._lock:
            if coordinate.compact() in self._entries:
                return False
            self._entries[coordinate.compact()] = coordinate
            return True

    def get(self, compact: str) -> MavenCoordinate | None:
        with self._lock:
            return self._entries.get(compact)

    def __contains__(self, compact: object) -> bool:
        with self._lock:
            return compact in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def _run(paths: list[Path], task: Callable[[Path], T], workers: int) -> list[tuple[Path, T]]:
    """Apply `task` to every path; failures are logged and left out of the result."""
    results: list[tuple[Path, T]] = []
    if workers <= 1:
        for path in paths:
            try:
                results.append((path, task(path)))
            except Exception:
                logger.exception("Error processing POM file: %s", path)
        return results

    with ThreadPoolExecutor(max_workers=workers) as executor:
        future_to_path = {executor.submit(task, path): path for path in paths}
        for future in as_completed(future_to_path):
            path = future_to_path[future]
            try:
                results.append((path, future.result()))
            except Exception:
                logger.exception("Error processing POM file: %s", path)
    return results


def classify_boms(
    pom_paths: Iterable[Path],
    parser: PomParser | None = None,
    workers: int | None = None,
) -> set[Path]:
    """Return the subset of `pom_paths` that are BOMs."""
    parser = parser or PomParser()
    paths = list(pom_paths)
    outcome = _run(paths, parser.is_bom, workers or default_workers())
    boms = {path for path, is_bom in outcome if is_bom}
    logger.info("Classified %d POM file(s): %d BOM(s)", len(paths), len(boms))
    return boms


def library_jar_path(coordinate: MavenCoordinate) -> Path | None:
    """Jar expected next to the POM: `<artifactId>-<version>.jar`."""
    if coordinate.pom_path is None or not coordinate.is_valid():
        return None
    return coordinate.pom_path.parent / f"{coordinate.artifact_id}-{coordinate.version}.jar"


def collect_library_artifacts(
    pom_paths: Iterable[Path],
    parser: PomParser | None = None,
    workers: int | None = None,
    cache: ArtifactCache | None = None,
) -> dict[Path, Path]:
    """Map each library POM to the jar installed beside it.

    POMs without complete coordinates or without a sibling jar are left out.
    When two POMs publish the same `g:a:v`, the first one processed wins and
    the other is reported as a duplicate.
    """
    parser = parser or PomParser()
    cache = cache if cache is not None else ArtifactCache()
    found: dict[Path, Path] = {}
    lock = threading.Lock()

    def _process(path: Path) -> None:
        coordinate = parser.parse_pom(path)
        if coordinate is None or not coordinate.is_valid():
            logger.warning("Incomplete coordinates in POM: %s", path)
            return
        if not cache.add(coordinate):
            existing = cache.get(coordinate.compact())
            logger.warning(
                "Skipping duplicate artifact: %s (already processed from: %s)",
                coordinate.compact(),
                existing.pom_path if existing else None,
            )
            return
        jar = library_jar_path(coordinate)
        if jar is not None and jar.is_file():
            with lock:
                found[path] = jar
            logger.debug("Added artifact: %s", coordinate.compact())

    paths = list(pom_paths)
    _run(paths, _process, workers or default_workers())
    logger.info("Processed %d unique artifacts from %d POM files", len(found), len(paths))
    return found
