"""Check that the binary artifact of a coordinate is installed on disk."""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from pathlib import Path

from sysdeps_resolver.models import MavenCoordinate
from sysdeps_resolver.scanner import walk_files


logger = logging.getLogger(__name__)

DEFAULT_SCAN_DEPTH = 3


def looks_like_version(value: str) -> bool:
    """Loose check used for jar names: any digit counts.

    Installed jar names are inconsistent (`foo-2.jar`, `foo-1.0.jar`,
    `foo-jdk8.jar`), so this accepts more than a real version parser would.
    """
    return any(ch.isdigit() for ch in value)


def matches_jar_name(file_name: str, artifact_id: str, version: str | None) -> bool:
    if not file_name.endswith(".jar"):
        return False
    base = file_name[: -len(".jar")]
    if base == artifact_id:
        return True
    if base.startswith(artifact_id + "-"):
        suffix = base[len(artifact_id) + 1:]
        return suffix == version or looks_like_version(suffix)
    return False


class FileSystemArtifactVerifier:
    """Confirm a jar for a coordinate exists under one of the jar roots.

    POM-packaged coordinates always pass: having parsed their POM already
    proves they are installed.
    """

    def __init__(self, roots: Sequence[Path], max_depth: int = DEFAULT_SCAN_DEPTH) -> None:
        self.roots = [Path(r) for r in roots]
        self.max_depth = max_depth
        self._listings: dict[Path, list[Path]] = {}
        self._lock = threading.Lock()

    def exists(self, coordinate: MavenCoordinate | None) -> bool:
        if coordinate is None or not coordinate.is_valid():
            return False
        if coordinate.is_bom():
            return True

        artifact_id = coordinate.artifact_id
        for root in self.roots:
            if (root / f"{artifact_id}.jar").is_file():
                return True
            if (root / f"{artifact_id}-{coordinate.version}.jar").is_file():
                return True
            if any(matches_jar_name(p.name, artifact_id, coordinate.version) for p in self._jars(root)):
                return True

        logger.debug("No jar found for %s", coordinate.compact())
        return False

    def _jars(self, root: Path) -> list[Path]:
        with self._lock:
            cached = self._listings.get(root)
        if cached is not None:
            return cached
        jars = walk_files(root, ".jar", self.max_depth)
        with self._lock:
            return self._listings.setdefault(root, jars)
