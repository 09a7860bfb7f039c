from __future__ import annotations

import logging
import os
from pathlib import Path


logger = logging.getLogger(__name__)


def walk_files(root: Path, suffix: str, max_depth: int) -> list[Path]:
    """Find regular files ending with `suffix` under root, at most `max_depth` levels deep.

    Depth counts like `find -maxdepth`: files directly in `root` are depth 1.
    A root that is itself a matching file is returned as-is.

    Args:
        root: A directory to scan, or a single file.
        suffix: File name suffix such as ".pom" or ".jar".
        max_depth: Maximum depth below root.

    Returns:
        Sorted list of matching files. I/O errors are logged and the affected
        directories skipped.
    """
    if root.is_file():
        return [root] if root.name.endswith(suffix) else []
    if not root.is_dir():
        logger.debug("Not a directory: %s", root)
        return []

    def _on_error(exc: OSError) -> None:
        logger.warning("Scan error in %s: %s", root, exc)

    found: list[Path] = []
    base_depth = len(root.parts)
    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        current = Path(dirpath)
        depth = len(current.parts) - base_depth
        if depth + 1 >= max_depth:
            dirnames[:] = []
        else:
            dirnames.sort()
        if depth + 1 > max_depth:
            continue
        for name in filenames:
            if not name.endswith(suffix):
                continue
            candidate = current / name
            if candidate.is_file():
                found.append(candidate)
    return sorted(found)


def find_pom_files(root: Path, max_depth: int = 3) -> list[Path]:
    """Find Maven POM files (`*.pom`) under root."""
    return walk_files(root, ".pom", max_depth)
