"""File-name heuristics for POM files installed by system package managers.

Packaged POMs rarely follow `artifactId-version.pom`; they are often prefixed
with parts of the groupId (`apache-commons-commons-lang3.pom`) or carry no
version at all. These helpers generate the names worth trying and decide
whether a file name is one of them.
"""

from __future__ import annotations

import re
from pathlib import Path

_VERSION_RE = re.compile(r"^\d+(?:\.\d+)*(?:[.\-_+~][A-Za-z0-9.\-_+~]*)?$")


def is_version_string(value: str | None) -> bool:
    """Return True for strings shaped like a version: `1`, `2.0.1`, `3.1-SNAPSHOT`."""
    if not value:
        return False
    return _VERSION_RE.match(value) is not None


def generate_name_variants(group_id: str, artifact_id: str) -> list[str]:
    """Return candidate POM base names for a coordinate, plain artifactId first.

    `org.apache.commons:commons-lang3` gives
    `["commons-lang3", "apache-commons-commons-lang3", "commons-commons-lang3"]`.
    """
    variants: list[str] = [artifact_id]
    group_parts = [part for part in group_id.split(".") if part]

    if len(group_parts) > 1:
        variants.append("-".join(group_parts[1:]) + "-" + artifact_id)
        if len(group_parts) > 2:
            variants.append(group_parts[-1] + "-" + artifact_id)

    return list(dict.fromkeys(variants))


def _is_versioned_artifact(suffix: str, artifact_id: str) -> bool:
    if not suffix.endswith(artifact_id):
        return False
    if len(suffix) <= len(artifact_id) + 1:
        return False
    version_part = suffix[: len(suffix) - len(artifact_id) - 1]
    return is_version_string(version_part)


def matches_filename(path: Path, variant: str, artifact_id: str) -> bool:
    """Check whether `path` is a POM named after `variant`.

    Accepted base names: `variant`, `variant-<version>` and
    `variant-<version>-<artifactId>`.
    """
    name = path.name
    if not name.endswith(".pom"):
        return False
    base = name[: -len(".pom")]

    if base == variant:
        return True

    if base.startswith(variant + "-"):
        suffix = base[len(variant) + 1:]
        return is_version_string(suffix) or _is_versioned_artifact(suffix, artifact_id)

    return False


def version_sort_key(version: str | None) -> tuple:
    """Sort key ordering `1.9 < 1.10 < 2.0`; numeric parts rank above qualifiers."""
    if version is None:
        return ()
    parts = []
    for piece in re.split(r"[.\-_+~]", version):
        if piece.isdigit():
            parts.append((1, int(piece), ""))
        else:
            parts.append((0, 0, piece))
    return tuple(parts)
