"""Resolver configuration module.

Points the resolver at the directories where system packages install POM
files and jars. Configuration is read from environment variables.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from sysdeps_resolver.classify import default_workers


logger = logging.getLogger(__name__)

DEFAULT_POMS_DIR = "/usr/share/maven-poms"
DEFAULT_JARS_DIR = "/usr/share/java"
DEFAULT_SCAN_DEPTH = 3
DEFAULT_POM_SEARCH_DEPTH = 3


def split_dirs(value: str | None) -> list[Path]:
    """Split a comma-separated directory list; blanks and duplicates are dropped."""
    if not value:
        return []
    seen: dict[Path, None] = {}
    for part in value.split(","):
        part = part.strip()
        if part:
            seen.setdefault(Path(part), None)
    return list(seen)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        logger.warning("Invalid integer for %s: %r, using %d", name, raw, default)
        return default


def _bool_env(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ResolverConfig:
    """Resolver configuration container.

    Attributes:
        poms_dirs: Roots searched for installed `*.pom` files
        jars_dirs: Roots searched for installed jars
        scan_depth: Directory depth of the jar scan
        pom_search_depth: Directory depth of the POM search
        use_index: Build a one-time POM index instead of walking per lookup
        workers: Thread count for bulk classification (1 = single-threaded)
    """

    poms_dirs: list[Path] = field(default_factory=lambda: [Path(DEFAULT_POMS_DIR)])
    jars_dirs: list[Path] = field(default_factory=lambda: [Path(DEFAULT_JARS_DIR)])
    scan_depth: int = DEFAULT_SCAN_DEPTH
    pom_search_depth: int = DEFAULT_POM_SEARCH_DEPTH
    use_index: bool = False
    workers: int = field(default_factory=default_workers)

    @classmethod
    def from_env(cls) -> "ResolverConfig":
        """Create configuration from environment variables.

        Environment variables:
            SYSDEPS_POMS_DIR: Comma-separated POM roots (default: "/usr/share/maven-poms")
            SYSDEPS_JARS_DIR: Comma-separated jar roots (default: "/usr/share/java")
            SYSDEPS_SCAN_DEPTH: Jar scan depth (default: 3)
            SYSDEPS_POM_SEARCH_DEPTH: POM search depth (default: 3)
            SYSDEPS_USE_INDEX: "true" to index POMs up front (default: "false")
            SYSDEPS_WORKERS: Bulk classification threads (default: CPU count)
        """
        return cls(
            poms_dirs=split_dirs(os.getenv("SYSDEPS_POMS_DIR", DEFAULT_POMS_DIR)),
            jars_dirs=split_dirs(os.getenv("SYSDEPS_JARS_DIR", DEFAULT_JARS_DIR)),
            scan_depth=_int_env("SYSDEPS_SCAN_DEPTH", DEFAULT_SCAN_DEPTH),
            pom_search_depth=_int_env("SYSDEPS_POM_SEARCH_DEPTH", DEFAULT_POM_SEARCH_DEPTH),
            use_index=_bool_env("SYSDEPS_USE_INDEX"),
            workers=_int_env("SYSDEPS_WORKERS", default_workers()),
        )

    def validate(self) -> None:
        """Validate the configuration.

        Raises:
            ValueError: If required configuration is missing or out of range.
        """
        if not self.poms_dirs:
            raise ValueError("SYSDEPS_POMS_DIR must name at least one directory")
        if not self.jars_dirs:
            raise ValueError("SYSDEPS_JARS_DIR must name at least one directory")
        if self.scan_depth < 0:
            raise ValueError(f"SYSDEPS_SCAN_DEPTH must be non-negative, got {self.scan_depth}")
        if self.pom_search_depth < 0:
            raise ValueError(f"SYSDEPS_POM_SEARCH_DEPTH must be non-negative, got {self.pom_search_depth}")
        if self.workers < 1:
            raise ValueError(f"SYSDEPS_WORKERS must be at least 1, got {self.workers}")
