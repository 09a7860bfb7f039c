"""Per-session memoization of parsed POM data keyed by file path."""

from __future__ import annotations

import threading
from collections import Counter
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

T = TypeVar("T")

MODEL = "model"
HIERARCHY = "hierarchy"
COORDINATE = "coordinate"
PROPERTIES = "properties"
DEPENDENCY_MANAGEMENT = "dependency_management"
DEPENDENCIES = "dependencies"


def cache_key(path: str | Path) -> str:
    """Normalize a POM path to the absolute string used as cache key."""
    return str(Path(path).absolute())


class PomDataCache:
    """Thread-safe memo for everything derived from a POM file.

    Entries are populated at most once per (kind, path) and never invalidated
    while a session runs; POM files are assumed immutable for that long.
    `None` results are cached too, so an unreadable file is only tried once.

    Computation happens outside the lock. Two threads racing on the same key
    may both compute; the first insert wins and the other result is dropped.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[tuple[str, str], Any] = {}
        self._hits: Counter[str] = Counter()
        self._misses: Counter[str] = Counter()

    def get_or_compute(self, kind: str, path: str | Path, compute: Callable[[], T]) -> T:
        key = (kind, cache_key(path))
        with self._lock:
            if key in self._entries:
                self._hits[kind] += 1
                return self._entries[key]
            self._misses[kind] += 1

        value = compute()

        with self._lock:
            return self._entries.setdefault(key, value)

    def contains(self, kind: str, path: str | Path) -> bool:
        with self._lock:
            return (kind, cache_key(path)) in self._entries

    def stats(self) -> dict[str, tuple[int, int]]:
        """Return `{kind: (hits, misses)}` for every kind touched so far."""
        with self._lock:
            kinds = set(self._hits) | set(self._misses)
            return {kind: (self._hits[kind], self._misses[kind]) for kind in sorted(kinds)}

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits.clear()
            self._misses.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
