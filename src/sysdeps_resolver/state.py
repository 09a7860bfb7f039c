"""Per-run bookkeeping shared by the breadth-first resolvers."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field

from sysdeps_resolver.models import MavenCoordinate, SkipReason


@dataclass
class ResolutionState:
    """Mutable state of one resolution walk; create a fresh one per run.

    `processed` is the dedup guard: an identity is marked when it is first
    enqueued, so it is expanded at most once however often it is reached.
    """

    processed: set[str] = field(default_factory=set)
    queue: deque[MavenCoordinate] = field(default_factory=deque)
    resolved: dict[str, MavenCoordinate] = field(default_factory=dict)
    not_found: set[str] = field(default_factory=set)
    skipped: dict[str, SkipReason] = field(default_factory=dict)

    def enqueue(self, coordinate: MavenCoordinate) -> bool:
        """Queue `coordinate` unless its identity was already processed."""
        key = coordinate.key()
        if key in self.processed:
            return False
        self.processed.add(key)
        self.queue.append(coordinate)
        return True

    def skip(self, key: str, reason: SkipReason) -> None:
        # First reason wins; later sightings of the same identity do not rewrite it.
        self.skipped.setdefault(key, reason)

    def mark_not_found(self, key: str) -> None:
        self.not_found.add(key)
        self.skip(key, SkipReason.NOT_FOUND)
