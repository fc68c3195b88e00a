"""
Saved segments -- named DAX queries kept for later reuse.

Process-local and thread-safe.  Segments live only as long as the process;
swap the store for a database-backed one if they must survive restarts.
"""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass

from pivotdax.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Segment:
    name: str
    dax: str
    saved_at: float


class SegmentStore:
    """In-memory segment store keyed by segment name."""

    def __init__(self):
        self._store: dict[str, Segment] = {}
        self._lock = threading.Lock()

    def save(self, name: str, dax: str) -> Segment:
        """Store *dax* under *name*, replacing any earlier segment of that name."""
        if not name or not name.strip() or not dax or not dax.strip():
            raise ValueError("Segment name and DAX cannot be empty.")
        segment = Segment(name=name, dax=dax, saved_at=time.time())
        with self._lock:
            replaced = name in self._store
            self._store[name] = segment
        logger.info("Saved segment '%s'%s (%d chars of DAX)",
                    name, " (replaced)" if replaced else "", len(dax))
        return segment

    def get(self, name: str) -> Segment | None:
        with self._lock:
            return self._store.get(name)

    def list(self) -> list[Segment]:
        """Return saved segments, oldest first."""
        with self._lock:
            return sorted(self._store.values(), key=lambda s: s.saved_at)

    def clear(self) -> int:
        with self._lock:
            count = len(self._store)
            self._store.clear()
            return count


# ── Module-level singleton ──────────────────────────────

_store = SegmentStore()


def get_segment_store() -> SegmentStore:
    """Return the global segment store."""
    return _store
