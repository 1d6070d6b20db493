"""
Generation-tagged value cache.

Every mutation of the owning object bumps the generation; an entry is only
returned while the generation it was computed under is still current.
"""

import threading
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple

_MISSING = object()


class ValueCache:
    """
    Memoization keyed by computation kind.

    Attributes:
        generation: Counter incremented by bump() and clear()
    """

    def __init__(self, name: str = "cache") -> None:
        self.name = name
        self.generation = 0
        self._entries: Dict[Hashable, Tuple[int, Any]] = {}
        self._children: List["ValueCache"] = []
        self._lock = threading.RLock()

    def bump(self) -> int:
        """Invalidate every entry computed so far."""
        with self._lock:
            self.generation += 1
            for child in self._children:
                child.bump()
            return self.generation

    def clear(self) -> None:
        """Drop all entries and invalidate (cascades to linked caches)."""
        with self._lock:
            self._entries.clear()
            self.generation += 1
            for child in self._children:
                child.clear()

    def link(self, child: "ValueCache") -> None:
        """Clear child whenever this cache is cleared or bumped."""
        with self._lock:
            if child is not self and child not in self._children:
                self._children.append(child)

    def unlink(self, child: "ValueCache") -> None:
        with self._lock:
            if child in self._children:
                self._children.remove(child)

    def get(self, key: Hashable, default: Optional[Any] = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry[0] != self.generation:
                return default
            return entry[1]

    def contains(self, key: Hashable) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._entries[key] = (self.generation, value)

    def get_or_compute(self, key: Hashable, compute: Callable[[], Any]) -> Any:
        """Return the current-generation value for key, computing it if stale."""
        with self._lock:
            value = self.get(key, _MISSING)
            if value is not _MISSING:
                return value
            generation = self.generation
            value = compute()
            if generation == self.generation:
                self._entries[key] = (generation, value)
            return value

    def copy_entries(self, other: "ValueCache") -> None:
        """Import other's current entries under this cache's generation."""
        with self._lock:
            for key, (generation, value) in list(other._entries.items()):
                if generation == other.generation:
                    self._entries[key] = (self.generation, value)

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for g, _ in self._entries.values() if g == self.generation)

    def __repr__(self) -> str:
        return f"ValueCache({self.name!r}, generation={self.generation}, entries={len(self)})"
