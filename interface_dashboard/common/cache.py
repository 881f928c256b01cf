"""
In-memory memoization owned by a component instance.

A cache lives as long as the component that created it (one Streamlit
session). There is no eviction: entries stay until the owner is dropped or
``clear()`` is called. Keys are always built by an explicit key function so
that two callers asking for the same thing agree on the key.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Generic, Hashable, Iterator, Optional, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class MemoryCache(Generic[K, V]):
    """Unbounded key/value store with hit/miss counters."""

    def __init__(self, name: str = "cache") -> None:
        self.name = name
        self._entries: Dict[K, V] = {}
        self.hits = 0
        self.misses = 0

    def get(self, key: K) -> Optional[V]:
        if key in self._entries:
            self.hits += 1
            return self._entries[key]
        self.misses += 1
        return None

    def put(self, key: K, value: V) -> None:
        self._entries[key] = value
        logger.debug(f"{self.name}: stored {key!r} ({len(self._entries)} entries)")

    def get_or_compute(self, key: K, compute: Callable[[], V]) -> V:
        """Return the cached value for ``key`` or compute, store and return it."""
        if key in self._entries:
            self.hits += 1
            return self._entries[key]
        self.misses += 1
        value = compute()
        self.put(key, value)
        return value

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[K]:
        return iter(self._entries)
