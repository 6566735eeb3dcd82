"""
Client-side resolution cache.

Three independent key spaces avoid repeat round trips to the registry:
- by_id: schema ID -> Schema
- by_latest: subject -> latest Schema
- by_version: (subject, version) -> Schema

Entries are populated lazily, only after a successful upstream call, and
are never evicted: schemas are immutable once registered. The only way to
drop entries is to disable caching, which clears all three spaces.

Staleness window:
    There is no invalidation on register or delete. A cached "latest"
    keeps answering after a newer version is registered for the subject,
    and deleted entries keep answering from cache. Clients accept this in
    exchange for not re-fetching; toggle caching off and on to reset.

Invariants:
    - While disabled, get() always misses and put() is dropped
    - set_enabled() excludes every lookup and write while it runs
    - Each key space has its own lock; lookups in one never wait on another
"""

from __future__ import annotations

import logging
from typing import Dict, Generic, Hashable, Optional, TypeVar

from .locks import ReadWriteLock
from .schema import Schema

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)


class _KeySpace(Generic[K]):
    """One lock-guarded key -> Schema mapping."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.lock = ReadWriteLock()
        self.enabled = True
        self._entries: Dict[K, Schema] = {}

    def get(self, key: K) -> Optional[Schema]:
        with self.lock.read():
            if not self.enabled:
                return None
            return self._entries.get(key)

    def put(self, key: K, schema: Schema) -> None:
        with self.lock.write():
            if self.enabled:
                self._entries[key] = schema

    def __len__(self) -> int:
        with self.lock.read():
            return len(self._entries)

    def _reset(self, enabled: bool) -> None:
        # Caller holds the write lock
        self._entries.clear()
        self.enabled = enabled


class SchemaCache:
    """Resolution cache shared by all calls of one client.

    Example:
        >>> cache = SchemaCache()
        >>> cache.by_id.put(1, schema)
        >>> cache.by_id.get(1) is schema
        True
        >>> cache.set_enabled(False)
        >>> cache.by_id.get(1) is None
        True
    """

    def __init__(self, enabled: bool = True) -> None:
        self.by_id: _KeySpace[int] = _KeySpace("by_id")
        self.by_latest: _KeySpace[str] = _KeySpace("by_latest")
        self.by_version: _KeySpace[tuple[str, int]] = _KeySpace("by_version")
        self._enabled = True
        if not enabled:
            self.set_enabled(False)

    @property
    def enabled(self) -> bool:
        """Whether lookups may be answered from cache."""
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        """Enable or disable caching.

        Both directions clear every key space; re-enabling starts empty.
        """
        spaces = (self.by_id, self.by_latest, self.by_version)
        # Fixed acquisition order keeps concurrent toggles deadlock-free
        for space in spaces:
            space.lock.acquire_write()
        try:
            for space in spaces:
                space._reset(enabled)
            self._enabled = enabled
        finally:
            for space in reversed(spaces):
                space.lock.release_write()
        logger.debug(f"Schema cache {'enabled' if enabled else 'disabled'}")
