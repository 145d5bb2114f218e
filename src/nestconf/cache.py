"""Per-class cache of resolution outcomes."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Generic, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResolutionCache(Generic[T]):
    """Maps class identity to a previously computed outcome.

    Entries are populated lazily and never invalidated while a run is in
    progress; class declarations do not change once a class is defined.
    Keys are ``id(cls)`` and each entry keeps a strong reference to its class,
    so an id cannot be recycled for another class while the entry exists.

    Concurrent misses for the same class may compute twice. The first stored
    value wins and every caller gets that value back. ``hits`` and ``misses``
    are plain counters and may undercount under heavy contention.
    """

    def __init__(self) -> None:
        self._entries: dict[int, tuple[type, T]] = {}
        self.hits = 0
        self.misses = 0

    def peek(self, cls: type) -> T | None:
        """Return the cached outcome for ``cls`` without computing it."""
        entry = self._entries.get(id(cls))
        if entry is None or entry[0] is not cls:
            return None
        return entry[1]

    def put(self, cls: type, value: T) -> T:
        """Store ``value`` unless ``cls`` already has one; return the stored value."""
        return self._entries.setdefault(id(cls), (cls, value))[1]

    def get_or_compute(self, cls: type, compute: Callable[[type], T]) -> T:
        """Return the cached outcome for ``cls``, computing and storing it on a miss."""
        entry = self._entries.get(id(cls))
        if entry is not None and entry[0] is cls:
            self.hits += 1
            return entry[1]

        self.misses += 1
        logger.debug("Resolution cache miss for %s", getattr(cls, "__qualname__", cls))
        return self.put(cls, compute(cls))

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def __contains__(self, cls: object) -> bool:
        entry = self._entries.get(id(cls))
        return entry is not None and entry[0] is cls

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["ResolutionCache"]
