"""In-process cache of the last projected state per stream key.

Write path: every broadcast stores the fresh snapshot and bumps the
version. Read path: overlay polls compare their last version against the
cached one and get nothing back when it matches.

The cache is rebuildable from storage at any time. Versions are
per-process only: after a restart they start again at 1.
"""
import threading
from datetime import datetime
from typing import Any, Dict, NamedTuple, Optional

from .timer import utcnow


class CachedEntry(NamedTuple):
    state: Dict[str, Any]
    version: int
    cached_at: datetime


class GameStateCache:

    def __init__(self):
        self._entries: Dict[str, CachedEntry] = {}
        # Highest version handed out per key; survives remove() so a
        # removed-then-rebuilt entry never reuses a number
        self._versions: Dict[str, int] = {}
        # Never pruned; one entry per stream key ever seen, so bounded by streamers
        self._locks: Dict[str, threading.Lock] = {}

    def _lock_for(self, stream_key: str) -> threading.Lock:
        # dict.setdefault is atomic, so two writers always get the same lock
        return self._locks.setdefault(stream_key, threading.Lock())

    def set(self, stream_key: str, state: Dict[str, Any]) -> int:
        """Insert or replace the entry and return its new version."""
        with self._lock_for(stream_key):
            version = self._versions.get(stream_key, 0) + 1
            self._versions[stream_key] = version
            self._entries[stream_key] = CachedEntry(state, version, utcnow())
            return version

    def get(self, stream_key: str) -> Optional[CachedEntry]:
        return self._entries.get(stream_key)

    def remove(self, stream_key: str) -> None:
        with self._lock_for(stream_key):
            self._entries.pop(stream_key, None)

    def __contains__(self, stream_key: str) -> bool:
        return stream_key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
