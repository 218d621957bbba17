"""Which overlay connection (Socket.IO sid) listens to which stream key."""
import threading
from typing import Dict, List, Set


class ChannelRegistry:

    def __init__(self):
        self._subscribers: Dict[str, Set[str]] = {}
        self._sid_channels: Dict[str, Set[str]] = {}
        # Never pruned; one entry per stream key ever seen, so bounded by streamers
        self._locks: Dict[str, threading.Lock] = {}

    def _lock_for(self, stream_key: str) -> threading.Lock:
        return self._locks.setdefault(stream_key, threading.Lock())

    def join(self, sid: str, stream_key: str) -> int:
        """Add sid to the channel; returns the channel's subscriber count."""
        with self._lock_for(stream_key):
            members = self._subscribers.setdefault(stream_key, set())
            members.add(sid)
            count = len(members)
        self._sid_channels.setdefault(sid, set()).add(stream_key)
        return count

    def leave(self, sid: str, stream_key: str) -> bool:
        with self._lock_for(stream_key):
            members = self._subscribers.get(stream_key)
            removed = bool(members) and sid in members
            if removed:
                members.discard(sid)
                if not members:
                    self._subscribers.pop(stream_key, None)
        channels = self._sid_channels.get(sid)
        if channels is not None:
            channels.discard(stream_key)
            if not channels:
                self._sid_channels.pop(sid, None)
        return removed

    def drop(self, sid: str) -> List[str]:
        """Forget a disconnected sid everywhere; returns the channels it was in."""
        channels = list(self._sid_channels.pop(sid, ()))
        for stream_key in channels:
            with self._lock_for(stream_key):
                members = self._subscribers.get(stream_key)
                if members is not None:
                    members.discard(sid)
                    if not members:
                        self._subscribers.pop(stream_key, None)
        return channels

    def subscribers(self, stream_key: str) -> List[str]:
        # Copy under the lock so fan-out never iterates a set being mutated
        with self._lock_for(stream_key):
            return list(self._subscribers.get(stream_key, ()))

    def subscriber_count(self, stream_key: str) -> int:
        return len(self._subscribers.get(stream_key, ()))
