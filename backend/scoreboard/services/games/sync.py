"""Per-connection overlay protocol: join, leave, versioned poll.

join   -> subscribe, push the current snapshot once plus the logos.
poll   -> push only when the caller's version is stale; a cold cache is
          rebuilt from storage and treated like a fresh join (logos too).
leave  -> unsubscribe; nothing else is delivered to that connection.

Access is checked on every join and poll so a blocked streamer's overlays
stop receiving state on their next request.
"""
from typing import Any, Dict, Optional

from flask import current_app

from scoreboard.services.auth import normalize_stream_secret, validate_stream_access
from .broadcast import Broadcaster, LOGOS_EVENT, STATE_EVENT, state_message
from .cache import GameStateCache
from .channels import ChannelRegistry
from .locks import TenantLocks
from .repository import GameRepository
from .snapshot import assets_payload, build_snapshot, refresh_clock

UPDATED = 'updated'
UNCHANGED = 'unchanged'
NO_ACTIVE_GAME = 'no_active_game'
UNAUTHORIZED = 'unauthorized'
JOINED = 'joined'


def _to_version(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return -1


class SyncProtocol:

    def __init__(self, cache: GameStateCache, channels: ChannelRegistry,
                 broadcaster: Broadcaster, repository: GameRepository, locks: TenantLocks):
        self.cache = cache
        self.channels = channels
        self.broadcaster = broadcaster
        self.repository = repository
        self.locks = locks

    def _load_into_cache(self, streamer, stream_key):
        # Same lock as the mutation path, so a fill never overwrites a newer broadcast
        with self.locks.hold(streamer.id):
            entry = self.cache.get(stream_key)
            if entry is not None:
                return entry
            return self._fill(streamer, stream_key)

    def _fill(self, streamer, stream_key):
        aggregate = self.repository.load_game_aggregate(streamer.id)
        if aggregate is None:
            return None
        state = build_snapshot(aggregate)
        version = self.cache.set(stream_key, state)
        current_app.logger.info(f"[cache-fill] streamer={streamer.id} version={version}")
        return self.cache.get(stream_key)

    def _send_state(self, sid, state, version) -> None:
        self.broadcaster.send(sid, STATE_EVENT, state_message(refresh_clock(state), version))

    def _send_logos(self, sid, streamer) -> None:
        self.broadcaster.send(sid, LOGOS_EVENT, assets_payload(self.repository.load_logos(streamer.id)))

    def join(self, sid: str, stream_key, stream_token=None) -> Dict[str, Any]:
        streamer = validate_stream_access(stream_key, stream_token)
        if streamer is None:
            return {'status': UNAUTHORIZED}
        key = streamer.stream_key
        # Pushes to one stream are serialized so versions arrive in order
        with self.locks.hold(streamer.id):
            count = self.channels.join(sid, key)
            current_app.logger.info(f"[join] streamer={streamer.id} sid={sid} subscribers={count}")
            entry = self._load_into_cache(streamer, key)
            if entry is None:
                return {'status': JOINED, 'stream_key': key, 'version': None}
            self._send_state(sid, entry.state, entry.version)
            self._send_logos(sid, streamer)
        return {'status': JOINED, 'stream_key': key, 'version': entry.version}

    def leave(self, sid: str, stream_key) -> bool:
        removed = self.channels.leave(sid, normalize_stream_secret(stream_key))
        current_app.logger.info(f"[leave] sid={sid} removed={removed}")
        return removed

    def poll(self, sid: str, stream_key, last_version=-1, stream_token=None) -> Dict[str, Any]:
        streamer = validate_stream_access(stream_key, stream_token)
        if streamer is None:
            return {'status': UNAUTHORIZED}
        key = streamer.stream_key
        last_version = _to_version(last_version)

        entry = self.cache.get(key)
        if entry is not None and entry.version == last_version:
            return {'status': UNCHANGED, 'version': entry.version}

        with self.locks.hold(streamer.id):
            entry = self.cache.get(key)
            if entry is not None:
                self._send_state(sid, entry.state, entry.version)
                return {'status': UPDATED, 'version': entry.version}

            current_app.logger.info(f"[poll-miss] streamer={streamer.id} sid={sid}")
            entry = self._fill(streamer, key)
            if entry is None:
                return {'status': NO_ACTIVE_GAME}
            self._send_state(sid, entry.state, entry.version)
            self._send_logos(sid, streamer)
        return {'status': UPDATED, 'version': entry.version}

    def disconnect(self, sid: str) -> None:
        channels = self.channels.drop(sid)
        if channels:
            current_app.logger.info(f"[disconnect] sid={sid} channels={len(channels)}")

    def read_state(self, streamer) -> Optional[Dict[str, Any]]:
        """Current snapshot for HTTP reads: cache first, storage on a miss."""
        entry = self.cache.get(streamer.stream_key) or self._load_into_cache(streamer, streamer.stream_key)
        if entry is None:
            return None
        return refresh_clock(entry.state)


def get_sync_protocol() -> SyncProtocol:
    return SyncProtocol(
        current_app.extensions['game_state_cache'],
        current_app.extensions['channel_registry'],
        current_app.extensions['broadcaster'],
        GameRepository(),
        current_app.extensions['tenant_locks'],
    )
