"""Fan-out of state and logo updates to a stream's overlay subscribers."""
from typing import Any, Dict, Optional

from flask import current_app

from .repository import GameRepository
from .snapshot import assets_payload, build_snapshot

NAMESPACE = '/ws'

STATE_EVENT = 'game_state_updated'
LOGOS_EVENT = 'logos_updated'
GAME_ENDED_EVENT = 'game_ended'


class Broadcaster:

    def __init__(self, socketio, cache, channels, repository_factory=GameRepository):
        self.socketio = socketio
        self.cache = cache
        self.channels = channels
        self._repository_factory = repository_factory

    @property
    def repository(self) -> GameRepository:
        return self._repository_factory()

    def send(self, sid: str, event: str, payload: Any) -> bool:
        """Emit to one connection. Returns False instead of raising on failure."""
        try:
            self.socketio.emit(event, payload, to=sid, namespace=NAMESPACE)
            return True
        except Exception as exc:
            current_app.logger.warning(f"[push-failed] sid={sid} event={event} error={exc!r}")
            return False

    def _fan_out(self, stream_key: str, event: str, payload: Any) -> int:
        delivered = 0
        for sid in self.channels.subscribers(stream_key):
            if self.send(sid, event, payload):
                delivered += 1
        return delivered

    def broadcast_state(self, streamer_id: int, stream_key: str) -> Optional[int]:
        """Rebuild the snapshot, bump the cached version and push it.

        Never carries logos. Returns the new version, or None when the
        streamer no longer has an open game (the cache entry is dropped and
        subscribers are told the game ended).
        """
        aggregate = self.repository.load_game_aggregate(streamer_id)
        if aggregate is None:
            self.cache.remove(stream_key)
            delivered = self._fan_out(stream_key, GAME_ENDED_EVENT, {'stream_key': stream_key})
            current_app.logger.info(f"[broadcast-ended] streamer={streamer_id} subscribers={delivered}")
            return None
        state = build_snapshot(aggregate)
        version = self.cache.set(stream_key, state)
        delivered = self._fan_out(stream_key, STATE_EVENT, state_message(state, version))
        current_app.logger.info(
            f"[broadcast] streamer={streamer_id} game={state['gameId']} version={version} subscribers={delivered}"
        )
        return version

    def broadcast_assets(self, streamer_id: int, stream_key: str) -> None:
        logos = self.repository.load_logos(streamer_id)
        delivered = self._fan_out(stream_key, LOGOS_EVENT, assets_payload(logos))
        current_app.logger.info(f"[broadcast-logos] streamer={streamer_id} subscribers={delivered}")


def state_message(state: Dict[str, Any], version: int) -> Dict[str, Any]:
    return {'version': version, 'state': state}


def get_broadcaster() -> Broadcaster:
    return current_app.extensions['broadcaster']
