"""Streamer identity: accounts, overlay keys and access checks.

Overlay endpoints are reached with the public stream key alone (deep links
pasted into the broadcast tool) or with the key plus the private stream
token. A failed check never says which part failed.
"""
import hmac
from typing import Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from scoreboard import db
from scoreboard.errors import BadRequest
from scoreboard.models import Streamer, generate_stream_secret


def normalize_stream_secret(value) -> Optional[str]:
    if not isinstance(value, str):
        return None
    normalized = value.strip().lower().replace('-', '')
    return normalized or None


def resolve_tenant_by_public_key(stream_key) -> Optional[Streamer]:
    key = normalize_stream_secret(stream_key)
    if key is None:
        return None
    return Streamer.query.filter_by(stream_key=key).first()


def validate_token(streamer: Streamer, stream_token) -> bool:
    token = normalize_stream_secret(stream_token)
    if token is None:
        return False
    return hmac.compare_digest(streamer.stream_token, token)


def is_blocked(streamer: Streamer) -> bool:
    return bool(streamer.is_blocked) or not streamer.is_active


def validate_stream_access(stream_key, stream_token=None) -> Optional[Streamer]:
    """Streamer for an overlay request, or None if access is refused.

    Re-read on every call so blocking a streamer is effective on the next
    check without tracking sessions.
    """
    streamer = resolve_tenant_by_public_key(stream_key)
    if streamer is None or is_blocked(streamer):
        return None
    if stream_token not in (None, '') and not validate_token(streamer, stream_token):
        return None
    return streamer


def create_streamer(display_name: str, email_address: str, password: str) -> Streamer:
    streamer = Streamer(
        display_name=display_name.strip(),
        email_address=email_address.strip().lower(),
    )
    streamer.set_password(password)
    db.session.add(streamer)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise BadRequest('Email address already registered')
    current_app.logger.info(f"[streamer-created] streamer={streamer.id}")
    return streamer


def authenticate(email_address: str, password: str) -> Optional[Streamer]:
    streamer = Streamer.query.filter_by(email_address=(email_address or '').strip().lower()).first()
    if streamer is None or is_blocked(streamer):
        return None
    if not streamer.check_password(password or ''):
        return None
    return streamer


def rotate_stream_token(streamer: Streamer) -> str:
    streamer.stream_token = generate_stream_secret()
    db.session.add(streamer)
    db.session.commit()
    current_app.logger.info(f"[token-rotated] streamer={streamer.id}")
    return streamer.stream_token


def set_blocked(streamer: Streamer, blocked: bool = True) -> None:
    streamer.is_blocked = blocked
    db.session.add(streamer)
    db.session.commit()
    if blocked:
        current_app.extensions['game_state_cache'].remove(streamer.stream_key)
    current_app.logger.info(f"[streamer-blocked] streamer={streamer.id} blocked={blocked}")
