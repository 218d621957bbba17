from flask import g

from scoreboard import db
from scoreboard.services.auth import (
    normalize_stream_secret, resolve_tenant_by_public_key, rotate_stream_token,
    set_blocked, validate_stream_access,
)


def test_normalize_stream_secret():
    assert normalize_stream_secret('  ABCD-ef12 ') == 'abcdef12'
    assert normalize_stream_secret('') is None
    assert normalize_stream_secret(None) is None
    assert normalize_stream_secret(42) is None


def test_key_lookup_ignores_case_and_dashes(streamer):
    key = streamer.stream_key
    dashed = f'{key[:8]}-{key[8:12]}-{key[12:]}'.upper()
    assert resolve_tenant_by_public_key(dashed).id == streamer.id
    assert resolve_tenant_by_public_key('0' * 32) is None


def test_public_key_alone_is_enough(streamer):
    assert validate_stream_access(streamer.stream_key).id == streamer.id


def test_token_must_match_when_given(streamer):
    assert validate_stream_access(streamer.stream_key, streamer.stream_token).id == streamer.id
    assert validate_stream_access(streamer.stream_key, 'f' * 32) is None


def test_blocked_or_deactivated_streamer_refused(streamer):
    set_blocked(streamer)
    assert validate_stream_access(streamer.stream_key) is None
    set_blocked(streamer, False)
    assert validate_stream_access(streamer.stream_key) is not None

    streamer.is_active = False
    db.session.commit()
    assert validate_stream_access(streamer.stream_key, streamer.stream_token) is None


def test_rotated_token_replaces_old(streamer):
    old = streamer.stream_token
    new = rotate_stream_token(streamer)
    assert new != old
    assert validate_stream_access(streamer.stream_key, old) is None
    assert validate_stream_access(streamer.stream_key, new) is not None


def test_register_login_and_me(client):
    from conftest import register
    account = register(client, email='Ref@Example.com')
    assert account['email_address'] == 'ref@example.com'
    assert len(account['stream_key']) == 32
    assert 'password_hash' not in account

    res = client.post('/api/auth/register', json={
        'display_name': 'Other', 'email_address': 'ref@example.com', 'password': 'password123',
    })
    assert res.status_code == 400

    client.post('/api/auth/logout')
    assert client.get('/api/auth/me').status_code == 401

    res = client.post('/api/auth/login', json={'email_address': 'ref@example.com', 'password': 'wrong-pass'})
    assert res.status_code == 401
    res = client.post('/api/auth/login', json={'email_address': 'ref@example.com', 'password': 'password123'})
    assert res.status_code == 200
    me = client.get('/api/auth/me').get_json()
    assert me['stream_token'] == account['stream_token']


def test_short_password_rejected(client):
    res = client.post('/api/auth/register', json={
        'display_name': 'Coach', 'email_address': 'a@example.com', 'password': 'short',
    })
    assert res.status_code == 400


def test_token_rotation_endpoint(client, streamer_account):
    res = client.post('/api/auth/token/rotate')
    assert res.status_code == 200
    assert res.get_json()['stream_token'] != streamer_account['stream_token']


def test_blocked_streamer_session_is_rejected(client, streamer):
    assert client.get('/api/auth/me').status_code == 200
    set_blocked(streamer)
    # Requests share the fixture's app context; drop Flask-Login's per-context
    # user so the next request goes through the user loader again
    g.pop('_login_user', None)
    assert client.get('/api/auth/me').status_code == 401


def test_blocking_drops_cached_state(flask_app, client, streamer):
    client.post('/api/game/create')
    cache = flask_app.extensions['game_state_cache']
    assert streamer.stream_key in cache
    set_blocked(streamer)
    assert streamer.stream_key not in cache
