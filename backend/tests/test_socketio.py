from conftest import events_named
from scoreboard import socketio
from scoreboard.services.auth import set_blocked


def join(sio_client, key, token=None):
    payload = {'stream_key': key}
    if token is not None:
        payload['stream_token'] = token
    return sio_client.emit('join_stream', payload, callback=True, namespace='/ws')


def poll(sio_client, key, last_version):
    return sio_client.emit(
        'get_state', {'stream_key': key, 'last_version': last_version}, callback=True, namespace='/ws'
    )


def test_socket_connect(sio_client):
    assert sio_client.is_connected('/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'connected' for pkt in received)


def test_overlay_follows_the_game(sio_client, client, streamer_account):
    key = streamer_account['stream_key']
    sio_client.get_received('/ws')

    # Overlay opens before the controller has created anything
    ack = join(sio_client, key)
    assert ack == {'status': 'joined', 'stream_key': key, 'version': None}
    received = sio_client.get_received('/ws')
    assert events_named(received, 'game_state_updated') == []
    assert events_named(received, 'joined')[0]['stream_key'] == key

    client.post('/api/game/create')
    received = sio_client.get_received('/ws')
    updates = events_named(received, 'game_state_updated')
    assert len(updates) == 1
    assert updates[0]['version'] == 1
    assert updates[0]['state']['homeScore'] == 0
    assert updates[0]['state']['gameStatus'] == 'PREGAME'
    logos = events_named(received, 'logos_updated')
    assert logos == [{'homeLogoUrl': None, 'awayLogoUrl': None}]

    client.post('/api/game/timer/start')
    updates = events_named(sio_client.get_received('/ws'), 'game_state_updated')
    assert [u['version'] for u in updates] == [2]
    assert updates[0]['state']['gameStatus'] == 'LIVE'
    assert updates[0]['state']['isTimerRunning'] is True

    client.post('/api/game/score/home', json={'score': 2})
    updates = events_named(sio_client.get_received('/ws'), 'game_state_updated')
    assert [u['version'] for u in updates] == [3]
    assert updates[0]['state']['homeScore'] == 2

    # Up to date: nothing is pushed
    assert poll(sio_client, key, 3) == {'status': 'unchanged', 'version': 3}
    assert sio_client.get_received('/ws') == []

    # Stale: the current snapshot is pushed
    assert poll(sio_client, key, 2) == {'status': 'updated', 'version': 3}
    updates = events_named(sio_client.get_received('/ws'), 'game_state_updated')
    assert len(updates) == 1
    assert updates[0]['version'] == 3
    assert updates[0]['state']['homeScore'] == 2


def test_state_updates_never_carry_logos(sio_client, client, streamer_account):
    key = streamer_account['stream_key']
    client.post('/api/game/create')
    join(sio_client, key)
    sio_client.get_received('/ws')

    logo = 'data:image/png;base64,iVBORw0KGgo='
    client.post('/api/game/team/home/appearance', json={'logo_data': logo})
    received = sio_client.get_received('/ws')
    updates = events_named(received, 'game_state_updated')
    assert len(updates) == 1
    assert 'homeLogoUrl' not in updates[0]['state']
    assert events_named(received, 'logos_updated') == [{'homeLogoUrl': logo, 'awayLogoUrl': None}]

    client.post('/api/game/score/away', json={'score': 2})
    received = sio_client.get_received('/ws')
    assert events_named(received, 'logos_updated') == []


def test_late_join_gets_current_state_and_logos(sio_client, client, streamer_account):
    key = streamer_account['stream_key']
    client.post('/api/game/create')
    client.post('/api/game/score/away', json={'score': 2})
    sio_client.get_received('/ws')

    ack = join(sio_client, key, streamer_account['stream_token'])
    assert ack['version'] == 2
    received = sio_client.get_received('/ws')
    updates = events_named(received, 'game_state_updated')
    assert len(updates) == 1
    assert updates[0]['state']['awayScore'] == 2
    assert len(events_named(received, 'logos_updated')) == 1


def test_poll_without_game(sio_client, streamer_account):
    key = streamer_account['stream_key']
    sio_client.get_received('/ws')
    assert poll(sio_client, key, -1) == {'status': 'no_active_game'}
    assert events_named(sio_client.get_received('/ws'), 'game_state_updated') == []


def test_cold_cache_poll_rebuilds(flask_app, sio_client, client, streamer_account):
    key = streamer_account['stream_key']
    client.post('/api/game/create')
    client.post('/api/game/score/home', json={'score': 5})
    flask_app.extensions['game_state_cache'].remove(key)
    sio_client.get_received('/ws')

    ack = poll(sio_client, key, 2)
    assert ack['status'] == 'updated'
    assert ack['version'] == 3
    received = sio_client.get_received('/ws')
    assert events_named(received, 'game_state_updated')[0]['state']['homeScore'] == 5
    assert len(events_named(received, 'logos_updated')) == 1


def test_game_end_notifies_subscribers(sio_client, client, streamer_account):
    key = streamer_account['stream_key']
    client.post('/api/game/create')
    join(sio_client, key)
    sio_client.get_received('/ws')

    client.post('/api/game/status', json={'status': 'FULLTIME'})
    received = sio_client.get_received('/ws')
    assert events_named(received, 'game_ended') == [{'stream_key': key}]
    assert poll(sio_client, key, 1) == {'status': 'no_active_game'}


def test_leave_stops_updates(sio_client, client, streamer_account):
    key = streamer_account['stream_key']
    client.post('/api/game/create')
    join(sio_client, key)
    sio_client.emit('leave_stream', {'stream_key': key}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert events_named(received, 'left') == [{'stream_key': key}]

    client.post('/api/game/score/home', json={'score': 1})
    assert events_named(sio_client.get_received('/ws'), 'game_state_updated') == []


def test_disconnect_drops_subscription(flask_app, client, streamer_account):
    key = streamer_account['stream_key']
    overlay = socketio.test_client(flask_app, namespace='/ws')
    join(overlay, key)
    channels = flask_app.extensions['channel_registry']
    assert channels.subscriber_count(key) == 1
    overlay.disconnect(namespace='/ws')
    assert channels.subscriber_count(key) == 0


def test_streams_are_isolated(flask_app, sio_client, client, streamer_account):
    from conftest import register
    other_client = flask_app.test_client()
    other = register(other_client, email='rival@example.com', name='Rival')
    join(sio_client, streamer_account['stream_key'])
    sio_client.get_received('/ws')

    other_client.post('/api/game/create')
    other_client.post('/api/game/score/home', json={'score': 7})
    assert events_named(sio_client.get_received('/ws'), 'game_state_updated') == []
    assert other['stream_key'] != streamer_account['stream_key']


def test_unauthorized_join(sio_client, streamer, streamer_account):
    key = streamer_account['stream_key']
    sio_client.get_received('/ws')

    assert join(sio_client, key, 'f' * 32) == {'status': 'unauthorized'}
    received = sio_client.get_received('/ws')
    assert events_named(received, 'error') == [{'message': 'Unauthorized'}]

    set_blocked(streamer)
    assert join(sio_client, key) == {'status': 'unauthorized'}
    assert poll(sio_client, key, -1) == {'status': 'unauthorized'}
    assert join(sio_client, '0' * 32) == {'status': 'unauthorized'}


def test_join_requires_key(sio_client):
    sio_client.get_received('/ws')
    assert sio_client.emit('join_stream', {}, callback=True, namespace='/ws') == {'status': 'error'}
    assert events_named(sio_client.get_received('/ws'), 'error')


def test_non_object_payloads_get_error(sio_client, streamer_account):
    sio_client.get_received('/ws')
    for event in ('join_stream', 'leave_stream', 'get_state'):
        ack = sio_client.emit(event, 'not-a-dict', callback=True, namespace='/ws')
        assert ack == {'status': 'error'}
    received = sio_client.get_received('/ws')
    assert len(events_named(received, 'error')) == 3
    assert sio_client.is_connected('/ws')
