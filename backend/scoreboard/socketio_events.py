from flask import request
from flask_socketio import emit
from scoreboard import socketio
from scoreboard.services.games.broadcast import NAMESPACE
from scoreboard.services.games.sync import get_sync_protocol, UNAUTHORIZED


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _payload(data):
    """Event body as a dict, or None after telling the client it was malformed."""
    if data is None:
        return {}
    if not isinstance(data, dict):
        emit('error', {'message': 'Payload must be an object'})
        return None
    return data


def handle_connect():
    emit('connected', {'message': f'Connected to {NAMESPACE}'})


def handle_disconnect(*args):
    # Dropped connections stop being fan-out targets immediately
    get_sync_protocol().disconnect(_get_sid())


def handle_join_stream(data):
    data = _payload(data)
    if data is None:
        return {'status': 'error'}
    stream_key = data.get('stream_key')
    if not stream_key:
        emit('error', {'message': 'stream_key is required'})
        return {'status': 'error'}
    result = get_sync_protocol().join(_get_sid(), stream_key, data.get('stream_token'))
    if result['status'] == UNAUTHORIZED:
        emit('error', {'message': 'Unauthorized'})
        return result
    emit('joined', {'stream_key': result['stream_key'], 'version': result['version']})
    return result


def handle_leave_stream(data):
    data = _payload(data)
    if data is None:
        return {'status': 'error'}
    stream_key = data.get('stream_key')
    if not stream_key:
        emit('error', {'message': 'stream_key is required'})
        return {'status': 'error'}
    get_sync_protocol().leave(_get_sid(), stream_key)
    emit('left', {'stream_key': stream_key})
    return {'status': 'left'}


def handle_get_state(data):
    """Versioned poll; the acknowledgement says whether anything was pushed."""
    data = _payload(data)
    if data is None:
        return {'status': 'error'}
    stream_key = data.get('stream_key')
    if not stream_key:
        emit('error', {'message': 'stream_key is required'})
        return {'status': 'error'}
    return get_sync_protocol().poll(
        _get_sid(), stream_key, data.get('last_version', -1), data.get('stream_token')
    )


def handle_ping(data):
    emit('pong', data if isinstance(data, dict) else {})


def register_socketio_handlers() -> None:
    """Register overlay Socket.IO event handlers on the '/ws' namespace."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('join_stream', handle_join_stream, namespace=NAMESPACE)
    socketio.on_event('leave_stream', handle_leave_stream, namespace=NAMESPACE)
    socketio.on_event('get_state', handle_get_state, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)
