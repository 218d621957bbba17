import os
import sys
import pytest

# Ensure the backend root (containing the `scoreboard` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from scoreboard import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    BCRYPT_LOG_ROUNDS = 4
    CORS_ORIGINS = []
    LOG_LEVEL = 'DEBUG'
    MAX_PENALTY_KICKS = 15
    MAX_TEAM_NAME_LENGTH = 50
    DEFAULT_SPORT_CODE = 'SOC'


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import scoreboard.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


def register(client, email='coach@example.com', name='Coach', password='password123'):
    res = client.post('/api/auth/register', json={
        'display_name': name,
        'email_address': email,
        'password': password,
    })
    assert res.status_code == 201
    return res.get_json()


@pytest.fixture()
def streamer_account(client):
    """Registered and logged in on `client`; dict with stream_key and stream_token."""
    return register(client)


@pytest.fixture()
def streamer(flask_app, streamer_account):
    from scoreboard.models import Streamer
    return db.session.get(Streamer, streamer_account['id'])


@pytest.fixture()
def sio_client(flask_app, client):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=client,
        namespace='/ws'
    )
    yield test_client
    if test_client.is_connected('/ws'):
        test_client.disconnect(namespace='/ws')


def events_named(received, name):
    return [pkt['args'][0] for pkt in received if pkt['name'] == name]
