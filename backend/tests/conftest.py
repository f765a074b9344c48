import os
import sys
import pytest

# Ensure the backend root (containing the `dotsboxes` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from dotsboxes import create_app, socketio
from config import Config


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    DEFAULT_BOARD_SIZE = 2
    DEFAULT_MAX_PLAYERS = 3
    MIN_PLAYERS = 2
    MIN_PLAYERS_TO_CONTINUE = 2
    HOST_MUST_BE_READY = False


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture()
def started_game(client):
    """A two-player game on a 2x2 board, already playing. Host moves first."""
    created = client.post('/api/games/create', json={'nickname': 'Alice'}).get_json()
    code = created['session_id']
    host_id = created['player_id']
    guest_id = client.post('/api/games/join', json={'session_id': code, 'nickname': 'Bob'}).get_json()['player_id']
    client.post(f'/api/games/{code}/ready', json={'player_id': guest_id, 'ready': True})
    res = client.post(f'/api/games/{code}/start', json={'player_id': host_id})
    assert res.status_code == 200
    return code, host_id, guest_id
