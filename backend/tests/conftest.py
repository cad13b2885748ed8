import os
import sys
import time
import pytest

# Ensure the backend root (containing the `bossraid` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from bossraid import create_app, socketio
from config import Config


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret'
    CORS_ALLOWED_ORIGINS = ['http://localhost:8080']
    SOCKETIO_NAMESPACE = '/'
    TICK_INTERVAL_MS = 20
    PLAYFIELD_WIDTH = 800.0
    PLAYFIELD_HEIGHT = 600.0
    PLAYER_MAX_HP = 100
    PLAYER_SPEED = 100.0
    BOSS_MAX_HP = 500
    BOSS_PHASE_THRESHOLDS = [0.5]
    # Quiet boss so tests control every hit
    RAID_BOSS_PATTERNS = {1: []}


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    yield application
    application.extensions['bossraid'].shutdown()


@pytest.fixture()
def service(flask_app):
    return flask_app.extensions['bossraid']


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def make_sio_client(flask_app):
    created = []

    def _make():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        created.append(test_client)
        return test_client

    yield _make
    for test_client in created:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except Exception:
            pass


@pytest.fixture()
def sio_client(make_sio_client):
    return make_sio_client()


def events_named(received, name):
    return [pkt['args'][0] for pkt in received if pkt['name'] == name]


def wait_for(predicate, timeout=3.0, interval=0.02):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()
