import os
import sys
import pytest

# Ensure the backend root (containing the `soleil` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from soleil import create_app, socketio
from soleil.services.games import GameSession


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    MAX_PLAYERS = 2
    MIN_PLAYERS = 2
    MAX_ROUNDS = 2
    COUNTDOWN_SEC = 5
    ROUND_DURATION_SEC = 5
    RESPONSE_ADVANCE_POLICY = 'quorum'
    SOCKETIO_NAMESPACE = '/ws'
    CORS_ORIGINS = ['http://localhost:5173']


class ManualTimer:
    """Records armed timers; the test decides when they fire."""

    def __init__(self):
        self.pending = []

    def __call__(self, delay, callback):
        self.pending.append((delay, callback))

    def fire_next(self):
        delay, callback = self.pending.pop(0)
        callback()
        return delay

    def run_until_idle(self, limit=200):
        fired = 0
        while self.pending and fired < limit:
            self.fire_next()
            fired += 1
        return fired


class RecordingTransport:
    def __init__(self):
        self.broadcasts = []
        self.sent = []
        self.disconnected = []

    def broadcast(self, event):
        self.broadcasts.append((event.event.value, event.to_dict()))

    def send(self, sid, event):
        self.sent.append((sid, event.event.value, event.to_dict()))

    def disconnect(self, sid):
        self.disconnected.append(sid)

    def names(self):
        return [name for name, _ in self.broadcasts]

    def payloads(self, name):
        return [payload for n, payload in self.broadcasts if n == name]


class ScriptedRandom:
    """Stand-in for random.Random returning scripted indices."""

    def __init__(self, indices=None):
        self.indices = list(indices or [])
        self.calls = 0

    def randrange(self, n):
        idx = self.indices[self.calls] if self.calls < len(self.indices) else 0
        self.calls += 1
        return idx % n

    def choice(self, seq):
        return seq[0]


@pytest.fixture()
def manual_timer():
    return ManualTimer()


@pytest.fixture()
def transport():
    return RecordingTransport()


@pytest.fixture()
def make_session(transport, manual_timer):
    def _make(rng=None, **overrides):
        options = dict(max_players=2, min_players=2, max_rounds=2, countdown_sec=5, round_duration_sec=5)
        options.update(overrides)
        return GameSession(transport, manual_timer, rng=rng or ScriptedRandom(), **options)
    return _make


@pytest.fixture()
def scripted_random():
    return ScriptedRandom


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
