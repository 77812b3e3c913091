import logging
import os
import sys
import pytest

# Ensure the backend root (containing the `cardduel` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from cardduel import create_app, get_registry, socketio
from cardduel.models import Card
from cardduel.services.duel import Deck, RoomRegistry, RoundScheduler, SessionCoordinator, new_deck
from cardduel.services.duel.notifier import Notifier


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    HOST = '127.0.0.1'
    PORT = 8080
    STARTING_HEALTH = 7
    DAMAGE_CAP = 7
    ROUND_TRANSITION_DELAY_SEC = 0
    CORS_ALLOWED_ORIGINS = ['http://localhost:5173']
    LOG_LEVEL = 'DEBUG'


class RecordingNotifier(Notifier):
    """Keeps every outbound event in order instead of delivering it."""

    def __init__(self):
        self.sent = []
        self.broadcasts = []

    def send(self, player, event, payload):
        self.sent.append((player.id, event, payload))

    def broadcast(self, event, payload):
        self.broadcasts.append((event, payload))

    def events(self, player_id, name=None):
        return [payload for pid, ev, payload in self.sent if pid == player_id and (name is None or ev == name)]

    def names(self, player_id):
        return [ev for pid, ev, _ in self.sent if pid == player_id]

    def clear(self):
        self.sent.clear()
        self.broadcasts.clear()


class ManualScheduler(RoundScheduler):
    """Captures round transitions so a test decides when they fire."""

    def __init__(self, logger):
        self.pending = []
        super().__init__(start_task=self._capture, sleep=lambda _s: None, delay=0, logger=logger)

    def _capture(self, fn, *args):
        self.pending.append((fn, args))

    def run_pending(self):
        pending, self.pending = self.pending, []
        for fn, args in pending:
            fn(*args)
        return len(pending)


def stacked(*ranks):
    """Deck that deals `ranks` in order (first occupant gets the first two cards)."""
    return Deck(cards=[Card(rank, 'S') for rank in ranks])


def deck_sequence(*decks):
    """Deck factory returning the given decks in order, then shuffled ones."""
    queue = list(decks)

    def factory():
        return queue.pop(0) if queue else new_deck()
    return factory


@pytest.fixture()
def logger():
    return logging.getLogger('cardduel.tests')


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def scheduler(logger):
    return ManualScheduler(logger)


@pytest.fixture()
def coordinator(notifier, scheduler, logger):
    return SessionCoordinator(notifier=notifier, scheduler=scheduler, logger=logger)


@pytest.fixture()
def registry(coordinator, logger):
    reg = RoomRegistry(coordinator, logger)
    yield reg
    reg.shutdown()


@pytest.fixture()
def duel(registry, coordinator):
    """Returns a function that seats two players in a fresh room with the given decks."""

    def _make(*decks):
        coordinator.deck_factory = deck_sequence(*decks)
        alice = registry.connect('sid-alice')
        bob = registry.connect('sid-bob')
        room_id = registry.create_room(alice, 'Alice')
        room = registry.join_room(bob, room_id, 'Bob')
        return room, alice, bob
    return _make


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    yield application
    get_registry(application).shutdown()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    clients = []

    def _connect():
        test_client = socketio.test_client(flask_app, namespace='/ws')
        clients.append(test_client)
        return test_client
    yield _connect
    for test_client in clients:
        try:
            if test_client.is_connected('/ws'):
                test_client.disconnect(namespace='/ws')
        except Exception:
            pass
