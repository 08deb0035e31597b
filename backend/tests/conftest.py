import os
import random
import sys

import pytest

# Ensure the backend root (containing the `impostor` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from impostor.config import Config
from impostor.game.service import GameService
from impostor.realtime.transport import ScheduledTask


CATEGORIES = {
    "Animals": ["Penguin", "Giraffe", "Owl"],
    "Food": ["Pizza", "Sushi"],
}


class FakeTransport:
    """Records every emit per recipient; timers fire only when a test asks."""

    def __init__(self):
        self.groups = {}
        self.connected = set()
        self.log = []
        self.tasks = []

    def join_group(self, sid, group):
        self.groups.setdefault(group, set()).add(sid)

    def leave_group(self, sid, group):
        self.groups.get(group, set()).discard(sid)

    def send_to(self, sid, event, payload):
        self.log.append((sid, event, payload))

    def broadcast(self, group, event, payload):
        for sid in sorted(self.groups.get(group, set())):
            self.log.append((sid, event, payload))

    def is_connected(self, sid):
        return sid in self.connected

    def schedule(self, delay, callback):
        task = ScheduledTask(delay)
        self.tasks.append((task, callback))
        return task

    # ---- test helpers ----

    def received(self, sid, event):
        return [payload for to, name, payload in self.log if to == sid and name == event]

    def events_for(self, sid):
        return [name for to, name, _ in self.log if to == sid]

    def clear(self):
        self.log = []

    def fire_timers(self):
        pending, self.tasks = self.tasks, []
        for task, callback in pending:
            if task.cancelled:
                continue
            task.fired = True
            callback(task)


@pytest.fixture()
def transport():
    return FakeTransport()


@pytest.fixture()
def service(transport):
    return GameService(
        transport,
        {k: list(v) for k, v in CATEGORIES.items()},
        grace_sec=60,
        min_players=3,
        rng=random.Random(1234),
    )


class Table:
    """Small driver that plays clients against a GameService."""

    def __init__(self, service, transport):
        self.service = service
        self.transport = transport
        self.code = None

    def send(self, sid, event, data=None):
        self.service.dispatch(event, sid, data)

    def create(self, name="A", mode="networked", local_names=None):
        sid = f"sid-{name}"
        self.transport.connected.add(sid)
        payload = {"displayName": name, "mode": mode}
        if local_names is not None:
            payload["localPlayerNames"] = local_names
        self.send(sid, "create_room", payload)
        self.code = self.transport.received(sid, "room_joined")[-1]["roomCode"]
        return sid

    def join(self, name, sid=None, code=None):
        sid = sid or f"sid-{name}"
        self.transport.connected.add(sid)
        self.send(sid, "join_room", {"displayName": name, "roomCode": code or self.code})
        return sid

    def drop(self, sid):
        self.transport.connected.discard(sid)
        self.service.disconnect(sid)

    @property
    def room(self):
        return self.service.registry.get(self.code)

    def player(self, name):
        return self.room.find_by_name(name)

    def sid_of(self, name):
        return self.player(name).sid

    def start(self, host="A", category=None):
        data = {"roomCode": self.code}
        if category:
            data["category"] = category
        self.send(self.sid_of(host), "start_game", data)

    def vote(self, voter, target):
        self.send(
            self.sid_of(voter),
            "cast_vote",
            {"roomCode": self.code, "targetId": self.player(target).id},
        )


@pytest.fixture()
def table(service, transport):
    return Table(service, transport)


@pytest.fixture()
def lobby(table):
    """Networked room with A (host), B and C."""
    table.create("A")
    table.join("B")
    table.join("C")
    table.transport.clear()
    return table


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    SOCKETIO_ASYNC_MODE = "threading"
    DISCONNECT_GRACE_SEC = 60
    MIN_PLAYERS = 3


@pytest.fixture()
def app_and_socketio():
    from impostor.server import create_app

    return create_app(TestConfig)


@pytest.fixture()
def flask_app(app_and_socketio):
    return app_and_socketio[0]


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()
