from __future__ import annotations

from flask import request
from flask_socketio import SocketIO

from ..game.service import GameService
from .events import INBOUND


def register_socketio_handlers(socketio: SocketIO, service: GameService) -> None:
    def _bind(name: str) -> None:
        def handler(data=None):
            service.dispatch(name, request.sid, data)

        handler.__name__ = f"on_{name}"
        socketio.on_event(name, handler)

    for name in INBOUND:
        _bind(name)

    @socketio.on("disconnect")
    def on_disconnect(*args):
        service.disconnect(request.sid)
