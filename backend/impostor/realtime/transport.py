from __future__ import annotations

import logging
from typing import Any, Callable, Protocol

from flask_socketio import SocketIO


logger = logging.getLogger(__name__)


# Sleep granularity; a cancelled task stops sleeping within one slice.
SLEEP_SLICE_SEC = 1.0


class ScheduledTask:
    """Handle for a delayed callback; cancelling it turns the callback into a no-op."""

    def __init__(self, delay: float) -> None:
        self.delay = delay
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class Transport(Protocol):
    def join_group(self, sid: str, group: str) -> None: ...

    def leave_group(self, sid: str, group: str) -> None: ...

    def send_to(self, sid: str, event: str, payload: Any) -> None: ...

    def broadcast(self, group: str, event: str, payload: Any) -> None: ...

    def is_connected(self, sid: str) -> bool: ...

    def schedule(self, delay: float, callback: Callable[[ScheduledTask], None]) -> ScheduledTask: ...


class SocketIOTransport:
    """Transport backed by a Flask-SocketIO server.

    Works outside of a request context too, so timer callbacks can emit.
    """

    def __init__(self, socketio: SocketIO, namespace: str = "/") -> None:
        self.socketio = socketio
        self.namespace = namespace

    def join_group(self, sid: str, group: str) -> None:
        self.socketio.server.enter_room(sid, group, namespace=self.namespace)

    def leave_group(self, sid: str, group: str) -> None:
        self.socketio.server.leave_room(sid, group, namespace=self.namespace)

    def send_to(self, sid: str, event: str, payload: Any) -> None:
        self.socketio.emit(event, payload, to=sid, namespace=self.namespace)

    def broadcast(self, group: str, event: str, payload: Any) -> None:
        self.socketio.emit(event, payload, to=group, namespace=self.namespace)

    def is_connected(self, sid: str) -> bool:
        try:
            return bool(self.socketio.server.manager.is_connected(sid, self.namespace))
        except (AttributeError, KeyError):
            return False

    def schedule(self, delay: float, callback: Callable[[ScheduledTask], None]) -> ScheduledTask:
        task = ScheduledTask(delay)

        def _runner() -> None:
            remaining = delay
            while remaining > 0 and not task.cancelled:
                step = min(SLEEP_SLICE_SEC, remaining)
                self.socketio.sleep(step)
                remaining -= step
            if task.cancelled:
                return
            task.fired = True
            try:
                callback(task)
            except Exception:
                logger.exception("Scheduled task failed")

        self.socketio.start_background_task(_runner)
        return task
