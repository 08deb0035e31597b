from __future__ import annotations

import random
import string
from threading import RLock

from .models import GameMode, Room


CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_code(length: int, rng: random.Random | None = None) -> str:
    r = rng or random
    return "".join(r.choice(CODE_ALPHABET) for _ in range(length))


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


class RoomRegistry:
    """In-memory map of room code -> Room for one server process."""

    def __init__(self, code_length: int = 4, rng: random.Random | None = None) -> None:
        self.code_length = code_length
        self._rng = rng or random.Random()
        self._lock = RLock()
        self._rooms: dict[str, Room] = {}

    def create(self, mode: GameMode = "networked") -> Room:
        with self._lock:
            code = generate_code(self.code_length, self._rng)
            while code in self._rooms:
                code = generate_code(self.code_length, self._rng)

            room = Room(code=code, mode=mode)
            self._rooms[code] = room
            return room

    def get(self, code: str) -> Room | None:
        with self._lock:
            return self._rooms.get(normalize_code(code))

    def delete(self, code: str) -> bool:
        with self._lock:
            return self._rooms.pop(normalize_code(code), None) is not None

    def list(self) -> list[Room]:
        with self._lock:
            return list(self._rooms.values())

    def rooms_of(self, sid: str) -> list[Room]:
        with self._lock:
            return [r for r in self._rooms.values() if r.seats_of(sid)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)

    def __contains__(self, code: str) -> bool:
        with self._lock:
            return normalize_code(code) in self._rooms
