from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from ..game.errors import InvalidPayload
from ..game.models import GameMode


# Outbound event names (server -> client)
ROOM_JOINED = "room_joined"
PLAYER_UPDATE = "player_update"
GAME_STARTED = "game_started"
YOUR_ROLE = "your_role"
LOCAL_GAME_DATA = "local_game_data"
VOTING_STARTED = "voting_started"
ROUND_CONTINUED = "round_continued"
GAME_RESULTS = "game_results"
BACK_TO_LOBBY = "back_to_lobby"
GAME_TERMINATED = "game_terminated"
ERROR = "error"

MODE_ALIASES: dict[str, GameMode] = {
    "networked": "networked",
    "online": "networked",
    "local": "local",
}


def _text(data: dict, key: str, required: bool = True) -> str:
    value = data.get(key)
    if value is None:
        if required:
            raise InvalidPayload(f"{key} is required")
        return ""
    if not isinstance(value, str):
        raise InvalidPayload(f"{key} must be a string")
    value = value.strip()
    if required and not value:
        raise InvalidPayload(f"{key} is required")
    return value


@dataclass(frozen=True)
class CreateRoom:
    display_name: str
    mode: GameMode = "networked"
    local_player_names: list[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, data: dict) -> "CreateRoom":
        raw_mode = _text(data, "mode", required=False) or "networked"
        mode = MODE_ALIASES.get(raw_mode.lower())
        if mode is None:
            raise InvalidPayload(f"unknown mode {raw_mode!r}")

        names_raw = data.get("localPlayerNames") or []
        if not isinstance(names_raw, list):
            raise InvalidPayload("localPlayerNames must be a list")
        names = [n.strip() for n in names_raw if isinstance(n, str) and n.strip()]

        return cls(display_name=_text(data, "displayName"), mode=mode, local_player_names=names)


@dataclass(frozen=True)
class JoinRoom:
    display_name: str
    room_code: str

    @classmethod
    def from_payload(cls, data: dict) -> "JoinRoom":
        return cls(display_name=_text(data, "displayName"), room_code=_text(data, "roomCode"))


@dataclass(frozen=True)
class StartGame:
    room_code: str
    category: Optional[str] = None

    @classmethod
    def from_payload(cls, data: dict) -> "StartGame":
        return cls(room_code=_text(data, "roomCode"), category=_text(data, "category", required=False) or None)


@dataclass(frozen=True)
class RoomEvent:
    room_code: str

    @classmethod
    def from_payload(cls, data: dict):
        return cls(room_code=_text(data, "roomCode"))


class StartVoting(RoomEvent):
    pass


class PlayAgain(RoomEvent):
    pass


class LeaveRoom(RoomEvent):
    pass


@dataclass(frozen=True)
class TargetedEvent:
    room_code: str
    target_id: str

    @classmethod
    def from_payload(cls, data: dict):
        return cls(room_code=_text(data, "roomCode"), target_id=_text(data, "targetId"))


class CastVote(TargetedEvent):
    pass


class LocalElimination(TargetedEvent):
    pass


class KickPlayer(TargetedEvent):
    pass


InboundEvent = Union[
    CreateRoom,
    JoinRoom,
    StartGame,
    StartVoting,
    CastVote,
    LocalElimination,
    PlayAgain,
    KickPlayer,
    LeaveRoom,
]

INBOUND: dict[str, type] = {
    "create_room": CreateRoom,
    "join_room": JoinRoom,
    "start_game": StartGame,
    "start_voting": StartVoting,
    "cast_vote": CastVote,
    "local_elimination": LocalElimination,
    "play_again": PlayAgain,
    "kick_player": KickPlayer,
    "leave_room": LeaveRoom,
}


def parse_event(name: str, data: Any) -> InboundEvent:
    schema = INBOUND.get(name)
    if schema is None:
        raise InvalidPayload(f"unknown event {name!r}")
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise InvalidPayload(f"{name} payload must be an object")
    return schema.from_payload(data)
