from __future__ import annotations

from .errors import IllegalPhaseOperation
from .models import Phase, Room


ALL_PHASES: frozenset[Phase] = frozenset(("lobby", "game", "voting", "results"))

# event -> phases in which the event may act on a room
TRANSITIONS: dict[str, frozenset[Phase]] = {
    "join_room": ALL_PHASES,
    "leave_room": ALL_PHASES,
    "kick_player": ALL_PHASES,
    "start_game": frozenset(("lobby",)),
    "start_voting": frozenset(("game",)),
    "cast_vote": frozenset(("voting",)),
    "local_elimination": frozenset(("game", "voting")),
    "play_again": frozenset(("results",)),
}

# Opening a vote stays open to every seat so a dropped host cannot stall a round.
HOST_ONLY: frozenset[str] = frozenset(
    ("start_game", "play_again", "kick_player", "local_elimination")
)


def is_allowed(event: str, phase: Phase) -> bool:
    return phase in TRANSITIONS.get(event, frozenset())


def ensure_allowed(event: str, room: Room) -> None:
    if not is_allowed(event, room.phase):
        raise IllegalPhaseOperation(f"{event} not allowed in phase {room.phase}")
