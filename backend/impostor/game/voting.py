from __future__ import annotations

from dataclasses import dataclass

from .errors import DuplicateBallot, UnauthorizedAction
from .models import Player, Room, RoundResult


NO_ELIMINATION = "No one (tie)"


@dataclass
class Outcome:
    eliminated: str
    is_tie: bool = False
    result: RoundResult | None = None

    @property
    def game_over(self) -> bool:
        return self.result is not None


def open_voting(room: Room) -> None:
    room.clear_votes()
    room.phase = "voting"


def cast_ballot(room: Room, voter_id: str, target_id: str) -> bool:
    """Record one ballot. Returns True once every alive player has voted."""
    voter = room.find_by_id(voter_id)
    if voter is None or not voter.is_alive:
        raise UnauthorizedAction("voter is not an alive player")
    if voter_id in room.voters:
        raise DuplicateBallot(f"{voter_id} already voted")

    target = room.find_by_id(target_id)
    if target is None or not target.is_alive:
        raise UnauthorizedAction("target is not an alive player")

    room.voters.add(voter_id)
    room.ballots[target_id] = room.ballots.get(target_id, 0) + 1
    return len(room.voters) >= len(room.alive_players())


def tally(ballots: dict[str, int]) -> tuple[str | None, bool]:
    """Return (leader, is_tie) scanning ballots in insertion order.

    A tie on the highest count never eliminates anyone.
    """
    leader: str | None = None
    best = -1
    is_tie = False
    for target_id, count in ballots.items():
        if count > best:
            best = count
            leader = target_id
            is_tie = False
        elif count == best:
            is_tie = True
    return leader, is_tie


def eliminate(room: Room, player: Player) -> Outcome:
    player.is_alive = False

    winner = None
    if player.name == room.impostor_name:
        winner = "crewmates"
    elif len(room.alive_players()) <= 2:
        winner = "impostor"

    if winner is None:
        return Outcome(eliminated=player.name)

    return Outcome(
        eliminated=player.name,
        result=RoundResult(
            winner=winner,
            eliminated=player.name,
            impostor_name=room.impostor_name or "?",
            word=room.word,
        ),
    )


def resolve(room: Room) -> Outcome:
    leader, is_tie = tally(room.ballots)
    if is_tie or leader is None:
        return Outcome(eliminated=NO_ELIMINATION, is_tie=True)

    player = room.find_by_id(leader)
    if player is None:
        return Outcome(eliminated=NO_ELIMINATION, is_tie=True)
    return eliminate(room, player)


def apply_outcome(room: Room, outcome: Outcome) -> None:
    if outcome.game_over:
        room.phase = "results"
        room.last_result = outcome.result
    else:
        room.phase = "game"
    room.clear_votes()


def round_continued_payload(room: Room, outcome: Outcome) -> dict:
    return {
        "eliminated": outcome.eliminated,
        "isTie": outcome.is_tie,
        "players": room.public_players(),
    }
