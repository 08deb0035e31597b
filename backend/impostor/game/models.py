from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional


Phase = Literal["lobby", "game", "voting", "results"]
GameMode = Literal["networked", "local"]
Winner = Literal["crewmates", "impostor"]


@dataclass(eq=False)
class Player:
    id: str
    sid: str
    name: str
    is_host: bool = False
    connected: bool = True
    is_alive: bool = True
    # Pending grace-period removal; never sent to clients.
    removal_timer: Optional[Any] = field(default=None, repr=False)

    def public(self) -> dict:
        return {
            "id": self.id,
            "displayName": self.name,
            "isHost": self.is_host,
            "connected": self.connected,
            "isAlive": self.is_alive,
        }


@dataclass
class RoundResult:
    winner: Winner
    eliminated: str
    impostor_name: str
    word: str | None

    def public(self) -> dict:
        return {
            "winner": self.winner,
            "eliminated": self.eliminated,
            "impostorName": self.impostor_name,
            "word": self.word,
        }


@dataclass
class Room:
    code: str
    mode: GameMode = "networked"
    phase: Phase = "lobby"
    players: list[Player] = field(default_factory=list)
    category: str | None = None
    word: str | None = None
    impostor_name: str | None = None
    starting_player_name: str | None = None
    last_result: RoundResult | None = None
    ballots: dict[str, int] = field(default_factory=dict)
    voters: set[str] = field(default_factory=set)
    # Display names dealt into the current round.
    dealt: set[str] = field(default_factory=set)

    @property
    def is_local(self) -> bool:
        return self.mode == "local"

    @property
    def host(self) -> Player | None:
        for p in self.players:
            if p.is_host:
                return p
        return None

    def find_by_id(self, player_id: str) -> Player | None:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def find_by_name(self, name: str) -> Player | None:
        for p in self.players:
            if p.name == name:
                return p
        return None

    def seats_of(self, sid: str) -> list[Player]:
        return [p for p in self.players if p.sid == sid]

    def alive_players(self) -> list[Player]:
        return [p for p in self.players if p.is_alive]

    def public_players(self) -> list[dict]:
        return [p.public() for p in self.players]

    def clear_votes(self) -> None:
        self.ballots = {}
        self.voters = set()

    def reset_round(self) -> None:
        self.category = None
        self.word = None
        self.impostor_name = None
        self.starting_player_name = None
        self.dealt = set()
        self.last_result = None
        self.clear_votes()
