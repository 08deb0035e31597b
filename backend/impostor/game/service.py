from __future__ import annotations

import logging
import random
from functools import partial
from threading import RLock
from typing import Any, Callable

from ..realtime import events as ev
from ..realtime.transport import ScheduledTask, Transport
from . import roster, rounds, voting
from .errors import (
    GameError,
    IllegalPhaseOperation,
    InvalidPayload,
    NameTaken,
    NotEnoughPlayers,
    RoomIsLocal,
    RoomNotFound,
    StaleTimer,
    UnauthorizedAction,
)
from .models import Player, Room
from .phases import HOST_ONLY, ensure_allowed
from .registry import RoomRegistry


logger = logging.getLogger(__name__)


class GameService:
    """Room state machine.

    Every inbound event and every fired grace timer runs to completion under
    one lock, so a room is never mutated by two handlers at once.
    """

    def __init__(
        self,
        transport: Transport,
        categories: dict[str, list[str]],
        *,
        grace_sec: float = 60,
        min_players: int = 3,
        code_length: int = 4,
        rng: random.Random | None = None,
    ) -> None:
        self.transport = transport
        self.categories = categories
        self.grace_sec = grace_sec
        self.min_players = max(2, min_players)
        self.rng = rng or random.Random()
        self.registry = RoomRegistry(code_length=code_length, rng=self.rng)
        self._lock = RLock()
        self._handlers: dict[str, Callable[[str, Any], None]] = {
            "create_room": self.create_room,
            "join_room": self.join_room,
            "start_game": self.start_game,
            "start_voting": self.start_voting,
            "cast_vote": self.cast_vote,
            "local_elimination": self.local_elimination,
            "play_again": self.play_again,
            "kick_player": self.kick_player,
            "leave_room": self.leave_room,
        }

    # ---- entry points ----

    def dispatch(self, name: str, sid: str, data: Any) -> None:
        with self._lock:
            try:
                event = ev.parse_event(name, data)
                self._handlers[name](sid, event)
            except GameError as exc:
                if exc.reported:
                    self.transport.send_to(sid, ev.ERROR, exc.payload())
                else:
                    logger.debug("Ignored %s from %s: %s", name, sid, exc)
            except Exception:
                logger.exception("Handler for %s failed (sid=%s)", name, sid)

    def disconnect(self, sid: str) -> None:
        with self._lock:
            for room in self.registry.rooms_of(sid):
                try:
                    self._handle_disconnect(room, sid)
                except Exception:
                    logger.exception("Disconnect handling failed for room %s", room.code)

    @property
    def active_rooms(self) -> int:
        return len(self.registry)

    # ---- helpers ----

    def _room(self, code: str) -> Room:
        room = self.registry.get(code)
        if room is None:
            raise IllegalPhaseOperation(f"room {code!r} does not exist")
        return room

    def _guard(self, name: str, sid: str, code: str) -> Room:
        room = self._room(code)
        ensure_allowed(name, room)
        if name in HOST_ONLY:
            host = room.host
            if host is None or host.sid != sid:
                raise UnauthorizedAction(f"{name} requires the host")
        return room

    def _room_joined(self, room: Room, is_host: bool) -> dict:
        return {
            "roomCode": room.code,
            "players": room.public_players(),
            "gameMode": room.mode,
            "isHost": is_host,
        }

    def _broadcast_roster(self, room: Room) -> None:
        self.transport.broadcast(room.code, ev.PLAYER_UPDATE, room.public_players())

    def _after_departure(self, room: Room, name: str, message: str) -> None:
        if not room.players:
            self.registry.delete(room.code)
            logger.info("Room %s destroyed (empty)", room.code)
            return

        if room.phase != "lobby":
            roster.terminate_round(room)
            logger.info("Room %s terminated: %s departed", room.code, name)
            self.transport.broadcast(
                room.code,
                ev.GAME_TERMINATED,
                {"message": message, "departed": name, "players": room.public_players()},
            )
        else:
            self._broadcast_roster(room)

    def _finish(self, room: Room, outcome: voting.Outcome) -> None:
        voting.apply_outcome(room, outcome)
        if outcome.game_over:
            logger.info("Room %s finished: %s win", room.code, outcome.result.winner)
            self.transport.broadcast(room.code, ev.GAME_RESULTS, outcome.result.public())
        else:
            self.transport.broadcast(
                room.code, ev.ROUND_CONTINUED, voting.round_continued_payload(room, outcome)
            )

    # ---- roster ----

    def create_room(self, sid: str, event: ev.CreateRoom) -> None:
        if not roster.valid_name(event.display_name):
            raise InvalidPayload("invalid display name")
        if event.mode == "local":
            names = event.local_player_names
            if not all(roster.valid_name(n) for n in names):
                raise InvalidPayload("invalid local player name")
            if len(set(names)) != len(names):
                raise InvalidPayload("local player names must be unique")

        room = self.registry.create(event.mode)
        roster.seat_creator(room, sid, event.display_name, event.local_player_names)
        self.transport.join_group(sid, room.code)
        self.transport.send_to(sid, ev.ROOM_JOINED, self._room_joined(room, True))
        logger.info("Room %s created (mode=%s, seats=%d)", room.code, room.mode, len(room.players))

    def join_room(self, sid: str, event: ev.JoinRoom) -> None:
        name = event.display_name
        if not roster.valid_name(name):
            raise InvalidPayload("invalid display name")

        room = self.registry.get(event.room_code)
        if room is None:
            raise RoomNotFound("Room not found")

        existing = room.find_by_name(name)
        if existing is not None:
            if (
                existing.sid != sid
                and existing.connected
                and self.transport.is_connected(existing.sid)
            ):
                raise NameTaken(f"{name} is already playing in this room")
            self._reconnect(room, existing, sid)
        else:
            if room.is_local:
                raise RoomIsLocal("This room is played on a single device")
            player = roster.add_player(room, sid, name)
            self.transport.join_group(sid, room.code)
            self.transport.send_to(sid, ev.ROOM_JOINED, self._room_joined(room, player.is_host))
            logger.info("%s joined room %s", name, room.code)

        self._broadcast_roster(room)

    def _reconnect(self, room: Room, player: Player, sid: str) -> None:
        had_voted = roster.rebind(room, player, sid)
        self.transport.join_group(sid, room.code)
        self.transport.send_to(sid, ev.ROOM_JOINED, self._room_joined(room, player.is_host))
        logger.info("%s reconnected to room %s (phase=%s)", player.name, room.code, room.phase)

        if room.phase in ("game", "voting") and player.name in room.dealt:
            if room.is_local:
                self.transport.send_to(sid, ev.LOCAL_GAME_DATA, rounds.local_game_payload(room))
            else:
                self.transport.send_to(sid, ev.GAME_STARTED, rounds.game_started_payload(room))
                self.transport.send_to(sid, ev.YOUR_ROLE, rounds.role_payload(room, player))
            if room.phase == "voting":
                self.transport.send_to(sid, ev.VOTING_STARTED, {"hasVoted": had_voted})
        elif room.phase == "results" and room.last_result is not None:
            self.transport.send_to(sid, ev.GAME_RESULTS, room.last_result.public())

    def kick_player(self, sid: str, event: ev.KickPlayer) -> None:
        room = self._guard("kick_player", sid, event.room_code)
        target = room.find_by_id(event.target_id)
        if target is None:
            raise UnauthorizedAction("no such player")
        if target.is_host:
            raise UnauthorizedAction("host cannot kick itself")

        roster.remove(room, [target])
        logger.info("%s kicked from room %s", target.name, room.code)

        # Local seats share the host's connection; only a real client is detached.
        if not room.seats_of(target.sid):
            self.transport.leave_group(target.sid, room.code)
            self.transport.send_to(
                target.sid,
                ev.ERROR,
                {"error": "kicked", "message": "You have been removed from the room by the host."},
            )
            self.transport.send_to(target.sid, ev.ROOM_JOINED, {"roomCode": None, "players": []})

        self._after_departure(
            room, target.name, f"Game aborted: {target.name} was removed by the host."
        )

    def leave_room(self, sid: str, event: ev.LeaveRoom) -> None:
        room = self._guard("leave_room", sid, event.room_code)
        seats = room.seats_of(sid)
        if not seats:
            raise UnauthorizedAction("not in room")

        name = seats[0].name
        roster.remove(room, seats)
        self.transport.leave_group(sid, room.code)
        logger.info("%s left room %s", name, room.code)
        self._after_departure(room, name, f"Game aborted: {name} left the room.")

    def _handle_disconnect(self, room: Room, sid: str) -> None:
        seats = room.seats_of(sid)
        if room.is_local:
            # The device running every seat is gone.
            roster.remove(room, seats)
            self._after_departure(
                room, seats[0].name, f"Game aborted: the connection to {seats[0].name} was lost."
            )
            return

        for player in seats:
            player.connected = False
            if player.removal_timer is not None:
                player.removal_timer.cancel()
            player.removal_timer = self.transport.schedule(
                self.grace_sec, partial(self._expire, room.code, player.name)
            )
            logger.info(
                "%s disconnected from room %s, removal in %ss", player.name, room.code, self.grace_sec
            )
        self._broadcast_roster(room)

    def _expire(self, code: str, name: str, task: ScheduledTask) -> None:
        with self._lock:
            try:
                room = self.registry.get(code)
                if room is None:
                    raise StaleTimer(f"room {code} is gone")
                player = room.find_by_name(name)
                if player is None or player.removal_timer is not task:
                    raise StaleTimer(f"{name} was removed or reconnected")

                roster.remove(room, [player])
                logger.info("%s removed from room %s after grace period", name, code)
                self._after_departure(
                    room, name, f"Connection lost: the game was cancelled because {name} did not return."
                )
            except StaleTimer as exc:
                logger.debug("Grace timer ignored: %s", exc)

    # ---- rounds & voting ----

    def start_game(self, sid: str, event: ev.StartGame) -> None:
        room = self._guard("start_game", sid, event.room_code)
        if len(room.players) < self.min_players:
            raise NotEnoughPlayers(f"At least {self.min_players} players are needed")

        rounds.start_round(room, self.categories, self.rng, event.category)
        logger.info("Round started in room %s (category=%s)", room.code, room.category)

        if room.is_local:
            self.transport.broadcast(room.code, ev.LOCAL_GAME_DATA, rounds.local_game_payload(room))
            return

        self.transport.broadcast(room.code, ev.GAME_STARTED, rounds.game_started_payload(room))
        for player in room.players:
            self.transport.send_to(player.sid, ev.YOUR_ROLE, rounds.role_payload(room, player))

    def start_voting(self, sid: str, event: ev.StartVoting) -> None:
        room = self._guard("start_voting", sid, event.room_code)
        voting.open_voting(room)
        self.transport.broadcast(room.code, ev.VOTING_STARTED, {"hasVoted": False})

    def cast_vote(self, sid: str, event: ev.CastVote) -> None:
        room = self._guard("cast_vote", sid, event.room_code)
        if voting.cast_ballot(room, sid, event.target_id):
            self._finish(room, voting.resolve(room))

    def local_elimination(self, sid: str, event: ev.LocalElimination) -> None:
        room = self._guard("local_elimination", sid, event.room_code)
        if not room.is_local:
            raise UnauthorizedAction("direct elimination is for local rooms")
        target = room.find_by_id(event.target_id)
        if target is None or not target.is_alive:
            raise UnauthorizedAction("target is not an alive player")
        self._finish(room, voting.eliminate(room, target))

    def play_again(self, sid: str, event: ev.PlayAgain) -> None:
        room = self._guard("play_again", sid, event.room_code)
        roster.terminate_round(room)
        self.transport.broadcast(room.code, ev.BACK_TO_LOBBY, {"players": room.public_players()})

    # ---- read-only views ----

    def public_room_state(self, code: str) -> dict | None:
        with self._lock:
            room = self.registry.get(code)
            if room is None:
                return None
            return {
                "code": room.code,
                "phase": room.phase,
                "gameMode": room.mode,
                "category": room.category if room.phase != "lobby" else None,
                "players": room.public_players(),
            }
