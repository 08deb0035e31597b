from __future__ import annotations

from .models import Player, Room


MAX_NAME_LENGTH = 24


def valid_name(name: str) -> bool:
    n = (name or "").strip()
    if not n or len(n) > MAX_NAME_LENGTH:
        return False
    if "<" in n or ">" in n:
        return False
    return all(ord(ch) >= 32 for ch in n)


def local_seat_id(sid: str, index: int) -> str:
    return f"{sid}-{index}"


def seat_creator(room: Room, sid: str, name: str, local_names: list[str] | None = None) -> Player:
    """Seat the room creator; local rooms get one seat per device player."""
    if room.is_local:
        names = [n.strip() for n in (local_names or []) if n.strip()] or [name]
        for index, seat_name in enumerate(names):
            room.players.append(
                Player(id=local_seat_id(sid, index), sid=sid, name=seat_name, is_host=index == 0)
            )
        return room.players[0]

    player = Player(id=sid, sid=sid, name=name, is_host=True)
    room.players.append(player)
    return player


def add_player(room: Room, sid: str, name: str) -> Player:
    player = Player(
        id=sid,
        sid=sid,
        name=name,
        is_host=not room.players,
        # Late joiners sit out the round in progress.
        is_alive=room.phase == "lobby",
    )
    room.players.append(player)
    return player


def _rename_ballots(room: Room, renames: dict[str, str]) -> None:
    if not renames:
        return
    room.ballots = {renames.get(k, k): v for k, v in room.ballots.items()}
    room.voters = {renames.get(v, v) for v in room.voters}


def rebind(room: Room, player: Player, sid: str) -> bool:
    """Move a reconnecting player (and in local mode every seat) to ``sid``.

    Returns True when the player had already voted in the current voting
    phase; the voted marker and any ballots naming the player follow the new
    identifier.
    """
    if player.removal_timer is not None:
        player.removal_timer.cancel()
        player.removal_timer = None

    had_voted = player.id in room.voters

    renames: dict[str, str] = {}
    if room.is_local:
        for index, seat in enumerate(room.players):
            new_id = local_seat_id(sid, index)
            if seat.id != new_id:
                renames[seat.id] = new_id
            seat.id = new_id
            seat.sid = sid
    else:
        if player.id != sid:
            renames[player.id] = sid
        player.id = sid
        player.sid = sid

    player.connected = True
    _rename_ballots(room, renames)
    return had_voted


def promote_host(room: Room) -> Player | None:
    if not room.players or room.host is not None:
        return None
    candidate = next((p for p in room.players if p.connected), room.players[0])
    candidate.is_host = True
    return candidate


def remove(room: Room, players: list[Player]) -> bool:
    """Drop seats from the roster. Returns True if the host was among them."""
    was_host = False
    for player in players:
        if player.removal_timer is not None:
            player.removal_timer.cancel()
            player.removal_timer = None
        if player in room.players:
            was_host = was_host or player.is_host
            room.players.remove(player)
            room.voters.discard(player.id)
    if was_host:
        promote_host(room)
    return was_host


def terminate_round(room: Room) -> None:
    room.phase = "lobby"
    room.reset_round()
    for p in room.players:
        p.is_alive = True
