from __future__ import annotations

import random

from .models import Player, Room
from .words import pick


def start_round(
    room: Room,
    categories: dict[str, list[str]],
    rng: random.Random,
    category: str | None = None,
) -> None:
    """Assign category, word, impostor and starting player; phase -> game."""
    if not category or category not in categories:
        category = pick(sorted(categories), rng)

    room.reset_round()
    room.category = category
    room.word = pick(categories[category], rng)
    room.dealt = {p.name for p in room.players}

    impostor = room.players[rng.randrange(len(room.players))]
    room.impostor_name = impostor.name

    crewmates = [p for p in room.players if p is not impostor]
    room.starting_player_name = pick(crewmates, rng).name

    for p in room.players:
        p.is_alive = True
    room.phase = "game"


def is_impostor(room: Room, player: Player) -> bool:
    return player.name == room.impostor_name


def game_started_payload(room: Room) -> dict:
    # Public: never the word or the impostor.
    return {"category": room.category, "startingPlayer": room.starting_player_name}


def role_payload(room: Room, player: Player) -> dict:
    impostor = is_impostor(room, player)
    return {
        "role": "impostor" if impostor else "crewmate",
        "word": None if impostor else room.word,
        "startingPlayer": room.starting_player_name,
    }


def local_game_payload(room: Room) -> dict:
    players_data = []
    for p in room.players:
        seat = p.public()
        role = role_payload(room, p)
        seat["role"] = role["role"]
        seat["word"] = role["word"]
        players_data.append(seat)

    return {
        "playersData": players_data,
        "startingPlayer": room.starting_player_name,
        "category": room.category,
    }
