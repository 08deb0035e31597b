from __future__ import annotations


class GameError(Exception):
    """Base class for rejected client events.

    ``reported`` errors are sent back to the requesting connection as an
    ``error`` event; the others are dropped silently since they usually come
    from stale or duplicated client messages.
    """

    code = "game_error"
    reported = False

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code

    def payload(self) -> dict:
        return {"error": self.code, "message": self.message}


class InvalidPayload(GameError):
    code = "invalid_payload"
    reported = True


class RoomNotFound(GameError):
    code = "room_not_found"
    reported = True


class NameTaken(GameError):
    code = "name_taken"
    reported = True


class RoomIsLocal(GameError):
    code = "room_is_local"
    reported = True


class NotEnoughPlayers(GameError):
    code = "not_enough_players"
    reported = True


class IllegalPhaseOperation(GameError):
    code = "illegal_phase"


class UnauthorizedAction(GameError):
    code = "unauthorized"


class DuplicateBallot(GameError):
    code = "duplicate_ballot"


class StaleTimer(GameError):
    code = "stale_timer"
