# engine_py/src/lexio_engine/errors.py

class GameError(Exception):
    """Base exception for game-related errors."""
    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


class InvariantViolation(GameError):
    """Engine state is corrupted; the room's round cannot continue."""
    def __init__(self, message: str):
        super().__init__(INTERNAL_ERROR, message)


# Illegal moves
NOT_YOUR_TURN = "NOT_YOUR_TURN"
INVALID_COMBINATION = "INVALID_COMBINATION"
MUST_MATCH_PILE_SIZE = "MUST_MATCH_PILE_SIZE"
MUST_BEAT_PILE = "MUST_BEAT_PILE"
CANNOT_PASS_ON_EMPTY_PILE = "CANNOT_PASS_ON_EMPTY_PILE"
OWNERSHIP_MISMATCH = "OWNERSHIP_MISMATCH"
GAME_NOT_IN_PROGRESS = "GAME_NOT_IN_PROGRESS"
PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"

# Configuration / room management
INSUFFICIENT_PLAYERS = "INSUFFICIENT_PLAYERS"
INVALID_SEAT_COUNT = "INVALID_SEAT_COUNT"
GAME_IN_PROGRESS = "GAME_IN_PROGRESS"
ROOM_FULL = "ROOM_FULL"
NOT_HOST = "NOT_HOST"
ACTION_NOT_ALLOWED = "ACTION_NOT_ALLOWED"

INTERNAL_ERROR = "INTERNAL_ERROR"

# Helper function to raise common errors
def raise_error(code: str, message: str):
    raise GameError(code, message)
