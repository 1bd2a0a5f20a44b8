"""
Error types raised by the Svein rule engine.

Every error carries a stable ``code`` string so the transport layer can
report it to the client without inspecting messages.

Two families:
    - RequestError: the caller asked for something illegal. State is
      untouched and only the requester is told.
    - GameStateError: an engine invariant is broken (empty deck with
      nothing to restock, no player where one must exist). The
      operation is aborted.
"""


class GameError(Exception):
    """Base exception for game-related errors."""

    code = "GAME_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"[{self.code}] {message}")

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class RequestError(GameError):
    """A rejected request. Reported to the requester only."""

    code = "REQUEST_ERROR"


class GameStateError(GameError):
    """A broken engine invariant."""

    code = "INVALID_GAME_STATE"


# =============================================================================
# Room lifecycle
# =============================================================================

class RoomAlreadyExists(RequestError):
    code = "ROOM_ALREADY_EXISTS"

    def __init__(self, room_id: str):
        super().__init__(f"Game with ID {room_id} already exists.")


class RoomNotFound(RequestError):
    code = "ROOM_NOT_FOUND"

    def __init__(self, room_id: str):
        super().__init__(f"Game with ID {room_id} does not exist.")


class RoomFull(RequestError):
    code = "ROOM_FULL"

    def __init__(self, room_id: str):
        super().__init__(f"Game with ID {room_id} is full.")


class EmptyName(RequestError):
    code = "EMPTY_NAME"

    def __init__(self):
        super().__init__("Player name cannot be empty.")


class AlreadyStarted(RequestError):
    code = "ALREADY_STARTED"

    def __init__(self, room_id: str):
        super().__init__(f"Game with ID {room_id} has already started.")


class DuplicatePlayer(RequestError):
    code = "DUPLICATE_PLAYER"

    def __init__(self):
        super().__init__("Player is already in the game.")


class NotEnoughPlayers(RequestError):
    code = "NOT_ENOUGH_PLAYERS"

    def __init__(self):
        super().__init__("Not enough players to start the game.")


class PlayerNotFound(RequestError):
    code = "PLAYER_NOT_FOUND"

    def __init__(self, player_id: str):
        super().__init__(f"Player with ID {player_id} is not in the game.")


# =============================================================================
# Moves
# =============================================================================

class NotYourTurn(RequestError):
    code = "NOT_YOUR_TURN"

    def __init__(self):
        super().__init__("It's not your turn.")


class CardsNotOwned(RequestError):
    code = "CARDS_NOT_OWNED"

    def __init__(self):
        super().__init__("You do not have these cards.")


class InvalidCardCount(RequestError):
    code = "INVALID_CARD_COUNT"

    def __init__(self):
        super().__init__("You can only play one or two cards at a time.")


class MustPlayHigher(RequestError):
    code = "MUST_PLAY_HIGHER"

    def __init__(self, last_rank: str):
        super().__init__(f"You must play a higher card than {last_rank}.")


class MustPlaySmallest(RequestError):
    code = "MUST_PLAY_SMALLEST"

    def __init__(self):
        super().__init__("You must play the smallest card.")


class MismatchedRank(RequestError):
    code = "MISMATCHED_RANK"

    def __init__(self):
        super().__init__("You must play two cards of the same rank for a two-for-one.")


class AlreadyDonePicking(RequestError):
    code = "ALREADY_DONE_PICKING"

    def __init__(self, message: str = "You are done picking cards for the last round."):
        super().__init__(message)


class WrongPhase(RequestError):
    code = "WRONG_PHASE"


class InvalidSettings(RequestError):
    code = "INVALID_SETTINGS"

    def __init__(self, max_players: int, total_rounds: int):
        super().__init__(
            f"A deck of 52 cards cannot hold {max_players} players over {total_rounds} rounds."
        )


# =============================================================================
# Invariant violations
# =============================================================================

class InvalidGameState(GameStateError):
    code = "INVALID_GAME_STATE"


class NoCardsToRestock(GameStateError):
    code = "NO_CARDS_TO_RESTOCK"

    def __init__(self):
        super().__init__("No cards left to restock the deck.")


class NoCardsLeft(GameStateError):
    code = "NO_CARDS_LEFT"

    def __init__(self):
        super().__init__("No cards left in the deck.")
