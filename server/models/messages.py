"""
Inbound WebSocket message schemas for the Svein server.

Every client frame is a JSON object with a "type" field. The handler for
that type validates the rest of the frame with one of these models before
touching any game state.
"""

from typing import Optional

from pydantic import BaseModel, Field

from game import PlayAction, parse_play


class CardRef(BaseModel):
    """A card named by the client. Only the id is trusted."""
    id: str
    suit: Optional[str] = None
    rank: Optional[str] = None


class CreateGameMessage(BaseModel):
    """Create a new room."""
    game_id: str = Field(min_length=1)
    max_players: Optional[int] = Field(default=None, ge=2)
    number_of_rounds: Optional[int] = Field(default=None, ge=1)


class JoinGameMessage(BaseModel):
    """Join an existing room."""
    game_id: str
    player_name: str = ""


class StartGameMessage(BaseModel):
    """Start the game in a room."""
    game_id: str


class PlayCardsMessage(BaseModel):
    """Play one card, or two for a two-for-one."""
    game_id: str
    cards: list[CardRef]

    def to_action(self) -> PlayAction:
        """
        Build the tagged play action.

        Raises:
            InvalidCardCount: Not one or two cards.
        """
        return parse_play([card.id for card in self.cards])


class LastRoundPickMessage(BaseModel):
    """Ask for another card (new_card=True) or stop and save (False)."""
    game_id: str
    new_card: bool
