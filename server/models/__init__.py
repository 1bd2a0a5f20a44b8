"""Models package for the Svein server."""

from .messages import (
    CardRef,
    CreateGameMessage,
    JoinGameMessage,
    LastRoundPickMessage,
    PlayCardsMessage,
    StartGameMessage,
)

__all__ = [
    "CardRef",
    "CreateGameMessage",
    "JoinGameMessage",
    "LastRoundPickMessage",
    "PlayCardsMessage",
    "StartGameMessage",
]
