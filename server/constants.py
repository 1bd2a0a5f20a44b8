"""
Card and rule constants for Svein.

This module is the single source of truth for rank ordering and card
values. Scoring and move validation in game.py both read from here.

Svein Card Values:
    - Ranks are ordered 2 < 3 < ... < 10 < J < Q < K < A
    - A card is worth its position in that order plus 2
      (2 -> 2, 10 -> 10, J -> 11, Q -> 12, K -> 13, A -> 14)
"""

from config import config


# =============================================================================
# Ranks and Suits
# =============================================================================

RANK_ORDER: list[str] = ['2', '3', '4', '5', '6', '7', '8', '9', '10', 'J', 'Q', 'K', 'A']

SUIT_SYMBOLS: dict[str, str] = {
    'Hearts': '♥',
    'Diamonds': '♦',
    'Clubs': '♣',
    'Spades': '♠',
}

# Rank index + 2, so the lowest card is worth 2 and the Ace 14
RANK_VALUES: dict[str, int] = {rank: index + 2 for index, rank in enumerate(RANK_ORDER)}


# =============================================================================
# Game Rules
# =============================================================================

MIN_PLAYERS: int = 2

DECK_SIZE: int = 52

# A rank held this many times or more earns a bonus discount at scoring
TRIPLE_SIZE: int = 3

LAST_ROUND_PICK_LIMIT: int = config.game_defaults.last_round_pick_limit

DEFAULT_MAX_PLAYERS: int = config.game_defaults.max_players
DEFAULT_ROUNDS: int = config.game_defaults.rounds
