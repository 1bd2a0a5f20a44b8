"""
Game logic for Svein.

This module implements the rule engine for one Svein game room: card and
deck management, player state, turn order, move validation, the round
lifecycle, the last-round picking phase and final scoring.

Svein Rules Summary:
    - A game runs `total_rounds` rounds, counting down to 1.
    - In round N (N >= 2) every player is dealt N cards.
    - On your turn, play one card or a "two-for-one":
        * Single card: must be at least the rank of the last played card if
          you hold anything that high. If you can't beat it, you must dump
          your smallest card.
        * Two-for-one: discard a pair of equal rank and draw one card.
    - When every player is down to one card, that card is saved (banked)
      and the next round starts with one card fewer.
    - Round 1 is the last round: players draw cards one at a time
      (up to 3 per turn) and bank one of them.
    - Score = sum of saved card values (2..14), minus the highest cards,
      one per rank held three or more times.

Card Piles (each card lives in exactly one at a time):
    deck, discard_pile, played_cards, and per player:
    cards (hand), saved_cards, last_round_cards
"""

import logging
import random
import uuid
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from constants import (
    DECK_SIZE,
    LAST_ROUND_PICK_LIMIT,
    MIN_PLAYERS,
    RANK_ORDER,
    RANK_VALUES,
    SUIT_SYMBOLS,
    TRIPLE_SIZE,
    DEFAULT_MAX_PLAYERS,
    DEFAULT_ROUNDS,
)
from errors import (
    AlreadyDonePicking,
    AlreadyStarted,
    CardsNotOwned,
    DuplicatePlayer,
    EmptyName,
    InvalidCardCount,
    InvalidGameState,
    MismatchedRank,
    MustPlayHigher,
    MustPlaySmallest,
    NoCardsLeft,
    NoCardsToRestock,
    NotEnoughPlayers,
    NotYourTurn,
    PlayerNotFound,
    RoomFull,
    WrongPhase,
)

logger = logging.getLogger(__name__)


class Suit(Enum):
    """Card suits for a standard deck."""

    HEARTS = "Hearts"
    DIAMONDS = "Diamonds"
    CLUBS = "Clubs"
    SPADES = "Spades"


class Rank(Enum):
    """Card ranks, declared in ascending order (2 low, Ace high)."""

    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"
    ACE = "A"


# Position of each rank in the 2 < 3 < ... < K < A order
RANK_INDEX: dict[Rank, int] = {Rank(value): index for index, value in enumerate(RANK_ORDER)}


@dataclass(frozen=True)
class Card:
    """
    A playing card.

    Cards compare and hash by `id` only, so two cards with the same suit
    and rank are still different cards.

    Attributes:
        suit: The card's suit.
        rank: The card's rank.
        id: Opaque unique identifier (uuid4 string).
    """

    suit: Suit = field(compare=False)
    rank: Rank = field(compare=False)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def rank_index(self) -> int:
        """0-based position of this card's rank (2 -> 0, A -> 12)."""
        return RANK_INDEX[self.rank]

    def value(self) -> int:
        """Point value at scoring time (2 -> 2, A -> 14)."""
        return RANK_VALUES[self.rank.value]

    def to_dict(self) -> dict:
        """Convert card to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "suit": self.suit.value,
            "rank": self.rank.value,
        }

    def __str__(self) -> str:
        return f"{self.rank.value}{SUIT_SYMBOLS[self.suit.value]}"


def cards_to_string(cards: list[Card]) -> str:
    return ", ".join(str(card) for card in cards)


def sort_by_rank(cards: list[Card]) -> list[Card]:
    """Sort cards ascending by rank, in place. Returns the same list."""
    cards.sort(key=lambda card: card.rank_index)
    return cards


# -----------------------------------------------------------------------------
# Deck
# -----------------------------------------------------------------------------

def generate_deck() -> list[Card]:
    """Build a fresh 52-card deck, one card per suit and rank."""
    return [Card(suit, rank) for suit in Suit for rank in Rank]


def shuffle_deck(deck: list[Card]) -> list[Card]:
    """
    Shuffle a deck in place (uniform Fisher-Yates via random.shuffle).

    Returns:
        The same list, for chaining.
    """
    random.shuffle(deck)
    return deck


def deal_cards(
    deck: list[Card],
    cards_per_player: int,
    num_players: int,
) -> tuple[list[list[Card]], list[Card]]:
    """
    Shuffle the deck and deal hands from the top.

    Hands are filled one at a time. If the deck runs out, the current hand
    stops short and later hands get fewer (possibly zero) cards. Each hand
    is returned sorted ascending by rank.

    Args:
        deck: Cards to deal from. Shuffled and consumed in place.
        cards_per_player: Target hand size.
        num_players: Number of hands to deal.

    Returns:
        Tuple of (hands, remaining deck).
    """
    shuffled = shuffle_deck(deck)
    hands: list[list[Card]] = [[] for _ in range(num_players)]

    for hand in hands:
        for _ in range(cards_per_player):
            if not shuffled:
                logger.warning("Deck ran out of cards while dealing.")
                break
            hand.append(shuffled.pop())
        sort_by_rank(hand)

    return hands, shuffled


def deck_supports(num_players: int, total_rounds: int) -> bool:
    """
    Check that one deck can carry a full game.

    Every round before the last banks one card per player for good, and
    the last round can draw up to LAST_ROUND_PICK_LIMIT cards per player
    from what is left.
    """
    return num_players * (total_rounds - 1 + LAST_ROUND_PICK_LIMIT) <= DECK_SIZE


# -----------------------------------------------------------------------------
# Player
# -----------------------------------------------------------------------------

@dataclass
class Player:
    """
    A player in a Svein game.

    Attributes:
        id: Stable external identity (the connection id).
        name: Display name.
        cards: Current hand, kept sorted by rank.
        saved_cards: Permanent scoring pile.
        last_round_cards: Pick pile for the current turn of the last round.
        score: Final score, set by Game.get_result().
        position: Final placing (1 = winner), set by Game.get_result().
    """

    id: str
    name: str
    cards: list[Card] = field(default_factory=list)
    saved_cards: list[Card] = field(default_factory=list)
    last_round_cards: list[Card] = field(default_factory=list)
    score: Optional[int] = None
    position: Optional[int] = None

    def calculate_score(self) -> int:
        """
        Calculate the player's final score from their saved cards.

        Scoring rules:
            - Each saved card is worth its rank value (2..14)
            - For every rank held three or more times, the single highest
              saved card scores nothing (bonus discount)

        Example:
            saved = [2, 2, 2, 5] -> one triple, drop the 5 -> 2+2+2 = 6

        Returns:
            Total score (higher is better).
        """
        rank_counts = Counter(card.rank for card in self.saved_cards)
        triple_count = sum(1 for count in rank_counts.values() if count >= TRIPLE_SIZE)

        highest_first = sorted(self.saved_cards, key=lambda card: card.rank_index, reverse=True)
        return sum(card.value() for card in highest_first[triple_count:])

    def to_dict(self) -> dict:
        """Public view of the player for results (no hand or pick pile)."""
        return {
            "id": self.id,
            "name": self.name,
            "saved_cards": [card.to_dict() for card in self.saved_cards],
            "score": self.score,
            "position": self.position,
        }


# -----------------------------------------------------------------------------
# Actions and results
# -----------------------------------------------------------------------------

class GameStatus(str, Enum):
    """
    Room status. Only ever moves forward.

    Flow: WAITING -> STARTED -> FINISHED
    """

    WAITING = "waiting"
    STARTED = "started"
    FINISHED = "finished"


@dataclass(frozen=True)
class SinglePlay:
    """Play one card onto the trick."""

    card_id: str

    @property
    def card_ids(self) -> tuple[str, ...]:
        return (self.card_id,)


@dataclass(frozen=True)
class TwoForOne:
    """Discard a pair of equal rank and draw one replacement card."""

    first_id: str
    second_id: str

    @property
    def card_ids(self) -> tuple[str, ...]:
        return (self.first_id, self.second_id)


PlayAction = Union[SinglePlay, TwoForOne]


def parse_play(card_ids: list[str]) -> PlayAction:
    """
    Turn the card ids a client sent into a play action.

    Raises:
        InvalidCardCount: Anything other than one or two cards.
    """
    if len(card_ids) == 1:
        return SinglePlay(card_ids[0])
    if len(card_ids) == 2:
        return TwoForOne(card_ids[0], card_ids[1])
    raise InvalidCardCount()


@dataclass
class StartResult:
    players: list[Player]
    next_player: Player
    status: GameStatus
    round: int


@dataclass
class PlayResult:
    current_player: Player
    next_player: Player
    is_round_finished: bool
    new_hand: list[Card]
    played_cards: list[Card] = field(default_factory=list)


@dataclass
class RoundResult:
    is_game_over: bool
    players: list[Player]
    next_player: Player
    next_round: int


@dataclass
class PickResult:
    current_player: Player
    next_player: Player
    is_round_finished: bool
    new_pick_pile: list[Card]


@dataclass
class GameResult:
    players: list[Player]


# -----------------------------------------------------------------------------
# Game
# -----------------------------------------------------------------------------

@dataclass
class Game:
    """
    Full rule state for one Svein room.

    Attributes:
        room_id: The room this game belongs to.
        max_players: Seat limit.
        total_rounds: Rounds to play; also the starting hand size.
        creator_id: Connection that created the room, if known.
        players: Players in turn order.
        status: waiting, started or finished.
        round: Current round. Counts down from total_rounds to 0.
        deck: Draw pile (top of deck = end of list).
        discard_pile: Pairs discarded by two-for-one plays.
        played_cards: Cards played this round, in order.
        player_turn_index: Index of the player whose turn it is.
        starting_player_index: Index of the player who opened this round.
        last_played_card: The card currently to beat, if any.
    """

    room_id: str
    max_players: int = DEFAULT_MAX_PLAYERS
    total_rounds: int = DEFAULT_ROUNDS
    creator_id: Optional[str] = None
    players: list[Player] = field(default_factory=list)
    status: GameStatus = GameStatus.WAITING
    round: Optional[int] = None
    deck: list[Card] = field(default_factory=list)
    discard_pile: list[Card] = field(default_factory=list)
    played_cards: list[Card] = field(default_factory=list)
    player_turn_index: int = 0
    starting_player_index: int = 0
    last_played_card: Optional[Card] = None

    def __post_init__(self) -> None:
        if self.round is None:
            self.round = self.total_rounds

    # -------------------------------------------------------------------------
    # Player Management
    # -------------------------------------------------------------------------

    def add_player(self, player_id: str, name: str) -> Player:
        """
        Seat a new player at the end of the turn order.

        Raises:
            RoomFull: All seats taken.
            EmptyName: Name is blank after trimming.
            AlreadyStarted: The game is no longer waiting for players.
            DuplicatePlayer: This player id is already seated.
        """
        if len(self.players) >= self.max_players:
            raise RoomFull(self.room_id)
        if not name.strip():
            raise EmptyName()
        if self.status != GameStatus.WAITING:
            raise AlreadyStarted(self.room_id)
        if self.get_player(player_id):
            raise DuplicatePlayer()

        player = Player(id=player_id, name=name)
        self.players.append(player)
        return player

    def remove_player(self, player_id: str) -> Optional[Player]:
        """
        Remove a player, keeping turn indices pointing at the right seat.

        The leaving player's hand and pick pile go to the discard pile.
        If they were on turn, the turn passes to whoever takes their seat.
        A started game that drops below two players is finished.

        Returns:
            The removed Player, or None if not found.

        Raises:
            NoCardsLeft: In the last round, the player taking the turn needs
                an opening card and the deck is empty. Nothing is removed.
        """
        for seat, player in enumerate(self.players):
            if player.id == player_id:
                break
        else:
            return None

        remaining = self.players[:seat] + self.players[seat + 1:]
        turn_index = self.player_turn_index - (1 if seat < self.player_turn_index else 0)
        start_index = self.starting_player_index - (1 if seat < self.starting_player_index else 0)
        if remaining:
            turn_index %= len(remaining)
            start_index %= len(remaining)
        else:
            turn_index = start_index = 0

        still_running = self.status == GameStatus.STARTED and len(remaining) >= MIN_PLAYERS
        if still_running and self.round == 1:
            successor = remaining[turn_index]
            if self._still_picking(successor) and not successor.last_round_cards and not self.deck:
                raise NoCardsLeft()

        removed = self.players.pop(seat)
        self.discard_pile.extend(removed.cards)
        self.discard_pile.extend(removed.last_round_cards)
        removed.cards.clear()
        removed.last_round_cards.clear()
        self.player_turn_index = turn_index
        self.starting_player_index = start_index

        if self.status == GameStatus.STARTED:
            if not still_running:
                logger.info(f"Game {self.room_id} finished: not enough players left")
                self.status = GameStatus.FINISHED
            elif self.round == 1:
                self._deal_pick_card_if_needed(self.require_current_player())

        return removed

    def get_player(self, player_id: str) -> Optional[Player]:
        """Find a player by their ID, or None."""
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def require_player(self, player_id: str) -> Player:
        player = self.get_player(player_id)
        if not player:
            raise PlayerNotFound(player_id)
        return player

    # -------------------------------------------------------------------------
    # Turn Tracking
    # -------------------------------------------------------------------------

    def current_player(self) -> Optional[Player]:
        """Get the player whose turn it is, or None if the room is empty."""
        if not self.players:
            return None
        return self.players[self.player_turn_index % len(self.players)]

    def require_current_player(self) -> Player:
        """Like current_player(), but an empty room is an invariant violation."""
        player = self.current_player()
        if not player:
            raise InvalidGameState(f"No player found for game {self.room_id}.")
        return player

    def advance_turn(self) -> Player:
        """Pass the turn to the next player and return them."""
        if not self.players:
            raise InvalidGameState(f"No player found for game {self.room_id}.")
        self.player_turn_index = (self.player_turn_index + 1) % len(self.players)
        return self.require_current_player()

    def _require_turn(self, player: Player) -> None:
        if self.require_current_player().id != player.id:
            raise NotYourTurn()

    def _require_started(self) -> None:
        if self.status != GameStatus.STARTED:
            raise WrongPhase(f"Game {self.room_id} is {self.status.value}, not started.")

    # -------------------------------------------------------------------------
    # Game Lifecycle
    # -------------------------------------------------------------------------

    def start_game(self) -> StartResult:
        """
        Deal the first round and pick a random starting player.

        Raises:
            NotEnoughPlayers: Fewer than two players seated.
            AlreadyStarted: The game already started or finished.
        """
        if len(self.players) < MIN_PLAYERS:
            raise NotEnoughPlayers()
        if self.status != GameStatus.WAITING:
            raise AlreadyStarted(self.room_id)

        self.status = GameStatus.STARTED

        self.played_cards = []
        self.discard_pile = []
        self.last_played_card = None
        self.starting_player_index = random.randrange(len(self.players))
        self.player_turn_index = self.starting_player_index

        if self.round == 1:
            # A one-round game opens straight into picking
            self.deck = shuffle_deck(generate_deck())
            self._deal_pick_card_if_needed(self.require_current_player())
        else:
            hands, self.deck = deal_cards(generate_deck(), self.round, len(self.players))
            for player, hand in zip(self.players, hands):
                player.cards = hand

        next_player = self.require_current_player()
        logger.info(
            f"Game {self.room_id} started with {len(self.players)} players, "
            f"{next_player.name} plays first"
        )

        return StartResult(
            players=self.players,
            next_player=next_player,
            status=self.status,
            round=self.round,
        )

    # -------------------------------------------------------------------------
    # Turn Actions
    # -------------------------------------------------------------------------

    def play_cards(self, player_id: str, action: PlayAction) -> PlayResult:
        """
        Validate and apply a play for the player on turn.

        All checks run before any state changes, so a rejected play leaves
        the game exactly as it was.

        Args:
            player_id: ID of the player playing.
            action: A SinglePlay or TwoForOne (see parse_play()).

        Raises:
            PlayerNotFound, NotYourTurn, CardsNotOwned, MustPlayHigher,
            MustPlaySmallest, MismatchedRank: The play is illegal.
            WrongPhase: The game is not started, or it is the last round.
            NoCardsToRestock: A two-for-one needed a draw and no card is left.
        """
        self._require_started()
        if self.round < 2:
            raise WrongPhase("Cards are picked, not played, in the last round.")

        player = self.require_player(player_id)
        self._require_turn(player)
        cards = self._resolve_owned_cards(player, action.card_ids)

        if isinstance(action, SinglePlay):
            self._play_single_card(player, cards[0])
        else:
            self._play_two_for_one(player, cards[0], cards[1])

        next_player = self.advance_turn()
        is_round_finished = self.is_round_finished()

        return PlayResult(
            current_player=player,
            next_player=next_player,
            is_round_finished=is_round_finished,
            new_hand=list(player.cards),
            played_cards=cards,
        )

    def _resolve_owned_cards(self, player: Player, card_ids: tuple[str, ...]) -> list[Card]:
        """Map card ids to the player's own Card objects."""
        in_hand = {card.id: card for card in player.cards}
        if len(set(card_ids)) != len(card_ids) or any(card_id not in in_hand for card_id in card_ids):
            raise CardsNotOwned()
        return [in_hand[card_id] for card_id in card_ids]

    def check_single_card(self, player: Player, card: Card) -> None:
        """
        Raise if `card` is not a legal single play for `player`.

        With no last played card anything goes. Otherwise a card lower than
        the last one is only allowed when the player holds nothing that
        high, and then it must be their smallest card.
        """
        last = self.last_played_card
        if last is None:
            return

        card_rank = card.rank_index
        last_rank = last.rank_index
        smallest_rank = min(c.rank_index for c in player.cards)
        largest_rank = max(c.rank_index for c in player.cards)

        if card_rank < last_rank and largest_rank >= last_rank:
            raise MustPlayHigher(last.rank.value)

        if card_rank < last_rank and largest_rank < last_rank and card_rank != smallest_rank:
            raise MustPlaySmallest()

    def _play_single_card(self, player: Player, card: Card) -> None:
        self.check_single_card(player, card)

        player.cards.remove(card)
        self.played_cards.append(card)
        self.last_played_card = card
        logger.info(f"Player {player.name} played {card} in game {self.room_id}")

    def _play_two_for_one(self, player: Player, first: Card, second: Card) -> None:
        if first.rank != second.rank:
            raise MismatchedRank()

        if not self.deck:
            self._restock()

        player.cards.remove(first)
        player.cards.remove(second)
        new_card = self.deck.pop()
        player.cards.append(new_card)
        sort_by_rank(player.cards)
        self.discard_pile.extend([first, second])

        logger.info(
            f"Player {player.name} played two for one with {cards_to_string([first, second])} "
            f"and drew {new_card} in game {self.room_id}"
        )

    def _restock(self) -> None:
        """
        Rebuild an empty deck from the played cards and discard pile.

        The last played card stays on the table and is not reshuffled.

        Raises:
            NoCardsToRestock: Nothing left to rebuild the deck from.
        """
        live_id = self.last_played_card.id if self.last_played_card else None
        remaining = [
            card for card in [*self.deck, *self.played_cards, *self.discard_pile]
            if card.id != live_id
        ]
        if not remaining:
            raise NoCardsToRestock()

        self.deck = shuffle_deck(remaining)
        self.played_cards = [self.last_played_card] if self.last_played_card else []
        self.discard_pile = []
        logger.info(f"Deck restocked with {len(self.deck)} cards for game {self.room_id}")

    # -------------------------------------------------------------------------
    # Rounds
    # -------------------------------------------------------------------------

    def is_round_finished(self) -> bool:
        """
        Check whether the current round is over.

        In rounds 2 and up the round ends once every hand is down to one
        card; those last cards are banked into saved_cards as a side effect.
        In round 1 it ends once every player has banked total_rounds cards.
        Round 0 is always finished.
        """
        if self.round >= 2:
            if not all(len(player.cards) == 1 for player in self.players):
                return False
            for player in self.players:
                player.saved_cards.append(player.cards.pop())
            logger.info(f"All players have one card left in game {self.room_id}, saving last cards")
            return True

        if self.round == 1:
            return all(len(player.saved_cards) == self.total_rounds for player in self.players)

        return True

    def start_new_round(self) -> RoundResult:
        """
        Move on to the next round.

        Reshuffles every loose card into the deck, rotates the starting
        player, then either ends the game (round 0), opens the last-round
        picking phase (round 1), or deals a fresh hand of `round` cards.
        """
        self._require_started()
        self._prepare_next_round()

        next_player = self.require_current_player()
        is_game_over = False

        if self.round == 0:
            logger.info(f"Game {self.room_id} has finished.")
            self.status = GameStatus.FINISHED
            is_game_over = True
        elif self.round == 1:
            logger.info(f"Starting last round for game {self.room_id}.")
            self._deal_pick_card_if_needed(next_player)
        else:
            logger.info(f"Starting round {self.round} for game {self.room_id}.")
            hands, self.deck = deal_cards(self.deck, self.round, len(self.players))
            for player, hand in zip(self.players, hands):
                player.cards = hand

        return RoundResult(
            is_game_over=is_game_over,
            players=self.players,
            next_player=next_player,
            next_round=self.round,
        )

    def _prepare_next_round(self) -> None:
        loose_cards = [*self.deck, *self.played_cards, *self.discard_pile]
        for player in self.players:
            loose_cards.extend(player.cards)
            loose_cards.extend(player.last_round_cards)
            player.cards = []
            player.last_round_cards = []

        self.round -= 1
        self.deck = shuffle_deck(loose_cards)
        self.played_cards = []
        self.discard_pile = []
        self.last_played_card = None
        self.starting_player_index = (self.starting_player_index + 1) % len(self.players)
        self.player_turn_index = self.starting_player_index
        logger.debug(f"Deck reset for game {self.room_id}")

    # -------------------------------------------------------------------------
    # Last Round
    # -------------------------------------------------------------------------

    def _still_picking(self, player: Player) -> bool:
        return len(player.saved_cards) < self.total_rounds

    def _deal_pick_card_if_needed(self, player: Player) -> None:
        """Open a pick turn by drawing one card into the player's pick pile."""
        if not self._still_picking(player) or player.last_round_cards:
            return
        if not self.deck:
            raise NoCardsLeft()
        player.last_round_cards.append(self.deck.pop())

    def last_round_pick(self, player_id: str, wants_new_card: bool) -> PickResult:
        """
        Take one step of the last-round picking turn.

        A pick turn starts with one card in the player's pick pile. The
        player either asks for another card (up to three) or stops. When
        the turn ends, one card is banked into saved_cards:
            - stopping banks the most recent card in the pick pile, and the
              card drawn for this call is discarded
            - reaching three cards banks the third card
        The rest of the pick pile is discarded and the next player is dealt
        a card to start their own turn.

        Raises:
            PlayerNotFound, NotYourTurn, AlreadyDonePicking: Illegal pick.
            WrongPhase: Not the last round, or nothing picked to save.
            NoCardsLeft: The deck can't cover the draws this pick needs.
        """
        self._require_started()
        if self.round != 1:
            raise WrongPhase("Cards can only be picked in the last round.")

        player = self.require_player(player_id)
        self._require_turn(player)

        if not self._still_picking(player):
            raise AlreadyDonePicking(
                "You have already saved your cards for the last round. You are done picking."
            )
        if len(player.last_round_cards) >= LAST_ROUND_PICK_LIMIT:
            raise AlreadyDonePicking("You have already picked your cards for the last round.")
        if not wants_new_card and not player.last_round_cards:
            raise WrongPhase("There is no picked card to save.")

        ends_turn = not wants_new_card or len(player.last_round_cards) + 1 >= LAST_ROUND_PICK_LIMIT
        draws_needed = 1
        if ends_turn:
            upcoming = self.players[(self.player_turn_index + 1) % len(self.players)]
            if upcoming is not player and self._still_picking(upcoming) and not upcoming.last_round_cards:
                draws_needed += 1
        if len(self.deck) < draws_needed:
            raise NoCardsLeft()

        card = self.deck.pop()

        if not ends_turn:
            player.last_round_cards.append(card)
            logger.debug(f"Player {player.name} wants a new card in game {self.room_id}")
            return PickResult(
                current_player=player,
                next_player=player,
                is_round_finished=self.is_round_finished(),
                new_pick_pile=list(player.last_round_cards),
            )

        if wants_new_card:
            player.last_round_cards.append(card)
        else:
            self.discard_pile.append(card)

        saved = player.last_round_cards.pop()
        player.saved_cards.append(saved)
        self.discard_pile.extend(player.last_round_cards)
        player.last_round_cards.clear()
        logger.info(
            f"Player {player.name} has finished picking cards for the last round, "
            f"saves {saved} in game {self.room_id}"
        )

        next_player = self.advance_turn()
        self._deal_pick_card_if_needed(next_player)

        return PickResult(
            current_player=player,
            next_player=next_player,
            is_round_finished=self.is_round_finished(),
            new_pick_pile=list(next_player.last_round_cards),
        )

    # -------------------------------------------------------------------------
    # Scoring
    # -------------------------------------------------------------------------

    def get_result(self) -> GameResult:
        """
        Score every player and rank them, highest score first.

        Ties keep turn order and still get distinct positions. The turn
        order itself is not changed.
        """
        for player in self.players:
            player.score = player.calculate_score()
            logger.info(
                f"Player {player.name} saved {cards_to_string(player.saved_cards)} "
                f"for {player.score} points in game {self.room_id}"
            )

        ranked = sorted(self.players, key=lambda player: player.score, reverse=True)
        for position, player in enumerate(ranked, start=1):
            player.position = position

        return GameResult(players=ranked)

    # -------------------------------------------------------------------------
    # State Queries
    # -------------------------------------------------------------------------

    def summary(self) -> dict:
        """Public room info for the lobby list."""
        return {
            "id": self.room_id,
            "players": [{"id": p.id, "name": p.name} for p in self.players],
            "max_players": self.max_players,
            "status": self.status.value,
            "round": self.round,
            "total_rounds": self.total_rounds,
        }

    def all_card_ids(self) -> list[str]:
        """Every card id currently held in any pile (for conservation checks)."""
        piles = [self.deck, self.discard_pile, self.played_cards]
        for player in self.players:
            piles.extend([player.cards, player.saved_cards, player.last_round_cards])
        return [card.id for pile in piles for card in pile]
