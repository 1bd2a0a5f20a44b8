"""
Room management for multiplayer Svein games.

This module handles room creation, player management, and WebSocket
communication for multiplayer game sessions.

A Room contains:
    - A client-chosen room id
    - The WebSocket connection of every seated player
    - A Game instance with the actual rule state
    - A lock that serializes every mutation of that game

The RoomManager is the repository of rooms: it owns the id -> Room
mapping and is the entry point for every engine operation.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from fastapi import WebSocket

from constants import DEFAULT_MAX_PLAYERS, DEFAULT_ROUNDS
from errors import InvalidSettings, RoomAlreadyExists, RoomNotFound
from game import (
    Game,
    GameResult,
    GameStatus,
    PickResult,
    PlayAction,
    PlayResult,
    RoundResult,
    StartResult,
    deck_supports,
)

logger = logging.getLogger(__name__)


@dataclass
class RoomPlayer:
    """
    A player in a game room (connection-level representation).

    This is separate from game.Player - RoomPlayer tracks the WebSocket
    connection, while game.Player tracks cards and score.

    Attributes:
        id: Unique player identifier (the connection id).
        name: Display name.
        websocket: WebSocket connection (None in tests / after disconnect).
    """

    id: str
    name: str
    websocket: Optional[WebSocket] = None


@dataclass
class Room:
    """
    A game room that hosts one Svein game.

    Attributes:
        id: Room identifier chosen by the creator.
        game: The Game instance containing the rule state.
        players: Dict mapping player IDs to RoomPlayer objects.
        watchers: Connections that follow the room without a seat
            (the host screen that created it).
        game_lock: asyncio.Lock for serializing game mutations.
    """

    id: str
    game: Game
    players: dict[str, RoomPlayer] = field(default_factory=dict)
    watchers: dict[str, WebSocket] = field(default_factory=dict)
    game_lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def add_watcher(self, connection_id: str, websocket: WebSocket) -> None:
        self.watchers[connection_id] = websocket

    def remove_watcher(self, connection_id: str) -> None:
        self.watchers.pop(connection_id, None)

    def add_player(
        self,
        player_id: str,
        name: str,
        websocket: Optional[WebSocket] = None,
    ) -> RoomPlayer:
        """
        Seat a player in the game and track their connection.

        The game validates the join first, so a rejected join leaves the
        room untouched.

        Raises:
            RoomFull, EmptyName, AlreadyStarted, DuplicatePlayer
        """
        self.game.add_player(player_id, name)

        room_player = RoomPlayer(id=player_id, name=name, websocket=websocket)
        self.players[player_id] = room_player
        return room_player

    def remove_player(self, player_id: str) -> Optional[RoomPlayer]:
        """
        Remove a player from the room and its game.

        Returns:
            The removed RoomPlayer, or None if not found.
        """
        if player_id not in self.players:
            return None

        self.game.remove_player(player_id)
        return self.players.pop(player_id)

    def get_player(self, player_id: str) -> Optional[RoomPlayer]:
        """Get a player by ID, or None if not found."""
        return self.players.get(player_id)

    def is_empty(self) -> bool:
        """Check if the room has no players."""
        return len(self.players) == 0

    def player_list(self) -> list[dict]:
        """Players in turn order, for client display."""
        return [{"id": p.id, "name": p.name} for p in self.game.players]

    async def broadcast(self, message: dict, exclude: Optional[str] = None) -> None:
        """
        Send a message to every connected player and watcher in the room.

        Args:
            message: JSON-serializable message dict.
            exclude: Optional player ID to skip.
        """
        recipients = {pid: p.websocket for pid, p in self.players.items() if p.websocket}
        for connection_id, websocket in self.watchers.items():
            recipients.setdefault(connection_id, websocket)

        for connection_id, websocket in recipients.items():
            if connection_id == exclude:
                continue
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.debug(f"Broadcast to {connection_id} in room {self.id} failed: {e}")

    async def send_to(self, player_id: str, message: dict) -> None:
        """
        Send a message to a specific player.

        Args:
            player_id: ID of the recipient player.
            message: JSON-serializable message dict.
        """
        player = self.players.get(player_id)
        if player and player.websocket:
            try:
                await player.websocket.send_json(message)
            except Exception as e:
                logger.debug(f"Send to {player_id} in room {self.id} failed: {e}")


class RoomManager:
    """
    Manages all active game rooms.

    Owns the room id -> Room mapping. Every engine operation enters here,
    so an unknown room id is always reported as RoomNotFound. A single
    RoomManager instance is used by the server.
    """

    def __init__(self) -> None:
        """Initialize an empty room manager."""
        self.rooms: dict[str, Room] = {}

    # -------------------------------------------------------------------------
    # Repository
    # -------------------------------------------------------------------------

    def create_room(
        self,
        room_id: str,
        max_players: Optional[int] = None,
        total_rounds: Optional[int] = None,
        creator_id: Optional[str] = None,
    ) -> Room:
        """
        Create a new, waiting room.

        Args:
            room_id: Identifier for the room.
            max_players: Seat limit (defaults to config).
            total_rounds: Number of rounds (defaults to config).
            creator_id: Connection that created the room.

        Raises:
            RoomAlreadyExists: The id is already taken.
            InvalidSettings: One deck cannot last that many players and rounds.
        """
        if room_id in self.rooms:
            raise RoomAlreadyExists(room_id)

        max_players = max_players or DEFAULT_MAX_PLAYERS
        total_rounds = total_rounds or DEFAULT_ROUNDS
        if not deck_supports(max_players, total_rounds):
            raise InvalidSettings(max_players, total_rounds)

        game = Game(
            room_id=room_id,
            max_players=max_players,
            total_rounds=total_rounds,
            creator_id=creator_id,
        )
        room = Room(id=room_id, game=game)
        self.rooms[room_id] = room
        logger.info(f"Game created with ID: {room_id}")
        return room

    def get_room(self, room_id: str) -> Optional[Room]:
        """Get a room by its id, or None."""
        return self.rooms.get(room_id)

    def require_room(self, room_id: str) -> Room:
        room = self.rooms.get(room_id)
        if not room:
            raise RoomNotFound(room_id)
        return room

    def remove_room(self, room_id: str) -> None:
        """Delete a room. Unknown ids are ignored."""
        if room_id in self.rooms:
            del self.rooms[room_id]
            logger.info(f"Game {room_id} removed")

    def find_player_room(self, player_id: str) -> Optional[Room]:
        """Find which room a player is in, or None."""
        for room in self.rooms.values():
            if player_id in room.players:
                return room
        return None

    def list_rooms(self) -> list[dict]:
        """Summaries of every room, for the lobby broadcast."""
        return [room.game.summary() for room in self.rooms.values()]

    # -------------------------------------------------------------------------
    # Engine operations
    # -------------------------------------------------------------------------

    def join_room(
        self,
        room_id: str,
        player_name: str,
        player_id: str,
        websocket: Optional[WebSocket] = None,
    ) -> Room:
        """
        Seat a player in a room.

        Raises:
            RoomNotFound, RoomFull, EmptyName, AlreadyStarted, DuplicatePlayer
        """
        room = self.require_room(room_id)
        room.add_player(player_id, player_name, websocket)
        logger.info(f"Player {player_name} with ID {player_id} joined game {room_id}")
        return room

    def leave_room(self, player_id: str) -> Optional[Room]:
        """
        Remove a player from whichever room they are in.

        Empty rooms, and started games left with fewer than two players,
        are deleted.

        Returns:
            The room the player left, or None if they were in no room.
        """
        room = self.find_player_room(player_id)
        if not room:
            return None

        room.remove_player(player_id)
        logger.info(f"Player with ID {player_id} has left game {room.id}")

        if room.is_empty() or room.game.status == GameStatus.FINISHED:
            self.remove_room(room.id)
        return room

    def start_game(self, room_id: str) -> StartResult:
        """
        Raises:
            RoomNotFound, NotEnoughPlayers
        """
        return self.require_room(room_id).game.start_game()

    def play_cards(self, room_id: str, player_id: str, action: PlayAction) -> PlayResult:
        return self.require_room(room_id).game.play_cards(player_id, action)

    def start_new_round(self, room_id: str) -> RoundResult:
        return self.require_room(room_id).game.start_new_round()

    def last_round_pick(self, room_id: str, player_id: str, wants_new_card: bool) -> PickResult:
        return self.require_room(room_id).game.last_round_pick(player_id, wants_new_card)

    def get_result(self, room_id: str) -> GameResult:
        return self.require_room(room_id).game.get_result()
