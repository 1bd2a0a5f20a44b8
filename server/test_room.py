"""
Test suite for Room and RoomManager.

Covers:
- Room creation, defaults and id uniqueness
- Joining rules surfaced through the manager
- Starting and leaving games
- Lobby summaries
- Message broadcast and send_to

Run with: pytest test_room.py -v
"""

import pytest

from constants import DEFAULT_MAX_PLAYERS, DEFAULT_ROUNDS
from errors import (
    AlreadyStarted,
    DuplicatePlayer,
    EmptyName,
    InvalidSettings,
    NotEnoughPlayers,
    RoomAlreadyExists,
    RoomFull,
    RoomNotFound,
)
from game import GameStatus, SinglePlay
from room import Room, RoomManager


# =============================================================================
# Mock helpers
# =============================================================================

class MockWebSocket:
    """Mock WebSocket that collects sent messages."""

    def __init__(self):
        self.messages: list[dict] = []

    async def send_json(self, data: dict):
        self.messages.append(data)


class BrokenWebSocket:
    async def send_json(self, data: dict):
        raise RuntimeError("connection closed")


# =============================================================================
# RoomManager tests
# =============================================================================

class TestRoomManagerCreate:

    def test_create_room_uses_defaults(self):
        rm = RoomManager()
        room = rm.create_room("g1")
        assert rm.rooms["g1"] is room
        assert room.game.max_players == DEFAULT_MAX_PLAYERS
        assert room.game.total_rounds == DEFAULT_ROUNDS
        assert room.game.round == DEFAULT_ROUNDS
        assert room.game.status == GameStatus.WAITING

    def test_create_room_with_options(self):
        rm = RoomManager()
        room = rm.create_room("g1", max_players=3, total_rounds=5, creator_id="host")
        assert room.game.max_players == 3
        assert room.game.total_rounds == 5
        assert room.game.creator_id == "host"

    def test_settings_one_deck_cannot_cover(self):
        rm = RoomManager()
        with pytest.raises(InvalidSettings):
            rm.create_room("g1", max_players=5, total_rounds=10)
        assert rm.rooms == {}

    def test_duplicate_room_id(self):
        rm = RoomManager()
        rm.create_room("g1")
        with pytest.raises(RoomAlreadyExists):
            rm.create_room("g1")

    def test_remove_room(self):
        rm = RoomManager()
        rm.create_room("g1")
        rm.remove_room("g1")
        assert rm.get_room("g1") is None

    def test_remove_unknown_room_is_noop(self):
        rm = RoomManager()
        rm.remove_room("nope")
        assert rm.rooms == {}

    def test_require_room_unknown(self):
        rm = RoomManager()
        with pytest.raises(RoomNotFound):
            rm.require_room("nope")


class TestRoomManagerJoin:

    def test_join_room(self):
        rm = RoomManager()
        rm.create_room("g1")
        room = rm.join_room("g1", "Ann", "p1")

        assert room.get_player("p1").name == "Ann"
        assert [p.name for p in room.game.players] == ["Ann"]
        assert rm.find_player_room("p1") is room

    def test_join_unknown_room(self):
        rm = RoomManager()
        with pytest.raises(RoomNotFound):
            rm.join_room("g1", "Ann", "p1")

    def test_join_twice(self):
        rm = RoomManager()
        rm.create_room("g1")
        rm.join_room("g1", "Ann", "p1")
        with pytest.raises(DuplicatePlayer):
            rm.join_room("g1", "Ann", "p1")

    def test_join_with_blank_name(self):
        rm = RoomManager()
        rm.create_room("g1")
        with pytest.raises(EmptyName):
            rm.join_room("g1", "", "p1")
        assert rm.rooms["g1"].is_empty()

    def test_join_full_room(self):
        rm = RoomManager()
        rm.create_room("g1", max_players=2)
        rm.join_room("g1", "Ann", "p1")
        rm.join_room("g1", "Bob", "p2")
        with pytest.raises(RoomFull):
            rm.join_room("g1", "Cid", "p3")
        assert "p3" not in rm.rooms["g1"].players

    def test_join_started_game(self):
        rm = RoomManager()
        rm.create_room("g1")
        rm.join_room("g1", "Ann", "p1")
        rm.join_room("g1", "Bob", "p2")
        rm.start_game("g1")
        with pytest.raises(AlreadyStarted):
            rm.join_room("g1", "Cid", "p3")

    def test_find_player_room_none(self):
        rm = RoomManager()
        rm.create_room("g1")
        assert rm.find_player_room("p1") is None


class TestRoomManagerGame:

    def _room(self, rm: RoomManager, players: int = 2) -> Room:
        room = rm.create_room("g1", total_rounds=3)
        for i in range(players):
            rm.join_room("g1", f"Player {i}", f"p{i}")
        return room

    def test_start_needs_two_players(self):
        rm = RoomManager()
        self._room(rm, players=1)
        with pytest.raises(NotEnoughPlayers):
            rm.start_game("g1")

    def test_start_unknown_room(self):
        rm = RoomManager()
        with pytest.raises(RoomNotFound):
            rm.start_game("nope")

    def test_start_and_play_through_manager(self):
        rm = RoomManager()
        room = self._room(rm)
        result = rm.start_game("g1")

        player = result.next_player
        play = rm.play_cards("g1", player.id, SinglePlay(player.cards[-1].id))

        assert play.current_player is player
        assert len(player.cards) == 2
        assert room.game.player_turn_index != room.game.players.index(player)

    def test_new_round_and_result_through_manager(self):
        rm = RoomManager()
        self._room(rm)
        rm.start_game("g1")

        assert rm.start_new_round("g1").next_round == 2
        result = rm.get_result("g1")
        assert sorted(p.position for p in result.players) == [1, 2]

    def test_last_round_pick_through_manager(self):
        rm = RoomManager()
        room = rm.create_room("g1", total_rounds=1)
        rm.join_room("g1", "Ann", "p1")
        rm.join_room("g1", "Bob", "p2")
        start = rm.start_game("g1")

        pick = rm.last_round_pick("g1", start.next_player.id, False)

        assert len(start.next_player.saved_cards) == 1
        assert pick.next_player is not start.next_player
        assert room.game.round == 1


class TestRoomManagerLeave:

    def test_leave_waiting_room(self):
        rm = RoomManager()
        rm.create_room("g1")
        rm.join_room("g1", "Ann", "p1")
        rm.join_room("g1", "Bob", "p2")

        room = rm.leave_room("p1")

        assert room.id == "g1"
        assert list(room.players) == ["p2"]
        assert rm.get_room("g1") is room

    def test_last_player_leaving_deletes_room(self):
        rm = RoomManager()
        rm.create_room("g1")
        rm.join_room("g1", "Ann", "p1")

        rm.leave_room("p1")

        assert rm.get_room("g1") is None

    def test_started_game_left_alone_is_deleted(self):
        rm = RoomManager()
        rm.create_room("g1")
        rm.join_room("g1", "Ann", "p1")
        rm.join_room("g1", "Bob", "p2")
        rm.start_game("g1")

        room = rm.leave_room("p1")

        assert room.game.status == GameStatus.FINISHED
        assert rm.get_room("g1") is None

    def test_leave_when_not_seated(self):
        rm = RoomManager()
        assert rm.leave_room("ghost") is None


class TestRoomManagerList:

    def test_list_rooms(self):
        rm = RoomManager()
        rm.create_room("g1", max_players=3, total_rounds=4)
        rm.join_room("g1", "Ann", "p1")
        rm.create_room("g2")

        summaries = rm.list_rooms()

        assert [s["id"] for s in summaries] == ["g1", "g2"]
        assert summaries[0]["players"] == [{"id": "p1", "name": "Ann"}]
        assert summaries[0]["max_players"] == 3
        assert summaries[0]["status"] == "waiting"
        assert summaries[0]["round"] == 4


# =============================================================================
# Room messaging tests
# =============================================================================

class TestRoomMessaging:

    def _room(self) -> tuple[Room, MockWebSocket, MockWebSocket, MockWebSocket]:
        rm = RoomManager()
        room = rm.create_room("g1")
        host, ann, bob = MockWebSocket(), MockWebSocket(), MockWebSocket()
        room.add_watcher("host", host)
        room.add_player("p1", "Ann", ann)
        room.add_player("p2", "Bob", bob)
        return room, host, ann, bob

    @pytest.mark.asyncio
    async def test_broadcast_reaches_players_and_watchers(self):
        room, host, ann, bob = self._room()

        await room.broadcast({"type": "hello"})

        assert host.messages == [{"type": "hello"}]
        assert ann.messages == [{"type": "hello"}]
        assert bob.messages == [{"type": "hello"}]

    @pytest.mark.asyncio
    async def test_broadcast_exclude(self):
        room, host, ann, bob = self._room()

        await room.broadcast({"type": "hello"}, exclude="p1")

        assert ann.messages == []
        assert len(bob.messages) == 1
        assert len(host.messages) == 1

    @pytest.mark.asyncio
    async def test_watcher_who_also_plays_gets_one_copy(self):
        room, host, ann, bob = self._room()
        room.add_watcher("p1", ann)

        await room.broadcast({"type": "hello"})

        assert len(ann.messages) == 1

    @pytest.mark.asyncio
    async def test_broadcast_survives_broken_socket(self):
        room, host, ann, bob = self._room()
        room.add_watcher("dead", BrokenWebSocket())

        await room.broadcast({"type": "hello"})

        assert len(bob.messages) == 1

    @pytest.mark.asyncio
    async def test_send_to(self):
        room, host, ann, bob = self._room()

        await room.send_to("p2", {"type": "your_turn"})
        await room.send_to("ghost", {"type": "your_turn"})

        assert bob.messages == [{"type": "your_turn"}]
        assert ann.messages == []
        assert host.messages == []

    def test_player_list_follows_turn_order(self):
        room, host, ann, bob = self._room()
        assert room.player_list() == [
            {"id": "p1", "name": "Ann"},
            {"id": "p2", "name": "Bob"},
        ]

    def test_remove_watcher(self):
        room, host, ann, bob = self._room()
        room.remove_watcher("host")
        room.remove_watcher("host")
        assert room.watchers == {}
