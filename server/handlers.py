"""WebSocket message handlers for the Svein card game.

Each handler corresponds to a single message type from the client.
Handlers are dispatched via the HANDLERS dict through dispatch_message(),
which also turns engine errors into "error" frames for the requester.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import WebSocket
from pydantic import ValidationError

from errors import DuplicatePlayer, GameError, GameStateError, RequestError
from game import Card, GameStatus, Player
from models.messages import (
    CreateGameMessage,
    JoinGameMessage,
    LastRoundPickMessage,
    PlayCardsMessage,
    StartGameMessage,
)
from room import Room

logger = logging.getLogger(__name__)


@dataclass
class ConnectionContext:
    """State tracked per WebSocket connection."""

    websocket: WebSocket
    connection_id: str
    player_id: str
    current_room: Optional[Room] = None


def cards_payload(cards: list[Card]) -> list[dict]:
    return [card.to_dict() for card in cards]


def release_watch(room: Room, connection_id: str, *, room_manager) -> bool:
    """
    Stop a connection watching a room. A waiting room left with no players
    and no watchers is deleted.

    Returns:
        True if the room was deleted.
    """
    room.remove_watcher(connection_id)
    abandoned = (
        room.is_empty()
        and not room.watchers
        and room.game.status == GameStatus.WAITING
        and room_manager.get_room(room.id) is room
    )
    if abandoned:
        room_manager.remove_room(room.id)
    return abandoned


# ---------------------------------------------------------------------------
# Lobby / Room handlers
# ---------------------------------------------------------------------------

async def handle_create_game(data: dict, ctx: ConnectionContext, *, room_manager, broadcast_room_list, **kw) -> None:
    msg = CreateGameMessage.model_validate(data)

    # A seated player cannot also host
    if room_manager.find_player_room(ctx.player_id):
        raise DuplicatePlayer()

    room = room_manager.create_room(
        msg.game_id,
        max_players=msg.max_players,
        total_rounds=msg.number_of_rounds,
        creator_id=ctx.player_id,
    )
    room.add_watcher(ctx.player_id, ctx.websocket)
    previous, ctx.current_room = ctx.current_room, room
    if previous and previous is not room:
        release_watch(previous, ctx.player_id, room_manager=room_manager)

    await ctx.websocket.send_json({
        "type": "game_created",
        "game_id": room.id,
        "max_players": room.game.max_players,
        "number_of_rounds": room.game.total_rounds,
    })
    await broadcast_room_list()


async def handle_join_game(data: dict, ctx: ConnectionContext, *, room_manager, broadcast_room_list, **kw) -> None:
    msg = JoinGameMessage.model_validate(data)

    seated_in = room_manager.find_player_room(ctx.player_id)
    if seated_in and seated_in.id != msg.game_id:
        raise DuplicatePlayer()

    room = room_manager.join_room(msg.game_id, msg.player_name, ctx.player_id, ctx.websocket)
    previous, ctx.current_room = ctx.current_room, room
    if previous and previous is not room:
        release_watch(previous, ctx.player_id, room_manager=room_manager)

    await ctx.websocket.send_json({
        "type": "joined_game",
        "game_id": room.id,
        "player_name": msg.player_name,
        "player_id": ctx.player_id,
    })
    await room.broadcast({
        "type": "player_joined",
        "player_id": ctx.player_id,
        "player_name": msg.player_name,
        "players": room.player_list(),
    })
    await broadcast_room_list()


# ---------------------------------------------------------------------------
# Game lifecycle handlers
# ---------------------------------------------------------------------------

async def handle_start_game(data: dict, ctx: ConnectionContext, *, room_manager, broadcast_room_list, **kw) -> None:
    msg = StartGameMessage.model_validate(data)
    room = room_manager.require_room(msg.game_id)

    async with room.game_lock:
        result = room.game.start_game()

        if result.round == 1:
            await room.broadcast({
                "type": "last_round_started",
                "cards": cards_payload(result.next_player.last_round_cards),
            })

        for player in result.players:
            await room.send_to(player.id, {
                "type": "new_round",
                "cards": cards_payload(player.cards),
                "saved_cards": cards_payload(player.saved_cards),
                "round": result.round,
            })

        await room.broadcast({
            "type": "game_update",
            "player_name": None,
            "played_cards": None,
            "next_player": result.next_player.name,
            "round": result.round,
            "status": result.status.value,
        })
        await room.send_to(result.next_player.id, {"type": "your_turn"})

    await broadcast_room_list()


async def advance_round(room: Room, last_actor: Optional[Player], played: list[dict], *, room_manager, broadcast_room_list) -> None:
    """
    Move a room on after its round finished: start the next round, or
    score and close the game. Caller must hold room.game_lock.
    """
    result = room.game.start_new_round()

    if result.is_game_over:
        await finish_game(room, room_manager=room_manager, broadcast_room_list=broadcast_room_list)
        return

    if result.next_round == 1:
        await room.broadcast({
            "type": "last_round_started",
            "cards": cards_payload(result.next_player.last_round_cards),
        })
        for player in result.players:
            await room.send_to(player.id, {
                "type": "new_round",
                "cards": [],
                "saved_cards": cards_payload(player.saved_cards),
                "round": result.next_round,
            })
    else:
        for player in result.players:
            logger.debug(f"Player {player.name} has cards for round {result.next_round}")
            await room.send_to(player.id, {
                "type": "new_round",
                "cards": cards_payload(player.cards),
                "saved_cards": cards_payload(player.saved_cards),
                "round": result.next_round,
            })
        await room.broadcast({
            "type": "game_update",
            "player_name": last_actor.name if last_actor else None,
            "played_cards": played,
            "next_player": result.next_player.name,
            "round": result.next_round,
            "status": None,
        })

    await room.send_to(result.next_player.id, {"type": "your_turn"})


async def finish_game(room: Room, *, room_manager, broadcast_room_list) -> None:
    """Send final scores, then delete the room."""
    result = room.game.get_result()

    for player in result.players:
        logger.info(f"Player {player.name} finished game {room.id} with score {player.score}")
        await room.send_to(player.id, {
            "type": "game_finished",
            "player_name": player.name,
            "score": player.score,
            "position": player.position,
            "saved_cards": cards_payload(player.saved_cards),
        })

    await room.broadcast({
        "type": "final_results",
        "players": [player.to_dict() for player in result.players],
    })

    room_manager.remove_room(room.id)
    await broadcast_room_list()


# ---------------------------------------------------------------------------
# Turn action handlers
# ---------------------------------------------------------------------------

async def handle_play_cards(data: dict, ctx: ConnectionContext, *, room_manager, broadcast_room_list, **kw) -> None:
    msg = PlayCardsMessage.model_validate(data)
    action = msg.to_action()
    room = room_manager.require_room(msg.game_id)

    async with room.game_lock:
        result = room.game.play_cards(ctx.player_id, action)
        played = cards_payload(result.played_cards)

        await ctx.websocket.send_json({
            "type": "valid_cards_played",
            "new_cards": cards_payload(result.new_hand),
        })

        if result.is_round_finished:
            await advance_round(
                room, result.current_player, played,
                room_manager=room_manager, broadcast_room_list=broadcast_room_list,
            )
            return

        await room.broadcast({
            "type": "game_update",
            "player_name": result.current_player.name,
            "played_cards": played,
            "next_player": result.next_player.name,
            "round": None,
            "status": None,
        })
        await room.send_to(result.next_player.id, {"type": "your_turn"})


async def handle_last_round_pick(data: dict, ctx: ConnectionContext, *, room_manager, broadcast_room_list, **kw) -> None:
    msg = LastRoundPickMessage.model_validate(data)
    room = room_manager.require_room(msg.game_id)

    async with room.game_lock:
        result = room.game.last_round_pick(ctx.player_id, msg.new_card)
        logger.debug(f"Pick pile for {result.next_player.name}: {len(result.new_pick_pile)} cards")

        if result.is_round_finished:
            await advance_round(
                room, result.current_player, [],
                room_manager=room_manager, broadcast_room_list=broadcast_room_list,
            )
            return

        await room.broadcast({
            "type": "game_update",
            "player_name": result.current_player.name,
            "played_cards": cards_payload(result.new_pick_pile),
            "next_player": result.next_player.name,
            "round": 1,
            "status": None,
        })

        if result.next_player.id != result.current_player.id:
            await room.send_to(result.current_player.id, {
                "type": "saved_cards",
                "saved_cards": cards_payload(result.current_player.saved_cards),
            })

        await room.send_to(result.next_player.id, {"type": "your_turn"})


# ---------------------------------------------------------------------------
# Leave handlers
# ---------------------------------------------------------------------------

async def handle_player_leave(room: Room, player_id: str, *, room_manager, broadcast_room_list) -> None:
    """Handle a player (or the host screen) leaving a room."""
    if player_id not in room.players:
        if release_watch(room, player_id, room_manager=room_manager):
            await broadcast_room_list()
        return

    room.remove_watcher(player_id)

    async with room.game_lock:
        room_manager.leave_room(player_id)
        await room.broadcast({
            "type": "player_left",
            "player_id": player_id,
            "players": room.player_list(),
        })

        if room.game.status == GameStatus.FINISHED:
            await room.broadcast({
                "type": "game_ended",
                "reason": "Not enough players left",
            })
        elif room.game.status == GameStatus.STARTED:
            if room.game.is_round_finished():
                await advance_round(
                    room, None, [],
                    room_manager=room_manager, broadcast_room_list=broadcast_room_list,
                )
            else:
                current = room.game.require_current_player()
                await room.send_to(current.id, {"type": "your_turn"})

    await broadcast_room_list()


async def handle_leave_game(data: dict, ctx: ConnectionContext, *, room_manager, broadcast_room_list, **kw) -> None:
    if ctx.current_room:
        await handle_player_leave(
            ctx.current_room, ctx.player_id,
            room_manager=room_manager, broadcast_room_list=broadcast_room_list,
        )
        ctx.current_room = None


# ---------------------------------------------------------------------------
# Handler dispatch table
# ---------------------------------------------------------------------------

HANDLERS = {
    "create_game": handle_create_game,
    "join_game": handle_join_game,
    "start_game": handle_start_game,
    "play_cards": handle_play_cards,
    "last_round_pick": handle_last_round_pick,
    "leave_game": handle_leave_game,
}


async def send_error(ctx: ConnectionContext, error: GameError) -> None:
    await ctx.websocket.send_json({"type": "error", **error.to_dict()})


async def dispatch_message(data: dict, ctx: ConnectionContext, **deps) -> None:
    """
    Route one client frame to its handler.

    Request errors and malformed frames are reported to the requester
    only. Broken invariants are logged with a traceback and reported too;
    the room they happened in keeps whatever state the engine left.
    """
    if not isinstance(data, dict):
        logger.debug(f"Ignoring non-object frame: {type(data).__name__}")
        await ctx.websocket.send_json({
            "type": "error",
            "code": "INVALID_MESSAGE",
            "message": "Messages must be JSON objects.",
        })
        return

    message_type = data.get("type")
    handler = HANDLERS.get(message_type)
    if not handler:
        logger.debug(f"Ignoring unknown message type: {message_type}")
        return

    try:
        await handler(data, ctx, **deps)
    except ValidationError as e:
        logger.warning(f"Invalid {message_type} message: {e.error_count()} errors")
        await ctx.websocket.send_json({
            "type": "error",
            "code": "INVALID_MESSAGE",
            "message": f"Invalid {message_type} message.",
        })
    except RequestError as e:
        logger.warning(
            f"Error handling {message_type}: {e.message}",
            extra={"player_id": ctx.player_id, "error_code": e.code},
        )
        await send_error(ctx, e)
    except GameStateError as e:
        logger.error(
            f"Invariant violation handling {message_type}: {e.message}",
            exc_info=True,
            extra={"player_id": ctx.player_id, "error_code": e.code},
        )
        await send_error(ctx, e)
