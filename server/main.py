"""FastAPI WebSocket server for the Svein card game."""

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from config import config
from errors import GameError
from handlers import ConnectionContext, dispatch_message, handle_player_leave
from logging_config import connection_id_var, get_logger, room_id_var, setup_logging
from room import RoomManager
from routers.health import router as health_router, set_health_dependencies

# Configure logging based on environment
setup_logging(
    level=config.LOG_LEVEL,
    environment=config.ENVIRONMENT,
)
logger = get_logger(__name__)


room_manager = RoomManager()

# Every open socket, keyed by connection id, for lobby broadcasts
connections: dict[str, WebSocket] = {}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    set_health_dependencies(room_manager=room_manager)
    logger.info(f"Svein server started (environment={config.ENVIRONMENT})")

    yield

    logger.info("Shutdown initiated...")
    await _close_all_websockets()
    logger.info("Shutdown complete")


async def _close_all_websockets():
    """Close all active WebSocket connections gracefully."""
    for connection_id, websocket in list(connections.items()):
        try:
            await websocket.close(code=1001, reason="Server shutting down")
        except Exception as e:
            logger.debug(f"Closing {connection_id} failed: {e}")
    connections.clear()
    logger.info("All WebSocket connections closed")


app = FastAPI(
    title="Svein Card Game",
    debug=config.DEBUG,
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)


@app.get("/")
async def index():
    return {"message": "Welcome to Svein!"}


async def broadcast_room_list():
    """Send the lobby list of every room to every open connection."""
    message = {"type": "game_state", "games": room_manager.list_rooms()}
    for connection_id, websocket in list(connections.items()):
        try:
            await websocket.send_json(message)
        except Exception as e:
            logger.debug(f"Lobby broadcast to {connection_id} failed: {e}")


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    await websocket.accept()

    connection_id = str(uuid.uuid4())
    connection_id_var.set(connection_id)
    connections[connection_id] = websocket
    logger.debug(f"WebSocket connected as {connection_id}")

    ctx = ConnectionContext(
        websocket=websocket,
        connection_id=connection_id,
        player_id=connection_id,
    )

    # Shared dependencies passed to every handler
    handler_deps = dict(
        room_manager=room_manager,
        broadcast_room_list=broadcast_room_list,
    )

    await websocket.send_json({"type": "game_state", "games": room_manager.list_rooms()})

    try:
        while True:
            data = await websocket.receive_json()
            room_id = data.get("game_id") if isinstance(data, dict) else None
            if not isinstance(room_id, str):
                room_id = ctx.current_room.id if ctx.current_room else None
            room_id_var.set(room_id)
            await dispatch_message(data, ctx, **handler_deps)
    except WebSocketDisconnect:
        logger.debug(f"WebSocket {connection_id} disconnected")
    finally:
        connections.pop(connection_id, None)
        if ctx.current_room:
            try:
                await handle_player_leave(ctx.current_room, ctx.player_id, **handler_deps)
            except GameError as e:
                logger.with_context(player_id=ctx.player_id, error_code=e.code).error(
                    f"Cleanup after disconnect failed: {e.message}"
                )


def run():
    """Run the server using uvicorn."""
    import uvicorn

    logger.info(f"Starting Svein server on {config.HOST}:{config.PORT}")
    logger.info(f"Debug mode: {config.DEBUG}")

    uvicorn.run(
        "main:app",
        host=config.HOST,
        port=config.PORT,
        reload=config.DEBUG,
        log_level=config.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
