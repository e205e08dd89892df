"""WebSocket API for the terminal bridge"""

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..schema.bridge import ErrorMessage
from ..websocket import BridgeDispatcher

logger = logging.getLogger(__name__)

router = APIRouter(tags=["WebSocket"])


@router.websocket("/ws/terminal")
async def websocket_terminal_endpoint(websocket: WebSocket):
    """
    Bridge channel between a terminal UI and the TerminalManager.

    One connection multiplexes any number of sessions; every message
    carries the session id.

    Client → Server Message Format:
    {"type": "create", "id": "uuid", "columns": 80, "rows": 24,
     "workingDirectory": "/path" (optional), "requestId": "r1" (optional)}
    {"type": "write", "id": "uuid", "data": "ls\\r"}
    {"type": "resize", "id": "uuid", "columns": 120, "rows": 40}
    {"type": "destroy", "id": "uuid"}

    Server → Client Message Format:
    {"type": "created", "id": "uuid", "pid": 4242, "requestId": "r1"}
    {"type": "data", "id": "uuid", "data": "..."}
    {"type": "exit", "id": "uuid", "exitCode": 0}

    Error Response Format:
    {"type": "error", "id": "uuid" (optional), "code": "SPAWN_FAILED",
     "message": "error description", "requestId": "r1" (optional)}

    Sessions created over this connection are destroyed when it closes.
    Sessions created by the workspace API are shared: their output and exit
    events are broadcast to every connection.

    Args:
        websocket: WebSocket connection
    """
    # 1. Get dependencies from app state
    terminal_manager = websocket.app.state.terminal_manager
    channel_broker = websocket.app.state.channel_broker

    # 2. Accept WebSocket connection
    await websocket.accept()

    # 3. Register channel in ChannelBroker
    channel_id = await channel_broker.connect(websocket)
    dispatcher = BridgeDispatcher(terminal_manager, channel_broker, channel_id)
    logger.info(f"Terminal WebSocket accepted: channel_id={channel_id}")

    try:
        # 4. Receive messages and dispatch them to the TerminalManager
        while True:
            try:
                text = await websocket.receive_text()
            except WebSocketDisconnect:
                logger.info(f"Channel {channel_id} WebSocket disconnected normally")
                break

            try:
                data = json.loads(text)
            except json.JSONDecodeError as e:
                channel_broker.send(channel_id, ErrorMessage(
                    code="INVALID_MESSAGE",
                    message=f"Malformed JSON: {e}",
                ))
                continue

            dispatcher.handle(data)

    except Exception as e:
        logger.error(f"Unexpected error in channel {channel_id}: {e}", exc_info=True)
    finally:
        # 5. Cleanup: destroy owned sessions, then drop the channel
        dispatcher.close()
        await channel_broker.disconnect(channel_id)
        logger.info(f"Channel {channel_id} WebSocket connection closed")
