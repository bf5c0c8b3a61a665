import json
import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

logger = logging.getLogger("realtime_router")
router = APIRouter(tags=["Realtime"])


@router.websocket("/ws")
async def updates_socket(websocket: WebSocket):
    hub = websocket.app.state.hub
    peer = f"{websocket.client.host}:{websocket.client.port}" if websocket.client else "unknown"

    # Registered before accept: once the client sees the handshake it gets every broadcast
    conn = hub.register(websocket.send_text, name=peer)
    writer = None
    try:
        await websocket.accept()
        writer = asyncio.create_task(conn.pump())

        while True:
            raw = await websocket.receive_text()
            # Client messages are not used yet
            try:
                logger.info("Received message from %s: %s", peer, json.loads(raw))
            except json.JSONDecodeError as e:
                logger.error("Error processing WebSocket message from %s: %s", peer, e)
    except WebSocketDisconnect:
        pass
    finally:
        hub.unregister(conn)
        if writer is not None:
            writer.cancel()
            await asyncio.gather(writer, return_exceptions=True)
