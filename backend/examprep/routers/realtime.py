"""Websocket feed of table changes.

Each socket holds exactly one subscription, released when the socket closes.
Clients re-fetch their view on every notice.
"""

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from examprep.services.realtime import REALTIME_TABLES, ChangeEvent, realtime_hub

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/realtime", tags=["realtime"])


async def _pump(websocket: WebSocket, queue: "asyncio.Queue[ChangeEvent]") -> None:
    while True:
        change = await queue.get()
        await websocket.send_json(change.as_message())


async def _drain(websocket: WebSocket) -> None:
    """Read until the client goes away."""
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        return


@router.websocket("/{table}")
async def realtime_feed(websocket: WebSocket, table: str, user_id: str | None = None):
    if table not in REALTIME_TABLES:
        await websocket.close(code=1008)
        return

    await websocket.accept()
    queue: asyncio.Queue[ChangeEvent] = asyncio.Queue()
    filters = {"user_id": user_id} if user_id else None

    with realtime_hub.subscribe(table, queue.put_nowait, filters):
        sender = asyncio.create_task(_pump(websocket, queue))
        receiver = asyncio.create_task(_drain(websocket))
        done, pending = await asyncio.wait({sender, receiver}, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        for task in done:
            if not task.cancelled() and task.exception() and not isinstance(task.exception(), WebSocketDisconnect):
                logger.warning(f"Realtime feed for {table} closed: {task.exception()}")

    logger.debug(f"Realtime subscriber on {table} disconnected")
