"""
Realtime channel
================

WS /api/v1/ws

Client -> server
    ``{"type": "join", "group": "dispatch" | "drivers"}``
    ``{"type": "leave", "group": "dispatch" | "drivers"}``

Server -> client
    ``{"type": "trip:created" | "trip:update", "data": <trip>}``
    ``{"type": "trips", "data": [<trip>, ...]}``  (snapshot, newest first)
    ``{"type": "error", "data": {"detail": "..."}}``

Every successful join triggers a snapshot so the new member can sync.
Each connection gets its own ``QueueListener``; a connection that falls
too far behind is closed with code 1013 (try again later).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from fastcar.api.schemas import TripResponse
from fastcar.domain.enums import EventKind, Group
from fastcar.infrastructure.broadcaster import QueueListener, TripEvent
from fastcar.infrastructure.registry import TripRegistry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


def encode_event(event: TripEvent) -> dict[str, Any]:
    if event.kind is EventKind.TRIP_SNAPSHOT:
        data: Any = [
            TripResponse.model_validate(trip).model_dump(mode="json")
            for trip in event.data
        ]
    else:
        data = TripResponse.model_validate(event.data).model_dump(mode="json")
    return {"type": event.kind.value, "data": data}


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    registry: TripRegistry = websocket.app.state.registry
    await websocket.accept()

    client = websocket.client
    listener = QueueListener(
        websocket.app.state.settings.listener_queue_size,
        name=f"ws:{client.host}:{client.port}" if client else "ws",
    )
    # Only the writer sends; the reader queues its replies on the listener.
    writer = asyncio.create_task(_write(websocket, listener))
    try:
        await _read(websocket, listener, registry)
    finally:
        registry.broadcaster.leave(listener)
        listener.close()
        writer.cancel()
        logger.info("%r disconnected", listener)


async def _read(
    websocket: WebSocket, listener: QueueListener, registry: TripRegistry
) -> None:
    while not listener.closed:
        try:
            message = await websocket.receive_json()
        except (WebSocketDisconnect, RuntimeError):
            return
        except ValueError:
            _reply_error(listener, "message is not valid JSON")
            continue

        kind = message.get("type") if isinstance(message, dict) else None
        try:
            group = Group(message.get("group")) if kind in ("join", "leave") else None
        except ValueError:
            _reply_error(listener, f"unknown group {message.get('group')!r}")
            continue

        if kind == "join":
            registry.broadcaster.join(listener, group)
            registry.publish_snapshot()
        elif kind == "leave":
            registry.broadcaster.leave(listener, group)
        else:
            _reply_error(listener, f"unknown message type {kind!r}")


async def _write(websocket: WebSocket, listener: QueueListener) -> None:
    try:
        while True:
            item = await listener.get()
            if item is None:
                await websocket.close(code=1013 if listener.overflowed else 1000)
                return
            frame = encode_event(item) if isinstance(item, TripEvent) else item
            await websocket.send_json(frame)
    except (WebSocketDisconnect, RuntimeError):
        logger.debug("%r: send on closed socket", listener)


def _reply_error(listener: QueueListener, detail: str) -> None:
    listener.notify({"type": "error", "data": {"detail": detail}})
