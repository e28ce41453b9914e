"""
GymBuddy — Messages API

Chat between the two sides of an accepted match, plus a websocket that
forwards newly inserted messages as they arrive.
"""

from __future__ import annotations

import asyncio
import uuid

import structlog
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status

from gymbuddy.api.dependencies import get_store, notify
from gymbuddy.schemas.message import MarkReadResponse, MessageCreate, MessageResponse
from gymbuddy.services.messaging_service import MessagingError, MessagingService
from gymbuddy.services.store import RowStore, StoreError, Subscription

logger = structlog.get_logger("gymbuddy.api.messages")

router = APIRouter()


def _get_messaging_service(store: RowStore = Depends(get_store)) -> MessagingService:
    return MessagingService(store)


def _store_failure(exc: StoreError, description: str):
    logger.error("messaging_store_failure", error=str(exc))
    return notify(status.HTTP_503_SERVICE_UNAVAILABLE, "Error", description)


# ──────────────────────────────────────────────────────────────────────────────
# POST /{match_id} — Send a message
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/{match_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a message to a match",
)
async def send_message(
    match_id: uuid.UUID,
    payload: MessageCreate,
    service: MessagingService = Depends(_get_messaging_service),
) -> dict:
    try:
        return await service.send_message(match_id, payload.sender_id, payload.message)
    except MessagingError as exc:
        raise notify(status.HTTP_422_UNPROCESSABLE_ENTITY, "Not Allowed", str(exc))
    except StoreError as exc:
        raise _store_failure(exc, "Failed to send message. Please try again.")


# ──────────────────────────────────────────────────────────────────────────────
# GET /{match_id}?user_id= — Conversation history
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/{match_id}",
    response_model=list[MessageResponse],
    summary="List messages in a match",
)
async def list_messages(
    match_id: uuid.UUID,
    user_id: uuid.UUID,
    service: MessagingService = Depends(_get_messaging_service),
) -> list[dict]:
    try:
        return await service.list_messages(match_id, user_id)
    except MessagingError as exc:
        raise notify(status.HTTP_403_FORBIDDEN, "Not Allowed", str(exc))
    except StoreError as exc:
        raise _store_failure(exc, "Failed to load messages. Please try again.")


# ──────────────────────────────────────────────────────────────────────────────
# POST /{match_id}/read/{user_id} — Mark incoming messages read
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/{match_id}/read/{user_id}",
    response_model=MarkReadResponse,
    summary="Mark the other participant's messages as read",
)
async def mark_read(
    match_id: uuid.UUID,
    user_id: uuid.UUID,
    service: MessagingService = Depends(_get_messaging_service),
) -> MarkReadResponse:
    try:
        marked = await service.mark_read(match_id, user_id)
    except MessagingError as exc:
        raise notify(status.HTTP_403_FORBIDDEN, "Not Allowed", str(exc))
    except StoreError as exc:
        raise _store_failure(exc, "Failed to update messages. Please try again.")
    return MarkReadResponse(match_id=match_id, marked=marked)


# ──────────────────────────────────────────────────────────────────────────────
# WS /{match_id}/stream?user_id= — Live message inserts
# ──────────────────────────────────────────────────────────────────────────────

async def _forward_inserts(websocket: WebSocket, subscription: Subscription) -> None:
    async for row in subscription:
        payload = MessageResponse.model_validate(row).model_dump(mode="json")
        await websocket.send_json(payload)


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    # Inbound frames are ignored; the stream is server-to-client only.
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


async def relay_until_disconnect(websocket: WebSocket, subscription: Subscription) -> None:
    """Forward subscription rows to the client until either side stops.

    A quiet match never wakes the forwarding loop, so a separate task
    watches for the client's disconnect and cancels the forwarder.
    """
    forward = asyncio.create_task(_forward_inserts(websocket, subscription))
    watch = asyncio.create_task(_wait_for_disconnect(websocket))
    try:
        done, _ = await asyncio.wait({forward, watch}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        forward.cancel()
        watch.cancel()
        await asyncio.gather(forward, watch, return_exceptions=True)

    for task in done:
        task.result()


@router.websocket("/{match_id}/stream")
async def stream_messages(
    websocket: WebSocket,
    match_id: uuid.UUID,
    user_id: uuid.UUID,
    service: MessagingService = Depends(_get_messaging_service),
) -> None:
    log = logger.bind(match_id=str(match_id), user_id=str(user_id))

    try:
        await service.require_participant(match_id, user_id)
    except (MessagingError, StoreError) as exc:
        log.warning("stream_rejected", error=str(exc))
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    log.info("stream_opened")

    try:
        async with service.subscribe(match_id) as subscription:
            await relay_until_disconnect(websocket, subscription)
    except WebSocketDisconnect:
        pass
    log.info("stream_closed")
