"""
SmartQueue — SSE change stream

Every Record Store change notification becomes one `change` event:
    event: change
    data: {"entity": "tokens", "id": "<record id>"}

Screens re-read whatever they display when an event arrives. Delivery is
best-effort: a slow client drops events once its buffer is full.
"""
import asyncio
import json
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from smartqueue.api.deps import get_engine
from smartqueue.core.config import get_settings
from smartqueue.engine import QueueEngine
from smartqueue.store.base import EntityType

settings = get_settings()
logger = logging.getLogger(__name__)
router = APIRouter(prefix="/events", tags=["events"])

BUFFER_SIZE = 100


async def _sse_generator(engine: QueueEngine, request: Request) -> AsyncGenerator[str, None]:
    queue: asyncio.Queue = asyncio.Queue(maxsize=BUFFER_SIZE)

    def on_change(entity_type: EntityType, record_id: str) -> None:
        try:
            queue.put_nowait({"entity": entity_type.value, "id": record_id})
        except asyncio.QueueFull:
            logger.debug("SSE buffer full, dropping %s/%s", entity_type.value, record_id)

    unsubscribers = [engine.store.subscribe(e, on_change) for e in EntityType]
    try:
        yield ": connected\n\n"
        yield f"retry: {settings.SSE_RETRY_MILLISECONDS}\n\n"
        while True:
            if await request.is_disconnected():
                break
            try:
                payload = await asyncio.wait_for(queue.get(), timeout=settings.SSE_KEEPALIVE_INTERVAL_SECONDS)
            except asyncio.TimeoutError:
                yield ": keepalive\n\n"
                continue
            yield f"event: change\ndata: {json.dumps(payload)}\n\n"
    finally:
        for unsubscribe in unsubscribers:
            unsubscribe()


@router.get("/stream")
async def stream_changes(request: Request, engine: QueueEngine = Depends(get_engine)):
    return StreamingResponse(
        _sse_generator(engine, request),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",  # Disable Nginx buffering
            "Connection": "keep-alive",
        },
    )
