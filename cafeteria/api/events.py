"""
Cafeteria — SSE push channel for kitchen and admin screens

Every connected browser gets its own subscription on the broadcaster and
receives the new_order / order_status_updated messages published while it
is connected. Nothing is replayed on reconnect; the screen re-fetches
GET /api/orders instead.
"""
import json
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from cafeteria.core.broadcast import get_broadcaster
from cafeteria.core.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/events", tags=["events"])


def format_sse(event: str, data: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


async def sse_stream(request: Request, broadcaster) -> AsyncGenerator[str, None]:
    """Subscribe, then yield one SSE frame per broadcast message."""
    async with broadcaster.subscribe() as subscription:
        yield ": connected\n\n"

        # Set retry interval for the client
        yield f"retry: {settings.SSE_RETRY_MILLISECONDS}\n\n"

        while True:
            if await request.is_disconnected():
                break

            message = await subscription.next_event(timeout=settings.SSE_KEEPALIVE_INTERVAL_SECONDS)
            if message is None:
                yield ": keepalive\n\n"
                continue
            yield format_sse(message["event"], message["data"])

    logger.debug("SSE client disconnected")


@router.get("")
async def stream_events(request: Request, broadcaster=Depends(get_broadcaster)):
    """
    SSE endpoint. Kitchen and admin screens open an EventSource to this URL.
    """
    return StreamingResponse(
        sse_stream(request, broadcaster),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",  # Disable Nginx buffering
            "Connection": "keep-alive",
        },
    )
