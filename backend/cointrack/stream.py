"""SSE streaming endpoint for live engine state."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from .engine import PortfolioEngine

logger = logging.getLogger(__name__)


def create_stream_router(engine: PortfolioEngine) -> APIRouter:
    """Create the SSE streaming router bound to one engine.

    The factory keeps the engine out of module globals, so several apps (or
    tests) can each hold their own.
    """
    router = APIRouter(prefix="/api/stream", tags=["streaming"])

    @router.get("/portfolio")
    async def stream_portfolio(request: Request) -> StreamingResponse:
        """SSE endpoint for market list and portfolio state.

        Emits ``engine.to_dict()`` whenever ``engine.version`` moves:

            data: {"assets": [...], "portfolio": {"total_value": ...}, ...}
        """
        return StreamingResponse(
            _generate_events(engine, request),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",  # Disable nginx buffering if proxied
            },
        )

    return router


async def _generate_events(
    engine: PortfolioEngine,
    request: Request,
    interval: float = 0.5,
) -> AsyncGenerator[str, None]:
    """Yield SSE-formatted state events until the client disconnects.

    Loading-flag and error changes do not bump the version, so they are
    compared separately.
    """
    # Tell the client to retry after 1 second if the connection drops
    yield "retry: 1000\n\n"

    last_seen: tuple | None = None
    client_ip = request.client.host if request.client else "unknown"
    logger.info("SSE client connected: %s", client_ip)

    try:
        while True:
            if await request.is_disconnected():
                logger.info("SSE client disconnected: %s", client_ip)
                break

            current = (engine.version, engine.is_loading, engine.error, engine.last_update)
            if current != last_seen:
                last_seen = current
                payload = json.dumps(engine.to_dict())
                yield f"data: {payload}\n\n"

            await asyncio.sleep(interval)
    except asyncio.CancelledError:
        logger.info("SSE stream cancelled for: %s", client_ip)
