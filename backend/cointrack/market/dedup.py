"""Collapse concurrent identical fetches into one upstream request."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable
from typing import Any

logger = logging.getLogger(__name__)


class RequestDeduplicator:
    """Keeps at most one in-flight task per key.

    Callers that ask for a key while its task is still running get the same
    task back. The registration is dropped as soon as the task settles, so the
    next call after that starts a fresh request.
    """

    def __init__(self) -> None:
        self._pending: dict[Hashable, asyncio.Future] = {}

    def dedupe(self, key: Hashable, factory: Callable[[], Awaitable[Any]]) -> asyncio.Future:
        pending = self._pending.get(key)
        if pending is not None:
            logger.debug("Joining in-flight request for %s", key)
            return pending

        future = asyncio.ensure_future(factory())
        self._pending[key] = future

        def _settled(done: asyncio.Future) -> None:
            if self._pending.get(key) is done:
                del self._pending[key]
            # Callers may all have been cancelled out of a shield; mark the error retrieved
            if not done.cancelled() and done.exception() is not None:
                logger.debug("Request for %s failed: %s", key, done.exception())

        future.add_done_callback(_settled)
        return future

    def __contains__(self, key: Hashable) -> bool:
        return key in self._pending

    def __len__(self) -> int:
        return len(self._pending)
