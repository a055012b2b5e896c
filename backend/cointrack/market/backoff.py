"""Rate-limit-aware retry around a single upstream request."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

import httpx

from .constants import BASE_RETRY_DELAY, MAX_RETRIES
from .errors import FetchError, PermanentFetchError, RateLimitExceeded, TransientNetworkError

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class BackoffController:
    """Retries an HTTP action on 429 and transport errors with exponential delay.

    Delay before retry ``n`` (0-based) is ``base_delay * 2**n``. With the
    defaults that is 2s, 4s, 8s; the 4th consecutive failure is raised.
    Any other non-2xx status fails at once with PermanentFetchError.
    """

    def __init__(
        self,
        max_retries: int = MAX_RETRIES,
        base_delay: float = BASE_RETRY_DELAY,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._max_retries = max_retries
        self._base_delay = base_delay
        self._sleep = sleep

    @property
    def max_retries(self) -> int:
        return self._max_retries

    def delay_for(self, retry_count: int) -> float:
        """Seconds to wait before retry number ``retry_count`` (0-based)."""
        return self._base_delay * (2**retry_count)

    async def attempt(self, action: Callable[[], Awaitable[httpx.Response]]) -> httpx.Response:
        """Run ``action`` until it returns a 2xx response or the budget is spent."""
        retry_count = 0
        while True:
            failure: FetchError
            try:
                response = await action()
            except httpx.TransportError as e:
                failure = TransientNetworkError(f"{type(e).__name__}: {e}")
            else:
                if response.status_code == 429:
                    failure = RateLimitExceeded("Rate limit exceeded")
                elif not response.is_success:
                    raise PermanentFetchError(
                        f"Upstream returned HTTP {response.status_code}",
                        status_code=response.status_code,
                    )
                else:
                    return response

            if retry_count >= self._max_retries:
                raise failure

            delay = self.delay_for(retry_count)
            logger.warning(
                "%s; retry %d/%d in %.1fs",
                failure,
                retry_count + 1,
                self._max_retries,
                delay,
            )
            await self._sleep(delay)
            retry_count += 1
