"""Ordered, staggered multi-page acquisition of the full asset list."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

import httpx

from .backoff import BackoffController, Sleep
from .cache import ResponseCache
from .constants import (
    MAX_PAGES,
    PAGE_DELAY,
    PAGE_SIZE,
    REFRESH_INTERVAL,
    STALE_RETRY_DELAY,
)
from .dedup import RequestDeduplicator
from .errors import FetchError, NoDataAvailable, PermanentFetchError
from .interface import MarketDataProvider
from .merge import MergeSet
from .models import AssetSnapshot, PageKey, PageResult, SortOrder

logger = logging.getLogger(__name__)

PAGE_ERROR_POLICIES = ("continue", "stop")


def parse_page(response: httpx.Response) -> tuple[AssetSnapshot, ...]:
    """Decode one ``/coins/markets`` response body.

    A body that is not a JSON array is a PermanentFetchError. Individual
    records that cannot be read are skipped.
    """
    try:
        body = response.json()
    except ValueError as e:
        raise PermanentFetchError("Malformed response body", status_code=response.status_code) from e
    if not isinstance(body, list):
        raise PermanentFetchError(
            f"Expected a JSON array, got {type(body).__name__}",
            status_code=response.status_code,
        )

    assets = []
    for record in body:
        try:
            assets.append(AssetSnapshot.from_api(record))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(
                "Skipping asset record %s: %s",
                record.get("id", "???") if isinstance(record, dict) else "???",
                e,
            )
    return tuple(assets)


class FetchScheduler:
    """Keeps a MergeSet in sync with a paginated, rate-limited provider.

    Each load fetches page 1 first and applies it on its own, then walks
    pages 2..max_pages one at a time with ``page_delay`` between them. Every
    page goes through Cache -> Dedup -> Backoff -> provider.

    Lifecycle:
        scheduler = FetchScheduler(provider, is_visible=lambda: True)
        await scheduler.start()   # forced first load + periodic refresh
        # ... app runs ...
        await scheduler.stop()
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        *,
        merge_set: MergeSet | None = None,
        cache: ResponseCache | None = None,
        deduplicator: RequestDeduplicator | None = None,
        backoff: BackoffController | None = None,
        page_size: int = PAGE_SIZE,
        max_pages: int = MAX_PAGES,
        page_delay: float = PAGE_DELAY,
        refresh_interval: float = REFRESH_INTERVAL,
        stale_retry_delay: float | None = STALE_RETRY_DELAY,
        on_page_error: str = "continue",
        is_visible: Callable[[], bool] | None = None,
        on_update: Callable[[list[AssetSnapshot]], None] | None = None,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if on_page_error not in PAGE_ERROR_POLICIES:
            raise ValueError(f"on_page_error must be one of {PAGE_ERROR_POLICIES}, got {on_page_error!r}")

        self._provider = provider
        self._merge_set = merge_set or MergeSet()
        self._cache = cache or ResponseCache()
        self._dedup = deduplicator or RequestDeduplicator()
        self._backoff = backoff or BackoffController(sleep=sleep)
        self._page_size = page_size
        self._max_pages = max_pages
        self._page_delay = page_delay
        self._refresh_interval = refresh_interval
        self._stale_retry_delay = stale_retry_delay
        self._on_page_error = on_page_error
        self._is_visible = is_visible or (lambda: True)
        self._on_update = on_update
        self._sleep = sleep
        self._clock = clock

        self._loading = False
        self._generation = 0  # Bumped by every load; older loads stop at their next checkpoint
        self._error: str | None = None
        self._last_error: FetchError | None = None
        self._last_update: float | None = None
        self._task: asyncio.Task | None = None
        self._retry_task: asyncio.Task | None = None

    # --- State ---

    @property
    def merge_set(self) -> MergeSet:
        return self._merge_set

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    @property
    def assets(self) -> list[AssetSnapshot]:
        return self._merge_set.assets

    @property
    def order(self) -> SortOrder:
        return self._merge_set.order

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> str | None:
        """User-facing message for the last failed sync, or None."""
        return self._error

    @property
    def last_error(self) -> FetchError | None:
        return self._last_error

    @property
    def last_update(self) -> float | None:
        """Wall-clock time (Unix seconds) of the last sync that produced data."""
        return self._last_update

    def set_order(self, order: SortOrder) -> None:
        """Re-sort held data. Pages for the new order live under new cache keys."""
        self._merge_set.set_order(order)

    # --- Lifecycle ---

    async def start(self) -> None:
        await self.load(force=True)
        self._task = asyncio.create_task(self._refresh_loop(), name="market-refresh")
        logger.info(
            "Market sync started: page size %d, up to %d pages, %.1fs refresh",
            self._page_size,
            self._max_pages,
            self._refresh_interval,
        )

    async def stop(self) -> None:
        for task in (self._task, self._retry_task):
            if task and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._task = None
        self._retry_task = None
        logger.info("Market sync stopped")

    # --- Loading ---

    async def load(self, force: bool = False) -> list[AssetSnapshot]:
        """Run one sync cycle and return the merged list.

        Without ``force`` this is a no-op while another load is running, and
        fresh cache entries are served without touching the provider.
        """
        if self._loading and not force:
            logger.debug("Load already in progress; skipping")
            return self._merge_set.assets

        self._generation += 1
        generation = self._generation
        order = self.order
        self._loading = True
        try:
            try:
                first = await self.fetch_page(1, order, force=force)
            except FetchError as e:
                if self._superseded(generation):
                    return self._merge_set.assets
                self._fail(NoDataAvailable(f"No market data available: {e}"))
                return self._merge_set.assets

            if self._superseded(generation):
                return self._merge_set.assets

            if not first.assets:
                self._fail(NoDataAvailable("No market data available: empty first page"))
                return self._merge_set.assets

            self._merge_set.replace(first.assets)
            self._notify()
            if first.is_stale:
                self._last_error = first.stale_error
                self._error = f"Refresh failed: {first.stale_error}. Using cached data."
                self._schedule_stale_retry()
            else:
                self._last_error = None
                self._error = None

            if len(first.assets) >= self._page_size:
                await self._load_background_pages(generation, order, force)

            if generation == self._generation:
                self._last_update = self._clock()
            return self._merge_set.assets
        finally:
            if generation == self._generation:
                self._loading = False

    async def fetch_page(self, page: int, order: SortOrder | None = None, *, force: bool = False) -> PageResult:
        """Fetch one page through the cache, falling back to a stale copy on failure."""
        key = PageKey.for_order(page, order or self.order)
        if not force:
            cached = self._cache.get(key)
            if cached is not None:
                return PageResult(list(cached), from_cache=True)

        future = self._dedup.dedupe(key, lambda: self._fetch_uncached(key))
        try:
            assets = await asyncio.shield(future)
        except FetchError as e:
            stale = self._cache.get_stale(key)
            if stale is None:
                raise
            logger.warning("Page %d fetch failed (%s); serving cached copy", page, e)
            return PageResult(list(stale), from_cache=True, stale_error=e)
        return PageResult(list(assets))

    # --- Internals ---

    async def _fetch_uncached(self, key: PageKey) -> tuple[AssetSnapshot, ...]:
        order = SortOrder(key.sort_key, key.direction)
        response = await self._backoff.attempt(
            lambda: self._provider.fetch_page(key.page, self._page_size, order.order_param)
        )
        assets = parse_page(response)
        self._cache.set(key, assets)
        logger.debug("Fetched page %d (%s): %d assets", key.page, order.order_param, len(assets))
        return assets

    async def _load_background_pages(self, generation: int, order: SortOrder, force: bool) -> None:
        for page in range(2, self._max_pages + 1):
            await self._sleep(self._page_delay)
            if generation != self._generation or not self._is_visible():
                logger.info("Background load stopped before page %d", page)
                return

            try:
                result = await self.fetch_page(page, order, force=force)
            except FetchError as e:
                logger.warning("Background page %d failed, list is partial: %s", page, e)
                if self._on_page_error == "stop":
                    return
                continue

            if generation != self._generation:
                return
            self._merge_set.merge(result.assets)
            self._notify()
            if len(result.assets) < self._page_size:
                return  # Short page: nothing further upstream

    def _superseded(self, generation: int) -> bool:
        """True once a newer load has started; the older one must not touch state."""
        if generation != self._generation:
            logger.debug("Load superseded before page 1 was applied")
            return True
        return False

    def _fail(self, error: NoDataAvailable) -> None:
        self._last_error = error
        self._error = str(error)
        logger.error("%s", error)

    def _notify(self) -> None:
        if self._on_update is not None:
            self._on_update(self._merge_set.assets)

    def _schedule_stale_retry(self) -> None:
        """Queue one forced reload after serving stale data (only while started)."""
        if self._task is None or self._stale_retry_delay is None:
            return
        if self._retry_task is not None and not self._retry_task.done():
            return
        self._retry_task = asyncio.create_task(self._retry_after_stale(), name="market-stale-retry")

    async def _retry_after_stale(self) -> None:
        await self._sleep(self._stale_retry_delay)
        try:
            await self.load(force=True)
        except Exception:
            logger.exception("Retry after stale data failed")

    async def _refresh_loop(self) -> None:
        """Reload on interval. First load already happened in start()."""
        while True:
            await self._sleep(self._refresh_interval)
            if self._loading or not self._is_visible():
                logger.debug("Periodic refresh skipped (loading=%s)", self._loading)
                continue
            try:
                await self.load()
            except Exception:
                logger.exception("Periodic refresh failed")
