"""Command/query surface tying market sync and portfolio valuation together."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from .market.constants import DEFAULT_LIST_PAGE_SIZE, PAGE_SIZE, PAGE_SIZE_OPTIONS
from .market.factory import create_market_data_provider
from .market.interface import MarketDataProvider
from .market.listing import filter_assets, page_numbers, paginate, rescale_page, total_pages
from .market.models import AssetSnapshot, PriceQuote, SortDirection, SortKey, SortOrder
from .market.overview import MarketOverview, summarize_market
from .market.scheduler import FetchScheduler
from .portfolio.ledger import Ledger
from .portfolio.models import AssetPosition, PortfolioSnapshot, Purchase
from .portfolio.persistence import create_persistence
from .portfolio.valuation import summarize_portfolio, value_positions

logger = logging.getLogger(__name__)


class PortfolioEngine:
    """One engine instance per user session.

    Owns the fetch pipeline (cache, pending requests, merged list) and the
    last known price of every asset it has seen. The ledger is passed in and
    only changed through the commands below.

    Lifecycle:
        engine = create_engine()
        await engine.start()
        engine.add_purchase({"assetId": "bitcoin", "amount": 0.5, "price": 60000})
        engine.snapshot.total_pnl
        await engine.stop()
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        ledger: Ledger,
        *,
        page_size: int = DEFAULT_LIST_PAGE_SIZE,
        fetch_page_size: int = PAGE_SIZE,
        **scheduler_options: Any,
    ) -> None:
        self._provider = provider
        self._ledger = ledger
        self._visible = True
        self._prices: dict[str, PriceQuote] = {}
        self._known: dict[str, AssetSnapshot] = {}
        self._search = ""
        self._page = 1
        self._page_size = page_size
        self._view_version = 0
        self._reload_task: asyncio.Task | None = None  # Most recent reorder reload
        self._reload_tasks: set[asyncio.Task] = set()
        self._scheduler = FetchScheduler(
            provider,
            page_size=fetch_page_size,
            is_visible=self.is_visible,
            on_update=self._on_assets,
            **scheduler_options,
        )

    # --- Lifecycle ---

    async def start(self) -> None:
        await self._scheduler.start()

    async def stop(self) -> None:
        for task in list(self._reload_tasks):
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._reload_tasks.clear()
        self._reload_task = None
        await self._scheduler.stop()
        if self._ledger.writer is not None:
            await self._ledger.writer.drain()
        await self._provider.aclose()

    def is_visible(self) -> bool:
        return self._visible

    def set_visible(self, visible: bool) -> None:
        """Hidden surfaces pause background pages and periodic refreshes."""
        self._visible = visible

    # --- Market queries ---

    @property
    def scheduler(self) -> FetchScheduler:
        return self._scheduler

    @property
    def assets(self) -> list[AssetSnapshot]:
        """Merged list in the active order, narrowed by the search filter."""
        return filter_assets(self._scheduler.assets, self._search)

    @property
    def page_assets(self) -> list[AssetSnapshot]:
        return paginate(self.assets, self._page, self._page_size)

    @property
    def total_pages(self) -> int:
        return total_pages(len(self.assets), self._page_size)

    @property
    def page_numbers(self) -> list[int | str]:
        return page_numbers(self._page, self.total_pages)

    @property
    def page(self) -> int:
        return self._page

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def search(self) -> str:
        return self._search

    @property
    def sort_order(self) -> SortOrder:
        return self._scheduler.order

    @property
    def is_loading(self) -> bool:
        return self._scheduler.is_loading

    @property
    def error(self) -> str | None:
        return self._scheduler.error

    @property
    def last_update(self) -> float | None:
        return self._scheduler.last_update

    @property
    def overview(self) -> MarketOverview | None:
        return summarize_market(self._scheduler.assets)

    @property
    def prices(self) -> dict[str, PriceQuote]:
        return dict(self._prices)

    # --- Portfolio queries ---

    @property
    def positions(self) -> list[AssetPosition]:
        return value_positions(self._ledger.purchases, self._prices)

    @property
    def snapshot(self) -> PortfolioSnapshot:
        return summarize_portfolio(self.positions)

    @property
    def purchases(self) -> list[Purchase]:
        return self._ledger.purchases

    @property
    def favorites(self) -> list[str]:
        return self._ledger.favorites

    @property
    def favorite_assets(self) -> list[AssetSnapshot]:
        """Favorites in user order, for those the feed has delivered so far."""
        return [self._known[f] for f in self._ledger.favorites if f in self._known]

    @property
    def version(self) -> int:
        """Changes whenever anything observable changes. For SSE change detection."""
        return self._scheduler.merge_set.version + self._ledger.version + self._view_version

    # --- Market commands ---

    async def request_refresh(self, force: bool = False) -> list[AssetSnapshot]:
        return await self._scheduler.load(force=force)

    def set_sort_order(self, key: SortKey, direction: SortDirection | None = None) -> SortOrder:
        """Switch ordering and reload under the new order.

        Without ``direction`` this behaves like clicking a column header:
        repeat clicks on the same key flip between descending and ascending.
        """
        order = SortOrder(key, direction) if direction else self.sort_order.toggled(key)
        self._scheduler.set_order(order)
        self._bump()
        self._spawn_reload()
        return order

    def set_search_filter(self, text: str) -> None:
        self._search = text
        self._page = 1
        self._bump()

    def set_page(self, page: int) -> int:
        self._page = min(max(1, page), self.total_pages)
        self._bump()
        return self._page

    def set_page_size(self, page_size: int) -> int:
        """Change rows per page, keeping the first visible row on screen."""
        if page_size not in PAGE_SIZE_OPTIONS:
            raise ValueError(f"page size must be one of {PAGE_SIZE_OPTIONS}, got {page_size}")
        self._page = rescale_page(self._page, self._page_size, page_size)
        self._page_size = page_size
        self._page = min(self._page, self.total_pages)
        self._bump()
        return self._page

    # --- Ledger commands ---

    def add_purchase(self, record: Purchase | Mapping[str, Any]) -> Purchase:
        """Record a buy. Display fields missing from ``record`` come from the feed."""
        if not isinstance(record, Purchase):
            record = dict(record)
            asset = self._known.get(record.get("assetId") or record.get("asset_id") or "")
            if asset is not None:
                record.setdefault("name", asset.name)
                record.setdefault("symbol", asset.symbol)
                record.setdefault("image", asset.image)
        return self._ledger.add_purchase(record)

    def edit_purchase(self, purchase_id: str, **fields: Any) -> Purchase:
        return self._ledger.edit_purchase(purchase_id, **fields)

    def remove_purchase(self, purchase_id: str) -> bool:
        return self._ledger.remove_purchase(purchase_id)

    def toggle_favorite(self, asset_id: str) -> bool:
        return self._ledger.toggle_favorite(asset_id)

    def reorder_favorites(self, new_ordered_ids: Sequence[str]) -> list[str]:
        return self._ledger.reorder_favorites(new_ordered_ids)

    def move_favorite(self, source_index: int, dest_index: int) -> list[str]:
        return self._ledger.move_favorite(source_index, dest_index)

    # --- Serialization ---

    def to_dict(self) -> dict:
        """Full observable state, for JSON / SSE transmission."""
        order = self.sort_order
        overview = self.overview
        return {
            "assets": [a.to_dict() for a in self.page_assets],
            "total_assets": len(self.assets),
            "page": self._page,
            "page_size": self._page_size,
            "total_pages": self.total_pages,
            "page_numbers": self.page_numbers,
            "sort": {"key": order.key.value, "direction": order.direction.value},
            "search": self._search,
            "is_loading": self.is_loading,
            "error": self.error,
            "last_update": self.last_update,
            "favorites": self.favorites,
            "positions": [p.to_dict() for p in self.positions],
            "portfolio": self.snapshot.to_dict(),
            "overview": overview.to_dict() if overview else None,
        }

    # --- Internals ---

    def _on_assets(self, assets: list[AssetSnapshot]) -> None:
        # Prices are sticky: an asset that drops out of the list keeps its last quote
        for asset in assets:
            self._known[asset.id] = asset
            if asset.current_price is not None:
                self._prices[asset.id] = asset.quote()

    def _bump(self) -> None:
        self._view_version += 1

    def _spawn_reload(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return  # No loop yet; the next start()/refresh picks up the new order
        # Only the newest order keeps a reload running
        if self._reload_task is not None and not self._reload_task.done():
            self._reload_task.cancel()
        task = loop.create_task(self._scheduler.load(force=True), name="market-reorder-reload")
        self._reload_tasks.add(task)
        task.add_done_callback(self._reload_tasks.discard)
        self._reload_task = task


def create_engine(**options: Any) -> PortfolioEngine:
    """Engine wired to the environment-selected provider and the JSON ledger store."""
    provider = create_market_data_provider()
    ledger = Ledger.load(create_persistence())
    return PortfolioEngine(provider, ledger, **options)
