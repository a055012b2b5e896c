"""User-owned purchase ledger and favorites list."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, TypeVar

from .errors import PurchaseNotFound
from .models import Purchase
from .persistence import FAVORITES_KEY, HOLDINGS_KEY, BackgroundWriter, PersistenceAdapter

logger = logging.getLogger(__name__)

T = TypeVar("T")

EDITABLE_FIELDS = frozenset({"amount", "price", "date", "notes"})


def reorder(items: Sequence[T], source_index: int, dest_index: int) -> list[T]:
    """Move the item at ``source_index`` to ``dest_index``; everything else keeps its relative order."""
    size = len(items)
    if not (0 <= source_index < size and 0 <= dest_index < size):
        raise IndexError(f"indices {source_index}->{dest_index} out of range for {size} items")
    result = list(items)
    item = result.pop(source_index)
    result.insert(dest_index, item)
    return result


class Ledger:
    """Purchases and favorites, mutated only through explicit commands.

    Every command is one synchronous state change followed by a
    fire-and-forget save of the affected key. In-memory state stays
    authoritative even when a save fails.
    """

    def __init__(
        self,
        purchases: Iterable[Purchase] = (),
        favorites: Iterable[str] = (),
        writer: BackgroundWriter | None = None,
    ) -> None:
        self._purchases: list[Purchase] = list(purchases)
        self._favorites: list[str] = list(dict.fromkeys(favorites))
        self._writer = writer
        self._version: int = 0

    @classmethod
    def load(cls, store: PersistenceAdapter, writer: BackgroundWriter | None = None) -> Ledger:
        """Read both keys from ``store``. Unreadable records are dropped."""
        purchases = []
        for record in store.load(HOLDINGS_KEY):
            try:
                purchases.append(Purchase.from_dict(record))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping stored purchase %r: %s", record, e)

        favorites = [f for f in store.load(FAVORITES_KEY) if isinstance(f, str) and f]
        logger.info("Ledger loaded: %d purchases, %d favorites", len(purchases), len(favorites))
        return cls(purchases, favorites, writer=writer or BackgroundWriter(store))

    # --- Queries ---

    @property
    def purchases(self) -> list[Purchase]:
        return list(self._purchases)

    @property
    def favorites(self) -> list[str]:
        return list(self._favorites)

    @property
    def version(self) -> int:
        return self._version

    @property
    def writer(self) -> BackgroundWriter | None:
        return self._writer

    def get_purchase(self, purchase_id: str) -> Purchase:
        for purchase in self._purchases:
            if purchase.id == purchase_id:
                return purchase
        raise PurchaseNotFound(purchase_id)

    def purchases_for(self, asset_id: str) -> list[Purchase]:
        return [p for p in self._purchases if p.asset_id == asset_id]

    def is_favorite(self, asset_id: str) -> bool:
        return asset_id in self._favorites

    # --- Purchase commands ---

    def add_purchase(self, record: Purchase | Mapping[str, Any]) -> Purchase:
        purchase = record if isinstance(record, Purchase) else Purchase.from_dict(dict(record))
        if any(p.id == purchase.id for p in self._purchases):
            raise ValueError(f"duplicate purchase id: {purchase.id}")
        self._purchases.append(purchase)
        self._changed_holdings()
        logger.info("Added purchase %s: %s x %s @ %s", purchase.id, purchase.asset_id, purchase.amount, purchase.price)
        return purchase

    def edit_purchase(self, purchase_id: str, **fields: Any) -> Purchase:
        """Update amount, price, date or notes. The id and asset never change."""
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"cannot edit fields: {', '.join(sorted(unknown))}")

        for i, purchase in enumerate(self._purchases):
            if purchase.id == purchase_id:
                updated = dataclasses.replace(purchase, **fields)
                self._purchases[i] = updated
                self._changed_holdings()
                return updated
        raise PurchaseNotFound(purchase_id)

    def remove_purchase(self, purchase_id: str) -> bool:
        """Delete a purchase. Returns False if the id was unknown."""
        remaining = [p for p in self._purchases if p.id != purchase_id]
        if len(remaining) == len(self._purchases):
            return False
        self._purchases = remaining
        self._changed_holdings()
        return True

    # --- Favorite commands ---

    def toggle_favorite(self, asset_id: str) -> bool:
        """Add or remove ``asset_id``. Returns True if it is now a favorite."""
        if asset_id in self._favorites:
            self._favorites.remove(asset_id)
            now_favorite = False
        else:
            self._favorites.append(asset_id)
            now_favorite = True
        self._changed_favorites()
        return now_favorite

    def move_favorite(self, source_index: int, dest_index: int) -> list[str]:
        self._favorites = reorder(self._favorites, source_index, dest_index)
        self._changed_favorites()
        return self.favorites

    def reorder_favorites(self, new_ordered_ids: Sequence[str]) -> list[str]:
        """Replace the order wholesale; membership must stay exactly the same."""
        if len(new_ordered_ids) != len(self._favorites) or set(new_ordered_ids) != set(self._favorites):
            raise ValueError("reordered favorites must contain exactly the current favorites")
        self._favorites = list(new_ordered_ids)
        self._changed_favorites()
        return self.favorites

    # --- Internals ---

    def _changed_holdings(self) -> None:
        self._version += 1
        if self._writer is not None:
            self._writer.write(HOLDINGS_KEY, [p.to_dict() for p in self._purchases])

    def _changed_favorites(self) -> None:
        self._version += 1
        if self._writer is not None:
            self._writer.write(FAVORITES_KEY, list(self._favorites))
