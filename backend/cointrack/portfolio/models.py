"""Ledger records and derived valuation models."""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class Timeframe(str, Enum):
    H24 = "24h"
    D7 = "7d"
    TOTAL = "total"


class PositionSortKey(str, Enum):
    CURRENT_VALUE = "current_value"
    PNL = "pnl"
    PNL_PCT = "pnl_pct"
    TOTAL_AMOUNT = "total_amount"
    AVERAGE_PRICE = "average_price"


class PurchaseSortKey(str, Enum):
    DATE = "date"
    AMOUNT = "amount"
    PRICE = "price"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True, slots=True)
class Purchase:
    """One buy recorded by the user. ``id`` never changes across edits."""

    id: str
    asset_id: str
    amount: float
    price: float
    date: str = field(default_factory=_utc_now_iso)  # ISO-8601
    notes: str = ""
    name: str = ""
    symbol: str = ""
    image: str = ""

    def __post_init__(self) -> None:
        if not self.id or not self.asset_id:
            raise ValueError("purchase needs an id and an asset_id")
        if not math.isfinite(self.amount) or self.amount <= 0:
            raise ValueError(f"amount must be > 0, got {self.amount}")
        if not math.isfinite(self.price) or self.price < 0:
            raise ValueError(f"price must be >= 0, got {self.price}")

    @staticmethod
    def new_id(asset_id: str) -> str:
        return f"{asset_id}-{uuid.uuid4().hex[:12]}"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Purchase:
        """Build from a stored or user-supplied record.

        Accepts ``assetId`` or ``cryptoId`` (older stored holdings) for the
        asset reference and generates an id when none is given.
        """
        asset_id = data.get("assetId") or data.get("cryptoId") or data.get("asset_id")
        if not asset_id:
            raise ValueError("record has no asset id")
        return cls(
            id=data.get("id") or cls.new_id(asset_id),
            asset_id=asset_id,
            amount=float(data["amount"]),
            price=float(data["price"]),
            date=data.get("date") or _utc_now_iso(),
            notes=data.get("notes") or "",
            name=data.get("name") or "",
            symbol=data.get("symbol") or "",
            image=data.get("image") or "",
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "assetId": self.asset_id,
            "name": self.name,
            "symbol": self.symbol,
            "image": self.image,
            "amount": self.amount,
            "price": self.price,
            "date": self.date,
            "notes": self.notes,
        }


@dataclass(frozen=True, slots=True)
class AssetPosition:
    """All purchases of one asset, valued at the current price. Never persisted."""

    asset_id: str
    name: str
    symbol: str
    image: str
    purchases: tuple[Purchase, ...]
    total_amount: float
    total_value: float  # Cost basis
    average_price: float
    current_price: float
    current_value: float
    pnl: float
    pnl_pct: float | None  # None when the cost basis is 0
    price_change_pct_24h: float = 0.0
    price_change_pct_7d: float = 0.0

    def price_change_pct(self, timeframe: Timeframe) -> float:
        if timeframe is Timeframe.H24:
            return self.price_change_pct_24h
        if timeframe is Timeframe.D7:
            return self.price_change_pct_7d
        raise ValueError(f"no price change figure for {timeframe.value}")

    def to_dict(self) -> dict:
        return {
            "asset_id": self.asset_id,
            "name": self.name,
            "symbol": self.symbol,
            "image": self.image,
            "purchases": [p.to_dict() for p in self.purchases],
            "total_amount": self.total_amount,
            "total_value": self.total_value,
            "average_price": self.average_price,
            "current_price": self.current_price,
            "current_value": self.current_value,
            "pnl": self.pnl,
            "pnl_pct": self.pnl_pct,
            "price_change_pct_24h": self.price_change_pct_24h,
            "price_change_pct_7d": self.price_change_pct_7d,
        }


@dataclass(frozen=True, slots=True)
class TimeframeGain:
    value: float
    percentage: float | None  # None when the denominator is 0

    def to_dict(self) -> dict:
        return {"value": self.value, "percentage": self.percentage}


@dataclass(frozen=True, slots=True)
class PortfolioSnapshot:
    total_value: float  # Sum of current values
    total_cost: float  # Sum of cost bases
    total_pnl: float
    total_pnl_pct: float | None
    gains: dict[Timeframe, TimeframeGain] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "total_value": self.total_value,
            "total_cost": self.total_cost,
            "total_pnl": self.total_pnl,
            "total_pnl_pct": self.total_pnl_pct,
            "gains": {tf.value: gain.to_dict() for tf, gain in self.gains.items()},
        }
