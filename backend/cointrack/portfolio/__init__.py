"""Portfolio subsystem for cointrack.

Public API:
    Purchase            - One user buy, persisted
    AssetPosition       - Purchases of one asset valued at current price
    PortfolioSnapshot   - Portfolio totals plus 24h/7d/total gains
    Ledger              - Purchases and favorites with persisted commands
    value_positions     - Group purchases into valued positions
    calculate_gain      - Portfolio return over one timeframe
    PersistenceAdapter  - Key-value store contract (JSON file, memory)
"""

from .errors import PersistenceCorruption, PurchaseNotFound
from .gains import calculate_all_gains, calculate_gain
from .ledger import Ledger, reorder
from .models import (
    AssetPosition,
    PortfolioSnapshot,
    PositionSortKey,
    Purchase,
    PurchaseSortKey,
    Timeframe,
    TimeframeGain,
)
from .persistence import (
    FAVORITES_KEY,
    HOLDINGS_KEY,
    BackgroundWriter,
    JsonFilePersistence,
    MemoryPersistence,
    PersistenceAdapter,
    create_persistence,
)
from .valuation import sort_positions, sort_purchases, summarize_portfolio, value_positions

__all__ = [
    "FAVORITES_KEY",
    "HOLDINGS_KEY",
    "AssetPosition",
    "BackgroundWriter",
    "JsonFilePersistence",
    "Ledger",
    "MemoryPersistence",
    "PersistenceAdapter",
    "PersistenceCorruption",
    "PortfolioSnapshot",
    "PositionSortKey",
    "Purchase",
    "PurchaseNotFound",
    "PurchaseSortKey",
    "Timeframe",
    "TimeframeGain",
    "calculate_all_gains",
    "calculate_gain",
    "create_persistence",
    "reorder",
    "sort_positions",
    "sort_purchases",
    "summarize_portfolio",
    "value_positions",
]
