"""Market data subsystem for cointrack.

Public API:
    AssetSnapshot       - Immutable per-fetch asset record
    SortKey, SortDirection, SortOrder - Active list ordering
    BackoffController   - 429-aware retry around one request
    ResponseCache       - TTL page cache with stale fallback
    RequestDeduplicator - One in-flight request per page key
    MergeSet            - Duplicate-free, sorted asset collection
    FetchScheduler      - Page 1 first, then staggered background pages
    MarketDataProvider  - Abstract interface for upstream feeds
    create_market_data_provider - Factory that selects simulator or CoinGecko
"""

from .backoff import BackoffController
from .cache import ResponseCache
from .dedup import RequestDeduplicator
from .errors import (
    FetchError,
    NoDataAvailable,
    PermanentFetchError,
    RateLimitExceeded,
    TransientNetworkError,
)
from .factory import create_market_data_provider
from .interface import MarketDataProvider
from .merge import MergeSet, merge_assets, sort_assets
from .models import AssetSnapshot, PageKey, PriceQuote, SortDirection, SortKey, SortOrder
from .scheduler import FetchScheduler

__all__ = [
    "AssetSnapshot",
    "BackoffController",
    "FetchError",
    "FetchScheduler",
    "MarketDataProvider",
    "MergeSet",
    "NoDataAvailable",
    "PageKey",
    "PermanentFetchError",
    "PriceQuote",
    "RateLimitExceeded",
    "RequestDeduplicator",
    "ResponseCache",
    "SortDirection",
    "SortKey",
    "SortOrder",
    "TransientNetworkError",
    "create_market_data_provider",
    "merge_assets",
    "sort_assets",
]
