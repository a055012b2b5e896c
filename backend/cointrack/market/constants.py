"""Tunables for the market data pipeline."""

# Retry policy for rate-limited (HTTP 429) responses
MAX_RETRIES = 3
BASE_RETRY_DELAY = 2.0  # seconds; doubles on every retry: 2, 4, 8

# Page cache freshness window
CACHE_TTL = 30.0  # seconds

# Upstream pagination
PAGE_SIZE = 100  # records per upstream request
MAX_PAGES = 5  # page 1 plus up to 4 background pages
PAGE_DELAY = 1.5  # seconds between background pages

# Periodic full refresh
REFRESH_INTERVAL = 30.0  # seconds

# Forced reload after page 1 was served from a stale cache entry
STALE_RETRY_DELAY = 10.0  # seconds

VS_CURRENCY = "usd"
PRICE_CHANGE_WINDOWS = "24h,7d"

# Local list view
PAGE_SIZE_OPTIONS: tuple[int, ...] = (20, 50, 100)
DEFAULT_LIST_PAGE_SIZE = 20
