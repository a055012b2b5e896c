"""Failure taxonomy for market data fetches."""

from __future__ import annotations


class FetchError(Exception):
    """Base class for every failure surfaced by the fetch pipeline."""


class RateLimitExceeded(FetchError):
    """HTTP 429 kept coming back after the retry budget was spent."""


class PermanentFetchError(FetchError):
    """Non-2xx response (other than 429) or an unreadable body. Never retried."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransientNetworkError(FetchError):
    """Transport-level failure (DNS, connect, read timeout, ...)."""


class NoDataAvailable(FetchError):
    """The first page could not be fetched and nothing was cached for it."""
