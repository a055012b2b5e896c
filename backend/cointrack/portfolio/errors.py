"""Ledger and persistence failures."""

from __future__ import annotations


class PersistenceCorruption(ValueError):
    """Stored ledger data could not be decoded. Recovered by resetting to empty."""


class PurchaseNotFound(KeyError):
    """No purchase with the given id exists in the ledger."""
