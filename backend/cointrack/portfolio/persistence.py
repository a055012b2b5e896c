"""Key-value persistence for the ledger."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from .errors import PersistenceCorruption

logger = logging.getLogger(__name__)

HOLDINGS_KEY = "portfolio-holdings"
FAVORITES_KEY = "portfolio-favorites"


class PersistenceAdapter(ABC):
    """Stores one JSON array per key.

    ``load`` never raises: a missing, unreadable or malformed value comes back
    as an empty list. ``save`` is best-effort and reports failure by
    returning False.
    """

    @abstractmethod
    def read(self, key: str) -> str | None:
        """Raw stored text for ``key``, or None if nothing is stored."""

    @abstractmethod
    def write(self, key: str, text: str) -> None:
        """Replace the stored text for ``key``."""

    def load(self, key: str) -> list:
        try:
            raw = self.read(key)
            if raw is None:
                return []
            value = json.loads(raw)
            if not isinstance(value, list):
                raise PersistenceCorruption(f"expected a JSON array, got {type(value).__name__}")
            return value
        except (OSError, ValueError) as e:  # PersistenceCorruption and JSONDecodeError are ValueErrors
            logger.warning("Discarding stored %r: %s", key, e)
            return []

    def save(self, key: str, value: list[Any]) -> bool:
        try:
            self.write(key, json.dumps(value))
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to save %r: %s", key, e)
            return False
        return True


class MemoryPersistence(PersistenceAdapter):
    """Dict-backed store for tests and ephemeral sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def read(self, key: str) -> str | None:
        return self._data.get(key)

    def write(self, key: str, text: str) -> None:
        self._data[key] = text


class JsonFilePersistence(PersistenceAdapter):
    """One ``<key>.json`` file per key inside ``directory``."""

    def __init__(self, directory: str | Path) -> None:
        self._dir = Path(directory)

    @property
    def directory(self) -> Path:
        return self._dir

    def _path(self, key: str) -> Path:
        return self._dir / f"{key}.json"

    def read(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, text: str) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(text, encoding="utf-8")
        os.replace(tmp, path)  # Readers never see a half-written file


def create_persistence() -> PersistenceAdapter:
    """JSON file store under PORTFOLIO_DATA_DIR (default ``data``)."""
    directory = os.environ.get("PORTFOLIO_DATA_DIR", "").strip() or "data"
    logger.info("Ledger persistence: %s", Path(directory).resolve())
    return JsonFilePersistence(directory)


class BackgroundWriter:
    """Fire-and-forget saves.

    Inside a running event loop each save runs in a worker thread and the
    caller returns immediately; writes are applied in submission order.
    Without a loop the save happens inline. Failures are only logged.
    """

    def __init__(self, store: PersistenceAdapter) -> None:
        self._store = store
        self._tasks: set[asyncio.Task] = set()
        self._lock: asyncio.Lock | None = None

    @property
    def store(self) -> PersistenceAdapter:
        return self._store

    def write(self, key: str, value: list[Any]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._store.save(key, value)
            return

        task = loop.create_task(self._write_in_order(key, value), name=f"persist-{key}")
        self._tasks.add(task)
        task.add_done_callback(self._done)

    async def _write_in_order(self, key: str, value: list[Any]) -> None:
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            await asyncio.to_thread(self._store.save, key, value)

    def _done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Background save failed: %s", task.exception())

    async def drain(self) -> None:
        """Wait for every queued save to finish."""
        while True:
            pending = [t for t in self._tasks if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def __len__(self) -> int:
        return len(self._tasks)
