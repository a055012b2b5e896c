"""GBM-based crypto market simulator, served through the provider interface."""

from __future__ import annotations

import logging
import math
from collections import deque

import httpx
import numpy as np

from .interface import MarketDataProvider
from .models import SortDirection, SortKey
from .seed_assets import (
    ASSET_PARAMS,
    CORRELATION_GROUPS,
    DEFAULT_CORR,
    DEFAULT_PARAMS,
    INTRA_MAJORS_CORR,
    INTRA_STABLE_CORR,
    SEED_ASSETS,
    STABLE_CROSS_CORR,
)

logger = logging.getLogger(__name__)

SIMULATOR_URL = "https://simulator.invalid/coins/markets"


class GBMSimulator:
    """Geometric Brownian Motion simulator for a correlated crypto universe.

    Math:
        S(t+dt) = S(t) * exp((mu - sigma^2/2) * dt + sigma * sqrt(dt) * Z)

    One step is one hour of simulated time. Crypto trades around the clock,
    so a year is 365 * 24 steps. The last ``HISTORY_LENGTH`` hourly prices
    feed the 7d sparkline and the 24h / 7d change figures.
    """

    HOURS_PER_YEAR = 365 * 24
    DEFAULT_DT = 1.0 / HOURS_PER_YEAR
    HISTORY_LENGTH = 7 * 24 + 1  # 7 days of hourly samples, both ends included

    def __init__(
        self,
        universe_size: int = 250,
        dt: float = DEFAULT_DT,
        event_probability: float = 0.001,
        seed: int | None = None,
    ) -> None:
        self._dt = dt
        self._event_prob = event_probability
        self._rng = np.random.default_rng(seed)

        self._ids: list[str] = []
        self._meta: dict[str, tuple[str, str, float]] = {}  # id -> (name, symbol, supply)
        sigmas: list[float] = []
        mus: list[float] = []
        prices: list[float] = []

        for asset_id, (name, symbol, price, supply) in SEED_ASSETS.items():
            if len(self._ids) >= universe_size:
                break
            params = ASSET_PARAMS.get(asset_id, DEFAULT_PARAMS)
            self._add(asset_id, name, symbol, supply)
            prices.append(price)
            sigmas.append(params["sigma"])
            mus.append(params["mu"])

        # Long tail of small tokens with log-uniform prices and supplies
        index = 1
        while len(self._ids) < universe_size:
            asset_id = f"token-{index:03d}"
            supply = float(10 ** self._rng.uniform(6, 10))
            self._add(asset_id, f"Token {index}", f"tk{index}", supply)
            prices.append(float(10 ** self._rng.uniform(-3, 2)))
            sigmas.append(DEFAULT_PARAMS["sigma"])
            mus.append(DEFAULT_PARAMS["mu"])
            index += 1

        self._prices = np.array(prices, dtype=float)
        self._sigma = np.array(sigmas, dtype=float)
        self._mu = np.array(mus, dtype=float)
        self._turnover = self._rng.uniform(0.02, 0.15, size=len(self._ids))
        self._cholesky = self._build_cholesky()
        self._history: deque[np.ndarray] = deque(maxlen=self.HISTORY_LENGTH)
        self._history.append(self._prices.copy())

    # --- Public API ---

    def step(self) -> dict[str, float]:
        """Advance every asset by one hour. Returns {asset_id: new_price}."""
        n = len(self._ids)
        if n == 0:
            return {}

        z = self._rng.standard_normal(n)
        if self._cholesky is not None:
            z = self._cholesky @ z

        drift = (self._mu - 0.5 * self._sigma**2) * self._dt
        diffusion = self._sigma * math.sqrt(self._dt) * z
        self._prices *= np.exp(drift + diffusion)

        # Random listing/news shocks, roughly one per thousand asset-hours
        shocked = self._rng.random(n) < self._event_prob
        if shocked.any():
            magnitude = self._rng.uniform(0.05, 0.20, size=n)
            sign = self._rng.choice([-1.0, 1.0], size=n)
            self._prices[shocked] *= 1 + magnitude[shocked] * sign[shocked]
            logger.debug("Random event on %d assets", int(shocked.sum()))

        self._history.append(self._prices.copy())
        return {asset_id: float(p) for asset_id, p in zip(self._ids, self._prices)}

    def warm_up(self, steps: int = HISTORY_LENGTH - 1) -> None:
        """Run ``steps`` hours so sparklines and 7d changes exist from the start."""
        for _ in range(steps):
            self.step()

    def get_price(self, asset_id: str) -> float | None:
        try:
            return float(self._prices[self._ids.index(asset_id)])
        except ValueError:
            return None

    def asset_ids(self) -> list[str]:
        return list(self._ids)

    def records(self) -> list[dict]:
        """Current universe as CoinGecko ``/coins/markets`` shaped records."""
        history = np.array(self._history)  # shape (samples, n)
        day_ago = history[max(0, len(history) - 25)]
        week_ago = history[0]

        records = []
        for i, asset_id in enumerate(self._ids):
            name, symbol, supply = self._meta[asset_id]
            price = float(self._prices[i])
            market_cap = price * supply
            records.append(
                {
                    "id": asset_id,
                    "symbol": symbol,
                    "name": name,
                    "image": "",
                    "current_price": _round_price(price),
                    "market_cap": round(market_cap),
                    "total_volume": round(market_cap * float(self._turnover[i])),
                    "price_change_percentage_24h": _pct_change(day_ago[i], price),
                    "price_change_percentage_7d_in_currency": _pct_change(week_ago[i], price),
                    "sparkline_in_7d": {"price": [float(p) for p in history[:, i]]},
                }
            )
        return records

    # --- Internals ---

    def _add(self, asset_id: str, name: str, symbol: str, supply: float) -> None:
        self._ids.append(asset_id)
        self._meta[asset_id] = (name, symbol, supply)

    def _build_cholesky(self) -> np.ndarray | None:
        n = len(self._ids)
        if n <= 1:
            return None

        corr = np.eye(n)
        for i in range(n):
            for j in range(i + 1, n):
                rho = self._pairwise_correlation(self._ids[i], self._ids[j])
                corr[i, j] = rho
                corr[j, i] = rho

        return np.linalg.cholesky(corr)

    @staticmethod
    def _pairwise_correlation(a: str, b: str) -> float:
        """Correlation between two assets based on their group.

        Correlation structure:
          - Both majors:            0.7
          - Both stablecoins:       0.2
          - Stablecoin with other:  0.0
          - Anything else:          0.4
        """
        majors = CORRELATION_GROUPS["majors"]
        stables = CORRELATION_GROUPS["stablecoins"]

        if a in stables and b in stables:
            return INTRA_STABLE_CORR
        if a in stables or b in stables:
            return STABLE_CROSS_CORR
        if a in majors and b in majors:
            return INTRA_MAJORS_CORR
        return DEFAULT_CORR


def _round_price(price: float) -> float:
    # Sub-dollar tokens keep 6 decimals
    return round(price, 2) if price >= 1 else round(price, 6)


def _pct_change(before: float, after: float) -> float:
    if before == 0:
        return 0.0
    return round((after - before) / before * 100, 4)


class SimulatorProvider(MarketDataProvider):
    """MarketDataProvider backed by the GBM simulator.

    Page 1 of every sync advances the simulation by one step; pages 2..N of
    the same sync are cut from that same state, as a real upstream would
    serve them from one snapshot.
    """

    def __init__(
        self,
        universe_size: int = 250,
        event_probability: float = 0.001,
        seed: int | None = None,
    ) -> None:
        self._sim = GBMSimulator(
            universe_size=universe_size,
            event_probability=event_probability,
            seed=seed,
        )
        self._sim.warm_up()
        logger.info("Simulator provider ready with %d assets", universe_size)

    @property
    def simulator(self) -> GBMSimulator:
        return self._sim

    async def fetch_page(self, page: int, per_page: int, order: str) -> httpx.Response:
        request = httpx.Request("GET", SIMULATOR_URL, params={"page": page, "per_page": per_page, "order": order})
        try:
            field, raw_direction = order.rsplit("_", 1)
            key = SortKey(field)
            direction = SortDirection(raw_direction)
        except ValueError:
            return httpx.Response(400, json={"error": f"invalid order: {order}"}, request=request)

        if page == 1:
            self._sim.step()

        records = sorted(
            self._sim.records(),
            key=lambda r: r.get(key.value) or r.get(f"{key.value}_in_currency") or 0,
            reverse=direction is SortDirection.DESC,
        )
        start = (page - 1) * per_page
        return httpx.Response(200, json=records[start : start + per_page], request=request)

    async def aclose(self) -> None:
        logger.info("Simulator provider closed")
