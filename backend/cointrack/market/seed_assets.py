"""Seed universe and per-asset parameters for the market simulator."""

# id -> (name, symbol, starting price in USD, circulating supply)
SEED_ASSETS: dict[str, tuple[str, str, float, float]] = {
    "bitcoin": ("Bitcoin", "btc", 64000.00, 19_700_000),
    "ethereum": ("Ethereum", "eth", 3100.00, 120_000_000),
    "tether": ("Tether", "usdt", 1.00, 110_000_000_000),
    "binancecoin": ("BNB", "bnb", 560.00, 147_000_000),
    "solana": ("Solana", "sol", 145.00, 460_000_000),
    "usd-coin": ("USDC", "usdc", 1.00, 33_000_000_000),
    "ripple": ("XRP", "xrp", 0.52, 55_000_000_000),
    "dogecoin": ("Dogecoin", "doge", 0.15, 145_000_000_000),
    "cardano": ("Cardano", "ada", 0.45, 35_500_000_000),
    "avalanche-2": ("Avalanche", "avax", 35.00, 393_000_000),
    "polkadot": ("Polkadot", "dot", 7.10, 1_400_000_000),
    "chainlink": ("Chainlink", "link", 14.50, 587_000_000),
}

# Per-asset GBM parameters
# sigma: annualized volatility (crypto trades 24/7, so these are large)
# mu: annualized drift / expected return
ASSET_PARAMS: dict[str, dict[str, float]] = {
    "bitcoin": {"sigma": 0.55, "mu": 0.10},
    "ethereum": {"sigma": 0.70, "mu": 0.10},
    "tether": {"sigma": 0.005, "mu": 0.0},  # Pegged
    "binancecoin": {"sigma": 0.65, "mu": 0.08},
    "solana": {"sigma": 0.95, "mu": 0.12},
    "usd-coin": {"sigma": 0.005, "mu": 0.0},  # Pegged
    "ripple": {"sigma": 0.85, "mu": 0.05},
    "dogecoin": {"sigma": 1.10, "mu": 0.05},  # Meme volatility
    "cardano": {"sigma": 0.85, "mu": 0.05},
    "avalanche-2": {"sigma": 0.95, "mu": 0.08},
    "polkadot": {"sigma": 0.90, "mu": 0.05},
    "chainlink": {"sigma": 0.90, "mu": 0.08},
}

# Parameters for the generated long-tail tokens
DEFAULT_PARAMS: dict[str, float] = {"sigma": 1.20, "mu": 0.0}

# Correlation groups for the simulator's Cholesky decomposition
CORRELATION_GROUPS: dict[str, set[str]] = {
    "majors": {
        "bitcoin",
        "ethereum",
        "binancecoin",
        "solana",
        "ripple",
        "dogecoin",
        "cardano",
        "avalanche-2",
        "polkadot",
        "chainlink",
    },
    "stablecoins": {"tether", "usd-coin"},
}

# Correlation coefficients
INTRA_MAJORS_CORR = 0.7  # Majors follow bitcoin
INTRA_STABLE_CORR = 0.2  # Pegs wobble mostly on their own
STABLE_CROSS_CORR = 0.0  # Pegs ignore the market
DEFAULT_CORR = 0.4  # Long tail vs. everything else
