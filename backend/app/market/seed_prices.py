"""Seed prices and per-token parameters for the market simulator."""

# Starting spot levels for the registered index tokens
SEED_PRICES: dict[int, float] = {
    256265: 24350.00,  # NIFTY 50
    260105: 52100.00,  # NIFTY BANK
    257801: 23400.00,  # NIFTY FIN SERVICE
    288009: 12150.00,  # NIFTY MID SELECT
    270857: 67800.00,  # NIFTY NEXT 50
    265: 80100.00,  # SENSEX
    274441: 59300.00,  # BANKEX
}

# Per-token GBM parameters
# sigma: annualized volatility (higher = more price movement)
# mu: annualized drift / expected return
TOKEN_PARAMS: dict[int, dict[str, float]] = {
    256265: {"sigma": 0.13, "mu": 0.08},
    260105: {"sigma": 0.16, "mu": 0.08},
    257801: {"sigma": 0.15, "mu": 0.08},
    288009: {"sigma": 0.18, "mu": 0.09},
    270857: {"sigma": 0.17, "mu": 0.09},
    265: {"sigma": 0.13, "mu": 0.08},
    274441: {"sigma": 0.17, "mu": 0.08},
}

# Default parameters for tokens not in the list above (stocks, futures, option legs)
DEFAULT_PARAMS: dict[str, float] = {"sigma": 0.30, "mu": 0.05}

# Range for random starting prices of unknown tokens
DEFAULT_PRICE_RANGE: tuple[float, float] = (50.0, 3000.0)

# Tokens in this group move together more strongly than anything else
INDEX_TOKENS: frozenset[int] = frozenset(SEED_PRICES)

# Correlation coefficients
INTRA_INDEX_CORR = 0.8  # Broad indices track each other closely
DEFAULT_CORR = 0.3  # Everything else

# Starting open interest for simulated derivative contracts
DEFAULT_OPEN_INTEREST = 100_000.0
