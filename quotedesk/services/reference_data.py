BASE_PRICES = {
    "AAPL": 230.49,
    "NVDA": 177.88,
    "TSLA": 295.14,
    "MSFT": 470.38,
    "GOOGL": 173.68,
    "META": 750.00,
    "AMZN": 213.57,
}

COMPANY_NAMES = {
    "AAPL": "Apple Inc.",
    "NVDA": "NVIDIA Corporation",
    "TSLA": "Tesla, Inc.",
    "MSFT": "Microsoft Corporation",
    "GOOGL": "Alphabet Inc.",
    "META": "Meta Platforms, Inc.",
    "AMZN": "Amazon.com, Inc.",
}

SHARES_OUTSTANDING = {
    "AAPL": 15_200_000_000,
    "NVDA": 24_600_000_000,
    "TSLA": 3_170_000_000,
    "MSFT": 7_430_000_000,
    "GOOGL": 12_400_000_000,
    "META": 2_540_000_000,
    "AMZN": 10_700_000_000,
}
DEFAULT_SHARES_OUTSTANDING = 1_000_000_000


def company_name(symbol: str) -> str:
    return COMPANY_NAMES.get(symbol, f"{symbol} Corporation")


def estimate_market_cap(symbol: str, price: float) -> float:
    return price * SHARES_OUTSTANDING.get(symbol, DEFAULT_SHARES_OUTSTANDING)
