"""Rate layer -- upstream quote fetching and threshold evaluation."""

from fxalert.rates.fetcher import RateFetcher
from fxalert.rates.market import (
    format_rate,
    format_threshold,
    get_market_status,
    is_rate_above_threshold,
)

__all__ = [
    "RateFetcher",
    "format_rate",
    "format_threshold",
    "get_market_status",
    "is_rate_above_threshold",
]
