"""Ask rate evaluation against the configured threshold.

Pure functions: no I/O, no clock. The comparison is inclusive, so an ask
exactly at the threshold counts as above target.
"""

from decimal import ROUND_HALF_UP, Decimal

from fxalert.models import MarketStatus

_FOUR_PLACES = Decimal("0.0001")
_TWO_PLACES = Decimal("0.01")


def format_rate(rate: Decimal) -> str:
    """Format a rate with 4 decimal places (e.g. Decimal("5.3") -> "5.3000")."""
    return str(rate.quantize(_FOUR_PLACES, rounding=ROUND_HALF_UP))


def format_threshold(threshold: Decimal) -> str:
    """Format a threshold with 2 decimal places, as shown in alerts."""
    return str(threshold.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


def is_rate_above_threshold(ask: Decimal, threshold: Decimal) -> bool:
    """Return True when the ask rate has reached or passed the threshold."""
    return ask >= threshold


def get_market_status(ask: Decimal, threshold: Decimal) -> MarketStatus:
    """Build the status message and emoji for an ask rate.

    Above target the message carries the rate and target; below target it
    shows the remaining gap (threshold - ask).
    """
    if is_rate_above_threshold(ask, threshold):
        return MarketStatus(
            above_target=True,
            message=(
                f"Great time to sell USD! Rate: {format_rate(ask)} BRL "
                f"(target: ≥{format_rate(threshold)})"
            ),
            emoji="🎯",
        )

    gap = threshold - ask
    return MarketStatus(
        above_target=False,
        message=(
            f"Rate below target. Need {format_rate(gap)} more BRL "
            f"to reach {format_rate(threshold)}"
        ),
        emoji="📉",
    )
