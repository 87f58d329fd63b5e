"""Shared data models for the currency monitor.

All rates and thresholds use Decimal. Timestamps on the persisted
configuration are timezone-aware datetimes; the quote timestamp is kept in
Unix milliseconds as delivered (after conversion from seconds).
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class ExchangeRate:
    """A single USD-BRL quote snapshot."""

    ask: Decimal
    bid: Decimal
    high: Decimal
    low: Decimal
    observed_at: int  # Unix milliseconds
    name: str = ""


@dataclass
class Configuration:
    """Persisted alert configuration and bookkeeping timestamps."""

    threshold: Decimal
    created_at: datetime
    last_check_at: datetime | None = None
    last_notification_at: datetime | None = None

    def to_dict(self) -> dict:
        """Render in the on-disk JSON shape (optional keys omitted when unset)."""
        data: dict = {
            "threshold": float(self.threshold),
            "created": self.created_at.isoformat(),
        }
        if self.last_check_at is not None:
            data["lastCheck"] = self.last_check_at.isoformat()
        if self.last_notification_at is not None:
            data["lastNotification"] = self.last_notification_at.isoformat()
        return data


@dataclass(frozen=True)
class MarketStatus:
    """Evaluation of an ask rate against the threshold."""

    above_target: bool
    message: str
    emoji: str


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one completed check cycle."""

    rate: Decimal
    threshold: Decimal
    above_target: bool
    triggered: bool
    message: str


@dataclass(frozen=True)
class MonitorStatus:
    """Derived monitor status, computed on demand and never persisted."""

    current_rate: Decimal
    threshold: Decimal
    above_target: bool
    last_check: str
    next_check: str


@dataclass(frozen=True)
class DeliveryResult:
    """Result of a notification dispatch.

    Dispatch always succeeds from the caller's point of view; ``channel``
    records where the alert ended up and ``fallback_reason`` why native
    delivery was not used, if it was not.
    """

    title: str
    channel: str  # "native" or "console"
    fallback_reason: str | None = None
