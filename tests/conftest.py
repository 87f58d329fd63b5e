"""Shared test fixtures for the currency monitor."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from fxalert.config import AppSettings, MonitorSettings, NotifierSettings, RateSourceSettings
from fxalert.state.store import ConfigStore

QUOTE_URL = "https://quotes.test/json/last/USD-BRL"


class FakeClock:
    """Controllable clock returning aware UTC datetimes."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


def make_quote(
    ask: str = "5.2795",
    bid: str = "5.2788",
    high: str = "5.3012",
    low: str = "5.2401",
    timestamp: str = "1700000000",
) -> dict:
    """Build an upstream response body (all numbers string-encoded)."""
    return {
        "USDBRL": {
            "code": "USD",
            "codein": "BRL",
            "name": "Dólar Americano/Real Brasileiro",
            "high": high,
            "low": low,
            "varBid": "0.0123",
            "pctChange": "0.23",
            "bid": bid,
            "ask": ask,
            "timestamp": timestamp,
            "create_date": "2023-11-14 19:13:20",
        }
    }


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings with test defaults (test URL, console-only alerts)."""
    return AppSettings(
        log_level="DEBUG",
        rates=RateSourceSettings(url=QUOTE_URL),
        monitor=MonitorSettings(state_file="config.json"),
        notifier=NotifierSettings(native_enabled=False),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 15, 12, 10, tzinfo=timezone.utc))


@pytest.fixture
def state_file(tmp_path: Path) -> Path:
    return tmp_path / "config.json"


@pytest.fixture
def store(state_file: Path, clock: FakeClock) -> ConfigStore:
    """Unconfigured ConfigStore backed by a temp file."""
    return ConfigStore(state_file, now=clock)
