"""Tests for CheckCycle: evaluate, notify with cooldown, persist, and failures."""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import FakeClock
from fxalert.check_cycle import CheckCycle
from fxalert.exceptions import CheckError, FetchError
from fxalert.models import ExchangeRate
from fxalert.notify.dispatcher import AlertDispatcher
from fxalert.rates.fetcher import RateFetcher
from fxalert.state.cooldown import CooldownPolicy
from fxalert.state.store import ConfigStore


def _rate(ask: str) -> ExchangeRate:
    value = Decimal(ask)
    return ExchangeRate(
        ask=value, bid=value, high=value, low=value, observed_at=1_700_000_000_000
    )


@pytest.fixture
def fetcher() -> MagicMock:
    mock = MagicMock(spec=RateFetcher)
    mock.fetch_current_rate = AsyncMock(return_value=_rate("5.25"))
    return mock


@pytest.fixture
def dispatcher() -> MagicMock:
    mock = MagicMock(spec=AlertDispatcher)
    mock.send_sell_alert = AsyncMock()
    mock.send_error_alert = AsyncMock()
    return mock


@pytest.fixture
def cycle(
    store: ConfigStore, fetcher: MagicMock, dispatcher: MagicMock, clock: FakeClock
) -> CheckCycle:
    return CheckCycle(store, fetcher, dispatcher, CooldownPolicy(), now=clock)


# ---------------------------------------------------------------------------
# run_check
# ---------------------------------------------------------------------------


class TestRunCheck:
    """Happy path, cooldown, and below-target evaluation."""

    @pytest.mark.asyncio
    async def test_no_threshold_fails_fast(
        self, cycle: CheckCycle, fetcher: MagicMock, dispatcher: MagicMock
    ) -> None:
        with pytest.raises(CheckError, match="No threshold configured"):
            await cycle.run_check()

        fetcher.fetch_current_rate.assert_not_awaited()
        dispatcher.send_error_alert.assert_awaited_once_with("No threshold configured")

    @pytest.mark.asyncio
    async def test_above_target_triggers_and_persists(
        self,
        cycle: CheckCycle,
        store: ConfigStore,
        dispatcher: MagicMock,
        clock: FakeClock,
    ) -> None:
        store.set_threshold(Decimal("5.00"))

        result = await cycle.run_check()

        assert result.triggered is True
        assert result.above_target is True
        assert result.rate == Decimal("5.25")
        assert result.message.startswith("Great time to sell USD!")
        dispatcher.send_sell_alert.assert_awaited_once_with(Decimal("5.25"), Decimal("5.00"))

        reloaded = ConfigStore(store.path, now=clock).get_config()
        assert reloaded is not None
        assert reloaded.last_check_at == clock.current
        assert reloaded.last_notification_at == clock.current

    @pytest.mark.asyncio
    async def test_cooldown_suppresses_repeat_alert(
        self,
        cycle: CheckCycle,
        store: ConfigStore,
        dispatcher: MagicMock,
        clock: FakeClock,
    ) -> None:
        store.set_threshold(Decimal("5.00"))
        await cycle.run_check()
        clock.advance(minutes=30)

        second = await cycle.run_check()

        assert second.triggered is False
        assert second.above_target is True
        assert "Great time to sell USD!" in second.message
        assert dispatcher.send_sell_alert.await_count == 1

    @pytest.mark.asyncio
    async def test_alert_again_after_cooldown(
        self,
        cycle: CheckCycle,
        store: ConfigStore,
        dispatcher: MagicMock,
        clock: FakeClock,
    ) -> None:
        store.set_threshold(Decimal("5.00"))
        await cycle.run_check()
        clock.advance(hours=2, seconds=1)

        result = await cycle.run_check()

        assert result.triggered is True
        assert dispatcher.send_sell_alert.await_count == 2

    @pytest.mark.asyncio
    async def test_below_target_no_alert(
        self,
        cycle: CheckCycle,
        store: ConfigStore,
        fetcher: MagicMock,
        dispatcher: MagicMock,
    ) -> None:
        store.set_threshold(Decimal("5.00"))
        fetcher.fetch_current_rate.return_value = _rate("4.80")

        result = await cycle.run_check()

        assert result.above_target is False
        assert result.triggered is False
        assert result.message == "Rate below target. Need 0.2000 more BRL to reach 5.0000"
        dispatcher.send_sell_alert.assert_not_awaited()
        config = store.get_config()
        assert config is not None
        assert config.last_check_at is not None
        assert config.last_notification_at is None

    @pytest.mark.asyncio
    async def test_rate_equal_to_threshold_triggers(
        self, cycle: CheckCycle, store: ConfigStore, fetcher: MagicMock
    ) -> None:
        store.set_threshold(Decimal("5.25"))
        fetcher.fetch_current_rate.return_value = _rate("5.25")

        result = await cycle.run_check()

        assert result.triggered is True


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestRunCheckFailures:
    """Fetch and unexpected failures become CheckError plus an error alert."""

    @pytest.mark.asyncio
    async def test_fetch_failure_wrapped(
        self,
        cycle: CheckCycle,
        store: ConfigStore,
        fetcher: MagicMock,
        dispatcher: MagicMock,
    ) -> None:
        store.set_threshold(Decimal("5.00"))
        cause = FetchError("Unable to fetch current exchange rate: 503")
        fetcher.fetch_current_rate.side_effect = cause

        with pytest.raises(CheckError) as exc_info:
            await cycle.run_check()

        assert exc_info.value.__cause__ is cause
        assert "Unable to fetch current exchange rate" in str(exc_info.value)
        dispatcher.send_error_alert.assert_awaited_once()
        dispatcher.send_sell_alert.assert_not_awaited()
        config = store.get_config()
        assert config is not None
        assert config.last_check_at is None

    @pytest.mark.asyncio
    async def test_unexpected_error_wrapped(
        self,
        cycle: CheckCycle,
        store: ConfigStore,
        fetcher: MagicMock,
        dispatcher: MagicMock,
    ) -> None:
        store.set_threshold(Decimal("5.00"))
        fetcher.fetch_current_rate.side_effect = RuntimeError("kaboom")

        with pytest.raises(CheckError, match="Unexpected error during check: kaboom"):
            await cycle.run_check()

        dispatcher.send_error_alert.assert_awaited_once_with(
            "Unexpected error during check: kaboom"
        )

    @pytest.mark.asyncio
    async def test_cycles_are_serialised(
        self, cycle: CheckCycle, store: ConfigStore, fetcher: MagicMock
    ) -> None:
        store.set_threshold(Decimal("5.00"))
        in_flight = 0
        peak = 0

        async def slow_fetch() -> ExchangeRate:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return _rate("4.80")

        fetcher.fetch_current_rate.side_effect = slow_fetch

        await asyncio.gather(cycle.run_check(), cycle.run_check(), cycle.run_check())

        assert peak == 1
        assert fetcher.fetch_current_rate.await_count == 3


# ---------------------------------------------------------------------------
# get_status
# ---------------------------------------------------------------------------


class TestGetStatus:
    """Read-only status snapshot."""

    @pytest.mark.asyncio
    async def test_unconfigured(self, cycle: CheckCycle, fetcher: MagicMock) -> None:
        with pytest.raises(CheckError, match="No configuration found"):
            await cycle.get_status()
        fetcher.fetch_current_rate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_never_checked(
        self, cycle: CheckCycle, store: ConfigStore, dispatcher: MagicMock
    ) -> None:
        store.set_threshold(Decimal("5.00"))

        status = await cycle.get_status()

        assert status.current_rate == Decimal("5.25")
        assert status.threshold == Decimal("5.00")
        assert status.above_target is True
        assert status.last_check == "Never"
        assert len(status.next_check) == len("2026-01-15 12:30:00")
        dispatcher.send_sell_alert.assert_not_awaited()
        config = store.get_config()
        assert config is not None
        assert config.last_check_at is None

    @pytest.mark.asyncio
    async def test_last_check_is_iso(
        self, cycle: CheckCycle, store: ConfigStore, clock: FakeClock
    ) -> None:
        store.set_threshold(Decimal("5.00"))
        await cycle.run_check()

        status = await cycle.get_status()

        assert status.last_check == clock.current.isoformat()

    @pytest.mark.asyncio
    async def test_fetch_failure(
        self,
        cycle: CheckCycle,
        store: ConfigStore,
        fetcher: MagicMock,
        dispatcher: MagicMock,
    ) -> None:
        store.set_threshold(Decimal("5.00"))
        fetcher.fetch_current_rate.side_effect = FetchError("upstream down")

        with pytest.raises(CheckError, match="Unable to get status: upstream down"):
            await cycle.get_status()

        dispatcher.send_error_alert.assert_not_awaited()
