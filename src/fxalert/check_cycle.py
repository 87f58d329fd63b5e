"""Check cycle -- one fetch, evaluate, notify, persist pass.

The same CheckCycle instance serves the scheduler and on-demand triggers
(HTTP /check, startup). Each run:
  1. READ: threshold from the config store (fail fast if unconfigured)
  2. FETCH: current quote (the fetcher retries internally; no retry here)
  3. PERSIST: mark the configuration checked
  4. EVALUATE: ask vs threshold, build the status message
  5. NOTIFY: sell alert when above target and the cooldown allows it

Any failure dispatches a best-effort error alert and is raised as
CheckError. A failed cycle never stops the process.
"""

import asyncio
from collections.abc import Callable
from datetime import datetime, timezone

from fxalert.exceptions import CheckError, FetchError
from fxalert.logging import get_logger
from fxalert.models import CheckResult, MonitorStatus
from fxalert.notify.dispatcher import AlertDispatcher
from fxalert.rates.fetcher import RateFetcher
from fxalert.rates.market import get_market_status, is_rate_above_threshold
from fxalert.state.cooldown import CooldownPolicy
from fxalert.state.store import ConfigStore

logger = get_logger(__name__)

NEXT_CHECK_FORMAT = "%Y-%m-%d %H:%M:%S"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CheckCycle:
    """Runs check cycles against a shared ConfigStore.

    Cycles are serialised with a lock so an on-demand check and a scheduled
    one never interleave their reads and writes of the store.

    Args:
        store: Persisted configuration.
        fetcher: Upstream quote fetcher.
        dispatcher: Alert delivery.
        cooldown: Notification cooldown rule.
        now: Clock used for the cooldown decision.
    """

    def __init__(
        self,
        store: ConfigStore,
        fetcher: RateFetcher,
        dispatcher: AlertDispatcher,
        cooldown: CooldownPolicy,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._fetcher = fetcher
        self._dispatcher = dispatcher
        self._cooldown = cooldown
        self._now = now
        self._cycle_lock = asyncio.Lock()

    async def run_check(self) -> CheckResult:
        """Run one cycle and return its outcome.

        Raises:
            CheckError: No threshold configured, the fetch failed, or an
                unexpected error occurred during the cycle.
        """
        async with self._cycle_lock:
            logger.info("check_cycle_started")
            try:
                return await self._evaluate()
            except CheckError as e:
                await self._report_failure(str(e))
                raise
            except FetchError as e:
                await self._report_failure(str(e))
                raise CheckError(str(e)) from e
            except Exception as e:
                logger.error("check_cycle_unexpected_error", exc_info=True)
                message = f"Unexpected error during check: {e}"
                await self._report_failure(message)
                raise CheckError(message) from e

    async def _evaluate(self) -> CheckResult:
        threshold = self._store.get_threshold()
        if threshold is None:
            raise CheckError("No threshold configured")

        rate = await self._fetcher.fetch_current_rate()
        self._store.mark_checked()

        status = get_market_status(rate.ask, threshold)
        logger.info(
            "market_status",
            summary=f"{status.emoji} {status.message}",
            above_target=status.above_target,
        )

        triggered = False
        config = self._store.get_config()
        if (
            status.above_target
            and config is not None
            and self._cooldown.should_notify(config, self._now())
        ):
            await self._dispatcher.send_sell_alert(rate.ask, threshold)
            self._store.mark_notified()
            triggered = True
            logger.info("sell_alert_sent", ask=str(rate.ask), threshold=str(threshold))
        elif status.above_target:
            logger.info("notification_cooldown_active", cooldown=str(self._cooldown.cooldown))

        return CheckResult(
            rate=rate.ask,
            threshold=threshold,
            above_target=status.above_target,
            triggered=triggered,
            message=status.message,
        )

    async def _report_failure(self, reason: str) -> None:
        logger.error("check_cycle_failed", error=reason)
        await self._dispatcher.send_error_alert(reason)

    async def get_status(self) -> MonitorStatus:
        """Fetch a live quote and describe it against the stored configuration.

        Read-only: no alerts are dispatched and the store is not touched.

        Raises:
            CheckError: When unconfigured or the quote cannot be fetched.
        """
        config = self._store.get_config()
        if config is None:
            raise CheckError("No configuration found. Please set a threshold first.")

        try:
            rate = await self._fetcher.fetch_current_rate()
        except FetchError as e:
            raise CheckError(f"Unable to get status: {e}") from e

        return MonitorStatus(
            current_rate=rate.ask,
            threshold=config.threshold,
            above_target=is_rate_above_threshold(rate.ask, config.threshold),
            last_check=(
                config.last_check_at.isoformat() if config.last_check_at else "Never"
            ),
            next_check=self._store.next_scheduled_time().strftime(NEXT_CHECK_FORMAT),
        )
